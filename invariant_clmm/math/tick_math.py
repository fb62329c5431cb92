"""
Tick Math - Tick ↔ sqrt price 변환

Invariant 프로그램의 틱 수학 함수들. 온체인 프로그램과 동일한 정밀도로 구현.

핵심 공식:
    sqrt_price = 1.0001^(tick / 2)

    18개의 미리 계산된 승수 (1.0001^(2^k / 2), 10^12 스케일)를
    |tick|의 비트마다 곱하고 매번 내림합니다.
    음수 틱은 DENOMINATOR^2 / price 로 역수를 취합니다.
"""

import math
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..constants import (
    DENOMINATOR,
    MAX_TICK,
    PRICE_SCALE,
    DECIMAL,
    TICK_LIMIT,
    TICK_SEARCH_RANGE,
)
from ..errors import InvalidArgumentError, OutOfRangeError


# (비트 마스크, 1.0001^(mask / 2) * 10^12)
_TICK_MULTIPLIERS: Tuple[Tuple[int, int], ...] = (
    (0x1, 1000049998750),
    (0x2, 1000100000000),
    (0x4, 1000200010000),
    (0x8, 1000400060004),
    (0x10, 1000800280056),
    (0x20, 1001601200560),
    (0x40, 1003204964963),
    (0x80, 1006420201726),
    (0x100, 1012881622442),
    (0x200, 1025929181080),
    (0x400, 1052530684591),
    (0x800, 1107820842005),
    (0x1000, 1227267017980),
    (0x2000, 1506184333421),
    (0x4000, 2268591246242),
    (0x8000, 5146506242525),
    (0x10000, 26486526504348),
    (0x20000, 701536086265529),
)

# 10^12 -> 10^24
_PRICE_RESCALE: int = 10 ** (PRICE_SCALE - DECIMAL)


class Unbounded(Enum):
    """열린 틱 경계 (전체 범위 포지션의 하한/상한)"""
    UNBOUNDED = "unbounded"


UNBOUNDED = Unbounded.UNBOUNDED

TickBound = Union[int, Unbounded]


def calculate_price_sqrt(tick_index: int) -> int:
    """틱에서 sqrt price 계산

    Args:
        tick_index: 틱 인덱스 (-221818 ~ 221818)

    Returns:
        sqrt price (10^24 스케일)

    Raises:
        OutOfRangeError: |tick| > MAX_TICK
    """
    tick = abs(tick_index)
    if tick > MAX_TICK:
        raise OutOfRangeError(f"tick over bounds: {tick_index} (범위: ±{MAX_TICK})")

    price = DENOMINATOR
    for mask, multiplier in _TICK_MULTIPLIERS:
        if tick & mask:
            price = price * multiplier // DENOMINATOR

    if tick_index < 0:
        return DENOMINATOR * DENOMINATOR // price * _PRICE_RESCALE

    return price * _PRICE_RESCALE


def price_to_tick_in_range(price: int, low: int, high: int, step: int) -> int:
    """[low, high] 범위에서 가격 이하인 가장 큰 정렬된 틱 찾기

    step 단위 이진 탐색. 정확히 일치하지 않으면 내림(floor) 결과를 반환하며,
    범위 내 모든 틱의 가격이 목표보다 크면 low를 반환합니다.

    Args:
        price: 목표 sqrt price
        low: 탐색 하한 틱
        high: 탐색 상한 틱
        step: 틱 간격

    Returns:
        틱 인덱스 (step의 배수)
    """
    if step <= 0:
        raise InvalidArgumentError(f"step은 양수여야 합니다: {step}")

    low = low // step
    high = high // step

    while high - low > 1:
        mid = (high - low) // 2 + low
        value = calculate_price_sqrt(mid * step)

        if value == price:
            return mid * step
        if value < price:
            low = mid
        else:
            high = mid

    if high > low and calculate_price_sqrt(high * step) <= price:
        return high * step

    return low * step


def get_tick_from_price(current_tick: int, tick_spacing: int, price: int, x_to_y: bool) -> int:
    """가격 이동 후 현재 틱 재계산

    스왑 방향으로 TICK_SEARCH_RANGE 비트 (= TICK_SEARCH_RANGE * tick_spacing 틱)
    이내에서 탐색합니다. 한 스왑 스텝은 이 범위를 넘어 이동하지 않습니다.
    """
    if current_tick % tick_spacing != 0:
        raise InvalidArgumentError(
            f"틱이 간격에 정렬되지 않았습니다: {current_tick} (간격: {tick_spacing})"
        )

    search_range = TICK_SEARCH_RANGE * tick_spacing
    if x_to_y:
        return price_to_tick_in_range(
            price,
            min(current_tick, max(get_min_tick(tick_spacing), current_tick - search_range)),
            current_tick,
            tick_spacing,
        )
    return price_to_tick_in_range(
        price,
        current_tick,
        max(current_tick, min(get_max_tick(tick_spacing), current_tick + search_range)),
        tick_spacing,
    )


def align_tick_to_spacing(tick: int, tick_spacing: int) -> int:
    """틱을 간격에 맞춰 내림 정렬 (-∞ 방향)

    Python의 %는 양수 간격에 대해 유클리드 나머지이므로
    음수 틱도 0 방향이 아닌 아래로 정렬됩니다.
    """
    if tick_spacing <= 0:
        raise InvalidArgumentError(f"틱 간격은 양수여야 합니다: {tick_spacing}")
    return tick - tick % tick_spacing


def get_max_tick(tick_spacing: int) -> int:
    """가격 범위와 tickmap 크기로 제한되는 최대 틱"""
    limited_by_price = MAX_TICK - MAX_TICK % tick_spacing
    limited_by_tickmap = TICK_LIMIT * tick_spacing - tick_spacing
    return min(limited_by_price, limited_by_tickmap)


def get_min_tick(tick_spacing: int) -> int:
    """가격 범위와 tickmap 크기로 제한되는 최소 틱"""
    limited_by_price = -MAX_TICK + MAX_TICK % tick_spacing
    limited_by_tickmap = -TICK_LIMIT * tick_spacing
    return max(limited_by_price, limited_by_tickmap)


def check_tick(tick_index: int, tick_spacing: int) -> None:
    """포지션 경계 틱 검증"""
    if tick_index % tick_spacing != 0:
        raise InvalidArgumentError(
            f"틱이 간격에 정렬되지 않았습니다: {tick_index} (간격: {tick_spacing})"
        )

    tickmap_index = tick_index // tick_spacing
    if not -TICK_LIMIT <= tickmap_index < TICK_LIMIT:
        raise OutOfRangeError(f"tickmap 범위를 벗어난 틱: {tick_index}")
    if not -MAX_TICK <= tick_index <= MAX_TICK:
        raise OutOfRangeError(f"틱이 유효 범위를 벗어났습니다: {tick_index}")


def check_ticks(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """포지션 하한/상한 틱 검증"""
    if tick_lower >= tick_upper:
        raise InvalidArgumentError(f"하한 틱이 상한 틱보다 작아야 합니다: {tick_lower} >= {tick_upper}")

    check_tick(tick_lower, tick_spacing)
    check_tick(tick_upper, tick_spacing)


def resolve_tick_bounds(
    lower_tick: TickBound,
    upper_tick: TickBound,
    tick_spacing: Optional[int] = None
) -> Tuple[int, int]:
    """UNBOUNDED 경계를 간격에 맞는 최소/최대 틱으로 치환"""
    if (lower_tick is UNBOUNDED or upper_tick is UNBOUNDED) and tick_spacing is None:
        raise InvalidArgumentError("tickSpacing is required for calculating full range liquidity")

    lower = get_min_tick(tick_spacing) if lower_tick is UNBOUNDED else lower_tick
    upper = get_max_tick(tick_spacing) if upper_tick is UNBOUNDED else upper_tick
    return lower, upper


def price_to_tick(value: float) -> float:
    """가격 -> 틱 (log₁.₀₀₀₁, UI 입력용 float 계산)"""
    if value <= 0:
        raise InvalidArgumentError("가격은 양수여야 합니다")
    return math.log(value) / math.log(1.0001)


def generate_ticks_array(start: int, stop: int, step: int) -> List[int]:
    """start부터 stop까지 step 간격의 틱 목록 (stop 포함)

    Raises:
        InvalidArgumentError: 방향이 맞지 않거나 start/stop이 step의 배수가 아닌 경우
    """
    valid_direction = (start > stop and step < 0) or (start < stop and step > 0)
    valid_modulo = start % step == 0 and stop % step == 0

    if not valid_direction or not valid_modulo:
        raise InvalidArgumentError("Invalid parameters")

    if step > 0:
        return list(range(start, stop + 1, step))
    return list(range(start, stop - 1, step))
