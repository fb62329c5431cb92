"""
Tickmap - 초기화된 틱 비트맵 탐색

틱 t는 비트 인덱스 t // tick_spacing + TICK_LIMIT 에 대응하므로
음수 틱도 0 이상의 비트에 매핑됩니다.
비트맵 범위를 벗어난 위치는 초기화되지 않은 것으로 읽습니다.
"""

from typing import List, Optional, Sequence

from ..constants import MAX_TICK, TICK_LIMIT, TICK_SEARCH_RANGE
from ..data.types import Tickmap
from ..errors import InvalidArgumentError
from .tick_math import UNBOUNDED, TickBound


def _bit_is_set(bitmap: Sequence[int], index: int) -> bool:
    byte = index // 8
    if index < 0 or byte >= len(bitmap):
        return False
    return bitmap[byte] & (1 << (index % 8)) != 0


def _tick_to_bit(tick: int, tick_spacing: int) -> int:
    if tick % tick_spacing != 0:
        raise InvalidArgumentError(
            f"invalid arguments can't check tick: {tick} (간격: {tick_spacing})"
        )
    return tick // tick_spacing + TICK_LIMIT


def is_initialized(tickmap: Tickmap, tick: int, tick_spacing: int) -> bool:
    """틱이 초기화되어 있는지 (해당 인덱스에 Tick 레코드 존재)

    Raises:
        InvalidArgumentError: tick % tick_spacing != 0
    """
    return _bit_is_set(tickmap.bitmap, _tick_to_bit(tick, tick_spacing))


def get_search_limit(tick: int, tick_spacing: int, up: bool) -> int:
    """한 번의 방향 탐색 한계 틱

    TICK_SEARCH_RANGE 비트, tickmap 끝, 가격 범위 중 가장 가까운 곳.
    """
    index = tick // tick_spacing

    if up:
        array_limit = TICK_LIMIT - 1
        range_limit = index + TICK_SEARCH_RANGE
        price_limit = MAX_TICK // tick_spacing
        limit = min(array_limit, range_limit, price_limit)
    else:
        array_limit = -TICK_LIMIT + 1
        range_limit = index - TICK_SEARCH_RANGE
        price_limit = -(MAX_TICK // tick_spacing)
        limit = max(array_limit, range_limit, price_limit)

    return limit * tick_spacing


def next_initialized(tickmap: Tickmap, tick: int, tick_spacing: int) -> Optional[int]:
    """tick 보다 큰 가장 가까운 초기화된 틱 (탐색 한계 내), 없으면 None"""
    limit = get_search_limit(tick, tick_spacing, True)
    start = _tick_to_bit(tick + tick_spacing, tick_spacing)
    end = _tick_to_bit(limit, tick_spacing)

    for index in range(start, end + 1):
        if _bit_is_set(tickmap.bitmap, index):
            return (index - TICK_LIMIT) * tick_spacing
    return None


def prev_initialized(tickmap: Tickmap, tick: int, tick_spacing: int) -> Optional[int]:
    """tick 이하의 가장 가까운 초기화된 틱 (탐색 한계 내), 없으면 None

    x -> y 스왑은 현재 틱 자체도 크로싱 대상이므로 tick을 포함합니다.
    """
    limit = get_search_limit(tick, tick_spacing, False)
    start = _tick_to_bit(tick, tick_spacing)
    end = _tick_to_bit(limit, tick_spacing)

    for index in range(start, end - 1, -1):
        if _bit_is_set(tickmap.bitmap, index):
            return (index - TICK_LIMIT) * tick_spacing
    return None


def find_closest_ticks(
    bitmap: Sequence[int],
    current: int,
    tick_spacing: int,
    limit: int,
    max_range: TickBound = UNBOUNDED,
    one_way: Optional[str] = None
) -> List[int]:
    """현재 틱 주변의 초기화된 틱 찾기

    위/아래를 번갈아 스캔하며 limit 개까지 수집합니다.
    두 방향 간격이 2 * max_range 에 도달하거나 양쪽 끝에 닿으면 멈춥니다.
    마지막 반복에서 두 개가 함께 추가되어 limit을 하나 넘으면
    오름차순 목록의 마지막(위쪽) 틱을 버립니다.

    Args:
        bitmap: tickmap 비트맵 바이트
        current: 현재 틱 (tick_spacing의 배수)
        tick_spacing: 틱 간격
        limit: 최대 개수
        max_range: 한 방향 최대 스캔 비트 수 (UNBOUNDED면 제한 없음)
        one_way: "up" 또는 "down"이면 해당 방향만 스캔

    Returns:
        오름차순 틱 인덱스 목록
    """
    if current % tick_spacing != 0:
        raise InvalidArgumentError("invalid arguments can't find initialized ticks")
    if one_way not in (None, "up", "down"):
        raise InvalidArgumentError(f"one_way는 'up' 또는 'down'이어야 합니다: {one_way}")

    current_index = current // tick_spacing + TICK_LIMIT
    above = current_index + 1
    below = current_index
    found: List[int] = []

    reached_top = one_way == "down"
    reached_bottom = one_way == "up"

    while len(found) < limit and (max_range is UNBOUNDED or above - below < max_range * 2):
        if not reached_top:
            if _bit_is_set(bitmap, above):
                found.append(above)
            reached_top = above >= 2 * TICK_LIMIT
            above += 1
        if not reached_bottom:
            if _bit_is_set(bitmap, below):
                found.insert(0, below)
            reached_bottom = below < 0
            below -= 1

        if reached_top and reached_bottom:
            break

    # 마지막 반복에서 두 개가 추가될 수 있음
    if len(found) > limit:
        found.pop()

    return [(index - TICK_LIMIT) * tick_spacing for index in found]
