"""
Fee Math - 포지션 수수료 정산

온체인 fee growth 누적값으로 포지션의 미수령 수수료를 계산합니다.
fee growth는 10^24 스케일 u128 값이며 뺄셈은 2^128 모듈러로 랩어라운드됩니다.

핵심 공식:
    f_b(i) = f_o(i)        if i_c >= i else f_g - f_o(i)  # 틱 i 아래 수수료
    f_a(i) = f_o(i)        if i_c < i  else f_g - f_o(i)  # 틱 i 위 수수료
    f_r = f_g - f_b(i_l) - f_a(i_u)                       # 범위 내 수수료
    f_u = l × (f_r(t_1) - f_r(t_0))                       # 미수령 수수료
"""

from typing import Tuple

from ..constants import DENOMINATOR, U128_MODULUS
from ..data.types import PositionClaimData, Tick

# 유동성(10^6) × fee growth(10^24) -> tokens owed Decimal(10^12)
_OWED_SCALE_DOWN: int = 10 ** 18


def fee_growth_above(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 위에서 발생한 수수료 성장률 (f_a)

    Args:
        tick_idx: 틱 인덱스 (i)
        current_tick: 현재 틱 (i_c)
        fee_growth_global: 전역 fee growth (f_g)
        fee_growth_outside: 틱의 fee growth outside (f_o)

    Returns:
        틱 위의 fee growth (f_a)
    """
    if current_tick < tick_idx:
        return fee_growth_outside
    return fee_growth_global - fee_growth_outside


def fee_growth_below(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 아래에서 발생한 수수료 성장률 (f_b)"""
    if current_tick >= tick_idx:
        return fee_growth_outside
    return fee_growth_global - fee_growth_outside


def calculate_fee_growth_inside(
    lower_tick: Tick,
    upper_tick: Tick,
    current_tick: int,
    fee_growth_global_x: int,
    fee_growth_global_y: int
) -> Tuple[int, int]:
    """범위 내 fee growth 계산 (f_r), 두 토큰

    Args:
        lower_tick: 하한 틱 상태
        upper_tick: 상한 틱 상태
        current_tick: 현재 틱 (i_c)
        fee_growth_global_x: token X 전역 fee growth
        fee_growth_global_y: token Y 전역 fee growth

    Returns:
        (fee_growth_inside_x, fee_growth_inside_y), [0, 2^128) 범위
    """
    below_x = fee_growth_below(lower_tick.index, current_tick, fee_growth_global_x, lower_tick.fee_growth_outside_x)
    below_y = fee_growth_below(lower_tick.index, current_tick, fee_growth_global_y, lower_tick.fee_growth_outside_y)
    above_x = fee_growth_above(upper_tick.index, current_tick, fee_growth_global_x, upper_tick.fee_growth_outside_x)
    above_y = fee_growth_above(upper_tick.index, current_tick, fee_growth_global_y, upper_tick.fee_growth_outside_y)

    # u128 언더플로우는 랩어라운드
    inside_x = (fee_growth_global_x - below_x - above_x) % U128_MODULUS
    inside_y = (fee_growth_global_y - below_y - above_y) % U128_MODULUS

    return inside_x, inside_y


def calculate_fee_growth_delta(fee_growth_current: int, fee_growth_previous: int) -> int:
    """두 시점 간 fee growth 변화량 (u128 랩어라운드)"""
    return (fee_growth_current - fee_growth_previous) % U128_MODULUS


def calculate_tokens_owed(
    position: PositionClaimData,
    fee_growth_inside_x: int,
    fee_growth_inside_y: int
) -> Tuple[int, int]:
    """포지션의 총 미수령 수수료 (토큰 최소 단위)

    저장된 tokens_owed (10^12 스케일)에 새로 쌓인 수수료를 더한 뒤
    정수 토큰 단위로 내림합니다.

    Args:
        position: 포지션 상태 (마지막 정산 시 fee growth inside 포함)
        fee_growth_inside_x: 현재 token X 범위 내 fee growth
        fee_growth_inside_y: 현재 token Y 범위 내 fee growth

    Returns:
        (tokens_owed_x, tokens_owed_y)
    """
    delta_x = calculate_fee_growth_delta(fee_growth_inside_x, position.fee_growth_inside_x)
    delta_y = calculate_fee_growth_delta(fee_growth_inside_y, position.fee_growth_inside_y)

    owed_x = position.liquidity * delta_x // _OWED_SCALE_DOWN
    owed_y = position.liquidity * delta_y // _OWED_SCALE_DOWN

    return (
        (position.tokens_owed_x + owed_x) // DENOMINATOR,
        (position.tokens_owed_y + owed_y) // DENOMINATOR,
    )


def calculate_claim_amount(
    position: PositionClaimData,
    lower_tick: Tick,
    upper_tick: Tick,
    current_tick: int,
    fee_growth_global_x: int,
    fee_growth_global_y: int
) -> Tuple[int, int]:
    """지금 claim 하면 받을 수수료

    Step 1: 현재 범위 내 fee growth (f_r(t_1))
    Step 2: 포지션 기준값과의 차이로 미수령 수수료 (f_u)
    """
    fee_growth_inside_x, fee_growth_inside_y = calculate_fee_growth_inside(
        lower_tick,
        upper_tick,
        current_tick,
        fee_growth_global_x,
        fee_growth_global_y,
    )

    return calculate_tokens_owed(position, fee_growth_inside_x, fee_growth_inside_y)
