"""
Swap Math - 단일 스왑 스텝 계산

현재 가격에서 목표 가격(다음 틱 또는 가격 한도)까지의 한 스텝을 계산합니다.

핵심 공식:
    Δx = L * |Δ√P| / (√P_a * √P_b)
    Δy = L * |Δ√P|

반올림 규칙:
    - 풀이 받는 금액 (amount_in)은 올림
    - 풀이 내주는 금액 (amount_out)은 내림
    - x 기준 다음 가격은 올림, y 기준 다음 가격은 내림
"""

from ..constants import (
    DENOMINATOR,
    LIQUIDITY_DENOMINATOR,
    LIQUIDITY_SCALE,
    PRICE_DENOMINATOR,
    PRICE_SCALE,
)
from ..data.types import SwapResult
from .fixed_point import (
    AmountResult,
    amount_or_max,
    check_u64,
    from_integer,
    sqrt,
    unwrap_amount,
)

# 10^6 스케일 유동성 -> 10^24 스케일
_LIQUIDITY_TO_PRICE_SCALE: int = 10 ** (PRICE_SCALE - LIQUIDITY_SCALE)


def get_delta_x(price_a: int, price_b: int, liquidity: int, round_up: bool) -> AmountResult:
    """두 가격 사이 token X 변화량

    공식: Δx = L * |√P_a - √P_b| / (√P_a * √P_b)

    Args:
        price_a: sqrt price A
        price_b: sqrt price B
        liquidity: 유동성 (10^6 스케일)
        round_up: True면 올림, False면 내림

    Returns:
        token X 수량, u64를 넘으면 OVERFLOW
    """
    delta_price = abs(price_a - price_b)
    nominator = liquidity * delta_price // LIQUIDITY_DENOMINATOR

    if round_up:
        denominator_up = price_a * price_b // PRICE_DENOMINATOR
        result = (
            (nominator * PRICE_DENOMINATOR + denominator_up - 1) // denominator_up
            + PRICE_DENOMINATOR - 1
        ) // PRICE_DENOMINATOR
    else:
        denominator_down = (price_a * price_b + PRICE_DENOMINATOR - 1) // PRICE_DENOMINATOR
        result = nominator * PRICE_DENOMINATOR // denominator_down // PRICE_DENOMINATOR

    return check_u64(result)


def get_delta_y(price_a: int, price_b: int, liquidity: int, round_up: bool) -> AmountResult:
    """두 가격 사이 token Y 변화량

    공식: Δy = L * |√P_a - √P_b|

    Returns:
        token Y 수량, u64를 넘으면 OVERFLOW
    """
    delta_price = abs(price_a - price_b)

    if round_up:
        result = (
            (delta_price * liquidity + LIQUIDITY_DENOMINATOR - 1) // LIQUIDITY_DENOMINATOR
            + PRICE_DENOMINATOR - 1
        ) // PRICE_DENOMINATOR
    else:
        result = delta_price * liquidity // LIQUIDITY_DENOMINATOR // PRICE_DENOMINATOR

    return check_u64(result)


def get_next_price_x_up(price: int, liquidity: int, amount: int, add: bool) -> int:
    """token X 변화에 따른 다음 sqrt price (올림)

    공식: √P' = L * √P / (L ± Δx * √P)
    """
    if amount == 0:
        return price

    big_liquidity = liquidity * _LIQUIDITY_TO_PRICE_SCALE
    price_mul_amount = price * amount

    if add:
        denominator = big_liquidity + price_mul_amount
    else:
        denominator = big_liquidity - price_mul_amount

    nominator = (price * liquidity + LIQUIDITY_DENOMINATOR - 1) // LIQUIDITY_DENOMINATOR
    return (nominator * PRICE_DENOMINATOR + denominator - 1) // denominator


def get_next_price_y_down(price: int, liquidity: int, amount: int, add: bool) -> int:
    """token Y 변화에 따른 다음 sqrt price (내림)

    공식: √P' = √P ± Δy / L
    """
    big_liquidity = liquidity * _LIQUIDITY_TO_PRICE_SCALE

    if add:
        quotient = amount * PRICE_DENOMINATOR * PRICE_DENOMINATOR // big_liquidity
        return price + quotient

    quotient = (amount * PRICE_DENOMINATOR * PRICE_DENOMINATOR + big_liquidity - 1) // big_liquidity
    return price - quotient


def get_next_price_from_input(price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """입력 금액으로 도달하는 다음 가격"""
    assert price > 0
    assert liquidity > 0

    if a_to_b:
        return get_next_price_x_up(price, liquidity, amount, True)
    return get_next_price_y_down(price, liquidity, amount, True)


def get_next_price_from_output(price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """출력 금액을 얻기 위해 도달해야 하는 다음 가격"""
    assert price > 0
    assert liquidity > 0

    if a_to_b:
        return get_next_price_y_down(price, liquidity, amount, False)
    return get_next_price_x_up(price, liquidity, amount, False)


def calculate_swap_step(
    current_price: int,
    target_price: int,
    liquidity: int,
    amount: int,
    by_amount_in: bool,
    fee: int
) -> SwapResult:
    """한 스왑 스텝 계산

    방향은 current_price >= target_price 이면 x -> y.
    유동성이 0이면 금액 없이 목표 가격으로 바로 이동합니다.

    Args:
        current_price: 현재 sqrt price
        target_price: 목표 sqrt price (틱 또는 가격 한도)
        liquidity: 활성 유동성
        amount: 남은 금액 (by_amount_in이면 입력, 아니면 출력)
        by_amount_in: 입력 금액 고정 여부
        fee: 수수료 (10^12 스케일)

    Returns:
        SwapResult(next_price, amount_in, amount_out, fee_amount)

    Raises:
        ArithmeticOverflowError: 실현된 가격 변화로 재계산한 금액이 u64를 넘는 경우
    """
    if liquidity == 0:
        return SwapResult(next_price=target_price, amount_in=0, amount_out=0, fee_amount=0)

    a_to_b = current_price >= target_price

    amount_in: AmountResult = 0
    amount_out: AmountResult = 0

    if by_amount_in:
        amount_after_fee = (from_integer(1) - fee) * amount // DENOMINATOR
        if a_to_b:
            amount_in = amount_or_max(get_delta_x(target_price, current_price, liquidity, True))
        else:
            amount_in = amount_or_max(get_delta_y(target_price, current_price, liquidity, True))

        if amount_after_fee >= amount_in:
            next_price = target_price
        else:
            next_price = get_next_price_from_input(current_price, liquidity, amount_after_fee, a_to_b)
    else:
        if a_to_b:
            amount_out = amount_or_max(get_delta_y(target_price, current_price, liquidity, False))
        else:
            amount_out = amount_or_max(get_delta_x(current_price, target_price, liquidity, False))

        if amount >= amount_out:
            next_price = target_price
        else:
            next_price = get_next_price_from_output(current_price, liquidity, amount, a_to_b)

    reached_target = target_price == next_price

    # 같은 회계 방향으로 목표에 도달한 금액만 재사용하고 나머지는 실현된 가격으로 재계산
    if a_to_b:
        if not (reached_target and by_amount_in):
            amount_in = get_delta_x(next_price, current_price, liquidity, True)
        if not (reached_target and not by_amount_in):
            amount_out = get_delta_y(next_price, current_price, liquidity, False)
    else:
        if not (reached_target and by_amount_in):
            amount_in = get_delta_y(current_price, next_price, liquidity, True)
        if not (reached_target and not by_amount_in):
            amount_out = get_delta_x(current_price, next_price, liquidity, False)

    amount_in = unwrap_amount(amount_in)
    amount_out = unwrap_amount(amount_out)

    if not by_amount_in and amount_out > amount:
        amount_out = amount

    if by_amount_in and next_price != target_price:
        fee_amount = amount - amount_in
    else:
        fee_amount = (amount_in * fee + DENOMINATOR - 1) // DENOMINATOR

    return SwapResult(
        next_price=next_price,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
    )


def is_enough_amount_to_push_price(
    amount: int,
    current_price_sqrt: int,
    liquidity: int,
    fee: int,
    by_amount_in: bool,
    a_to_b: bool
) -> bool:
    """남은 금액이 가격을 움직일 수 있는지

    틱 크로싱 후 가격을 한 단위라도 움직이지 못하면
    크로싱하지 않고 남은 금액을 소진시키는 데 사용됩니다.
    """
    if liquidity == 0:
        return True

    if by_amount_in:
        amount_after_fee = (from_integer(1) - fee) * amount // DENOMINATOR
        next_price = get_next_price_from_input(current_price_sqrt, liquidity, amount_after_fee, a_to_b)
    else:
        next_price = get_next_price_from_output(current_price_sqrt, liquidity, amount, a_to_b)

    return current_price_sqrt != next_price


def calculate_price_after_slippage(price_sqrt: int, slippage: int, up: bool) -> int:
    """슬리피지를 적용한 sqrt price 한도

    가격이 sqrt이므로 슬리피지도 sqrt를 취해 곱합니다.

    Args:
        price_sqrt: 기준 sqrt price
        slippage: 슬리피지 (10^12 스케일)
        up: True면 가격 상승 방향 (y -> x)
    """
    multiplier = slippage + DENOMINATOR if up else DENOMINATOR - slippage
    slippage_sqrt = sqrt(multiplier * DENOMINATOR)
    return price_sqrt * slippage_sqrt // DENOMINATOR


def calculate_price_impact(starting_sqrt_price: int, ending_sqrt_price: int) -> int:
    """가격 영향 = 1 - min(P0, P1) / max(P0, P1) (10^12 스케일)"""
    starting_price = starting_sqrt_price * starting_sqrt_price
    ending_price = ending_sqrt_price * ending_sqrt_price

    if ending_price >= starting_price:
        price_quotient = DENOMINATOR * starting_price // ending_price
    else:
        price_quotient = DENOMINATOR * ending_price // starting_price

    return DENOMINATOR - price_quotient


def calculate_min_received_tokens_by_amount_in(
    target_sqrt_price: int,
    x_to_y: bool,
    amount_in: int,
    fee: int
) -> int:
    """목표 가격에서 amount_in으로 받을 수 있는 최소 수량 (수수료 차감)"""
    target_price = target_sqrt_price * target_sqrt_price

    if x_to_y:
        amount_out = amount_in * target_price // PRICE_DENOMINATOR // PRICE_DENOMINATOR
    else:
        amount_out = amount_in * PRICE_DENOMINATOR * PRICE_DENOMINATOR // target_price

    return (DENOMINATOR - fee) * amount_out // DENOMINATOR
