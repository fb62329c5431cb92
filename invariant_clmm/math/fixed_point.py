"""
Fixed Point - 스케일된 정수 연산

모든 금액/가격은 부호 없는 고정소수점 정수입니다.
- Decimal: 10^12 (수수료, 퍼센트)
- Price: 10^24 (sqrt price)
- Liquidity: 10^6

반올림 방향은 호출자가 명시적으로 선택합니다 (내림 `//`, 올림 `div_up`).
u64 초과 결과는 예외가 아닌 OVERFLOW 값으로 표현되며,
용량 계산에서는 "무한대"로, 최종 출력에서는 오류로 취급됩니다.
"""

import math
from enum import Enum
from typing import Union

from ..constants import (
    DECIMAL,
    DENOMINATOR,
    FEE_OFFSET,
    PRICE_DENOMINATOR,
    U64_MAX,
)
from ..errors import ArithmeticOverflowError, InvalidArgumentError


class Overflow(Enum):
    """u64 범위를 넘는 계산 결과"""
    OVERFLOW = "amount would be greater than u64"


OVERFLOW = Overflow.OVERFLOW

# u64 금액 또는 OVERFLOW
AmountResult = Union[int, Overflow]


def check_u64(value: int) -> AmountResult:
    """u64 범위 내이면 그대로, 아니면 OVERFLOW"""
    return value if value <= U64_MAX else OVERFLOW


def unwrap_amount(value: AmountResult) -> int:
    """최종 출력으로 쓰일 금액. OVERFLOW면 ArithmeticOverflowError"""
    if value is OVERFLOW:
        raise ArithmeticOverflowError(OVERFLOW.value)
    return value


def amount_or_max(value: AmountResult) -> int:
    """용량 계산용: OVERFLOW를 U64_MAX(무제한)로 취급"""
    return U64_MAX if value is OVERFLOW else value


def from_integer(integer: int) -> int:
    """정수 -> Decimal (10^12 스케일)"""
    return integer * DENOMINATOR


def from_fee(fee: int) -> int:
    """수수료 티어 값(10^-5 단위) -> Decimal

    예: from_fee(1) -> 0.001%
    """
    return fee * FEE_OFFSET


def fee_to_tick_spacing(fee: int) -> int:
    """수수료 -> 틱 간격 (tickSpacing = fee * 10^4, 최소 1)"""
    if fee <= from_fee(10):
        return 1
    return fee // 10 ** (DECIMAL - 4)


def to_decimal(x: int, decimals: int = 0) -> int:
    """x * 10^-decimals 를 Decimal 스케일로 변환

    예: to_decimal(1, 2) -> 1% (10^10)
    """
    return DENOMINATOR * x // 10 ** decimals


def to_price(x: int, decimals: int = 0) -> int:
    """x * 10^-decimals 를 Price 스케일로 변환"""
    return PRICE_DENOMINATOR * x // 10 ** decimals


def to_percent(x: int, decimals: int = 0) -> int:
    """퍼센트 값 (Decimal 스케일과 동일)"""
    return to_decimal(x, decimals)


def div_up(numerator: int, denominator: int) -> int:
    """numerator / denominator 올림"""
    return (numerator + denominator - 1) // denominator


def mul_up(a: int, b: int) -> int:
    """a * b / PRICE_DENOMINATOR 올림"""
    return (a * b + PRICE_DENOMINATOR - 1) // PRICE_DENOMINATOR


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """(a * b) / denominator 올림"""
    return div_up(a * b, denominator)


def sqrt(num: int) -> int:
    """정수 제곱근 (내림)"""
    if num < 0:
        raise InvalidArgumentError("Sqrt only works on non-negative inputs")
    return math.isqrt(num)


def get_price(sqrt_price: int, decimal_diff: int) -> int:
    """sqrt price -> 가격 (Price 스케일, 토큰 소수점 차이 보정)

    sqrt_price^2 는 10^48 스케일이므로 10^24 로 맞춥니다.

    Args:
        sqrt_price: sqrt price (10^24 스케일)
        decimal_diff: tokenX 소수점 - tokenY 소수점

    Returns:
        가격 (10^24 스케일)
    """
    price = sqrt_price ** 2 // PRICE_DENOMINATOR
    if decimal_diff > 0:
        return price * 10 ** decimal_diff
    if decimal_diff < 0:
        return price // 10 ** abs(decimal_diff)
    return price
