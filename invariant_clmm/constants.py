"""
Invariant CLMM 상수 정의

온체인 프로그램과 비트 단위로 일치해야 하는 상수들:
- DENOMINATOR: 일반 Decimal (수수료, 퍼센트) 스케일 10^12
- PRICE_DENOMINATOR: sqrt price 스케일 10^24
- LIQUIDITY_DENOMINATOR: 유동성 스케일 10^6
- GROWTH_DENOMINATOR: fee growth 스케일 10^24
- TICK_LIMIT / MAX_TICK: tickmap 크기 및 틱 범위
"""

from typing import List, NamedTuple

# Decimal 스케일 (자릿수)
DECIMAL: int = 12
LIQUIDITY_SCALE: int = 6
PRICE_SCALE: int = 24
GROWTH_SCALE: int = 24
FEE_DECIMAL: int = 5

# Fixed-point 분모
DENOMINATOR: int = 10 ** DECIMAL
LIQUIDITY_DENOMINATOR: int = 10 ** LIQUIDITY_SCALE
PRICE_DENOMINATOR: int = 10 ** PRICE_SCALE
GROWTH_DENOMINATOR: int = 10 ** GROWTH_SCALE

# 수수료 티어 값(10^-5 단위) -> DENOMINATOR 스케일
FEE_OFFSET: int = 10 ** (DECIMAL - FEE_DECIMAL)

# 틱 범위 상수
TICK_LIMIT: int = 44_364
MAX_TICK: int = 221_818
MIN_TICK: int = -MAX_TICK
TICK_SEARCH_RANGE: int = 256

# tickmap 비트 수 (인덱스 0 ~ 2 * TICK_LIMIT - 2)
TICKMAP_SIZE: int = 2 * TICK_LIMIT - 1
TICKMAP_BYTES: int = (TICKMAP_SIZE + 7) // 8

# 정수 최대값
U64_MAX: int = 2 ** 64 - 1
U128_MODULUS: int = 2 ** 128

# 한 instruction 내 틱 크로싱 제한
TICK_CROSSES_PER_IX: int = 16
TICK_VIRTUAL_CROSSES_PER_IX: int = 10


class FeeTier(NamedTuple):
    """수수료 티어 (fee는 DENOMINATOR 스케일)"""
    fee: int
    tick_spacing: int


# 0.01%, 0.02%, 0.05%, 0.1%, 0.3%, 1%
FEE_TIERS: List[FeeTier] = [
    FeeTier(fee=10 * FEE_OFFSET, tick_spacing=1),
    FeeTier(fee=20 * FEE_OFFSET, tick_spacing=5),
    FeeTier(fee=50 * FEE_OFFSET, tick_spacing=5),
    FeeTier(fee=100 * FEE_OFFSET, tick_spacing=10),
    FeeTier(fee=300 * FEE_OFFSET, tick_spacing=30),
    FeeTier(fee=1000 * FEE_OFFSET, tick_spacing=100),
]
