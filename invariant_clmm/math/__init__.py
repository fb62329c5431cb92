"""
Math layer for Invariant CLMM

온체인 프로그램과 비트 단위로 일치하는 고정소수점 수학 함수들:
- fixed_point: 스케일된 정수 연산, OVERFLOW 표현
- tick_math: Tick ↔ sqrt price 변환
- tickmap: 초기화된 틱 비트맵 탐색
- swap_math: 단일 스왑 스텝 계산
- liquidity_math: 유동성 계산
- fee_math: 포지션 수수료 정산
"""

from .fixed_point import (
    OVERFLOW,
    Overflow,
    from_fee,
    fee_to_tick_spacing,
    get_price,
    to_decimal,
    to_percent,
    to_price,
)
from .tick_math import (
    UNBOUNDED,
    Unbounded,
    calculate_price_sqrt,
    get_tick_from_price,
    align_tick_to_spacing,
    get_max_tick,
    get_min_tick,
    generate_ticks_array,
)
from .tickmap import (
    is_initialized,
    find_closest_ticks,
)
from .swap_math import (
    calculate_swap_step,
    get_delta_x,
    get_delta_y,
    get_next_price_from_input,
    get_next_price_from_output,
)
from .liquidity_math import (
    get_liquidity,
    get_liquidity_by_x,
    get_liquidity_by_y,
    get_max_liquidity,
    get_max_liquidity_with_percentage,
)
from .fee_math import (
    calculate_fee_growth_inside,
    calculate_tokens_owed,
    calculate_claim_amount,
)
