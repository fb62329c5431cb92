"""
Simulation layer for Invariant CLMM

- swap: 멀티 스텝 스왑 시뮬레이션
- position: 스왑 후 포지션 생성 최적화
"""

from .swap import get_closer_limit, simulate_swap
from .position import (
    compute_token_amounts_from_price,
    compute_token_ratio_diff,
    simulate_swap_and_create_position,
    simulate_swap_and_create_position_on_the_same_pool,
)
