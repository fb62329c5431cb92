"""
Position Optimizer - 스왑 후 포지션 생성

보유한 token X, Y로 포지션을 열기 전에 한쪽 토큰을 얼마나 스왑해야
두 토큰을 최대한 사용할 수 있는지 이진 탐색으로 찾습니다.

활용률 (utilization):
    포지션에 실제로 들어가는 수량 / 보유 수량 (10^12 스케일)
    보유 수량이 0이면 활용률은 100%

탐색 규칙:
    - 활용률이 낮은 토큰을 스왑 (잉여분이 탐색 상한)
    - 스왑 방향 토큰의 활용률이 반대 토큰 이하이면 더 스왑 (low = mid)
    - NO_GAIN_SWAP 이면 더 스왑, 그 외 실패 상태는 소비된 수량으로 상한을 줄임
    - 두 토큰 잔량이 모두 0 이하면 즉시 종료
"""

import logging
from typing import NamedTuple, Optional

from ..config import settings
from ..constants import DENOMINATOR, PRICE_DENOMINATOR
from ..data.types import (
    LiquidityResult,
    PoolSnapshot,
    PositionSimulation,
    SimulationResult,
    SimulationStatus,
    SwapInput,
)
from ..math.liquidity_math import get_max_liquidity
from ..math.tick_math import calculate_price_sqrt
from .swap import simulate_swap

logger = logging.getLogger(__name__)


class TokenAmounts(NamedTuple):
    x: int
    y: int


class TokenRatioDiff(NamedTuple):
    """포지션에 들어가는 수량과 남는 수량"""
    x: int
    y: int
    amount_x_diff: int
    amount_y_diff: int


def compute_token_amounts_from_price(amount_x: int, amount_y: int, swap_pool_price: int) -> TokenAmounts:
    """보유 자산 총가치의 절반씩을 각 토큰으로 환산

    Args:
        amount_x: 보유 token X
        amount_y: 보유 token Y
        swap_pool_price: 환산에 쓸 sqrt price

    Returns:
        TokenAmounts(x, y)
    """
    current_price = swap_pool_price * swap_pool_price
    price_denominator_sq = PRICE_DENOMINATOR ** 2

    total_amount = amount_x + amount_y * current_price // price_denominator_sq

    x = total_amount * price_denominator_sq // current_price // 2
    y = total_amount * current_price // price_denominator_sq // 2

    return TokenAmounts(x=x, y=y)


def compute_token_ratio_diff(
    amount_x: int,
    amount_y: int,
    lower_tick: int,
    upper_tick: int,
    known_price: int
) -> TokenRatioDiff:
    """최대 포지션에 들어가는 수량과 잔량 (잔량은 보유 - 사용)"""
    current_ratio = get_max_liquidity(amount_x, amount_y, lower_tick, upper_tick, known_price)

    return TokenRatioDiff(
        x=current_ratio.x,
        y=current_ratio.y,
        amount_x_diff=amount_x - current_ratio.x,
        amount_y_diff=amount_y - current_ratio.y,
    )


def _utilization(used: int, amount: int) -> int:
    if amount == 0:
        return DENOMINATOR
    return used * DENOMINATOR // amount


def _without_dust(amount: int) -> int:
    # 반올림으로 1 단위 초과 요구되는 것을 방지
    return amount - 1 if amount > 1 else amount


def _swap_all(swap_amount: int, snapshot: PoolSnapshot, x_to_y: bool, slippage: int) -> SimulationResult:
    return simulate_swap(
        snapshot,
        x_to_y=x_to_y,
        by_amount_in=True,
        swap_amount=swap_amount,
        price_limit=snapshot.pool.sqrt_price,
        slippage=slippage,
    )


def _search_swap_amount(
    amount_x: int,
    amount_y: int,
    snapshot: PoolSnapshot,
    lower_tick: int,
    upper_tick: int,
    known_price: int,
    slippage: int,
    min_precision: Optional[int],
    same_pool: bool
) -> PositionSimulation:
    """활용률 기준 스왑 수량 이진 탐색

    same_pool이면 포지션을 스왑한 풀에 열기 때문에 스왑 후 가격으로 평가하고
    1 단위까지 탐색합니다.
    """
    ratio = compute_token_ratio_diff(amount_x, amount_y, lower_tick, upper_tick, known_price)

    token_x_utilization = _utilization(ratio.x, amount_x)
    token_y_utilization = _utilization(ratio.y, amount_y)

    if min(token_x_utilization, token_y_utilization) == DENOMINATOR:
        logger.debug("스왑 불필요: 두 토큰 모두 전부 사용")
        return PositionSimulation(
            swap_input=None,
            swap_simulation=None,
            position=get_max_liquidity(
                _without_dust(ratio.x), _without_dust(ratio.y), lower_tick, upper_tick, known_price
            ),
        )

    by_amount_in = True
    if token_x_utilization > token_y_utilization:
        x_to_y = False
        amount = ratio.amount_y_diff
    else:
        x_to_y = True
        amount = ratio.amount_x_diff

    if same_pool:
        precision = 1
    else:
        precision = amount * min_precision // DENOMINATOR or 1

    logger.debug(
        "스왑 방향 x_to_y=%s, 탐색 범위 [0, %d], precision=%d", x_to_y, amount, precision
    )

    low = 0
    high = amount
    best_sim: Optional[SimulationResult] = None
    best_utilization: Optional[int] = None
    best_x: Optional[int] = None
    best_y: Optional[int] = None
    best_amount: Optional[int] = None

    while low + precision < high:
        mid = (low + high + 1) // 2

        sim = simulate_swap(
            snapshot,
            x_to_y=x_to_y,
            by_amount_in=by_amount_in,
            swap_amount=mid,
            price_limit=snapshot.pool.sqrt_price,
            slippage=slippage,
        )

        if sim.status is SimulationStatus.NO_GAIN_SWAP:
            low = mid
            continue
        if sim.status is not SimulationStatus.OK:
            if same_pool:
                high = sim.accumulated_amount_in
            else:
                high = sim.accumulated_amount_in + sim.accumulated_fee
            logger.debug("trial %d: %s, high=%d", mid, sim.status.name, high)
            continue

        if x_to_y:
            amount_x_after_swap = amount_x - sim.accumulated_amount_in - sim.accumulated_fee
            amount_y_after_swap = amount_y + sim.accumulated_amount_out
        else:
            amount_y_after_swap = amount_y - sim.accumulated_amount_in - sim.accumulated_fee
            amount_x_after_swap = amount_x + sim.accumulated_amount_out

        position_price = sim.price_after_swap if same_pool else known_price
        trial = compute_token_ratio_diff(
            amount_x_after_swap, amount_y_after_swap, lower_tick, upper_tick, position_price
        )

        if trial.amount_x_diff <= 0 and trial.amount_y_diff <= 0:
            logger.debug("trial %d: 잔량 없음, 탐색 종료", mid)
            return PositionSimulation(
                swap_input=SwapInput(x_to_y=x_to_y, by_amount_in=by_amount_in, swap_amount=mid),
                swap_simulation=sim,
                position=get_max_liquidity(
                    _without_dust(trial.x), _without_dust(trial.y),
                    lower_tick, upper_tick, position_price,
                ),
            )

        token_x_utilization = _utilization(trial.x, amount_x_after_swap)
        token_y_utilization = _utilization(trial.y, amount_y_after_swap)
        lowest_utilization = min(token_x_utilization, token_y_utilization)

        if x_to_y:
            if token_x_utilization <= token_y_utilization:
                low = mid
            else:
                high = mid
        else:
            if token_y_utilization <= token_x_utilization:
                low = mid
            else:
                high = mid

        logger.debug(
            "trial %d: utilization x=%d y=%d, range [%d, %d]",
            mid, token_x_utilization, token_y_utilization, low, high,
        )

        if best_utilization is None or lowest_utilization > best_utilization:
            best_utilization = lowest_utilization
            best_sim = sim
            best_x = trial.x
            best_y = trial.y
            best_amount = mid

    if best_sim is None:
        return PositionSimulation(
            swap_input=None,
            swap_simulation=None,
            position=LiquidityResult(x=0, y=0, liquidity=0),
        )

    position_price = best_sim.price_after_swap if same_pool else known_price
    return PositionSimulation(
        swap_input=SwapInput(x_to_y=x_to_y, by_amount_in=by_amount_in, swap_amount=best_amount),
        swap_simulation=best_sim,
        position=get_max_liquidity(
            _without_dust(best_x), _without_dust(best_y), lower_tick, upper_tick, position_price
        ),
    )


def simulate_swap_and_create_position(
    amount_x: int,
    amount_y: int,
    snapshot: PoolSnapshot,
    lower_tick: int,
    upper_tick: int,
    known_price: int,
    slippage: int,
    min_precision: Optional[int] = None
) -> PositionSimulation:
    """스왑 풀과 다른 풀에 포지션을 여는 경우

    포지션 풀의 가격(known_price)은 스왑으로 변하지 않습니다.

    Args:
        amount_x: 보유 token X
        amount_y: 보유 token Y
        snapshot: 스왑할 풀 스냅샷
        lower_tick: 포지션 하한 틱
        upper_tick: 포지션 상한 틱
        known_price: 포지션 풀의 sqrt price
        slippage: 스왑 슬리피지 (10^12 스케일)
        min_precision: 탐색 정밀도 (잉여분 대비 비율, 기본값: settings.POSITION_PRECISION)

    Returns:
        PositionSimulation
    """
    if min_precision is None:
        min_precision = settings.POSITION_PRECISION

    lower_sqrt_price = calculate_price_sqrt(lower_tick)
    upper_sqrt_price = calculate_price_sqrt(upper_tick)

    # 범위가 가격 아래: token Y만 필요
    if upper_sqrt_price < known_price:
        if amount_x == 0:
            return PositionSimulation(
                swap_input=None,
                swap_simulation=None,
                position=get_max_liquidity(0, amount_y, lower_tick, upper_tick, known_price),
            )

        sim = _swap_all(amount_x, snapshot, True, slippage)
        return PositionSimulation(
            swap_input=SwapInput(x_to_y=True, by_amount_in=True, swap_amount=amount_x),
            swap_simulation=sim,
            position=get_max_liquidity(
                0, amount_y + sim.accumulated_amount_out, lower_tick, upper_tick, known_price
            ),
        )

    # 범위가 가격 위: token X만 필요
    if lower_sqrt_price > known_price:
        if amount_y == 0:
            return PositionSimulation(
                swap_input=None,
                swap_simulation=None,
                position=get_max_liquidity(amount_x, 0, lower_tick, upper_tick, known_price),
            )

        sim = _swap_all(amount_y, snapshot, False, slippage)
        return PositionSimulation(
            swap_input=SwapInput(x_to_y=False, by_amount_in=True, swap_amount=amount_y),
            swap_simulation=sim,
            position=get_max_liquidity(
                amount_x + sim.accumulated_amount_out, 0, lower_tick, upper_tick, known_price
            ),
        )

    return _search_swap_amount(
        amount_x, amount_y, snapshot, lower_tick, upper_tick,
        known_price, slippage, min_precision, same_pool=False,
    )


def simulate_swap_and_create_position_on_the_same_pool(
    amount_x: int,
    amount_y: int,
    snapshot: PoolSnapshot,
    lower_tick: int,
    upper_tick: int,
    slippage: int
) -> PositionSimulation:
    """스왑한 풀에 바로 포지션을 여는 경우

    스왑이 풀 가격을 움직이므로 포지션은 스왑 후 가격으로 평가합니다.
    단일 토큰 구간에서 스왑 후에도 가격이 범위 밖에 있지 않으면 이진 탐색으로 넘어갑니다.
    """
    lower_sqrt_price = calculate_price_sqrt(lower_tick)
    upper_sqrt_price = calculate_price_sqrt(upper_tick)
    known_price = snapshot.pool.sqrt_price

    if upper_sqrt_price < known_price:
        if amount_x == 0:
            return PositionSimulation(
                swap_input=None,
                swap_simulation=None,
                position=get_max_liquidity(0, amount_y, lower_tick, upper_tick, known_price),
            )

        sim = _swap_all(amount_x, snapshot, True, slippage)
        if upper_sqrt_price < sim.price_after_swap:
            return PositionSimulation(
                swap_input=SwapInput(x_to_y=True, by_amount_in=True, swap_amount=amount_x),
                swap_simulation=sim,
                position=get_max_liquidity(
                    0, amount_y + sim.accumulated_amount_out,
                    lower_tick, upper_tick, sim.price_after_swap,
                ),
            )

    if lower_sqrt_price > known_price:
        if amount_y == 0:
            return PositionSimulation(
                swap_input=None,
                swap_simulation=None,
                position=get_max_liquidity(amount_x, 0, lower_tick, upper_tick, known_price),
            )

        sim = _swap_all(amount_y, snapshot, False, slippage)
        if lower_sqrt_price > sim.price_after_swap:
            return PositionSimulation(
                swap_input=SwapInput(x_to_y=False, by_amount_in=True, swap_amount=amount_y),
                swap_simulation=sim,
                position=get_max_liquidity(
                    amount_x + sim.accumulated_amount_out, 0,
                    lower_tick, upper_tick, sim.price_after_swap,
                ),
            )

    return _search_swap_amount(
        amount_x, amount_y, snapshot, lower_tick, upper_tick,
        known_price, slippage, None, same_pool=True,
    )
