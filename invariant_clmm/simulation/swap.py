"""
Swap Simulator - 멀티 스텝 스왑 시뮬레이션

풀 스냅샷에서 스왑을 오프체인으로 재현합니다. 온체인 프로그램과 같은 순서로
스텝을 계산해야 결과가 비트 단위로 일치합니다.

한 반복(스텝):
    1. 가장 가까운 초기화된 틱 또는 가격 한도를 목표로 결정
    2. calculate_swap_step 으로 목표까지 스왑
    3. 목표가 초기화된 틱이면 크로싱하며 활성 유동성 갱신
    4. 아니면 실현된 가격에서 현재 틱 재계산

종료 조건은 SimulationStatus로 보고되며, 전제 조건 위반만 예외로 발생합니다.
"""

import logging
from typing import List, Optional

from ..config import settings
from ..constants import MAX_TICK, MIN_TICK
from ..data.types import (
    CloserLimitResult,
    PoolSnapshot,
    SimulationResult,
    SimulationStatus,
    Tickmap,
    TickState,
)
from ..errors import SimulationError
from ..math.swap_math import (
    calculate_min_received_tokens_by_amount_in,
    calculate_price_after_slippage,
    calculate_price_impact,
    calculate_swap_step,
    is_enough_amount_to_push_price,
)
from ..math.tick_math import (
    calculate_price_sqrt,
    get_max_tick,
    get_min_tick,
    get_tick_from_price,
)
from ..math.tickmap import (
    find_closest_ticks,
    get_search_limit,
    next_initialized,
    prev_initialized,
)

logger = logging.getLogger(__name__)


def get_closer_limit(
    sqrt_price_limit: int,
    x_to_y: bool,
    current_tick: int,
    tick_spacing: int,
    tickmap: Tickmap
) -> CloserLimitResult:
    """이번 스텝의 목표 가격 결정

    스왑 방향의 가장 가까운 초기화된 틱을 찾고, 탐색 범위 내에 없으면
    탐색 한계 틱(초기화되지 않음)을 사용합니다. 그 틱이 가격 한도보다
    멀면 가격 한도가 목표가 됩니다.

    Args:
        sqrt_price_limit: 슬리피지가 적용된 가격 한도
        x_to_y: 스왑 방향
        current_tick: 현재 틱
        tick_spacing: 틱 간격
        tickmap: 초기화된 틱 비트맵

    Returns:
        CloserLimitResult(swap_limit, limiting_tick)
    """
    if x_to_y:
        index = prev_initialized(tickmap, current_tick, tick_spacing)
    else:
        index = next_initialized(tickmap, current_tick, tick_spacing)

    initialized = index is not None
    if index is None:
        index = get_search_limit(current_tick, tick_spacing, not x_to_y)

    sqrt_price = calculate_price_sqrt(index)

    if (x_to_y and sqrt_price > sqrt_price_limit) or (not x_to_y and sqrt_price < sqrt_price_limit):
        return CloserLimitResult(
            swap_limit=sqrt_price,
            limiting_tick=TickState(index=index, initialized=initialized),
        )

    return CloserLimitResult(swap_limit=sqrt_price_limit, limiting_tick=None)


def _has_initialized_tick_ahead(snapshot: PoolSnapshot, x_to_y: bool) -> bool:
    pool = snapshot.pool
    found = find_closest_ticks(
        snapshot.tickmap.bitmap,
        pool.current_tick_index,
        pool.tick_spacing,
        limit=1,
        one_way="down" if x_to_y else "up",
    )
    return len(found) > 0


def simulate_swap(
    snapshot: PoolSnapshot,
    x_to_y: bool,
    by_amount_in: bool,
    swap_amount: int,
    price_limit: Optional[int] = None,
    slippage: int = 0,
    max_crosses: Optional[int] = None,
    max_virtual_crosses: Optional[int] = None
) -> SimulationResult:
    """스왑 시뮬레이션

    Args:
        snapshot: 풀 상태, tickmap, 틱 레코드
        x_to_y: True면 token X -> token Y (가격 하락)
        by_amount_in: True면 swap_amount가 입력 수량, False면 출력 수량
        swap_amount: 스왑 수량
        price_limit: 가격 한도 sqrt price (None이면 가격 범위 끝)
        slippage: price_limit에 적용할 슬리피지 (10^12 스케일)
        max_crosses: 최대 틱 크로싱 수 (기본값: settings.MAX_CROSSES)
        max_virtual_crosses: 초기화되지 않은 추가 스텝 수 (기본값: settings.MAX_VIRTUAL_CROSSES)

    Returns:
        SimulationResult

    Raises:
        SimulationError: 가격 한도가 반대쪽에 있거나 (WRONG_LIMIT)
            tickmap에 있는 틱 레코드가 없는 경우 (TICK_NOT_FOUND)
    """
    if max_crosses is None:
        max_crosses = settings.MAX_CROSSES
    if max_virtual_crosses is None:
        max_virtual_crosses = settings.MAX_VIRTUAL_CROSSES

    pool = snapshot.pool
    tick_spacing = pool.tick_spacing
    current_tick_index = pool.current_tick_index
    liquidity = pool.liquidity
    sqrt_price = pool.sqrt_price
    starting_sqrt_price = sqrt_price

    previous_tick_index = MAX_TICK + 1
    amount_per_tick: List[int] = []
    crossed_ticks: List[int] = []
    swap_steps = 0

    if price_limit is None:
        price_limit_after_slippage = calculate_price_sqrt(MIN_TICK if x_to_y else MAX_TICK)
    else:
        price_limit_after_slippage = calculate_price_after_slippage(price_limit, slippage, not x_to_y)

    if (x_to_y and sqrt_price < price_limit_after_slippage) or (
        not x_to_y and sqrt_price > price_limit_after_slippage
    ):
        raise SimulationError(SimulationStatus.WRONG_LIMIT)

    accumulated_amount = 0
    accumulated_amount_in = 0
    accumulated_amount_out = 0
    accumulated_fee = 0

    remaining_amount = swap_amount
    status = SimulationStatus.OK

    # 활성 유동성이 없고 스왑 방향에 틱도 없으면 가격을 움직여도 얻을 것이 없음
    if liquidity == 0 and remaining_amount > 0 and not _has_initialized_tick_ahead(snapshot, x_to_y):
        logger.debug("유동성 없는 풀: 스왑 방향에 초기화된 틱 없음")
        remaining_amount = 0

    while remaining_amount > 0:
        swap_limit, limiting_tick = get_closer_limit(
            price_limit_after_slippage,
            x_to_y,
            current_tick_index,
            tick_spacing,
            snapshot.tickmap,
        )
        result = calculate_swap_step(
            sqrt_price,
            swap_limit,
            liquidity,
            remaining_amount,
            by_amount_in,
            pool.fee,
        )
        swap_steps += 1

        accumulated_amount_in += result.amount_in
        accumulated_amount_out += result.amount_out
        accumulated_fee += result.fee_amount

        if by_amount_in:
            amount_diff = result.amount_in + result.fee_amount
        else:
            amount_diff = result.amount_out

        remaining_amount -= amount_diff
        sqrt_price = result.next_price

        logger.debug(
            "step %d: tick=%d price=%d in=%d out=%d fee=%d remaining=%d",
            swap_steps, current_tick_index, sqrt_price,
            result.amount_in, result.amount_out, result.fee_amount, remaining_amount,
        )

        if sqrt_price == price_limit_after_slippage and remaining_amount > 0:
            status = SimulationStatus.PRICE_LIMIT_REACHED
            break

        if result.next_price == swap_limit and limiting_tick is not None:
            tick_index = limiting_tick.index

            is_enough_amount_to_cross = is_enough_amount_to_push_price(
                remaining_amount,
                result.next_price,
                liquidity,
                pool.fee,
                by_amount_in,
                x_to_y,
            )

            if limiting_tick.initialized:
                tick = snapshot.ticks.get(tick_index)
                if tick is None:
                    raise SimulationError(SimulationStatus.TICK_NOT_FOUND)

                crossed_ticks.append(tick_index)

                if not x_to_y or is_enough_amount_to_cross:
                    if (current_tick_index >= tick.index) != tick.sign:
                        liquidity += tick.liquidity_change
                    else:
                        liquidity = max(liquidity - tick.liquidity_change, 0)
                    logger.debug("crossed tick %d, liquidity=%d", tick_index, liquidity)
                elif remaining_amount != 0:
                    # 가격을 움직일 수 없는 잔량은 입력으로 소진
                    if by_amount_in:
                        accumulated_amount_in += remaining_amount
                    remaining_amount = 0

            if x_to_y and is_enough_amount_to_cross:
                current_tick_index = tick_index - tick_spacing
            else:
                current_tick_index = tick_index
        else:
            current_tick_index = get_tick_from_price(
                current_tick_index, tick_spacing, result.next_price, x_to_y
            )

        # 초기화된 틱에서만 구간 수량을 끊고 나머지는 다음 스텝에 누적
        accumulated_amount += amount_diff
        is_tick_initialized = limiting_tick is not None and limiting_tick.initialized

        if is_tick_initialized or remaining_amount == 0:
            amount_per_tick.append(accumulated_amount)
            accumulated_amount = 0

        if swap_steps > max_crosses + max_virtual_crosses or len(crossed_ticks) > max_crosses:
            status = SimulationStatus.SWAP_STEP_LIMIT_REACHED
            break

        if current_tick_index == previous_tick_index and remaining_amount != 0:
            status = SimulationStatus.LIMIT_REACHED
            break
        previous_tick_index = current_tick_index

    if accumulated_amount_out == 0 and status is SimulationStatus.OK:
        status = SimulationStatus.NO_GAIN_SWAP

    # 하한 끝에서의 틱 스텝은 유효 범위 밖으로 나갈 수 있음
    tick_after_swap = min(max(current_tick_index, get_min_tick(tick_spacing)), get_max_tick(tick_spacing))

    price_after_swap = sqrt_price
    price_impact = calculate_price_impact(starting_sqrt_price, price_after_swap)

    if by_amount_in:
        ending_price_after_slippage = calculate_price_after_slippage(price_after_swap, slippage, not x_to_y)
        min_received = calculate_min_received_tokens_by_amount_in(
            ending_price_after_slippage,
            x_to_y,
            accumulated_amount_in,
            pool.fee,
        )
    else:
        min_received = accumulated_amount_out

    logger.debug(
        "swap finished: status=%s steps=%d crossed=%s in=%d out=%d",
        status.name, swap_steps, crossed_ticks, accumulated_amount_in, accumulated_amount_out,
    )

    return SimulationResult(
        status=status,
        amount_per_tick=amount_per_tick,
        crossed_ticks=crossed_ticks,
        accumulated_amount_in=accumulated_amount_in,
        accumulated_amount_out=accumulated_amount_out,
        accumulated_fee=accumulated_fee,
        price_after_swap=price_after_swap,
        price_impact=price_impact,
        min_received=min_received,
        liquidity_after_swap=liquidity,
        tick_after_swap=tick_after_swap,
    )
