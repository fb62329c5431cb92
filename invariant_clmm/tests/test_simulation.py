"""
Swap Simulator 테스트

멀티 스텝 스왑 시뮬레이션과 스텝 경계 결정을 테스트합니다.
기본 풀: tick_spacing 10, 수수료 0.01%, 틱 -100/100 사이 유동성 1 (10^12).
"""

import pytest

from ..constants import MAX_TICK, MIN_TICK, PRICE_DENOMINATOR
from ..data.types import (
    PoolData,
    PoolSnapshot,
    SimulationStatus,
    Tick,
    Tickmap,
    TickState,
)
from ..errors import InvariantMathError, SimulationError
from ..math.fixed_point import from_fee
from ..math.tick_math import calculate_price_sqrt, get_max_tick, get_min_tick
from ..simulation.swap import get_closer_limit, simulate_swap

POOL_LIQUIDITY = 10 ** 12
TICK_SPACING = 10


def make_snapshot(liquidity=POOL_LIQUIDITY, ticks=None, tick_records=None, current_tick=0):
    """-100 / 100 경계의 단일 포지션 풀"""
    if ticks is None:
        ticks = [
            Tick(index=-100, sign=True, liquidity_change=POOL_LIQUIDITY),
            Tick(index=100, sign=False, liquidity_change=POOL_LIQUIDITY),
        ]
    pool = PoolData(
        current_tick_index=current_tick,
        tick_spacing=TICK_SPACING,
        liquidity=liquidity,
        fee=from_fee(10),
        sqrt_price=calculate_price_sqrt(current_tick),
    )
    records = ticks if tick_records is None else tick_records
    return PoolSnapshot(
        pool=pool,
        tickmap=Tickmap.from_ticks([t.index for t in ticks], TICK_SPACING),
        ticks={t.index: t for t in records},
    )


class TestGetCloserLimit:
    """get_closer_limit 테스트"""

    def test_next_tick_up(self):
        tickmap = Tickmap.from_ticks([-100, 100], TICK_SPACING)
        result = get_closer_limit(calculate_price_sqrt(MAX_TICK), False, 0, TICK_SPACING, tickmap)
        assert result.swap_limit == calculate_price_sqrt(100)
        assert result.limiting_tick == TickState(index=100, initialized=True)

    def test_next_tick_down(self):
        tickmap = Tickmap.from_ticks([-100, 100], TICK_SPACING)
        result = get_closer_limit(calculate_price_sqrt(MIN_TICK), True, 0, TICK_SPACING, tickmap)
        assert result.swap_limit == calculate_price_sqrt(-100)
        assert result.limiting_tick == TickState(index=-100, initialized=True)

    def test_price_limit_closer(self):
        """가격 한도가 틱보다 가까우면 한도가 목표"""
        tickmap = Tickmap.from_ticks([-100, 100], TICK_SPACING)
        limit = calculate_price_sqrt(50)
        result = get_closer_limit(limit, False, 0, TICK_SPACING, tickmap)
        assert result.swap_limit == limit
        assert result.limiting_tick is None

    def test_no_tick_in_search_range(self):
        """탐색 범위에 틱이 없으면 초기화되지 않은 탐색 한계 틱"""
        result = get_closer_limit(calculate_price_sqrt(MAX_TICK), False, 0, TICK_SPACING, Tickmap.empty())
        assert result.swap_limit == calculate_price_sqrt(2560)
        assert result.limiting_tick == TickState(index=2560, initialized=False)


class TestSimulateSwapInRange:
    """틱을 넘지 않는 스왑"""

    def test_y_to_x_by_amount_in(self):
        result = simulate_swap(make_snapshot(), x_to_y=False, by_amount_in=True, swap_amount=1000)

        assert result.status is SimulationStatus.OK
        assert result.accumulated_amount_in == 999
        assert result.accumulated_fee == 1
        assert 0 < result.accumulated_amount_out < 1000
        assert result.crossed_ticks == []
        assert result.amount_per_tick == [1000]
        assert result.tick_after_swap == 10
        assert result.liquidity_after_swap == POOL_LIQUIDITY
        assert result.price_after_swap > PRICE_DENOMINATOR

    def test_x_to_y_moves_price_down(self):
        result = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True, swap_amount=1000)

        assert result.status is SimulationStatus.OK
        assert result.price_after_swap < PRICE_DENOMINATOR
        assert result.tick_after_swap < 0
        assert result.accumulated_amount_in + result.accumulated_fee == 1000

    def test_by_amount_out(self):
        """출력 기준: 출력 = 요청 수량, min_received = 출력"""
        result = simulate_swap(make_snapshot(), x_to_y=False, by_amount_in=False, swap_amount=500)

        assert result.status is SimulationStatus.OK
        assert result.accumulated_amount_out == 500
        assert result.accumulated_amount_in > 500
        assert result.min_received == 500

    def test_min_received_with_slippage(self):
        result = simulate_swap(make_snapshot(), x_to_y=False, by_amount_in=True, swap_amount=1000)
        assert 0 < result.min_received <= result.accumulated_amount_out + 1

    def test_price_impact(self):
        result = simulate_swap(make_snapshot(), x_to_y=False, by_amount_in=True, swap_amount=1000)
        assert result.price_impact > 0


class TestSimulateSwapCrossing:
    """틱 크로싱과 종료 상태"""

    def test_cross_to_empty_range(self):
        """하한 틱을 넘으면 유동성 0, 이후 빈 구간 스텝으로 제한 도달"""
        result = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True, swap_amount=10 ** 9)

        assert result.crossed_ticks == [-100]
        assert result.liquidity_after_swap == 0
        assert result.status is SimulationStatus.SWAP_STEP_LIMIT_REACHED
        assert result.accumulated_amount_out > 0
        assert result.amount_per_tick[0] > 0

    @pytest.mark.parametrize("pool_liquidity", [0, 10 ** 6])
    def test_upper_tick_removes_liquidity(self, pool_liquidity):
        """상한 틱을 넘으면 유동성 0, 활성 유동성보다 큰 감소도 0으로 고정"""
        ticks = [
            Tick(index=-100, sign=True, liquidity_change=10 ** 6),
            Tick(index=100, sign=False, liquidity_change=10 ** 6),
        ]
        result = simulate_swap(make_snapshot(liquidity=pool_liquidity, ticks=ticks),
                               x_to_y=False, by_amount_in=True, swap_amount=10 ** 6)

        assert result.crossed_ticks == [100]
        assert result.liquidity_after_swap == 0
        assert result.accumulated_amount_out == 0

    def test_step_limit(self):
        result = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True, swap_amount=10 ** 9,
                               max_crosses=0, max_virtual_crosses=0)
        assert result.status is SimulationStatus.SWAP_STEP_LIMIT_REACHED

    @pytest.mark.parametrize("x_to_y", [True, False])
    @pytest.mark.parametrize("by_amount_in", [True, False])
    def test_dry_pool(self, x_to_y, by_amount_in):
        """유동성도 틱도 없으면 방향과 기준에 관계없이 가격 변화 없이 NO_GAIN_SWAP"""
        snapshot = make_snapshot(liquidity=0, ticks=[])
        result = simulate_swap(snapshot, x_to_y=x_to_y, by_amount_in=by_amount_in, swap_amount=1000)

        assert result.status is SimulationStatus.NO_GAIN_SWAP
        assert result.price_after_swap == PRICE_DENOMINATOR
        assert result.accumulated_amount_in == 0
        assert result.accumulated_amount_out == 0
        assert result.amount_per_tick == []

    def test_stuck_at_max_tick(self):
        """최대 틱에서 y -> x: 틱이 더 움직이지 않으면 LIMIT_REACHED"""
        max_tick = get_max_tick(TICK_SPACING)
        snapshot = make_snapshot(liquidity=10 ** 18, ticks=[], current_tick=max_tick)
        result = simulate_swap(snapshot, x_to_y=False, by_amount_in=True, swap_amount=10 ** 6)

        assert result.status is SimulationStatus.LIMIT_REACHED
        assert result.accumulated_amount_in == 0
        assert result.accumulated_amount_out == 0
        assert result.tick_after_swap == max_tick

    def test_tick_after_swap_clamped_at_min_tick(self):
        """최소 틱에서 x -> y: 보고되는 틱은 유효 범위 안"""
        min_tick = get_min_tick(TICK_SPACING)
        snapshot = make_snapshot(liquidity=10 ** 18, ticks=[], current_tick=min_tick)
        result = simulate_swap(snapshot, x_to_y=True, by_amount_in=True, swap_amount=10 ** 6)

        assert result.tick_after_swap == min_tick
        assert result.accumulated_amount_out == 0

    def test_zero_amount(self):
        result = simulate_swap(make_snapshot(), x_to_y=False, by_amount_in=True, swap_amount=0)
        assert result.status is SimulationStatus.NO_GAIN_SWAP
        assert result.price_after_swap == PRICE_DENOMINATOR


class TestSimulateSwapLimits:
    """가격 한도와 전제조건 위반"""

    def test_price_limit_reached(self):
        limit = calculate_price_sqrt(-50)
        result = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True,
                               swap_amount=10 ** 9, price_limit=limit)

        assert result.status is SimulationStatus.PRICE_LIMIT_REACHED
        assert result.price_after_swap == limit
        assert result.crossed_ticks == []

    def test_wrong_limit(self):
        """x -> y 인데 한도가 현재 가격 위"""
        with pytest.raises(SimulationError) as exc_info:
            simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True,
                          swap_amount=1000, price_limit=calculate_price_sqrt(50))
        assert exc_info.value.status is SimulationStatus.WRONG_LIMIT

    def test_tick_not_found(self):
        """tickmap에 있는 틱의 레코드가 없으면 예외"""
        snapshot = make_snapshot(tick_records=[])
        with pytest.raises(SimulationError) as exc_info:
            simulate_swap(snapshot, x_to_y=False, by_amount_in=True, swap_amount=10 ** 9)
        assert exc_info.value.status is SimulationStatus.TICK_NOT_FOUND
        assert isinstance(exc_info.value, InvariantMathError)

    def test_snapshot_not_mutated(self):
        snapshot = make_snapshot()
        simulate_swap(snapshot, x_to_y=True, by_amount_in=True, swap_amount=10 ** 9)

        assert snapshot.pool.liquidity == POOL_LIQUIDITY
        assert snapshot.pool.current_tick_index == 0
        assert snapshot.pool.sqrt_price == PRICE_DENOMINATOR

    def test_deterministic(self):
        first = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True, swap_amount=12_345)
        second = simulate_swap(make_snapshot(), x_to_y=True, by_amount_in=True, swap_amount=12_345)
        assert first == second
