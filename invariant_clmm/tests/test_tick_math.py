"""
Tick Math 테스트

tick_math.py의 함수들을 테스트합니다.
온체인 승수 테이블 값과 비교하여 정확도를 검증합니다.
"""

import pytest
from hypothesis import given, settings, strategies as st

from ..constants import DENOMINATOR, MAX_TICK, MIN_TICK, PRICE_DENOMINATOR
from ..errors import InvalidArgumentError, OutOfRangeError
from ..math.tick_math import (
    UNBOUNDED,
    align_tick_to_spacing,
    calculate_price_sqrt,
    check_tick,
    check_ticks,
    generate_ticks_array,
    get_max_tick,
    get_min_tick,
    get_tick_from_price,
    price_to_tick,
    price_to_tick_in_range,
    resolve_tick_bounds,
)


class TestCalculatePriceSqrt:
    """calculate_price_sqrt 테스트"""

    def test_tick_0(self):
        """틱 0에서의 sqrt price (price = 1)"""
        assert calculate_price_sqrt(0) == PRICE_DENOMINATOR

    def test_tick_1(self):
        """틱 1은 첫 번째 승수 그대로"""
        assert calculate_price_sqrt(1) == 1_000_049_998_750 * 10 ** 12

    def test_tick_10(self):
        """비트별 곱셈 후 매번 내림"""
        assert calculate_price_sqrt(10) == 1_000_500_100_010 * 10 ** 12

    def test_max_tick(self):
        """최대 틱은 허용"""
        assert calculate_price_sqrt(MAX_TICK) > calculate_price_sqrt(MAX_TICK - 1)
        assert calculate_price_sqrt(MIN_TICK) > 0

    def test_out_of_bounds(self):
        """범위를 벗어난 틱은 예외"""
        with pytest.raises(OutOfRangeError):
            calculate_price_sqrt(MAX_TICK + 1)
        with pytest.raises(OutOfRangeError):
            calculate_price_sqrt(MIN_TICK - 1)

    def test_monotonic(self):
        """틱이 증가하면 가격도 증가"""
        ticks = [-200_000, -44_364, -100, -1, 0, 1, 100, 44_364, 200_000]
        prices = [calculate_price_sqrt(t) for t in ticks]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    def test_symmetry(self):
        """price(t) * price(-t) ≈ 1 (10^12 스케일 1-2 단위 오차)"""
        for tick in [1, 10, 1234]:
            product = calculate_price_sqrt(tick) * calculate_price_sqrt(-tick) // PRICE_DENOMINATOR
            assert abs(product - PRICE_DENOMINATOR) <= 2 * 10 ** 12


class TestPriceToTickInRange:
    """price_to_tick_in_range 테스트"""

    @pytest.mark.parametrize("tick", [-1000, -37, 0, 5, 1234, 44_000])
    def test_round_trip(self, tick):
        """정확한 틱 가격은 같은 틱으로 복원"""
        price = calculate_price_sqrt(tick)
        assert price_to_tick_in_range(price, -MAX_TICK, MAX_TICK, 1) == tick

    def test_floor_between_ticks(self):
        """두 정렬된 틱 사이 가격은 아래 틱"""
        price = calculate_price_sqrt(125)
        assert price_to_tick_in_range(price, 0, 1000, 10) == 120

    def test_returns_high_when_price_equals_high(self):
        """상한 틱 가격과 같으면 상한 반환"""
        price = calculate_price_sqrt(100)
        assert price_to_tick_in_range(price, 0, 100, 10) == 100

    def test_price_below_range(self):
        """범위 내 모든 가격이 목표보다 크면 low"""
        price = calculate_price_sqrt(-50)
        assert price_to_tick_in_range(price, 0, 100, 10) == 0

    def test_invalid_step(self):
        """step이 0 이하면 예외"""
        with pytest.raises(InvalidArgumentError):
            price_to_tick_in_range(PRICE_DENOMINATOR, 0, 100, 0)


class TestGetTickFromPrice:
    """get_tick_from_price 테스트"""

    def test_x_to_y(self):
        """가격 하락 방향 탐색"""
        price = calculate_price_sqrt(-50)
        assert get_tick_from_price(0, 10, price, True) == -50

    def test_y_to_x(self):
        """가격 상승 방향 탐색"""
        price = calculate_price_sqrt(120)
        assert get_tick_from_price(0, 10, price, False) == 120

    def test_between_ticks(self):
        price = calculate_price_sqrt(125)
        assert get_tick_from_price(0, 10, price, False) == 120

    def test_search_range_scales_with_spacing(self):
        """탐색 범위는 256 * tick_spacing 틱"""
        price = calculate_price_sqrt(2000)
        assert get_tick_from_price(0, 10, price, False) == 2000

    def test_unaligned_current_tick(self):
        with pytest.raises(InvalidArgumentError):
            get_tick_from_price(5, 10, PRICE_DENOMINATOR, True)


class TestAlignTickToSpacing:
    """align_tick_to_spacing 테스트"""

    def test_positive(self):
        assert align_tick_to_spacing(15, 10) == 10

    def test_negative(self):
        """음수 틱은 -∞ 방향으로 정렬"""
        assert align_tick_to_spacing(-5, 10) == -10
        assert align_tick_to_spacing(-15, 10) == -20

    def test_already_aligned(self):
        assert align_tick_to_spacing(-10, 10) == -10
        assert align_tick_to_spacing(0, 10) == 0

    def test_invalid_spacing(self):
        with pytest.raises(InvalidArgumentError):
            align_tick_to_spacing(10, 0)


class TestTickBounds:
    """get_max_tick, get_min_tick, check_tick 테스트"""

    def test_max_tick_limited_by_tickmap(self):
        """간격 1은 tickmap 크기로 제한"""
        assert get_max_tick(1) == 44_363
        assert get_min_tick(1) == -44_364

    def test_max_tick_limited_by_price(self):
        """큰 간격은 가격 범위로 제한"""
        assert get_max_tick(10) == 221_810
        assert get_min_tick(10) == -221_810
        assert get_max_tick(100) == 221_800

    def test_check_tick_unaligned(self):
        with pytest.raises(InvalidArgumentError):
            check_tick(5, 10)

    def test_check_tick_out_of_tickmap(self):
        with pytest.raises(OutOfRangeError):
            check_tick(44_364, 1)

    def test_check_ticks_order(self):
        """하한은 상한보다 작아야 함"""
        with pytest.raises(InvalidArgumentError):
            check_ticks(10, 10, 10)
        check_ticks(-10, 10, 10)

    def test_resolve_unbounded_requires_spacing(self):
        with pytest.raises(InvalidArgumentError):
            resolve_tick_bounds(UNBOUNDED, 100)

    def test_resolve_unbounded(self):
        assert resolve_tick_bounds(UNBOUNDED, 100, 10) == (-221_810, 100)
        assert resolve_tick_bounds(-100, UNBOUNDED, 10) == (-100, 221_810)
        assert resolve_tick_bounds(-100, 100) == (-100, 100)


class TestGenerateTicksArray:
    """generate_ticks_array 테스트"""

    def test_ascending(self):
        assert generate_ticks_array(0, 30, 10) == [0, 10, 20, 30]

    def test_descending(self):
        assert generate_ticks_array(30, 0, -10) == [30, 20, 10, 0]

    def test_invalid(self):
        with pytest.raises(InvalidArgumentError):
            generate_ticks_array(0, 25, 10)
        with pytest.raises(InvalidArgumentError):
            generate_ticks_array(0, 30, -10)


class TestPriceToTick:
    """price_to_tick (float) 테스트"""

    def test_basic(self):
        assert price_to_tick(1.0) == pytest.approx(0.0)
        assert price_to_tick(1.0001) == pytest.approx(1.0)

    def test_invalid(self):
        with pytest.raises(InvalidArgumentError):
            price_to_tick(0)


TICK_SPACINGS = [1, 2, 5, 10, 30, 100]
# 10^12 스케일 가격을 10^24 스케일로
PRICE_RESCALE = PRICE_DENOMINATOR // DENOMINATOR


@st.composite
def aligned_ticks_in_range(draw):
    """(간격, 하한, 틱, 상한): 모두 간격에 정렬되고 하한 <= 틱 <= 상한"""
    spacing = draw(st.sampled_from(TICK_SPACINGS))
    limit = MAX_TICK // spacing
    lower, tick, upper = sorted(
        draw(st.lists(st.integers(min_value=-limit, max_value=limit), min_size=3, max_size=3))
    )
    return spacing, lower * spacing, tick * spacing, upper * spacing


class TestTickMathProperties:
    """모든 유효 틱에 대해 성립해야 하는 성질"""

    @given(tick=st.integers(min_value=MIN_TICK, max_value=MAX_TICK - 1))
    @settings(max_examples=500, deadline=None)
    def test_strictly_increasing(self, tick):
        assert calculate_price_sqrt(tick) < calculate_price_sqrt(tick + 1)

    @given(
        a=st.integers(min_value=MIN_TICK, max_value=MAX_TICK),
        b=st.integers(min_value=MIN_TICK, max_value=MAX_TICK),
    )
    @settings(max_examples=300, deadline=None)
    def test_order_preserved(self, a, b):
        if a < b:
            assert calculate_price_sqrt(a) < calculate_price_sqrt(b)
        elif a > b:
            assert calculate_price_sqrt(a) > calculate_price_sqrt(b)

    @given(tick=st.integers(min_value=0, max_value=MAX_TICK))
    @settings(max_examples=500, deadline=None)
    def test_symmetry(self, tick):
        """price(-t)는 1 / price(t) 를 10^12 스케일에서 내림한 값"""
        positive = calculate_price_sqrt(tick)
        negative = calculate_price_sqrt(-tick)

        assert negative == DENOMINATOR * DENOMINATOR // (positive // PRICE_RESCALE) * PRICE_RESCALE
        assert abs(negative - PRICE_DENOMINATOR * PRICE_DENOMINATOR // positive) < PRICE_RESCALE

    @given(case=aligned_ticks_in_range())
    @settings(max_examples=500, deadline=None)
    def test_round_trip(self, case):
        spacing, lower, tick, upper = case
        assert price_to_tick_in_range(calculate_price_sqrt(tick), lower, upper, spacing) == tick

    @given(
        tick=st.integers(min_value=MIN_TICK, max_value=MAX_TICK),
        spacing=st.sampled_from(TICK_SPACINGS),
    )
    def test_align_is_fixed_point(self, tick, spacing):
        aligned = align_tick_to_spacing(tick, spacing)
        assert align_tick_to_spacing(aligned, spacing) == aligned
        assert aligned <= tick < aligned + spacing
