"""
Liquidity Math - 유동성 계산

집중화된 유동성(Concentrated Liquidity)에서 토큰 수량과 유동성 간의 변환.
가격은 sqrt price (10^24), 유동성은 10^6 스케일입니다.

핵심 공식:
    L = Δy / (√P_upper - √P_lower)                 # token Y 기준
    L = Δx * √P_lower * √P_upper / (√P_upper - √P_lower)  # token X 기준

가격 구간별 필요한 토큰:
    현재 가격 < 범위       -> token X만
    현재 가격 > 범위       -> token Y만
    범위 내               -> 둘 다
"""

from typing import Iterable, List, NamedTuple, Optional

from ..constants import DENOMINATOR, LIQUIDITY_DENOMINATOR, PRICE_DENOMINATOR
from ..data.types import LiquidityResult, SingleTokenLiquidity, Tick
from ..errors import InvalidArgumentError, PriceOutOfRangeError
from .fixed_point import div_up, mul_up
from .tick_math import TickBound, calculate_price_sqrt, resolve_tick_bounds


class LiquidityOnTick(NamedTuple):
    """틱 경계에서의 누적 활성 유동성"""
    index: int
    liquidity: int


def _calculate_y(price_diff: int, liquidity: int, rounding_up: bool) -> int:
    shifted_liquidity = liquidity // LIQUIDITY_DENOMINATOR

    if rounding_up:
        return mul_up(price_diff, shifted_liquidity)
    return price_diff * shifted_liquidity // PRICE_DENOMINATOR


def _calculate_x(nominator: int, denominator: int, liquidity: int, rounding_up: bool) -> int:
    common = liquidity * nominator // denominator

    if rounding_up:
        return div_up(common, LIQUIDITY_DENOMINATOR)
    return common // LIQUIDITY_DENOMINATOR


def _check_prices(*prices: int) -> None:
    if any(price <= 0 for price in prices):
        raise InvalidArgumentError("Price cannot be lower or equal 0")


def get_x(liquidity: int, upper_sqrt_price: int, current_sqrt_price: int, lower_sqrt_price: int) -> int:
    """포지션이 현재 가격에서 보유한 token X

    Args:
        liquidity: 포지션 유동성
        upper_sqrt_price: 상한 sqrt price
        current_sqrt_price: 현재 sqrt price
        lower_sqrt_price: 하한 sqrt price

    Returns:
        token X 수량 (내림)
    """
    _check_prices(upper_sqrt_price, current_sqrt_price, lower_sqrt_price)

    if current_sqrt_price >= upper_sqrt_price:
        return 0

    if current_sqrt_price < lower_sqrt_price:
        denominator = lower_sqrt_price * upper_sqrt_price // PRICE_DENOMINATOR
        nominator = upper_sqrt_price - lower_sqrt_price
    else:
        denominator = upper_sqrt_price * current_sqrt_price // PRICE_DENOMINATOR
        nominator = upper_sqrt_price - current_sqrt_price

    return liquidity * nominator // denominator // LIQUIDITY_DENOMINATOR


def get_x_from_liquidity(liquidity: int, upper_sqrt_price: int, lower_sqrt_price: int) -> int:
    """범위 전체를 token X로 환산한 수량"""
    _check_prices(upper_sqrt_price, lower_sqrt_price)

    denominator = lower_sqrt_price * upper_sqrt_price // PRICE_DENOMINATOR
    nominator = upper_sqrt_price - lower_sqrt_price

    return liquidity * nominator // denominator // LIQUIDITY_DENOMINATOR


def get_y(liquidity: int, upper_sqrt_price: int, current_sqrt_price: int, lower_sqrt_price: int) -> int:
    """포지션이 현재 가격에서 보유한 token Y (내림)"""
    _check_prices(upper_sqrt_price, current_sqrt_price, lower_sqrt_price)

    if current_sqrt_price < lower_sqrt_price:
        return 0

    if current_sqrt_price >= upper_sqrt_price:
        difference = upper_sqrt_price - lower_sqrt_price
    else:
        difference = current_sqrt_price - lower_sqrt_price

    return liquidity * difference // PRICE_DENOMINATOR // LIQUIDITY_DENOMINATOR


def get_liquidity_by_x_price(
    x: int,
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    current_sqrt_price: int,
    rounding_up: bool
) -> SingleTokenLiquidity:
    """token X 수량에서 유동성 계산

    범위 내이면 같은 유동성에 필요한 token Y도 함께 반환합니다.

    Returns:
        SingleTokenLiquidity(liquidity, amount=필요한 token Y)

    Raises:
        PriceOutOfRangeError: 현재 가격이 범위보다 위 (token X만으로 불가)
    """
    if upper_sqrt_price < current_sqrt_price:
        raise PriceOutOfRangeError("liquidity cannot be determined")

    if current_sqrt_price < lower_sqrt_price:
        nominator = lower_sqrt_price * upper_sqrt_price // PRICE_DENOMINATOR
        denominator = upper_sqrt_price - lower_sqrt_price
        liquidity = x * nominator * LIQUIDITY_DENOMINATOR // denominator
        return SingleTokenLiquidity(liquidity=liquidity, amount=0)

    nominator = current_sqrt_price * upper_sqrt_price // PRICE_DENOMINATOR
    denominator = upper_sqrt_price - current_sqrt_price
    liquidity = x * nominator // denominator * LIQUIDITY_DENOMINATOR
    y = _calculate_y(current_sqrt_price - lower_sqrt_price, liquidity, rounding_up)

    return SingleTokenLiquidity(liquidity=liquidity, amount=y)


def get_liquidity_by_y_price(
    y: int,
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    current_sqrt_price: int,
    rounding_up: bool
) -> SingleTokenLiquidity:
    """token Y 수량에서 유동성 계산

    Returns:
        SingleTokenLiquidity(liquidity, amount=필요한 token X)

    Raises:
        PriceOutOfRangeError: 현재 가격이 범위보다 아래 (token Y만으로 불가)
    """
    if current_sqrt_price < lower_sqrt_price:
        raise PriceOutOfRangeError("liquidity cannot be determined")

    if upper_sqrt_price <= current_sqrt_price:
        price_diff = upper_sqrt_price - lower_sqrt_price
        liquidity = y * LIQUIDITY_DENOMINATOR * PRICE_DENOMINATOR // price_diff
        return SingleTokenLiquidity(liquidity=liquidity, amount=0)

    price_diff = current_sqrt_price - lower_sqrt_price
    liquidity = y * LIQUIDITY_DENOMINATOR * PRICE_DENOMINATOR // price_diff
    denominator = current_sqrt_price * upper_sqrt_price // PRICE_DENOMINATOR
    nominator = upper_sqrt_price - current_sqrt_price
    x = _calculate_x(nominator, denominator, liquidity, rounding_up)

    return SingleTokenLiquidity(liquidity=liquidity, amount=x)


def get_liquidity_by_x(
    x: int,
    lower_tick: TickBound,
    upper_tick: TickBound,
    current_sqrt_price: int,
    rounding_up: bool,
    tick_spacing: Optional[int] = None
) -> SingleTokenLiquidity:
    """틱 경계 버전 (UNBOUNDED 경계는 tick_spacing 필요)"""
    lower, upper = resolve_tick_bounds(lower_tick, upper_tick, tick_spacing)
    return get_liquidity_by_x_price(
        x,
        calculate_price_sqrt(lower),
        calculate_price_sqrt(upper),
        current_sqrt_price,
        rounding_up,
    )


def get_liquidity_by_y(
    y: int,
    lower_tick: TickBound,
    upper_tick: TickBound,
    current_sqrt_price: int,
    rounding_up: bool,
    tick_spacing: Optional[int] = None
) -> SingleTokenLiquidity:
    """틱 경계 버전 (UNBOUNDED 경계는 tick_spacing 필요)"""
    lower, upper = resolve_tick_bounds(lower_tick, upper_tick, tick_spacing)
    return get_liquidity_by_y_price(
        y,
        calculate_price_sqrt(lower),
        calculate_price_sqrt(upper),
        current_sqrt_price,
        rounding_up,
    )


def get_liquidity(
    x: int,
    y: int,
    lower_tick: TickBound,
    upper_tick: TickBound,
    current_sqrt_price: int,
    rounding_up: bool,
    tick_spacing: Optional[int] = None
) -> LiquidityResult:
    """두 토큰 수량으로 만들 수 있는 유동성 (두 기준 중 작은 값)

    입력 수량은 그대로 반환합니다.
    """
    lower, upper = resolve_tick_bounds(lower_tick, upper_tick, tick_spacing)
    lower_sqrt_price = calculate_price_sqrt(lower)
    upper_sqrt_price = calculate_price_sqrt(upper)

    if upper_sqrt_price <= current_sqrt_price:
        by_y = get_liquidity_by_y_price(y, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, rounding_up)
        return LiquidityResult(x=by_y.amount, y=y, liquidity=by_y.liquidity)

    if current_sqrt_price < lower_sqrt_price:
        by_x = get_liquidity_by_x_price(x, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, rounding_up)
        return LiquidityResult(x=x, y=by_x.amount, liquidity=by_x.liquidity)

    by_y = get_liquidity_by_y_price(y, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, rounding_up)
    by_x = get_liquidity_by_x_price(x, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, rounding_up)

    return LiquidityResult(x=x, y=y, liquidity=min(by_x.liquidity, by_y.liquidity))


def get_max_liquidity(
    x: int,
    y: int,
    lower_tick: int,
    upper_tick: int,
    current_sqrt_price: int
) -> LiquidityResult:
    """보유 수량 내에서 만들 수 있는 최대 유동성 포지션

    범위 내이면 두 토큰 기준 유동성을 각각 계산하고,
    더 큰 쪽의 반대 토큰 요구량이 보유량 이내이면 그쪽을, 아니면 다른 쪽을 선택합니다.
    한쪽 토큰은 항상 전부 사용됩니다. 반대 토큰 요구량은 올림입니다.

    Args:
        x: 보유 token X
        y: 보유 token Y
        lower_tick: 하한 틱
        upper_tick: 상한 틱
        current_sqrt_price: 현재 sqrt price

    Returns:
        LiquidityResult(x, y, liquidity)
    """
    if lower_tick >= upper_tick:
        raise InvalidArgumentError(f"하한 틱이 상한 틱보다 작아야 합니다: {lower_tick} >= {upper_tick}")

    lower_sqrt_price = calculate_price_sqrt(lower_tick)
    upper_sqrt_price = calculate_price_sqrt(upper_tick)

    if upper_sqrt_price <= current_sqrt_price:
        by_y = get_liquidity_by_y_price(y, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, True)
        return LiquidityResult(x=by_y.amount, y=y, liquidity=by_y.liquidity)

    if current_sqrt_price <= lower_sqrt_price:
        by_x = get_liquidity_by_x_price(x, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, True)
        return LiquidityResult(x=x, y=by_x.amount, liquidity=by_x.liquidity)

    by_y = get_liquidity_by_y_price(y, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, True)
    by_x = get_liquidity_by_x_price(x, lower_sqrt_price, upper_sqrt_price, current_sqrt_price, True)

    if by_x.liquidity > by_y.liquidity:
        if by_x.amount <= y:
            return LiquidityResult(x=x, y=by_x.amount, liquidity=by_x.liquidity)
        return LiquidityResult(x=by_y.amount, y=y, liquidity=by_y.liquidity)

    if by_y.amount <= x:
        return LiquidityResult(x=by_y.amount, y=y, liquidity=by_y.liquidity)
    return LiquidityResult(x=x, y=by_x.amount, liquidity=by_x.liquidity)


def get_max_liquidity_with_percentage(
    x: int,
    y: int,
    lower_tick: int,
    upper_tick: int,
    current_sqrt_price: int,
    max_liquidity_percentage: int
) -> LiquidityResult:
    """최대 포지션의 일부 (percentage는 10^12 스케일)

    최대 포지션 수량을 비율로 줄인 뒤 다시 최대 유동성을 계산합니다.
    """
    max_position = get_max_liquidity(x, y, lower_tick, upper_tick, current_sqrt_price)

    x_percentage = max_position.x * max_liquidity_percentage // DENOMINATOR
    y_percentage = max_position.y * max_liquidity_percentage // DENOMINATOR

    return get_max_liquidity(x_percentage, y_percentage, lower_tick, upper_tick, current_sqrt_price)


def parse_liquidity_on_ticks(ticks: Iterable[Tick]) -> List[LiquidityOnTick]:
    """오름차순 틱 목록에서 구간별 활성 유동성 프로파일

    sign이 True인 틱은 유동성을 더하고 False인 틱은 뺍니다.
    """
    current_liquidity = 0
    parsed = []

    for tick in ticks:
        if tick.sign:
            current_liquidity += tick.liquidity_change
        else:
            current_liquidity -= tick.liquidity_change
        parsed.append(LiquidityOnTick(index=tick.index, liquidity=current_liquidity))

    return parsed


def is_active(lower_index: int, upper_index: int, current_index: int) -> bool:
    """포지션이 현재 틱에서 활성인지 (lower <= current < upper)"""
    return lower_index <= current_index < upper_index
