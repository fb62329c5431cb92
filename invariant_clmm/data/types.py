"""
Invariant CLMM 데이터 타입 정의

계정 역직렬화 계층이 디코딩한 풀/틱/tickmap/포지션 상태를 Python dataclass로 정의.
모든 숫자 필드는 온체인 정밀도를 위해 int 타입 사용.

from_dict는 디코딩된 camelCase JSON을 받습니다. 숫자는 int, 10진수 문자열,
또는 Anchor Decimal 형식({"v": ...}) 모두 허용합니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Union

from ..constants import TICK_LIMIT, TICKMAP_BYTES, TICKMAP_SIZE
from ..errors import InvalidArgumentError, OutOfRangeError


def _to_int(value: Any) -> int:
    if isinstance(value, dict):
        value = value["v"]
    return int(value)


class SimulationStatus(Enum):
    """스왑 시뮬레이션 종료 상태"""
    OK = "Ok"
    WRONG_LIMIT = "Price limit is on the wrong side of price"
    PRICE_LIMIT_REACHED = "Price would cross swap limit"
    TICK_NOT_FOUND = "tick crossed but not passed to simulation"
    NO_GAIN_SWAP = "Amount out is zero"
    TOO_LARGE_GAP = "Too large liquidity gap"
    LIMIT_REACHED = "At the end of price range"
    SWAP_STEP_LIMIT_REACHED = "Swap step limit reached"


@dataclass
class Tick:
    """틱 상태

    - index: 틱 인덱스
    - sign: True면 가격이 위로 크로싱할 때 유동성 추가 (포지션 하한)
    - liquidity_change: 크로싱 시 유동성 변화량 (ΔL, 절대값)
    - liquidity_gross: 해당 틱을 경계로 하는 총 유동성
    - sqrt_price: 캐시된 sqrt price
    - fee_growth_outside_x/y: 틱 외부 누적 수수료 (f_o)
    """
    index: int
    sign: bool
    liquidity_change: int
    liquidity_gross: int = 0
    sqrt_price: int = 0
    fee_growth_outside_x: int = 0
    fee_growth_outside_y: int = 0
    seconds_per_liquidity_outside: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Tick":
        return cls(
            index=int(data["index"]),
            sign=bool(data["sign"]),
            liquidity_change=_to_int(data["liquidityChange"]),
            liquidity_gross=_to_int(data.get("liquidityGross", 0)),
            sqrt_price=_to_int(data.get("sqrtPrice", 0)),
            fee_growth_outside_x=_to_int(data.get("feeGrowthOutsideX", 0)),
            fee_growth_outside_y=_to_int(data.get("feeGrowthOutsideY", 0)),
            seconds_per_liquidity_outside=_to_int(data.get("secondsPerLiquidityOutside", 0)),
        )


@dataclass
class Tickmap:
    """초기화된 틱 비트맵

    비트 i는 byte i // 8 의 (i % 8)번째 비트.
    틱 t는 비트 t // tick_spacing + TICK_LIMIT 에 대응합니다.
    """
    bitmap: bytearray = field(default_factory=lambda: bytearray(TICKMAP_BYTES))

    @classmethod
    def empty(cls) -> "Tickmap":
        return cls()

    @classmethod
    def from_dict(cls, data: Union[dict, Iterable[int]]) -> "Tickmap":
        raw = data["bitmap"] if isinstance(data, dict) else data
        return cls(bitmap=bytearray(raw))

    @classmethod
    def from_ticks(cls, ticks: Iterable[int], tick_spacing: int) -> "Tickmap":
        tickmap = cls()
        for tick in ticks:
            tickmap.flip(tick, tick_spacing)
        return tickmap

    def flip(self, tick: int, tick_spacing: int) -> None:
        """틱 비트 토글 (틱 생성/삭제 시 외부에서 호출)"""
        if tick % tick_spacing != 0:
            raise InvalidArgumentError(f"틱이 간격에 정렬되지 않았습니다: {tick}")
        index = tick // tick_spacing + TICK_LIMIT
        if not 0 <= index < TICKMAP_SIZE:
            raise OutOfRangeError(f"tickmap 범위를 벗어난 틱: {tick}")
        self.bitmap[index // 8] ^= 1 << (index % 8)


@dataclass
class PoolData:
    """스왑 시뮬레이션에 필요한 풀 상태

    - current_tick_index: 현재 틱 (i_c)
    - tick_spacing: 틱 간격
    - liquidity: 현재 활성 유동성 (L, 10^6 스케일)
    - fee: 수수료 (10^12 스케일)
    - sqrt_price: 현재 sqrt price (10^24 스케일)
    """
    current_tick_index: int
    tick_spacing: int
    liquidity: int
    fee: int
    sqrt_price: int

    @classmethod
    def from_dict(cls, data: dict) -> "PoolData":
        return cls(
            current_tick_index=int(data["currentTickIndex"]),
            tick_spacing=int(data["tickSpacing"]),
            liquidity=_to_int(data["liquidity"]),
            fee=_to_int(data["fee"]),
            sqrt_price=_to_int(data["sqrtPrice"]),
        )


@dataclass
class PoolSnapshot:
    """스왑 시뮬레이션 입력 전체 (풀, tickmap, 틱 레코드)"""
    pool: PoolData
    tickmap: Tickmap
    ticks: Dict[int, Tick] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "PoolSnapshot":
        ticks = [Tick.from_dict(t) for t in data.get("ticks", [])]
        return cls(
            pool=PoolData.from_dict(data["pool"]),
            tickmap=Tickmap.from_dict(data["tickmap"]),
            ticks={tick.index: tick for tick in ticks},
        )


@dataclass
class PositionClaimData:
    """수수료 정산에 필요한 포지션 상태

    tokens_owed_x/y 는 온체인과 같이 10^12 스케일 Decimal입니다.
    """
    liquidity: int
    fee_growth_inside_x: int
    fee_growth_inside_y: int
    tokens_owed_x: int = 0
    tokens_owed_y: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "PositionClaimData":
        return cls(
            liquidity=_to_int(data["liquidity"]),
            fee_growth_inside_x=_to_int(data.get("feeGrowthInsideX", 0)),
            fee_growth_inside_y=_to_int(data.get("feeGrowthInsideY", 0)),
            tokens_owed_x=_to_int(data.get("tokensOwedX", 0)),
            tokens_owed_y=_to_int(data.get("tokensOwedY", 0)),
        )


class SwapResult(NamedTuple):
    """단일 스왑 스텝 결과"""
    next_price: int
    amount_in: int
    amount_out: int
    fee_amount: int


class TickState(NamedTuple):
    index: int
    initialized: bool


class CloserLimitResult(NamedTuple):
    """스텝 경계: 가격 한도 또는 가장 가까운 틱"""
    swap_limit: int
    limiting_tick: Optional[TickState]


@dataclass
class SimulationResult:
    """멀티 스텝 스왑 시뮬레이션 결과"""
    status: SimulationStatus
    amount_per_tick: List[int]
    crossed_ticks: List[int]
    accumulated_amount_in: int
    accumulated_amount_out: int
    accumulated_fee: int
    price_after_swap: int
    price_impact: int
    min_received: int
    liquidity_after_swap: int = 0
    tick_after_swap: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.name,
            "amountPerTick": [str(a) for a in self.amount_per_tick],
            "crossedTicks": list(self.crossed_ticks),
            "accumulatedAmountIn": str(self.accumulated_amount_in),
            "accumulatedAmountOut": str(self.accumulated_amount_out),
            "accumulatedFee": str(self.accumulated_fee),
            "priceAfterSwap": str(self.price_after_swap),
            "priceImpact": str(self.price_impact),
            "minReceived": str(self.min_received),
            "liquidityAfterSwap": str(self.liquidity_after_swap),
            "tickAfterSwap": self.tick_after_swap,
        }


class SingleTokenLiquidity(NamedTuple):
    """단일 토큰 기준 유동성과 필요한 반대 토큰 수량"""
    liquidity: int
    amount: int


class LiquidityResult(NamedTuple):
    """포지션 토큰 수량과 유동성"""
    x: int
    y: int
    liquidity: int


class SwapInput(NamedTuple):
    x_to_y: bool
    by_amount_in: bool
    swap_amount: int


class PositionSimulation(NamedTuple):
    """스왑 후 포지션 생성 시뮬레이션 결과

    스왑이 필요 없으면 swap_input, swap_simulation은 None.
    """
    swap_input: Optional[SwapInput]
    swap_simulation: Optional[SimulationResult]
    position: LiquidityResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "swapInput": None if self.swap_input is None else {
                "xToY": self.swap_input.x_to_y,
                "byAmountIn": self.swap_input.by_amount_in,
                "swapAmount": str(self.swap_input.swap_amount),
            },
            "swapSimulation": None if self.swap_simulation is None else self.swap_simulation.to_dict(),
            "position": {
                "x": str(self.position.x),
                "y": str(self.position.y),
                "liquidity": str(self.position.liquidity),
            },
        }
