"""
예외 정의

수학 계층은 잘못된 입력에 대해 ValueError 계열 예외를 발생시킵니다.
시뮬레이션의 복구 가능한 종료 상태는 예외가 아닌 SimulationResult.status로
보고되며, SimulationError는 재시도할 수 없는 전제조건 위반에만 사용됩니다.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .data.types import SimulationStatus


class InvariantMathError(ValueError):
    """invariant_clmm 예외의 기본 클래스"""


class InvalidArgumentError(InvariantMathError):
    """틱 간격에 맞지 않는 틱, 0 이하의 step 등 잘못된 인자"""


class OutOfRangeError(InvariantMathError):
    """프로토콜 범위를 벗어난 틱 또는 가격"""


class ArithmeticOverflowError(InvariantMathError):
    """최종 출력값이 u64 범위를 넘는 경우"""


class PriceOutOfRangeError(InvariantMathError):
    """단일 토큰 유동성 공식이 유효하지 않은 가격 구간에서 호출된 경우"""


class SimulationError(InvariantMathError):
    """스왑 시뮬레이션 전제조건 위반 (WRONG_LIMIT, TICK_NOT_FOUND)"""

    def __init__(self, status: "SimulationStatus"):
        super().__init__(status.value)
        self.status = status
