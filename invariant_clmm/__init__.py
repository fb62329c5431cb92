"""
Invariant Concentrated Liquidity Simulator

Invariant 프로토콜 CLMM 풀의 스왑/유동성/수수료를 온체인 프로그램과
비트 단위로 동일한 고정소수점 연산으로 시뮬레이션하는 라이브러리.
"""

import logging

__version__ = "0.1.0"

from .constants import FEE_TIERS, MAX_TICK, MIN_TICK, TICK_LIMIT
from .errors import InvariantMathError, SimulationError

logging.getLogger(__name__).addHandler(logging.NullHandler())
