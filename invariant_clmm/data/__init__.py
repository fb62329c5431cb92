"""
Data layer for Invariant CLMM

디코딩된 온체인 상태 및 계산 결과 타입 정의
"""

from .types import (
    SimulationStatus,
    Tick,
    Tickmap,
    PoolData,
    PoolSnapshot,
    PositionClaimData,
    SwapResult,
    TickState,
    CloserLimitResult,
    SimulationResult,
    SingleTokenLiquidity,
    LiquidityResult,
    SwapInput,
    PositionSimulation,
)
