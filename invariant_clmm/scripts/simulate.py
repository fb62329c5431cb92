#!/usr/bin/env python3
"""
풀 스냅샷 JSON으로 스왑 / 포지션 생성 시뮬레이션

스냅샷 형식:
    {"pool": {...}, "tickmap": [...], "ticks": [...]}
결과는 JSON으로 출력합니다. 큰 정수는 문자열로 표기됩니다.
"""
import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from ..config import configure_logging
from ..constants import DENOMINATOR
from ..data.types import PoolSnapshot
from ..errors import InvariantMathError
from ..simulation.position import (
    simulate_swap_and_create_position,
    simulate_swap_and_create_position_on_the_same_pool,
)
from ..simulation.swap import simulate_swap

logger = logging.getLogger(__name__)


def percent(value: str) -> int:
    """퍼센트 문자열 -> Decimal (10^12 스케일). 예: "0.5" -> 0.5%"""
    try:
        return int(Decimal(value) * DENOMINATOR / 100)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"잘못된 퍼센트 값: {value}")


def load_snapshot(path: str) -> PoolSnapshot:
    with Path(path).open() as f:
        return PoolSnapshot.from_dict(json.load(f))


def run_swap(args: argparse.Namespace) -> dict:
    snapshot = load_snapshot(args.snapshot)
    result = simulate_swap(
        snapshot,
        x_to_y=args.x_to_y,
        by_amount_in=not args.by_amount_out,
        swap_amount=args.amount,
        price_limit=args.price_limit,
        slippage=args.slippage,
    )
    return result.to_dict()


def run_position(args: argparse.Namespace) -> dict:
    snapshot = load_snapshot(args.snapshot)

    if args.same_pool:
        result = simulate_swap_and_create_position_on_the_same_pool(
            args.amount_x,
            args.amount_y,
            snapshot,
            args.lower,
            args.upper,
            args.slippage,
        )
    else:
        known_price = args.known_price if args.known_price is not None else snapshot.pool.sqrt_price
        result = simulate_swap_and_create_position(
            args.amount_x,
            args.amount_y,
            snapshot,
            args.lower,
            args.upper,
            known_price,
            args.slippage,
        )
    return result.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Invariant CLMM 스왑 / 포지션 시뮬레이션",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # token X 1000 단위를 token Y로 스왑
  python -m invariant_clmm.scripts.simulate swap pool.json --x-to-y --amount 1000

  # 출력 수량 기준, 슬리피지 0.5%%
  python -m invariant_clmm.scripts.simulate swap pool.json --amount 500 --by-amount-out --slippage 0.5

  # 스왑 후 같은 풀에 포지션 생성
  python -m invariant_clmm.scripts.simulate position pool.json \\
      --amount-x 0 --amount-y 100000 --lower -100 --upper 100 --same-pool
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUG 로그 출력")
    subparsers = parser.add_subparsers(dest="command", required=True)

    swap = subparsers.add_parser("swap", help="스왑 시뮬레이션")
    swap.add_argument("snapshot", type=str, help="풀 스냅샷 JSON 경로")
    swap.add_argument("--x-to-y", action="store_true", help="token X -> token Y (기본: Y -> X)")
    swap.add_argument("--amount", type=int, required=True, help="스왑 수량 (최소 단위)")
    swap.add_argument("--by-amount-out", action="store_true", help="amount를 출력 수량으로 해석")
    swap.add_argument("--price-limit", type=int, default=None, help="가격 한도 sqrt price (10^24 스케일)")
    swap.add_argument("--slippage", type=percent, default=0, help="슬리피지 %% (기본: 0)")
    swap.set_defaults(handler=run_swap)

    position = subparsers.add_parser("position", help="스왑 후 포지션 생성 시뮬레이션")
    position.add_argument("snapshot", type=str, help="스왑 풀 스냅샷 JSON 경로")
    position.add_argument("--amount-x", type=int, required=True, help="보유 token X")
    position.add_argument("--amount-y", type=int, required=True, help="보유 token Y")
    position.add_argument("--lower", type=int, required=True, help="하한 틱")
    position.add_argument("--upper", type=int, required=True, help="상한 틱")
    position.add_argument("--known-price", type=int, default=None,
                          help="포지션 풀 sqrt price (기본: 스왑 풀 가격)")
    position.add_argument("--slippage", type=percent, default=percent("1"), help="슬리피지 %% (기본: 1)")
    position.add_argument("--same-pool", action="store_true", help="스왑한 풀에 포지션 생성")
    position.set_defaults(handler=run_position)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else None)

    try:
        output = args.handler(args)
    except (InvariantMathError, OSError, KeyError, json.JSONDecodeError) as e:
        logger.error("시뮬레이션 실패: %s", e)
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
