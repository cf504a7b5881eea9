#!/usr/bin/env python3
"""Simulate a hybrid presale and print the weight path block by block.

The pool starts at 90/10 (USDC/HBT, weights 36/4). USDC's share follows
0.9 * 3^(-i / (6500 * 5 * b)) for the manual phase, then a gradual update
reverses the weights to 4/36.

Usage:
    python scripts/simulate_presale.py --manual-steps 200 --gradual-blocks 15

    python scripts/simulate_presale.py --steepness 2 --every 50
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lbp.clock import BlockClock  # noqa: E402
from lbp.curves import ExponentialCurve  # noqa: E402
from lbp.math.bnum import Bnum  # noqa: E402
from lbp.models import PoolParams, Rights  # noqa: E402
from lbp.pool import ConfigurableRightsPool  # noqa: E402
from lbp.presale import PresalePlan, run_presale  # noqa: E402

USDC = "USDC"
HBT = "HBT"


def build_pool(min_period: int) -> ConfigurableRightsPool:
    params = PoolParams.model_validate(
        {
            "poolTokenSymbol": "HPPT",
            "poolTokenName": "Hybrid Presale Pool Token",
            "constituentTokens": [USDC, HBT],
            "tokenBalances": [9_000_000 * 10**18, 1_000_000 * 10**18],
            "tokenWeights": [36 * 10**18, 4 * 10**18],
            "swapFee": 10**15,
        }
    )
    rights = Rights(can_change_weights=True, can_change_swap_fee=False)
    pool = ConfigurableRightsPool(params, rights)
    pool.create_pool(1000 * 10**18, min_period, min_period)
    return pool


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate a hybrid presale weight path")
    parser.add_argument("--manual-steps", type=int, default=200, help="Blocks of manual updates")
    parser.add_argument("--gradual-blocks", type=int, default=15, help="Length of gradual update")
    parser.add_argument("--steepness", type=str, default="1", help="Curve steepness b")
    parser.add_argument("--every", type=int, default=10, help="Print every N-th block")
    args = parser.parse_args()

    pool = build_pool(min(args.gradual_blocks, 10))
    start = pool.get_weights()
    plan = PresalePlan(
        selling_token=USDC,
        curve=ExponentialCurve(start_pct=Decimal("0.9"), steepness=Decimal(args.steepness)),
        manual_steps=args.manual_steps,
        gradual_blocks=args.gradual_blocks,
        end_weights={USDC: Bnum(start[HBT].value), HBT: Bnum(start[USDC].value)},
    )

    steps = run_presale(pool, plan, BlockClock())

    print(f"{'Block':>8}  {'Phase':<8} {'USDC %':>9} {'HBT %':>9} {'USDC bal':>16} {'HBT bal':>16}")
    for i, step in enumerate(steps):
        if i % args.every != 0 and i != len(steps) - 1:
            continue
        usdc_pct = step.normalized_weights[USDC] * 100
        hbt_pct = step.normalized_weights[HBT] * 100
        print(
            f"{step.block:>8}  {step.phase:<8} {usdc_pct:>8.4f}% {hbt_pct:>8.4f}% "
            f"{step.balances[USDC] / 10**18:>16.2f} {step.balances[HBT] / 10**18:>16.2f}"
        )


if __name__ == "__main__":
    main()
