"""Hybrid presale driver.

A presale follows the exponential curve block by block with manual weight
updates while the curve is strongly non-linear, then hands the tail of the
curve to a gradual update, which is close enough to linear there.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

import structlog

from lbp.clock import BlockClock
from lbp.curves import ExponentialCurve, curve_weights
from lbp.math.bnum import Bnum
from lbp.pool import ConfigurableRightsPool

logger = structlog.get_logger()


@dataclass(frozen=True)
class PresalePlan:
    """Parameters of a hybrid presale.

    Attributes:
        selling_token: Token whose weight share follows the curve
        curve: Exponential curve for the manual phase
        manual_steps: Number of blocks driven by manual weight updates
        gradual_blocks: Length of the gradual update that finishes the presale
        end_weights: Weights reached when the gradual update ends
    """

    selling_token: str
    curve: ExponentialCurve
    manual_steps: int
    gradual_blocks: int
    end_weights: Mapping[str, Bnum]


@dataclass(frozen=True)
class PresaleStep:
    """Pool state observed after one presale block."""

    block: int
    phase: str
    weights: dict[str, Bnum]
    normalized_weights: dict[str, Decimal]
    balances: dict[str, int]


def snapshot(pool: ConfigurableRightsPool, block: int, phase: str) -> PresaleStep:
    weights = pool.get_weights()
    total = pool.get_total_weight().to_decimal()
    return PresaleStep(
        block=block,
        phase=phase,
        weights=weights,
        normalized_weights={t: w.to_decimal() / total for t, w in weights.items()},
        balances={t: pool.get_balance(t) for t in pool.tokens},
    )


def run_manual_step(pool: ConfigurableRightsPool, plan: PresalePlan, step: int) -> None:
    """Set every token to its curve weight for `step`, lowering weights first."""
    current = pool.get_weights()
    pct = plan.curve.pct(step)
    targets = curve_weights(pct, plan.selling_token, current, plan.curve.decimals)
    for token in sorted(targets, key=lambda t: targets[t] - current[t].to_decimal()):
        pool.set_weight(token, targets[token])


def run_presale(
    pool: ConfigurableRightsPool,
    plan: PresalePlan,
    clock: BlockClock,
) -> list[PresaleStep]:
    """Run the manual phase, then the gradual phase, one block at a time.

    Returns:
        One PresaleStep per block, manual phase first
    """
    steps = []
    for i in range(1, plan.manual_steps + 1):
        clock.advance()
        run_manual_step(pool, plan, i)
        steps.append(snapshot(pool, clock.block, "manual"))

    logger.info(
        "presale_manual_phase_done",
        block=clock.block,
        steps=plan.manual_steps,
        selling_share=str(steps[-1].normalized_weights[plan.selling_token]) if steps else None,
    )

    pool.schedule_gradual(
        plan.end_weights,
        clock.block,
        clock.block + plan.gradual_blocks,
        current_block=clock.block,
    )
    while True:
        pool.poke(current_block=clock.block)
        steps.append(snapshot(pool, clock.block, "gradual"))
        schedule = pool.schedule
        if schedule is not None and schedule.completed:
            break
        clock.advance()

    logger.info("presale_done", block=clock.block, blocks=len(steps))
    return steps
