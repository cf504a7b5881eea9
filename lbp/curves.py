"""Weight curves for liquidity bootstrapping pools.

Pure functions mapping an elapsed block count to target weights:

- ExponentialCurve: the share of the token being sold decays as
  p0 * base^(-i / (k * b)), so its implied price falls quickly at first and
  flattens toward the asymptote.
- linear_weights: straight-line interpolation between two weight vectors,
  used by gradual updates.

Nothing here reads a clock; the step or block is always an argument.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal

from lbp.constants import DEFAULT_CURVE_BLOCKS
from lbp.errors import InvalidCurveError
from lbp.math.bnum import Bnum

# Working precision for curve evaluation, well beyond 18 decimals
_CURVE_CONTEXT = Context(prec=50)


def truncate_decimal(value: Decimal, decimals: int) -> Decimal:
    """Floor a non-negative Decimal to the given number of decimal places."""
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)


def _div_trunc(a: int, b: int) -> int:
    """Integer division with truncation toward zero.

    Python's // rounds toward negative infinity; weight deltas can be negative
    and must shrink toward zero so interpolation never overshoots.
    """
    if (a >= 0) == (b >= 0):
        return a // b
    return -(abs(a) // abs(b))


@dataclass(frozen=True)
class ExponentialCurve:
    """Exponential decay curve for the selling token's weight share.

    Attributes:
        start_pct: Share of total weight at step 0 (p0), in (0, 1]
        steepness: Curve steepness (b); larger values stretch the decay
        base: Decay base, must be > 1
        blocks_per_unit: Step count that divides the exponent (k)
        decimals: Decimal places kept after truncation
    """

    start_pct: Decimal
    steepness: Decimal = Decimal(1)
    base: Decimal = Decimal(3)
    blocks_per_unit: int = DEFAULT_CURVE_BLOCKS
    decimals: int = 4

    def __post_init__(self) -> None:
        if not Decimal(0) < self.start_pct <= Decimal(1):
            raise InvalidCurveError(f"start_pct must be in (0, 1], got {self.start_pct}")
        if self.steepness <= 0:
            raise InvalidCurveError(f"steepness must be positive, got {self.steepness}")
        if self.base <= 1:
            raise InvalidCurveError(f"base must be greater than 1, got {self.base}")
        if self.blocks_per_unit <= 0:
            raise InvalidCurveError(
                f"blocks_per_unit must be positive, got {self.blocks_per_unit}"
            )
        if not 0 <= self.decimals <= 18:
            raise InvalidCurveError(f"decimals must be in [0, 18], got {self.decimals}")

    def pct(self, step: int) -> Decimal:
        """Target share of the selling token after `step` blocks, truncated.

        Every operation is correctly rounded in a fixed context, so the
        result is reproducible and non-increasing in step.
        """
        if step < 0:
            raise InvalidCurveError(f"step must be non-negative, got {step}")

        ctx = _CURVE_CONTEXT
        exponent = ctx.divide(
            Decimal(-step), ctx.multiply(Decimal(self.blocks_per_unit), self.steepness)
        )
        factor = ctx.power(self.base, exponent)
        return truncate_decimal(ctx.multiply(self.start_pct, factor), self.decimals)


def curve_weights(
    pct: Decimal,
    selling_token: str,
    weights: Mapping[str, Bnum],
    decimals: int = 4,
) -> dict[str, Decimal]:
    """Convert a target share into denormalized weights for every token.

    The selling token receives pct of the current total weight. The remainder
    goes to the single other token, or is split across the others in
    proportion to their current weights. Each weight is truncated; the last
    token absorbs the truncation dust so the total weight does not drift
    downward over many steps.

    Args:
        pct: Target share of the selling token, in [0, 1]
        selling_token: Token whose share follows the curve
        weights: Current denormalized weights of all pool tokens
        decimals: Decimal places kept after truncation

    Returns:
        Target denormalized weights as Decimals
    """
    if selling_token not in weights:
        raise InvalidCurveError(f"Selling token {selling_token} is not in the weight vector")
    if not Decimal(0) <= pct <= Decimal(1):
        raise InvalidCurveError(f"pct must be in [0, 1], got {pct}")

    ctx = _CURVE_CONTEXT
    total = truncate_decimal(sum((w.to_decimal() for w in weights.values()), Decimal(0)), decimals)
    selling = truncate_decimal(ctx.multiply(pct, total), decimals)
    remainder = ctx.subtract(total, selling)

    others = [(token, w) for token, w in weights.items() if token != selling_token]
    others_total = sum((w.to_decimal() for _, w in others), Decimal(0))

    targets = {selling_token: selling}
    assigned = Decimal(0)
    for index, (token, weight) in enumerate(others):
        if index == len(others) - 1:
            share = ctx.subtract(remainder, assigned)
        else:
            share = truncate_decimal(
                ctx.divide(ctx.multiply(remainder, weight.to_decimal()), others_total), decimals
            )
            assigned = ctx.add(assigned, share)
        targets[token] = share
    return targets


def linear_weights(
    start_weights: Mapping[str, Bnum],
    end_weights: Mapping[str, Bnum],
    start_block: int,
    end_block: int,
    block: int,
) -> dict[str, Bnum]:
    """Interpolate weights linearly between two vectors.

    Formula:
        w(t) = start + (end - start) * clamp((t - start_block) / (end_block - start_block), 0, 1)

    Returns start_weights exactly at or before start_block and end_weights
    exactly at or after end_block.
    """
    if end_block < start_block:
        raise InvalidCurveError(f"end_block {end_block} is before start_block {start_block}")

    if block >= end_block:
        return {token: Bnum(w.value) for token, w in end_weights.items()}
    if block <= start_block:
        return {token: Bnum(w.value) for token, w in start_weights.items()}

    period = end_block - start_block
    elapsed = block - start_block
    result = {}
    for token, start in start_weights.items():
        delta = end_weights[token].value - start.value
        result[token] = Bnum(start.value + _div_trunc(delta * elapsed, period))
    return result
