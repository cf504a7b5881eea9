"""Balancer V1 weighted pool math.

Core formulas for spot price, swaps and the two ways a weight can change:
a balance-adjusting update (tokens move with the weight) and a resync
(the weight follows a balance that already moved).
"""

from lbp.constants import MAX_IN_RATIO
from lbp.errors import MaxInRatioError, WeightOutOfBoundsError

from .bnum import BONE, Bnum, bdiv, bmul, bpow, bsub


def _require_positive_weights(*weights: Bnum) -> None:
    for weight in weights:
        if weight.value <= 0:
            raise WeightOutOfBoundsError("weight must be positive")


def calc_spot_price(
    balance_in: Bnum,
    weight_in: Bnum,
    balance_out: Bnum,
    weight_out: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate the spot price of token_out in units of token_in.

    Formula:
        spot_price = (balance_in / weight_in) / (balance_out / weight_out) * (1 / (1 - swap_fee))

    Args:
        balance_in: Recorded balance of the input token
        weight_in: Denormalized weight of the input token
        balance_out: Recorded balance of the output token
        weight_out: Denormalized weight of the output token
        swap_fee: Swap fee as fixed point (0 for the fee-less ratio)

    Returns:
        Spot price as fixed point
    """
    _require_positive_weights(weight_in, weight_out)

    numer = bdiv(balance_in.value, weight_in.value)
    denom = bdiv(balance_out.value, weight_out.value)
    ratio = bdiv(numer, denom)
    scale = bdiv(BONE, bsub(BONE, swap_fee.value))
    return Bnum(bmul(ratio, scale))


def calc_out_given_in(
    balance_in: Bnum,
    weight_in: Bnum,
    balance_out: Bnum,
    weight_out: Bnum,
    amount_in: Bnum,
    swap_fee: Bnum,
) -> Bnum:
    """Calculate output amount for a given input (sell order).

    Unlike the V2 formula the fee is applied inside this function.

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in * (1 - fee)))^(weight_in / weight_out))

    Raises:
        MaxInRatioError: If amount_in > balance_in * 0.5
        WeightOutOfBoundsError: If weight_in or weight_out is zero
    """
    _require_positive_weights(weight_in, weight_out)

    if amount_in.value > bmul(balance_in.value, MAX_IN_RATIO):
        raise MaxInRatioError(
            f"Input {amount_in.value} exceeds 50% of balance {balance_in.value}"
        )

    weight_ratio = bdiv(weight_in.value, weight_out.value)
    adjusted_in = bmul(amount_in.value, bsub(BONE, swap_fee.value))
    y = bdiv(balance_in.value, balance_in.value + adjusted_in)
    power = bpow(y, weight_ratio)
    return Bnum(bmul(balance_out.value, bsub(BONE, power)))


def calc_weight_change_balance(balance: int, old_weight: Bnum, new_weight: Bnum) -> int:
    """Balance that must move when a token's weight changes.

    The token balance is scaled by new_weight / old_weight so that its
    balance-to-weight ratio stays put.

    Args:
        balance: Current recorded balance of the token (wei)
        old_weight: Current denormalized weight
        new_weight: Target denormalized weight

    Returns:
        Signed delta: positive when tokens are pulled into the pool,
        negative when tokens are pushed out, zero when the weight is unchanged.
    """
    _require_positive_weights(old_weight)
    if new_weight.value == old_weight.value:
        return 0

    if new_weight.value > old_weight.value:
        delta_weight = new_weight.value - old_weight.value
        return bmul(balance, bdiv(delta_weight, old_weight.value))

    delta_weight = old_weight.value - new_weight.value
    return -bmul(balance, bdiv(delta_weight, old_weight.value))


def calc_pool_shares(total_supply: int, delta_weight: int, total_weight: int) -> int:
    """Pool shares minted (or burned) for a weight change of delta_weight."""
    return bmul(total_supply, bdiv(delta_weight, total_weight))


def calc_resync_weight(weight: Bnum, recorded_balance: int, actual_balance: int) -> Bnum:
    """New weight after an exogenous balance change, keeping balance / weight constant.

    Formula:
        new_weight = weight * actual_balance / recorded_balance
    """
    _require_positive_weights(weight)
    return Bnum(bdiv(bmul(weight.value, actual_balance), recorded_balance))
