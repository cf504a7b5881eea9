"""Tests for the in-memory pool ledger."""

import pytest

from lbp.errors import (
    BalanceBelowMinimumError,
    InvalidFeeError,
    InvalidPoolParamsError,
    MaxInRatioError,
    StaleResyncError,
    SwapNotPublicError,
    UnknownTokenError,
    WeightOutOfBoundsError,
)
from lbp.ledger import Ledger, MemoryLedger
from lbp.math.bnum import Bnum
from tests.helpers import AMPL, DAI, HBT, ONE, SWAP_FEE, USDC


def make_ledger(
    tokens=(USDC, DAI),
    balances=(1000, 1000),
    weights=(1, 1),
    swap_fee=SWAP_FEE,
) -> MemoryLedger:
    return MemoryLedger(
        tokens,
        [b * ONE for b in balances],
        [Bnum(w * ONE) for w in weights],
        Bnum(swap_fee),
    )


def snapshot(ledger: MemoryLedger) -> dict:
    return {
        t: (ledger.get_balance(t), ledger.get_holdings(t), ledger.get_weight(t).value)
        for t in ledger.tokens
    }


class TestConstruction:
    """Initial state validation."""

    def test_valid(self):
        ledger = make_ledger()
        assert ledger.tokens == (USDC, DAI)
        assert ledger.get_balance(USDC) == 1000 * ONE
        assert ledger.get_holdings(USDC) == 1000 * ONE
        assert ledger.get_total_weight().value == 2 * ONE

    def test_satisfies_protocol(self):
        assert isinstance(make_ledger(), Ledger)

    def test_single_token_raises(self):
        with pytest.raises(InvalidPoolParamsError):
            make_ledger(tokens=(USDC,), balances=(1000,), weights=(1,))

    def test_too_many_tokens_raises(self):
        tokens = tuple(f"0x{i:040x}" for i in range(9))
        with pytest.raises(InvalidPoolParamsError):
            make_ledger(tokens=tokens, balances=(1000,) * 9, weights=(1,) * 9)

    def test_duplicate_tokens_raise(self):
        with pytest.raises(InvalidPoolParamsError):
            make_ledger(tokens=(USDC, USDC))

    def test_length_mismatch_raises(self):
        with pytest.raises(InvalidPoolParamsError):
            make_ledger(balances=(1000,))

    def test_weight_below_minimum_raises(self):
        with pytest.raises(WeightOutOfBoundsError):
            MemoryLedger(
                (USDC, DAI), [ONE, ONE], [Bnum(ONE // 2), Bnum(ONE)], Bnum(SWAP_FEE)
            )

    def test_total_weight_above_maximum_raises(self):
        with pytest.raises(WeightOutOfBoundsError):
            make_ledger(weights=(30, 30))

    @pytest.mark.parametrize("fee", [0, 10**11, 2 * 10**17])
    def test_fee_out_of_bounds_raises(self, fee: int):
        with pytest.raises(InvalidFeeError):
            make_ledger(swap_fee=fee)

    def test_balance_below_minimum_raises(self):
        with pytest.raises(BalanceBelowMinimumError):
            MemoryLedger((USDC, DAI), [10**5, ONE], [Bnum(ONE), Bnum(ONE)], Bnum(SWAP_FEE))


class TestReads:
    def test_unknown_token_raises(self):
        with pytest.raises(UnknownTokenError):
            make_ledger().get_weight(AMPL)

    def test_normalized_weight(self):
        ledger = make_ledger(weights=(36, 4))
        assert ledger.get_normalized_weight(USDC).value == 9 * ONE // 10

    def test_spot_price_sans_fee(self):
        assert make_ledger().get_spot_price_sans_fee(USDC, DAI).value == ONE

    def test_spot_price_includes_fee(self):
        ledger = make_ledger()
        assert ledger.get_spot_price(USDC, DAI) > ledger.get_spot_price_sans_fee(USDC, DAI)


class TestWeightChange:
    """Balance-adjusting weight changes."""

    def test_increase_pulls_tokens_in(self):
        ledger = make_ledger()
        change = ledger.apply_weight_change(USDC, Bnum(2 * ONE))

        assert change.balance_delta == 1000 * ONE
        assert change.delta_weight == ONE
        assert change.total_weight_before == 2 * ONE
        assert ledger.get_weight(USDC).value == 2 * ONE
        assert ledger.get_balance(USDC) == 2000 * ONE
        assert ledger.get_holdings(USDC) == 2000 * ONE

    def test_decrease_pushes_tokens_out(self):
        ledger = make_ledger(weights=(4, 4))
        change = ledger.apply_weight_change(USDC, Bnum(2 * ONE))
        assert change.balance_delta == -500 * ONE
        assert ledger.get_balance(USDC) == 500 * ONE

    def test_spot_price_kept(self):
        """Balance and weight scale together, so balance / weight is unchanged."""
        ledger = make_ledger()
        before = ledger.get_spot_price(USDC, DAI)
        ledger.apply_weight_change(USDC, Bnum(2 * ONE))
        assert ledger.get_spot_price(USDC, DAI) == before

    def test_other_tokens_untouched(self):
        ledger = make_ledger()
        ledger.apply_weight_change(USDC, Bnum(2 * ONE))
        assert ledger.get_weight(DAI).value == ONE
        assert ledger.get_balance(DAI) == 1000 * ONE

    def test_batch_applies_decreases_first(self):
        ledger = make_ledger(weights=(25, 25))
        changes = ledger.apply_weight_changes({USDC: Bnum(30 * ONE), DAI: Bnum(20 * ONE)})
        assert [c.token for c in changes] == [DAI, USDC]
        assert ledger.get_total_weight().value == 50 * ONE

    def test_total_weight_limit(self):
        ledger = make_ledger(weights=(25, 25))
        before = snapshot(ledger)
        with pytest.raises(WeightOutOfBoundsError):
            ledger.apply_weight_change(USDC, Bnum(26 * ONE))
        assert snapshot(ledger) == before

    def test_failed_batch_changes_nothing(self):
        ledger = make_ledger()
        before = snapshot(ledger)
        with pytest.raises(WeightOutOfBoundsError):
            ledger.apply_weight_changes({USDC: Bnum(2 * ONE), DAI: Bnum(51 * ONE)})
        assert snapshot(ledger) == before

    def test_minimum_balance(self):
        ledger = MemoryLedger(
            (USDC, DAI), [2 * 10**6, ONE], [Bnum(49 * ONE), Bnum(ONE)], Bnum(SWAP_FEE)
        )
        before = snapshot(ledger)
        with pytest.raises(BalanceBelowMinimumError):
            ledger.apply_weight_change(USDC, Bnum(ONE))
        assert snapshot(ledger) == before

    def test_unknown_token_raises(self):
        with pytest.raises(UnknownTokenError):
            make_ledger().apply_weight_change(HBT, Bnum(2 * ONE))

    def test_plan_does_not_commit(self):
        ledger = make_ledger()
        before = snapshot(ledger)
        planned = ledger.plan_weight_changes({USDC: Bnum(2 * ONE)})
        assert planned[0].balance_delta == 1000 * ONE
        assert snapshot(ledger) == before


class TestResync:
    """Weight follows an exogenous balance change."""

    def test_positive_rebase(self):
        ledger = make_ledger(balances=(10_000, 10_000))
        ledger.transfer_in(DAI, 1000 * ONE)
        assert ledger.get_balance(DAI) == 10_000 * ONE
        assert ledger.get_holdings(DAI) == 11_000 * ONE

        result = ledger.apply_resync(DAI)

        assert result.old_weight.value == ONE
        assert result.new_weight.value == 11 * ONE // 10
        assert result.old_balance == 10_000 * ONE
        assert result.new_balance == 11_000 * ONE
        assert ledger.get_balance(DAI) == 11_000 * ONE
        assert ledger.get_holdings(DAI) == 11_000 * ONE

    def test_negative_rebase(self):
        ledger = make_ledger(balances=(10_000, 10_000), weights=(10, 10))
        ledger.transfer_out(DAI, 1000 * ONE)
        result = ledger.apply_resync(DAI)
        assert result.new_weight.value == 9 * ONE
        assert ledger.get_balance(DAI) == 9_000 * ONE

    def test_price_unchanged(self):
        ledger = make_ledger(balances=(10_000, 10_000))
        before = ledger.get_spot_price(USDC, DAI)
        ledger.transfer_in(DAI, 1000 * ONE)
        ledger.apply_resync(DAI)
        assert ledger.get_spot_price(USDC, DAI) == before

    def test_no_change_raises(self):
        with pytest.raises(StaleResyncError):
            make_ledger().apply_resync(DAI)

    def test_weight_below_minimum_rejected(self):
        ledger = make_ledger(balances=(10_000, 10_000))
        ledger.transfer_out(DAI, 5000 * ONE)
        before = snapshot(ledger)
        with pytest.raises(WeightOutOfBoundsError):
            ledger.apply_resync(DAI)
        assert snapshot(ledger) == before

    def test_total_weight_above_maximum_rejected(self):
        ledger = make_ledger(balances=(10_000, 10_000), weights=(25, 25))
        ledger.transfer_in(DAI, 1000 * ONE)
        with pytest.raises(WeightOutOfBoundsError):
            ledger.apply_resync(DAI)

    def test_transfer_validation(self):
        ledger = make_ledger()
        with pytest.raises(ValueError):
            ledger.transfer_in(DAI, 0)
        with pytest.raises(BalanceBelowMinimumError):
            ledger.transfer_out(DAI, 2000 * ONE)


class TestSwap:
    """Swaps keep working across weight changes."""

    def test_swap_moves_balances(self):
        ledger = make_ledger(swap_fee=10**12)
        before = ledger.get_spot_price(USDC, DAI)
        result = ledger.swap_exact_amount_in(USDC, 100 * ONE, DAI)

        assert 90 * ONE < result.amount_out < 100 * ONE
        assert ledger.get_balance(USDC) == 1100 * ONE
        assert ledger.get_balance(DAI) == 1000 * ONE - result.amount_out
        assert result.spot_price_after > before

    def test_min_amount_out(self):
        with pytest.raises(ValueError):
            make_ledger().swap_exact_amount_in(USDC, 100 * ONE, DAI, min_amount_out=100 * ONE)

    def test_paused(self):
        ledger = make_ledger()
        ledger.set_public_swap(False)
        with pytest.raises(SwapNotPublicError):
            ledger.swap_exact_amount_in(USDC, ONE, DAI)

    def test_max_in_ratio(self):
        with pytest.raises(MaxInRatioError):
            make_ledger().swap_exact_amount_in(USDC, 600 * ONE, DAI)

    def test_set_swap_fee(self):
        ledger = make_ledger()
        ledger.set_swap_fee(Bnum(10**16))
        assert ledger.swap_fee.value == 10**16
        with pytest.raises(InvalidFeeError):
            ledger.set_swap_fee(Bnum(ONE))
