"""Token ledger for a weighted pool.

The ledger is the single source of truth for balances and weights. It tracks
two balances per token:

- balance: the amount the pool has recorded and prices against
- holdings: the amount the pool actually holds

They differ only after an exogenous transfer (a rebase, or tokens sent
straight to the pool). A resync reconciles them by moving the weight.
A weight change does the reverse and moves tokens to follow the weight.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from threading import Lock
from typing import Protocol, runtime_checkable

import structlog

from lbp.config import DEFAULT_POOL_CONFIG, PoolConfig
from lbp.constants import MAX_BOUND_TOKENS, MAX_FEE, MIN_BOUND_TOKENS, MIN_FEE
from lbp.errors import (
    BalanceBelowMinimumError,
    InvalidFeeError,
    InvalidPoolParamsError,
    StaleResyncError,
    SwapNotPublicError,
    UnknownTokenError,
    WeightOutOfBoundsError,
)
from lbp.math.bnum import Bnum
from lbp.math.weighted_math import (
    calc_out_given_in,
    calc_resync_weight,
    calc_spot_price,
    calc_weight_change_balance,
)

logger = structlog.get_logger()


@dataclass
class TokenRecord:
    """Ledger entry for one bound token."""

    balance: int
    holdings: int
    weight: Bnum


@dataclass(frozen=True)
class WeightChange:
    """Outcome of a balance-adjusting weight change.

    Attributes:
        token: Token whose weight changed
        old_weight: Weight before the change
        new_weight: Weight after the change
        balance_delta: Tokens pulled into the pool (positive) or pushed out (negative)
        total_weight_before: Pool total weight just before this change
    """

    token: str
    old_weight: Bnum
    new_weight: Bnum
    balance_delta: int
    total_weight_before: int

    @property
    def delta_weight(self) -> int:
        return self.new_weight.value - self.old_weight.value


@dataclass(frozen=True)
class ResyncResult:
    """Outcome of a resync: the weight followed the balance, no tokens moved."""

    token: str
    old_weight: Bnum
    new_weight: Bnum
    old_balance: int
    new_balance: int


@dataclass(frozen=True)
class SwapResult:
    """Result of a swap through the pool."""

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    spot_price_after: Bnum


@runtime_checkable
class Ledger(Protocol):
    """Balance and weight ledger consumed by pool controllers."""

    @property
    def tokens(self) -> tuple[str, ...]: ...

    def get_balance(self, token: str) -> int: ...

    def get_weight(self, token: str) -> Bnum: ...

    def get_total_weight(self) -> Bnum: ...

    def get_spot_price(self, token_in: str, token_out: str) -> Bnum: ...

    def apply_weight_change(self, token: str, new_weight: Bnum) -> WeightChange: ...

    def apply_weight_changes(self, new_weights: Mapping[str, Bnum]) -> list[WeightChange]: ...

    def apply_resync(self, token: str) -> ResyncResult: ...


class MemoryLedger:
    """In-process ledger holding the state of one weighted pool.

    Each public mutator validates first and commits last under the ledger
    lock, so a failed call leaves the state untouched.
    """

    def __init__(
        self,
        tokens: Sequence[str],
        balances: Sequence[int],
        weights: Sequence[Bnum],
        swap_fee: Bnum,
        *,
        public_swap: bool = True,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
    ) -> None:
        if not MIN_BOUND_TOKENS <= len(tokens) <= MAX_BOUND_TOKENS:
            raise InvalidPoolParamsError(
                f"Pool needs {MIN_BOUND_TOKENS} to {MAX_BOUND_TOKENS} tokens, got {len(tokens)}"
            )
        if len(balances) != len(tokens) or len(weights) != len(tokens):
            raise InvalidPoolParamsError("tokens, balances and weights must have the same length")
        if len(set(tokens)) != len(tokens):
            raise InvalidPoolParamsError("tokens must be unique")

        self.config = config
        self._check_fee(swap_fee)

        total = 0
        for token, balance, weight in zip(tokens, balances, weights):
            self._check_weight(token, weight.value)
            self._check_balance(token, balance)
            total += weight.value
        if total > config.max_total_weight:
            raise WeightOutOfBoundsError("Initial weights exceed MAX_TOTAL_WEIGHT")

        self._tokens = tuple(tokens)
        self._records = {
            token: TokenRecord(balance=balance, holdings=balance, weight=Bnum(weight.value))
            for token, balance, weight in zip(tokens, balances, weights)
        }
        self._swap_fee = Bnum(swap_fee.value)
        self._public_swap = public_swap
        self._lock = Lock()

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _record(self, token: str) -> TokenRecord:
        try:
            return self._records[token]
        except KeyError:
            raise UnknownTokenError(f"Token {token} is not bound to this pool") from None

    def _check_weight(self, token: str, weight: int) -> None:
        if weight < self.config.min_weight:
            raise WeightOutOfBoundsError(f"Weight for {token} is below MIN_WEIGHT")
        if weight > self.config.max_weight:
            raise WeightOutOfBoundsError(f"Weight for {token} is above MAX_WEIGHT")

    def _check_balance(self, token: str, balance: int) -> None:
        if balance < self.config.min_balance:
            raise BalanceBelowMinimumError(f"Balance for {token} is below MIN_BALANCE")

    @staticmethod
    def _check_fee(fee: Bnum) -> None:
        if fee.value < MIN_FEE:
            raise InvalidFeeError(f"Swap fee {fee.value} is below MIN_FEE")
        if fee.value > MAX_FEE:
            raise InvalidFeeError(f"Swap fee {fee.value} is above MAX_FEE")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    @property
    def swap_fee(self) -> Bnum:
        return Bnum(self._swap_fee.value)

    @property
    def public_swap(self) -> bool:
        return self._public_swap

    def get_balance(self, token: str) -> int:
        """Recorded balance the pool prices against."""
        return self._record(token).balance

    def get_holdings(self, token: str) -> int:
        """Tokens actually held, including unrecorded exogenous transfers."""
        return self._record(token).holdings

    def get_weight(self, token: str) -> Bnum:
        return Bnum(self._record(token).weight.value)

    def get_weights(self) -> dict[str, Bnum]:
        return {token: self.get_weight(token) for token in self._tokens}

    def get_total_weight(self) -> Bnum:
        return Bnum(sum(record.weight.value for record in self._records.values()))

    def get_normalized_weight(self, token: str) -> Bnum:
        return self._record(token).weight.div(self.get_total_weight())

    def get_spot_price(self, token_in: str, token_out: str) -> Bnum:
        """Spot price of token_out in token_in, including the swap fee."""
        rec_in = self._record(token_in)
        rec_out = self._record(token_out)
        return calc_spot_price(
            Bnum(rec_in.balance), rec_in.weight, Bnum(rec_out.balance), rec_out.weight, self._swap_fee
        )

    def get_spot_price_sans_fee(self, token_in: str, token_out: str) -> Bnum:
        """Spot price of token_out in token_in without the fee adjustment."""
        rec_in = self._record(token_in)
        rec_out = self._record(token_out)
        return calc_spot_price(
            Bnum(rec_in.balance), rec_in.weight, Bnum(rec_out.balance), rec_out.weight, Bnum(0)
        )

    # -------------------------------------------------------------------------
    # Balance-adjusting weight changes
    # -------------------------------------------------------------------------

    def apply_weight_change(self, token: str, new_weight: Bnum) -> WeightChange:
        """Change one token's weight, moving tokens so balance / weight is kept."""
        return self.apply_weight_changes({token: new_weight})[0]

    def plan_weight_changes(self, new_weights: Mapping[str, Bnum]) -> list[WeightChange]:
        """Validate a batch of weight changes and compute them without committing."""
        with self._lock:
            return self._plan_weight_changes(new_weights)

    def apply_weight_changes(self, new_weights: Mapping[str, Bnum]) -> list[WeightChange]:
        """Change several weights atomically.

        Decreases are applied before increases so the running total weight
        never exceeds the final one. Everything is validated before anything
        is committed.

        Returns:
            One WeightChange per requested token, in application order
        """
        with self._lock:
            changes = self._plan_weight_changes(new_weights)
            for change in changes:
                record = self._records[change.token]
                record.weight = change.new_weight
                record.balance += change.balance_delta
                record.holdings += change.balance_delta

        for change in changes:
            if change.delta_weight != 0:
                logger.debug(
                    "ledger_weight_changed",
                    token=change.token,
                    old_weight=change.old_weight.value,
                    new_weight=change.new_weight.value,
                    balance_delta=change.balance_delta,
                )
        return changes

    def _plan_weight_changes(self, new_weights: Mapping[str, Bnum]) -> list[WeightChange]:
        for token, weight in new_weights.items():
            self._record(token)
            self._check_weight(token, weight.value)

        ordered = sorted(
            new_weights.items(),
            key=lambda item: item[1].value - self._records[item[0]].weight.value,
        )

        total_weight = sum(record.weight.value for record in self._records.values())
        changes = []
        for token, weight in ordered:
            record = self._records[token]
            delta = calc_weight_change_balance(record.balance, record.weight, weight)
            if record.balance + delta < self.config.min_balance:
                raise BalanceBelowMinimumError(f"Weight change would leave {token} below MIN_BALANCE")
            changes.append(
                WeightChange(
                    token=token,
                    old_weight=Bnum(record.weight.value),
                    new_weight=Bnum(weight.value),
                    balance_delta=delta,
                    total_weight_before=total_weight,
                )
            )
            total_weight += weight.value - record.weight.value
            if total_weight > self.config.max_total_weight:
                raise WeightOutOfBoundsError("Weight change exceeds MAX_TOTAL_WEIGHT")
        return changes

    # -------------------------------------------------------------------------
    # Resync
    # -------------------------------------------------------------------------

    def apply_resync(self, token: str) -> ResyncResult:
        """Absorb unrecorded holdings into the balance and scale the weight to match.

        Balance and weight scale by the same factor, so the token's spot price
        against every other token stays put. No tokens move.

        Raises:
            StaleResyncError: If holdings already equal the recorded balance
            WeightOutOfBoundsError: If the new weight or total leaves the bounds
            BalanceBelowMinimumError: If holdings fell below MIN_BALANCE
        """
        with self._lock:
            record = self._record(token)
            if record.holdings == record.balance:
                raise StaleResyncError(f"No balance change to resync for {token}")
            self._check_balance(token, record.holdings)

            new_weight = calc_resync_weight(record.weight, record.balance, record.holdings)
            self._check_weight(token, new_weight.value)
            total = (
                sum(r.weight.value for r in self._records.values())
                - record.weight.value
                + new_weight.value
            )
            if total > self.config.max_total_weight:
                raise WeightOutOfBoundsError("Resync exceeds MAX_TOTAL_WEIGHT")

            result = ResyncResult(
                token=token,
                old_weight=Bnum(record.weight.value),
                new_weight=new_weight,
                old_balance=record.balance,
                new_balance=record.holdings,
            )
            record.weight = new_weight
            record.balance = record.holdings
        return result

    # -------------------------------------------------------------------------
    # Exogenous transfers, fee and swaps
    # -------------------------------------------------------------------------

    def transfer_in(self, token: str, amount: int) -> None:
        """Tokens land on the pool without going through a pool operation."""
        if amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {amount}")
        with self._lock:
            self._record(token).holdings += amount

    def transfer_out(self, token: str, amount: int) -> None:
        """Tokens leave the pool without a pool operation (e.g. a negative rebase)."""
        if amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {amount}")
        with self._lock:
            record = self._record(token)
            if amount > record.holdings:
                raise BalanceBelowMinimumError(f"Cannot remove {amount} of {token}")
            record.holdings -= amount

    def set_swap_fee(self, swap_fee: Bnum) -> None:
        self._check_fee(swap_fee)
        with self._lock:
            self._swap_fee = Bnum(swap_fee.value)

    def set_public_swap(self, public: bool) -> None:
        with self._lock:
            self._public_swap = public

    def swap_exact_amount_in(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        min_amount_out: int = 0,
    ) -> SwapResult:
        """Sell amount_in of token_in for token_out at the weighted-pool price.

        Raises:
            SwapNotPublicError: If swapping is paused
            MaxInRatioError: If amount_in is more than half of balance_in
            ValueError: If the output is below min_amount_out
        """
        if not self._public_swap:
            raise SwapNotPublicError("Swapping is paused")
        with self._lock:
            rec_in = self._record(token_in)
            rec_out = self._record(token_out)
            amount_out = calc_out_given_in(
                Bnum(rec_in.balance),
                rec_in.weight,
                Bnum(rec_out.balance),
                rec_out.weight,
                Bnum(amount_in),
                self._swap_fee,
            ).value
            if amount_out < min_amount_out:
                raise ValueError(f"Output {amount_out} is below minimum {min_amount_out}")

            rec_in.balance += amount_in
            rec_in.holdings += amount_in
            rec_out.balance -= amount_out
            rec_out.holdings -= amount_out
            spot_after = calc_spot_price(
                Bnum(rec_in.balance),
                rec_in.weight,
                Bnum(rec_out.balance),
                rec_out.weight,
                self._swap_fee,
            )
        logger.debug(
            "ledger_swap",
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
        )
        return SwapResult(
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            spot_price_after=spot_after,
        )
