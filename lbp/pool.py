"""Pool controllers.

ConfigurableRightsPool wraps a weighted pool ledger with the operations a
liquidity bootstrapping pool needs: manual weight updates, gradual schedules
and pokes. ElasticSupplyPool keeps the same surface but only permits resync,
which lets a rebasing token's weight follow its supply without moving price.

Every mutator takes the pool lock, passes the capability guard, validates,
and only then commits to the ledger.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from threading import Lock
from typing import ClassVar

import structlog

from lbp.capabilities import CapabilitySet, Operation, PoolKind
from lbp.config import DEFAULT_POOL_CONFIG, PoolConfig
from lbp.constants import MAX_POOL_SUPPLY, MIN_POOL_SUPPLY
from lbp.errors import (
    CapExceededError,
    GradualUpdateInProgressError,
    InconsistentTimeLockError,
    InvalidSupplyError,
    PoolAlreadyCreatedError,
    PoolNotCreatedError,
    UnknownTokenError,
)
from lbp.ledger import MemoryLedger, ResyncResult, WeightChange
from lbp.math.bnum import Bnum
from lbp.math.weighted_math import calc_pool_shares
from lbp.models.params import PoolParams, Rights
from lbp.schedule import GradualUpdateScheduler, Schedule

logger = structlog.get_logger()

WeightInput = Bnum | Decimal | str | int


def _to_bnum(value: WeightInput) -> Bnum:
    """Accept a fixed-point Bnum or a human-readable decimal weight."""
    if isinstance(value, Bnum):
        return Bnum(value.value)
    return Bnum.from_decimal(value)


class ConfigurableRightsPool:
    """Liquidity bootstrapping pool controller.

    Usage:
        pool = ConfigurableRightsPool(params, Rights(can_change_weights=True))
        pool.create_pool(1000 * 10**18, 10, 10)
        pool.set_weight(usdc, Decimal("35.996"))
        pool.schedule_gradual({usdc: Bnum.from_int(4), hbt: Bnum.from_int(36)}, 100, 115, current_block=100)
        pool.poke(current_block=107)
    """

    kind: ClassVar[PoolKind] = PoolKind.STANDARD

    def __init__(
        self,
        params: PoolParams,
        rights: Rights | None = None,
        *,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
    ) -> None:
        self.params = params
        self.rights = rights if rights is not None else Rights()
        self.config = config
        self.capabilities = CapabilitySet.for_pool(self.kind, self.rights)

        self.total_supply = 0
        self.cap: int | None = None
        self.minimum_weight_change_block_period = config.default_min_weight_change_block_period
        self.add_token_time_lock_in_blocks = config.default_add_token_time_lock_in_blocks

        self._ledger: MemoryLedger | None = None
        self._scheduler: GradualUpdateScheduler | None = None
        self._state_lock = Lock()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(self.params.constituent_tokens)

    @property
    def created(self) -> bool:
        return self._ledger is not None

    @property
    def ledger(self) -> MemoryLedger:
        if self._ledger is None:
            raise PoolNotCreatedError("createPool has not been called")
        return self._ledger

    @property
    def schedule(self) -> Schedule | None:
        """The current gradual update, if one was ever scheduled."""
        if self._scheduler is None:
            return None
        return self._scheduler.schedule

    def get_weight(self, token: str) -> Bnum:
        return self.ledger.get_weight(token)

    def get_weights(self) -> dict[str, Bnum]:
        return self.ledger.get_weights()

    def get_total_weight(self) -> Bnum:
        return self.ledger.get_total_weight()

    def get_normalized_weight(self, token: str) -> Bnum:
        return self.ledger.get_normalized_weight(token)

    def get_balance(self, token: str) -> int:
        return self.ledger.get_balance(token)

    def get_spot_price(self, token_in: str, token_out: str) -> Bnum:
        return self.ledger.get_spot_price(token_in, token_out)

    def get_spot_price_sans_fee(self, token_in: str, token_out: str) -> Bnum:
        return self.ledger.get_spot_price_sans_fee(token_in, token_out)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_pool(
        self,
        initial_supply: int,
        minimum_weight_change_block_period: int | None = None,
        add_token_time_lock_in_blocks: int | None = None,
    ) -> MemoryLedger:
        """Bind the initial balances and weights and mint the initial pool shares.

        The short form (initial_supply only) uses the configured default
        periods. The extended form sets both periods and is subject to
        Operation.CREATE_POOL_EXTENDED.

        Raises:
            CapabilityDeniedError: If the extended form is not permitted
            PoolAlreadyCreatedError: If the pool was already created
            InvalidSupplyError: If initial_supply is outside [MIN_POOL_SUPPLY, MAX_POOL_SUPPLY]
            InconsistentTimeLockError: If the time lock exceeds the weight change period
        """
        extended = (
            minimum_weight_change_block_period is not None
            or add_token_time_lock_in_blocks is not None
        )
        if extended:
            self.capabilities.require(Operation.CREATE_POOL_EXTENDED)
            if minimum_weight_change_block_period is None or add_token_time_lock_in_blocks is None:
                raise ValueError(
                    "minimum_weight_change_block_period and add_token_time_lock_in_blocks "
                    "must be given together"
                )
            period = minimum_weight_change_block_period
            time_lock = add_token_time_lock_in_blocks
        else:
            period = self.config.default_min_weight_change_block_period
            time_lock = self.config.default_add_token_time_lock_in_blocks

        with self._state_lock:
            if self._ledger is not None:
                raise PoolAlreadyCreatedError("createPool can only be called once")
            if initial_supply < MIN_POOL_SUPPLY:
                raise InvalidSupplyError(f"Initial supply {initial_supply} below minimum")
            if initial_supply > MAX_POOL_SUPPLY:
                raise InvalidSupplyError(f"Initial supply {initial_supply} above maximum")
            if self.cap is not None and initial_supply > self.cap:
                raise CapExceededError(f"Initial supply {initial_supply} exceeds cap {self.cap}")
            if period < time_lock:
                raise InconsistentTimeLockError(
                    f"Add-token time lock {time_lock} exceeds weight change period {period}"
                )

            ledger = MemoryLedger(
                self.params.constituent_tokens,
                self.params.token_balances,
                [Bnum(w) for w in self.params.token_weights],
                Bnum(self.params.swap_fee),
                config=self.config,
            )
            self._ledger = ledger
            self._scheduler = GradualUpdateScheduler(self.tokens, period, self.config)
            self.minimum_weight_change_block_period = period
            self.add_token_time_lock_in_blocks = time_lock
            self.total_supply = initial_supply

        logger.info(
            "pool_created",
            symbol=self.params.pool_token_symbol,
            kind=self.kind.value,
            tokens=list(self.tokens),
            initial_supply=initial_supply,
            minimum_weight_change_block_period=period,
        )
        return ledger

    # -------------------------------------------------------------------------
    # Weight changes
    # -------------------------------------------------------------------------

    def _require_created(self) -> tuple[MemoryLedger, GradualUpdateScheduler]:
        if self._ledger is None or self._scheduler is None:
            raise PoolNotCreatedError("createPool has not been called")
        return self._ledger, self._scheduler

    def _commit_weights(self, new_weights: Mapping[str, Bnum]) -> list[WeightChange]:
        """Apply weight changes, minting or burning pool shares for each one.

        Shares scale with delta_weight / total_weight so holders keep their
        claim on the pool. The cap is checked before the ledger commits.
        """
        ledger, _ = self._require_created()
        planned = ledger.plan_weight_changes(new_weights)

        supply = self.total_supply
        for change in planned:
            shares = calc_pool_shares(supply, abs(change.delta_weight), change.total_weight_before)
            if change.delta_weight > 0:
                supply += shares
                if self.cap is not None and supply > self.cap:
                    raise CapExceededError(f"Minting {shares} shares exceeds cap {self.cap}")
            elif change.delta_weight < 0:
                supply -= shares

        changes = ledger.apply_weight_changes(new_weights)
        self.total_supply = supply
        return changes

    def set_weight(self, token: str, value: WeightInput) -> WeightChange:
        """Set one token's weight directly, moving tokens in or out of the pool.

        The value is truncated to config.weight_decimals before it is applied,
        so get_weight returns the truncated value.

        Raises:
            CapabilityDeniedError: If manual weight updates are not permitted
            GradualUpdateInProgressError: If a schedule has not finished
            WeightOutOfBoundsError / BalanceBelowMinimumError: If bounds are violated
        """
        self.capabilities.require(Operation.SET_WEIGHT)
        new_weight = _to_bnum(value).truncate(self.config.weight_decimals)

        with self._state_lock:
            ledger, scheduler = self._require_created()
            if token not in ledger.tokens:
                raise UnknownTokenError(f"Token {token} is not bound to this pool")
            if scheduler.in_progress:
                raise GradualUpdateInProgressError(
                    "Cannot update weights while a gradual update is in progress"
                )
            change = self._commit_weights({token: new_weight})[0]

        logger.debug(
            "weight_updated",
            token=token,
            old_weight=change.old_weight.value,
            new_weight=change.new_weight.value,
            balance_delta=change.balance_delta,
            total_supply=self.total_supply,
        )
        return change

    def schedule_gradual(
        self,
        end_weights: Mapping[str, WeightInput] | Sequence[WeightInput],
        start_block: int,
        end_block: int,
        *,
        current_block: int,
    ) -> Schedule:
        """Schedule a linear move from the current weights to end_weights.

        end_weights is either a token -> weight mapping or a sequence in pool
        token order. The schedule starts at max(start_block, current_block) and
        replaces any previous one.

        Raises:
            CapabilityDeniedError: If gradual updates are not permitted
            InvalidRangeError: If end_block is before the effective start
            ScheduleTooShortError: If the range is below the minimum period
        """
        self.capabilities.require(Operation.SCHEDULE_GRADUAL)
        if isinstance(end_weights, Mapping):
            targets = {token: _to_bnum(w) for token, w in end_weights.items()}
        else:
            if len(end_weights) != len(self.tokens):
                raise UnknownTokenError(
                    f"Expected {len(self.tokens)} end weights, got {len(end_weights)}"
                )
            targets = {token: _to_bnum(w) for token, w in zip(self.tokens, end_weights)}

        with self._state_lock:
            ledger, scheduler = self._require_created()
            schedule = scheduler.build(
                ledger.get_weights(), targets, start_block, end_block, current_block
            )
            scheduler.install(schedule)

        logger.info(
            "gradual_update_scheduled",
            start_block=schedule.start_block,
            end_block=schedule.end_block,
            end_weights={t: w.value for t, w in schedule.end_weights.items()},
        )
        return schedule

    def poke(self, *, current_block: int) -> dict[str, Bnum]:
        """Move the weights to the scheduled target for current_block.

        Before the start block the target is the start weights; at or after
        the end block it is the end weights. Once the schedule has completed,
        pokes return the current weights and commit nothing, even if the
        weights were set manually afterwards.

        Returns:
            The weights after the poke

        Raises:
            CapabilityDeniedError: If pokes are not permitted
            NoActiveScheduleError: If nothing was ever scheduled
            InvalidRangeError: If current_block is before the previous poke
        """
        self.capabilities.require(Operation.POKE)

        with self._state_lock:
            ledger, scheduler = self._require_created()
            schedule = scheduler.schedule
            if schedule is not None and schedule.completed:
                weights = ledger.get_weights()
                logger.debug("poke_after_completion", block=current_block)
                return weights
            target = scheduler.target(current_block)
            changes = self._commit_weights(target)
            scheduler.mark_applied(current_block)
            completed = scheduler.schedule is not None and scheduler.schedule.completed
            weights = ledger.get_weights()

        moved = [c for c in changes if c.delta_weight != 0]
        logger.debug(
            "weights_poked",
            block=current_block,
            changed=len(moved),
            completed=completed,
        )
        return weights

    def resync_weight(self, token: str) -> ResyncResult:
        """Let a token's weight follow an exogenous balance change without moving price.

        Raises:
            CapabilityDeniedError: Unless this is an elastic supply pool
            StaleResyncError: If the balance did not change
        """
        self.capabilities.require(Operation.RESYNC)

        with self._state_lock:
            ledger, scheduler = self._require_created()
            if scheduler.in_progress:
                raise GradualUpdateInProgressError(
                    "Cannot resync while a gradual update is in progress"
                )
            result = ledger.apply_resync(token)

        logger.debug(
            "weight_resynced",
            token=token,
            old_weight=result.old_weight.value,
            new_weight=result.new_weight.value,
            old_balance=result.old_balance,
            new_balance=result.new_balance,
        )
        return result

    # -------------------------------------------------------------------------
    # Other rights-gated settings
    # -------------------------------------------------------------------------

    def set_swap_fee(self, swap_fee: Bnum | int) -> None:
        """Change the swap fee, given as 18-decimal fixed point (requires can_change_swap_fee)."""
        self.capabilities.require(Operation.SET_SWAP_FEE)
        fee = Bnum(swap_fee.value) if isinstance(swap_fee, Bnum) else Bnum(swap_fee)
        with self._state_lock:
            ledger, _ = self._require_created()
            ledger.set_swap_fee(fee)
        logger.debug("swap_fee_updated", swap_fee=fee.value)

    def set_cap(self, cap: int | None) -> None:
        """Limit the pool share supply; None removes the limit (requires can_change_cap)."""
        self.capabilities.require(Operation.SET_CAP)
        if cap is not None and cap < 0:
            raise ValueError(f"Cap must be non-negative, got {cap}")
        with self._state_lock:
            self.cap = cap
        logger.debug("cap_updated", cap=cap)

    def set_public_swap(self, public: bool) -> None:
        """Pause or resume swapping (requires can_pause_swapping)."""
        self.capabilities.require(Operation.SET_PUBLIC_SWAP)
        with self._state_lock:
            ledger, _ = self._require_created()
            ledger.set_public_swap(public)
        logger.debug("public_swap_updated", public=public)


class ElasticSupplyPool(ConfigurableRightsPool):
    """Pool for a rebasing token whose only rebalancing primitive is resync.

    Weight updates, schedules, pokes and the extended createPool form are
    rejected with CapabilityDeniedError regardless of the rights given.
    """

    kind: ClassVar[PoolKind] = PoolKind.ELASTIC_SUPPLY
