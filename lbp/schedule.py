"""Gradual weight updates.

A Schedule records where the weights started, where they should end and the
block range in between. The scheduler validates new schedules and computes the
interpolated target for any block; committing the target is left to the pool.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog

from lbp.config import DEFAULT_POOL_CONFIG, PoolConfig
from lbp.curves import linear_weights
from lbp.errors import (
    InvalidRangeError,
    NoActiveScheduleError,
    ScheduleTooShortError,
    UnknownTokenError,
    WeightOutOfBoundsError,
)
from lbp.math.bnum import Bnum

logger = structlog.get_logger()


@dataclass
class Schedule:
    """An in-flight or completed gradual weight update.

    Attributes:
        start_weights: Weights at the moment the schedule was created
        end_weights: Weights reached at end_block
        start_block: First block of the update (never before the scheduling block)
        end_block: Block at which end_weights apply exactly
        completed: Set once a poke at or after end_block has committed end_weights
        last_applied_block: Block of the most recent committed poke, if any
    """

    start_weights: dict[str, Bnum]
    end_weights: dict[str, Bnum]
    start_block: int
    end_block: int
    completed: bool = field(default=False)
    last_applied_block: int | None = field(default=None)

    def is_terminal(self, block: int) -> bool:
        """Whether the schedule has reached its end weights at this block."""
        return block >= self.end_block


class GradualUpdateScheduler:
    """Validates and evaluates gradual weight updates for one pool.

    Holds at most one schedule; scheduling again replaces it, which is the only
    way to cancel an update in flight.
    """

    def __init__(
        self,
        tokens: tuple[str, ...],
        minimum_weight_change_block_period: int,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
    ) -> None:
        self.tokens = tokens
        self.minimum_weight_change_block_period = minimum_weight_change_block_period
        self.config = config
        self._schedule: Schedule | None = None

    @property
    def schedule(self) -> Schedule | None:
        return self._schedule

    @property
    def in_progress(self) -> bool:
        """True while a schedule exists that has not been poked to completion."""
        return self._schedule is not None and not self._schedule.completed

    def build(
        self,
        current_weights: Mapping[str, Bnum],
        end_weights: Mapping[str, Bnum],
        start_block: int,
        end_block: int,
        current_block: int,
    ) -> Schedule:
        """Validate a new schedule without installing it.

        Raises:
            InvalidRangeError: If end_block is before the effective start block
            ScheduleTooShortError: If the range is shorter than the minimum period
            UnknownTokenError: If end_weights does not cover exactly the pool tokens
            WeightOutOfBoundsError: If an end weight or their sum is out of bounds
        """
        actual_start = max(start_block, current_block)
        if end_block < actual_start:
            raise InvalidRangeError(
                f"End block {end_block} is before start block {actual_start}"
            )
        if end_block - actual_start < self.minimum_weight_change_block_period:
            raise ScheduleTooShortError(
                f"Schedule of {end_block - actual_start} blocks is below the minimum "
                f"of {self.minimum_weight_change_block_period}"
            )

        if set(end_weights) != set(self.tokens):
            raise UnknownTokenError(
                f"End weights {sorted(end_weights)} do not match pool tokens {sorted(self.tokens)}"
            )

        total = 0
        for token in self.tokens:
            weight = end_weights[token].value
            if weight < self.config.min_weight:
                raise WeightOutOfBoundsError(f"End weight for {token} is below MIN_WEIGHT")
            if weight > self.config.max_weight:
                raise WeightOutOfBoundsError(f"End weight for {token} is above MAX_WEIGHT")
            total += weight
        if total > self.config.max_total_weight:
            raise WeightOutOfBoundsError("End weights exceed MAX_TOTAL_WEIGHT")

        return Schedule(
            start_weights={t: Bnum(current_weights[t].value) for t in self.tokens},
            end_weights={t: Bnum(end_weights[t].value) for t in self.tokens},
            start_block=actual_start,
            end_block=end_block,
        )

    def install(self, schedule: Schedule) -> None:
        """Make schedule the active one, replacing any previous schedule."""
        if self._schedule is not None and not self._schedule.completed:
            logger.debug(
                "gradual_update_replaced",
                previous_end_block=self._schedule.end_block,
                new_end_block=schedule.end_block,
            )
        self._schedule = schedule

    def target(self, current_block: int) -> dict[str, Bnum]:
        """Interpolated weights for current_block.

        A completed schedule is terminal: its target is the end weights for
        any block.

        Raises:
            NoActiveScheduleError: If no schedule has been created
            InvalidRangeError: If current_block is before the last applied block
        """
        if self._schedule is None:
            raise NoActiveScheduleError("No gradual update has been scheduled")
        s = self._schedule
        if s.completed:
            return dict(s.end_weights)
        if s.last_applied_block is not None and current_block < s.last_applied_block:
            logger.warning(
                "poke_block_regressed",
                block=current_block,
                last_applied_block=s.last_applied_block,
            )
            raise InvalidRangeError(
                f"Block {current_block} is before the last applied block "
                f"{s.last_applied_block}"
            )
        return linear_weights(
            s.start_weights, s.end_weights, s.start_block, s.end_block, current_block
        )

    def mark_applied(self, current_block: int) -> None:
        """Record that the target for current_block was committed."""
        if self._schedule is None or self._schedule.completed:
            return
        self._schedule.last_applied_block = current_block
        if self._schedule.is_terminal(current_block):
            self._schedule.completed = True
