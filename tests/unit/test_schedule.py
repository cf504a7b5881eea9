"""Tests for gradual update scheduling."""

import pytest

from lbp.config import PoolConfig
from lbp.errors import (
    InvalidRangeError,
    NoActiveScheduleError,
    ScheduleTooShortError,
    UnknownTokenError,
    WeightOutOfBoundsError,
)
from lbp.math.bnum import Bnum
from lbp.schedule import GradualUpdateScheduler, Schedule
from tests.helpers import DAI, HBT, ONE, USDC

CURRENT = {USDC: Bnum(4 * ONE), HBT: Bnum(36 * ONE)}
END = {USDC: Bnum(36 * ONE), HBT: Bnum(4 * ONE)}


@pytest.fixture
def scheduler() -> GradualUpdateScheduler:
    return GradualUpdateScheduler((USDC, HBT), minimum_weight_change_block_period=10)


class TestBuild:
    """Validation of new schedules."""

    def test_valid_schedule(self, scheduler: GradualUpdateScheduler):
        schedule = scheduler.build(CURRENT, END, 100, 115, current_block=100)
        assert schedule.start_block == 100
        assert schedule.end_block == 115
        assert schedule.start_weights == CURRENT
        assert schedule.end_weights == END
        assert not schedule.completed

    def test_past_start_moves_to_current_block(self, scheduler: GradualUpdateScheduler):
        schedule = scheduler.build(CURRENT, END, 90, 115, current_block=100)
        assert schedule.start_block == 100

    def test_future_start_is_kept(self, scheduler: GradualUpdateScheduler):
        schedule = scheduler.build(CURRENT, END, 110, 130, current_block=100)
        assert schedule.start_block == 110

    def test_end_before_start_raises(self, scheduler: GradualUpdateScheduler):
        with pytest.raises(InvalidRangeError):
            scheduler.build(CURRENT, END, 100, 95, current_block=100)

    def test_below_minimum_period_raises(self, scheduler: GradualUpdateScheduler):
        with pytest.raises(ScheduleTooShortError):
            scheduler.build(CURRENT, END, 100, 105, current_block=100)

    def test_too_short_is_an_invalid_range(self, scheduler: GradualUpdateScheduler):
        """Shortened by a late start: 90..105 becomes 100..105."""
        with pytest.raises(InvalidRangeError):
            scheduler.build(CURRENT, END, 90, 105, current_block=100)

    def test_exact_minimum_period(self, scheduler: GradualUpdateScheduler):
        schedule = scheduler.build(CURRENT, END, 100, 110, current_block=100)
        assert schedule.end_block - schedule.start_block == 10

    def test_missing_token_raises(self, scheduler: GradualUpdateScheduler):
        with pytest.raises(UnknownTokenError):
            scheduler.build(CURRENT, {USDC: Bnum(36 * ONE)}, 100, 115, current_block=100)

    def test_extra_token_raises(self, scheduler: GradualUpdateScheduler):
        end = {**END, DAI: Bnum(ONE)}
        with pytest.raises(UnknownTokenError):
            scheduler.build(CURRENT, end, 100, 115, current_block=100)

    @pytest.mark.parametrize(
        "end",
        [
            {USDC: Bnum(ONE // 2), HBT: Bnum(4 * ONE)},
            {USDC: Bnum(51 * ONE), HBT: Bnum(4 * ONE)},
            {USDC: Bnum(30 * ONE), HBT: Bnum(30 * ONE)},
        ],
        ids=["below_min", "above_max", "total_above_max"],
    )
    def test_weight_bounds(self, scheduler: GradualUpdateScheduler, end: dict):
        with pytest.raises(WeightOutOfBoundsError):
            scheduler.build(CURRENT, end, 100, 115, current_block=100)

    def test_custom_bounds(self):
        config = PoolConfig(max_weight=20 * ONE, max_total_weight=40 * ONE)
        scheduler = GradualUpdateScheduler((USDC, HBT), 10, config)
        with pytest.raises(WeightOutOfBoundsError):
            scheduler.build(CURRENT, END, 100, 115, current_block=100)

    def test_build_does_not_install(self, scheduler: GradualUpdateScheduler):
        scheduler.build(CURRENT, END, 100, 115, current_block=100)
        assert scheduler.schedule is None


class TestTarget:
    """Interpolated targets and completion."""

    def test_no_schedule_raises(self, scheduler: GradualUpdateScheduler):
        with pytest.raises(NoActiveScheduleError):
            scheduler.target(100)

    def test_target_follows_line(self, scheduler: GradualUpdateScheduler):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        assert scheduler.target(100) == CURRENT
        assert scheduler.target(115) == END
        assert scheduler.target(107)[USDC].value == 18_933_333_333_333_333_333

    def test_in_progress_until_terminal_block_applied(
        self, scheduler: GradualUpdateScheduler
    ):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        assert scheduler.in_progress

        scheduler.mark_applied(110)
        assert scheduler.in_progress

        scheduler.mark_applied(115)
        assert not scheduler.in_progress
        assert scheduler.schedule is not None
        assert scheduler.schedule.completed

    def test_replacing_schedule(self, scheduler: GradualUpdateScheduler):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        replacement = scheduler.build(CURRENT, CURRENT, 105, 120, current_block=105)
        scheduler.install(replacement)
        assert scheduler.schedule is replacement
        assert scheduler.target(120) == CURRENT

    def test_completed_target_is_end_weights(self, scheduler: GradualUpdateScheduler):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        scheduler.mark_applied(115)
        assert scheduler.target(105) == END
        assert scheduler.target(500) == END

    def test_target_before_last_applied_block_raises(self, scheduler: GradualUpdateScheduler):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        scheduler.mark_applied(110)
        assert scheduler.schedule.last_applied_block == 110

        with pytest.raises(InvalidRangeError, match="last applied block"):
            scheduler.target(103)
        assert scheduler.target(110)[USDC].value == 25_333_333_333_333_333_333

    def test_new_schedule_has_no_applied_block(self, scheduler: GradualUpdateScheduler):
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        scheduler.mark_applied(110)
        scheduler.install(scheduler.build(CURRENT, END, 100, 115, current_block=100))
        assert scheduler.schedule.last_applied_block is None
        assert scheduler.target(103)[USDC].value == 10_400_000_000_000_000_000


class TestScheduleRecord:
    def test_is_terminal(self):
        schedule = Schedule(dict(CURRENT), dict(END), 100, 115)
        assert not schedule.is_terminal(114)
        assert schedule.is_terminal(115)
        assert schedule.is_terminal(200)
