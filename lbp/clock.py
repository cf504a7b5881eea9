"""Explicit block counter.

Pools never read time on their own; callers pass the current block. This
counter is a convenience for drivers and tests that simulate block progression.
"""

from dataclasses import dataclass


@dataclass
class BlockClock:
    """Monotonic block number advanced only by explicit calls."""

    block: int = 0

    def advance(self, blocks: int = 1) -> int:
        """Move forward by `blocks` and return the new block number."""
        if blocks < 0:
            raise ValueError(f"Cannot move the clock backwards by {blocks} blocks")
        self.block += blocks
        return self.block
