"""Pool configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from lbp.constants import (
    DEFAULT_ADD_TOKEN_TIME_LOCK_IN_BLOCKS,
    DEFAULT_MIN_WEIGHT_CHANGE_BLOCK_PERIOD,
    MAX_TOTAL_WEIGHT,
    MAX_WEIGHT,
    MIN_BALANCE,
    MIN_WEIGHT,
)


@dataclass(frozen=True)
class PoolConfig:
    """Centralized configuration for pool bounds and weight precision.

    Keeping these values in one place makes it easy to test with tighter or
    looser limits while the defaults stay identical to the on-chain constants.

    Attributes:
        min_weight: Smallest denormalized weight a token may have (1.0)
        max_weight: Largest denormalized weight a token may have (50.0)
        max_total_weight: Largest sum of denormalized weights (50.0)
        min_balance: Smallest balance a token may hold, in wei
        weight_decimals: Decimal places kept when a manual weight is applied.
            Digits beyond this are truncated, never rounded.
        default_min_weight_change_block_period: Minimum schedule length used
            by the short createPool form
        default_add_token_time_lock_in_blocks: Add-token time lock used by the
            short createPool form
    """

    min_weight: int = MIN_WEIGHT
    max_weight: int = MAX_WEIGHT
    max_total_weight: int = MAX_TOTAL_WEIGHT
    min_balance: int = MIN_BALANCE

    weight_decimals: int = 4

    default_min_weight_change_block_period: int = DEFAULT_MIN_WEIGHT_CHANGE_BLOCK_PERIOD
    default_add_token_time_lock_in_blocks: int = DEFAULT_ADD_TOKEN_TIME_LOCK_IN_BLOCKS

    def __post_init__(self) -> None:
        if not 0 <= self.weight_decimals <= 18:
            raise ValueError(f"weight_decimals must be in [0, 18], got {self.weight_decimals}")
        if self.min_weight <= 0 or self.min_weight > self.max_weight:
            raise ValueError("min_weight must be positive and not above max_weight")

    @classmethod
    def from_env(cls) -> PoolConfig:
        """Build a config from environment variables with defaults.

        - LBP_WEIGHT_DECIMALS: Decimal places kept for manual weights (default: 4)
        - LBP_MIN_WEIGHT_CHANGE_BLOCK_PERIOD: Default minimum schedule length (default: 90)
        - LBP_ADD_TOKEN_TIME_LOCK_IN_BLOCKS: Default add-token time lock (default: 90)
        """
        return cls(
            weight_decimals=int(os.environ.get("LBP_WEIGHT_DECIMALS", "4")),
            default_min_weight_change_block_period=int(
                os.environ.get(
                    "LBP_MIN_WEIGHT_CHANGE_BLOCK_PERIOD",
                    str(DEFAULT_MIN_WEIGHT_CHANGE_BLOCK_PERIOD),
                )
            ),
            default_add_token_time_lock_in_blocks=int(
                os.environ.get(
                    "LBP_ADD_TOKEN_TIME_LOCK_IN_BLOCKS",
                    str(DEFAULT_ADD_TOKEN_TIME_LOCK_IN_BLOCKS),
                )
            ),
        )


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
