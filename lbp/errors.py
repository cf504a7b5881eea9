"""Pool error classes.

These errors map to the revert strings of the Balancer V1 pool and the
configurable rights pool contracts.
"""


class LbpError(Exception):
    """Base error for pool operations."""

    pass


class CapabilityDeniedError(LbpError):
    """ERR_UNSUPPORTED_OPERATION / ERR_NOT_CONFIGURABLE_*: operation not allowed for this pool."""

    def __init__(self, operation: str, kind: str) -> None:
        super().__init__(f"Operation {operation} is not permitted for {kind} pools")
        self.operation = operation
        self.kind = kind


class InvalidRangeError(LbpError):
    """ERR_GRADUAL_UPDATE_TIME_TRAVEL: end block before start block."""

    pass


class ScheduleTooShortError(InvalidRangeError):
    """ERR_WEIGHT_CHANGE_TIME_BELOW_MIN: schedule shorter than the minimum period."""

    pass


class NoActiveScheduleError(LbpError):
    """ERR_NO_UPDATE: poke called with nothing scheduled."""

    pass


class StaleResyncError(LbpError):
    """Resync called while the recorded balance already matches holdings."""

    pass


class GradualUpdateInProgressError(LbpError):
    """ERR_NO_UPDATE_DURING_GRADUAL: manual weight change during a schedule."""

    pass


class WeightOutOfBoundsError(LbpError):
    """ERR_MIN_WEIGHT / ERR_MAX_WEIGHT / ERR_MAX_TOTAL_WEIGHT."""

    pass


class BalanceBelowMinimumError(LbpError):
    """ERR_MIN_BALANCE: a token balance would drop below MIN_BALANCE."""

    pass


class UnknownTokenError(LbpError):
    """ERR_NOT_BOUND: token is not part of the pool."""

    pass


class PoolNotCreatedError(LbpError):
    """ERR_NOT_CREATED: createPool has not been called yet."""

    pass


class PoolAlreadyCreatedError(LbpError):
    """ERR_IS_CREATED: createPool can only be called once."""

    pass


class InvalidSupplyError(LbpError):
    """ERR_INIT_SUPPLY_MIN / ERR_INIT_SUPPLY_MAX."""

    pass


class InconsistentTimeLockError(LbpError):
    """ERR_INCONSISTENT_TOKEN_TIME_LOCK: time lock longer than weight change period."""

    pass


class InvalidFeeError(LbpError):
    """ERR_MIN_FEE / ERR_MAX_FEE: swap fee outside [MIN_FEE, MAX_FEE]."""

    pass


class CapExceededError(LbpError):
    """ERR_CAP_LIMIT_REACHED: minting would exceed the pool share cap."""

    pass


class SwapNotPublicError(LbpError):
    """ERR_SWAP_NOT_PUBLIC: swapping is paused."""

    pass


class MaxInRatioError(LbpError):
    """ERR_MAX_IN_RATIO: input amount exceeds half of balance_in."""

    pass


class InvalidCurveError(LbpError):
    """Curve parameters or step outside their valid domain."""

    pass


class InvalidPoolParamsError(LbpError):
    """Pool parameters are inconsistent (token count, lengths, duplicates)."""

    pass
