"""Pool kinds and the operations each kind permits.

Every mutating pool operation goes through CapabilitySet.require, so the
permission logic lives in one place instead of being scattered across methods.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from lbp.errors import CapabilityDeniedError
from lbp.models.params import Rights

logger = structlog.get_logger()


class PoolKind(str, Enum):
    """Which rebalancing primitive a pool is built around."""

    STANDARD = "standard"
    ELASTIC_SUPPLY = "elastic_supply"


class Operation(str, Enum):
    """Mutating operations subject to a capability check."""

    SET_WEIGHT = "updateWeight"
    SCHEDULE_GRADUAL = "updateWeightsGradually"
    POKE = "pokeWeights"
    RESYNC = "resyncWeight"
    CREATE_POOL_EXTENDED = "createPool(initialSupply, minimumWeightChangeBlockPeriod, addTokenTimeLockInBlocks)"
    SET_SWAP_FEE = "setSwapFee"
    SET_CAP = "setCap"
    SET_PUBLIC_SWAP = "setPublicSwap"


# Operations that change weights on a schedule or by hand
_WEIGHT_OPERATIONS = frozenset({Operation.SET_WEIGHT, Operation.SCHEDULE_GRADUAL, Operation.POKE})


def _rights_operations(rights: Rights) -> set[Operation]:
    allowed = set()
    if rights.can_change_swap_fee:
        allowed.add(Operation.SET_SWAP_FEE)
    if rights.can_change_cap:
        allowed.add(Operation.SET_CAP)
    if rights.can_pause_swapping:
        allowed.add(Operation.SET_PUBLIC_SWAP)
    return allowed


@dataclass(frozen=True)
class CapabilitySet:
    """The operations a pool instance may perform.

    Attributes:
        kind: Pool kind the set was derived for
        allowed: Operations that pass the guard
    """

    kind: PoolKind
    allowed: frozenset[Operation]

    @classmethod
    def for_pool(cls, kind: PoolKind, rights: Rights) -> CapabilitySet:
        """Derive the capability set for a pool kind and its rights.

        Standard pools change weights only with can_change_weights and never
        resync. Elastic supply pools only resync: weight updates, schedules,
        pokes and the extended createPool form are always denied, whatever
        the rights say.
        """
        allowed = _rights_operations(rights)
        if kind is PoolKind.STANDARD:
            allowed.add(Operation.CREATE_POOL_EXTENDED)
            if rights.can_change_weights:
                allowed |= _WEIGHT_OPERATIONS
        else:
            allowed.add(Operation.RESYNC)
        return cls(kind=kind, allowed=frozenset(allowed))

    def allows(self, operation: Operation) -> bool:
        return operation in self.allowed

    def require(self, operation: Operation) -> None:
        """Raise CapabilityDeniedError unless operation is allowed."""
        if operation not in self.allowed:
            logger.warning(
                "capability_denied",
                operation=operation.value,
                kind=self.kind.value,
            )
            raise CapabilityDeniedError(operation.value, self.kind.value)
