"""Liquidity bootstrapping pool weight engine - Python Implementation."""

from lbp.capabilities import CapabilitySet, Operation, PoolKind
from lbp.clock import BlockClock
from lbp.config import DEFAULT_POOL_CONFIG, PoolConfig
from lbp.curves import ExponentialCurve, curve_weights, linear_weights
from lbp.ledger import Ledger, MemoryLedger, ResyncResult, WeightChange
from lbp.math.bnum import Bnum
from lbp.models import PoolParams, Rights
from lbp.pool import ConfigurableRightsPool, ElasticSupplyPool
from lbp.schedule import GradualUpdateScheduler, Schedule

__version__ = "0.1.0"
__all__ = [
    "Bnum",
    "BlockClock",
    "CapabilitySet",
    "ConfigurableRightsPool",
    "DEFAULT_POOL_CONFIG",
    "ElasticSupplyPool",
    "ExponentialCurve",
    "GradualUpdateScheduler",
    "Ledger",
    "MemoryLedger",
    "Operation",
    "PoolConfig",
    "PoolKind",
    "PoolParams",
    "ResyncResult",
    "Rights",
    "Schedule",
    "WeightChange",
    "curve_weights",
    "linear_weights",
    "__version__",
]
