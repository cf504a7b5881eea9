"""Protocol constants for Balancer V1 pools and configurable rights pools.

Values match BConst.sol and the smart pool BalancerConstants library.
"""

from lbp.math.bnum import BONE

# Token count limits for a bound pool
MIN_BOUND_TOKENS = 2
MAX_BOUND_TOKENS = 8

# Swap fee bounds (0.0001% to 10%)
MIN_FEE = BONE // 10**6
MAX_FEE = BONE // 10

# Denormalized weight bounds
MIN_WEIGHT = BONE
MAX_WEIGHT = BONE * 50
MAX_TOTAL_WEIGHT = BONE * 50

# Smallest balance a bound token may hold (1e-12 tokens)
MIN_BALANCE = BONE // 10**12

# Swap ratio limit
MAX_IN_RATIO = BONE // 2

# Pool share supply bounds for createPool
MIN_POOL_SUPPLY = BONE * 100
MAX_POOL_SUPPLY = BONE * 10**9

# Gradual update and add-token defaults used by the short createPool form
DEFAULT_MIN_WEIGHT_CHANGE_BLOCK_PERIOD = 90
DEFAULT_ADD_TOKEN_TIME_LOCK_IN_BLOCKS = 90

# Exponential presale curve: 6500 blocks per day over 5 days
BLOCKS_PER_DAY = 6500
DEFAULT_CURVE_BLOCKS = BLOCKS_PER_DAY * 5
