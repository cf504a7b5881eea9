"""Mathematical utilities for liquidity bootstrapping pools.

This package provides the fixed-point primitives and pool formulas:
- Bnum: 18-decimal fixed-point arithmetic (Balancer V1-style)
- weighted_math: spot price, swap, weight-change and resync formulas
"""

from lbp.math.bnum import Bnum

__all__ = ["Bnum"]
