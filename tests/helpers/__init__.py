"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token identifiers and fixed-point units
- factories: Pool parameter and pool factory functions
"""

from tests.helpers.constants import AMPL, DAI, HBT, ONE, SWAP_FEE, USDC
from tests.helpers.factories import make_elastic_pool, make_params, make_pool

__all__ = [
    # Constants
    "ONE",
    "USDC",
    "HBT",
    "DAI",
    "AMPL",
    "SWAP_FEE",
    # Factories
    "make_params",
    "make_pool",
    "make_elastic_pool",
]
