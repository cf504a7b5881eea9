"""Pydantic models for pool parameters."""

from lbp.models.params import PoolParams, Rights
from lbp.models.types import UINT256_MAX, Uint256, validate_uint256

__all__ = [
    "PoolParams",
    "Rights",
    "Uint256",
    "UINT256_MAX",
    "validate_uint256",
]
