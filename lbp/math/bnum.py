"""Balancer V1 fixed point (Bnum) math library.

This module implements the 18-decimal unsigned fixed-point arithmetic used by
Balancer V1 pools (BNum.sol / BConst.sol). Unlike the V2 LogExpMath library,
V1 rounds multiplication and division half-up and computes fractional powers
with a binomial series approximation.

All values are stored as integers scaled by 10^18.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import ClassVar

__all__ = [
    # Classes
    "Bnum",
    # Errors
    "BnumError",
    "SubUnderflowError",
    "BpowBaseError",
    # Functions
    "btoi",
    "bfloor",
    "badd",
    "bsub",
    "bsub_sign",
    "bmul",
    "bdiv",
    "bpowi",
    "bpow_approx",
    "bpow",
    # Constants
    "BONE",
    "BPOW_PRECISION",
    "MIN_BPOW_BASE",
    "MAX_BPOW_BASE",
]

# =============================================================================
# Constants (BConst.sol)
# =============================================================================

BONE = 10**18

MIN_BPOW_BASE = 1
MAX_BPOW_BASE = 2 * BONE - 1
BPOW_PRECISION = BONE // 10**10


# =============================================================================
# Error classes
# =============================================================================


class BnumError(Exception):
    """Base error for Bnum operations."""

    pass


class SubUnderflowError(BnumError):
    """ERR_SUB_UNDERFLOW: subtraction would go below zero."""

    pass


class BpowBaseError(BnumError):
    """ERR_BPOW_BASE_TOO_LOW / ERR_BPOW_BASE_TOO_HIGH: base outside (0, 2)."""

    pass


# =============================================================================
# Core math functions (BNum.sol)
# =============================================================================


def btoi(a: int) -> int:
    """Integer part of a fixed-point value."""
    return a // BONE


def bfloor(a: int) -> int:
    """Fixed-point value with the fractional part dropped."""
    return btoi(a) * BONE


def badd(a: int, b: int) -> int:
    return a + b


def bsub(a: int, b: int) -> int:
    """Subtract b from a.

    Raises:
        SubUnderflowError: If b > a
    """
    if b > a:
        raise SubUnderflowError(f"{a} - {b} underflows")
    return a - b


def bsub_sign(a: int, b: int) -> tuple[int, bool]:
    """Absolute difference and whether a - b is negative."""
    if a >= b:
        return a - b, False
    return b - a, True


def bmul(a: int, b: int) -> int:
    """Multiply with half-up rounding: (a * b + 10^18 / 2) // 10^18"""
    return (a * b + BONE // 2) // BONE


def bdiv(a: int, b: int) -> int:
    """Divide with half-up rounding: (a * 10^18 + b / 2) // b"""
    if b == 0:
        raise ZeroDivisionError("Bnum division by zero")
    return (a * BONE + b // 2) // b


def bpowi(a: int, n: int) -> int:
    """Raise a fixed-point base to a non-negative integer power.

    Uses square-and-multiply with bmul rounding at every step.
    """
    z = a if n % 2 != 0 else BONE
    n //= 2
    while n != 0:
        a = bmul(a, a)
        if n % 2 != 0:
            z = bmul(z, a)
        n //= 2
    return z


def bpow_approx(base: int, exp: int, precision: int) -> int:
    """Approximate base^exp for a fractional exponent (0 <= exp < 1).

    Sums the binomial expansion of (1 + x)^exp with x = base - 1 until a term
    drops below precision.
    """
    a = exp
    x, xneg = bsub_sign(base, BONE)
    term = BONE
    total = term
    negative = False

    i = 1
    while term >= precision:
        big_k = i * BONE
        c, cneg = bsub_sign(a, bsub(big_k, BONE))
        term = bmul(term, bmul(c, x))
        term = bdiv(term, big_k)
        if term == 0:
            break

        if xneg:
            negative = not negative
        if cneg:
            negative = not negative
        if negative:
            total = bsub(total, term)
        else:
            total = badd(total, term)
        i += 1

    return total


def bpow(base: int, exp: int) -> int:
    """Compute base^exp where both are fixed-point and base is in (0, 2).

    Raises:
        BpowBaseError: If base is outside [MIN_BPOW_BASE, MAX_BPOW_BASE]
    """
    if base < MIN_BPOW_BASE:
        raise BpowBaseError(f"Base {base} too low")
    if base > MAX_BPOW_BASE:
        raise BpowBaseError(f"Base {base} too high")

    whole = bfloor(exp)
    remain = bsub(exp, whole)

    whole_pow = bpowi(base, btoi(whole))
    if remain == 0:
        return whole_pow

    partial = bpow_approx(base, remain, BPOW_PRECISION)
    return bmul(whole_pow, partial)


# =============================================================================
# Bnum class (wrapper for convenient usage)
# =============================================================================


class Bnum:
    """18-decimal unsigned fixed-point number stored as int.

    Example: 1.1 is stored as 1_100_000_000_000_000_000
    """

    ONE: ClassVar[int] = BONE

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Bnum:
        """Create from raw wei value (already scaled to 18 decimals)."""
        return cls(wei)

    @classmethod
    def from_int(cls, i: int) -> Bnum:
        """Create from integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    @classmethod
    def from_decimal(cls, d: Decimal | str | int) -> Bnum:
        """Create from decimal, truncating anything below 1 wei.

        Requires non-negative input (matches Solidity unsigned semantics).
        """
        d = Decimal(d)
        if d < 0:
            raise ValueError(f"Bnum.from_decimal requires non-negative input, got {d}")
        scaled = (d * cls.ONE).quantize(Decimal("1"), rounding=ROUND_DOWN)
        return cls(int(scaled))

    def to_decimal(self) -> Decimal:
        """Convert to Decimal for display."""
        return Decimal(self.value) / Decimal(self.ONE)

    def truncate(self, decimals: int) -> Bnum:
        """Drop digits beyond the given number of decimal places (floor)."""
        if decimals >= 18:
            return Bnum(self.value)
        unit = 10 ** (18 - decimals)
        return Bnum(self.value - self.value % unit)

    def mul(self, other: Bnum) -> Bnum:
        return Bnum(bmul(self.value, other.value))

    def div(self, other: Bnum) -> Bnum:
        return Bnum(bdiv(self.value, other.value))

    def add(self, other: Bnum) -> Bnum:
        return Bnum(badd(self.value, other.value))

    def sub(self, other: Bnum) -> Bnum:
        """Subtract other from self. Raises SubUnderflowError if negative."""
        return Bnum(bsub(self.value, other.value))

    def pow(self, exp: Bnum) -> Bnum:
        return Bnum(bpow(self.value, exp.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bnum):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"Bnum({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())
