"""
fixed_point.py - Wad/Ray/basis-point integer arithmetic

Every amount, price, rate and index in the engine is an integer scaled by one
of three bases:

    WAD = 1e18   amounts and prices
    RAY = 1e27   rates and indices (extra precision for compounding)
    BPS = 1e4    percentages (0-10000)

Multiplication and division round half-up unless an explicit rounding mode is
requested through mul_div(). Conversions from human values go through Decimal
so that "0.02" becomes exactly 2 * 10**25 in Ray.

Key Formulas:
    wad_mul(a, b) = (a * b + WAD/2) // WAD
    ray_div(a, b) = (a * RAY + b/2) // b
    percent_mul(v, bps) = (v * bps + BPS/2) // BPS
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import Union

from .core import (
    InvalidInput,
    WAD, RAY, WAD_RAY_RATIO, BPS,
)


# Precision wide enough for any 256-bit integer scaled by a Ray.
_CONVERSION_PRECISION = 100

# Human-readable inputs accepted by the to_* converters.
Numeric = Union[int, float, str, Decimal]


class Rounding(Enum):
    """Rounding direction for mul_div()."""
    DOWN = "down"
    UP = "up"
    HALF_UP = "half_up"


# ============================================================================
# VALIDATION
# ============================================================================

def _require_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise InvalidInput(f"{name} cannot be negative, got {value}")


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")


# ============================================================================
# GENERIC MUL-DIV
# ============================================================================

def mul_div(a: int, b: int, denominator: int, rounding: Rounding = Rounding.DOWN) -> int:
    """
    Compute a * b / denominator with a single, explicit rounding step.

    The product is exact (Python integers do not overflow), so the only
    rounding happens in the final division.

    Raises:
        InvalidInput: if any operand is negative or the denominator is zero.
    """
    _require_non_negative("a", a)
    _require_non_negative("b", b)
    _require_positive("denominator", denominator)

    product = a * b
    if rounding is Rounding.DOWN:
        return product // denominator
    if rounding is Rounding.UP:
        return -(-product // denominator)
    return (product + denominator // 2) // denominator


# ============================================================================
# WAD / RAY
# ============================================================================

def wad_mul(a: int, b: int) -> int:
    """Multiply two Wad values, rounding half up."""
    return mul_div(a, b, WAD, Rounding.HALF_UP)


def wad_div(a: int, b: int) -> int:
    """Divide two Wad values, rounding half up."""
    return mul_div(a, WAD, b, Rounding.HALF_UP)


def ray_mul(a: int, b: int) -> int:
    """Multiply two Ray values, rounding half up."""
    return mul_div(a, b, RAY, Rounding.HALF_UP)


def ray_div(a: int, b: int) -> int:
    """Divide two Ray values, rounding half up."""
    return mul_div(a, RAY, b, Rounding.HALF_UP)


def wad_to_ray(a: int) -> int:
    _require_non_negative("a", a)
    return a * WAD_RAY_RATIO


def ray_to_wad(a: int) -> int:
    """Narrow a Ray value to Wad, rounding half up."""
    return mul_div(a, 1, WAD_RAY_RATIO, Rounding.HALF_UP)


# ============================================================================
# PERCENTAGE MATH (basis points)
# ============================================================================

def percent_mul(value: int, bps: int) -> int:
    """Apply a basis-point percentage to value, rounding half up."""
    return mul_div(value, bps, BPS, Rounding.HALF_UP)


def percent_div(value: int, bps: int) -> int:
    """Divide value by a basis-point percentage, rounding half up."""
    return mul_div(value, BPS, bps, Rounding.HALF_UP)


# ============================================================================
# CONVERSIONS
# ============================================================================

def _to_decimal(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the literal the caller typed, not the binary expansion
        return Decimal(str(value))
    return Decimal(value)


def _scale(value: Numeric, base: int) -> int:
    with localcontext() as ctx:
        ctx.prec = _CONVERSION_PRECISION
        scaled = (_to_decimal(value) * base).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)
    return int(scaled)


def _unscale(value: int, base: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _CONVERSION_PRECISION
        return Decimal(value) / Decimal(base)


def to_wad(value: Numeric) -> int:
    """Convert a human value to Wad. to_wad("0.8") == 8 * 10**17."""
    return _scale(value, WAD)


def to_ray(value: Numeric) -> int:
    """Convert a human value to Ray. to_ray("0.02") == 2 * 10**25."""
    return _scale(value, RAY)


def to_bps(value: Numeric) -> int:
    """
    Convert a fraction or percentage string to basis points.

    Accepts "0.75", "75%" or an integer that is already in basis points.
    """
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().endswith("%"):
        return _scale(Decimal(value.strip()[:-1]) / 100, BPS)
    return _scale(value, BPS)


def to_units(value: Numeric, decimals: int) -> int:
    """Convert a whole-token amount to smallest units. to_units("1.5", 6) == 1500000."""
    return _scale(value, 10 ** decimals)


def from_wad(value: int) -> Decimal:
    return _unscale(value, WAD)


def from_ray(value: int) -> Decimal:
    return _unscale(value, RAY)


def from_units(value: int, decimals: int) -> Decimal:
    return _unscale(value, 10 ** decimals)
