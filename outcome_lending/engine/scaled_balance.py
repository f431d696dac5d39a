"""
scaled_balance.py - Index-scaled balance bookkeeping

Balances are stored divided by the index at the time of storage:

    scaled = amount / index      (stored form)
    real   = scaled * index      (read form)

so every account's balance grows with the index without a per-account write.
The round trip to_real(to_scaled(x, i), i) lands within ceil(i) smallest units
of x (half-up rounding on each leg).

Transitions round the stored side against the account instead: new debt is
minted rounded up, repaid debt is burned rounded down, withdrawn supply is
burned rounded up. Minting up keeps scaled_debt * index >= principal for every
position, and therefore for the reserve totals.

Two independent series use this math: debt is scaled by the variable borrow
index, supply by the liquidity index. The named wrappers below exist so a call
site always says which series it means; never scale a debt with the liquidity
index or a supply with the borrow index.
"""

from __future__ import annotations

from ..core import RAY, InvalidInput, ReserveState, SupplyPosition, UserPosition
from ..fixed_point import Rounding, mul_div, ray_div, ray_mul


def _check_index(index: int) -> None:
    if index < RAY:
        raise InvalidInput(f"index must be >= RAY, got {index}")


def to_scaled(amount: int, index: int) -> int:
    """Convert a real amount to its stored, index-scaled form."""
    _check_index(index)
    return ray_div(amount, index)


def to_real(scaled: int, index: int) -> int:
    """Convert a stored, index-scaled amount back to a real amount."""
    _check_index(index)
    return ray_mul(scaled, index)


def round_trip_tolerance(index: int) -> int:
    """Largest error to_real(to_scaled(x)) may show at this index, in smallest units."""
    _check_index(index)
    return -(-index // RAY)


# ============================================================================
# BORROW SERIES
# ============================================================================

def scaled_debt(amount: int, variable_borrow_index: int) -> int:
    return to_scaled(amount, variable_borrow_index)


def real_debt(scaled: int, variable_borrow_index: int) -> int:
    return to_real(scaled, variable_borrow_index)


def scaled_debt_minted(amount: int, variable_borrow_index: int) -> int:
    """Scaled debt recorded for a new borrow, rounded up so it always covers the principal."""
    _check_index(variable_borrow_index)
    return mul_div(amount, RAY, variable_borrow_index, Rounding.UP)


def scaled_debt_burned(amount: int, variable_borrow_index: int) -> int:
    """Scaled debt retired by a repayment, rounded down."""
    _check_index(variable_borrow_index)
    return mul_div(amount, RAY, variable_borrow_index, Rounding.DOWN)


def user_debt(position: UserPosition, reserve: ReserveState) -> int:
    """Current debt of a borrower, principal plus accrued spread."""
    if position.scaled_debt_balance == 0:
        return 0
    return real_debt(position.scaled_debt_balance, reserve.variable_borrow_index)


def total_debt(reserve: ReserveState) -> int:
    """Current debt of all borrowers in the market."""
    if reserve.total_scaled_borrowed == 0:
        return 0
    return real_debt(reserve.total_scaled_borrowed, reserve.variable_borrow_index)


# ============================================================================
# LIQUIDITY SERIES
# ============================================================================

def scaled_supply(amount: int, liquidity_index: int) -> int:
    return to_scaled(amount, liquidity_index)


def real_supply(scaled: int, liquidity_index: int) -> int:
    return to_real(scaled, liquidity_index)


def scaled_supply_burned(amount: int, liquidity_index: int) -> int:
    """Scaled supply retired by a withdrawal, rounded up."""
    _check_index(liquidity_index)
    return mul_div(amount, RAY, liquidity_index, Rounding.UP)


def user_supply(position: SupplyPosition, reserve: ReserveState) -> int:
    """Current balance of a liquidity provider, principal plus accrued yield."""
    if position.scaled_supply_balance == 0:
        return 0
    return real_supply(position.scaled_supply_balance, reserve.liquidity_index)
