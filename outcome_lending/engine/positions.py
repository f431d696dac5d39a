"""
positions.py - Pure state transitions for deposits, borrows and repayments

Each function takes the reserve and one principal's position by value and
returns the new (reserve, position) pair. Nothing is written anywhere; the
shell persists the returned records.

PRECONDITION: the reserve has already been advanced to the transition time
(see accrual.accrue()). Transitions read the indices as given.

Bookkeeping rules:
    supply       scaled with the liquidity index; withdrawals burn rounded up
    borrow       scaled with the variable borrow index, minted rounded up so
                 scaled_debt * index never falls below principal
    repay        interest first, then principal; the interest part is
                 realized into reserve.accumulated_spread. A partial repayment
                 must retire at least one unit of scaled debt
    liquidation  same debt reduction as repay, plus collateral seizure; a full
                 liquidation zeroes the position's debt and writes off any
                 debt left uncovered by collateral
"""

from __future__ import annotations
from dataclasses import replace
from typing import Tuple
import logging

from ..core import (
    ExceedsBalance, InsufficientCollateral, InvalidInput,
    ReserveState, RiskParameters, SupplyPosition, UserPosition,
)
from ..fixed_point import Rounding, mul_div
from .collateral import collateral_value, max_borrow
from .liquidation import LiquidationResult
from .scaled_balance import (
    scaled_debt_burned, scaled_debt_minted, scaled_supply, scaled_supply_burned,
    user_debt, user_supply,
)


logger = logging.getLogger(__name__)

BorrowTransition = Tuple[ReserveState, UserPosition]
SupplyTransition = Tuple[ReserveState, SupplyPosition]


def _require_positive(name: str, amount: int) -> None:
    if amount <= 0:
        raise InvalidInput(f"{name} must be positive, got {amount}")


# ============================================================================
# SUPPLY SIDE
# ============================================================================

def supply(reserve: ReserveState, position: SupplyPosition, amount: int) -> SupplyTransition:
    """
    Deposit quote liquidity; the position is created on first supply.

    Raises:
        InvalidInput: if amount is too small to mint any scaled supply.
    """
    _require_positive("amount", amount)
    scaled = scaled_supply(amount, reserve.liquidity_index)
    if scaled == 0:
        raise InvalidInput(f"supply {amount} mints no scaled balance at index {reserve.liquidity_index}")

    new_reserve = replace(
        reserve,
        total_scaled_supplied=reserve.total_scaled_supplied + scaled,
        total_supplied=reserve.total_supplied + amount,
    )
    new_position = replace(
        position,
        supply_amount=position.supply_amount + amount,
        scaled_supply_balance=position.scaled_supply_balance + scaled,
    )
    return new_reserve, new_position


def withdraw_supply(reserve: ReserveState, position: SupplyPosition, amount: int) -> SupplyTransition:
    """
    Withdraw quote liquidity, principal reduced in proportion to scaled balance burned.

    Raises:
        ExceedsBalance: if amount is more than the position's current balance.
    """
    _require_positive("amount", amount)
    balance = user_supply(position, reserve)
    if amount > balance:
        raise ExceedsBalance(f"withdrawal {amount} exceeds supply balance {balance}")

    if amount == balance:
        scaled_burn = position.scaled_supply_balance
        principal_burn = position.supply_amount
    else:
        scaled_burn = min(scaled_supply_burned(amount, reserve.liquidity_index), position.scaled_supply_balance)
        principal_burn = mul_div(
            position.supply_amount, scaled_burn, position.scaled_supply_balance, Rounding.DOWN)

    new_reserve = replace(
        reserve,
        total_scaled_supplied=max(0, reserve.total_scaled_supplied - scaled_burn),
        total_supplied=max(0, reserve.total_supplied - principal_burn),
    )
    new_position = SupplyPosition(
        supply_amount=position.supply_amount - principal_burn,
        scaled_supply_balance=position.scaled_supply_balance - scaled_burn,
    )
    return new_reserve, new_position


# ============================================================================
# COLLATERAL
# ============================================================================

def deposit_collateral(reserve: ReserveState, position: UserPosition, amount: int) -> BorrowTransition:
    """Pledge outcome tokens; the position is created on first deposit."""
    _require_positive("amount", amount)
    return (
        replace(reserve, total_collateral=reserve.total_collateral + amount),
        replace(position, collateral_amount=position.collateral_amount + amount),
    )


def withdraw_collateral(
    reserve: ReserveState,
    position: UserPosition,
    params: RiskParameters,
    price: int,
    amount: int,
) -> BorrowTransition:
    """
    Release pledged collateral.

    The remaining collateral must still support the current debt at the
    market's LTV.

    Raises:
        ExceedsBalance: if amount is more than the pledged collateral.
        InsufficientCollateral: if the remaining collateral cannot back the debt.
    """
    _require_positive("amount", amount)
    if amount > position.collateral_amount:
        raise ExceedsBalance(
            f"withdrawal {amount} exceeds collateral {position.collateral_amount}")

    remaining = position.collateral_amount - amount
    debt = user_debt(position, reserve)
    if debt > 0:
        value = collateral_value(remaining, price, params.collateral_decimals, params.quote_decimals)
        capacity = max_borrow(value, params.ltv)
        if debt > capacity:
            raise InsufficientCollateral(
                f"debt {debt} would exceed borrow capacity {capacity} after withdrawal")

    return (
        replace(reserve, total_collateral=max(0, reserve.total_collateral - amount)),
        replace(position, collateral_amount=remaining),
    )


# ============================================================================
# BORROW / REPAY
# ============================================================================

def borrow(
    reserve: ReserveState,
    position: UserPosition,
    params: RiskParameters,
    price: int,
    amount: int,
) -> BorrowTransition:
    """
    Draw quote against pledged collateral.

    Raises:
        InsufficientCollateral: if debt after the borrow exceeds max_borrow.
    """
    _require_positive("amount", amount)

    value = collateral_value(
        position.collateral_amount, price, params.collateral_decimals, params.quote_decimals)
    capacity = max_borrow(value, params.ltv)
    debt_after = user_debt(position, reserve) + amount
    if debt_after > capacity:
        raise InsufficientCollateral(
            f"debt {debt_after} would exceed borrow capacity {capacity}")

    scaled = scaled_debt_minted(amount, reserve.variable_borrow_index)
    new_reserve = replace(
        reserve,
        total_scaled_borrowed=reserve.total_scaled_borrowed + scaled,
        total_borrowed=reserve.total_borrowed + amount,
    )
    new_position = replace(
        position,
        borrow_amount=position.borrow_amount + amount,
        scaled_debt_balance=position.scaled_debt_balance + scaled,
    )
    return new_reserve, new_position


def _reduce_debt(
    reserve: ReserveState,
    position: UserPosition,
    amount: int,
    debt: int,
) -> BorrowTransition:
    """Apply a repayment of `amount` against a current debt of `debt`."""
    if amount == debt:
        scaled_burn = position.scaled_debt_balance
        principal_paid = position.borrow_amount
    else:
        accrued = max(0, debt - position.borrow_amount)
        principal_paid = min(position.borrow_amount, amount - min(amount, accrued))
        # the scaled balance left behind must still cover the principal left behind
        scaled_kept = scaled_debt_minted(position.borrow_amount - principal_paid, reserve.variable_borrow_index)
        scaled_burn = min(
            scaled_debt_burned(amount, reserve.variable_borrow_index),
            position.scaled_debt_balance - scaled_kept,
        )
        if scaled_burn <= 0:
            raise InvalidInput(
                f"repayment {amount} retires no scaled debt at index {reserve.variable_borrow_index}; "
                f"repay more or repay the full {debt}")

    interest_paid = max(0, amount - principal_paid)

    new_reserve = replace(
        reserve,
        total_scaled_borrowed=max(0, reserve.total_scaled_borrowed - scaled_burn),
        total_borrowed=max(0, reserve.total_borrowed - principal_paid),
        accumulated_spread=reserve.accumulated_spread + interest_paid,
    )
    new_position = replace(
        position,
        borrow_amount=position.borrow_amount - principal_paid,
        scaled_debt_balance=position.scaled_debt_balance - scaled_burn,
    )
    return new_reserve, new_position


def _close_debt(
    reserve: ReserveState,
    position: UserPosition,
    amount: int,
    debt: int,
) -> BorrowTransition:
    """Retire the whole debt, `amount` of it repaid and the rest written off."""
    accrued = max(0, debt - position.borrow_amount)
    interest_paid = min(amount, accrued)
    principal_paid = min(position.borrow_amount, amount - interest_paid)
    written_off = debt - amount
    if written_off > 0:
        logger.info(
            "writing off %d of debt %d (%d principal unpaid) uncovered by collateral",
            written_off, debt, position.borrow_amount - principal_paid,
        )

    new_reserve = replace(
        reserve,
        total_scaled_borrowed=max(0, reserve.total_scaled_borrowed - position.scaled_debt_balance),
        total_borrowed=max(0, reserve.total_borrowed - position.borrow_amount),
        accumulated_spread=reserve.accumulated_spread + interest_paid,
    )
    return new_reserve, replace(position, borrow_amount=0, scaled_debt_balance=0)


def repay(reserve: ReserveState, position: UserPosition, amount: int) -> BorrowTransition:
    """
    Repay debt, accrued spread first.

    A repayment equal to the full debt zeroes the position's debt fields.

    Raises:
        ExceedsBalance: if amount is more than the current debt.
        InvalidInput: if a partial amount is too small to retire any scaled debt.
    """
    _require_positive("amount", amount)
    debt = user_debt(position, reserve)
    if amount > debt:
        raise ExceedsBalance(f"repayment {amount} exceeds debt {debt}")
    return _reduce_debt(reserve, position, amount, debt)


# ============================================================================
# LIQUIDATION
# ============================================================================

def apply_liquidation(
    reserve: ReserveState,
    position: UserPosition,
    result: LiquidationResult,
) -> BorrowTransition:
    """
    Write a sized liquidation back to the reserve and position.

    A full liquidation always closes the debt: whatever the seized collateral
    did not cover is written off, including the case of a position with no
    collateral left, where nothing is repaid at all.
    """
    if result.debt_to_repay == 0 and not result.is_full_liquidation:
        return reserve, position
    if result.collateral_to_seize > position.collateral_amount:
        raise ExceedsBalance(
            f"seizure {result.collateral_to_seize} exceeds collateral {position.collateral_amount}")

    debt = user_debt(position, reserve)
    if result.debt_to_repay > debt:
        raise ExceedsBalance(f"liquidation repays {result.debt_to_repay} of debt {debt}")

    if result.is_full_liquidation:
        new_reserve, new_position = _close_debt(reserve, position, result.debt_to_repay, debt)
    else:
        new_reserve, new_position = _reduce_debt(reserve, position, result.debt_to_repay, debt)

    new_reserve = replace(
        new_reserve,
        total_collateral=max(0, new_reserve.total_collateral - result.collateral_to_seize),
    )
    new_position = replace(
        new_position,
        collateral_amount=new_position.collateral_amount - result.collateral_to_seize,
    )
    return new_reserve, new_position
