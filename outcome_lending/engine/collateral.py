"""
collateral.py - Collateral valuation, borrow capacity and health factor

Key Formulas:
    collateral_value = amount * price * 10^quote_decimals / (WAD * 10^collateral_decimals)
    max_borrow       = collateral_value * ltv / 10000
    health_factor    = (collateral_value * liquidation_threshold / 10000) / total_debt

The health factor is a Wad; WAD (1.0) means exactly collateralized. Two edge
policies are part of the contract, not errors:

    total_debt == 0               -> MAX_HEALTH_FACTOR (never divides by zero)
    value == 0 and total_debt > 0 -> 0

A position is healthy when health_factor >= 1.0 and liquidatable otherwise.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..core import (
    WAD, MAX_HEALTH_FACTOR, HEALTH_FACTOR_LIQUIDATION_THRESHOLD,
    InvalidInput, ReserveState, RiskParameters, UserPosition,
)
from ..fixed_point import Rounding, mul_div, percent_mul, wad_div
from .scaled_balance import user_debt


@dataclass(frozen=True, slots=True)
class HealthStatus:
    """
    Immutable result of assess_position().

    All amounts are in quote units; health_factor is a Wad.
    """
    collateral_value: int
    total_debt: int
    max_borrow: int
    available_to_borrow: int
    health_factor: int
    healthy: bool

    @property
    def liquidatable(self) -> bool:
        return not self.healthy


# ============================================================================
# VALUATION
# ============================================================================

def collateral_value(amount: int, price: int, collateral_decimals: int, quote_decimals: int) -> int:
    """
    Value of a collateral amount in quote units.

    The decimal-base conversion is carried in one exact product followed by a
    single floor division, so nothing is truncated before the target decimals.

    Args:
        amount: Collateral in its smallest unit
        price: Wad price of one whole collateral token in quote
        collateral_decimals: Decimals of the collateral token
        quote_decimals: Decimals of the quote token

    Example:
        # 100 outcome tokens (6 dp) at $0.80 -> 80 USDC (6 dp)
        collateral_value(100_000_000, to_wad("0.8"), 6, 6) == 80_000_000
    """
    if amount < 0:
        raise InvalidInput(f"amount cannot be negative, got {amount}")
    if price < 0:
        raise InvalidInput(f"price cannot be negative, got {price}")
    if collateral_decimals < 0 or quote_decimals < 0:
        raise InvalidInput("decimals cannot be negative")

    return mul_div(
        amount * 10 ** quote_decimals,
        price,
        WAD * 10 ** collateral_decimals,
        Rounding.DOWN,
    )


def max_borrow(value: int, ltv_bps: int) -> int:
    """Largest debt the collateral value supports at the loan-to-value ratio."""
    return percent_mul(value, ltv_bps)


def available_to_borrow(value: int, total_debt: int, ltv_bps: int) -> int:
    """Remaining borrow capacity, never negative."""
    return max(0, max_borrow(value, ltv_bps) - total_debt)


# ============================================================================
# HEALTH FACTOR
# ============================================================================

def health_factor(value: int, total_debt: int, threshold_bps: int) -> int:
    """
    Risk-adjusted collateral value over debt, as a Wad.

    Returns MAX_HEALTH_FACTOR when there is no debt and 0 when there is debt
    but no collateral value.
    """
    if value < 0 or total_debt < 0:
        raise InvalidInput(f"value and debt cannot be negative, got {value}, {total_debt}")

    if total_debt == 0:
        return MAX_HEALTH_FACTOR
    if value == 0:
        return 0

    return wad_div(percent_mul(value, threshold_bps), total_debt)


def is_healthy(hf: int) -> bool:
    return hf >= HEALTH_FACTOR_LIQUIDATION_THRESHOLD


def is_liquidatable(hf: int) -> bool:
    return not is_healthy(hf)


# ============================================================================
# POSITION ASSESSMENT
# ============================================================================

def assess_position(
    position: UserPosition,
    reserve: ReserveState,
    params: RiskParameters,
    price: int,
) -> HealthStatus:
    """
    Evaluate a borrower's position at a collateral price.

    The reserve must already be advanced to the evaluation time so that the
    debt includes all accrued spread.
    """
    value = collateral_value(
        position.collateral_amount, price,
        params.collateral_decimals, params.quote_decimals,
    )
    debt = user_debt(position, reserve)
    hf = health_factor(value, debt, params.liquidation_threshold)

    return HealthStatus(
        collateral_value=value,
        total_debt=debt,
        max_borrow=max_borrow(value, params.ltv),
        available_to_borrow=available_to_borrow(value, debt, params.ltv),
        health_factor=hf,
        healthy=is_healthy(hf),
    )
