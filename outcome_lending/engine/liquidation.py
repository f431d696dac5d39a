"""
liquidation.py - Liquidation sizing under close factor and bonus

A liquidator repays part of an unhealthy borrower's debt and receives the
equivalent collateral plus a bonus:

    1. max_liquidatable    = user_debt * close_factor / 10000
    2. debt_to_repay       = min(requested, max_liquidatable, user_debt)
    3. base_collateral     = debt_to_repay in collateral units at price
    4. collateral_w_bonus  = base_collateral * (10000 + bonus) / 10000
    5. collateral_w_bonus > collateral_amount:
           seize everything, back-solve debt_to_repay from the collateral
           net of bonus, full liquidation
    6. otherwise:
           seize collateral_w_bonus, full iff debt_to_repay == user_debt

Invariants:
    debt_to_repay <= user_debt
    collateral_to_seize <= collateral_amount
    debt_to_repay > 0  <=>  collateral_to_seize > 0

Conversions round down, so rounding always favours the borrower. When rounding
drives one side to zero the whole liquidation sizes to zero. A position with no
collateral left sizes to zero as a full liquidation, so apply_liquidation()
writes its debt off.

Whether the position may be liquidated at all (health factor < 1.0) is the
caller's check; see collateral.is_liquidatable().
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from ..core import (
    BPS, WAD,
    InvalidInput, ReserveState, RiskParameters, UserPosition,
)
from ..fixed_point import Rounding, mul_div, percent_mul
from .collateral import collateral_value
from .scaled_balance import user_debt as current_user_debt


logger = logging.getLogger(__name__)


# ============================================================================
# INPUT / OUTPUT RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class LiquidationRequest:
    """
    Everything compute_liquidation() needs, captured at one point in time.

    user_debt and requested_debt are in quote units; collateral_amount in
    collateral units; collateral_price is a Wad.
    """
    user_debt: int
    collateral_amount: int
    collateral_price: int
    requested_debt: int
    close_factor_bps: int
    bonus_bps: int
    collateral_decimals: int
    quote_decimals: int

    def __post_init__(self):
        for name in ('user_debt', 'collateral_amount', 'collateral_price',
                     'requested_debt', 'close_factor_bps', 'bonus_bps',
                     'collateral_decimals', 'quote_decimals'):
            value = getattr(self, name)
            if value < 0:
                raise InvalidInput(f"{name} cannot be negative, got {value}")
        if self.close_factor_bps > BPS:
            raise InvalidInput(f"close_factor_bps must be <= {BPS}, got {self.close_factor_bps}")
        if self.bonus_bps > BPS:
            raise InvalidInput(f"bonus_bps must be <= {BPS}, got {self.bonus_bps}")


@dataclass(frozen=True, slots=True)
class LiquidationResult:
    """
    Immutable sizing of a single liquidation.

    bonus_amount is the part of collateral_to_seize beyond the repaid debt's
    market value, in collateral units.
    """
    debt_to_repay: int
    collateral_to_seize: int
    bonus_amount: int
    is_full_liquidation: bool


_NO_LIQUIDATION = LiquidationResult(
    debt_to_repay=0,
    collateral_to_seize=0,
    bonus_amount=0,
    is_full_liquidation=False,
)


# ============================================================================
# CONVERSIONS
# ============================================================================

def debt_to_collateral(debt: int, price: int, collateral_decimals: int, quote_decimals: int) -> int:
    """Collateral units worth `debt` quote units at price, rounded down."""
    if price <= 0:
        raise InvalidInput(f"collateral price must be positive, got {price}")
    return mul_div(
        debt * 10 ** collateral_decimals,
        WAD,
        price * 10 ** quote_decimals,
        Rounding.DOWN,
    )


# ============================================================================
# LIQUIDATION SIZING
# ============================================================================

def compute_liquidation(request: LiquidationRequest) -> LiquidationResult:
    """
    Size a liquidation.

    PURE FUNCTION - All inputs explicit in the request.

    Args:
        request: Debt, collateral, price and the market's liquidation terms

    Returns:
        LiquidationResult with the debt to repay and collateral to seize.

    Raises:
        InvalidInput: if requested_debt, user_debt or collateral_price is zero.

    Example:
        # 100 debt, 50% close factor, 5% bonus, collateral at $0.50
        result = compute_liquidation(LiquidationRequest(
            user_debt=100_000_000, collateral_amount=300_000_000,
            collateral_price=to_wad("0.5"), requested_debt=100_000_000,
            close_factor_bps=5000, bonus_bps=500,
            collateral_decimals=6, quote_decimals=6,
        ))
        # debt_to_repay=50 USDC, collateral_to_seize=105 tokens
    """
    if request.requested_debt == 0:
        raise InvalidInput("requested_debt must be positive")
    if request.user_debt == 0:
        raise InvalidInput("position has no debt to liquidate")
    if request.collateral_price == 0:
        raise InvalidInput("collateral price must be positive")

    max_liquidatable = percent_mul(request.user_debt, request.close_factor_bps)
    debt_to_repay = min(request.requested_debt, max_liquidatable, request.user_debt)
    if debt_to_repay == 0:
        return _NO_LIQUIDATION

    base_collateral = debt_to_collateral(
        debt_to_repay, request.collateral_price,
        request.collateral_decimals, request.quote_decimals,
    )
    collateral_with_bonus = mul_div(base_collateral, BPS + request.bonus_bps, BPS, Rounding.DOWN)

    if collateral_with_bonus > request.collateral_amount:
        collateral_to_seize = request.collateral_amount
        base_collateral = mul_div(
            request.collateral_amount, BPS, BPS + request.bonus_bps, Rounding.DOWN)
        debt_to_repay = min(
            debt_to_repay,
            collateral_value(
                base_collateral, request.collateral_price,
                request.collateral_decimals, request.quote_decimals,
            ),
        )
        is_full = True
        logger.debug(
            "liquidation capped by collateral: seize=%d repay=%d of debt=%d",
            collateral_to_seize, debt_to_repay, request.user_debt,
        )
    else:
        collateral_to_seize = collateral_with_bonus
        is_full = debt_to_repay == request.user_debt

    if debt_to_repay == 0 or collateral_to_seize == 0:
        if request.collateral_amount == 0:
            # nothing left to seize; the remaining debt is bad debt
            return LiquidationResult(0, 0, 0, is_full_liquidation=True)
        return _NO_LIQUIDATION

    return LiquidationResult(
        debt_to_repay=debt_to_repay,
        collateral_to_seize=collateral_to_seize,
        bonus_amount=collateral_to_seize - base_collateral,
        is_full_liquidation=is_full,
    )


def build_liquidation_request(
    position: UserPosition,
    reserve: ReserveState,
    params: RiskParameters,
    price: int,
    requested_debt: int,
) -> LiquidationRequest:
    """Assemble a LiquidationRequest from records; reserve must be advanced to now."""
    return LiquidationRequest(
        user_debt=current_user_debt(position, reserve),
        collateral_amount=position.collateral_amount,
        collateral_price=price,
        requested_debt=requested_debt,
        close_factor_bps=params.liquidation_close_factor,
        bonus_bps=params.liquidation_bonus,
        collateral_decimals=params.collateral_decimals,
        quote_decimals=params.quote_decimals,
    )
