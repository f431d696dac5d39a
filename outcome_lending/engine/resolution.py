"""
resolution.py - Settlement waterfall and pro-rata claims

When a prediction market resolves, the collateral held by the market is
redeemed and the proceeds are split once, in strict order, each tier funded
only by what the previous tiers left:

    1. Liquidity venue    min(redeemed, venue debt)
    2. Protocol           reserve_factor share of total spread
    3. LPs                the rest of total spread
    4. Excess             split lp_share_of_excess to LPs, remainder to borrowers

    total_spread = accumulated_spread
                 + max(0, total_scaled_borrowed * borrow_index - total_borrowed)

If a tier cannot be paid in full it takes whatever remains and every later
tier gets zero. Each tier's payout is computed as a difference from the running
remainder, so the four outputs always sum to exactly the redeemed total.

Individual claims are then paid pro-rata, rounded down, from the LP and
borrower pools. Rounding dust stays in the pool and belongs to the protocol.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
import logging

from ..core import (
    BPS, RAY,
    AlreadyResolved, InvalidInput, ReserveState, ResolutionRecord, RiskParameters,
    SupplyPosition, UserPosition,
)
from ..fixed_point import Rounding, mul_div, percent_mul, ray_mul
from .accrual import advance_indices


logger = logging.getLogger(__name__)


# ============================================================================
# INPUT / OUTPUT RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class WaterfallInput:
    """
    Inputs of the settlement waterfall.

    Amounts are quote units; current_borrow_index is a Ray.
    """
    total_redeemed: int
    liquidity_layer_debt: int
    accumulated_spread: int
    total_scaled_borrowed: int
    current_borrow_index: int
    total_borrowed_principal: int
    reserve_factor_bps: int
    lp_share_of_excess_bps: int

    def __post_init__(self):
        for name in ('total_redeemed', 'liquidity_layer_debt', 'accumulated_spread',
                     'total_scaled_borrowed', 'current_borrow_index',
                     'total_borrowed_principal', 'reserve_factor_bps',
                     'lp_share_of_excess_bps'):
            value = getattr(self, name)
            if value < 0:
                raise InvalidInput(f"{name} cannot be negative, got {value}")
        for name in ('reserve_factor_bps', 'lp_share_of_excess_bps'):
            if getattr(self, name) > BPS:
                raise InvalidInput(f"{name} must be <= {BPS}, got {getattr(self, name)}")
        if self.total_scaled_borrowed > 0 and self.current_borrow_index < RAY:
            raise InvalidInput(
                f"current_borrow_index must be >= RAY, got {self.current_borrow_index}")


@dataclass(frozen=True, slots=True)
class Distribution:
    """Outcome of the waterfall; the four fields sum to total_redeemed."""
    to_liquidity_layer: int
    protocol_pool: int
    lp_pool: int
    borrower_pool: int

    @property
    def total(self) -> int:
        return self.to_liquidity_layer + self.protocol_pool + self.lp_pool + self.borrower_pool


# ============================================================================
# WATERFALL
# ============================================================================

def compute_total_spread(
    accumulated_spread: int,
    total_scaled_borrowed: int,
    current_borrow_index: int,
    total_borrowed_principal: int,
) -> int:
    """Realized spread plus the spread still carried by outstanding debt."""
    if total_scaled_borrowed == 0:
        return accumulated_spread
    unrealized = ray_mul(total_scaled_borrowed, current_borrow_index) - total_borrowed_principal
    return accumulated_spread + max(0, unrealized)


def distribute_at_resolution(waterfall: WaterfallInput) -> Distribution:
    """
    Split redeemed collateral value across the four claimants.

    PURE FUNCTION - All inputs explicit.

    Example:
        # redeemed 150,000; venue debt 80,000; spread 9,000; 10% reserve; 50/50 excess
        # -> venue 80,000, protocol 900, LPs 38,600, borrowers 30,500
    """
    remaining = waterfall.total_redeemed

    to_liquidity_layer = min(remaining, waterfall.liquidity_layer_debt)
    remaining -= to_liquidity_layer

    total_spread = compute_total_spread(
        waterfall.accumulated_spread,
        waterfall.total_scaled_borrowed,
        waterfall.current_borrow_index,
        waterfall.total_borrowed_principal,
    )
    protocol_spread = percent_mul(total_spread, waterfall.reserve_factor_bps)
    lp_spread = total_spread - protocol_spread

    if remaining < protocol_spread:
        logger.debug("waterfall stopped at protocol tier: %d of %d paid", remaining, protocol_spread)
        return Distribution(
            to_liquidity_layer=to_liquidity_layer,
            protocol_pool=remaining,
            lp_pool=0,
            borrower_pool=0,
        )
    remaining -= protocol_spread

    if remaining < lp_spread:
        logger.debug("waterfall stopped at LP tier: %d of %d paid", remaining, lp_spread)
        return Distribution(
            to_liquidity_layer=to_liquidity_layer,
            protocol_pool=protocol_spread,
            lp_pool=remaining,
            borrower_pool=0,
        )
    remaining -= lp_spread

    lp_excess = percent_mul(remaining, waterfall.lp_share_of_excess_bps)
    return Distribution(
        to_liquidity_layer=to_liquidity_layer,
        protocol_pool=protocol_spread,
        lp_pool=lp_spread + lp_excess,
        borrower_pool=remaining - lp_excess,
    )


# ============================================================================
# PRO-RATA CLAIMS
# ============================================================================

def _pro_rata(pool: int, share: int, total: int) -> int:
    if pool < 0 or share < 0:
        raise InvalidInput(f"pool and share cannot be negative, got {pool}, {share}")
    if total == 0:
        return 0
    if share > total:
        raise InvalidInput(f"share ({share}) exceeds total ({total})")
    return mul_div(pool, share, total, Rounding.DOWN)


def lp_claim(user_scaled_supply: int, total_scaled_supplied: int, lp_pool: int) -> int:
    """An LP's share of the LP pool, by scaled supply; 0 when nothing is supplied."""
    return _pro_rata(lp_pool, user_scaled_supply, total_scaled_supplied)


def borrower_claim(user_collateral: int, total_collateral: int, borrower_pool: int) -> int:
    """A borrower's share of the borrower pool, by collateral; 0 when there is none."""
    return _pro_rata(borrower_pool, user_collateral, total_collateral)


def protocol_dust(pool: int, claims: Iterable[int]) -> int:
    """What is left in a pool after every claim is paid; accrues to the protocol."""
    return pool - sum(claims)


# ============================================================================
# MARKET RESOLUTION
# ============================================================================

def ensure_unresolved(record: Optional[ResolutionRecord]) -> None:
    if record is not None and record.resolved:
        raise AlreadyResolved(
            f"market already resolved at {record.resolution_timestamp}")


def resolve_market(
    reserve: ReserveState,
    params: RiskParameters,
    final_price: int,
    timestamp: int,
    total_redeemed: int,
    liquidity_layer_debt: int,
    existing: Optional[ResolutionRecord] = None,
) -> ResolutionRecord:
    """
    Build the one-time ResolutionRecord for a market.

    The reserve's borrow index is advanced to the resolution timestamp so that
    all spread up to settlement is counted.

    Args:
        reserve: Reserve as last persisted
        params: Market risk parameters
        final_price: Wad price the outcome token resolved at
        timestamp: Resolution time (unix seconds)
        total_redeemed: Quote proceeds of redeeming all market collateral
        liquidity_layer_debt: What the market owes the liquidity venue
        existing: Previously stored record, if any

    Raises:
        AlreadyResolved: if existing is already resolved.
    """
    ensure_unresolved(existing)

    update = advance_indices(reserve, params, timestamp)
    distribution = distribute_at_resolution(WaterfallInput(
        total_redeemed=total_redeemed,
        liquidity_layer_debt=liquidity_layer_debt,
        accumulated_spread=reserve.accumulated_spread,
        total_scaled_borrowed=reserve.total_scaled_borrowed,
        current_borrow_index=update.borrow_index,
        total_borrowed_principal=reserve.total_borrowed,
        reserve_factor_bps=params.reserve_factor,
        lp_share_of_excess_bps=params.lp_share_of_excess,
    ))

    logger.info(
        "market resolved at %d: redeemed=%d venue=%d protocol=%d lp=%d borrowers=%d",
        timestamp, total_redeemed, distribution.to_liquidity_layer,
        distribution.protocol_pool, distribution.lp_pool, distribution.borrower_pool,
    )

    return ResolutionRecord(
        resolved=True,
        resolution_timestamp=timestamp,
        final_price=final_price,
        lp_pool=distribution.lp_pool,
        borrower_pool=distribution.borrower_pool,
        protocol_pool=distribution.protocol_pool,
        total_collateral_redeemed=total_redeemed,
        amount_repaid_to_liquidity_layer=distribution.to_liquidity_layer,
    )


# ============================================================================
# POST-RESOLUTION SETTLEMENT
# ============================================================================

def _require_resolved(record: ResolutionRecord) -> None:
    if not record.resolved:
        raise InvalidInput("market is not resolved")


def settle_lp_position(
    record: ResolutionRecord,
    reserve: ReserveState,
    position: SupplyPosition,
) -> Tuple[int, SupplyPosition]:
    """
    Pay an LP's claim and close the position.

    reserve must be the snapshot taken at resolution; its totals stay frozen
    while claims are paid so every claim uses the same denominator.
    """
    _require_resolved(record)
    amount = lp_claim(position.scaled_supply_balance, reserve.total_scaled_supplied, record.lp_pool)
    return amount, SupplyPosition()


def settle_borrower_position(
    record: ResolutionRecord,
    reserve: ReserveState,
    position: UserPosition,
) -> Tuple[int, UserPosition]:
    """Pay a borrower's share of the excess and close the position."""
    _require_resolved(record)
    amount = borrower_claim(position.collateral_amount, reserve.total_collateral, record.borrower_pool)
    return amount, UserPosition()
