"""
accrual.py - Compounding index accrual

Two indices track cumulative growth since a market was opened:

    variable_borrow_index   grows at the spread rate (what borrowers owe)
    liquidity_index         grows at the LP rate     (what suppliers earn)

Advancing a reserve from last_update_timestamp to now multiplies each index by
the compounded growth factor over the elapsed seconds:

    new_index = old_index * compound(rate, now - last_update_timestamp)

compound() is the third-order binomial expansion of (1 + r/YEAR)^t, which
keeps the arithmetic in integers. Because growth is multiplicative, advancing
in several steps lands close to advancing once over the whole interval; the
residual comes only from truncating the expansion and from Ray rounding.

Spread earned is the aggregate interest carried by the borrow index on top of
outstanding principal:

    spread_earned = max(0, total_scaled_borrowed * borrow_index - total_borrowed)

The clamp guards against the product rounding one unit below principal.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable
import logging

from ..core import (
    RAY, SECONDS_PER_YEAR,
    InvalidInput, ReserveState, RiskParameters, UserPosition,
)
from ..fixed_point import ray_mul
from .interest_rate import compute_lp_rate, compute_spread_rate
from .scaled_balance import real_debt


logger = logging.getLogger(__name__)


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class IndexUpdate:
    """Indices and aggregate spread of a reserve as of timestamp."""
    borrow_index: int
    liquidity_index: int
    spread_earned: int
    timestamp: int


@dataclass(frozen=True, slots=True)
class SpreadDrift:
    """
    Aggregate spread compared with the sum of per-account spread.

    drift = aggregate_spread - per_account_spread. Non-zero drift comes from
    per-account rounding at different index snapshots.
    """
    aggregate_spread: int
    per_account_spread: int
    drift: int


# ============================================================================
# COMPOUNDING
# ============================================================================

def compound(rate: int, elapsed: int) -> int:
    """
    Growth factor (Ray) of an annual Ray rate compounded per second.

    Approximates (1 + rate/SECONDS_PER_YEAR) ** elapsed with the first four
    binomial terms:

        1 + n*x + n(n-1)/2 * x^2 + n(n-1)(n-2)/6 * x^3,   x = rate / YEAR

    Exact for elapsed in {0, 1}; always >= RAY for rate >= 0.
    """
    if rate < 0:
        raise InvalidInput(f"rate cannot be negative, got {rate}")
    if elapsed < 0:
        raise InvalidInput(f"elapsed cannot be negative, got {elapsed}")
    if elapsed == 0 or rate == 0:
        return RAY

    n = elapsed
    n_minus_one = n - 1
    n_minus_two = n - 2 if n > 2 else 0

    base_power_two = ray_mul(rate, rate) // (SECONDS_PER_YEAR * SECONDS_PER_YEAR)
    base_power_three = ray_mul(base_power_two, rate) // SECONDS_PER_YEAR

    first_term = rate * n // SECONDS_PER_YEAR
    second_term = n * n_minus_one * base_power_two // 2
    third_term = n * n_minus_one * n_minus_two * base_power_three // 6

    return RAY + first_term + second_term + third_term


def _spread_earned(total_scaled_borrowed: int, borrow_index: int, total_borrowed: int) -> int:
    if total_scaled_borrowed == 0:
        return 0
    return max(0, real_debt(total_scaled_borrowed, borrow_index) - total_borrowed)


# ============================================================================
# INDEX ADVANCEMENT
# ============================================================================

def advance_indices(reserve: ReserveState, params: RiskParameters, now: int) -> IndexUpdate:
    """
    Advance both indices of a reserve to now.

    PURE FUNCTION - time comes in as a parameter, never from a clock.

    - Uninitialized reserve: both indices start at RAY, no spread.
    - now == last_update_timestamp: indices are returned unchanged.
    - Otherwise each index is compounded at its rate over the elapsed seconds,
      with rates taken at the utilization in effect since the last update.

    Args:
        reserve: Reserve snapshot as of its last_update_timestamp
        params: Market risk parameters (rate curve)
        now: Unix timestamp to advance to

    Returns:
        IndexUpdate with the new indices and aggregate spread earned.

    Raises:
        InvalidInput: if now is not positive or precedes the last update.
    """
    if now <= 0:
        raise InvalidInput(f"now must be a positive unix timestamp, got {now}")

    if not reserve.initialized:
        return IndexUpdate(borrow_index=RAY, liquidity_index=RAY, spread_earned=0, timestamp=now)

    if now < reserve.last_update_timestamp:
        raise InvalidInput(
            f"now ({now}) precedes last_update_timestamp ({reserve.last_update_timestamp})")

    elapsed = now - reserve.last_update_timestamp
    if elapsed == 0:
        return IndexUpdate(
            borrow_index=reserve.variable_borrow_index,
            liquidity_index=reserve.liquidity_index,
            spread_earned=_spread_earned(
                reserve.total_scaled_borrowed, reserve.variable_borrow_index, reserve.total_borrowed),
            timestamp=now,
        )

    spread_rate = compute_spread_rate(reserve.total_borrowed, reserve.total_supplied, params)
    lp_rate = compute_lp_rate(reserve.total_borrowed, reserve.total_supplied, params)

    borrow_index = ray_mul(reserve.variable_borrow_index, compound(spread_rate, elapsed))
    liquidity_index = ray_mul(reserve.liquidity_index, compound(lp_rate, elapsed))

    spread_earned = _spread_earned(reserve.total_scaled_borrowed, borrow_index, reserve.total_borrowed)

    logger.debug(
        "advanced indices over %ds: spread_rate=%d lp_rate=%d borrow_index=%d liquidity_index=%d",
        elapsed, spread_rate, lp_rate, borrow_index, liquidity_index,
    )

    return IndexUpdate(
        borrow_index=borrow_index,
        liquidity_index=liquidity_index,
        spread_earned=spread_earned,
        timestamp=now,
    )


def apply_index_update(reserve: ReserveState, update: IndexUpdate) -> ReserveState:
    """Return a copy of reserve carrying the indices and timestamp of update."""
    return replace(
        reserve,
        variable_borrow_index=update.borrow_index,
        liquidity_index=update.liquidity_index,
        last_update_timestamp=update.timestamp,
    )


def accrue(reserve: ReserveState, params: RiskParameters, now: int) -> ReserveState:
    """Convenience: advance_indices() then apply_index_update()."""
    return apply_index_update(reserve, advance_indices(reserve, params, now))


# ============================================================================
# MULTI-ACCOUNT RECONCILIATION
# ============================================================================

def compute_spread_drift(reserve: ReserveState, positions: Iterable[UserPosition]) -> SpreadDrift:
    """
    Compare the reserve's aggregate spread with the per-account sum.

    The aggregate is total_scaled_borrowed * index - total_borrowed. The
    per-account figure sums real_debt(scaled_debt) - borrow_amount over the
    given positions, each clamped at zero. With exact arithmetic the two are
    equal; in integers each account contributes its own rounding.

    Args:
        reserve: Reserve with indices already advanced
        positions: Every borrower position in the market

    Returns:
        SpreadDrift with both figures and their signed difference.
    """
    index = reserve.variable_borrow_index
    aggregate = _spread_earned(reserve.total_scaled_borrowed, index, reserve.total_borrowed)

    per_account = 0
    for position in positions:
        if position.scaled_debt_balance == 0:
            continue
        per_account += max(0, real_debt(position.scaled_debt_balance, index) - position.borrow_amount)

    return SpreadDrift(
        aggregate_spread=aggregate,
        per_account_spread=per_account,
        drift=aggregate - per_account,
    )
