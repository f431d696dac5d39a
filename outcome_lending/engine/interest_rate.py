"""
interest_rate.py - Kinked (two-slope) spread rate model

The protocol charges borrowers a spread on top of the liquidity venue's own
rate. The spread is a piecewise linear function of utilization:

    u = total_borrowed / total_supplied        (0 when nothing is supplied)

    u <= U*:  rate = base + slope1 * u
    u >  U*:  rate = base + slope1 * U* + slope2 * (u - U*)

Both slopes are non-negative, so the rate is non-decreasing in utilization.
The two branches meet at U*, so the curve is continuous at the kink.

The gross LP rate is spread_rate * u. The reserve factor is NOT applied here;
the protocol's cut is taken once, at settlement (see resolution.py).

All rates are Ray-scaled annual rates.
"""

from __future__ import annotations
from typing import Dict

import numpy as np

from ..core import RAY, RiskParameters, InvalidInput
from ..fixed_point import ray_div, ray_mul, to_ray


# ============================================================================
# UTILIZATION
# ============================================================================

def compute_utilization(total_borrowed: int, total_supplied: int) -> int:
    """
    Borrowed principal over supplied principal, as a Ray.

    Defined as 0 when nothing is supplied. Not capped at RAY: a market that
    has lent out more than its supplied principal reports u > 1.0 and sits on
    the steep slope.
    """
    if total_borrowed < 0 or total_supplied < 0:
        raise InvalidInput(
            f"totals cannot be negative, got borrowed={total_borrowed}, supplied={total_supplied}")
    if total_supplied == 0:
        return 0
    return ray_div(total_borrowed, total_supplied)


# ============================================================================
# RATES
# ============================================================================

def spread_rate_at_utilization(utilization: int, params: RiskParameters) -> int:
    """Evaluate the kinked curve at a Ray utilization."""
    if utilization < 0:
        raise InvalidInput(f"utilization cannot be negative, got {utilization}")

    optimal = params.optimal_utilization
    if utilization <= optimal:
        return params.base_spread_rate + ray_mul(params.slope1, utilization)

    return (
        params.base_spread_rate
        + ray_mul(params.slope1, optimal)
        + ray_mul(params.slope2, utilization - optimal)
    )


def compute_spread_rate(total_borrowed: int, total_supplied: int, params: RiskParameters) -> int:
    """
    Annual spread rate charged to borrowers at the current utilization.

    Example:
        # base=2%, slope1=4%, U*=80%, 50% utilized -> 4%
        compute_spread_rate(50, 100, params) == to_ray("0.04")
    """
    utilization = compute_utilization(total_borrowed, total_supplied)
    return spread_rate_at_utilization(utilization, params)


def compute_lp_rate(total_borrowed: int, total_supplied: int, params: RiskParameters) -> int:
    """Gross annual rate earned by suppliers: spread_rate * utilization."""
    utilization = compute_utilization(total_borrowed, total_supplied)
    return ray_mul(spread_rate_at_utilization(utilization, params), utilization)


# ============================================================================
# CURVE SAMPLING
# ============================================================================

def rate_curve(params: RiskParameters, n_points: int = 101) -> Dict[str, np.ndarray]:
    """
    Sample the spread and LP rate curves over utilization in [0, 1].

    Each point is evaluated with the integer model, then converted to float
    for plotting and inspection.

    Returns:
        Dict with float arrays: utilization, spread_rate, lp_rate
    """
    if n_points < 2:
        raise InvalidInput(f"n_points must be at least 2, got {n_points}")

    utilizations = np.linspace(0.0, 1.0, n_points)
    spread_rates = np.empty(n_points)
    lp_rates = np.empty(n_points)

    for i, u in enumerate(utilizations):
        u_ray = to_ray(repr(float(u)))
        spread = spread_rate_at_utilization(u_ray, params)
        spread_rates[i] = spread / RAY
        lp_rates[i] = ray_mul(spread, u_ray) / RAY

    return {
        'utilization': utilizations,
        'spread_rate': spread_rates,
        'lp_rate': lp_rates,
    }
