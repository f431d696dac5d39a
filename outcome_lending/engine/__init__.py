"""
Engine module - Pure calculation functions of the lending core.

Components, leaf to root:
- interest_rate: utilization -> spread rate (kinked curve)
- scaled_balance: real <-> index-scaled balances, borrow and liquidity series
- accrual: compounding index advancement and spread earned
- collateral: collateral value, borrow capacity, health factor
- liquidation: debt to repay / collateral to seize
- resolution: settlement waterfall and pro-rata claims
- positions: pure deposit / borrow / repay / liquidation transitions

All functions are re-exported here for convenience.
"""

from .interest_rate import (
    compute_utilization,
    compute_spread_rate,
    compute_lp_rate,
    spread_rate_at_utilization,
    rate_curve,
)

from .scaled_balance import (
    to_scaled,
    to_real,
    round_trip_tolerance,
    scaled_debt,
    real_debt,
    scaled_debt_minted,
    scaled_debt_burned,
    scaled_supply,
    real_supply,
    scaled_supply_burned,
    user_debt,
    user_supply,
    total_debt,
)

from .accrual import (
    IndexUpdate,
    SpreadDrift,
    compound,
    advance_indices,
    apply_index_update,
    accrue,
    compute_spread_drift,
)

from .collateral import (
    HealthStatus,
    collateral_value,
    max_borrow,
    available_to_borrow,
    health_factor,
    is_healthy,
    is_liquidatable,
    assess_position,
)

from .liquidation import (
    LiquidationRequest,
    LiquidationResult,
    debt_to_collateral,
    compute_liquidation,
    build_liquidation_request,
)

from .resolution import (
    WaterfallInput,
    Distribution,
    compute_total_spread,
    distribute_at_resolution,
    lp_claim,
    borrower_claim,
    protocol_dust,
    ensure_unresolved,
    resolve_market,
    settle_lp_position,
    settle_borrower_position,
)

from .positions import (
    supply,
    withdraw_supply,
    deposit_collateral,
    withdraw_collateral,
    borrow,
    repay,
    apply_liquidation,
)
