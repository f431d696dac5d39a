"""
outcome_lending - Calculation core of an outcome-token lending protocol

Holders of prediction-market outcome tokens borrow a quote asset against them;
liquidity providers earn a spread on deposits routed to an external liquidity
venue. This package computes every rate, index, balance and settlement
distribution as pure functions over immutable records. Storage, transfers,
oracles and access control belong to the caller.

Usage:
    from outcome_lending import (
        ReserveState, UserPosition, SupplyPosition, DEFAULT_RISK_PARAMETERS,
        accrue, supply, deposit_collateral, borrow, assess_position, to_wad,
    )

    params = DEFAULT_RISK_PARAMETERS
    reserve = accrue(ReserveState(), params, now=1_700_000_000)

    reserve, lp = supply(reserve, SupplyPosition(), 1_000_000_000)
    reserve, alice = deposit_collateral(reserve, UserPosition(), 500_000_000)
    reserve, alice = borrow(reserve, alice, params, to_wad("0.80"), 150_000_000)

    # One day later
    reserve = accrue(reserve, params, now=1_700_086_400)
    status = assess_position(alice, reserve, params, to_wad("0.80"))
"""

# Core types
from .core import (
    WAD,
    RAY,
    BPS,
    SECONDS_PER_YEAR,
    MAX_HEALTH_FACTOR,
    HEALTH_FACTOR_LIQUIDATION_THRESHOLD,
    LendingError,
    InvalidInput,
    InvalidParameters,
    InsufficientCollateral,
    ExceedsBalance,
    AlreadyResolved,
    RiskParameters,
    ReserveState,
    UserPosition,
    SupplyPosition,
    ResolutionRecord,
    PriceOracle,
    LiquidityLayerAdapter,
)

# Fixed-point math
from .fixed_point import (
    Rounding,
    mul_div,
    wad_mul,
    wad_div,
    ray_mul,
    ray_div,
    wad_to_ray,
    ray_to_wad,
    percent_mul,
    percent_div,
    to_wad,
    to_ray,
    to_bps,
    to_units,
    from_wad,
    from_ray,
    from_units,
)

# Engine
from .engine import (
    # Interest rate
    compute_utilization,
    compute_spread_rate,
    compute_lp_rate,
    spread_rate_at_utilization,
    rate_curve,
    # Scaled balances
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
    # Accrual
    IndexUpdate,
    SpreadDrift,
    compound,
    advance_indices,
    apply_index_update,
    accrue,
    compute_spread_drift,
    # Collateral
    HealthStatus,
    collateral_value,
    max_borrow,
    available_to_borrow,
    health_factor,
    is_healthy,
    is_liquidatable,
    assess_position,
    # Liquidation
    LiquidationRequest,
    LiquidationResult,
    debt_to_collateral,
    compute_liquidation,
    build_liquidation_request,
    # Resolution
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
    # Positions
    supply,
    withdraw_supply,
    deposit_collateral,
    withdraw_collateral,
    borrow,
    repay,
    apply_liquidation,
)

# Configuration
from .config import (
    DEFAULT_RISK_PARAMETERS,
    build_risk_parameters,
    load_markets,
    load_risk_parameters,
    configure_logging,
)

__all__ = [
    # Core
    'WAD', 'RAY', 'BPS', 'SECONDS_PER_YEAR',
    'MAX_HEALTH_FACTOR', 'HEALTH_FACTOR_LIQUIDATION_THRESHOLD',
    'LendingError', 'InvalidInput', 'InvalidParameters', 'InsufficientCollateral',
    'ExceedsBalance', 'AlreadyResolved',
    'RiskParameters', 'ReserveState', 'UserPosition', 'SupplyPosition', 'ResolutionRecord',
    'PriceOracle', 'LiquidityLayerAdapter',
    # Fixed-point
    'Rounding', 'mul_div', 'wad_mul', 'wad_div', 'ray_mul', 'ray_div',
    'wad_to_ray', 'ray_to_wad', 'percent_mul', 'percent_div',
    'to_wad', 'to_ray', 'to_bps', 'to_units', 'from_wad', 'from_ray', 'from_units',
    # Interest rate
    'compute_utilization', 'compute_spread_rate', 'compute_lp_rate',
    'spread_rate_at_utilization', 'rate_curve',
    # Scaled balances
    'to_scaled', 'to_real', 'round_trip_tolerance',
    'scaled_debt', 'real_debt', 'scaled_debt_minted', 'scaled_debt_burned',
    'scaled_supply', 'real_supply', 'scaled_supply_burned',
    'user_debt', 'user_supply', 'total_debt',
    # Accrual
    'IndexUpdate', 'SpreadDrift', 'compound', 'advance_indices',
    'apply_index_update', 'accrue', 'compute_spread_drift',
    # Collateral
    'HealthStatus', 'collateral_value', 'max_borrow', 'available_to_borrow',
    'health_factor', 'is_healthy', 'is_liquidatable', 'assess_position',
    # Liquidation
    'LiquidationRequest', 'LiquidationResult', 'debt_to_collateral',
    'compute_liquidation', 'build_liquidation_request',
    # Resolution
    'WaterfallInput', 'Distribution', 'compute_total_spread', 'distribute_at_resolution',
    'lp_claim', 'borrower_claim', 'protocol_dust', 'ensure_unresolved', 'resolve_market',
    'settle_lp_position', 'settle_borrower_position',
    # Positions
    'supply', 'withdraw_supply', 'deposit_collateral', 'withdraw_collateral',
    'borrow', 'repay', 'apply_liquidation',
    # Configuration
    'DEFAULT_RISK_PARAMETERS', 'build_risk_parameters', 'load_markets',
    'load_risk_parameters', 'configure_logging',
]

__version__ = '1.0.0'
