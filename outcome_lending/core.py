"""
Core types for the outcome-token lending engine.

This module provides the foundational data structures shared by every engine
component:
1. Constants: fixed-point bases, the health-factor sentinel, time units
2. Exceptions: LendingError and domain-specific error types
3. Immutable value records: RiskParameters, ReserveState, UserPosition,
   SupplyPosition, ResolutionRecord
4. Protocols: data contracts for the collaborators the shell talks to

All records are frozen. Engine functions take them by value and return new
instances built with dataclasses.replace(); nothing in the package mutates a
record in place or holds a reference across calls.

Units convention:
    amounts   -> int, smallest unit of the token (collateral or quote decimals)
    prices    -> int, Wad (quote per whole collateral token)
    rates     -> int, Ray, annualized
    indices   -> int, Ray, RAY == 1.0
    percents  -> int, basis points in [0, 10000]
    time      -> int, unix seconds
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Fixed-point bases.
WAD = 10 ** 18
HALF_WAD = WAD // 2
RAY = 10 ** 27
HALF_RAY = RAY // 2
WAD_RAY_RATIO = 10 ** 9

# Basis points: 10000 == 100%.
BPS = 10_000
HALF_BPS = BPS // 2

SECONDS_PER_YEAR = 365 * 24 * 60 * 60

# Health factor returned for a position with no debt (uint256 max).
MAX_HEALTH_FACTOR = 2 ** 256 - 1

# Health factor at which a position is exactly collateralized.
HEALTH_FACTOR_LIQUIDATION_THRESHOLD = WAD

# Token decimals beyond this are rejected as nonsensical configuration.
MAX_DECIMALS = 36


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """Base exception for all lending-engine errors."""
    pass


class InvalidInput(LendingError, ValueError):
    """Raised when a caller passes a value the operation is not defined for."""
    pass


class InvalidParameters(InvalidInput):
    """Raised when a RiskParameters record violates its configuration bounds."""
    pass


class InsufficientCollateral(LendingError):
    """Raised when a borrow or withdrawal would leave a position under-collateralized."""
    pass


class ExceedsBalance(LendingError):
    """Raised when a repayment or withdrawal exceeds the position's balance."""
    pass


class AlreadyResolved(LendingError):
    """Raised when a market that already has a ResolutionRecord is resolved again."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def _require_int(owner: str, name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{owner}.{name} must be int, got {type(value).__name__}")


def _require_non_negative_ints(owner: str, record: object, names: Tuple[str, ...]) -> None:
    for name in names:
        value = getattr(record, name)
        _require_int(owner, name, value)
        if value < 0:
            raise InvalidInput(f"{owner}.{name} cannot be negative, got {value}")


# ============================================================================
# RISK PARAMETERS
# ============================================================================

_RATE_FIELDS = ('base_spread_rate', 'optimal_utilization', 'slope1', 'slope2')
_BPS_FIELDS = (
    'reserve_factor', 'ltv', 'liquidation_threshold',
    'liquidation_close_factor', 'liquidation_bonus', 'lp_share_of_excess',
)


@dataclass(frozen=True, slots=True)
class RiskParameters:
    """
    Immutable per-market configuration.

    Set when a market is created and only changed by a privileged action that
    lives outside the engine. Rates are Ray-scaled annual rates; every
    percentage is in basis points.
    """
    base_spread_rate: int          # Ray, spread at zero utilization
    optimal_utilization: int       # Ray, kink of the rate curve (0, RAY]
    slope1: int                    # Ray, slope below the kink
    slope2: int                    # Ray, slope above the kink
    reserve_factor: int            # bps of spread kept by the protocol
    ltv: int                       # bps, max borrow against collateral value
    liquidation_threshold: int     # bps, collateral weight in the health factor
    liquidation_close_factor: int  # bps of debt repayable per liquidation
    liquidation_bonus: int         # bps of extra collateral paid to liquidators
    lp_share_of_excess: int        # bps of settlement excess paid to LPs
    collateral_decimals: int
    quote_decimals: int

    def __post_init__(self):
        try:
            _require_non_negative_ints(
                'RiskParameters', self, _RATE_FIELDS + _BPS_FIELDS
                + ('collateral_decimals', 'quote_decimals'))
        except InvalidInput as exc:
            raise InvalidParameters(str(exc)) from exc

        if self.optimal_utilization == 0 or self.optimal_utilization > RAY:
            raise InvalidParameters(
                f"optimal_utilization must be in (0, RAY], got {self.optimal_utilization}")

        for name in _BPS_FIELDS:
            value = getattr(self, name)
            if value > BPS:
                raise InvalidParameters(f"{name} must be in [0, {BPS}] bps, got {value}")

        if self.ltv > self.liquidation_threshold:
            raise InvalidParameters(
                f"ltv ({self.ltv}) cannot exceed "
                f"liquidation_threshold ({self.liquidation_threshold})")

        for name in ('collateral_decimals', 'quote_decimals'):
            if getattr(self, name) > MAX_DECIMALS:
                raise InvalidParameters(
                    f"{name} must be at most {MAX_DECIMALS}, got {getattr(self, name)}")


# ============================================================================
# RESERVE AND POSITIONS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ReserveState:
    """
    Immutable snapshot of a market's shared reserve aggregates.

    A last_update_timestamp of 0 marks a reserve whose indices have never
    been initialized; advance_indices() sets both indices to RAY on first use.

    Invariants:
        variable_borrow_index, liquidity_index >= RAY once initialized
        total_scaled_borrowed * variable_borrow_index >= total_borrowed
    """
    total_scaled_borrowed: int = 0
    total_borrowed: int = 0            # principal view of outstanding debt
    total_scaled_supplied: int = 0
    total_supplied: int = 0            # principal view of LP deposits
    total_collateral: int = 0
    variable_borrow_index: int = 0
    liquidity_index: int = 0
    last_update_timestamp: int = 0
    accumulated_spread: int = 0        # spread realized through repayments

    def __post_init__(self):
        _require_non_negative_ints('ReserveState', self, (
            'total_scaled_borrowed', 'total_borrowed', 'total_scaled_supplied',
            'total_supplied', 'total_collateral', 'variable_borrow_index',
            'liquidity_index', 'last_update_timestamp', 'accumulated_spread',
        ))
        if self.last_update_timestamp > 0:
            if self.variable_borrow_index < RAY:
                raise InvalidInput(
                    f"variable_borrow_index must be >= RAY, got {self.variable_borrow_index}")
            if self.liquidity_index < RAY:
                raise InvalidInput(
                    f"liquidity_index must be >= RAY, got {self.liquidity_index}")

    @property
    def initialized(self) -> bool:
        return self.last_update_timestamp > 0


@dataclass(frozen=True, slots=True)
class UserPosition:
    """
    A borrower's collateral and debt in one market.

    borrow_amount is the principal drawn; scaled_debt_balance carries the
    interest implicitly through the borrow index.
    """
    collateral_amount: int = 0
    borrow_amount: int = 0
    scaled_debt_balance: int = 0

    def __post_init__(self):
        _require_non_negative_ints('UserPosition', self, (
            'collateral_amount', 'borrow_amount', 'scaled_debt_balance',
        ))

    @property
    def is_empty(self) -> bool:
        return (self.collateral_amount == 0 and self.borrow_amount == 0
                and self.scaled_debt_balance == 0)


@dataclass(frozen=True, slots=True)
class SupplyPosition:
    """A liquidity provider's deposit, scaled by the liquidity index."""
    supply_amount: int = 0
    scaled_supply_balance: int = 0

    def __post_init__(self):
        _require_non_negative_ints('SupplyPosition', self, (
            'supply_amount', 'scaled_supply_balance',
        ))

    @property
    def is_empty(self) -> bool:
        return self.supply_amount == 0 and self.scaled_supply_balance == 0


@dataclass(frozen=True, slots=True)
class ResolutionRecord:
    """
    Settlement outcome of a market, created exactly once.

    The three pools are the amounts later claimed pro-rata by LPs and
    borrowers; protocol_pool is protocol revenue.
    """
    resolved: bool
    resolution_timestamp: int
    final_price: int
    lp_pool: int
    borrower_pool: int
    protocol_pool: int
    total_collateral_redeemed: int
    amount_repaid_to_liquidity_layer: int

    def __post_init__(self):
        _require_non_negative_ints('ResolutionRecord', self, (
            'resolution_timestamp', 'final_price', 'lp_pool', 'borrower_pool',
            'protocol_pool', 'total_collateral_redeemed',
            'amount_repaid_to_liquidity_layer',
        ))


# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================

@runtime_checkable
class PriceOracle(Protocol):
    """
    Source of collateral prices.

    The shell fetches prices and hands them to the engine as plain Wad
    integers; engine functions never call an oracle.
    """

    def current_price(self, token: str) -> int:
        """Return the Wad price of one whole token in quote units."""
        ...


@runtime_checkable
class LiquidityLayerAdapter(Protocol):
    """
    Point-in-time view of the external liquidity venue.

    Figures are read by the shell and forwarded into the engine.
    """

    def total_debt(self) -> int:
        """Return what the market owes the venue, in quote units."""
        ...

    def supply_balance(self) -> int:
        """Return the market's balance supplied to the venue, in quote units."""
        ...
