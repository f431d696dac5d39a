"""
test_core_types.py - Unit tests for core records and exceptions

Tests:
- RiskParameters validation bounds
- ReserveState initialization and index invariants
- UserPosition / SupplyPosition emptiness
- Exception hierarchy
- Collaborator protocols
"""

import pytest
from dataclasses import FrozenInstanceError, replace

from outcome_lending import (
    RAY, BPS,
    LendingError, InvalidInput, InvalidParameters,
    InsufficientCollateral, ExceedsBalance, AlreadyResolved,
    DEFAULT_RISK_PARAMETERS,
    ReserveState, UserPosition, SupplyPosition, ResolutionRecord,
    PriceOracle, LiquidityLayerAdapter,
)


class TestRiskParameters:
    """Tests for RiskParameters validation."""

    def test_default_market_is_valid(self):
        params = DEFAULT_RISK_PARAMETERS
        assert params.optimal_utilization == 8 * RAY // 10
        assert params.ltv <= params.liquidation_threshold

    def test_optimal_utilization_zero_rejected(self):
        with pytest.raises(InvalidParameters, match="optimal_utilization"):
            replace(DEFAULT_RISK_PARAMETERS, optimal_utilization=0)

    def test_optimal_utilization_above_one_rejected(self):
        with pytest.raises(InvalidParameters, match="optimal_utilization"):
            replace(DEFAULT_RISK_PARAMETERS, optimal_utilization=RAY + 1)

    def test_optimal_utilization_of_one_accepted(self):
        params = replace(DEFAULT_RISK_PARAMETERS, optimal_utilization=RAY)
        assert params.optimal_utilization == RAY

    def test_bps_above_full_rejected(self):
        with pytest.raises(InvalidParameters, match="reserve_factor"):
            replace(DEFAULT_RISK_PARAMETERS, reserve_factor=BPS + 1)

    def test_ltv_above_threshold_rejected(self):
        with pytest.raises(InvalidParameters, match="cannot exceed"):
            replace(DEFAULT_RISK_PARAMETERS, ltv=8000, liquidation_threshold=7500)

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidParameters, match="cannot be negative"):
            replace(DEFAULT_RISK_PARAMETERS, slope2=-1)

    def test_float_rejected(self):
        with pytest.raises(InvalidParameters, match="must be int"):
            replace(DEFAULT_RISK_PARAMETERS, ltv=0.5)

    def test_bool_rejected(self):
        with pytest.raises(InvalidParameters, match="must be int"):
            replace(DEFAULT_RISK_PARAMETERS, quote_decimals=True)

    def test_excessive_decimals_rejected(self):
        with pytest.raises(InvalidParameters, match="collateral_decimals"):
            replace(DEFAULT_RISK_PARAMETERS, collateral_decimals=77)

    def test_immutable(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_RISK_PARAMETERS.ltv = 9000


class TestReserveState:
    """Tests for ReserveState."""

    def test_default_is_uninitialized(self):
        reserve = ReserveState()
        assert not reserve.initialized
        assert reserve.variable_borrow_index == 0

    def test_initialized_requires_indices(self):
        with pytest.raises(InvalidInput, match="variable_borrow_index"):
            ReserveState(last_update_timestamp=1, variable_borrow_index=RAY - 1, liquidity_index=RAY)

    def test_initialized_requires_liquidity_index(self):
        with pytest.raises(InvalidInput, match="liquidity_index"):
            ReserveState(last_update_timestamp=1, variable_borrow_index=RAY, liquidity_index=0)

    def test_negative_total_rejected(self):
        with pytest.raises(InvalidInput):
            ReserveState(total_borrowed=-1)

    def test_replace_revalidates(self):
        reserve = ReserveState(last_update_timestamp=1, variable_borrow_index=RAY, liquidity_index=RAY)
        with pytest.raises(InvalidInput):
            replace(reserve, variable_borrow_index=RAY // 2)

    def test_immutable(self):
        reserve = ReserveState()
        with pytest.raises(FrozenInstanceError):
            reserve.total_borrowed = 5


class TestPositions:
    """Tests for UserPosition and SupplyPosition."""

    def test_new_user_position_is_empty(self):
        assert UserPosition().is_empty

    def test_collateral_only_is_not_empty(self):
        assert not UserPosition(collateral_amount=1).is_empty

    def test_negative_debt_rejected(self):
        with pytest.raises(InvalidInput):
            UserPosition(scaled_debt_balance=-1)

    def test_supply_position_empty(self):
        assert SupplyPosition().is_empty
        assert not SupplyPosition(supply_amount=1, scaled_supply_balance=1).is_empty


class TestResolutionRecord:
    """Tests for ResolutionRecord."""

    def test_negative_pool_rejected(self):
        with pytest.raises(InvalidInput):
            ResolutionRecord(
                resolved=True, resolution_timestamp=1, final_price=0,
                lp_pool=-1, borrower_pool=0, protocol_pool=0,
                total_collateral_redeemed=0, amount_repaid_to_liquidity_layer=0,
            )


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("exc", [
        InvalidInput, InvalidParameters, InsufficientCollateral, ExceedsBalance, AlreadyResolved,
    ])
    def test_all_are_lending_errors(self, exc):
        assert issubclass(exc, LendingError)

    def test_parameter_errors_are_input_errors(self):
        assert issubclass(InvalidParameters, InvalidInput)
        assert issubclass(InvalidParameters, ValueError)


class TestProtocols:
    """Tests for the collaborator protocols."""

    def test_price_oracle_structural(self):
        class FixedOracle:
            def current_price(self, token):
                return 8 * 10 ** 17

        assert isinstance(FixedOracle(), PriceOracle)

    def test_liquidity_layer_structural(self):
        class StaticVenue:
            def total_debt(self):
                return 0

            def supply_balance(self):
                return 0

        assert isinstance(StaticVenue(), LiquidityLayerAdapter)
        assert not isinstance(StaticVenue(), PriceOracle)
