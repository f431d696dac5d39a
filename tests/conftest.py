"""
conftest.py - Shared pytest fixtures for lending engine tests

Provides common fixtures used across unit, conformance and functional tests:
- Market risk parameters (the default market)
- Reserves (fresh, funded, half utilized)
"""

import pytest
from dataclasses import replace

from outcome_lending import (
    DEFAULT_RISK_PARAMETERS,
    ReserveState, RiskParameters, SupplyPosition, UserPosition,
    accrue, borrow, deposit_collateral, supply,
)
from tests.market_helpers import T0, PRICE_80C, initialized_reserve, tokens, usdc


@pytest.fixture
def params() -> RiskParameters:
    """base 2%, U* 80%, slope1 4%, slope2 75%, reserve 10%, LTV 50%, LT 75%."""
    return DEFAULT_RISK_PARAMETERS


@pytest.fixture
def fresh_reserve(params) -> ReserveState:
    return accrue(ReserveState(), params, T0)


@pytest.fixture
def funded_market(params, fresh_reserve):
    """
    100,000 USDC supplied; alice pledged 10,000 tokens and borrowed 3,000 USDC at $0.80.

    Returns (reserve, lp_position, alice_position).
    """
    reserve, lp = supply(fresh_reserve, SupplyPosition(), usdc(100_000))
    reserve, alice = deposit_collateral(reserve, UserPosition(), tokens(10_000))
    reserve, alice = borrow(reserve, alice, params, PRICE_80C, usdc(3_000))
    return reserve, lp, alice


@pytest.fixture
def half_utilized_reserve() -> ReserveState:
    """50,000 borrowed of 100,000 supplied, indices at 1.0 as of T0."""
    return initialized_reserve(
        total_scaled_borrowed=usdc(50_000),
        total_borrowed=usdc(50_000),
        total_scaled_supplied=usdc(100_000),
        total_supplied=usdc(100_000),
    )


@pytest.fixture
def zero_fee_params(params) -> RiskParameters:
    """Default market with no reserve factor."""
    return replace(params, reserve_factor=0)
