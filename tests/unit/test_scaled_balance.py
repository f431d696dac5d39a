"""
test_scaled_balance.py - Unit tests for index-scaled balances

Tests:
- Scaling and unscaling at various indices
- Round-trip tolerance
- Borrow and liquidity series read the right index
"""

import pytest

from outcome_lending import (
    RAY,
    InvalidInput,
    ReserveState, SupplyPosition, UserPosition,
    to_scaled, to_real, round_trip_tolerance,
    scaled_debt, real_debt, scaled_supply, real_supply,
    user_debt, user_supply, total_debt,
    to_ray,
)
from tests.market_helpers import initialized_reserve


class TestScaling:
    """Tests for to_scaled / to_real."""

    def test_identity_at_one(self):
        assert to_scaled(1_000, RAY) == 1_000
        assert to_real(1_000, RAY) == 1_000

    def test_scale_at_two(self):
        assert to_scaled(1_000, 2 * RAY) == 500
        assert to_real(500, 2 * RAY) == 1_000

    def test_index_below_one_rejected(self):
        with pytest.raises(InvalidInput, match="index must be >= RAY"):
            to_scaled(1_000, RAY - 1)
        with pytest.raises(InvalidInput):
            to_real(1_000, 0)

    def test_round_trip_within_tolerance(self):
        index = to_ray("1.1")
        for amount in (1, 7, 123_456_789, 10 ** 24 + 3):
            back = to_real(to_scaled(amount, index), index)
            assert abs(back - amount) <= round_trip_tolerance(index)

    def test_tolerance(self):
        assert round_trip_tolerance(RAY) == 1
        assert round_trip_tolerance(RAY + 1) == 2
        assert round_trip_tolerance(3 * RAY) == 3

    def test_named_series_match_generic(self):
        index = to_ray("1.25")
        assert scaled_debt(1_000, index) == scaled_supply(1_000, index) == 800
        assert real_debt(800, index) == real_supply(800, index) == 1_000


class TestSeries:
    """Tests that each series reads its own index."""

    @pytest.fixture
    def diverged_reserve(self):
        return initialized_reserve(
            total_scaled_borrowed=1_000,
            total_borrowed=1_000,
            variable_borrow_index=2 * RAY,
            liquidity_index=to_ray("1.5"),
        )

    def test_user_debt_uses_borrow_index(self, diverged_reserve):
        position = UserPosition(borrow_amount=1_000, scaled_debt_balance=1_000)
        assert user_debt(position, diverged_reserve) == 2_000

    def test_user_supply_uses_liquidity_index(self, diverged_reserve):
        position = SupplyPosition(supply_amount=1_000, scaled_supply_balance=1_000)
        assert user_supply(position, diverged_reserve) == 1_500

    def test_total_debt(self, diverged_reserve):
        assert total_debt(diverged_reserve) == 2_000

    def test_empty_positions_read_zero_on_uninitialized_reserve(self):
        reserve = ReserveState()
        assert user_debt(UserPosition(), reserve) == 0
        assert user_supply(SupplyPosition(), reserve) == 0
        assert total_debt(reserve) == 0
