"""
Debt Coverage Conformance Tests

INVARIANT: After every transition,
    real_debt(total_scaled_borrowed, variable_borrow_index) >= total_borrowed
    user_debt(position) >= position.borrow_amount

Scaled debt is minted rounded up and burned rounded down, so the stored debt
always covers the principal it stands for, however small the amount and
however large the index.

INVARIANT: A transition with a positive amount always moves the scaled
balance it touches. It either succeeds and changes the scaled balance, or
it is rejected.
"""

from dataclasses import replace

from hypothesis import given, settings
from hypothesis import strategies as st

from outcome_lending import (
    DEFAULT_RISK_PARAMETERS, WAD,
    InvalidInput,
    SupplyPosition, UserPosition,
    supply, withdraw_supply, deposit_collateral, borrow, repay,
    real_debt, user_debt, user_supply,
)
from tests.conformance.strategies import indices
from tests.market_helpers import initialized_reserve


small_or_large = st.one_of(
    st.integers(min_value=1, max_value=300),
    st.integers(min_value=1, max_value=10 ** 12),
)

actions = st.lists(
    st.tuples(
        st.sampled_from(('borrow', 'repay', 'supply', 'withdraw', 'grow')),
        small_or_large,
    ),
    min_size=1,
    max_size=30,
)


def _assert_covered(reserve, position):
    assert real_debt(reserve.total_scaled_borrowed, reserve.variable_borrow_index) >= reserve.total_borrowed
    assert user_debt(position, reserve) >= position.borrow_amount


class TestDebtCoverage:
    """Sequences of transitions over indices in [1, 100] keep debt covered."""

    @given(indices, indices, actions)
    @settings(max_examples=300, deadline=None)
    def test_transitions_keep_debt_covered(self, borrow_index, liquidity_index, steps):
        reserve = initialized_reserve(variable_borrow_index=borrow_index, liquidity_index=liquidity_index)
        reserve, borrower = deposit_collateral(reserve, UserPosition(), 10 ** 20)
        reserve, lp = supply(reserve, SupplyPosition(), 10 ** 15)

        for action, amount in steps:
            if action == 'borrow':
                scaled_before = borrower.scaled_debt_balance
                reserve, borrower = borrow(reserve, borrower, DEFAULT_RISK_PARAMETERS, WAD, amount)
                assert borrower.scaled_debt_balance > scaled_before

            elif action == 'repay':
                debt = user_debt(borrower, reserve)
                if debt == 0:
                    continue
                amount = min(amount, debt)
                scaled_before = borrower.scaled_debt_balance
                try:
                    reserve, borrower = repay(reserve, borrower, amount)
                except InvalidInput:
                    assert amount < debt
                    continue
                assert borrower.scaled_debt_balance < scaled_before

            elif action == 'supply':
                scaled_before = lp.scaled_supply_balance
                try:
                    reserve, lp = supply(reserve, lp, amount)
                except InvalidInput:
                    continue
                assert lp.scaled_supply_balance > scaled_before

            elif action == 'withdraw':
                balance = user_supply(lp, reserve)
                if balance == 0:
                    continue
                scaled_before = lp.scaled_supply_balance
                reserve, lp = withdraw_supply(reserve, lp, min(amount, balance))
                assert lp.scaled_supply_balance < scaled_before

            else:
                # accrual only ever raises the indices
                reserve = replace(
                    reserve,
                    variable_borrow_index=reserve.variable_borrow_index + amount * 10 ** 15,
                    liquidity_index=reserve.liquidity_index + amount * 10 ** 15,
                )

            _assert_covered(reserve, borrower)

    @given(indices, small_or_large)
    @settings(max_examples=300)
    def test_single_borrow_covered(self, borrow_index, amount):
        reserve = initialized_reserve(variable_borrow_index=borrow_index)
        reserve, position = deposit_collateral(reserve, UserPosition(), 10 ** 20)
        reserve, position = borrow(reserve, position, DEFAULT_RISK_PARAMETERS, WAD, amount)

        assert position.scaled_debt_balance > 0
        _assert_covered(reserve, position)

    @given(indices, st.integers(min_value=1, max_value=10 ** 12), st.integers(min_value=1, max_value=10 ** 12))
    @settings(max_examples=300)
    def test_repay_never_retires_more_principal_than_paid(self, borrow_index, borrowed, paid):
        reserve = initialized_reserve(variable_borrow_index=borrow_index)
        reserve, position = deposit_collateral(reserve, UserPosition(), 10 ** 20)
        reserve, position = borrow(reserve, position, DEFAULT_RISK_PARAMETERS, WAD, borrowed)
        paid = min(paid, user_debt(position, reserve))

        try:
            after_reserve, after = repay(reserve, position, paid)
        except InvalidInput:
            return

        assert position.borrow_amount - after.borrow_amount <= paid
        assert after_reserve.accumulated_spread + (position.borrow_amount - after.borrow_amount) == paid
        _assert_covered(after_reserve, after)
