"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - The settlement waterfall and claims never create or lose value
2. monotonicity.py - Rates rise with utilization; health moves with value and debt
3. temporal.py - Indices never decrease and compose across intervals
4. idempotency.py - Repeated accrual and one-time resolution
5. bounds.py - Liquidation sizing and scaled-balance round trips stay in bounds
6. determinism.py - Identical inputs give identical outputs
7. coverage.py - Scaled debt always covers principal; transitions always move scaled balances

These tests use hypothesis for property-based testing.
"""
