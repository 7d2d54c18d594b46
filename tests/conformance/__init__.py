"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the stablecoin ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_supply_conservation.py - Supply equals the sum of balances; events replay
2. test_entry_point_atomicity.py - All-or-nothing entry points across every token
3. test_auction_ordering.py - Bids only improve in the auction's direction

These tests use hypothesis for property-based testing.
"""
