"""
conftest.py - Shared pytest fixtures for pegledger tests

Provides common fixtures used across unit, functional and conformance tests:
- A shared clock
- Shares and collateral token ledgers
- A stablecoin wired to both, with and without funded accounts
- Phase helpers (expansion / contraction setups)
"""

import pytest

from pegledger import (
    Clock, TokenLedger, Stablecoin,
    ESCROW_ACCOUNT, COLLATERAL_RATIO_PRECISION,
)

from tests.helpers import ORACLE, ISSUER, START, deposit


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    """Shared logical clock starting on 2025-01-01."""
    return Clock(START)


@pytest.fixture
def token():
    """Plain token ledger with 'minter' allowed to mint."""
    return TokenLedger("Test Token", "TST", minters={"minter"}, verbose=False)


@pytest.fixture
def shares():
    """Shares token; the stablecoin escrow is its minter."""
    return TokenLedger("Frax Shares", "FXS", minters={ESCROW_ACCOUNT}, verbose=False)


@pytest.fixture
def collateral():
    """Collateral token issued by ISSUER."""
    return TokenLedger("USD Coin", "USDC", minters={ISSUER}, verbose=False)


@pytest.fixture
def coin(shares, collateral, clock):
    """Stablecoin with the collateral token registered and set as primary."""
    frax = Stablecoin("Frax", "FRAX", ORACLE, shares, clock, verbose=False)
    frax.set_collateral(ORACLE, collateral)
    frax.set_og_collateral(ORACLE, collateral)
    return frax


@pytest.fixture
def funded_coin(coin, collateral):
    """Stablecoin with alice holding 1,000,000 and bob 500,000 ledger tokens."""
    deposit(coin, collateral, "alice", 1_000_000)
    deposit(coin, collateral, "bob", 500_000)
    return coin


# =============================================================================
# PHASE FIXTURES
# =============================================================================

@pytest.fixture
def expansion_coin(funded_coin):
    """Funded stablecoin that is under-collateralized and trading above peg."""
    funded_coin.set_collateral_ratio(ORACLE, COLLATERAL_RATIO_PRECISION * 9 // 10)
    funded_coin.set_prices(ORACLE, 2, 10)
    return funded_coin


@pytest.fixture
def contraction_coin(funded_coin):
    """Funded stablecoin that is over-collateralized and trading below peg."""
    funded_coin.set_collateral_ratio(ORACLE, COLLATERAL_RATIO_PRECISION * 11 // 10)
    funded_coin.set_prices(ORACLE, 0, 10)
    return funded_coin
