"""
helpers.py - Shared test helpers for pegledger tests

Plain functions (not fixtures) for funding accounts and checking invariants.
"""

from datetime import datetime, timedelta
from typing import Iterable

from pegledger import (
    Clock, TokenLedger, Stablecoin, replay_events,
    ESCROW_ACCOUNT, AUCTION_COOLDOWN,
)


ORACLE = "oracle"
ISSUER = "issuer"
START = datetime(2025, 1, 1)


def deposit(coin: Stablecoin, collateral: TokenLedger, account: str, amount: int) -> None:
    """Give account collateral and mint the same amount of ledger tokens 1:1."""
    collateral.mint(ISSUER, account, amount)
    collateral.approve(account, ESCROW_ACCOUNT, amount)
    coin.mint_1to1(account, amount)


def grant_shares(shares: TokenLedger, account: str, amount: int) -> None:
    """Mint shares to account and approve escrow to pull all of them."""
    shares.mint(ESCROW_ACCOUNT, account, amount)
    shares.approve(account, ESCROW_ACCOUNT, amount)


def sum_of_balances(token: TokenLedger, accounts: Iterable[str]) -> int:
    return sum(token.balance_of(a) for a in accounts)


def after_cooldown(clock: Clock, extra: timedelta = timedelta(0)) -> None:
    clock.advance(AUCTION_COOLDOWN + extra)


def assert_consistent(*tokens: TokenLedger) -> None:
    """Supply equals the sum of balances and the event stream replays to the same state."""
    for t in tokens:
        check = t.verify_supply()
        assert check['valid'], f"{t.symbol} supply drifted by {check['difference']}"
        assert replay_events(t.events).matches(t), f"{t.symbol} events do not replay"
