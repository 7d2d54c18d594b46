"""
pegledger - Collateral-Backed Stablecoin Ledger

A token ledger with a 1:1 collateral desk and auction-driven supply adjustment.

Usage:
    from datetime import datetime, timedelta
    from pegledger import Clock, TokenLedger, Stablecoin, ESCROW_ACCOUNT

    clock = Clock(datetime(2025, 1, 1))
    shares = TokenLedger("Frax Shares", "FXS", minters={ESCROW_ACCOUNT})
    usdc = TokenLedger("USD Coin", "USDC", minters={"issuer"})
    frax = Stablecoin("Frax", "FRAX", "oracle", shares, clock)
    frax.set_og_collateral("oracle", usdc)

    # Fully collateralized phase: mint 1:1 against collateral
    usdc.mint("issuer", "alice", 1_000_000)
    usdc.approve("alice", ESCROW_ACCOUNT, 1_000_000)
    frax.mint_1to1("alice", 1_000_000)

    # Under-collateralized and above peg: hop auctions expand supply
    frax.set_collateral_ratio("oracle", 90_000_000)
    frax.set_prices("oracle", 2, 10)
    frax.trigger_hop("keeper")            # mints total_supply // 10000 into escrow
"""

# Core types
from .core import (
    Account,
    Clock,
    Token,
    TokenView,
    Transfer,
    Approval,
    Event,
    LedgerError,
    InvalidAccount,
    InsufficientBalance,
    InsufficientAllowance,
    Overflow,
    Unauthorized,
    OpenPhaseRequired,
    BidTooLow,
    NoActiveRound,
    TooSoon,
    CollateralNotConfigured,
    checked_add,
    checked_sub,
    require_amount,
    require_token,
    NULL_ACCOUNT,
    ESCROW_ACCOUNT,
    UINT256_MAX,
    COLLATERAL_RATIO_PRECISION,
    EXPANSION_DIVISOR,
    AUCTION_COOLDOWN,
)

# Ledger
from .token import TokenLedger, LedgerSnapshot

# Oracle
from .oracle import OracleGateway

# Auctions
from .auction import Direction, AuctionRound, AuctionTerms, PeriodicAuction

# Controller
from .stablecoin import Stablecoin, HopTerms, BackstepTerms

# Event replay
from .replay import ReplayedState, replay_events


__all__ = [
    # Core
    'Account', 'Clock', 'Token', 'TokenView',
    'Transfer', 'Approval', 'Event',
    'LedgerError', 'InvalidAccount', 'InsufficientBalance', 'InsufficientAllowance',
    'Overflow', 'Unauthorized', 'OpenPhaseRequired', 'BidTooLow', 'NoActiveRound',
    'TooSoon', 'CollateralNotConfigured',
    'checked_add', 'checked_sub', 'require_amount', 'require_token',
    'NULL_ACCOUNT', 'ESCROW_ACCOUNT', 'UINT256_MAX', 'COLLATERAL_RATIO_PRECISION',
    'EXPANSION_DIVISOR', 'AUCTION_COOLDOWN',
    # Ledger
    'TokenLedger', 'LedgerSnapshot',
    # Oracle
    'OracleGateway',
    # Auctions
    'Direction', 'AuctionRound', 'AuctionTerms', 'PeriodicAuction',
    # Controller
    'Stablecoin', 'HopTerms', 'BackstepTerms',
    # Replay
    'ReplayedState', 'replay_events',
]
