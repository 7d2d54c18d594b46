"""
stablecoin.py - Collateral-Backed Stablecoin Controller

Stablecoin is a TokenLedger for the ledger token that also runs the supply protocol:

1. Collateral desk: 1:1 mint/redeem against the primary collateral token, only
   while the collateral ratio is exactly 100%.
2. Hop (expansion): ascending auction. Bidders pay shares; the winner receives
   the ledger tokens minted into escrow when the round opened.
3. Backstep (contraction): descending auction. Bidders hand in a fixed amount of
   ledger tokens; the winner receives newly minted shares equal to their bid and
   the collected ledger tokens are burned.
4. Oracle entry points: thin authority-checked wrappers around OracleGateway.

The controller's own identity is ESCROW_ACCOUNT in every token it touches. Bidders
and minters must approve ESCROW_ACCOUNT before the controller can pull their tokens.

Every entry point is all-or-nothing across the ledger token, the shares token,
the collateral ledgers, the oracle record and both auctions: if any nested call
raises, all of them are restored and the exception propagates.
"""

from __future__ import annotations
from contextlib import contextmanager
from datetime import timedelta
from functools import wraps
from typing import Dict, Iterator, List, Optional

from .auction import Direction, PeriodicAuction
from .core import (
    Account, Clock, Token,
    ESCROW_ACCOUNT, COLLATERAL_RATIO_PRECISION, EXPANSION_DIVISOR, AUCTION_COOLDOWN,
    InvalidAccount, OpenPhaseRequired, CollateralNotConfigured,
    require_amount, require_token, is_null,
)
from .oracle import OracleGateway
from .token import TokenLedger


def entry_point(method):
    """Run a Stablecoin method inside its atomic block."""
    @wraps(method)
    def wrapper(self: Stablecoin, *args, **kwargs):
        with self._atomic(method.__name__):
            return method(self, *args, **kwargs)
    return wrapper


# ============================================================================
# AUCTION TERMS
# ============================================================================

class HopTerms:
    """Expansion legs: shares in, newly minted ledger tokens out."""

    def __init__(self, coin: Stablecoin):
        self.coin = coin

    def open_lot(self) -> int:
        oracle = self.coin.oracle
        if not (oracle.is_under_collateralized() and oracle.token_price > 1):
            return 0
        lot = self.coin.total_supply() // EXPANSION_DIVISOR
        if lot:
            self.coin._mint(ESCROW_ACCOUNT, lot)
        return lot

    def collect(self, bidder: Account, bid: int, lot: int) -> None:
        self.coin.shares.transfer_from(ESCROW_ACCOUNT, bidder, ESCROW_ACCOUNT, bid)

    def refund(self, bidder: Account, bid: int, lot: int) -> None:
        self.coin.shares.transfer(ESCROW_ACCOUNT, bidder, bid)

    def pay_winner(self, bidder: Account, bid: int, lot: int) -> None:
        proceeds = self.coin.hop_proceeds()
        if proceeds:
            self.coin._transfer(ESCROW_ACCOUNT, bidder, proceeds)
        self.coin.shares.burn(ESCROW_ACCOUNT, bid)


class BackstepTerms:
    """Contraction legs: a fixed amount of ledger tokens in, newly minted shares out."""

    def __init__(self, coin: Stablecoin):
        self.coin = coin

    def open_lot(self) -> int:
        oracle = self.coin.oracle
        if not (oracle.is_over_collateralized() and oracle.token_price < 1):
            return 0
        return self.coin.total_supply() // EXPANSION_DIVISOR

    def collect(self, bidder: Account, bid: int, lot: int) -> None:
        self.coin.transfer_from(ESCROW_ACCOUNT, bidder, ESCROW_ACCOUNT, lot)

    def refund(self, bidder: Account, bid: int, lot: int) -> None:
        self.coin._transfer(ESCROW_ACCOUNT, bidder, lot)

    def pay_winner(self, bidder: Account, bid: int, lot: int) -> None:
        self.coin.shares.mint(ESCROW_ACCOUNT, bidder, bid)
        self.coin._burn(ESCROW_ACCOUNT, lot)


# ============================================================================
# STABLECOIN
# ============================================================================

class Stablecoin(TokenLedger):
    """
    Ledger token plus collateral desk, expansion and contraction auctions.

    Collaborators (shares, collateral) must implement the full Token protocol,
    including snapshot()/restore(); anything else is rejected with TypeError
    at construction or registration.

    Performance:
        Every entry point snapshots each participating token before running,
        which for TokenLedger copies its balance and allowance maps. A call is
        therefore O(holders + allowances) across all tokens, even a single bid.
        Fine for simulation and testing; a high-volume host would swap the full
        copies for a write journal.

    Example:
        clock = Clock(datetime(2025, 1, 1))
        shares = TokenLedger("Shares", "FXS", minters={ESCROW_ACCOUNT})
        usdc = TokenLedger("USD Coin", "USDC", minters={"issuer"})
        coin = Stablecoin("Frax", "FRAX", "oracle", shares, clock)
        coin.set_og_collateral("oracle", usdc)

        usdc.mint("issuer", "alice", 100)
        usdc.approve("alice", ESCROW_ACCOUNT, 100)
        coin.mint_1to1("alice", 100)
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        oracle_address: Account,
        shares: Token,
        clock: Clock,
        collateral_ratio: int = COLLATERAL_RATIO_PRECISION,
        cooldown: timedelta = AUCTION_COOLDOWN,
        verbose: bool = True,
    ):
        """
        Args:
            name: Token name
            symbol: Token symbol
            oracle_address: Initial oracle principal
            shares: Companion shares token; ESCROW_ACCOUNT must be one of its minters
            clock: Shared time source for both auction timers
            collateral_ratio: Initial phase indicator (default: 100%)
            cooldown: Minimum time between two triggers of the same auction
            verbose: Print entry point results
        """
        super().__init__(name, symbol, verbose=verbose)
        self.shares = require_token(shares)
        self.clock = clock
        self.oracle = OracleGateway(oracle_address, collateral_ratio=collateral_ratio)
        self.hop = PeriodicAuction(
            "HOP", Direction.ASCENDING, HopTerms(self), clock,
            cooldown=cooldown, verbose=verbose,
        )
        self.backstep = PeriodicAuction(
            "BACKSTEP", Direction.DESCENDING, BackstepTerms(self), clock,
            cooldown=cooldown,
            requires_open_round=True,
            bid_after_cooldown=True,
            verbose=verbose,
        )

    # ========================================================================
    # READ-ONLY STATE
    # ========================================================================

    @property
    def oracle_address(self) -> Account:
        return self.oracle.oracle_address

    @property
    def collateral_ratio(self) -> int:
        return self.oracle.collateral_ratio

    @property
    def token_price(self) -> int:
        return self.oracle.token_price

    @property
    def shares_price(self) -> int:
        return self.oracle.shares_price

    @property
    def primary_collateral(self) -> Optional[Token]:
        return self.oracle.primary_collateral

    def escrow_balance(self) -> int:
        """Ledger tokens held by the controller itself."""
        return self.balance_of(ESCROW_ACCOUNT)

    def hop_proceeds(self) -> int:
        """Escrowed ledger tokens not committed to a pending backstep bid."""
        committed = self.backstep.lot if self.backstep.bidder is not None else 0
        return self.escrow_balance() - committed

    # ========================================================================
    # ATOMICITY
    # ========================================================================

    def _participants(self) -> List[Token]:
        """Every token an entry point may touch, deduplicated."""
        tokens: Dict[int, Token] = {id(self): self}
        candidates = [self.shares, self.oracle.primary_collateral, *self.oracle.collateral_tokens]
        for token in candidates:
            if token is not None:
                tokens.setdefault(id(token), token)
        return list(tokens.values())

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """
        Snapshot everything an entry point can change and restore it on failure.

        The exception is re-raised unchanged after the rollback.
        """
        token_snapshots = [(token, token.snapshot()) for token in self._participants()]
        oracle_snapshot = self.oracle.copy()
        hop_snapshot = self.hop.snapshot()
        backstep_snapshot = self.backstep.snapshot()
        try:
            yield
        except Exception as e:
            for token, snapshot in token_snapshots:
                token.restore(snapshot)
            self.oracle.restore(oracle_snapshot)
            self.hop.restore(hop_snapshot)
            self.backstep.restore(backstep_snapshot)
            if self.verbose:
                print(f"✗ REJECTED: {operation}: {type(e).__name__}: {e}")
            raise

    # ========================================================================
    # ORACLE GATEWAY ENTRY POINTS
    # ========================================================================

    @entry_point
    def set_prices(self, caller: Account, token_price: int, shares_price: int) -> None:
        self.oracle.set_prices(caller, token_price, shares_price)
        if self.verbose:
            print(f"✓ Prices: {self.symbol}={token_price} {self.shares.symbol}={shares_price}")

    @entry_point
    def set_oracle(self, caller: Account, new_oracle: Account) -> None:
        self.oracle.set_oracle(caller, new_oracle)

    @entry_point
    def set_collateral_ratio(self, caller: Account, ratio: int) -> None:
        self.oracle.set_collateral_ratio(caller, ratio)
        if self.verbose:
            pct = ratio * 100 / COLLATERAL_RATIO_PRECISION
            print(f"✓ Collateral ratio: {pct:.4f}%")

    @entry_point
    def register_collateral(self, caller: Account, token: Token) -> None:
        self.oracle.register_collateral(caller, require_token(token))

    @entry_point
    def register_pool(self, caller: Account, pool: Account) -> None:
        self.oracle.register_pool(caller, pool)

    @entry_point
    def set_primary_collateral(self, caller: Account, token: Token) -> None:
        self.oracle.set_primary_collateral(caller, require_token(token))

    set_collateral = register_collateral
    set_frax_pools = register_pool
    set_og_collateral = set_primary_collateral

    # ========================================================================
    # COLLATERAL DESK
    # ========================================================================

    def _require_open_phase(self) -> None:
        if not self.oracle.is_fully_collateralized():
            raise OpenPhaseRequired(
                f"Collateral ratio is {self.oracle.collateral_ratio}, "
                f"1:1 operations need {COLLATERAL_RATIO_PRECISION}"
            )

    def _require_collateral(self) -> Token:
        collateral = self.oracle.primary_collateral
        if collateral is None:
            raise CollateralNotConfigured("No primary collateral set")
        return collateral

    @entry_point
    def mint_1to1(self, caller: Account, amount: int) -> None:
        """
        Deposit amount of collateral and receive amount ledger tokens.

        The caller must have approved ESCROW_ACCOUNT on the collateral token.

        Raises:
            OpenPhaseRequired: If the collateral ratio is not 100%
            CollateralNotConfigured: If no primary collateral is set
            InsufficientAllowance / InsufficientBalance: From the collateral pull
        """
        self._require_open_phase()
        collateral = self._require_collateral()
        require_amount(amount)
        if is_null(caller):
            raise InvalidAccount("Mint for the null account")
        collateral.transfer_from(ESCROW_ACCOUNT, caller, ESCROW_ACCOUNT, amount)
        self._mint(caller, amount)
        if self.verbose:
            print(f"✓ MINT 1:1: {caller} deposited {amount}")

    @entry_point
    def redeem_1to1(self, caller: Account, amount: int) -> None:
        """
        Burn amount ledger tokens and receive amount of collateral.

        If the collateral payout fails the burn is rolled back.

        Raises:
            OpenPhaseRequired: If the collateral ratio is not 100%
            CollateralNotConfigured: If no primary collateral is set
            InsufficientBalance: If the caller or the escrow is short
        """
        self._require_open_phase()
        collateral = self._require_collateral()
        self._burn(caller, amount)
        collateral.transfer(ESCROW_ACCOUNT, caller, amount)
        if self.verbose:
            print(f"✓ REDEEM 1:1: {caller} withdrew {amount}")

    # ========================================================================
    # EXPANSION AUCTION (HOP)
    # ========================================================================

    @entry_point
    def trigger_hop(self, caller: Account) -> Optional[Account]:
        """
        Settle the pending hop bid and open the next expansion round.

        Opening mints total_supply // 10000 to escrow, and only happens while
        under-collateralized with token_price > 1.

        Returns:
            The winner that was paid out, or None.

        Raises:
            TooSoon: If called within the cooldown of the previous trigger
        """
        if self.verbose:
            print(f"HOP triggered by {caller}")
        return self.hop.trigger()

    @entry_point
    def bid_expand(self, caller: Account, shares_amount: int) -> None:
        """
        Bid shares for the escrowed ledger tokens.

        The caller must have approved ESCROW_ACCOUNT on the shares token.

        Raises:
            BidTooLow: If shares_amount is not strictly above the current bid
        """
        self.hop.bid(caller, shares_amount)

    # ========================================================================
    # CONTRACTION AUCTION (BACKSTEP)
    # ========================================================================

    @entry_point
    def trigger_backstep(self, caller: Account) -> Optional[Account]:
        """
        Settle the pending backstep bid and open the next contraction round.

        Opening fixes contraction_amount = total_supply // 10000, and only happens
        while over-collateralized with token_price < 1.

        Returns:
            The winner that was paid out, or None.

        Raises:
            TooSoon: If called within the cooldown of the previous trigger
        """
        if self.verbose:
            print(f"BACKSTEP triggered by {caller}")
        return self.backstep.trigger()

    @entry_point
    def bid_contract(self, caller: Account, amount: int) -> None:
        """
        Ask for amount shares in exchange for the round's contraction_amount tokens.

        The first bid of a round is accepted as is; later bids must be strictly lower.
        The caller must have approved ESCROW_ACCOUNT on this token.

        Raises:
            NoActiveRound: If no contraction round is open
            TooSoon: If the cooldown since the last trigger has not elapsed
            BidTooLow: If amount is not strictly below the current bid
        """
        self.backstep.bid(caller, amount)

    @property
    def contraction_amount(self) -> int:
        return self.backstep.lot

    def __repr__(self) -> str:
        return (f"Stablecoin({self.symbol}, supply={self.total_supply()}, "
                f"ratio={self.collateral_ratio}, escrow={self.escrow_balance()})")
