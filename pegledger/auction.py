"""
auction.py - Periodic Single-Round English Auction

One generic state machine used for both supply-adjustment auctions:

    Idle ──bid()──▶ Pending ──trigger()──▶ settle winner, open next round ──▶ Idle

- trigger(): once the cooldown has elapsed since the previous trigger, settles the
  pending bidder (if any), asks the terms for the next round's lot, and restarts
  the timer. Calling it early raises TooSoon instead of doing nothing.
- bid(): replaces the current best bid when the new one improves on it in the
  auction's direction (higher for ASCENDING, lower for DESCENDING). The displaced
  bidder is refunded before the new bidder pays in.

The auction itself never moves tokens. Every leg (opening, collecting, refunding,
paying the winner) is delegated to an AuctionTerms object, so the same state
machine serves the expansion auction (shares in, ledger tokens out) and the
contraction auction (ledger tokens in, shares out).
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Protocol

from .core import (
    Account, Clock,
    AUCTION_COOLDOWN,
    BidTooLow, NoActiveRound, TooSoon, InvalidAccount,
    require_amount, is_null,
)


class Direction(Enum):
    """
    Which bids win.

    ASCENDING: each accepted bid must be strictly higher than the last.
    DESCENDING: the first bid is accepted unconditionally, later ones must be strictly lower.
    """
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass
class AuctionRound:
    """
    State of the current round.

    Attributes:
        bidder: Account holding the best bid, None when no bid is pending
        bid: Best bid so far (0 when no bid is pending)
        lot: Quantity offered by the round, fixed when the round opens
        last_settlement_time: When the auction was last triggered (None: never)
    """
    bidder: Optional[Account] = None
    bid: int = 0
    lot: int = 0
    last_settlement_time: Optional[datetime] = None

    @property
    def has_bidder(self) -> bool:
        return self.bidder is not None


class AuctionTerms(Protocol):
    """
    Settlement legs of an auction.

    Each method runs inside the caller's atomic block; raising aborts the whole call.
    """

    def open_lot(self) -> int:
        """Prepare the next round and return its lot (0 means the round stays closed)."""
        ...

    def collect(self, bidder: Account, bid: int, lot: int) -> None:
        """Take the new best bidder's payment into escrow."""
        ...

    def refund(self, bidder: Account, bid: int, lot: int) -> None:
        """Return a displaced bidder's payment."""
        ...

    def pay_winner(self, bidder: Account, bid: int, lot: int) -> None:
        """Deliver the proceeds to the winner of a finished round."""
        ...


class PeriodicAuction:
    """
    Cooldown-gated single-round English auction.

    Example:
        hop = PeriodicAuction("HOP", Direction.ASCENDING, HopTerms(coin), clock)
        hop.bid("alice", 10)
        hop.bid("bob", 20)        # alice refunded
        clock.advance(AUCTION_COOLDOWN)
        hop.trigger()             # bob paid, next round opened
    """

    def __init__(
        self,
        name: str,
        direction: Direction,
        terms: AuctionTerms,
        clock: Clock,
        cooldown: timedelta = AUCTION_COOLDOWN,
        requires_open_round: bool = False,
        bid_after_cooldown: bool = False,
        verbose: bool = True,
    ):
        """
        Args:
            name: Label used in output
            direction: ASCENDING or DESCENDING
            terms: Settlement legs
            clock: Shared time source
            cooldown: Minimum time between triggers
            requires_open_round: Reject bids with NoActiveRound while the lot is 0
            bid_after_cooldown: Reject bids with TooSoon until the cooldown has elapsed
            verbose: Print settlements and openings
        """
        self.name = name
        self.direction = direction
        self.terms = terms
        self.clock = clock
        self.cooldown = cooldown
        self.requires_open_round = requires_open_round
        self.bid_after_cooldown = bid_after_cooldown
        self.verbose = verbose
        self._round = AuctionRound()

    # ------------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------------

    @property
    def round(self) -> AuctionRound:
        """Copy of the current round state."""
        return replace(self._round)

    @property
    def bidder(self) -> Optional[Account]:
        return self._round.bidder

    @property
    def bid_amount(self) -> int:
        return self._round.bid

    @property
    def lot(self) -> int:
        return self._round.lot

    @property
    def last_settlement_time(self) -> Optional[datetime]:
        return self._round.last_settlement_time

    def is_open(self) -> bool:
        return self._round.lot > 0

    def cooldown_elapsed(self) -> bool:
        last = self._round.last_settlement_time
        return last is None or self.clock.now - last >= self.cooldown

    def next_trigger_time(self) -> Optional[datetime]:
        """Earliest time trigger() will succeed (None: immediately)."""
        last = self._round.last_settlement_time
        return None if last is None else last + self.cooldown

    def improves_on_current(self, amount: int) -> bool:
        if self.direction is Direction.ASCENDING:
            return amount > self._round.bid
        return not self._round.has_bidder or amount < self._round.bid

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def trigger(self) -> Optional[Account]:
        """
        Settle the finished round and open the next one.

        Returns:
            The account that won the settled round, or None if nobody had bid.

        Raises:
            TooSoon: If the cooldown has not elapsed since the last trigger
        """
        now = self.clock.now
        if not self.cooldown_elapsed():
            raise TooSoon(
                f"{self.name} cannot trigger before {self.next_trigger_time()} (now {now})"
            )

        finished = self._round
        winner = None
        if finished.has_bidder:
            self.terms.pay_winner(finished.bidder, finished.bid, finished.lot)
            winner = finished.bidder
            if self.verbose:
                print(f"✓ {self.name} settled: {winner} won with bid {finished.bid}")

        lot = self.terms.open_lot()
        self._round = AuctionRound(lot=lot, last_settlement_time=now)
        if self.verbose:
            state = f"opened with lot {lot}" if lot else "closed (no lot)"
            print(f"✓ {self.name} {state} at {now}")
        return winner

    def bid(self, bidder: Account, amount: int) -> None:
        """
        Place a bid, displacing and refunding the current best bidder.

        Raises:
            InvalidAccount: If bidder is the null identity
            NoActiveRound: If the round must be open and is not
            TooSoon: If bids are only accepted after the cooldown and it has not elapsed
            BidTooLow: If amount does not improve on the current bid
        """
        require_amount(amount)
        if is_null(bidder):
            raise InvalidAccount("Bid from the null account")
        if self.requires_open_round and not self.is_open():
            raise NoActiveRound(f"{self.name} has no open round")
        if self.bid_after_cooldown and not self.cooldown_elapsed():
            raise TooSoon(f"{self.name} accepts bids from {self.next_trigger_time()}")
        if not self.improves_on_current(amount):
            relation = "above" if self.direction is Direction.ASCENDING else "below"
            raise BidTooLow(
                f"{self.name} bid {amount} must be strictly {relation} {self._round.bid}"
            )

        current = self._round
        if current.has_bidder:
            self.terms.refund(current.bidder, current.bid, current.lot)
        self._round = replace(current, bidder=bidder, bid=amount)
        self.terms.collect(bidder, amount, current.lot)
        if self.verbose:
            print(f"✓ {self.name} bid: {bidder} -> {amount}")

    # ------------------------------------------------------------------
    # Rollback support
    # ------------------------------------------------------------------

    def snapshot(self) -> AuctionRound:
        return replace(self._round)

    def restore(self, snapshot: AuctionRound) -> None:
        self._round = replace(snapshot)

    def __repr__(self) -> str:
        r = self._round
        return (f"PeriodicAuction({self.name}, {self.direction.value}, "
                f"bidder={r.bidder}, bid={r.bid}, lot={r.lot})")
