"""
Tests for the generic PeriodicAuction state machine, using recording terms.
"""

import pytest
from datetime import timedelta

from pegledger import (
    PeriodicAuction, Direction, AuctionRound,
    BidTooLow, NoActiveRound, TooSoon, InvalidAccount,
    AUCTION_COOLDOWN, NULL_ACCOUNT,
)


class RecordingTerms:
    """AuctionTerms that record every leg instead of moving tokens."""

    def __init__(self, lot=100):
        self.next_lot = lot
        self.calls = []

    def open_lot(self):
        self.calls.append(("open", self.next_lot))
        return self.next_lot

    def collect(self, bidder, bid, lot):
        self.calls.append(("collect", bidder, bid, lot))

    def refund(self, bidder, bid, lot):
        self.calls.append(("refund", bidder, bid, lot))

    def pay_winner(self, bidder, bid, lot):
        self.calls.append(("pay", bidder, bid, lot))


@pytest.fixture
def terms():
    return RecordingTerms()


@pytest.fixture
def ascending(terms, clock):
    return PeriodicAuction("UP", Direction.ASCENDING, terms, clock, verbose=False)


@pytest.fixture
def descending(terms, clock):
    return PeriodicAuction(
        "DOWN", Direction.DESCENDING, terms, clock,
        requires_open_round=True, bid_after_cooldown=True, verbose=False,
    )


class TestTrigger:
    def test_first_trigger_is_always_eligible(self, ascending, terms, clock):
        assert ascending.last_settlement_time is None
        assert ascending.trigger() is None
        assert ascending.lot == 100
        assert ascending.last_settlement_time == clock.now
        assert terms.calls == [("open", 100)]

    def test_second_trigger_inside_cooldown_is_too_soon(self, ascending, terms, clock):
        ascending.trigger()
        clock.advance(AUCTION_COOLDOWN - timedelta(seconds=1))
        with pytest.raises(TooSoon):
            ascending.trigger()
        assert terms.calls == [("open", 100)]

    def test_trigger_exactly_at_cooldown(self, ascending, clock):
        ascending.trigger()
        clock.advance(AUCTION_COOLDOWN)
        ascending.trigger()
        assert ascending.last_settlement_time == clock.now

    def test_trigger_settles_pending_bidder(self, ascending, terms, clock):
        ascending.trigger()
        ascending.bid("alice", 10)
        clock.advance(AUCTION_COOLDOWN)
        terms.calls.clear()
        terms.next_lot = 0

        assert ascending.trigger() == "alice"
        assert terms.calls == [("pay", "alice", 10, 100), ("open", 0)]
        assert ascending.round == AuctionRound(last_settlement_time=clock.now)
        assert not ascending.is_open()

    def test_next_trigger_time(self, ascending, clock):
        assert ascending.next_trigger_time() is None
        ascending.trigger()
        assert ascending.next_trigger_time() == clock.now + AUCTION_COOLDOWN

    def test_custom_cooldown(self, terms, clock):
        auction = PeriodicAuction("FAST", Direction.ASCENDING, terms, clock,
                                  cooldown=timedelta(minutes=5), verbose=False)
        auction.trigger()
        clock.advance(timedelta(minutes=5))
        auction.trigger()


class TestAscendingBids:
    def test_first_bid_must_be_positive(self, ascending):
        with pytest.raises(BidTooLow):
            ascending.bid("alice", 0)

    def test_outbid_refunds_previous(self, ascending, terms):
        ascending.bid("alice", 10)
        ascending.bid("bob", 20)
        assert terms.calls == [
            ("collect", "alice", 10, 0),
            ("refund", "alice", 10, 0),
            ("collect", "bob", 20, 0),
        ]
        assert ascending.bidder == "bob"
        assert ascending.bid_amount == 20

    def test_equal_bid_rejected(self, ascending, terms):
        ascending.bid("alice", 10)
        with pytest.raises(BidTooLow):
            ascending.bid("bob", 10)
        assert ascending.bidder == "alice"
        assert len(terms.calls) == 1

    def test_lower_bid_rejected(self, ascending):
        ascending.bid("alice", 10)
        with pytest.raises(BidTooLow):
            ascending.bid("bob", 9)

    def test_bidding_without_open_round_is_allowed(self, ascending):
        assert not ascending.is_open()
        ascending.bid("alice", 1)
        assert ascending.bidder == "alice"

    def test_null_bidder(self, ascending):
        with pytest.raises(InvalidAccount):
            ascending.bid(NULL_ACCOUNT, 5)


class TestDescendingBids:
    def _open(self, auction, clock):
        auction.trigger()
        clock.advance(AUCTION_COOLDOWN)

    def test_no_active_round(self, descending):
        with pytest.raises(NoActiveRound):
            descending.bid("alice", 5)

    def test_closed_round_after_trigger_with_zero_lot(self, descending, terms, clock):
        terms.next_lot = 0
        descending.trigger()
        clock.advance(AUCTION_COOLDOWN)
        with pytest.raises(NoActiveRound):
            descending.bid("alice", 5)

    def test_bidding_before_cooldown_is_too_soon(self, descending):
        descending.trigger()
        with pytest.raises(TooSoon):
            descending.bid("alice", 5)

    def test_first_bid_accepted_unconditionally(self, descending, clock):
        self._open(descending, clock)
        descending.bid("alice", 1_000_000)
        assert descending.bidder == "alice"

    def test_first_bid_of_zero_accepted(self, descending, clock):
        self._open(descending, clock)
        descending.bid("alice", 0)
        assert descending.bidder == "alice"
        with pytest.raises(BidTooLow):
            descending.bid("bob", 0)

    def test_lower_bid_displaces(self, descending, terms, clock):
        self._open(descending, clock)
        terms.calls.clear()
        descending.bid("alice", 50)
        descending.bid("bob", 40)
        assert terms.calls == [
            ("collect", "alice", 50, 100),
            ("refund", "alice", 50, 100),
            ("collect", "bob", 40, 100),
        ]

    @pytest.mark.parametrize("amount", [40, 41])
    def test_equal_or_higher_bid_rejected(self, descending, clock, amount):
        self._open(descending, clock)
        descending.bid("alice", 40)
        with pytest.raises(BidTooLow):
            descending.bid("bob", amount)


class TestSnapshot:
    def test_restore_round(self, ascending):
        saved = ascending.snapshot()
        ascending.bid("alice", 10)
        ascending.restore(saved)
        assert ascending.bidder is None
        assert ascending.bid_amount == 0

    def test_round_property_is_a_copy(self, ascending):
        r = ascending.round
        r.bidder = "mallory"
        assert ascending.bidder is None
