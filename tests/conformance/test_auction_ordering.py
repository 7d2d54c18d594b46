"""
Auction Ordering Conformance Tests

INVARIANT: The best bid only ever improves in the auction's direction.

    ASCENDING:  every accepted bid b' > b (the previous best)
    DESCENDING: first bid accepted as is, every later accepted bid b' < b

INVARIANT: Escrow holds exactly the current best bidder's payment.

    hop:      shares.balance_of(ESCROW) == bid_amount
    backstep: escrow ledger tokens committed == contraction_amount while a bid is pending
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from pegledger import (
    Clock, TokenLedger, Stablecoin, LedgerError,
    ESCROW_ACCOUNT, COLLATERAL_RATIO_PRECISION, AUCTION_COOLDOWN,
)

from tests.helpers import ORACLE, ISSUER, START


BIDDERS = ["alice", "bob", "carol"]

bids = st.lists(
    st.tuples(st.sampled_from(BIDDERS), st.integers(min_value=0, max_value=1_000)),
    max_size=25,
)


def build_coin(ratio: int, token_price: int) -> Stablecoin:
    clock = Clock(START)
    shares = TokenLedger("Frax Shares", "FXS", minters={ESCROW_ACCOUNT}, verbose=False)
    collateral = TokenLedger("USD Coin", "USDC", minters={ISSUER}, verbose=False)
    coin = Stablecoin("Frax", "FRAX", ORACLE, shares, clock, verbose=False)
    coin.set_og_collateral(ORACLE, collateral)
    for name in BIDDERS:
        collateral.mint(ISSUER, name, 200_000)
        collateral.approve(name, ESCROW_ACCOUNT, 200_000)
        coin.mint_1to1(name, 200_000)
        coin.approve(name, ESCROW_ACCOUNT, 10_000)
        shares.mint(ESCROW_ACCOUNT, name, 1_000)
        shares.approve(name, ESCROW_ACCOUNT, 100_000)
    coin.set_collateral_ratio(ORACLE, ratio)
    coin.set_prices(ORACLE, token_price, 10)
    return coin


class TestHopOrdering:
    @given(bids)
    @settings(max_examples=100, deadline=None)
    def test_accepted_bids_strictly_increase(self, sequence):
        coin = build_coin(COLLATERAL_RATIO_PRECISION * 9 // 10, 2)
        coin.trigger_hop("keeper")
        accepted = []
        for bidder, amount in sequence:
            try:
                coin.bid_expand(bidder, amount)
            except LedgerError:
                continue
            accepted.append(amount)
            assert coin.shares.balance_of(ESCROW_ACCOUNT) == amount
        assert accepted == sorted(set(accepted))
        assert all(a > 0 for a in accepted)

    @given(bids)
    @settings(max_examples=100, deadline=None)
    def test_losing_bidders_hold_all_their_shares(self, sequence):
        coin = build_coin(COLLATERAL_RATIO_PRECISION * 9 // 10, 2)
        for bidder, amount in sequence:
            try:
                coin.bid_expand(bidder, amount)
            except LedgerError:
                pass
        for name in BIDDERS:
            if name != coin.hop.bidder:
                assert coin.shares.balance_of(name) == 1_000


class TestBackstepOrdering:
    @given(bids)
    @settings(max_examples=100, deadline=None)
    def test_accepted_bids_strictly_decrease(self, sequence):
        coin = build_coin(COLLATERAL_RATIO_PRECISION * 11 // 10, 0)
        coin.trigger_backstep("keeper")
        coin.clock.advance(AUCTION_COOLDOWN)
        lot = coin.contraction_amount
        accepted = []
        for bidder, amount in sequence:
            try:
                coin.bid_contract(bidder, amount)
            except LedgerError:
                continue
            accepted.append(amount)
            assert coin.escrow_balance() == lot
        assert accepted == sorted(set(accepted), reverse=True)

    @given(bids)
    @settings(max_examples=100, deadline=None)
    def test_settlement_contracts_supply_by_lot(self, sequence):
        coin = build_coin(COLLATERAL_RATIO_PRECISION * 11 // 10, 0)
        coin.trigger_backstep("keeper")
        coin.clock.advance(AUCTION_COOLDOWN)
        lot = coin.contraction_amount
        for bidder, amount in sequence:
            try:
                coin.bid_contract(bidder, amount)
            except LedgerError:
                pass
        supply = coin.total_supply()
        winner = coin.backstep.bidder
        price = coin.backstep.bid_amount

        assert coin.trigger_backstep("keeper") == winner
        if winner is None:
            assert coin.total_supply() == supply
        else:
            assert coin.total_supply() == supply - lot
            assert coin.shares.balance_of(winner) == 1_000 + price
