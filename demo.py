#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Stablecoin Step by Step

A walk through one stablecoin's life: minting against collateral, expanding
supply above peg, contracting it below peg, and proving the books balance.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation   - Tokens, the collateral desk, rejected calls
  4:    Oracle       - Who may move prices and the collateral ratio
  5-6:  Expansion    - Hop auctions and the hourly cooldown
  7:    Contraction  - Backstep auctions
  8:    Audit        - Supply checks and event replay

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime
import sys

from pegledger import (
    Clock, TokenLedger, Stablecoin, LedgerError, replay_events,
    ESCROW_ACCOUNT, COLLATERAL_RATIO_PRECISION, AUCTION_COOLDOWN,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    oracle: str = "oracle"
    issuer: str = "circle"

    # Collateral deposits
    alice_deposit: int = 1_000_000
    bob_deposit: int = 500_000

    # Shares handed to hop bidders
    bidder_shares: int = 1_000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(frax: Stablecoin, *accounts: str):
    for account in accounts:
        print(f"  {account:<8} {frax.symbol}={frax.balance_of(account):>10,}  "
              f"{frax.shares.symbol}={frax.shares.balance_of(account):>6,}")
    print(f"  {'escrow':<8} {frax.symbol}={frax.escrow_balance():>10,}  "
          f"{frax.shares.symbol}={frax.shares.balance_of(ESCROW_ACCOUNT):>6,}")
    print(f"  supply   {frax.total_supply():,}")


# ============================================================================
# PHASE 1: FOUNDATION
# ============================================================================

def step_01_setup():
    step_header(1, "Three Tokens and a Clock",
        "Create the ledger token, its shares token and a collateral token.")

    print("""
    The stablecoin controller owns one identity, ESCROW_ACCOUNT, in every token:
    - It custodies collateral deposited through the 1:1 desk
    - It holds auction escrow for both supply auctions
    - It is the only minter of the shares token
    """)

    clock = Clock(CONFIG.start_time)
    shares = TokenLedger("Frax Shares", "FXS", minters={ESCROW_ACCOUNT})
    usdc = TokenLedger("USD Coin", "USDC", minters={CONFIG.issuer})
    frax = Stablecoin("Frax", "FRAX", CONFIG.oracle, shares, clock)
    frax.set_collateral(CONFIG.oracle, usdc)
    frax.set_og_collateral(CONFIG.oracle, usdc)

    print(f">>> {frax!r}")
    print(f">>> collateral ratio: {frax.collateral_ratio} (== {COLLATERAL_RATIO_PRECISION}, fully collateralized)")
    return frax, usdc, clock


def step_02_collateral_desk(frax: Stablecoin, usdc: TokenLedger):
    step_header(2, "The Collateral Desk",
        "Deposit USDC and receive FRAX 1:1 while the ratio is exactly 100%.")

    for account, amount in [("alice", CONFIG.alice_deposit), ("bob", CONFIG.bob_deposit)]:
        print(f">>> usdc.approve('{account}', ESCROW_ACCOUNT, {amount:,})")
        print(f">>> frax.mint_1to1('{account}', {amount:,})")
        usdc.mint(CONFIG.issuer, account, amount)
        usdc.approve(account, ESCROW_ACCOUNT, amount)
        frax.mint_1to1(account, amount)

    section_header("Balances")
    show_balances(frax, "alice", "bob")
    print(f"  USDC in custody: {usdc.balance_of(ESCROW_ACCOUNT):,}")


def step_03_rejections(frax: Stablecoin):
    step_header(3, "Rejected Calls",
        "A failing call raises and leaves every token exactly as it was.")

    before = frax.balance_of("alice")
    try:
        frax.redeem_1to1("alice", before + 1)
    except LedgerError as e:
        print(f"Caught {type(e).__name__}: {e}")
    print(f"alice FRAX balance: {frax.balance_of('alice'):,} (unchanged)")


# ============================================================================
# PHASE 2: ORACLE
# ============================================================================

def step_04_oracle(frax: Stablecoin):
    step_header(4, "The Oracle Gateway",
        "Only the oracle principal may push prices or move the collateral ratio.")

    try:
        frax.set_prices("mallory", 5, 5)
    except LedgerError as e:
        print(f"Caught {type(e).__name__}: {e}")

    print(">>> frax.set_collateral_ratio('oracle', 90%)")
    frax.set_collateral_ratio(CONFIG.oracle, COLLATERAL_RATIO_PRECISION * 9 // 10)
    print(">>> frax.set_prices('oracle', 2, 10)")
    frax.set_prices(CONFIG.oracle, 2, 10)

    section_header("Key Insight")
    print("""
    Below 100% the desk closes: mint_1to1 and redeem_1to1 now raise
    OpenPhaseRequired. Supply moves only through the auctions.
    """)
    try:
        frax.mint_1to1("alice", 1)
    except LedgerError as e:
        print(f"Caught {type(e).__name__}: {e}")


# ============================================================================
# PHASE 3: AUCTIONS
# ============================================================================

def step_05_hop(frax: Stablecoin, clock: Clock):
    step_header(5, "Hop: Expanding Supply",
        "Under-collateralized and above peg, each round mints 1bp of supply for shares.")

    frax.trigger_hop("keeper")

    for bidder in ("carol", "dave"):
        frax.shares.mint(ESCROW_ACCOUNT, bidder, CONFIG.bidder_shares)
        frax.shares.approve(bidder, ESCROW_ACCOUNT, CONFIG.bidder_shares)

    print(">>> frax.bid_expand('carol', 300)")
    frax.bid_expand("carol", 300)
    print(">>> frax.bid_expand('dave', 450)    # carol refunded")
    frax.bid_expand("dave", 450)
    show_balances(frax, "carol", "dave")

    clock.advance(AUCTION_COOLDOWN)
    print(f"\n>>> clock advanced to {clock.now}")
    frax.trigger_hop("keeper")

    section_header("After Settlement")
    show_balances(frax, "carol", "dave")


def step_06_cooldown(frax: Stablecoin):
    step_header(6, "The Cooldown",
        "Each auction can be triggered at most once per hour.")

    try:
        frax.trigger_hop("keeper")
    except LedgerError as e:
        print(f"Caught {type(e).__name__}: {e}")
    print(f"Next hop allowed at {frax.hop.next_trigger_time()}")


def step_07_backstep(frax: Stablecoin, clock: Clock):
    step_header(7, "Backstep: Contracting Supply",
        "Over-collateralized and below peg, bidders hand in FRAX for the fewest new shares.")

    frax.set_collateral_ratio(CONFIG.oracle, COLLATERAL_RATIO_PRECISION * 11 // 10)
    frax.set_prices(CONFIG.oracle, 0, 10)
    frax.trigger_backstep("keeper")
    lot = frax.contraction_amount
    print(f"contraction_amount = {lot:,}")

    clock.advance(AUCTION_COOLDOWN)
    for bidder in ("alice", "bob"):
        frax.approve(bidder, ESCROW_ACCOUNT, lot)

    print(">>> frax.bid_contract('alice', 80)")
    frax.bid_contract("alice", 80)
    print(">>> frax.bid_contract('bob', 60)     # alice refunded")
    frax.bid_contract("bob", 60)

    clock.advance(AUCTION_COOLDOWN)
    frax.trigger_backstep("keeper")

    section_header("After Settlement")
    show_balances(frax, "alice", "bob")


# ============================================================================
# PHASE 4: AUDIT
# ============================================================================

def step_08_audit(frax: Stablecoin, usdc: TokenLedger):
    step_header(8, "Audit",
        "Supply equals the sum of balances and the event trail replays to the live state.")

    for token in (frax, frax.shares, usdc):
        check = token.verify_supply()
        replayed = replay_events(token.events).matches(token)
        mark = "✓" if check['valid'] and replayed else "✗"
        print(f"  {mark} {token.symbol:<5} supply={check['total_supply']:>10,}  "
              f"events={len(token.events):>3}  replay={'ok' if replayed else 'MISMATCH'}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       PEGLEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    frax, usdc, clock = step_01_setup()
    wait_for_enter()
    step_02_collateral_desk(frax, usdc)
    wait_for_enter()
    step_03_rejections(frax)
    wait_for_enter()
    step_04_oracle(frax)
    wait_for_enter()
    step_05_hop(frax, clock)
    wait_for_enter()
    step_06_cooldown(frax)
    wait_for_enter()
    step_07_backstep(frax, clock)
    wait_for_enter()
    step_08_audit(frax, usdc)

    print("""
    Next steps:
      - See pegledger/stablecoin.py for the controller
      - See pegledger/auction.py for the shared auction state machine
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
