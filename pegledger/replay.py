"""
replay.py - Rebuild token state from its event stream

Indexers and UIs never read ledger internals; they fold the Transfer and Approval
events. replay_events() performs that fold so the result can be checked against
the live ledger:

    state = replay_events(token.events)
    assert state.matches(token)

Transfer events move balances (NULL_ACCOUNT as sender mints, as recipient burns).
Approval events carry the new absolute allowance, so the last one per
(owner, spender) pair wins.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .core import (
    Balances, Allowances, Event, Transfer, Approval, TokenView,
    NULL_ACCOUNT, LedgerError,
)


@dataclass
class ReplayedState:
    """Balances, allowances and supply reconstructed from events."""
    balances: Balances = field(default_factory=dict)
    allowances: Allowances = field(default_factory=dict)
    total_supply: int = 0

    def apply(self, event: Event) -> None:
        if isinstance(event, Transfer):
            if event.sender == NULL_ACCOUNT:
                self.total_supply += event.amount
            else:
                self.balances[event.sender] = self.balances.get(event.sender, 0) - event.amount
            if event.recipient == NULL_ACCOUNT:
                self.total_supply -= event.amount
            else:
                self.balances[event.recipient] = self.balances.get(event.recipient, 0) + event.amount
        elif isinstance(event, Approval):
            self.allowances[(event.owner, event.spender)] = event.value
        else:
            raise LedgerError(f"Cannot replay unknown event {event!r}")

    def non_zero_balances(self) -> Balances:
        return {a: b for a, b in self.balances.items() if b}

    def matches(self, view: TokenView) -> bool:
        """True if every replayed balance, allowance and the supply agree with view."""
        if self.total_supply != view.total_supply():
            return False
        for account, balance in self.balances.items():
            if view.balance_of(account) != balance:
                return False
        for (owner, spender), value in self.allowances.items():
            if view.allowance(owner, spender) != value:
                return False
        return True


def replay_events(events: Iterable[Event]) -> ReplayedState:
    """
    Fold an event stream into a ReplayedState.

    Raises:
        LedgerError: If the stream contains something other than Transfer or Approval,
                     or drives a balance negative (the stream is not a valid history)
    """
    state = ReplayedState()
    for event in events:
        state.apply(event)
        if isinstance(event, Transfer) and event.sender != NULL_ACCOUNT:
            if state.balances[event.sender] < 0:
                raise LedgerError(f"Replay drove {event.sender} negative at {event!r}")
    return state
