"""
token.py - Fungible Token Ledger

TokenLedger is the balance/allowance state manager for one fungible token.
It is the only class that mutates balances, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements the TokenView protocol for read-only access
    - Every operation validates completely before writing, so a failed call
      leaves no trace (all checks succeed or nothing changes)
    - Keeps total_supply equal to the sum of all balances
    - Records every balance change as a Transfer event and every allowance
      change as an Approval event
    - Exposes a pre-transfer hook for subclasses to veto balance changes
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple, Any, Iterable, Optional

from .core import (
    # Types
    Account, Balances, Allowances, Event, Transfer, Approval,
    # Constants
    NULL_ACCOUNT,
    # Exceptions
    InvalidAccount, InsufficientBalance, InsufficientAllowance, Unauthorized,
    # Helper functions
    require_amount, checked_add, checked_sub, is_null,
)


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Point-in-time copy of a TokenLedger's mutable state, used for rollback."""
    balances: Tuple[Tuple[Account, int], ...]
    allowances: Tuple[Tuple[Tuple[Account, Account], int], ...]
    total_supply: int
    event_count: int


class TokenLedger:
    """
    Fungible token ledger with checked arithmetic and an event trail.

    Design Principles:
        - Always validates: balances and allowances are checked before any write.
          Subtractions never wrap; they raise InsufficientBalance or
          InsufficientAllowance instead.
        - Always logs: every balance change appends a Transfer event and every
          allowance change appends an Approval event.

    The first argument of every caller-facing method is the invoking principal.
    Methods prefixed with an underscore are primitives for subclasses and trusted
    collaborators; they perform no authorization.

    Thread Safety:
        Not thread-safe. Calls are expected to be serialized by the host.

    Example:
        shares = TokenLedger("Shares", "FXS", minters={ESCROW_ACCOUNT})
        shares.mint(ESCROW_ACCOUNT, "alice", 1000)
        shares.transfer("alice", "bob", 250)
        shares.approve("bob", "carol", 100)
        shares.transfer_from("carol", "bob", "dave", 40)
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        minters: Iterable[Account] = (),
        verbose: bool = True,
    ):
        """
        Create a token ledger.

        Args:
            name: Human-readable token name
            symbol: Ticker symbol
            minters: Principals allowed to call mint()
            verbose: Print balance-changing operations (default: True)
        """
        self.name = name
        self.symbol = symbol
        self.minters: Set[Account] = set(minters)
        self.verbose = verbose
        self._balances: Balances = {}
        self._allowances: Allowances = {}
        self._total_supply: int = 0
        self.events: List[Event] = []

    # ========================================================================
    # TokenView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    def total_supply(self) -> int:
        """Total amount in circulation."""
        return self._total_supply

    def balance_of(self, account: Account) -> int:
        """Balance of an account (0 if it never held anything)."""
        return self._balances.get(account, 0)

    def allowance(self, owner: Account, spender: Account) -> int:
        """Remaining amount spender may move on behalf of owner."""
        return self._allowances.get((owner, spender), 0)

    def holders(self) -> Dict[Account, int]:
        """All accounts with a non-zero balance."""
        return {a: b for a, b in self._balances.items() if b}

    def verify_supply(self) -> Dict[str, Any]:
        """
        Verify that total supply equals the sum of all balances.

        Accounts are summed in sorted order so the result is deterministic.

        Returns:
            Dict with keys:
            - 'valid': bool - True if the invariant holds
            - 'total_supply': int - Recorded total supply
            - 'sum_of_balances': int - Sum over all accounts
            - 'difference': int - total_supply - sum_of_balances

        Example:
            result = token.verify_supply()
            assert result['valid'], f"Supply drifted by {result['difference']}"
        """
        summed = sum(self._balances[a] for a in sorted(self._balances))
        return {
            'valid': summed == self._total_supply,
            'total_supply': self._total_supply,
            'sum_of_balances': summed,
            'difference': self._total_supply - summed,
        }

    # ========================================================================
    # CALLER-FACING OPERATIONS (Mutating)
    # ========================================================================

    def transfer(self, sender: Account, recipient: Account, amount: int) -> bool:
        """
        Move amount from the caller to recipient.

        Raises:
            InvalidAccount: If sender or recipient is the null identity
            InsufficientBalance: If sender holds less than amount
        """
        self._transfer(sender, recipient, amount)
        return True

    def approve(self, owner: Account, spender: Account, amount: int) -> bool:
        """Set the allowance of spender over the caller's tokens to amount."""
        self._approve(owner, spender, amount)
        return True

    def transfer_from(self, spender: Account, owner: Account, recipient: Account, amount: int) -> bool:
        """
        Move amount from owner to recipient using the caller's allowance.

        The allowance is decremented by exactly amount.

        Raises:
            InsufficientAllowance: If spender's allowance is below amount
            InsufficientBalance: If owner holds less than amount
            InvalidAccount: If owner or recipient is the null identity
        """
        remaining = self._spend_allowance_amount(owner, spender, amount)
        self._transfer(owner, recipient, amount)
        self._approve(owner, spender, remaining)
        return True

    def increase_allowance(self, owner: Account, spender: Account, added_value: int) -> bool:
        """Raise spender's allowance by added_value (checked add)."""
        require_amount(added_value)
        self._approve(owner, spender, checked_add(self.allowance(owner, spender), added_value))
        return True

    def decrease_allowance(self, owner: Account, spender: Account, subtracted_value: int) -> bool:
        """
        Lower spender's allowance by subtracted_value.

        Raises:
            InsufficientAllowance: If the allowance would go below zero
        """
        require_amount(subtracted_value)
        current = self.allowance(owner, spender)
        new_value = checked_sub(
            current, subtracted_value, InsufficientAllowance,
            f"Allowance {owner}→{spender}: cannot decrease {current} by {subtracted_value}",
        )
        self._approve(owner, spender, new_value)
        return True

    def burn(self, account: Account, amount: int) -> bool:
        """Destroy amount of the caller's own tokens."""
        self._burn(account, amount)
        return True

    def burn_from(self, spender: Account, account: Account, amount: int) -> bool:
        """
        Destroy amount of account's tokens using the caller's allowance.

        Raises:
            InsufficientAllowance: If spender's allowance is below amount
            InsufficientBalance: If account holds less than amount
        """
        remaining = self._spend_allowance_amount(account, spender, amount)
        self._burn(account, amount)
        self._approve(account, spender, remaining)
        return True

    def mint(self, caller: Account, account: Account, amount: int) -> bool:
        """
        Create amount new tokens for account.

        Raises:
            Unauthorized: If caller is not a registered minter
        """
        if caller not in self.minters:
            raise Unauthorized(f"{caller} is not a minter of {self.symbol}")
        self._mint(account, amount)
        return True

    # ========================================================================
    # PRIMITIVES
    # ========================================================================

    def _before_token_transfer(self, sender: Account, recipient: Account, amount: int) -> None:
        """
        Hook invoked before every balance mutation (mint, burn, transfer).

        sender is NULL_ACCOUNT for a mint and recipient is NULL_ACCOUNT for a burn.
        Subclasses raise to veto the change; nothing has been written yet.
        """
        pass

    def _transfer(self, sender: Account, recipient: Account, amount: int) -> None:
        require_amount(amount)
        if is_null(sender):
            raise InvalidAccount("Transfer from the null account")
        if is_null(recipient):
            raise InvalidAccount("Transfer to the null account")

        self._before_token_transfer(sender, recipient, amount)

        sender_balance = self.balance_of(sender)
        new_sender_balance = checked_sub(
            sender_balance, amount, InsufficientBalance,
            f"{sender} {self.symbol}: balance {sender_balance} < {amount}",
        )
        if sender == recipient:
            new_recipient_balance = sender_balance
            new_sender_balance = sender_balance
        else:
            new_recipient_balance = checked_add(self.balance_of(recipient), amount)

        self._balances[sender] = new_sender_balance
        self._balances[recipient] = new_recipient_balance
        self._emit(Transfer(sender, recipient, amount))

    def _mint(self, account: Account, amount: int) -> None:
        require_amount(amount)
        if is_null(account):
            raise InvalidAccount("Mint to the null account")

        self._before_token_transfer(NULL_ACCOUNT, account, amount)

        new_supply = checked_add(self._total_supply, amount)
        new_balance = checked_add(self.balance_of(account), amount)

        self._total_supply = new_supply
        self._balances[account] = new_balance
        self._emit(Transfer(NULL_ACCOUNT, account, amount))

    def _burn(self, account: Account, amount: int) -> None:
        require_amount(amount)
        if is_null(account):
            raise InvalidAccount("Burn from the null account")

        self._before_token_transfer(account, NULL_ACCOUNT, amount)

        balance = self.balance_of(account)
        new_balance = checked_sub(
            balance, amount, InsufficientBalance,
            f"{account} {self.symbol}: burn {amount} exceeds balance {balance}",
        )
        new_supply = checked_sub(self._total_supply, amount, InsufficientBalance)

        self._balances[account] = new_balance
        self._total_supply = new_supply
        self._emit(Transfer(account, NULL_ACCOUNT, amount))

    def _approve(self, owner: Account, spender: Account, amount: int) -> None:
        require_amount(amount)
        if is_null(owner):
            raise InvalidAccount("Approve from the null account")
        if is_null(spender):
            raise InvalidAccount("Approve to the null account")
        self._allowances[(owner, spender)] = amount
        self._emit(Approval(owner, spender, amount))

    def _spend_allowance_amount(self, owner: Account, spender: Account, amount: int) -> int:
        """Return the allowance left after spending amount, without writing it."""
        require_amount(amount)
        if is_null(owner) or is_null(spender):
            raise InvalidAccount("Allowances never involve the null account")
        current = self.allowance(owner, spender)
        return checked_sub(
            current, amount, InsufficientAllowance,
            f"Allowance {owner}→{spender}: {current} < {amount}",
        )

    def _emit(self, event: Event) -> None:
        self.events.append(event)
        if self.verbose and isinstance(event, Transfer):
            print(f"  {self.symbol}: {event!r}")

    # ========================================================================
    # SNAPSHOT / RESTORE
    # ========================================================================

    def snapshot(self) -> LedgerSnapshot:
        """Capture balances, allowances, supply and event log length."""
        return LedgerSnapshot(
            balances=tuple(self._balances.items()),
            allowances=tuple(self._allowances.items()),
            total_supply=self._total_supply,
            event_count=len(self.events),
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """
        Reinstate a snapshot taken earlier on this ledger.

        Events appended after the snapshot are discarded.
        """
        self._balances = dict(snapshot.balances)
        self._allowances = dict(snapshot.allowances)
        self._total_supply = snapshot.total_supply
        del self.events[snapshot.event_count:]

    def __repr__(self) -> str:
        return f"TokenLedger({self.symbol}, supply={self._total_supply}, holders={len(self.holders())})"
