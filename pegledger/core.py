"""
Core types and pure functions for the stablecoin ledger.

This module provides the foundational pieces shared by every component:
1. Constants: reserved accounts, unsigned integer bounds, phase and auction parameters
2. Exceptions: LedgerError and the domain-specific error types
3. Checked arithmetic: unsigned add/sub that raise instead of wrapping
4. Immutable event records: Transfer, Approval
5. Protocols: TokenView for read-only token access, Token for settlement legs
6. Clock: the shared logical time source

All functions in this module are pure. No function here can mutate ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Tuple, Optional, Protocol, Union, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# The null identity. Mint events come from it, burn events go to it, and it can
# never hold a balance or an allowance.
NULL_ACCOUNT = ""

# Reserved account of the stablecoin controller itself. The same identifier is
# used in the ledger token, the shares token and the collateral token, so it
# holds collateral custody and auction escrow in all three.
ESCROW_ACCOUNT = "escrow"

# Amounts are unsigned 256-bit integers.
UINT256_MAX = 2 ** 256 - 1

# Fixed-point denominator for the collateral ratio: 100_000_000 == 100%.
COLLATERAL_RATIO_PRECISION = 100_000_000

# Each auction round works on 1 basis point of the current supply.
EXPANSION_DIVISOR = 10_000

# Minimum time between two triggers of the same auction.
AUCTION_COOLDOWN = timedelta(seconds=3600)

# Default start of logical time.
EPOCH = datetime(1970, 1, 1)


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Account identifier (wallet address).
Account = str

# Mapping from account to balance for a single token.
Balances = Dict[Account, int]

# Mapping from (owner, spender) to remaining allowance.
Allowances = Dict[Tuple[Account, Account], int]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger and controller errors."""
    pass


class InvalidAccount(LedgerError):
    """Raised when a participant of a balance or allowance change is the null identity."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when a debit would take an account balance below zero."""
    pass


class InsufficientAllowance(LedgerError):
    """Raised when a spender tries to move more than its remaining allowance."""
    pass


class Overflow(LedgerError):
    """Raised when an addition would exceed UINT256_MAX."""
    pass


class Unauthorized(LedgerError):
    """Raised when a privileged operation is invoked by the wrong principal."""
    pass


class OpenPhaseRequired(LedgerError):
    """Raised when 1:1 minting or redemption is attempted outside the fully-collateralized phase."""
    pass


class BidTooLow(LedgerError):
    """Raised when a bid does not improve on the current best bid."""
    pass


class NoActiveRound(LedgerError):
    """Raised when bidding on an auction whose round has not been opened."""
    pass


class TooSoon(LedgerError):
    """Raised when an auction is triggered (or bid on) before its cooldown has elapsed."""
    pass


class CollateralNotConfigured(LedgerError):
    """Raised when the collateral desk is used before a primary collateral is set."""
    pass


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def require_amount(amount: int) -> int:
    """
    Validate an unsigned integer amount.

    Raises:
        ValueError: If amount is not an int, is negative, or exceeds UINT256_MAX
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    if amount > UINT256_MAX:
        raise ValueError(f"Amount exceeds UINT256_MAX: {amount}")
    return amount


def checked_add(a: int, b: int) -> int:
    """
    Add two unsigned amounts.

    Raises:
        Overflow: If the sum exceeds UINT256_MAX
    """
    result = a + b
    if result > UINT256_MAX:
        raise Overflow(f"{a} + {b} exceeds UINT256_MAX")
    return result


def checked_sub(a: int, b: int, error: type = LedgerError, message: Optional[str] = None) -> int:
    """
    Subtract two unsigned amounts, failing instead of wrapping.

    Args:
        a: Minuend
        b: Subtrahend
        error: Exception class raised on underflow (e.g. InsufficientBalance)
        message: Optional message for the raised exception

    Raises:
        error: If b > a
    """
    if b > a:
        raise error(message or f"{a} - {b} underflows")
    return a - b


def is_null(account: Optional[Account]) -> bool:
    """
    True if the account is the null identity (None, empty or blank).

    Raises:
        ValueError: If account is neither None nor a str
    """
    if account is None:
        return True
    if not isinstance(account, str):
        raise ValueError(f"Account must be str, got {type(account).__name__}")
    return not account.strip()


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transfer:
    """
    Balance change record.

    Attributes:
        sender: Debited account (NULL_ACCOUNT for a mint)
        recipient: Credited account (NULL_ACCOUNT for a burn)
        amount: Quantity moved
    """
    sender: Account
    recipient: Account
    amount: int

    @property
    def is_mint(self) -> bool:
        return self.sender == NULL_ACCOUNT

    @property
    def is_burn(self) -> bool:
        return self.recipient == NULL_ACCOUNT

    def __repr__(self) -> str:
        src = self.sender or "∅"
        dst = self.recipient or "∅"
        return f"Transfer({self.amount}: {src}→{dst})"


@dataclass(frozen=True, slots=True)
class Approval:
    """
    Allowance change record.

    `value` is always the new absolute allowance, never a delta.
    """
    owner: Account
    spender: Account
    value: int

    def __repr__(self) -> str:
        return f"Approval({self.owner}→{self.spender} = {self.value})"


Event = Union[Transfer, Approval]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TokenView(Protocol):
    """
    Read-only interface to a token ledger.

    Functions accepting a TokenView declare their read-only intent. The
    TokenLedger class implements this protocol but also provides mutation methods.
    """

    def total_supply(self) -> int:
        ...

    def balance_of(self, account: Account) -> int:
        ...

    def allowance(self, owner: Account, spender: Account) -> int:
        ...


@runtime_checkable
class Token(TokenView, Protocol):
    """
    Settlement surface required from collaborator tokens (shares, collateral).

    The first argument of every mutating call is the invoking principal.
    snapshot()/restore() let the stablecoin roll a collaborator back when a
    later leg of the same entry point fails.
    """

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


def require_token(token: Any) -> Token:
    """
    Check that a collaborator implements the full Token protocol.

    Raises:
        TypeError: If token is missing any settlement or rollback method
    """
    if not isinstance(token, Token):
        raise TypeError(
            f"{type(token).__name__} does not implement Token "
            f"(settlement methods plus snapshot/restore)"
        )
    return token

    def transfer(self, sender: Account, recipient: Account, amount: int) -> bool:
        ...

    def transfer_from(self, spender: Account, owner: Account, recipient: Account, amount: int) -> bool:
        ...

    def mint(self, caller: Account, account: Account, amount: int) -> bool:
        ...

    def burn(self, account: Account, amount: int) -> bool:
        ...


# ============================================================================
# CLOCK
# ============================================================================

class Clock:
    """
    Shared logical clock.

    Every auction timer reads the same Clock, so two components can never
    observe time values that disagree with the order calls were made in.
    Time can only move forward.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        self._current_time: datetime = initial_time or EPOCH

    @property
    def now(self) -> datetime:
        """Current logical time."""
        return self._current_time

    def advance_time(self, new_time: datetime) -> None:
        """
        Move the clock to new_time.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward by delta and return the new time."""
        self.advance_time(self._current_time + delta)
        return self._current_time

    def __repr__(self) -> str:
        return f"Clock({self._current_time.isoformat()})"
