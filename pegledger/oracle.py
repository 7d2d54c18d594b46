"""
oracle.py - Oracle Gateway

The OracleGateway is the single authority record for price and phase state:

1. oracle_address: the only principal allowed to write anything here
2. token_price / shares_price: the price pair read by the auctions
3. collateral_ratio: the phase indicator read by the collateral desk and the auctions
4. registries: accepted collateral tokens, satellite pool addresses, primary collateral

Components that need these values receive the gateway by reference and only read it.
Every write goes through a method that checks the caller first.

No bounds, drift or rate-limit checks are applied to prices, and registrations
are appended without duplicate or null detection.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .core import (
    Account, Token,
    COLLATERAL_RATIO_PRECISION,
    Unauthorized, InvalidAccount,
    require_amount, is_null,
)


@dataclass
class OracleGateway:
    """
    Authority record for prices, collateral ratio and registries.

    Attributes:
        oracle_address: Principal allowed to mutate this record
        collateral_ratio: Fixed-point ratio, COLLATERAL_RATIO_PRECISION == 100%
        token_price: Last pushed price of the ledger token
        shares_price: Last pushed price of the shares token
        collateral_tokens: Registered collateral tokens (append-only)
        pools: Registered satellite pool addresses (append-only)
        primary_collateral: Token used by the 1:1 collateral desk
    """
    oracle_address: Account
    collateral_ratio: int = COLLATERAL_RATIO_PRECISION
    token_price: int = 0
    shares_price: int = 0
    collateral_tokens: List[Token] = field(default_factory=list)
    pools: List[Account] = field(default_factory=list)
    primary_collateral: Optional[Token] = None

    def __post_init__(self):
        if is_null(self.oracle_address):
            raise InvalidAccount("Oracle address cannot be the null account")
        require_amount(self.collateral_ratio)

    # ------------------------------------------------------------------
    # Phase
    # ------------------------------------------------------------------

    def is_fully_collateralized(self) -> bool:
        return self.collateral_ratio == COLLATERAL_RATIO_PRECISION

    def is_under_collateralized(self) -> bool:
        return self.collateral_ratio < COLLATERAL_RATIO_PRECISION

    def is_over_collateralized(self) -> bool:
        return self.collateral_ratio > COLLATERAL_RATIO_PRECISION

    # ------------------------------------------------------------------
    # Authority-checked writes
    # ------------------------------------------------------------------

    def _require_oracle(self, caller: Account) -> None:
        if caller != self.oracle_address:
            raise Unauthorized(f"{caller} is not the oracle")

    def set_prices(self, caller: Account, token_price: int, shares_price: int) -> None:
        """Push a new (token_price, shares_price) pair."""
        self._require_oracle(caller)
        require_amount(token_price)
        require_amount(shares_price)
        self.token_price = token_price
        self.shares_price = shares_price

    def set_oracle(self, caller: Account, new_oracle: Account) -> None:
        """Hand the oracle role to new_oracle. Only the current oracle can do this."""
        self._require_oracle(caller)
        if is_null(new_oracle):
            raise InvalidAccount("Oracle address cannot be the null account")
        self.oracle_address = new_oracle

    def set_collateral_ratio(self, caller: Account, ratio: int) -> None:
        """Write the phase indicator."""
        self._require_oracle(caller)
        require_amount(ratio)
        self.collateral_ratio = ratio

    def register_collateral(self, caller: Account, token: Token) -> None:
        self._require_oracle(caller)
        self.collateral_tokens.append(token)

    def register_pool(self, caller: Account, pool: Account) -> None:
        self._require_oracle(caller)
        self.pools.append(pool)

    def set_primary_collateral(self, caller: Account, token: Token) -> None:
        """Choose the token the collateral desk mints and redeems against."""
        self._require_oracle(caller)
        self.primary_collateral = token

    # ------------------------------------------------------------------
    # Rollback support
    # ------------------------------------------------------------------

    def copy(self) -> OracleGateway:
        """Shallow copy with independent registry lists."""
        return replace(
            self,
            collateral_tokens=list(self.collateral_tokens),
            pools=list(self.pools),
        )

    def restore(self, other: OracleGateway) -> None:
        """Overwrite this record in place with the values of other."""
        self.oracle_address = other.oracle_address
        self.collateral_ratio = other.collateral_ratio
        self.token_price = other.token_price
        self.shares_price = other.shares_price
        self.collateral_tokens = list(other.collateral_tokens)
        self.pools = list(other.pools)
        self.primary_collateral = other.primary_collateral
