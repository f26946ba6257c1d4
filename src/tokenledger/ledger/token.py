"""Fungible-token ledger: balances, allowances and a fixed total supply.

All mutating operations validate every precondition before touching state, so a
rejected call leaves balances and allowances exactly as they were. One lock per
ledger serializes operations.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from tokenledger.ledger.address import Address, is_null_address
from tokenledger.ledger.errors import (
    AllowanceExceeded,
    InsufficientBalance,
    InvalidAmount,
    InvalidRecipient,
    InvalidSpender,
)
from tokenledger.ledger.events import ApprovalEvent, TransferEvent

MAX_UINT256 = 2**256 - 1
DEFAULT_DECIMALS = 18
# 10**78 already exceeds MAX_UINT256
MAX_DECIMALS = 77


def require_amount(amount: Any) -> int:
    """Return `amount` if it is an unsigned 256-bit integer, else raise InvalidAmount."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount)
    if amount < 0 or amount > MAX_UINT256:
        raise InvalidAmount(amount)
    return amount


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    decimals: int = DEFAULT_DECIMALS


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of the mutable ledger state."""

    total_supply: int
    balances: dict[Address, int] = field(default_factory=dict)
    allowances: dict[tuple[Address, Address], int] = field(default_factory=dict)


class Ledger:
    """Account balances and delegated allowances for one token."""

    def __init__(
        self,
        name: str,
        symbol: str,
        initial_supply: int,
        creator: Address,
        decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        require_amount(initial_supply)
        if isinstance(decimals, bool) or not isinstance(decimals, int):
            raise InvalidAmount(decimals)
        if not 0 <= decimals <= MAX_DECIMALS:
            raise InvalidAmount(decimals)
        if is_null_address(creator):
            raise InvalidRecipient(creator)
        supply = require_amount(initial_supply * 10**decimals)

        self._metadata = TokenMetadata(name=name, symbol=symbol, decimals=decimals)
        self._creator = creator
        self._initial_supply = initial_supply
        self._total_supply = supply
        self._balances: dict[Address, int] = {}
        self._allowances: dict[tuple[Address, Address], int] = {}
        if supply:
            self._balances[creator] = supply
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """The single mutual-exclusion boundary for this ledger."""
        return self._lock

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def metadata(self) -> TokenMetadata:
        return self._metadata

    @property
    def name(self) -> str:
        return self._metadata.name

    @property
    def symbol(self) -> str:
        return self._metadata.symbol

    @property
    def decimals(self) -> int:
        return self._metadata.decimals

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def creator(self) -> Address:
        return self._creator

    @property
    def initial_supply(self) -> int:
        """Construction supply in whole tokens (before decimal scaling)."""
        return self._initial_supply

    def balance_of(self, account: Address) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                total_supply=self._total_supply,
                balances=dict(self._balances),
                allowances=dict(self._allowances),
            )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Reset balances and allowances to a snapshot taken from this ledger."""
        with self._lock:
            if snapshot.total_supply != self._total_supply:
                raise ValueError("snapshot belongs to a ledger with a different supply")
            self._balances = dict(snapshot.balances)
            self._allowances = dict(snapshot.allowances)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def transfer(self, sender: Address, to: Address, amount: int) -> TransferEvent:
        """Move `amount` from `sender` to `to`."""
        with self._lock:
            require_amount(amount)
            if is_null_address(to):
                raise InvalidRecipient(to)
            balance = self.balance_of(sender)
            if balance < amount:
                raise InsufficientBalance(sender, balance, amount)
            self._move(sender, to, amount)
            return TransferEvent(sender, to, amount)

    def approve(self, owner: Address, spender: Address, amount: int) -> ApprovalEvent:
        """Set the allowance of `spender` over `owner` to exactly `amount`."""
        with self._lock:
            require_amount(amount)
            if is_null_address(spender):
                raise InvalidSpender(spender)
            key = (owner, spender)
            if amount:
                self._allowances[key] = amount
            else:
                self._allowances.pop(key, None)
            return ApprovalEvent(owner, spender, amount)

    def transfer_from(
        self,
        spender: Address,
        owner: Address,
        to: Address,
        amount: int,
    ) -> TransferEvent:
        """Move `amount` from `owner` to `to` on behalf of `spender`."""
        with self._lock:
            require_amount(amount)
            if is_null_address(to):
                raise InvalidRecipient(to)
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise AllowanceExceeded(owner, spender, allowed, amount)
            balance = self.balance_of(owner)
            if balance < amount:
                raise InsufficientBalance(owner, balance, amount)

            remaining = allowed - amount
            if remaining:
                self._allowances[(owner, spender)] = remaining
            else:
                self._allowances.pop((owner, spender), None)
            self._move(owner, to, amount)
            return TransferEvent(owner, to, amount)

    def _move(self, sender: Address, to: Address, amount: int) -> None:
        # Preconditions already checked by the caller.
        if sender == to or amount == 0:
            return
        remaining = self._balances[sender] - amount
        if remaining:
            self._balances[sender] = remaining
        else:
            del self._balances[sender]
        self._balances[to] = self._balances.get(to, 0) + amount

    def __repr__(self) -> str:
        return (
            f"Ledger(name={self.name!r}, symbol={self.symbol!r}, "
            f"decimals={self.decimals}, total_supply={self._total_supply})"
        )
