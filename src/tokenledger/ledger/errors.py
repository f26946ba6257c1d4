"""Ledger error taxonomy.

Every error raised by the ledger core is a caller error: the inputs are invalid
relative to the current state. State is never modified when one is raised.
"""

from __future__ import annotations

from typing import Any

from tokenledger.ledger.address import Address


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    code = "LEDGER_ERROR"

    def details(self) -> dict[str, Any]:
        return {}


class InsufficientBalance(LedgerError):
    code = "INSUFFICIENT_BALANCE"

    def __init__(self, account: Address, balance: int, required: int) -> None:
        self.account = account
        self.balance = balance
        self.required = required
        super().__init__(f"balance of {account} is {balance}, {required} required")

    def details(self) -> dict[str, Any]:
        return {"account": self.account, "balance": str(self.balance), "required": str(self.required)}


class AllowanceExceeded(LedgerError):
    code = "ALLOWANCE_EXCEEDED"

    def __init__(self, owner: Address, spender: Address, allowance: int, required: int) -> None:
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.required = required
        super().__init__(
            f"allowance of {spender} over {owner} is {allowance}, {required} required"
        )

    def details(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "spender": self.spender,
            "allowance": str(self.allowance),
            "required": str(self.required),
        }


class InvalidRecipient(LedgerError):
    code = "INVALID_RECIPIENT"

    def __init__(self, recipient: Address) -> None:
        self.recipient = recipient
        super().__init__(f"invalid recipient: {recipient!r}")

    def details(self) -> dict[str, Any]:
        return {"recipient": self.recipient}


class InvalidSpender(LedgerError):
    code = "INVALID_SPENDER"

    def __init__(self, spender: Address) -> None:
        self.spender = spender
        super().__init__(f"invalid spender: {spender!r}")

    def details(self) -> dict[str, Any]:
        return {"spender": self.spender}


class InvalidAmount(LedgerError):
    """Amount is not an unsigned 256-bit integer."""

    code = "INVALID_AMOUNT"

    def __init__(self, amount: Any) -> None:
        self.amount = amount
        super().__init__(f"invalid amount: {amount!r}")

    def details(self) -> dict[str, Any]:
        return {"amount": repr(self.amount)}
