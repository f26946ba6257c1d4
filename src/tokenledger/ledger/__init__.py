"""Token ledger core, journal and execution host."""

from tokenledger.ledger.address import NULL_ADDRESS, Address, is_null_address
from tokenledger.ledger.errors import (
    AllowanceExceeded,
    InsufficientBalance,
    InvalidAmount,
    InvalidRecipient,
    InvalidSpender,
    LedgerError,
)
from tokenledger.ledger.events import ApprovalEvent, Event, EventType, LedgerEvent, TransferEvent
from tokenledger.ledger.host import HostError, JournalCorrupted, LedgerHost, LedgerNotInitialized
from tokenledger.ledger.store import EventJournal
from tokenledger.ledger.token import Ledger, LedgerSnapshot, TokenMetadata

__all__ = [
    "Address",
    "AllowanceExceeded",
    "ApprovalEvent",
    "Event",
    "EventJournal",
    "EventType",
    "HostError",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidRecipient",
    "InvalidSpender",
    "JournalCorrupted",
    "Ledger",
    "LedgerError",
    "LedgerEvent",
    "LedgerHost",
    "LedgerNotInitialized",
    "LedgerSnapshot",
    "NULL_ADDRESS",
    "TokenMetadata",
    "TransferEvent",
    "is_null_address",
]
