"""Ledger events and journal record serialization helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union
from uuid import uuid4

from tokenledger.ledger.address import Address


@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every successful transfer and transfer_from."""

    sender: Address
    recipient: Address
    value: int

    name = "Transfer"

    def args(self) -> dict[str, Any]:
        return {"from": self.sender, "to": self.recipient, "value": self.value}


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on every successful approve."""

    owner: Address
    spender: Address
    value: int

    name = "Approval"

    def args(self) -> dict[str, Any]:
        return {"owner": self.owner, "spender": self.spender, "value": self.value}


LedgerEvent = Union[TransferEvent, ApprovalEvent]


class EventType(str, Enum):
    """All journaled event types."""

    LEDGER_CREATED = "LedgerCreated"
    TRANSFER = "Transfer"
    APPROVAL = "Approval"
    OPERATION_REJECTED = "OperationRejected"


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format timestamp as ISO-8601 with Z suffix."""
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Event:
    """Immutable journal record."""

    event_id: str
    event_type: EventType
    timestamp: datetime
    sequence_num: int
    payload: dict[str, Any]
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to a JSON-compatible dict."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": format_timestamp(self.timestamp),
            "sequence_num": self.sequence_num,
            "payload": self.payload,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """Deserialize event from a dict."""
        ts = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
        return cls(
            event_id=data["event_id"],
            event_type=EventType(data["event_type"]),
            timestamp=ts,
            sequence_num=int(data["sequence_num"]),
            payload=data.get("payload", {}),
            metadata=data.get("metadata", {}),
        )


def new_event(
    event_type: EventType,
    payload: dict[str, Any],
    sequence_num: int,
    metadata: dict[str, Any] | None = None,
) -> Event:
    """Create a new event with a fresh UUID."""
    return Event(
        event_id=str(uuid4()),
        event_type=event_type,
        timestamp=utc_now(),
        sequence_num=sequence_num,
        payload=payload,
        metadata=metadata or {},
    )


# Token amounts overflow 64-bit JSON integers, so journal payloads carry them as
# decimal strings.


def transfer_payload(event: TransferEvent, spender: Address | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "from": event.sender,
        "to": event.recipient,
        "value": str(event.value),
    }
    if spender is not None:
        payload["spender"] = spender
    return payload


def approval_payload(event: ApprovalEvent) -> dict[str, Any]:
    return {"owner": event.owner, "spender": event.spender, "value": str(event.value)}


def parse_amount(raw: Any) -> int:
    """Read an amount written by `transfer_payload` / `approval_payload`."""
    if isinstance(raw, bool):
        raise ValueError(f"amount must not be a bool: {raw!r}")
    return int(raw)
