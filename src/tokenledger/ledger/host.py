"""Execution host: runs ledger operations against a journal.

The host is the environment the ledger core assumes around it. It serializes
calls, records every committed or rejected operation in the journal, and
rebuilds the ledger from that journal on startup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

import structlog

from tokenledger.ledger.address import Address
from tokenledger.ledger.errors import LedgerError
from tokenledger.ledger.events import (
    ApprovalEvent,
    Event,
    EventType,
    TransferEvent,
    approval_payload,
    parse_amount,
    transfer_payload,
)
from tokenledger.ledger.store import EventJournal
from tokenledger.ledger.token import Ledger, LedgerSnapshot

if TYPE_CHECKING:
    from tokenledger.config.settings import TokenConfig
    from tokenledger.monitoring.metrics import LedgerMetrics

log = structlog.get_logger(__name__)


class HostError(Exception):
    """Failure of the hosting environment rather than of a ledger call."""


class LedgerNotInitialized(HostError):
    def __init__(self, journal_path: str) -> None:
        self.journal_path = journal_path
        super().__init__(f"journal at {journal_path} holds no ledger; run `init` first")


class JournalCorrupted(HostError):
    def __init__(self, sequence_num: int, reason: str) -> None:
        self.sequence_num = sequence_num
        self.reason = reason
        super().__init__(f"journal event #{sequence_num}: {reason}")


def _created_payload(ledger: Ledger) -> dict[str, Any]:
    return {
        "name": ledger.name,
        "symbol": ledger.symbol,
        "decimals": ledger.decimals,
        "initial_supply": str(ledger.initial_supply),
        "creator": ledger.creator,
        "total_supply": str(ledger.total_supply),
    }


def replay(events: Iterable[Event], metrics: LedgerMetrics | None = None) -> Ledger | None:
    """Rebuild a ledger from journal events. Returns None for an empty journal.

    With `metrics`, every journaled operation and rejection is counted, so the
    counters cover the whole journal and not only the current process.
    """
    ledger: Ledger | None = None
    for event in events:
        payload = event.payload
        if ledger is None:
            if event.event_type != EventType.LEDGER_CREATED:
                raise JournalCorrupted(event.sequence_num, "first event is not LedgerCreated")
            try:
                ledger = Ledger(
                    name=payload["name"],
                    symbol=payload["symbol"],
                    initial_supply=parse_amount(payload["initial_supply"]),
                    creator=payload["creator"],
                    decimals=int(payload["decimals"]),
                )
            except (KeyError, ValueError, LedgerError) as exc:
                raise JournalCorrupted(event.sequence_num, f"bad genesis: {exc}") from exc
            continue

        operation = None
        try:
            if event.event_type == EventType.TRANSFER:
                value = parse_amount(payload["value"])
                spender = payload.get("spender")
                if spender is None:
                    ledger.transfer(payload["from"], payload["to"], value)
                    operation = "transfer"
                else:
                    ledger.transfer_from(spender, payload["from"], payload["to"], value)
                    operation = "transfer_from"
            elif event.event_type == EventType.APPROVAL:
                ledger.approve(payload["owner"], payload["spender"], parse_amount(payload["value"]))
                operation = "approve"
            elif event.event_type == EventType.LEDGER_CREATED:
                raise JournalCorrupted(event.sequence_num, "duplicate LedgerCreated")
            elif event.event_type == EventType.OPERATION_REJECTED and metrics:
                metrics.record_rejection(payload["operation"], payload["code"])
        except (KeyError, ValueError, LedgerError) as exc:
            raise JournalCorrupted(
                event.sequence_num, f"{event.event_type.value} does not replay: {exc}"
            ) from exc
        if operation and metrics:
            metrics.record_operation(operation)
    return ledger


class LedgerHost:
    """Serialize, journal and observe operations on one ledger."""

    def __init__(
        self,
        ledger: Ledger,
        journal: EventJournal,
        metrics: LedgerMetrics | None = None,
    ) -> None:
        self.ledger = ledger
        self.journal = journal
        self.metrics = metrics
        self._observe()

    @classmethod
    def open(
        cls,
        journal: EventJournal,
        token: TokenConfig | None = None,
        metrics: LedgerMetrics | None = None,
    ) -> "LedgerHost":
        """Rebuild the ledger from `journal`, creating it from `token` if the journal is empty."""
        ledger = replay(journal.iter_events(), metrics)
        if ledger is not None:
            log.info(
                "ledger_rebuilt",
                symbol=ledger.symbol,
                last_sequence=journal.last_sequence(),
            )
            return cls(ledger, journal, metrics)

        if token is None:
            raise LedgerNotInitialized(str(journal.journal_path))
        ledger = Ledger(
            name=token.name,
            symbol=token.symbol,
            initial_supply=token.initial_supply,
            creator=token.creator,
            decimals=token.decimals,
        )
        event = journal.append(EventType.LEDGER_CREATED, _created_payload(ledger))
        log.info(
            "ledger_created",
            name=ledger.name,
            symbol=ledger.symbol,
            total_supply=str(ledger.total_supply),
            creator=ledger.creator,
            sequence_num=event.sequence_num,
        )
        return cls(ledger, journal, metrics)

    def transfer(self, sender: Address, to: Address, amount: int) -> TransferEvent:
        with self.ledger.lock:
            before = self.ledger.snapshot()
            try:
                event = self.ledger.transfer(sender, to, amount)
            except LedgerError as exc:
                self._reject("transfer", exc, {"from": sender, "to": to, "value": str(amount)})
                raise
            record = self._record("transfer", before, EventType.TRANSFER, transfer_payload(event))
            self._commit("transfer", record)
            return event

    def approve(self, owner: Address, spender: Address, amount: int) -> ApprovalEvent:
        with self.ledger.lock:
            before = self.ledger.snapshot()
            try:
                event = self.ledger.approve(owner, spender, amount)
            except LedgerError as exc:
                self._reject(
                    "approve", exc, {"owner": owner, "spender": spender, "value": str(amount)}
                )
                raise
            record = self._record("approve", before, EventType.APPROVAL, approval_payload(event))
            self._commit("approve", record)
            return event

    def transfer_from(
        self,
        spender: Address,
        owner: Address,
        to: Address,
        amount: int,
    ) -> TransferEvent:
        with self.ledger.lock:
            before = self.ledger.snapshot()
            try:
                event = self.ledger.transfer_from(spender, owner, to, amount)
            except LedgerError as exc:
                self._reject(
                    "transfer_from",
                    exc,
                    {"spender": spender, "from": owner, "to": to, "value": str(amount)},
                )
                raise
            record = self._record(
                "transfer_from",
                before,
                EventType.TRANSFER,
                transfer_payload(event, spender=spender),
            )
            self._commit("transfer_from", record)
            return event

    def recent_events(self, limit: int = 20) -> list[Event]:
        return list(self.journal.iter_events_tail(limit))

    def _record(
        self,
        operation: str,
        before: LedgerSnapshot,
        event_type: EventType,
        payload: dict[str, Any],
    ) -> Event:
        # The operation is not committed until its journal line is written.
        try:
            return self.journal.append(event_type, payload)
        except Exception:
            self.ledger.restore(before)
            log.error(
                "journal_append_failed",
                operation=operation,
                event_type=event_type.value,
                exc_info=True,
            )
            raise

    def _commit(self, operation: str, record: Event) -> None:
        log.info(
            "operation_committed",
            operation=operation,
            event_type=record.event_type.value,
            sequence_num=record.sequence_num,
            **record.payload,
        )
        if self.metrics:
            self.metrics.record_operation(operation)
        self._observe()

    def _reject(self, operation: str, exc: LedgerError, arguments: dict[str, Any]) -> None:
        sequence_num = None
        try:
            record = self.journal.append(
                EventType.OPERATION_REJECTED,
                {"operation": operation, "code": exc.code, "arguments": arguments},
                {"message": str(exc)},
            )
            sequence_num = record.sequence_num
        except OSError as err:
            log.error(
                "rejection_journal_failed",
                operation=operation,
                code=exc.code,
                error=str(err),
            )
        log.warning(
            "operation_rejected",
            operation=operation,
            code=exc.code,
            sequence_num=sequence_num,
            **exc.details(),
        )
        if self.metrics:
            self.metrics.record_rejection(operation, exc.code)
        self._observe()

    def _observe(self) -> None:
        if self.metrics:
            self.metrics.observe_ledger(self.ledger, self.journal.last_sequence())
