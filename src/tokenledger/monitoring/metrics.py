"""Prometheus metrics definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge

if TYPE_CHECKING:
    from tokenledger.ledger.token import Ledger


class LedgerMetrics:
    """Expose ledger operation metrics for monitoring."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.operations_total = Counter(
            "ledger_operations_total",
            "Committed ledger operations",
            ["operation"],
            registry=self.registry,
        )
        self.rejections_total = Counter(
            "ledger_rejections_total",
            "Rejected ledger operations by error code",
            ["operation", "code"],
            registry=self.registry,
        )
        self.total_supply = Gauge(
            "ledger_total_supply", "Total token supply in base units", registry=self.registry
        )
        self.accounts = Gauge(
            "ledger_accounts", "Accounts holding a non-zero balance", registry=self.registry
        )
        self.last_event_sequence = Gauge(
            "ledger_last_event_sequence",
            "Last journaled event sequence number",
            registry=self.registry,
        )

    def record_operation(self, operation: str) -> None:
        self.operations_total.labels(operation=operation).inc()

    def record_rejection(self, operation: str, code: str) -> None:
        self.rejections_total.labels(operation=operation, code=code).inc()

    def observe_ledger(self, ledger: Ledger, last_sequence: int | None = None) -> None:
        snapshot = ledger.snapshot()
        # float() loses precision above 2**53; the gauge is indicative only.
        self.total_supply.set(float(snapshot.total_supply))
        self.accounts.set(len(snapshot.balances))
        if last_sequence is not None:
            self.last_event_sequence.set(last_sequence)
