import logging
from pathlib import Path

import structlog
from prometheus_client import CollectorRegistry

from tokenledger.ledger import Ledger
from tokenledger.monitoring import LedgerMetrics, configure_logging


def test_configure_logging_writes_error_log(workspace_tmp_path: Path) -> None:
    logs_path = workspace_tmp_path / "logs"
    configure_logging("INFO", str(logs_path))
    try:
        structlog.get_logger("tokenledger.test").error("journal_locked", pid=123)
        for handler in logging.getLogger().handlers:
            handler.flush()

        contents = (logs_path / "errors.log").read_text(encoding="utf-8")
        assert "journal_locked" in contents
        assert '"pid": 123' in contents
    finally:
        for handler in list(logging.getLogger().handlers):
            if isinstance(handler, logging.FileHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()


def test_configure_logging_filters_below_level() -> None:
    configure_logging("WARNING")
    assert logging.getLogger().level == logging.WARNING


def test_metrics_use_private_registries() -> None:
    first = LedgerMetrics()
    second = LedgerMetrics()
    assert first.registry is not second.registry


def test_observe_ledger_sets_gauges() -> None:
    registry = CollectorRegistry()
    metrics = LedgerMetrics(registry)
    ledger = Ledger("Cents", "CNT", 10, creator="0x" + "1" * 40, decimals=2)
    ledger.transfer("0x" + "1" * 40, "0x" + "2" * 40, 250)

    metrics.observe_ledger(ledger, last_sequence=7)

    assert registry.get_sample_value("ledger_total_supply") == 1000.0
    assert registry.get_sample_value("ledger_accounts") == 2
    assert registry.get_sample_value("ledger_last_event_sequence") == 7
