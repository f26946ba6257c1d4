"""Monitoring utilities."""

from tokenledger.monitoring.logging import configure_logging
from tokenledger.monitoring.metrics import LedgerMetrics

__all__ = ["configure_logging", "LedgerMetrics"]
