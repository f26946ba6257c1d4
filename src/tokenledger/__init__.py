"""Fungible-token ledger with an append-only operation journal."""

__version__ = "0.1.0"
