"""Utility helpers."""

from tokenledger.utils.file_lock import JournalLock, JournalLocked

__all__ = ["JournalLock", "JournalLocked"]
