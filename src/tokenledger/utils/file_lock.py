"""Exclusive advisory lock on a journal directory, shared across processes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TextIO


class JournalLocked(RuntimeError):
    def __init__(self, lock_path: str, pid: int | None) -> None:
        self.lock_path = lock_path
        self.pid = pid
        holder = f" (held by pid {pid})" if pid else ""
        super().__init__(f"journal lock unavailable{holder}: {lock_path}")


class JournalLock:
    """Hold an exclusive lock on ``<journal>/ledger.lock``.

    With ``blocking=False`` a held lock raises `JournalLocked` immediately;
    otherwise acquisition waits for the other holder to release. The OS drops
    the lock if the holding process dies.
    """

    def __init__(self, path: str | Path, blocking: bool = False) -> None:
        self.path = Path(path)
        self.blocking = blocking
        self._fh: TextIO | None = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def acquire(self) -> None:
        if self._fh is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(self.path, "a+", encoding="utf-8")
        try:
            _lock(fh, self.blocking)
        except OSError as exc:
            holder = _holder_pid(fh)
            fh.close()
            raise JournalLocked(str(self.path), holder) from exc
        fh.seek(0)
        fh.truncate()
        fh.write(f"{os.getpid()}\n")
        fh.flush()
        self._fh = fh

    def release(self) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        try:
            _unlock(fh)
        finally:
            fh.close()

    def __enter__(self) -> "JournalLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        self.release()


def _holder_pid(fh: TextIO) -> int | None:
    try:
        fh.seek(0)
        first = fh.readline().strip()
    except OSError:
        return None
    return int(first) if first.isdigit() and int(first) > 0 else None


if os.name == "nt":
    import msvcrt

    def _lock(fh: TextIO, blocking: bool) -> None:
        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK, 1)

    def _unlock(fh: TextIO) -> None:
        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock(fh: TextIO, blocking: bool) -> None:
        flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
        fcntl.flock(fh.fileno(), flags)

    def _unlock(fh: TextIO) -> None:
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
