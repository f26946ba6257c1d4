"""Append-only journal of ledger operations.

The journal is a single ``events.jsonl`` file. Its last complete line holds the
highest sequence number, so there is no separate counter to keep in step. An
append either lands as one whole line or leaves the file as it was.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterator

import orjson
import structlog

from tokenledger.ledger.events import Event, EventType, new_event

log = structlog.get_logger(__name__)

_BLOCK_SIZE = 8192


class EventJournal:
    """Append-only JSONL event store with sequence tracking."""

    def __init__(self, journal_path: str | Path) -> None:
        self.journal_path = Path(journal_path)
        self.journal_path.mkdir(parents=True, exist_ok=True)
        self.events_file = self.journal_path / "events.jsonl"
        self._drop_torn_tail()
        self._sequence = self._tail_sequence()

    def _drop_torn_tail(self) -> None:
        """Cut a trailing line left without its newline by an interrupted write."""
        if not self.events_file.exists():
            return
        with open(self.events_file, "r+b") as handle:
            size = handle.seek(0, os.SEEK_END)
            if size == 0:
                return
            handle.seek(size - 1)
            if handle.read(1) == b"\n":
                return
            keep = 0
            pos = size
            while pos > 0:
                step = min(_BLOCK_SIZE, pos)
                pos -= step
                handle.seek(pos)
                newline = handle.read(step).rfind(b"\n")
                if newline != -1:
                    keep = pos + newline + 1
                    break
            handle.truncate(keep)
        log.warning("journal_torn_tail_dropped", path=str(self.events_file), bytes=size - keep)

    def _tail_lines(self, limit: int) -> list[bytes]:
        """Return up to `limit` complete lines from the end of the journal."""
        with open(self.events_file, "rb") as handle:
            pos = handle.seek(0, os.SEEK_END)
            data = b""
            while pos > 0 and data.count(b"\n") <= limit:
                step = min(_BLOCK_SIZE, pos)
                pos -= step
                handle.seek(pos)
                data = handle.read(step) + data
        lines = data.split(b"\n")
        if pos > 0:
            # read started mid-line
            lines = lines[1:]
        return [line for line in lines if line.strip()][-limit:]

    def _tail_sequence(self) -> int:
        if self.is_empty():
            return 0
        lines = self._tail_lines(1)
        if not lines:
            return 0
        return int(orjson.loads(lines[0])["sequence_num"])

    def last_sequence(self) -> int:
        """Return the sequence number of the last written event."""
        return self._sequence

    def is_empty(self) -> bool:
        return not self.events_file.exists() or self.events_file.stat().st_size == 0

    def append(
        self,
        event_type: EventType,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Event:
        """Create the next event, write it, then return it."""
        event = new_event(event_type, payload, self._sequence + 1, metadata)
        self.append_event(event)
        return event

    def append_event(self, event: Event) -> None:
        """Write one event as a durable line.

        The sequence only advances once the line is on disk. On failure the
        file is cut back to its previous length and the error propagates.
        """
        if event.sequence_num <= self._sequence:
            raise ValueError(
                f"sequence {event.sequence_num} does not follow {self._sequence}"
            )
        line = memoryview(orjson.dumps(event.to_dict()) + b"\n")
        with open(self.events_file, "ab", buffering=0) as handle:
            start = handle.seek(0, os.SEEK_END)
            try:
                while line:
                    line = line[handle.write(line) :]
                os.fsync(handle.fileno())
            except OSError:
                handle.truncate(start)
                raise
        self._sequence = event.sequence_num

    def iter_events(self) -> Iterator[Event]:
        """Yield every event in journal order."""
        if not self.events_file.exists():
            return
        with open(self.events_file, "rb") as handle:
            for line in handle:
                if line.strip():
                    yield Event.from_dict(orjson.loads(line))

    def iter_events_tail(self, limit: int) -> Iterator[Event]:
        """Yield the last `limit` events without reading the whole journal."""
        if limit <= 0 or self.is_empty():
            return
        for line in self._tail_lines(limit):
            yield Event.from_dict(orjson.loads(line))
