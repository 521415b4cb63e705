"""
JSON File Event Store Adapter.

Keeps the whole event log as one JSON array in a single file, the way a
browser host keeps it under one storage key.

Key behaviors:
- The file is loaded once at construction; a missing file is an empty log
- Every mutation rewrites the file through a temp file + os.replace
- Mutations hold one lock across the file write and the in-memory update
- Memory changes only after the file write succeeds, so a failed write
  leaves both exactly as they were
- An unreadable file is logged and treated as empty rather than raised
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections import deque
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from visitor_analytics.components.analytics import (
    DEFAULT_RETENTION_CAP,
    EventRange,
    PageViewEvent,
    validate_retention_cap,
)

logger = logging.getLogger(__name__)


class JsonFileEventStore:
    """EventStorePort backed by a JSON file."""

    def __init__(self, path: str, retention_cap: int = DEFAULT_RETENTION_CAP) -> None:
        self.path = Path(path)
        self._retention_cap = validate_retention_cap(retention_cap)
        self._events: deque[PageViewEvent] = deque(self._load(), maxlen=self._retention_cap)
        self._lock = threading.Lock()

    @property
    def retention_cap(self) -> int:
        return self._retention_cap

    def _load(self) -> list[PageViewEvent]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                records = json.load(f)
            return [PageViewEvent.from_record(r) for r in records]
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable event log %s", self.path, exc_info=True)
            return []

    def _flush(self, events: Iterable[PageViewEvent]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump([e.to_record() for e in events], f)
            os.replace(tmp, self.path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

    def append(self, event: PageViewEvent) -> None:
        with self._lock:
            candidate = [*self._events, event][-self._retention_cap :]
            self._flush(candidate)
            self._events.append(event)

    def scan(self, start: datetime, end: datetime) -> EventRange:
        with self._lock:
            snapshot = tuple(self._events)
        return EventRange(snapshot, start, end)

    def clear(self) -> None:
        with self._lock:
            self._flush([])
            self._events.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def all_events(self) -> list[PageViewEvent]:
        """Every retained event in append order (for testing)."""
        with self._lock:
            return list(self._events)
