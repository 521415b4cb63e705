"""
In-memory event store.

Key behaviors:
- Count-based retention: the log never holds more than `retention_cap`
  events, and the survivors are always the most recently appended
- scan() copies the log under the lock and filters lazily over the copy
- Safe for concurrent producers
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator, Sequence
from datetime import datetime

from .models import PageViewEvent

DEFAULT_RETENTION_CAP = 50_000


class EventRange:
    """
    Restartable view of the events in [start, end) of a snapshot.

    Iterating twice yields the same events; the snapshot is fixed when the
    range is created.
    """

    def __init__(
        self,
        snapshot: Sequence[PageViewEvent],
        start: datetime,
        end: datetime,
    ) -> None:
        self._snapshot = snapshot
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[PageViewEvent]:
        start, end = self.start, self.end
        for event in self._snapshot:
            if start <= event.timestamp < end:
                yield event

    def __repr__(self) -> str:
        return f"EventRange(start={self.start.isoformat()}, end={self.end.isoformat()})"


def validate_retention_cap(retention_cap: int) -> int:
    if retention_cap < 1:
        raise ValueError(f"retention_cap must be positive, got {retention_cap}")
    return retention_cap


class InMemoryEventStore:
    """In-memory event store for tests, dev and single-process hosts."""

    def __init__(self, retention_cap: int = DEFAULT_RETENTION_CAP) -> None:
        self._retention_cap = validate_retention_cap(retention_cap)
        # deque(maxlen) drops from the left on overflow
        self._events: deque[PageViewEvent] = deque(maxlen=self._retention_cap)
        self._lock = threading.Lock()

    @property
    def retention_cap(self) -> int:
        return self._retention_cap

    def append(self, event: PageViewEvent) -> None:
        with self._lock:
            self._events.append(event)

    def scan(self, start: datetime, end: datetime) -> EventRange:
        with self._lock:
            snapshot = tuple(self._events)
        return EventRange(snapshot, start, end)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def all_events(self) -> list[PageViewEvent]:
        """Every retained event in append order (for testing)."""
        with self._lock:
            return list(self._events)
