"""
Analytics component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from .models import PageViewEvent


class EventStorePort(Protocol):
    """
    Append-only page-view log with count-based retention.

    scan() returns a point-in-time snapshot: an in-progress aggregation is
    not affected by concurrent appends or evictions. A query may miss an
    event appended a moment earlier; that is acceptable for analytics.
    """

    def append(self, event: PageViewEvent) -> None:
        """Append one event, evicting the oldest past the retention cap. Never raises."""
        ...

    def scan(self, start: datetime, end: datetime) -> Iterable[PageViewEvent]:
        """Events with start <= timestamp < end. Restartable, finite."""
        ...

    def clear(self) -> None:
        """Remove every stored event."""
        ...

    def count(self) -> int:
        """Number of stored events."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
