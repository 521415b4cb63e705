"""
SQLite Event Store Adapter.

Implements EventStorePort on a single SQLite table so recorded page views
survive a restart.

Key behaviors:
- Rows carry an AUTOINCREMENT sequence; retention evicts the lowest
  sequences once the row count exceeds the cap
- Timestamps are stored as epoch milliseconds
- scan() reads the whole window in one statement and returns a
  restartable EventRange over the fetched rows
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from typing import Any

from visitor_analytics.components.analytics import (
    DEFAULT_RETENTION_CAP,
    EventRange,
    PageViewEvent,
    validate_retention_cap,
)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS page_view_events (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        ts INTEGER NOT NULL,
        path TEXT NOT NULL,
        session TEXT NOT NULL,
        referrer TEXT NOT NULL,
        browser TEXT NOT NULL,
        os TEXT NOT NULL,
        device TEXT NOT NULL,
        country TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_page_view_events_ts ON page_view_events (ts);
"""

_COLUMNS = ("ts", "path", "session", "referrer", "browser", "os", "device", "country")

logger = logging.getLogger(__name__)


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def to_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class SQLiteEventStore:
    """SQLite implementation of EventStorePort."""

    def __init__(
        self,
        db_path: str,
        retention_cap: int = DEFAULT_RETENTION_CAP,
        connection: sqlite3.Connection | None = None,
    ) -> None:
        self.db_path = db_path
        self._external_conn = connection
        self._retention_cap = validate_retention_cap(retention_cap)
        self._lock = threading.Lock()
        self._ensure_schema()

    @property
    def retention_cap(self) -> int:
        return self._retention_cap

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def append(self, event: PageViewEvent) -> None:
        record = event.to_record()
        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute(
                    f"""
                    INSERT INTO page_view_events ({", ".join(_COLUMNS)})
                    VALUES ({", ".join("?" for _ in _COLUMNS)})
                    """,
                    tuple(record[col] for col in _COLUMNS),
                )
                # Evict everything older than the newest `cap` rows
                conn.execute(
                    """
                    DELETE FROM page_view_events
                    WHERE seq <= (SELECT MAX(seq) FROM page_view_events) - ?
                    """,
                    (self._retention_cap,),
                )
                conn.commit()
            finally:
                if self._should_close():
                    conn.close()

    def scan(self, start: datetime, end: datetime) -> EventRange:
        # Millisecond storage: widen by one on each side, EventRange trims
        with self._lock:
            conn = self._get_conn()
            try:
                cursor = conn.execute(
                    f"""
                    SELECT {", ".join(_COLUMNS)} FROM page_view_events
                    WHERE ts >= ? AND ts <= ?
                    ORDER BY seq ASC
                    """,
                    (to_millis(start) - 1, to_millis(end) + 1),
                )
                rows = [dict(zip(_COLUMNS, self._row_values(r), strict=True)) for r in cursor]
            except sqlite3.Error:
                logger.warning("Event scan failed on %s", self.db_path, exc_info=True)
                rows = []
            finally:
                if self._should_close():
                    conn.close()

        snapshot = tuple(PageViewEvent.from_record(row) for row in rows)
        return EventRange(snapshot, start, end)

    def clear(self) -> None:
        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM page_view_events")
                conn.commit()
            finally:
                if self._should_close():
                    conn.close()

    def count(self) -> int:
        with self._lock:
            conn = self._get_conn()
            try:
                cursor = conn.execute("SELECT COUNT(*) FROM page_view_events")
                row = cursor.fetchone()
            finally:
                if self._should_close():
                    conn.close()
        return int(self._row_values(row)[0])

    @staticmethod
    def _row_values(row: Any) -> list[Any]:
        # External connections may use any row factory
        if isinstance(row, dict):
            return list(row.values())
        return list(row)
