"""
Dashboard state.

Keeps "not yet queried" apart from "queried, nothing in range" so a UI can
show a spinner for one and an empty-state message for the other.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from visitor_analytics.components.analytics import AggregateResult, AnalyticsValidationError
from visitor_analytics.components.timeframe import TimeframeSelection


class DashboardStatus(str, Enum):
    NOT_LOADED = "not_loaded"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class DashboardSnapshot:
    status: DashboardStatus
    selection: TimeframeSelection
    result: AggregateResult | None = None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    updated_at: datetime | None = None


class DashboardState:
    """Thread-safe holder for the latest query result."""

    def __init__(self, selection: TimeframeSelection) -> None:
        self._lock = threading.Lock()
        self._snapshot = DashboardSnapshot(status=DashboardStatus.NOT_LOADED, selection=selection)

    @property
    def snapshot(self) -> DashboardSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def status(self) -> DashboardStatus:
        return self.snapshot.status

    def update(
        self,
        selection: TimeframeSelection,
        result: AggregateResult,
        updated_at: datetime,
    ) -> DashboardSnapshot:
        status = DashboardStatus.EMPTY if result.is_empty else DashboardStatus.READY
        snapshot = DashboardSnapshot(
            status=status, selection=selection, result=result, updated_at=updated_at
        )
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def reject(self, errors: list[AnalyticsValidationError]) -> DashboardSnapshot:
        """Record a rejected selection; the previous result stays visible."""
        with self._lock:
            previous = self._snapshot
            self._snapshot = DashboardSnapshot(
                status=previous.status,
                selection=previous.selection,
                result=previous.result,
                errors=list(errors),
                updated_at=previous.updated_at,
            )
            return self._snapshot
