"""
Background dashboard refresh.

Re-runs the full query for the active selection on a fixed interval and
publishes the result to DashboardState. The analytics engine itself has no
timer; this is the host-side poller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from visitor_analytics.components.analytics import VisitorAnalytics
from visitor_analytics.components.timeframe import TimeframeSelection

from .state import DashboardSnapshot, DashboardState

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 10.0


class QueryRefresher:
    """Polls VisitorAnalytics and keeps a DashboardState current."""

    def __init__(
        self,
        analytics: VisitorAnalytics,
        state: DashboardState | None = None,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._analytics = analytics
        self.state = state or DashboardState(analytics.selector.active)
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False
        self._listeners: list[Callable[[DashboardSnapshot], None]] = []

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def add_listener(self, listener: Callable[[DashboardSnapshot], None]) -> None:
        """Call `listener` with every snapshot published by a refresh."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Refresh once, then keep refreshing in the background."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Dashboard refresher started (interval: %.1fs)", self._interval)

    def stop(self) -> None:
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Dashboard refresher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def refresh_now(self, selection: TimeframeSelection | None = None) -> DashboardSnapshot:
        """
        Run the query immediately.

        A new selection that fails validation is recorded as errors and the
        last good result is kept.
        """
        output = self._analytics.query(selection)
        if output.result is None:
            snapshot = self.state.reject(output.errors)
        else:
            snapshot = self.state.update(
                self._analytics.selector.active,
                output.result,
                self._analytics.time_port.now_utc(),
            )

        for listener in self._listeners:
            listener(snapshot)
        return snapshot

    def _poll_loop(self) -> None:
        self._refresh_logged()
        while not self._stop_event.wait(timeout=self._interval):
            self._refresh_logged()

    def _refresh_logged(self) -> None:
        try:
            snapshot = self.refresh_now()
            logger.debug("Dashboard refreshed: %s", snapshot.status.value)
        except Exception:
            logger.exception("Error in dashboard refresh loop")
