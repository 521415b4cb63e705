"""
Tests for dashboard state and the background refresher.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from visitor_analytics.adapters.clock import FrozenClock
from visitor_analytics.app_shell.refresher import QueryRefresher
from visitor_analytics.app_shell.state import DashboardState, DashboardStatus
from visitor_analytics.components.analytics import InMemoryEventStore, VisitorAnalytics
from visitor_analytics.components.session import SessionIdentity
from visitor_analytics.components.timeframe import TimeframeSelection


@pytest.fixture
def analytics(store: InMemoryEventStore, clock: FrozenClock) -> VisitorAnalytics:
    return VisitorAnalytics(store, clock, default_preset="60m")


@pytest.fixture
def identity(t0: datetime) -> SessionIdentity:
    return SessionIdentity(session_id="A", started_at=t0)


class TestDashboardState:
    """Loading vs empty vs ready."""

    def test_not_loaded_before_first_query(self, analytics: VisitorAnalytics) -> None:
        refresher = QueryRefresher(analytics)
        assert refresher.state.status is DashboardStatus.NOT_LOADED
        assert refresher.state.snapshot.result is None

    def test_empty_after_query_without_data(self, analytics: VisitorAnalytics) -> None:
        snapshot = QueryRefresher(analytics).refresh_now()
        assert snapshot.status is DashboardStatus.EMPTY
        assert snapshot.result is not None

    def test_ready_with_data(
        self, analytics: VisitorAnalytics, clock: FrozenClock, identity: SessionIdentity, t0: datetime
    ) -> None:
        analytics.record_page_view("/", identity)
        clock.advance(timedelta(minutes=1))

        snapshot = QueryRefresher(analytics).refresh_now()

        assert snapshot.status is DashboardStatus.READY
        assert snapshot.updated_at == t0 + timedelta(minutes=1)
        assert snapshot.selection == TimeframeSelection.for_preset("60m")

    def test_rejected_selection_keeps_last_result(
        self, analytics: VisitorAnalytics, clock: FrozenClock, identity: SessionIdentity, t0: datetime
    ) -> None:
        analytics.record_page_view("/", identity)
        clock.advance(timedelta(minutes=1))
        refresher = QueryRefresher(analytics)
        good = refresher.refresh_now()

        bad = refresher.refresh_now(TimeframeSelection.custom(t0, t0))

        assert bad.errors[0].code == "inverted_range"
        assert bad.status is DashboardStatus.READY
        assert bad.result == good.result
        assert bad.selection == TimeframeSelection.for_preset("60m")

    def test_update_picks_status(self, analytics: VisitorAnalytics) -> None:
        state = DashboardState(analytics.selector.active)
        result = analytics.query_active()
        assert state.update(analytics.selector.active, result, result.timeframe.end).status is (
            DashboardStatus.EMPTY
        )


class TestQueryRefresher:
    """Background polling."""

    def test_invalid_interval(self, analytics: VisitorAnalytics) -> None:
        with pytest.raises(ValueError):
            QueryRefresher(analytics, interval_seconds=0)

    def test_start_refreshes_and_stop_joins(self, analytics: VisitorAnalytics) -> None:
        refreshed = threading.Event()
        state = DashboardState(analytics.selector.active)
        refresher = QueryRefresher(analytics, state=state, interval_seconds=0.01)

        original_update = state.update

        def update(*args, **kwargs):
            snapshot = original_update(*args, **kwargs)
            refreshed.set()
            return snapshot

        state.update = update  # type: ignore[method-assign]

        refresher.start()
        try:
            assert refresher.is_running
            assert refreshed.wait(timeout=2.0)
        finally:
            refresher.stop()

        assert not refresher.is_running
        assert state.status is DashboardStatus.EMPTY

    def test_loop_survives_errors(
        self, analytics: VisitorAnalytics, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls = threading.Event()

        def broken_query(selection=None):
            calls.set()
            raise RuntimeError("store offline")

        analytics.query = broken_query  # type: ignore[method-assign]
        refresher = QueryRefresher(analytics, interval_seconds=0.01)
        refresher.start()
        try:
            assert calls.wait(timeout=2.0)
        finally:
            refresher.stop()

        assert "Error in dashboard refresh loop" in caplog.text
        assert refresher.state.status is DashboardStatus.NOT_LOADED

    def test_listeners_receive_each_snapshot(self, analytics: VisitorAnalytics, t0: datetime) -> None:
        refresher = QueryRefresher(analytics)
        seen = []
        refresher.add_listener(seen.append)

        ok = refresher.refresh_now()
        rejected = refresher.refresh_now(TimeframeSelection.custom(t0, t0))

        assert seen == [ok, rejected]

    def test_interval_is_exposed(self, analytics: VisitorAnalytics) -> None:
        assert QueryRefresher(analytics, interval_seconds=2.5).interval_seconds == 2.5
