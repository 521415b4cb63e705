"""
Tests for the analytics entry points and the VisitorAnalytics facade.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from visitor_analytics.adapters.clock import FrozenClock
from visitor_analytics.components.analytics import (
    InMemoryEventStore,
    PageViewEvent,
    QueryInput,
    QueryOutput,
    RecordOutput,
    RecordPageViewInput,
    ResetInput,
    ResetOutput,
    VisitorAnalytics,
    build_event,
    run,
    run_query,
    run_record_page_view,
    run_reset,
)
from visitor_analytics.components.session import ClassifierConfig, ClientContext, SessionIdentity
from visitor_analytics.components.timeframe import TimeframeSelection

FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


class FailingStore(InMemoryEventStore):
    """Store whose writes always fail."""

    def append(self, event: PageViewEvent) -> None:
        raise OSError("disk full")


@pytest.fixture
def identity(t0: datetime) -> SessionIdentity:
    return SessionIdentity(session_id="A", started_at=t0)


@pytest.fixture
def analytics(store: InMemoryEventStore, clock: FrozenClock) -> VisitorAnalytics:
    return VisitorAnalytics(store, clock)


class TestBuildEvent:
    """Event tagging."""

    def test_stamps_client_fields(self, identity: SessionIdentity, t0: datetime) -> None:
        event = build_event(
            "/pricing",
            identity,
            ClientContext(
                user_agent=FIREFOX_LINUX,
                referrer="https://github.com/",
                time_zone="Asia/Tokyo",
            ),
            t0,
        )
        assert event.session_id == "A"
        assert event.referrer == "https://github.com/"
        assert (event.browser, event.os, event.device, event.country) == (
            "Firefox",
            "Linux",
            "Desktop",
            "Japan",
        )

    def test_empty_referrer_is_direct(self, identity: SessionIdentity, t0: datetime) -> None:
        event = build_event("/", identity, ClientContext(referrer=""), t0)
        assert event.referrer == "Direct"
        assert event.country == "Unknown"


class TestRecordPageView:
    """Ingestion entry point."""

    def test_records_with_clock_time(
        self, store: InMemoryEventStore, clock: FrozenClock, identity: SessionIdentity, t0: datetime
    ) -> None:
        out = run_record_page_view(
            RecordPageViewInput(path="/", identity=identity), event_store=store, time_port=clock
        )
        assert out.success
        assert out.event is not None
        assert out.event.timestamp == t0
        assert store.count() == 1

    def test_naive_timestamp_is_utc(
        self, store: InMemoryEventStore, clock: FrozenClock, identity: SessionIdentity
    ) -> None:
        out = run_record_page_view(
            RecordPageViewInput(path="/", identity=identity, timestamp=datetime(2024, 1, 1, 9)),
            event_store=store,
            time_port=clock,
        )
        assert out.event is not None
        assert out.event.timestamp == datetime(2024, 1, 1, 9, tzinfo=UTC)

    @pytest.mark.parametrize("path", ["", "   "])
    def test_blank_path_rejected(
        self, store: InMemoryEventStore, clock: FrozenClock, identity: SessionIdentity, path: str
    ) -> None:
        out = run_record_page_view(
            RecordPageViewInput(path=path, identity=identity), event_store=store, time_port=clock
        )
        assert not out.success
        assert out.errors[0].code == "missing_path"
        assert store.count() == 0

    def test_storage_failure_is_swallowed(
        self, clock: FrozenClock, identity: SessionIdentity, caplog: pytest.LogCaptureFixture
    ) -> None:
        out = run_record_page_view(
            RecordPageViewInput(path="/", identity=identity),
            event_store=FailingStore(),
            time_port=clock,
        )
        assert out.success
        assert out.event is None
        assert "Dropped page view" in caplog.text


class TestQueryAndReset:
    """Query and reset entry points."""

    def test_inverted_range_errors(self, store: InMemoryEventStore, clock: FrozenClock, t0: datetime) -> None:
        out = run_query(
            QueryInput(selection=TimeframeSelection.custom(t0, t0 - timedelta(minutes=1))),
            event_store=store,
            time_port=clock,
        )
        assert not out.success
        assert out.result is None
        assert out.errors[0].code == "inverted_range"

    def test_reset_requires_confirmation(self, store: InMemoryEventStore, make_event) -> None:
        store.append(make_event(0))
        out = run_reset(ResetInput(confirm=False), event_store=store)
        assert not out.success
        assert store.count() == 1

    def test_dispatcher(self, store: InMemoryEventStore, clock: FrozenClock, identity: SessionIdentity) -> None:
        assert isinstance(
            run(RecordPageViewInput(path="/", identity=identity), event_store=store, time_port=clock),
            RecordOutput,
        )
        assert isinstance(
            run(QueryInput(selection=TimeframeSelection.for_preset("1d")), event_store=store, time_port=clock),
            QueryOutput,
        )
        assert isinstance(run(ResetInput(), event_store=store), ResetOutput)

    def test_dispatcher_passes_classifier(
        self, store: InMemoryEventStore, clock: FrozenClock, identity: SessionIdentity
    ) -> None:
        classifier = ClassifierConfig(browser_rules=((("Gecko",), "Gecko"),))
        out = run(
            RecordPageViewInput(
                path="/", identity=identity, context=ClientContext(user_agent=FIREFOX_LINUX)
            ),
            event_store=store,
            time_port=clock,
            classifier=classifier,
        )
        assert isinstance(out, RecordOutput)
        assert out.event is not None
        assert out.event.browser == "Gecko"

    def test_dispatcher_requires_ports(self, store: InMemoryEventStore, identity: SessionIdentity) -> None:
        with pytest.raises(ValueError):
            run(ResetInput())
        with pytest.raises(ValueError):
            run(RecordPageViewInput(path="/", identity=identity), event_store=store)


class TestVisitorAnalytics:
    """Facade behavior."""

    def test_record_then_query(
        self, analytics: VisitorAnalytics, clock: FrozenClock, identity: SessionIdentity
    ) -> None:
        analytics.record_page_view("/", identity)
        clock.advance(timedelta(minutes=1))
        analytics.record_page_view("/about", identity)
        clock.advance(timedelta(minutes=1))

        result = analytics.query_active()
        assert result.page_views == 2
        assert result.visits == 1
        assert result.bounce_rate_percent == 0
        assert result.timeframe.label == "24h"

    def test_record_never_raises(self, clock: FrozenClock, identity: SessionIdentity) -> None:
        analytics = VisitorAnalytics(FailingStore(), clock)
        analytics.record_page_view("/", identity)
        analytics.record_page_view("", identity)

    def test_rejected_selection_keeps_active(
        self, analytics: VisitorAnalytics, t0: datetime
    ) -> None:
        analytics.query(TimeframeSelection.for_preset("7d"))

        out = analytics.query(TimeframeSelection.custom(t0, t0 - timedelta(hours=1)))

        assert not out.success
        assert analytics.selector.active == TimeframeSelection.for_preset("7d")
        assert analytics.query_active().timeframe.label == "7d"

    def test_reset_then_query_is_empty(
        self, analytics: VisitorAnalytics, clock: FrozenClock, identity: SessionIdentity
    ) -> None:
        analytics.record_page_view("/", identity)
        clock.advance(timedelta(seconds=1))
        analytics.reset_analytics()

        result = analytics.query_active()
        assert result.is_empty
        assert len(result.series) == 24
        assert all(b.views == 0 for b in result.series)
        assert result.top_pages == ()

    def test_query_is_idempotent(
        self, analytics: VisitorAnalytics, clock: FrozenClock, identity: SessionIdentity
    ) -> None:
        analytics.record_page_view("/", identity)
        clock.advance(timedelta(seconds=1))
        assert analytics.query_active() == analytics.query_active()
