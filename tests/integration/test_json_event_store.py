"""
JSON file event store: whole-log file persistence.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from visitor_analytics.adapters import json_events
from visitor_analytics.adapters.clock import FrozenClock
from visitor_analytics.adapters.json_events import JsonFileEventStore
from visitor_analytics.components.analytics import (
    PageViewEvent,
    RecordPageViewInput,
    run_record_page_view,
)
from visitor_analytics.components.session import SessionIdentity

EventFactory = Callable[..., PageViewEvent]


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "events.json"


def test_missing_file_is_empty(log_path: Path) -> None:
    assert JsonFileEventStore(str(log_path)).count() == 0


def test_append_writes_json_array(log_path: Path, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path))
    store.append(make_event(0, "A", "/x"))

    records = json.loads(log_path.read_text())
    assert len(records) == 1
    assert records[0]["path"] == "/x"
    assert records[0]["session"] == "A"
    assert isinstance(records[0]["ts"], int)


def test_survives_restart(log_path: Path, t0: datetime, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path))
    store.append(make_event(0, "A", "/x"))
    store.append(make_event(1, "B", "/y"))

    reopened = JsonFileEventStore(str(log_path))
    found = list(reopened.scan(t0, t0 + timedelta(hours=1)))
    assert [(e.session_id, e.path) for e in found] == [("A", "/x"), ("B", "/y")]


def test_retention_applies_on_load(log_path: Path, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path))
    for i in range(5):
        store.append(make_event(i, path=f"/{i}"))

    capped = JsonFileEventStore(str(log_path), retention_cap=2)
    assert capped.count() == 2


def test_clear_rewrites_file(log_path: Path, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path))
    store.append(make_event(0))
    store.clear()
    assert json.loads(log_path.read_text()) == []


def test_corrupt_file_is_ignored(log_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    log_path.parent.mkdir(parents=True)
    log_path.write_text("{not json")

    store = JsonFileEventStore(str(log_path))

    assert store.count() == 0
    assert "Ignoring unreadable event log" in caplog.text


def test_concurrent_appends_all_persist(log_path: Path, t0: datetime, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path))
    errors: list[Exception] = []

    def produce(session: str) -> None:
        for i in range(50):
            try:
                store.append(make_event(i, session))
            except Exception as e:
                errors.append(e)

    threads = [threading.Thread(target=produce, args=(f"s{n}",)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.count() == 400
    assert len(json.loads(log_path.read_text())) == 400
    assert JsonFileEventStore(str(log_path)).count() == 400


def test_retention_on_disk_matches_memory(log_path: Path, make_event: EventFactory) -> None:
    store = JsonFileEventStore(str(log_path), retention_cap=2)
    for i in range(4):
        store.append(make_event(i, path=f"/{i}"))

    assert [e.path for e in store.all_events()] == ["/2", "/3"]
    assert [r["path"] for r in json.loads(log_path.read_text())] == ["/2", "/3"]


class TestFailedWrites:
    """A failed file write leaves memory and disk unchanged."""

    @pytest.fixture
    def store(self, log_path: Path, make_event: EventFactory) -> JsonFileEventStore:
        store = JsonFileEventStore(str(log_path))
        store.append(make_event(0, "A", "/kept"))
        return store

    @pytest.fixture
    def broken_disk(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args: object, **kwargs: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(json_events.os, "replace", fail)

    def test_append(
        self,
        store: JsonFileEventStore,
        broken_disk: None,
        log_path: Path,
        make_event: EventFactory,
    ) -> None:
        with pytest.raises(OSError):
            store.append(make_event(1, "B", "/lost"))

        assert [e.path for e in store.all_events()] == ["/kept"]
        assert [r["path"] for r in json.loads(log_path.read_text())] == ["/kept"]
        assert not log_path.with_suffix(".json.tmp").exists()

    def test_clear(self, store: JsonFileEventStore, broken_disk: None, log_path: Path) -> None:
        with pytest.raises(OSError):
            store.clear()

        assert store.count() == 1
        assert len(json.loads(log_path.read_text())) == 1

    def test_dropped_page_view_is_not_queryable(
        self,
        store: JsonFileEventStore,
        broken_disk: None,
        t0: datetime,
        clock: FrozenClock,
    ) -> None:
        output = run_record_page_view(
            RecordPageViewInput(path="/lost", identity=SessionIdentity("B", t0)),
            event_store=store,
            time_port=clock,
        )

        assert output.event is None
        assert store.count() == 1
        assert [e.path for e in store.scan(t0, t0 + timedelta(hours=1))] == ["/kept"]
