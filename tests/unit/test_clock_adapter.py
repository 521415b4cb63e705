from datetime import UTC, datetime, timedelta, timezone

import pytest

from visitor_analytics.adapters.clock import FrozenClock, SystemClock, resolve_timezone


def test_system_clock_is_utc():
    now = SystemClock().now_utc()
    assert now.tzinfo is not None
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_frozen_clock_advance():
    clock = FrozenClock(datetime(2024, 6, 15, 12, 0, tzinfo=UTC))
    clock.advance(timedelta(minutes=5))
    assert clock.now_utc() == datetime(2024, 6, 15, 12, 5, tzinfo=UTC)


def test_frozen_clock_normalizes_to_utc():
    clock = FrozenClock(datetime(2024, 6, 15, 14, 0, tzinfo=timezone(timedelta(hours=2))))
    assert clock.now_utc() == datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
    assert FrozenClock(datetime(2024, 6, 15, 12)).now_utc().tzinfo == UTC


@pytest.mark.parametrize("name", [None, "", "UTC", "utc"])
def test_resolve_timezone_utc(name):
    assert resolve_timezone(name) is UTC


def test_resolve_timezone_unknown():
    with pytest.raises(ValueError):
        resolve_timezone("Mars/Olympus_Mons")
