from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from visitor_analytics.adapters.clock import FrozenClock
from visitor_analytics.components.analytics import InMemoryEventStore, PageViewEvent

T0 = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at T0."""
    return FrozenClock(T0)


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def make_event() -> Callable[..., PageViewEvent]:
    """
    Event factory. `minutes` is the offset from T0.
    """

    def _make(
        minutes: float = 0,
        session_id: str = "A",
        path: str = "/",
        **fields: str,
    ) -> PageViewEvent:
        return PageViewEvent(
            timestamp=T0 + timedelta(minutes=minutes),
            path=path,
            session_id=session_id,
            **fields,
        )

    return _make
