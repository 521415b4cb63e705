from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from visitor_analytics.adapters.clock import FrozenClock
from visitor_analytics.api.deps import get_service_context
from visitor_analytics.api.main import app
from visitor_analytics.app_shell.context import ServiceContext
from visitor_analytics.components.analytics import InMemoryEventStore
from visitor_analytics.rules.models import Rules


@pytest.fixture
def ctx(tmp_path: Path, clock: FrozenClock) -> ServiceContext:
    """Service context on an in-memory store and a frozen clock."""
    return ServiceContext.create(
        Rules(), tmp_path, clock=clock, event_store=InMemoryEventStore()
    )


@pytest.fixture
def client(ctx: ServiceContext):
    app.dependency_overrides[get_service_context] = lambda: ctx
    yield TestClient(app)
    app.dependency_overrides.clear()
