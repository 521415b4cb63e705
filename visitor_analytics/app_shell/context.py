from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from visitor_analytics.adapters.clock import SystemClock, resolve_timezone
from visitor_analytics.adapters.fs.filestore import FileSystemStore
from visitor_analytics.adapters.json_events import JsonFileEventStore
from visitor_analytics.adapters.render.mpl_renderer import MatplotlibRenderer
from visitor_analytics.adapters.sqlite_events import SQLiteEventStore
from visitor_analytics.app_shell.refresher import QueryRefresher
from visitor_analytics.components.analytics import (
    AggregateConfig,
    EventStorePort,
    InMemoryEventStore,
    TimePort,
    VisitorAnalytics,
)
from visitor_analytics.rules.models import Rules, StorageRules

logger = logging.getLogger(__name__)


def build_event_store(storage: StorageRules, retention_cap: int, data_dir: Path) -> EventStorePort:
    """Event store for the configured backend. Relative paths resolve under data_dir."""
    if storage.backend == "memory":
        return InMemoryEventStore(retention_cap)

    path = Path(storage.path)
    if not path.is_absolute():
        path = data_dir / path
    path.parent.mkdir(parents=True, exist_ok=True)

    if storage.backend == "sqlite":
        return SQLiteEventStore(str(path), retention_cap=retention_cap)
    return JsonFileEventStore(str(path), retention_cap=retention_cap)


@dataclass
class ServiceContext:
    analytics: VisitorAnalytics
    event_store: EventStorePort
    clock: TimePort
    renderer: MatplotlibRenderer
    rules: Rules
    aggregate_config: AggregateConfig
    display_tz: tzinfo
    refresher: QueryRefresher

    @classmethod
    def create(
        cls,
        rules: Rules,
        data_dir: Path,
        clock: TimePort | None = None,
        event_store: EventStorePort | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        if event_store is None:
            event_store = build_event_store(
                rules.storage, rules.analytics.retention_cap, data_dir
            )
        display_tz = resolve_timezone(rules.analytics.display_timezone)
        aggregate_config = rules.analytics.top_n.to_config()

        analytics = VisitorAnalytics(
            event_store,
            clock,
            config=aggregate_config,
            display_tz=display_tz,
            default_preset=rules.analytics.default_preset,
        )
        renderer = MatplotlibRenderer(FileSystemStore(str(data_dir / "cache")))
        # Built stopped; in-process hosts call start()
        refresher = QueryRefresher(
            analytics, interval_seconds=rules.analytics.refresh_interval_seconds
        )

        logger.info(
            "Analytics ready: backend=%s retention_cap=%d default_preset=%s",
            rules.storage.backend,
            rules.analytics.retention_cap,
            rules.analytics.default_preset,
        )
        return cls(
            analytics=analytics,
            event_store=event_store,
            clock=clock,
            renderer=renderer,
            rules=rules,
            aggregate_config=aggregate_config,
            display_tz=display_tz,
            refresher=refresher,
        )
