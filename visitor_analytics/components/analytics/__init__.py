"""
Analytics component - Page-view event store and aggregation engine.
"""

from ._aggregate import (
    AggregateConfig,
    aggregate,
    bucket_bounds,
    bucket_index,
    build_series,
    compute_stats,
    country_rollup,
    top_n,
)
from ._attrib import (
    AttributionConfig,
    classify_referrer_source,
    parse_host,
)
from ._store import (
    DEFAULT_RETENTION_CAP,
    EventRange,
    InMemoryEventStore,
    validate_retention_cap,
)
from .component import (
    VisitorAnalytics,
    build_event,
    run,
    run_query,
    run_record_page_view,
    run_reset,
)
from .models import (
    DIRECT_REFERRER,
    UNKNOWN_COUNTRY,
    AggregateResult,
    AnalyticsValidationError,
    BreakdownItem,
    Bucket,
    CountryStat,
    PageViewEvent,
    QueryInput,
    QueryOutput,
    RecordOutput,
    RecordPageViewInput,
    ResetInput,
    ResetOutput,
    TrafficStats,
)
from .ports import (
    EventStorePort,
    TimePort,
)

__all__ = [
    # Entry points
    "run",
    "run_query",
    "run_record_page_view",
    "run_reset",
    "VisitorAnalytics",
    # Engine
    "AggregateConfig",
    "aggregate",
    "bucket_bounds",
    "bucket_index",
    "build_event",
    "build_series",
    "compute_stats",
    "country_rollup",
    "top_n",
    # Attribution
    "AttributionConfig",
    "classify_referrer_source",
    "parse_host",
    # Store
    "DEFAULT_RETENTION_CAP",
    "EventRange",
    "InMemoryEventStore",
    "validate_retention_cap",
    # Models
    "DIRECT_REFERRER",
    "UNKNOWN_COUNTRY",
    "AggregateResult",
    "AnalyticsValidationError",
    "BreakdownItem",
    "Bucket",
    "CountryStat",
    "PageViewEvent",
    "QueryInput",
    "QueryOutput",
    "RecordOutput",
    "RecordPageViewInput",
    "ResetInput",
    "ResetOutput",
    "TrafficStats",
    # Ports
    "EventStorePort",
    "TimePort",
]
