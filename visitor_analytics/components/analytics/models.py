"""
Analytics component input/output models.

Events are immutable once appended. Everything else here (series buckets,
breakdowns, the aggregate bundle) is derived per query and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from visitor_analytics.components.session.models import ClientContext, SessionIdentity
    from visitor_analytics.components.timeframe.models import Timeframe, TimeframeSelection

DIRECT_REFERRER = "Direct"
UNKNOWN_COUNTRY = "Unknown"


# --- Validation Error ---


@dataclass(frozen=True)
class AnalyticsValidationError:
    """Analytics validation error."""

    code: str
    message: str
    field_name: str | None = None


# --- Event Model ---


@dataclass(frozen=True)
class PageViewEvent:
    """One recorded page view."""

    timestamp: datetime
    path: str
    session_id: str
    referrer: str = DIRECT_REFERRER
    browser: str = "Other"
    os: str = "Other"
    device: str = "Other"
    country: str = UNKNOWN_COUNTRY

    def to_record(self) -> dict[str, object]:
        """Serialize for a backing medium (epoch milliseconds timestamp)."""
        return {
            "ts": int(self.timestamp.timestamp() * 1000),
            "path": self.path,
            "session": self.session_id,
            "referrer": self.referrer,
            "browser": self.browser,
            "os": self.os,
            "device": self.device,
            "country": self.country,
        }

    @classmethod
    def from_record(cls, data: dict[str, object]) -> PageViewEvent:
        """Deserialize a stored record."""
        ts = int(data["ts"])  # type: ignore[call-overload]
        return cls(
            timestamp=datetime.fromtimestamp(ts / 1000, tz=UTC),
            path=str(data["path"]),
            session_id=str(data["session"]),
            referrer=str(data.get("referrer") or DIRECT_REFERRER),
            browser=str(data.get("browser") or "Other"),
            os=str(data.get("os") or "Other"),
            device=str(data.get("device") or "Other"),
            country=str(data.get("country") or UNKNOWN_COUNTRY),
        )


# --- Derived Models ---


@dataclass(frozen=True)
class Bucket:
    """One equal-width slice of a query range."""

    label: str
    start: datetime
    end: datetime
    views: int = 0
    unique_visitors: int = 0


@dataclass(frozen=True)
class BreakdownItem:
    """One row of a top-N breakdown. Percentage is unrounded."""

    label: str
    count: int
    percentage: float


@dataclass(frozen=True)
class CountryStat:
    """Per-country rollup for map rendering."""

    name: str
    views: int
    visitors: int


@dataclass(frozen=True)
class TrafficStats:
    """Scalar statistics for a query window."""

    page_views: int
    visits: int
    unique_visitors: int
    bounce_rate_percent: float


@dataclass(frozen=True)
class AggregateResult:
    """Everything a dashboard needs for one timeframe."""

    timeframe: Timeframe
    page_views: int
    visits: int
    unique_visitors: int
    bounce_rate_percent: float
    series: tuple[Bucket, ...]
    top_pages: tuple[BreakdownItem, ...]
    top_browsers: tuple[BreakdownItem, ...]
    top_os: tuple[BreakdownItem, ...]
    top_devices: tuple[BreakdownItem, ...]
    top_referrers: tuple[BreakdownItem, ...]
    top_countries: tuple[BreakdownItem, ...]
    country_rollup: tuple[CountryStat, ...]

    @property
    def is_empty(self) -> bool:
        """True when no events fell inside the window."""
        return self.page_views == 0


# --- Input Models ---


@dataclass(frozen=True)
class RecordPageViewInput:
    """Input for recording a page view."""

    path: str
    identity: SessionIdentity
    context: ClientContext | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class QueryInput:
    """Input for running an aggregate query."""

    selection: TimeframeSelection


@dataclass(frozen=True)
class ResetInput:
    """Input for clearing the event store."""

    confirm: bool = True


# --- Output Models ---


@dataclass(frozen=True)
class RecordOutput:
    """Output for ingestion. Storage failures are never reported here."""

    event: PageViewEvent | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class QueryOutput:
    """Output for an aggregate query."""

    result: AggregateResult | None
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ResetOutput:
    """Output for a reset."""

    cleared: bool
    errors: list[AnalyticsValidationError] = field(default_factory=list)
    success: bool = True
