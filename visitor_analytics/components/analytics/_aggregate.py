"""
Bucketing & aggregation engine.

Scans the events of one timeframe and computes the traffic series, scalar
statistics, top-N breakdowns and the per-country rollup.

Key behaviors:
- Series has exactly bucket_count contiguous, half-open, equal-width buckets
  (zero-filled); bucket boundaries are computed in integer microseconds
- visits == unique visitors == distinct session ids in the window
- Bounce rate counts sessions with exactly one event in the window
- Top-N sorts by count descending; ties keep first-seen order
- Percentages are exact; rounding is left to display code
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo

from visitor_analytics.components.timeframe import Timeframe, format_label

from ._attrib import classify_referrer_source
from .models import (
    AggregateResult,
    BreakdownItem,
    Bucket,
    CountryStat,
    PageViewEvent,
    TrafficStats,
)

_MICROSECOND = timedelta(microseconds=1)


# --- Configuration ---


@dataclass(frozen=True)
class AggregateConfig:
    """Top-N limits per breakdown."""

    top_pages: int = 7
    top_browsers: int = 5
    top_os: int = 5
    top_devices: int = 3
    top_referrers: int = 7
    top_countries: int = 7


DEFAULT_CONFIG = AggregateConfig()


# --- Series ---


def bucket_bounds(timeframe: Timeframe, index: int) -> datetime:
    """Start instant of bucket `index` (index == bucket_count gives the end)."""
    span_us = timeframe.span // _MICROSECOND
    return timeframe.start + timedelta(microseconds=span_us * index // timeframe.bucket_count)


def bucket_index(timeframe: Timeframe, timestamp: datetime) -> int | None:
    """Bucket holding `timestamp`, or None when outside [start, end)."""
    if not (timeframe.start <= timestamp < timeframe.end):
        return None
    span_us = timeframe.span // _MICROSECOND
    offset_us = (timestamp - timeframe.start) // _MICROSECOND
    return min(offset_us * timeframe.bucket_count // span_us, timeframe.bucket_count - 1)


def build_series(
    events: Iterable[PageViewEvent],
    timeframe: Timeframe,
    display_tz: tzinfo = UTC,
) -> tuple[Bucket, ...]:
    """
    Split the timeframe into equal buckets and count views and visitors.

    Labels come from each bucket's midpoint in `display_tz`.
    """
    n = timeframe.bucket_count
    views = [0] * n
    sessions: list[set[str]] = [set() for _ in range(n)]

    for event in events:
        idx = bucket_index(timeframe, event.timestamp)
        if idx is None:
            continue
        views[idx] += 1
        sessions[idx].add(event.session_id)

    span_us = timeframe.span // _MICROSECOND
    buckets = []
    for i in range(n):
        midpoint = timeframe.start + timedelta(microseconds=span_us * (2 * i + 1) // (2 * n))
        buckets.append(
            Bucket(
                label=format_label(midpoint.astimezone(display_tz), timeframe.label_granularity),
                start=bucket_bounds(timeframe, i),
                end=bucket_bounds(timeframe, i + 1),
                views=views[i],
                unique_visitors=len(sessions[i]),
            )
        )
    return tuple(buckets)


# --- Scalar Stats ---


def compute_stats(events: Iterable[PageViewEvent]) -> TrafficStats:
    """Page views, visits, unique visitors and bounce rate."""
    per_session: Counter[str] = Counter()
    page_views = 0
    for event in events:
        page_views += 1
        per_session[event.session_id] += 1

    visits = len(per_session)
    bounced = sum(1 for count in per_session.values() if count == 1)
    bounce_rate = (bounced * 100 / visits) if visits else 0.0

    return TrafficStats(
        page_views=page_views,
        visits=visits,
        unique_visitors=visits,
        bounce_rate_percent=bounce_rate,
    )


# --- Breakdowns ---


def top_n(
    events: Iterable[PageViewEvent],
    projection: Callable[[PageViewEvent], str],
    limit: int = 7,
) -> tuple[BreakdownItem, ...]:
    """
    Rank labels by frequency.

    Percentages are relative to every event counted, not only the returned
    rows.
    """
    counts: Counter[str] = Counter()
    total = 0
    for event in events:
        counts[projection(event)] += 1
        total += 1

    # Counter keeps first-seen order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)

    return tuple(
        BreakdownItem(
            label=label,
            count=count,
            percentage=(count * 100 / total) if total else 0.0,
        )
        for label, count in ranked[:limit]
    )


def country_rollup(events: Iterable[PageViewEvent]) -> tuple[CountryStat, ...]:
    """Views and distinct sessions per country. Every country is included."""
    views: dict[str, int] = {}
    visitors: dict[str, set[str]] = {}
    for event in events:
        views[event.country] = views.get(event.country, 0) + 1
        visitors.setdefault(event.country, set()).add(event.session_id)

    return tuple(
        CountryStat(name=name, views=count, visitors=len(visitors[name]))
        for name, count in views.items()
    )


# --- Aggregate ---


def aggregate(
    events: Iterable[PageViewEvent],
    timeframe: Timeframe,
    config: AggregateConfig = DEFAULT_CONFIG,
    display_tz: tzinfo = UTC,
) -> AggregateResult:
    """
    Compute the full result bundle for one timeframe.

    Events outside the timeframe are ignored.
    """
    matched = [e for e in events if timeframe.start <= e.timestamp < timeframe.end]

    stats = compute_stats(matched)

    return AggregateResult(
        timeframe=timeframe,
        page_views=stats.page_views,
        visits=stats.visits,
        unique_visitors=stats.unique_visitors,
        bounce_rate_percent=stats.bounce_rate_percent,
        series=build_series(matched, timeframe, display_tz),
        top_pages=top_n(matched, lambda e: e.path, config.top_pages),
        top_browsers=top_n(matched, lambda e: e.browser, config.top_browsers),
        top_os=top_n(matched, lambda e: e.os, config.top_os),
        top_devices=top_n(matched, lambda e: e.device, config.top_devices),
        top_referrers=top_n(
            matched, lambda e: classify_referrer_source(e.referrer), config.top_referrers
        ),
        top_countries=top_n(matched, lambda e: e.country, config.top_countries),
        country_rollup=country_rollup(matched),
    )
