from __future__ import annotations

from pydantic import BaseModel, Field

from visitor_analytics.components.analytics import (
    AggregateResult,
    AnalyticsValidationError,
    BreakdownItem,
)
from visitor_analytics.components.timeframe import Timeframe


class ErrorItem(BaseModel):
    code: str
    message: str
    field: str | None = None

    @classmethod
    def from_error(cls, error: AnalyticsValidationError) -> ErrorItem:
        return cls(code=error.code, message=error.message, field=error.field_name)


class TimeframeResponse(BaseModel):
    label: str
    start: str
    end: str
    bucket_count: int
    label_granularity: str

    @classmethod
    def from_timeframe(cls, tf: Timeframe) -> TimeframeResponse:
        return cls(
            label=tf.label,
            start=tf.start.isoformat(),
            end=tf.end.isoformat(),
            bucket_count=tf.bucket_count,
            label_granularity=tf.label_granularity,
        )


class BucketResponse(BaseModel):
    label: str
    start: str
    end: str
    views: int
    unique_visitors: int


class BreakdownItemResponse(BaseModel):
    label: str
    count: int
    percentage: float = Field(..., description="Share of all counted events, one decimal")

    @classmethod
    def from_item(cls, item: BreakdownItem) -> BreakdownItemResponse:
        return cls(label=item.label, count=item.count, percentage=round(item.percentage, 1))


class CountryStatResponse(BaseModel):
    name: str
    views: int
    visitors: int


class QueryResponse(BaseModel):
    """Full dashboard payload for one timeframe."""

    timeframe: TimeframeResponse
    is_empty: bool
    page_views: int
    visits: int
    unique_visitors: int
    bounce_rate_percent: float
    series: list[BucketResponse]
    top_pages: list[BreakdownItemResponse]
    top_browsers: list[BreakdownItemResponse]
    top_os: list[BreakdownItemResponse]
    top_devices: list[BreakdownItemResponse]
    top_referrers: list[BreakdownItemResponse]
    top_countries: list[BreakdownItemResponse]
    countries: list[CountryStatResponse]

    @classmethod
    def from_result(cls, result: AggregateResult) -> QueryResponse:
        def items(rows: tuple[BreakdownItem, ...]) -> list[BreakdownItemResponse]:
            return [BreakdownItemResponse.from_item(r) for r in rows]

        return cls(
            timeframe=TimeframeResponse.from_timeframe(result.timeframe),
            is_empty=result.is_empty,
            page_views=result.page_views,
            visits=result.visits,
            unique_visitors=result.unique_visitors,
            bounce_rate_percent=round(result.bounce_rate_percent, 1),
            series=[
                BucketResponse(
                    label=b.label,
                    start=b.start.isoformat(),
                    end=b.end.isoformat(),
                    views=b.views,
                    unique_visitors=b.unique_visitors,
                )
                for b in result.series
            ],
            top_pages=items(result.top_pages),
            top_browsers=items(result.top_browsers),
            top_os=items(result.top_os),
            top_devices=items(result.top_devices),
            top_referrers=items(result.top_referrers),
            top_countries=items(result.top_countries),
            countries=[
                CountryStatResponse(name=c.name, views=c.views, visitors=c.visitors)
                for c in result.country_rollup
            ],
        )


class PresetResponse(BaseModel):
    key: str
    minutes: int
    buckets: int
    label_granularity: str


class PresetGroupResponse(BaseModel):
    name: str
    presets: list[PresetResponse]


class PresetsResponse(BaseModel):
    default: str
    groups: list[PresetGroupResponse]


class ResetResponse(BaseModel):
    ok: bool = True
    cleared: int
