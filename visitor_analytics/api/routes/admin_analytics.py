"""
Admin Analytics API.

Dashboard queries over the recorded page views.

Every query endpoint takes either `preset` or both `start` and `end`
(ISO-8601). With neither, the configured default preset is used. Invalid
ranges are rejected with 400 before any aggregation runs.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from visitor_analytics.api.deps import get_service_context
from visitor_analytics.api.schemas import (
    ErrorItem,
    PresetGroupResponse,
    PresetResponse,
    PresetsResponse,
    QueryResponse,
    ResetResponse,
)
from visitor_analytics.app_shell.context import ServiceContext
from visitor_analytics.app_shell.export import result_to_csv
from visitor_analytics.components.analytics import (
    AggregateResult,
    QueryInput,
    ResetInput,
    run_query,
    run_reset,
)
from visitor_analytics.components.timeframe import (
    PRESET_GROUPS,
    PRESETS_BY_KEY,
    TimeframeSelection,
)

router = APIRouter()


# --- Helper Functions ---


def build_selection(
    preset: str | None,
    start: str | None,
    end: str | None,
    default_preset: str,
) -> TimeframeSelection:
    """Turn query parameters into a selection (400 on a half-open custom range)."""
    if start is not None or end is not None:
        if start is None or end is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "ok": False,
                    "errors": [
                        {
                            "code": "incomplete_range",
                            "message": "Both start and end are required for a custom range",
                            "field": "start" if start is None else "end",
                        }
                    ],
                },
            )
        return TimeframeSelection.custom(start, end)
    return TimeframeSelection.for_preset(preset or default_preset)


def run_selection(ctx: ServiceContext, selection: TimeframeSelection) -> AggregateResult:
    output = run_query(
        QueryInput(selection=selection),
        event_store=ctx.event_store,
        time_port=ctx.clock,
        config=ctx.aggregate_config,
        display_tz=ctx.display_tz,
    )
    if output.result is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "ok": False,
                "errors": [ErrorItem.from_error(e).model_dump() for e in output.errors],
            },
        )
    return output.result


def query_dependency(
    preset: str | None = Query(None, description="Preset key (e.g. 24h, 7d)"),
    start: str | None = Query(None, description="Custom range start (ISO format)"),
    end: str | None = Query(None, description="Custom range end (ISO format)"),
    ctx: ServiceContext = Depends(get_service_context),
) -> AggregateResult:
    selection = build_selection(preset, start, end, ctx.rules.analytics.default_preset)
    return run_selection(ctx, selection)


# --- Routes ---


@router.get("/query", response_model=QueryResponse)
def get_query(result: AggregateResult = Depends(query_dependency)) -> QueryResponse:
    """Series, stats, breakdowns and country rollup for one range."""
    return QueryResponse.from_result(result)


@router.get("/presets", response_model=PresetsResponse)
def get_presets(ctx: ServiceContext = Depends(get_service_context)) -> PresetsResponse:
    """Preset catalog grouped for the range picker."""
    groups = []
    for name, keys in PRESET_GROUPS:
        presets = []
        for key in keys:
            p = PRESETS_BY_KEY[key]
            presets.append(
                PresetResponse(
                    key=p.key,
                    minutes=p.minutes,
                    buckets=p.buckets,
                    label_granularity=p.label_granularity,
                )
            )
        groups.append(PresetGroupResponse(name=name, presets=presets))
    return PresetsResponse(default=ctx.rules.analytics.default_preset, groups=groups)


@router.get(
    "/chart.png",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_chart(
    result: AggregateResult = Depends(query_dependency),
    ctx: ServiceContext = Depends(get_service_context),
) -> Response:
    """Traffic curve (views and unique visitors per bucket) as PNG."""
    png = ctx.renderer.render_series(result)
    return Response(content=png, media_type="image/png")


@router.get("/export.csv", response_class=Response)
def export_csv(result: AggregateResult = Depends(query_dependency)) -> Response:
    """Top-N breakdowns and the country rollup as CSV."""
    filename = f"analytics-{result.timeframe.label.lower()}.csv"
    return Response(
        content=result_to_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/events", response_model=ResetResponse)
def reset_events(ctx: ServiceContext = Depends(get_service_context)) -> ResetResponse:
    """Delete every recorded page view."""
    before = ctx.event_store.count()
    output = run_reset(ResetInput(confirm=True), event_store=ctx.event_store)
    ctx.renderer.clear_cache()
    return ResetResponse(ok=output.success, cleared=before)
