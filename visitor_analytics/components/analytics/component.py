"""
Analytics component - Page-view ingestion, queries and reset.

Invariants:
- I1: Stored events are never mutated; the store only appends or evicts
- I2: Ingestion failures never reach the caller (analytics is best-effort)
- I3: A query is a pure function of store contents and timeframe
- I4: Inverted or unparseable ranges never reach the aggregation engine
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo

from visitor_analytics.components.session import DEFAULT_CONFIG as DEFAULT_CLASSIFIER
from visitor_analytics.components.session import (
    ClientContext,
    ClassifierConfig,
    SessionIdentity,
    classify_client,
)
from visitor_analytics.components.timeframe import (
    DEFAULT_PRESET,
    TimeframeSelection,
    TimeframeSelector,
    run_resolve,
)

from ._aggregate import AggregateConfig, aggregate
from .models import (
    DIRECT_REFERRER,
    AggregateResult,
    AnalyticsValidationError,
    PageViewEvent,
    QueryInput,
    QueryOutput,
    RecordOutput,
    RecordPageViewInput,
    ResetInput,
    ResetOutput,
)
from .ports import EventStorePort, TimePort

logger = logging.getLogger(__name__)


def build_event(
    path: str,
    identity: SessionIdentity,
    context: ClientContext | None,
    timestamp: datetime,
    classifier: ClassifierConfig | None = None,
) -> PageViewEvent:
    """Tag a page view with session and client fields."""
    profile = classify_client(context, classifier or DEFAULT_CLASSIFIER)
    referrer = (context.referrer if context else None) or DIRECT_REFERRER
    return PageViewEvent(
        timestamp=timestamp,
        path=path,
        session_id=identity.session_id,
        referrer=referrer,
        browser=profile.browser,
        os=profile.os,
        device=profile.device,
        country=profile.country,
    )


# --- Component Entry Points ---


def run_record_page_view(
    inp: RecordPageViewInput,
    *,
    event_store: EventStorePort,
    time_port: TimePort,
    classifier: ClassifierConfig | None = None,
) -> RecordOutput:
    """
    Record one page view.

    Args:
        inp: Path, session identity and client context.
        event_store: Event store port.
        time_port: Clock used when the input carries no timestamp.
        classifier: Optional client classification rules.

    Returns:
        RecordOutput with the stored event, or validation errors. Storage
        failures are logged and reported as success with the event dropped.
    """
    path = (inp.path or "").strip()
    if not path:
        return RecordOutput(
            event=None,
            errors=[
                AnalyticsValidationError(
                    code="missing_path",
                    message="Page path is required",
                    field_name="path",
                )
            ],
            success=False,
        )

    timestamp = inp.timestamp or time_port.now_utc()
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    event = build_event(path, inp.identity, inp.context, timestamp.astimezone(UTC), classifier)

    try:
        event_store.append(event)
    except Exception:
        logger.warning("Dropped page view for %s: store append failed", path, exc_info=True)
        return RecordOutput(event=None)

    return RecordOutput(event=event)


def run_query(
    inp: QueryInput,
    *,
    event_store: EventStorePort,
    time_port: TimePort,
    config: AggregateConfig | None = None,
    display_tz: tzinfo = UTC,
) -> QueryOutput:
    """
    Resolve a timeframe selection and aggregate the matching events.

    Args:
        inp: Timeframe selection (preset or custom bounds).
        event_store: Event store port.
        time_port: Clock used for preset windows.
        config: Optional top-N limits.
        display_tz: Time zone for bucket labels.

    Returns:
        QueryOutput with the aggregate result or range validation errors.
    """
    resolved = run_resolve(inp.selection, time_port=time_port)
    if resolved.timeframe is None:
        return QueryOutput(
            result=None,
            errors=[
                AnalyticsValidationError(
                    code=e.code,
                    message=e.message,
                    field_name=e.field_name,
                )
                for e in resolved.errors
            ],
            success=False,
        )

    timeframe = resolved.timeframe
    events = event_store.scan(timeframe.start, timeframe.end)
    result = aggregate(events, timeframe, config or AggregateConfig(), display_tz)

    logger.debug(
        "Query %s [%s, %s): %d views, %d visits",
        timeframe.label,
        timeframe.start.isoformat(),
        timeframe.end.isoformat(),
        result.page_views,
        result.visits,
    )
    return QueryOutput(result=result)


def run_reset(
    inp: ResetInput,
    *,
    event_store: EventStorePort,
) -> ResetOutput:
    """
    Clear the event store.

    Args:
        inp: Reset input; `confirm` must be True.
        event_store: Event store port.

    Returns:
        ResetOutput indicating whether the store was cleared.
    """
    if not inp.confirm:
        return ResetOutput(
            cleared=False,
            errors=[
                AnalyticsValidationError(
                    code="not_confirmed",
                    message="Reset must be explicitly confirmed",
                    field_name="confirm",
                )
            ],
            success=False,
        )

    event_store.clear()
    logger.info("Analytics event store cleared")
    return ResetOutput(cleared=True)


def run(
    inp: RecordPageViewInput | QueryInput | ResetInput,
    *,
    event_store: EventStorePort | None = None,
    time_port: TimePort | None = None,
    config: AggregateConfig | None = None,
    display_tz: tzinfo = UTC,
    classifier: ClassifierConfig | None = None,
) -> RecordOutput | QueryOutput | ResetOutput:
    """
    Main entry point for the analytics component.

    Dispatches to appropriate handler based on input type.
    """
    if event_store is None:
        raise ValueError("EventStorePort is required for analytics operations")

    if isinstance(inp, RecordPageViewInput):
        if time_port is None:
            raise ValueError("TimePort is required for ingest operations")
        return run_record_page_view(
            inp, event_store=event_store, time_port=time_port, classifier=classifier
        )
    elif isinstance(inp, QueryInput):
        if time_port is None:
            raise ValueError("TimePort is required for query operations")
        return run_query(
            inp,
            event_store=event_store,
            time_port=time_port,
            config=config,
            display_tz=display_tz,
        )
    elif isinstance(inp, ResetInput):
        return run_reset(inp, event_store=event_store)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")


# --- Facade ---


class VisitorAnalytics:
    """
    Ingestion, query and reset over one explicit event store.

    The host owns scheduling: there is no timer in here. A dashboard that
    polls calls query() on its own schedule.
    """

    def __init__(
        self,
        event_store: EventStorePort,
        time_port: TimePort,
        config: AggregateConfig | None = None,
        display_tz: tzinfo = UTC,
        classifier: ClassifierConfig | None = None,
        default_preset: str = DEFAULT_PRESET,
    ) -> None:
        self.event_store = event_store
        self.time_port = time_port
        self.config = config or AggregateConfig()
        self.display_tz = display_tz
        self.classifier = classifier
        self.selector = TimeframeSelector(time_port, default_preset)

    def record_page_view(
        self,
        path: str,
        identity: SessionIdentity,
        context: ClientContext | None = None,
    ) -> None:
        """Record a page view. Never raises and returns nothing."""
        output = run_record_page_view(
            RecordPageViewInput(path=path, identity=identity, context=context),
            event_store=self.event_store,
            time_port=self.time_port,
            classifier=self.classifier,
        )
        if not output.success:
            logger.debug("Ignored page view: %s", [e.code for e in output.errors])

    def query(self, selection: TimeframeSelection | None = None) -> QueryOutput:
        """
        Aggregate over `selection`, or the active selection when omitted.

        An explicit selection that validates becomes the active one; a
        rejected selection leaves the active one untouched.
        """
        if selection is not None:
            resolved = self.selector.select(selection)
            if not resolved.success:
                return QueryOutput(
                    result=None,
                    errors=[
                        AnalyticsValidationError(
                            code=e.code, message=e.message, field_name=e.field_name
                        )
                        for e in resolved.errors
                    ],
                    success=False,
                )

        return run_query(
            QueryInput(selection=self.selector.active),
            event_store=self.event_store,
            time_port=self.time_port,
            config=self.config,
            display_tz=self.display_tz,
        )

    def query_active(self) -> AggregateResult:
        """Aggregate over the active selection, which has already been validated."""
        output = self.query()
        if output.result is None:
            raise ValueError(f"Active selection failed to resolve: {output.errors}")
        return output.result

    def reset_analytics(self) -> None:
        """Clear every stored event."""
        run_reset(ResetInput(confirm=True), event_store=self.event_store)
