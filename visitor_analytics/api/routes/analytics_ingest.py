"""
Analytics Ingestion API Routes.

Public endpoint that records one page view per request.

The user agent comes from the request header; the browser supplies its own
session id (issued by this endpoint on the first call), referrer and IANA
time zone. Storage failures are logged server-side and never surface here.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from visitor_analytics.api.deps import get_service_context
from visitor_analytics.api.schemas import ErrorItem
from visitor_analytics.app_shell.context import ServiceContext
from visitor_analytics.components.analytics import RecordPageViewInput, run_record_page_view
from visitor_analytics.components.session import (
    ClientContext,
    SessionIdentity,
    generate_session_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class EventRequest(BaseModel):
    """Page view event request."""

    path: str = Field(..., description="Page path")
    session_id: str | None = Field(None, description="Session id issued by a previous call")
    referrer: str | None = Field(None, description="Referrer URL")
    time_zone: str | None = Field(None, description="IANA time zone of the browser")

    model_config = ConfigDict(extra="ignore")


class EventResponse(BaseModel):
    """Success response."""

    ok: bool = True
    session_id: str


class ErrorResponse(BaseModel):
    """Error response."""

    ok: bool = False
    errors: list[dict[str, Any]]


# --- Routes ---


@router.post(
    "/event",
    response_model=EventResponse,
    responses={400: {"model": ErrorResponse}},
)
def ingest_event(
    request: Request,
    body: EventRequest,
    ctx: ServiceContext = Depends(get_service_context),
) -> EventResponse:
    """Record a page view and return the session id to reuse."""
    session_id = (body.session_id or "").strip() or generate_session_id()
    identity = SessionIdentity(session_id=session_id, started_at=ctx.clock.now_utc())
    context = ClientContext(
        user_agent=request.headers.get("user-agent"),
        referrer=body.referrer,
        time_zone=body.time_zone,
    )

    output = run_record_page_view(
        RecordPageViewInput(path=body.path, identity=identity, context=context),
        event_store=ctx.event_store,
        time_port=ctx.clock,
    )

    if not output.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "ok": False,
                "errors": [ErrorItem.from_error(e).model_dump() for e in output.errors],
            },
        )

    return EventResponse(ok=True, session_id=session_id)
