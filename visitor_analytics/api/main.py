import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from visitor_analytics.api.deps import get_service_context, get_settings
from visitor_analytics.api.routes import admin_analytics, analytics_ingest

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()

    # Load rules and build the event store on startup (fail-fast)
    try:
        get_service_context()
        logger.info("Rules loaded from %s", settings.rules_path)
    except (FileNotFoundError, ValueError):
        logger.critical("Rules load failed", exc_info=True)
        raise

    yield


app = FastAPI(
    title="Visitor Analytics API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(analytics_ingest.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(
    admin_analytics.router, prefix="/api/admin/analytics", tags=["Admin Analytics"]
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "visitor-analytics"}
