"""
FastAPI Application Factory

Creates the reporting API around a record store snapshot.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from commerce_metrics.analytics.errors import (
    AnalyticsError,
    ConfigurationError,
)
from commerce_metrics.config import get_settings
from commerce_metrics.data.seed import load_seed_store
from commerce_metrics.data.store import RecordStore
from commerce_metrics.serving.api.middleware import RequestLoggingMiddleware
from commerce_metrics.serving.api.routes import health_router, reports_router
from commerce_metrics.serving.service import ReportService

logger = structlog.get_logger(__name__)


async def analytics_error_handler(request: Request, exc: AnalyticsError) -> JSONResponse:
    """Translate engine errors into client-facing responses"""
    status_code = 500 if isinstance(exc, ConfigurationError) else 422
    logger.warning(
        "Report failed",
        path=request.url.path,
        error=type(exc).__name__,
        message=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def default_store() -> RecordStore:
    """Store from SEED_DATA_DIR when configured, otherwise the seed dataset"""
    settings = get_settings()
    if settings.analytics.seed_data_dir:
        logger.info("Loading store from directory", path=settings.analytics.seed_data_dir)
        return RecordStore.from_csv_dir(settings.analytics.seed_data_dir)
    return load_seed_store()


def create_api_app(store: Optional[RecordStore] = None, lifespan=None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        store: Snapshot to report on; defaults to default_store()
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Commerce Metrics API",
        description="Read-only e-commerce analytics reports",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.report_service = ReportService(store if store is not None else default_store(), settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(AnalyticsError, analytics_error_handler)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])

    return app
