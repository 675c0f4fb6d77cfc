"""
Commerce Metrics API

Entry point serving the reporting API over the configured snapshot.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from commerce_metrics.config import get_settings
from commerce_metrics.config.logging import configure_logging
from commerce_metrics.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info(
        "Starting Commerce Metrics API",
        tables=app.state.report_service.store.row_counts(),
        timezone=settings.analytics.reporting_timezone,
    )
    yield
    logger.info("Shutting down...")


app = create_api_app(lifespan=lifespan)


def run():
    import uvicorn
    uvicorn.run(app, host=settings.api.host, port=settings.api.port)


if __name__ == "__main__":
    run()
