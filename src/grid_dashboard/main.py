"""Main FastAPI application for the grid performance dashboard service."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from grid_dashboard.api.routes import router
from grid_dashboard.configuration.settings import get_settings
from grid_dashboard.core.dataset_loader import load_initial_dataset
from grid_dashboard.core.dataset_store import DatasetStore
from grid_dashboard.utils.exceptions import ConfigurationError, GridDashboardException


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for machine-readable output, "text" for the console
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "text"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    # Startup
    logger = structlog.get_logger()
    try:
        settings = get_settings()
        logger.info(
            "application_starting",
            environment=settings.environment,
            port=settings.api.port,
            log_level=settings.logging.level,
        )
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        sys.exit(1)

    try:
        snapshot = await load_initial_dataset(settings, app.state.dataset_store)
        if snapshot is not None:
            logger.info(
                "initial_dataset_loaded",
                source_name=snapshot.source_name,
                weeks=len(snapshot.records),
            )
    except GridDashboardException as e:
        # The service still starts; an upload can supply the dataset later
        logger.error(
            "initial_dataset_load_failed",
            error=str(e),
            error_type=type(e).__name__,
        )

    yield

    # Shutdown
    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    try:
        settings = get_settings()
        configure_logging(settings.logging.level, settings.logging.format)
    except ConfigurationError as e:
        configure_logging("INFO")
        logger = structlog.get_logger()
        logger.error("failed_to_load_settings", error=str(e))
        raise

    app = FastAPI(
        title="Grid Dashboard - Weekly Grid Performance Service",
        description="Decodes weekly grid operations workbooks and serves KPIs and PDF reports",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.dataset_store = DatasetStore(settings.dataset.snapshot_path)

    app.include_router(router, prefix="/api/v1", tags=["Dashboard"])

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"service": "grid-dashboard", "status": "running", "version": "1.0.0"}

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: object, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Configuration error",
                "message": str(exc),
            },
        )

    logger = structlog.get_logger()
    logger.info(
        "fastapi_app_created",
        environment=settings.environment,
        docs_url="/docs",
        api_prefix="/api/v1",
    )

    return app


def run() -> None:
    """Run the service with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "grid_dashboard.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.logging.level.lower(),
    )


# Create app instance
app = create_app()
