"""Bookly FastAPI application factory."""

import logging
import os
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from bookly.config import Settings, get_settings
from bookly.dependencies import Database
from bookly.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from bookly.middleware.logging import LoggingMiddleware, setup_logging
from bookly.middleware.rate_limit import RateLimitMiddleware
from bookly.routers import availability, booking, event_types, meetings

logger = logging.getLogger(__name__)

SERVICE_NAME = "bookly-api"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the storage handle at startup and close it at shutdown."""
    settings: Settings = app.state.settings
    setup_logging(debug=settings.debug)
    logger.info("Starting %s (env=%s)", settings.app_name, settings.app_env)

    database = Database(settings).connect()
    app.state.database = database

    yield

    await database.dispose()
    logger.info("%s shutting down", settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Bookly - Scheduling API",
        description="Event types, weekly availability and conflict-free booking",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )
    app.state.settings = settings

    register_exception_handlers(app, expose_details=settings.expose_error_details)

    # Middleware (order matters: the last added runs outermost)
    app.add_middleware(ErrorHandlerMiddleware, expose_details=settings.expose_error_details)
    app.add_middleware(LoggingMiddleware)
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, settings=settings)
    origins = settings.cors_origins
    allow_all = origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if not allow_all else [],
        allow_origin_regex=r".*" if allow_all else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=600,
    )

    prefix = settings.api_prefix
    app.include_router(event_types.router, prefix=prefix)
    app.include_router(availability.router, prefix=prefix)
    app.include_router(booking.router, prefix=prefix)
    app.include_router(meetings.router, prefix=prefix)

    @app.get("/")
    async def root():
        return {"status": "running", "service": SERVICE_NAME, "version": VERSION}

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/health/ready")
    async def health_ready():
        """Deep health check: verifies database and Redis connectivity."""
        checks: dict = {}

        try:
            database: Database = app.state.database
            async with database.session_factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            checks["database"] = f"error: {type(e).__name__}"

        try:
            r = aioredis.from_url(settings.redis_url, decode_responses=True)
            await r.ping()
            await r.aclose()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {type(e).__name__}"

        all_ok = all(v == "ok" for v in checks.values())
        return JSONResponse(
            status_code=200 if all_ok else 503,
            content={"status": "ready" if all_ok else "degraded", "checks": checks},
        )

    instrumentator = Instrumentator(
        excluded_handlers=["/health", "/health/ready", "/docs", "/redoc", "/openapi.json", "/metrics"],
    )
    instrumentator.instrument(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint with multiprocess support."""
        from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest, multiprocess

        multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
        if multiproc_dir:
            registry = CollectorRegistry()
            multiprocess.MultiProcessCollector(registry)
            data = generate_latest(registry)
        else:
            data = generate_latest()

        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


# Default app instance for uvicorn
app = create_app()
