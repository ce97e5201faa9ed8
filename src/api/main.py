"""FastAPI application factory and lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import (
    build_backlog_scheduler,
    build_cleanup,
    get_settings,
    init_services,
    shutdown_services,
)
from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.openapi.routes import health, maintenance, query, videos
from src.api.scheduler import PeriodicJob, PeriodicJobRunner
from src.commons.settings.models import Settings
from src.commons.telemetry import (
    SECURITY_LOGGER_NAME,
    configure_logging,
    init_langfuse,
    shutdown_langfuse,
)
from src.infrastructure.factory import InfrastructureFactory

# Loggers that get our handler and formatter instead of their defaults
APP_LOGGERS = ("src", SECURITY_LOGGER_NAME)
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def setup_logging(settings: Settings, *, include_uvicorn: bool = False) -> None:
    """Route application logs through the configured formatter.

    Uvicorn installs its own handlers when the server starts, so its
    loggers are reconfigured again from the lifespan.
    """
    level = settings.telemetry.log_level or settings.app.log_level
    names = APP_LOGGERS + UVICORN_LOGGERS if include_uvicorn else APP_LOGGERS
    for name in names:
        configure_logging(
            level=level,
            format_type=settings.telemetry.log_format,
            logger_name=name,
        )
    logging.getLogger().setLevel(level.upper())


setup_logging(get_settings())


def _build_job_runner(settings: Settings, factory: InfrastructureFactory) -> PeriodicJobRunner:
    """Register the enabled periodic passes."""
    runner = PeriodicJobRunner()

    if settings.backlog.enabled:
        scheduler = build_backlog_scheduler(factory)
        runner.add_job(
            PeriodicJob(
                name="rag_backlog",
                interval_seconds=settings.backlog.interval_seconds,
                run=scheduler.run_pass,
            )
        )

    if settings.cleanup.enabled:
        cleanup = build_cleanup(factory)
        runner.add_job(
            PeriodicJob(
                name="expired_video_cleanup",
                interval_seconds=settings.cleanup.interval_seconds,
                run=cleanup.run,
            )
        )

    return runner


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start clients, tracing and periodic passes; stop them on exit."""
    settings = get_settings()
    setup_logging(settings, include_uvicorn=True)
    init_langfuse(settings.telemetry.langfuse)

    factory = await init_services(settings)
    runner = _build_job_runner(settings, factory)
    runner.start()
    app.state.job_runner = runner

    try:
        yield
    finally:
        await runner.stop()
        await shutdown_services()
        shutdown_langfuse()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    docs = settings.server.docs_enabled

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Conversational video memory - transcript search over video messages",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    # Last added runs outermost, so errors are rendered inside the request log
    app.middleware("http")(error_handler_middleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    prefix = settings.server.api_prefix
    app.include_router(health.router, tags=["Health"])
    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(query.router, prefix=prefix, tags=["Query"])
    app.include_router(maintenance.router, prefix=prefix, tags=["Maintenance"])

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the ``server`` settings."""
    import uvicorn

    server = get_settings().server
    uvicorn.run(
        "src.api.main:app",
        host=server.host,
        port=server.port,
        workers=server.workers,
        reload=server.reload,
        log_config=None,
    )


if __name__ == "__main__":
    run()
