"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from jobqueue import __version__
from jobqueue.api.middleware import create_metrics_middleware
from jobqueue.api.routes import health_router, jobs_router
from jobqueue.config import get_settings
from jobqueue.db import close_db, get_engine, init_db
from jobqueue.errors import JobQueueError
from jobqueue.observability.logging import setup_logging
from jobqueue.observability.metrics import setup_metrics
from jobqueue.observability.tracing import (
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_tracing,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # Startup
    setup_logging()
    setup_metrics()
    setup_tracing()
    await init_db()
    if settings.tracing_enabled:
        instrument_sqlalchemy(get_engine())

    logger.info(
        "Application started",
        extra={"host": settings.api_host, "port": settings.api_port},
    )

    yield

    # Shutdown
    await close_db()
    logger.info("Application shutdown")


async def job_queue_error_handler(request: Request, exc: JobQueueError) -> JSONResponse:
    """Map core errors to their HTTP status and a uniform body."""
    extra = {"error": exc.code, "detail": exc.message, "job_id": exc.job_id}
    if exc.http_status >= 500:
        logger.error("Request failed", extra=extra, exc_info=exc)
    else:
        logger.info("Request rejected", extra=extra)

    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The configured application instance.
    """
    app = FastAPI(
        title="Job Queue API",
        description="Job queue with an atomic claim protocol",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(JobQueueError, job_queue_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=create_metrics_middleware(),
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(jobs_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()

    uvicorn.run(
        "jobqueue.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    run()
