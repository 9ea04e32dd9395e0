"""FastAPI application factory and entry point.

Creates the application instance, registers the request logging middleware
and the error handlers, and mounts the route routers.

Usage::

    # Development server (from project root)
    uvicorn social_metrics.api.main:app --reload

    # Production: a single process, since quota locks are process-local
    uvicorn social_metrics.api.main:app --host 0.0.0.0 --port 8000 --workers 1
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from social_metrics import __version__
from social_metrics.config.settings import get_settings
from social_metrics.api.schemas import ErrorResponse
from social_metrics.core.exceptions import ClassificationError
from social_metrics.core.logging_config import configure_logging, job_id_var

# ---------------------------------------------------------------------------
# Logging configuration: applied once at module import time so that log
# records emitted during app construction are captured correctly.
# The log level is re-applied inside create_app() after settings are loaded.
# ---------------------------------------------------------------------------

configure_logging("INFO")

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Collects engagement metrics of short-form videos from Instagram, "
            "VK, YouTube and TikTok into Google Sheets."
        ),
        version=__version__,
        debug=settings.debug,
        redirect_slashes=False,
    )

    # Shared by every request-scoped orchestrator in this process.
    application.state.quota_locks = {}
    application.state.job_lock = asyncio.Lock()

    # ---- Request logging middleware ----------------------------------------

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration.

        Binds a fresh ``request_id`` to the structlog context and to the job
        ContextVar so that provider log lines can be correlated.
        """
        request_id = str(uuid.uuid4())
        job_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn("request_complete", status_code=status_code, elapsed_ms=elapsed_ms)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Error handlers ----------------------------------------------------

    @application.exception_handler(ClassificationError)
    async def classification_error_handler(
        request: Request, exc: ClassificationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(message=str(exc)).model_dump(),
        )

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Flatten pydantic errors into the ``{success, message}`` envelope."""
        messages = [
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(message="; ".join(messages)).model_dump(),
        )

    # ---- Routers -----------------------------------------------------------

    from social_metrics.api.routes import health, jobs, parse  # noqa: PLC0415

    application.include_router(health.router)
    application.include_router(jobs.router)
    application.include_router(parse.router)

    # ---- Lifecycle events -------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("application_shutdown")

    @application.get("/health", tags=["system"])
    async def health_probe() -> JSONResponse:
        """Minimal liveness probe without I/O.  Deep checks live at ``/api/health``."""
        return JSONResponse({"status": "ok"})

    return application


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

app = create_app()
"""The FastAPI application instance passed to Uvicorn."""
