"""Health check route handlers.

``GET /api/health``
    Liveness check: pings the Celery broker (Redis), asks the ingestion
    workers for a pong and reports every registered provider's configuration
    status.  Always returns HTTP 200; the ``status`` field distinguishes
    ``"ok"`` from ``"degraded"``.

This endpoint is diagnostic and must never raise HTTP 5xx errors.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from social_metrics import __version__
from social_metrics.config.settings import get_settings
from social_metrics.platforms.registry import build_providers, list_providers

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


# ---------------------------------------------------------------------------
# Helper: Redis check
# ---------------------------------------------------------------------------


async def _check_redis() -> str:
    """Send ``PING`` to the Celery broker.

    Returns:
        ``"ok"`` if Redis responds, ``"error"`` otherwise.
    """
    settings = get_settings()
    try:
        client: aioredis.Redis = aioredis.from_url(
            settings.celery_broker_url,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        await client.ping()
        await client.aclose()
        return "ok"
    except Exception:
        logger.exception("Health check: Redis unreachable")
        return "error"


# ---------------------------------------------------------------------------
# Helper: Celery worker check
# ---------------------------------------------------------------------------


async def _check_celery_workers() -> str:
    """Check if any ingestion worker is responding.

    Returns:
        ``"ok"`` if at least one worker responds, ``"no_workers"`` if none
        respond, or ``"error"`` if the broker connection fails.
    """
    try:
        from social_metrics.workers.celery_app import celery_app  # noqa: PLC0415

        loop = asyncio.get_running_loop()
        inspect = celery_app.control.inspect(timeout=2.0)
        ping_result = await loop.run_in_executor(None, inspect.ping)
        if ping_result:
            return "ok"
        return "no_workers"
    except Exception:
        logger.exception("Health check: Celery inspect failed")
        return "error"


# ---------------------------------------------------------------------------
# Helper: provider configuration
# ---------------------------------------------------------------------------


async def _check_providers() -> list[dict[str, Any]]:
    providers = build_providers(get_settings())
    descriptions = {info["parsing_type"]: info["description"] for info in list_providers()}
    results: list[dict[str, Any]] = []
    for parsing_type, provider in sorted(providers.items(), key=lambda item: item[0].value):
        report = await provider.health_check()
        report["description"] = descriptions.get(parsing_type.value, "")
        results.append(report)
    return results


# ---------------------------------------------------------------------------
# GET /api/health
# ---------------------------------------------------------------------------


@router.get("/api/health")
async def system_health() -> JSONResponse:
    """Return process-level health.

    The status is ``"degraded"`` when the broker is unreachable, when no
    worker answers, or when a provider is missing its credentials.

    Returns:
        JSON with keys: ``status``, ``version``, ``redis``, ``celery``,
        ``providers``, ``timestamp``.
    """
    redis_status, celery_status = await asyncio.gather(
        _check_redis(),
        _check_celery_workers(),
    )
    providers = await _check_providers()

    all_ok = (
        redis_status == "ok"
        and celery_status == "ok"
        and all(report["status"] == "ok" for report in providers)
    )
    payload = {
        "status": "ok" if all_ok else "degraded",
        "version": __version__,
        "redis": redis_status,
        "celery": celery_status,
        "providers": providers,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200)
