"""Celery tasks running sheet-driven ingestion jobs.

Each task builds a fresh set of providers (so per-job caches and locks live
in the task's own event loop), runs the orchestrator through
``asyncio.run`` and returns a JSON-serializable summary.  The Celery result
is the job's result/error channel: callers may poll it through
``GET /api/jobs/{task_id}`` or ignore it.

Task naming::

    social_metrics.workers.tasks.<action>

Failed provider calls never fail a task (they become placeholder rows).  A
task fails only when its inputs cannot be read at all.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import structlog

from social_metrics.config.settings import Settings, get_settings
from social_metrics.core.exceptions import SinkError
from social_metrics.core.logging_config import job_id_var
from social_metrics.core.models import DEFAULT_ACCOUNT_COUNT, ParsingType
from social_metrics.pipeline.orchestrator import BatchOrchestrator
from social_metrics.pipeline.progress import ProgressTracker
from social_metrics.platforms.registry import build_providers
from social_metrics.sinks.base import ProgressStore, RowSink, UrlSource
from social_metrics.sinks.google_sheets import (
    SheetsProgressStore,
    SheetsRowSink,
    SheetsUrlSource,
)
from social_metrics.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

URL_JOB_PARSING_TYPES: tuple[ParsingType, ...] = (
    ParsingType.INSTAGRAM,
    ParsingType.VK,
    ParsingType.YOUTUBE,
    ParsingType.TIKTOK,
)
"""Platforms accepted from the item-URL column."""


# ---------------------------------------------------------------------------
# Job bodies (async, dependency-injectable)
# ---------------------------------------------------------------------------


async def run_url_job(
    spreadsheet_id: str,
    sheet_name: str,
    is_selected: bool,
    *,
    settings: Settings | None = None,
    source: UrlSource | None = None,
    sink: RowSink | None = None,
    store: ProgressStore | None = None,
) -> dict[str, Any]:
    """Read item URLs from the sheet, fetch their metrics and append the rows.

    Raises:
        SinkError: If the input sheet cannot be read.
    """
    settings = settings or get_settings()
    source = source or SheetsUrlSource(settings=settings)
    sink = sink or SheetsRowSink(settings=settings)
    store = store or SheetsProgressStore(settings=settings)

    urls = await asyncio.to_thread(
        source.find_urls, is_selected, URL_JOB_PARSING_TYPES, sheet_name, spreadsheet_id
    )
    if not urls:
        logger.warning("url job: no urls found", spreadsheet_id=spreadsheet_id, sheet_name=sheet_name)
        return {"status": "empty", "inputs": 0, "rows": 0, "placeholders": 0}

    logger.info("url job: urls found", count=len(urls), spreadsheet_id=spreadsheet_id)
    orchestrator = BatchOrchestrator(
        build_providers(settings),
        progress=ProgressTracker(store, spreadsheet_id),
        sink=sink,
        settings=settings,
        spreadsheet_id=spreadsheet_id,
    )
    rows = await orchestrator.run_urls(urls)
    return {
        "status": "completed",
        "inputs": len(urls),
        "rows": len(rows),
        "placeholders": sum(1 for row in rows if row.is_placeholder),
    }


async def run_account_job(
    spreadsheet_id: str,
    sheet_name: str,
    is_selected: bool,
    *,
    default_count: int = DEFAULT_ACCOUNT_COUNT,
    settings: Settings | None = None,
    source: UrlSource | None = None,
    sink: RowSink | None = None,
    store: ProgressStore | None = None,
) -> dict[str, Any]:
    """Read account URLs from the sheet and collect each account's content.

    Raises:
        SinkError: If the input sheet cannot be read.
    """
    settings = settings or get_settings()
    source = source or SheetsUrlSource(settings=settings)
    sink = sink or SheetsRowSink(settings=settings)
    store = store or SheetsProgressStore(settings=settings)

    accounts = await asyncio.to_thread(source.account_urls, is_selected, sheet_name, spreadsheet_id)
    if not accounts:
        logger.warning(
            "account job: no accounts found", spreadsheet_id=spreadsheet_id, sheet_name=sheet_name
        )
        return {"status": "empty", "inputs": 0, "rows": 0, "placeholders": 0}

    logger.info("account job: accounts found", count=len(accounts), spreadsheet_id=spreadsheet_id)
    orchestrator = BatchOrchestrator(
        build_providers(settings),
        progress=ProgressTracker(store, spreadsheet_id),
        sink=sink,
        settings=settings,
        spreadsheet_id=spreadsheet_id,
    )
    rows = await orchestrator.run_accounts(accounts, default_count=default_count)
    return {
        "status": "completed",
        "inputs": len(accounts),
        "rows": len(rows),
        "placeholders": sum(1 for row in rows if row.is_placeholder),
    }


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _run_job(task_id: str, name: str, coro_factory: Any) -> dict[str, Any]:
    token = job_id_var.set(task_id)
    started = time.monotonic()
    try:
        logger.info(f"{name}: started")
        try:
            summary = asyncio.run(coro_factory())
        except SinkError as exc:
            logger.error(f"{name}: cannot read inputs", error=str(exc), operation=exc.operation)
            raise
        summary["elapsed_seconds"] = round(time.monotonic() - started, 2)
        logger.info(f"{name}: finished", **summary)
        return summary
    finally:
        job_id_var.reset(token)


@celery_app.task(
    name="social_metrics.workers.tasks.parse_urls_job",
    bind=True,
    acks_late=True,
)
def parse_urls_job(
    self: Any,
    spreadsheet_id: str,
    sheet_name: str,
    is_selected: bool = True,
) -> dict[str, Any]:
    """Run an item-URL job for one sheet.

    Args:
        spreadsheet_id: Google spreadsheet id.
        sheet_name: Sheet holding the "video link" column.
        is_selected: Only process rows whose checkbox is ticked.

    Returns:
        Summary dict with ``status``, ``inputs``, ``rows``, ``placeholders``
        and ``elapsed_seconds``.

    Raises:
        SinkError: If the input sheet cannot be read.  Marks the task FAILED.
    """
    return _run_job(
        self.request.id or "",
        "url job",
        lambda: run_url_job(spreadsheet_id, sheet_name, is_selected),
    )


@celery_app.task(
    name="social_metrics.workers.tasks.parse_accounts_job",
    bind=True,
    acks_late=True,
)
def parse_accounts_job(
    self: Any,
    spreadsheet_id: str,
    sheet_name: str,
    is_selected: bool = True,
    default_count: int = DEFAULT_ACCOUNT_COUNT,
) -> dict[str, Any]:
    """Run an account job for one sheet.

    Args:
        spreadsheet_id: Google spreadsheet id.
        sheet_name: Sheet holding the "account link" column.
        is_selected: Only process rows whose checkbox is ticked.
        default_count: Depth for rows whose depth column is empty.

    Returns:
        Summary dict, as for :func:`parse_urls_job`.

    Raises:
        SinkError: If the input sheet cannot be read.  Marks the task FAILED.
    """
    return _run_job(
        self.request.id or "",
        "account job",
        lambda: run_account_job(
            spreadsheet_id, sheet_name, is_selected, default_count=default_count
        ),
    )
