"""Sheet-driven job routes.

Jobs are queued on the ingestion Celery queue and return immediately; the
task id can be polled for the job summary.

Routes:
    POST /api/jobs/urls            — queue an item-URL job
    POST /api/jobs/accounts        — queue an account job
    GET  /api/jobs/{task_id}       — job state and summary
"""

from __future__ import annotations

import structlog
from celery.result import AsyncResult
from fastapi import APIRouter, status

from social_metrics.api.schemas import AccountJobRequest, JobAccepted, JobRequest, JobStatus
from social_metrics.workers.celery_app import celery_app
from social_metrics.workers.tasks import parse_accounts_job, parse_urls_job

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("/urls", response_model=JobAccepted, status_code=status.HTTP_202_ACCEPTED)
async def submit_url_job(body: JobRequest) -> JobAccepted:
    """Queue a job reading item URLs from ``body.sheet_name``."""
    result = parse_urls_job.delay(body.spreadsheet_id, body.sheet_name, body.is_selected)
    logger.info(
        "jobs: url job queued",
        task_id=result.id,
        spreadsheet_id=body.spreadsheet_id,
        sheet_name=body.sheet_name,
    )
    return JobAccepted(message="Парсинг запущен", task_id=result.id)


@router.post("/accounts", response_model=JobAccepted, status_code=status.HTTP_202_ACCEPTED)
async def submit_account_job(body: AccountJobRequest) -> JobAccepted:
    """Queue a job reading account URLs from ``body.sheet_name``."""
    result = parse_accounts_job.delay(
        body.spreadsheet_id, body.sheet_name, body.is_selected, body.default_count
    )
    logger.info(
        "jobs: account job queued",
        task_id=result.id,
        spreadsheet_id=body.spreadsheet_id,
        sheet_name=body.sheet_name,
    )
    return JobAccepted(message="Парсинг аккаунтов запущен", task_id=result.id)


@router.get("/{task_id}", response_model=JobStatus)
async def job_status(task_id: str) -> JobStatus:
    """Report a queued job's state.

    Unknown ids report ``PENDING``, as Celery cannot tell them apart from
    jobs that have not started yet.
    """
    result = AsyncResult(task_id, app=celery_app)
    state = result.state
    job = JobStatus(task_id=task_id, state=state, ready=result.ready())
    if state == "SUCCESS" and isinstance(result.result, dict):
        job.result = result.result
    elif state == "FAILURE":
        job.error = str(result.result)
    return job
