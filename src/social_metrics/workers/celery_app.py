"""Celery application for the social metrics service.

Configures the broker, result backend, serialization, task routing, and
timezone.  All configuration values are sourced from ``Settings``.

Usage (starting the ingestion worker)::

    celery -A social_metrics.workers.celery_app worker -Q ingestion --concurrency=1 --loglevel=info

The ingestion queue must run with concurrency 1: provider quota locks are
process-local, so a single worker process is what keeps two jobs from
spending the same RapidAPI budget at the same time.

Usage (within application code)::

    from social_metrics.workers.tasks import parse_urls_job

    result = parse_urls_job.delay(spreadsheet_id, sheet_name, True)
"""

from __future__ import annotations

import logging

from celery import Celery
from celery.signals import worker_process_init
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env into os.environ before the settings are read.
load_dotenv()

from social_metrics.config.settings import get_settings  # noqa: E402

settings = get_settings()

INGESTION_QUEUE: str = "ingestion"

#: The global Celery application instance.
celery_app = Celery(
    "social_metrics",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["social_metrics.workers.tasks"],
)

celery_app.conf.update(
    # JSON keeps task arguments and results inspectable.
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.timezone_name,
    enable_utc=True,
    # Acknowledge after completion so a crashed worker's job is redelivered.
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # Keep results for 24 hours for status polling.
    result_expires=86_400,
    task_track_started=True,
    task_soft_time_limit=6 * 3_600,
    task_time_limit=7 * 3_600,
    task_default_queue=INGESTION_QUEUE,
    task_routes={
        "social_metrics.workers.tasks.*": {"queue": INGESTION_QUEUE},
    },
)


@worker_process_init.connect
def _configure_worker_logging(**kwargs: object) -> None:  # noqa: ARG001
    """Install structured logging in every forked worker process."""
    from social_metrics.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging(get_settings().log_level)
    _logger.info("celery: worker process initialised")
