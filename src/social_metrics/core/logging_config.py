"""Process-wide log setup for the API and the Celery worker.

Both stdlib loggers (platforms, pipeline, sinks) and structlog loggers
(api, workers) end up in one stdout handler that writes a JSON document per
record.  Records emitted while a job or request is running carry its
``job_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

job_id_var: ContextVar[str | None] = ContextVar("job_id", default=None)
"""Celery task id of the running job, or the id of the HTTP request."""

_SECRET_KEY_PARTS: tuple[str, ...] = ("key", "token", "secret", "credential", "authorization")
"""Event keys containing any of these (case-insensitive) are redacted."""

_REDACTED = "[REDACTED]"

_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access", "googleapiclient.discovery_cache")


def _is_secret(key: object) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in _SECRET_KEY_PARTS)


def _redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:  # noqa: ARG001
    """Blank out API keys and tokens, including inside a ``headers`` dict."""
    for key, value in list(event_dict.items()):
        if _is_secret(key):
            event_dict[key] = _REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {k: _REDACTED if _is_secret(k) else v for k, v in value.items()}
    return event_dict


def _inject_job_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:  # noqa: ARG001
    job_id = job_id_var.get()
    if job_id is not None:
        event_dict.setdefault("job_id", job_id)
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route all logging to stdout through structlog.

    ``DEBUG`` switches to the human-readable console renderer and keeps HTTP
    client chatter; any other level writes JSON.  Safe to call repeatedly.

    Args:
        log_level: Level name, case-insensitive.  Unknown names mean INFO.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_job_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=False)
        if debug
        else structlog.processors.JSONRenderer(ensure_ascii=False)
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
