"""FastAPI dependency providers.

The quota locks and the job lock live on ``app.state`` so that every
request-scoped orchestrator running in the server's event loop shares them:
two concurrent single lookups never spend the same RapidAPI budget at once.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from social_metrics.config.settings import Settings, get_settings
from social_metrics.pipeline.orchestrator import BatchOrchestrator
from social_metrics.platforms.registry import build_providers


def get_app_settings() -> Settings:
    return get_settings()


def get_orchestrator(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> BatchOrchestrator:
    """Build an orchestrator bound to the application's shared locks."""
    state = request.app.state
    providers = build_providers(settings, locks=state.quota_locks)
    return BatchOrchestrator(providers, settings=settings, job_lock=state.job_lock)


OrchestratorDep = Annotated[BatchOrchestrator, Depends(get_orchestrator)]
