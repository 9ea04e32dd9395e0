"""Synchronous single-item lookups.

These bypass the queue and the spreadsheet: the caller gets the normalized
row(s) in the response body.  They share the server's quota locks, so a
lookup waits while another one is spending the same RapidAPI budget.

Routes:
    POST /api/parse/url       — metrics of one item URL
    POST /api/parse/account   — recent items of one account URL
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from social_metrics.api.dependencies import OrchestratorDep
from social_metrics.api.schemas import (
    ErrorResponse,
    ParseAccountRequest,
    ParseAccountResponse,
    ParseUrlRequest,
    ParseUrlResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/parse", tags=["parse"])


@router.post("/url", response_model=ParseUrlResponse, responses={400: {"model": ErrorResponse}})
async def parse_url(body: ParseUrlRequest, orchestrator: OrchestratorDep) -> ParseUrlResponse:
    """Fetch one item.  A failed fetch still answers 200 with a placeholder row.

    Unsupported URLs raise ``ClassificationError``, rendered as HTTP 400 by
    the application's exception handler.
    """
    row = await orchestrator.parse_single_url(body.url)
    message = "Не удалось получить данные" if row.is_placeholder else "ok"
    logger.info("parse: url done", url=body.url, placeholder=row.is_placeholder)
    return ParseUrlResponse(success=not row.is_placeholder, message=message, data=row)


@router.post(
    "/account", response_model=ParseAccountResponse, responses={400: {"model": ErrorResponse}}
)
async def parse_account(
    body: ParseAccountRequest, orchestrator: OrchestratorDep
) -> ParseAccountResponse:
    """Collect the most recent items of one account."""
    rows = await orchestrator.parse_single_account(body.url, count=body.count)
    logger.info("parse: account done", url=body.url, rows=len(rows))
    return ParseAccountResponse(data=rows)
