"""Request and response bodies of the HTTP API.

Every response carries ``success`` and ``message`` so that spreadsheet
scripts calling the API can show a one-line status to the user.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from social_metrics.core.models import DEFAULT_ACCOUNT_COUNT, ResultRow


class JobRequest(BaseModel):
    """Sheet-driven job parameters."""

    spreadsheet_id: str = Field(min_length=1)
    sheet_name: str = Field(min_length=1)
    is_selected: bool = True
    """Only process rows whose "парсинг" checkbox is ticked."""


class AccountJobRequest(JobRequest):
    default_count: int = Field(default=DEFAULT_ACCOUNT_COUNT, ge=1)


class JobAccepted(BaseModel):
    success: bool = True
    message: str
    task_id: str


class JobStatus(BaseModel):
    task_id: str
    state: str
    ready: bool
    result: dict[str, Any] | None = None
    error: str | None = None


class ParseUrlRequest(BaseModel):
    url: str = Field(min_length=1)


class ParseAccountRequest(BaseModel):
    url: str = Field(min_length=1)
    count: int = Field(default=0, ge=0)
    """Requested depth; ``0`` uses the single-lookup default."""


class ParseUrlResponse(BaseModel):
    success: bool = True
    message: str = "ok"
    data: ResultRow


class ParseAccountResponse(BaseModel):
    success: bool = True
    message: str = "ok"
    data: list[ResultRow]


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
