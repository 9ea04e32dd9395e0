"""Interfaces the ingestion pipeline needs from its tabular backend.

The orchestrator and progress tracker depend only on these protocols; the
Google Sheets adapters in :mod:`social_metrics.sinks.google_sheets` are the
production implementation.  All methods are synchronous and are run in a
worker thread by the async callers.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from social_metrics.core.models import ParsingType, UrlInfo


@runtime_checkable
class UrlSource(Protocol):
    """Reads job inputs from a sheet."""

    def find_urls(
        self,
        is_selected: bool,
        parsing_types: Sequence[ParsingType],
        sheet_name: str,
        spreadsheet_id: str,
    ) -> list[UrlInfo]:
        """Return item URLs (the "video link" column) for the given platforms.

        When *is_selected* is true only rows whose checkbox column is ticked
        are returned.

        Raises:
            SinkError: If the sheet or its URL column cannot be read.
        """
        ...

    def account_urls(
        self,
        is_selected: bool,
        sheet_name: str,
        spreadsheet_id: str,
    ) -> list[UrlInfo]:
        """Return account URLs (the "account link" column) with their depth.

        Raises:
            SinkError: If the sheet or its URL column cannot be read.
        """
        ...


@runtime_checkable
class RowSink(Protocol):
    """Bulk-appends rows to a named sheet range."""

    def insert_data(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        range_spec: str,
        rows: list[list[Any]],
    ) -> None:
        """Append *rows* below the existing data in ``sheet_name!range_spec``.

        Raises:
            SinkError: If the append is rejected.
        """
        ...


@runtime_checkable
class ProgressStore(Protocol):
    """Persists the one-row progress record of a job."""

    def ensure_progress_sheet(self, spreadsheet_id: str) -> None: ...

    def start_parsing(self, spreadsheet_id: str, total: int) -> int:
        """Write ``[start_time, total, 0, ""]`` and return the row number used."""
        ...

    def update_progress(self, spreadsheet_id: str, row: int, processed: int) -> None: ...

    def finish_parsing(self, spreadsheet_id: str, row: int) -> None: ...
