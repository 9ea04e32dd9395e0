"""Google Sheets implementations of the URL source, row sink and progress store.

Input sheets follow a fixed layout: row 2 holds the column headers and data
starts on row 3.  Columns are found by header text, case-insensitively:

- the URL column header contains ``"ссылка"`` plus a kind word
  (``"видео"`` for item URLs, ``"аккаунт"`` for account URLs);
- the optional checkbox column header contains ``"парсинг"``;
- the optional depth column header contains ``"глубина"``.

The progress sheet has a fixed header on row 1 and one data row (row 2)
that every job overwrites.

All Google API failures are re-raised as
:class:`~social_metrics.core.exceptions.SinkError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from social_metrics.config.settings import Settings, get_settings
from social_metrics.core.classifier import is_available_by_parsing_type
from social_metrics.core.exceptions import SinkError
from social_metrics.core.models import ParsingType, UrlInfo
from social_metrics.core.normalizer import reference_zone, to_int

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Layout constants
# ---------------------------------------------------------------------------

SHEETS_SCOPES: list[str] = ["https://www.googleapis.com/auth/spreadsheets"]

HEADER_ROW: int = 2
FIRST_DATA_ROW: int = 3

URL_HEADER_WORD: str = "ссылка"
VIDEO_KIND_WORD: str = "видео"
ACCOUNT_KIND_WORD: str = "аккаунт"
CHECKBOX_HEADER_WORD: str = "парсинг"
COUNT_HEADER_WORD: str = "глубина"

PROGRESS_HEADERS: list[str] = ["Начало парсинга", "Всего ссылок", "Обработано", "Конец парсинга"]
PROGRESS_HEADER_ROW: int = 1
PROGRESS_DATA_ROW: int = 2
PROGRESS_TIME_FORMAT: str = "%Y-%m-%d %H:%M:%S"

_TRUE_VALUES = frozenset({"true", "истина", "да", "yes", "1", "✓", "✔", "☑"})
_FALSE_VALUES = frozenset({"false", "ложь", "нет", "no", "0", "", "✗", "✘", "☐"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_sheets_service(credentials_file: str) -> Any:
    """Build an authorized Sheets v4 service from a service-account JSON file.

    Raises:
        SinkError: If the credentials file is missing or invalid.
    """
    try:
        credentials = service_account.Credentials.from_service_account_file(
            credentials_file, scopes=SHEETS_SCOPES
        )
    except (OSError, ValueError, GoogleAuthError) as exc:
        raise SinkError(
            f"cannot load Google credentials from {credentials_file!r}: {exc}",
            operation="authorize",
        ) from exc
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def column_letter(index: int) -> str:
    """Convert a 1-based column number to its A1 letter (``1 -> "A"``, ``27 -> "AA"``)."""
    if index <= 0:
        return ""
    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def parse_checkbox(value: Any) -> bool | None:
    """Interpret a checkbox cell.

    Returns:
        ``True``/``False`` for recognised values (booleans, ``1``/``0``,
        common Russian and English words, check marks), ``None`` for
        anything else.  Empty cells count as unchecked.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
    return None


@dataclass(frozen=True)
class ColumnPositions:
    """0-based positions of the columns found in the header row."""

    url: int
    checkbox: int | None = None
    count: int | None = None

    @property
    def last(self) -> int:
        return max(i for i in (self.url, self.checkbox, self.count) if i is not None)


def find_columns(header: list[Any], kind_word: str) -> ColumnPositions:
    """Locate the URL, checkbox and depth columns in a header row.

    Raises:
        SinkError: If no URL column for *kind_word* is present.
    """
    url_index: int | None = None
    checkbox_index: int | None = None
    count_index: int | None = None
    for index, cell in enumerate(header):
        if not isinstance(cell, str):
            continue
        text = cell.strip().lower()
        if url_index is None and URL_HEADER_WORD in text and kind_word in text:
            url_index = index
        elif checkbox_index is None and CHECKBOX_HEADER_WORD in text:
            checkbox_index = index
        elif count_index is None and COUNT_HEADER_WORD in text:
            count_index = index
    if url_index is None:
        raise SinkError(
            f"no '{URL_HEADER_WORD} ... {kind_word}' column in header row",
            operation="find_columns",
        )
    return ColumnPositions(url=url_index, checkbox=checkbox_index, count=count_index)


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class _SheetsAdapter:
    """Shared lazily-built Sheets service and error mapping."""

    def __init__(self, service: Any | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._service = service

    @property
    def service(self) -> Any:
        if self._service is None:
            self._service = build_sheets_service(self.settings.google_credentials_file)
        return self._service

    def _execute(self, request: Any, operation: str) -> Any:
        try:
            return request.execute()
        except HttpError as exc:
            raise SinkError(
                f"Google Sheets {operation} failed: HTTP {exc.resp.status}",
                operation=operation,
            ) from exc
        except (OSError, httplib2.HttpLib2Error, GoogleAuthError) as exc:
            raise SinkError(f"Google Sheets {operation} failed: {exc}", operation=operation) from exc

    def _get_values(self, spreadsheet_id: str, range_spec: str) -> list[list[Any]]:
        request = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=spreadsheet_id, range=range_spec, valueRenderOption="UNFORMATTED_VALUE")
        )
        response = self._execute(request, "read_values")
        return response.get("values", [])

    def _update_values(self, spreadsheet_id: str, range_spec: str, values: list[list[Any]], operation: str) -> None:
        request = (
            self.service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=range_spec,
                valueInputOption="RAW",
                body={"values": values},
            )
        )
        self._execute(request, operation)


class SheetsUrlSource(_SheetsAdapter):
    """Reads item and account URLs from an input sheet."""

    def find_urls(
        self,
        is_selected: bool,
        parsing_types: list[ParsingType] | tuple[ParsingType, ...],
        sheet_name: str,
        spreadsheet_id: str,
    ) -> list[UrlInfo]:
        infos = self._read_urls(spreadsheet_id, sheet_name, VIDEO_KIND_WORD, is_selected)
        selected = [info for info in infos if is_available_by_parsing_type(info.url, parsing_types)]
        logger.info(
            "sheets: found %d item urls in %s (%d before platform filter)",
            len(selected),
            sheet_name,
            len(infos),
        )
        return selected

    def account_urls(
        self,
        is_selected: bool,
        sheet_name: str,
        spreadsheet_id: str,
    ) -> list[UrlInfo]:
        infos = self._read_urls(spreadsheet_id, sheet_name, ACCOUNT_KIND_WORD, is_selected)
        logger.info("sheets: found %d account urls in %s", len(infos), sheet_name)
        return infos

    def _read_urls(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        kind_word: str,
        is_selected: bool,
    ) -> list[UrlInfo]:
        header_rows = self._get_values(spreadsheet_id, f"{sheet_name}!{HEADER_ROW}:{HEADER_ROW}")
        if not header_rows:
            raise SinkError(f"header row {HEADER_ROW} of {sheet_name!r} is empty", operation="find_columns")
        positions = find_columns(header_rows[0], kind_word)
        checkbox = positions.checkbox if is_selected else None

        last_letter = column_letter(positions.last + 1)
        rows = self._get_values(spreadsheet_id, f"{sheet_name}!A{FIRST_DATA_ROW}:{last_letter}")

        infos: list[UrlInfo] = []
        for offset, row in enumerate(rows):
            row_number = FIRST_DATA_ROW + offset
            if positions.url >= len(row):
                continue
            url = row[positions.url]
            if not isinstance(url, str) or not url.strip():
                continue
            if checkbox is not None:
                checked = parse_checkbox(row[checkbox] if checkbox < len(row) else None)
                if checked is None:
                    logger.info("sheets: row %d has an invalid checkbox value, skipping", row_number)
                    continue
                if not checked:
                    continue
            count = 0
            if positions.count is not None and positions.count < len(row):
                count = to_int(row[positions.count])
            infos.append(UrlInfo(url=url.strip(), count=count))
        return infos


class SheetsRowSink(_SheetsAdapter):
    """Appends result rows with ``values.append``."""

    def insert_data(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        range_spec: str,
        rows: list[list[Any]],
    ) -> None:
        if not rows:
            return
        request = (
            self.service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=f"{sheet_name}!{range_spec}",
                valueInputOption="USER_ENTERED",
                body={"values": rows},
            )
        )
        self._execute(request, "insert_data")
        logger.info("sheets: appended %d rows to %s!%s", len(rows), sheet_name, range_spec)


class SheetsProgressStore(_SheetsAdapter):
    """Keeps the progress record on a dedicated sheet."""

    @property
    def sheet_name(self) -> str:
        return self.settings.progress_sheet_name

    def _now(self) -> str:
        return datetime.now(tz=reference_zone()).strftime(PROGRESS_TIME_FORMAT)

    def ensure_progress_sheet(self, spreadsheet_id: str) -> None:
        spreadsheet = self._execute(
            self.service.spreadsheets().get(spreadsheetId=spreadsheet_id), "ensure_progress_sheet"
        )
        titles = {sheet["properties"]["title"] for sheet in spreadsheet.get("sheets", [])}
        if self.sheet_name in titles:
            return

        body = {"requests": [{"addSheet": {"properties": {"title": self.sheet_name}}}]}
        self._execute(
            self.service.spreadsheets().batchUpdate(spreadsheetId=spreadsheet_id, body=body),
            "ensure_progress_sheet",
        )
        self._update_values(
            spreadsheet_id,
            f"{self.sheet_name}!A{PROGRESS_HEADER_ROW}:D{PROGRESS_HEADER_ROW}",
            [PROGRESS_HEADERS],
            "ensure_progress_sheet",
        )
        logger.info("sheets: created progress sheet %r", self.sheet_name)

    def start_parsing(self, spreadsheet_id: str, total: int) -> int:
        self._update_values(
            spreadsheet_id,
            f"{self.sheet_name}!A{PROGRESS_DATA_ROW}:D{PROGRESS_DATA_ROW}",
            [[self._now(), total, 0, ""]],
            "start_parsing",
        )
        return PROGRESS_DATA_ROW

    def update_progress(self, spreadsheet_id: str, row: int, processed: int) -> None:
        self._update_values(spreadsheet_id, f"{self.sheet_name}!C{row}", [[processed]], "update_progress")

    def finish_parsing(self, spreadsheet_id: str, row: int) -> None:
        self._update_values(spreadsheet_id, f"{self.sheet_name}!D{row}", [[self._now()]], "finish_parsing")
