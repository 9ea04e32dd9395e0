"""Tests for the shared account pagination walker.

Covers:
- stops once the target count is reached, truncating the last page
- stops on an empty page, a missing cursor or ``has_more=False``
- sleeps the page delay only between two fetched pages
- a failing page yields the partial rows plus one placeholder and a
  PaginationError carrying the collected count
- a non-positive target issues no request
- the remaining row count is passed to every page fetch as its limit
- the walk never makes more than ceil(target / page_size) + 1 fetches
"""

from __future__ import annotations

import math
from typing import Any

import pytest

from social_metrics.core.exceptions import FetchError, PaginationError, ProviderConfigurationError
from social_metrics.core.models import ResultRow
from social_metrics.platforms.base import AccountPage
from social_metrics.platforms.pagination import walk_account_pages

ACCOUNT_URL = "https://vk.com/somegroup"


def _rows(start: int, count: int) -> list[ResultRow]:
    return [ResultRow(url=f"https://vk.com/clip-1_{i}") for i in range(start, start + count)]


class _FakePages:
    """Serves a scripted list of pages (or exceptions) and records cursors."""

    def __init__(self, pages: list[Any]) -> None:
        self._pages = list(pages)
        self.cursors: list[str] = []
        self.limits: list[int | None] = []

    async def __call__(self, account_id: str, cursor: str, limit: int | None = None) -> AccountPage:
        self.cursors.append(cursor)
        self.limits.append(limit)
        page = self._pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


class _EndlessPages:
    """Serves full pages forever and counts the fetches."""

    def __init__(self, page_size: int) -> None:
        self.page_size = page_size
        self.calls = 0

    async def __call__(self, account_id: str, cursor: str, limit: int | None = None) -> AccountPage:
        start = self.calls * self.page_size
        self.calls += 1
        return AccountPage(items=_rows(start, self.page_size), next_cursor=f"c{self.calls}", has_more=True)


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


async def _walk(pages: _FakePages, target: int, sleep: _RecordingSleep | None = None):  # type: ignore[no-untyped-def]
    return await walk_account_pages(
        pages,
        "-1",
        target,
        placeholder_url=ACCOUNT_URL,
        page_delay=0.5,
        account_url=ACCOUNT_URL,
        sleep=sleep or _RecordingSleep(),
    )


class TestWalkAccountPages:
    @pytest.mark.asyncio
    async def test_stops_at_target_mid_page(self) -> None:
        pages = _FakePages(
            [
                AccountPage(items=_rows(0, 10), next_cursor="c1", has_more=True),
                AccountPage(items=_rows(10, 10), next_cursor="c2", has_more=True),
            ]
        )

        rows, error = await _walk(pages, 15)

        assert error is None
        assert len(rows) == 15
        assert rows[-1].url == "https://vk.com/clip-1_14"
        assert pages.cursors == ["", "c1"]

    @pytest.mark.asyncio
    async def test_stops_at_exact_target_without_sleeping(self) -> None:
        sleep = _RecordingSleep()
        pages = _FakePages([AccountPage(items=_rows(0, 10), next_cursor="c1", has_more=True)])

        rows, error = await _walk(pages, 10, sleep)

        assert error is None
        assert len(rows) == 10
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_sleeps_between_pages(self) -> None:
        sleep = _RecordingSleep()
        pages = _FakePages(
            [
                AccountPage(items=_rows(0, 2), next_cursor="c1", has_more=True),
                AccountPage(items=_rows(2, 2), next_cursor="c2", has_more=True),
                AccountPage(items=_rows(4, 2), next_cursor="", has_more=False),
            ]
        )

        rows, _ = await _walk(pages, 100, sleep)

        assert len(rows) == 6
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self) -> None:
        pages = _FakePages(
            [
                AccountPage(items=_rows(0, 3), next_cursor="c1", has_more=True),
                AccountPage(items=[], next_cursor="c2", has_more=True),
            ]
        )

        rows, error = await _walk(pages, 100)

        assert error is None
        assert len(rows) == 3
        assert pages.cursors == ["", "c1"]

    @pytest.mark.asyncio
    async def test_stops_without_cursor(self) -> None:
        pages = _FakePages([AccountPage(items=_rows(0, 3), next_cursor="", has_more=True)])

        rows, error = await _walk(pages, 100)

        assert error is None
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_stops_when_has_more_is_false(self) -> None:
        pages = _FakePages([AccountPage(items=_rows(0, 3), next_cursor="c1", has_more=False)])

        rows, error = await _walk(pages, 100)

        assert error is None
        assert len(rows) == 3
        assert pages.cursors == [""]

    @pytest.mark.asyncio
    async def test_failed_page_returns_partial_rows_and_placeholder(self) -> None:
        cause = FetchError("HTTP 500", platform="vk", status_code=500)
        pages = _FakePages(
            [
                AccountPage(items=_rows(0, 10), next_cursor="c1", has_more=True),
                cause,
            ]
        )

        rows, error = await _walk(pages, 30)

        assert len(rows) == 11
        assert rows[-1].is_placeholder
        assert rows[-1].url == ACCOUNT_URL
        assert rows[-1].account_url == ACCOUNT_URL
        assert isinstance(error, PaginationError)
        assert error.collected_count == 10
        assert error.platform == "vk"
        assert error.__cause__ is cause

    @pytest.mark.asyncio
    async def test_configuration_error_on_first_page(self) -> None:
        pages = _FakePages([ProviderConfigurationError("vk", "rapidapi_key")])

        rows, error = await _walk(pages, 10)

        assert len(rows) == 1
        assert rows[0].is_placeholder
        assert isinstance(error, PaginationError)
        assert error.collected_count == 0

    @pytest.mark.asyncio
    async def test_non_positive_target_issues_no_request(self) -> None:
        pages = _FakePages([])

        rows, error = await _walk(pages, 0)

        assert rows == []
        assert error is None
        assert pages.cursors == []

    @pytest.mark.asyncio
    async def test_passes_remaining_count_as_limit(self) -> None:
        pages = _FakePages(
            [
                AccountPage(items=_rows(0, 10), next_cursor="c1", has_more=True),
                AccountPage(items=_rows(10, 10), next_cursor="c2", has_more=True),
                AccountPage(items=_rows(20, 10), next_cursor="c3", has_more=True),
            ]
        )

        rows, _ = await _walk(pages, 25)

        assert len(rows) == 25
        assert pages.limits == [25, 15, 5]


class TestWalkIterationBound:
    @pytest.mark.parametrize(
        ("target", "page_size"),
        [(1, 10), (10, 10), (12, 12), (25, 10), (50, 3), (100, 50)],
    )
    @pytest.mark.asyncio
    async def test_fetches_are_bounded_by_target_over_page_size(self, target: int, page_size: int) -> None:
        pages = _EndlessPages(page_size)

        rows, error = await _walk(pages, target)  # type: ignore[arg-type]

        assert error is None
        assert len(rows) == target
        assert pages.calls <= math.ceil(target / page_size) + 1
