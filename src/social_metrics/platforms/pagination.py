"""Shared cursor-walking algorithm used by every provider's account collection.

The walk stops as soon as one of the following holds:

- ``target_count`` rows have been collected;
- the provider returns an empty page;
- the provider returns no next cursor, or ``has_more`` is false;
- a page fetch fails, in which case the rows collected so far are returned
  together with one placeholder row and the error.

Each iteration either makes progress towards the target or terminates, so the
loop runs at most ``ceil(target_count / page_size) + 1`` times.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from social_metrics.core.exceptions import (
    FetchError,
    PaginationError,
    ProviderConfigurationError,
)
from social_metrics.core.models import ResultRow

if TYPE_CHECKING:
    from social_metrics.platforms.base import AccountPage

logger = logging.getLogger(__name__)

FetchPage = Callable[..., Awaitable["AccountPage"]]
SleepFn = Callable[[float], Awaitable[None]]


async def walk_account_pages(
    fetch_page: FetchPage,
    account_id: str,
    target_count: int,
    *,
    placeholder_url: str,
    page_delay: float,
    account_url: str = "",
    sleep: SleepFn = asyncio.sleep,
) -> tuple[list[ResultRow], PaginationError | None]:
    """Walk an account's pages until the target, end-of-data or an error.

    Args:
        fetch_page: Coroutine ``(account_id, cursor, *, limit) -> AccountPage``;
            *limit* is the number of rows still wanted.
        account_id: Resolved account identifier passed to *fetch_page*.
        target_count: Number of rows wanted.  Non-positive values collect
            nothing and issue no request.
        placeholder_url: URL stamped on the placeholder row appended when a
            page fetch fails.
        page_delay: Fixed sleep between two consecutive page fetches.
        account_url: Account URL stamped on the placeholder row.
        sleep: Sleep coroutine, injectable for tests.

    Returns:
        ``(rows, error)``.  ``error`` is ``None`` on a clean walk; otherwise a
        :class:`PaginationError` recording how many rows were collected
        before the failing page, and ``rows`` ends with one placeholder.
    """
    collected: list[ResultRow] = []
    cursor = ""
    pages = 0

    while len(collected) < target_count:
        try:
            page = await fetch_page(account_id, cursor, limit=target_count - len(collected))
        except (FetchError, ProviderConfigurationError) as exc:
            error = PaginationError(
                f"page {pages + 1} failed for {account_id}: {exc}",
                collected_count=len(collected),
                platform=getattr(exc, "platform", None),
                identifier=account_id,
            )
            error.__cause__ = exc
            collected.append(ResultRow.placeholder(placeholder_url, account_url))
            return collected, error
        pages += 1

        if not page.items:
            break

        for item in page.items:
            if len(collected) >= target_count:
                break
            collected.append(item)

        cursor = page.next_cursor
        if not cursor or not page.has_more:
            break
        if len(collected) >= target_count:
            break

        await sleep(page_delay)

    logger.debug(
        "pagination: %s walked %d page(s), %d/%d rows",
        account_id,
        pages,
        len(collected),
        target_count,
    )
    return collected, None
