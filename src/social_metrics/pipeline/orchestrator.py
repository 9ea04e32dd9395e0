"""Batch orchestration of ingestion jobs.

A URL job splits its inputs into contiguous batches, dispatches every URL to
the provider registered for its platform, and reports the cumulative number
of processed inputs after each batch.  An account job does the same per
account and appends each account's rows to the sink as soon as they are
collected.

Failure policy:

- unsupported or unclassifiable inputs are skipped with a warning;
- a failed provider call becomes a placeholder row, so a batch of ``n``
  supported inputs always yields ``n`` rows;
- sink and progress failures are logged and never abort the job.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from typing import TypeVar

from social_metrics.config.settings import Settings, get_settings
from social_metrics.core.classifier import classify, parsing_type_by_url
from social_metrics.core.exceptions import (
    ClassificationError,
    FetchError,
    ProviderConfigurationError,
    SinkError,
)
from social_metrics.core.models import (
    DEFAULT_ACCOUNT_COUNT,
    DEFAULT_SINGLE_ACCOUNT_COUNT,
    AccountInfo,
    ParsingType,
    ResultRow,
    UrlInfo,
    clamp_count,
)
from social_metrics.pipeline.progress import ProgressTracker
from social_metrics.platforms.base import PlatformProvider
from social_metrics.sinks.base import RowSink

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATA_RANGE: str = "A:J"
"""Append range for URL-job rows (10 columns)."""

ACCOUNT_RANGE: str = "A:K"
"""Append range for account-job rows (account URL + 10 columns)."""


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield contiguous batches of *size* items, preserving order.

    A non-positive *size* yields all items as a single batch.  An empty
    input yields nothing.
    """
    if not items:
        return
    if size <= 0:
        yield list(items)
        return
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class BatchOrchestrator:
    """Runs URL and account jobs against the registered providers.

    Args:
        providers: ``ParsingType -> provider`` mapping, usually from
            :func:`~social_metrics.platforms.registry.build_providers`.
        progress: Progress tracker for the job.  A tracker without a store
            is used when omitted.
        sink: Row sink receiving the collected rows.  Rows are only returned
            when omitted.
        settings: Service settings (sheet names, batch size).
        spreadsheet_id: Target spreadsheet for sink writes.
        job_lock: Lock serializing whole jobs.  Share one instance between
            orchestrators running in the same event loop.
        sleep: Sleep coroutine used for the inter-item delay.
    """

    def __init__(
        self,
        providers: Mapping[ParsingType, PlatformProvider],
        progress: ProgressTracker | None = None,
        sink: RowSink | None = None,
        settings: Settings | None = None,
        spreadsheet_id: str = "",
        job_lock: asyncio.Lock | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.providers = providers
        self.progress = progress or ProgressTracker(None, spreadsheet_id)
        self.sink = sink
        self.settings = settings or get_settings()
        self.spreadsheet_id = spreadsheet_id
        self._job_lock = job_lock or asyncio.Lock()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # URL jobs
    # ------------------------------------------------------------------

    async def run_urls(self, urls: Sequence[UrlInfo], batch_size: int | None = None) -> list[ResultRow]:
        """Fetch metrics for every input URL and append them to the data sheet.

        Args:
            urls: Inputs in sheet order.
            batch_size: Inputs per progress update.  Defaults to
                ``Settings.batch_size``.

        Returns:
            One row per supported input, placeholders included.
        """
        size = self.settings.batch_size if batch_size is None else batch_size
        rows: list[ResultRow] = []
        async with self._job_lock:
            await self.progress.ensure_sheet()
            await self.progress.start(len(urls))
            try:
                processed = 0
                for batch_number, batch in enumerate(chunked(urls, size), start=1):
                    batch_rows = await self._run_batch(batch)
                    rows.extend(batch_rows)
                    processed += len(batch)
                    await self.progress.update(processed)
                    logger.info(
                        "orchestrator: batch %d done, %d/%d inputs, %d rows",
                        batch_number,
                        processed,
                        len(urls),
                        len(batch_rows),
                    )
                await self._insert(
                    self.settings.data_sheet_name,
                    DATA_RANGE,
                    [row.to_sheet_values() for row in rows],
                )
            finally:
                await self.progress.finish()
        return rows

    async def _run_batch(self, batch: Sequence[UrlInfo]) -> list[ResultRow]:
        rows: list[ResultRow] = []
        for info in batch:
            try:
                rows.append(await self.fetch_url(info.url))
            except ClassificationError as exc:
                logger.warning("orchestrator: skipping %s: %s", info.url, exc)
        return rows

    async def fetch_url(self, url: str) -> ResultRow:
        """Fetch one item URL, substituting a placeholder on fetch failure.

        Raises:
            ClassificationError: If the URL belongs to no registered platform
                or carries no usable identifier.
        """
        provider = self._provider_for(url, parsing_type_by_url(url))
        async with provider.quota_lock:
            if provider.item_delay_seconds > 0:
                await self._sleep(provider.item_delay_seconds)
            try:
                return await provider.fetch(url)
            except (FetchError, ProviderConfigurationError) as exc:
                logger.warning("orchestrator: fetch failed for %s: %s", url, exc)
                return ResultRow.placeholder(url)

    async def parse_single_url(self, url: str) -> ResultRow:
        """Synchronous single-URL lookup (no progress, no sink).

        Raises:
            ClassificationError: If the URL is unsupported.
        """
        async with self._job_lock:
            return await self.fetch_url(url)

    # ------------------------------------------------------------------
    # Account jobs
    # ------------------------------------------------------------------

    async def run_accounts(
        self,
        accounts: Sequence[UrlInfo],
        default_count: int = DEFAULT_ACCOUNT_COUNT,
    ) -> list[ResultRow]:
        """Collect every account's content and append it to the account sheet.

        Rows are written per account, so a crash mid-job keeps what was
        already collected.

        Args:
            accounts: Account URLs with requested depth.
            default_count: Depth used when an input leaves it unset.

        Returns:
            All collected rows in input order.
        """
        rows: list[ResultRow] = []
        async with self._job_lock:
            await self.progress.ensure_sheet()
            await self.progress.start(len(accounts))
            try:
                for processed, info in enumerate(accounts, start=1):
                    try:
                        account_rows = await self.collect_account(info, default_count)
                    except ClassificationError as exc:
                        logger.warning("orchestrator: skipping account %s: %s", info.url, exc)
                    else:
                        rows.extend(account_rows)
                        await self._insert(
                            self.settings.account_sheet_name,
                            ACCOUNT_RANGE,
                            [row.to_account_sheet_values() for row in account_rows],
                        )
                    await self.progress.update(processed)
            finally:
                await self.progress.finish()
        return rows

    async def collect_account(self, info: UrlInfo, default_count: int) -> list[ResultRow]:
        """Classify one account URL and collect its rows.

        Raises:
            ClassificationError: If the URL is not an account of a
                registered platform.
        """
        identifier, parsing_type = classify(info.url)
        provider = self._provider_for(info.url, parsing_type)
        account = AccountInfo(
            identification=identifier,
            parsing_type=parsing_type,
            account_url=info.url,
            count=clamp_count(info.count, default_count),
        )
        logger.info(
            "orchestrator: collecting %d items for %s account %r",
            account.count,
            parsing_type.value,
            identifier,
        )
        return await provider.collect_account(account)

    async def parse_single_account(
        self,
        url: str,
        default_count: int = DEFAULT_SINGLE_ACCOUNT_COUNT,
        count: int = 0,
    ) -> list[ResultRow]:
        """Synchronous single-account lookup (no progress, no sink).

        Raises:
            ClassificationError: If the URL is unsupported.
        """
        async with self._job_lock:
            return await self.collect_account(UrlInfo(url=url, count=count), default_count)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _provider_for(self, url: str, parsing_type: ParsingType) -> PlatformProvider:
        provider = self.providers.get(parsing_type)
        if provider is None:
            raise ClassificationError(
                f"no provider for {parsing_type.value} url {url!r}",
                url=url,
                parsing_type=parsing_type,
            )
        return provider

    async def _insert(self, sheet_name: str, range_spec: str, values: list[list]) -> None:  # type: ignore[type-arg]
        if self.sink is None or not values:
            return
        try:
            await asyncio.to_thread(
                self.sink.insert_data, self.spreadsheet_id, sheet_name, range_spec, values
            )
        except SinkError as exc:
            logger.error(
                "orchestrator: failed to write %d rows to %s: %s", len(values), sheet_name, exc
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "orchestrator: failed to write %d rows to %s, unexpected %s: %s",
                len(values),
                sheet_name,
                type(exc).__name__,
                exc,
            )
