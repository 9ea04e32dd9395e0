"""Abstract base class for all platform providers.

Every platform integration must subclass ``PlatformProvider`` and implement
the two fetch primitives.  Account collection, identifier caching, HTTP
client handling and error mapping are shared here.

Example::

    from social_metrics.platforms.base import PlatformProvider
    from social_metrics.platforms.registry import register

    @register
    class MyProvider(PlatformProvider):
        platform_name = "my_platform"
        parsing_type = ParsingType.UNKNOWN
        quota_family = "my_platform"

        async def fetch_single(self, url): ...
        async def fetch_account_page(self, account_id, cursor, account_url="", limit=None): ...
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import httpx

from social_metrics.config.settings import Settings, get_settings
from social_metrics.core.exceptions import FetchError, ProviderConfigurationError
from social_metrics.core.models import AccountInfo, ParsingType, ResultRow
from social_metrics.platforms.pagination import walk_account_pages

logger = logging.getLogger(__name__)

_PAYLOAD_SHAPE_ERRORS: tuple[type[Exception], ...] = (
    AttributeError,
    IndexError,
    KeyError,
    TypeError,
    ValueError,
)
"""Raised while reading a provider payload whose shape is not the documented one."""


@dataclass
class AccountPage:
    """One page of an account's content collection.

    Attributes:
        items: Normalized rows on this page, in provider order.
        next_cursor: Opaque handle for the next page; ``""`` when there is none.
        has_more: Provider's own end-of-data signal.
    """

    items: list[ResultRow] = field(default_factory=list)
    next_cursor: str = ""
    has_more: bool = False


class PlatformProvider(ABC):
    """Abstract base class for the per-platform fetch strategies.

    Class Attributes:
        platform_name: Unique registry key (e.g. ``"instagram"``).
        parsing_type: The :class:`ParsingType` this provider serves.
        quota_family: Name of the shared rate-limit budget.  Providers
            built by :func:`~social_metrics.platforms.registry.build_providers`
            with the same family share one ``asyncio.Lock``.
        item_delay_setting: Name of the ``Settings`` field holding the fixed
            sleep applied before every single-item call.
        default_page_size: Nominal page size of the account listing.

    Args:
        settings: Service settings.  Defaults to :func:`get_settings`.
        http_client: Optional injected ``httpx.AsyncClient`` (tests, shared
            client in the API process).  When ``None`` a client is created
            per call.
        quota_lock: Lock guarding this provider's quota family.  A private
            lock is created when omitted.
    """

    platform_name: str
    parsing_type: ParsingType
    quota_family: str
    item_delay_setting: str | None = None
    default_page_size: int = 12

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        quota_lock: asyncio.Lock | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._http_client = http_client
        self.quota_lock = quota_lock or asyncio.Lock()
        self._resolved_accounts: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Throttling parameters
    # ------------------------------------------------------------------

    @property
    def item_delay_seconds(self) -> float:
        if self.item_delay_setting is None:
            return 0.0
        return float(getattr(self.settings, self.item_delay_setting, 0.0))

    @property
    def page_delay_seconds(self) -> float:
        return self.settings.page_delay

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_single(self, url: str) -> ResultRow:
        """Fetch metrics for one item (reel, clip, short, video).

        Args:
            url: Public URL of the item as read from the input.

        Returns:
            A normalized ``ResultRow`` whose ``url`` is the item URL.

        Raises:
            ClassificationError: If no identifier can be extracted from *url*.
            ProviderConfigurationError: If the provider's API key is not set.
            FetchError: On HTTP, decode or provider-reported failures.
        """

    @abstractmethod
    async def fetch_account_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        """Fetch one page of an account's content.

        Args:
            account_id: Resolved account identifier
                (see :meth:`resolve_account`).
            cursor: Cursor from the previous page; ``""`` for the first.
            account_url: Owning account URL stamped onto every row.
            limit: Rows still wanted by the walk.  Providers that spend one
                request per item stop after *limit* items; listings that
                return whole pages in one request may ignore it.

        Raises:
            ProviderConfigurationError: If the provider's API key is not set.
            FetchError: On HTTP, decode or provider-reported failures.
        """

    # ------------------------------------------------------------------
    # Guarded entry points
    # ------------------------------------------------------------------

    @contextmanager
    def _payload_errors(self, identifier: str) -> Iterator[None]:
        """Re-raise errors from reading an unexpected payload shape as ``FetchError``."""
        try:
            yield
        except _PAYLOAD_SHAPE_ERRORS as exc:
            raise FetchError(
                f"{self.platform_name}: malformed payload for {identifier}: "
                f"{type(exc).__name__}: {exc}",
                platform=self.platform_name,
                identifier=identifier,
            ) from exc

    async def fetch(self, url: str) -> ResultRow:
        """:meth:`fetch_single` with malformed payloads reported as ``FetchError``.

        Raises:
            ClassificationError: If no identifier can be extracted from *url*.
            ProviderConfigurationError: If the provider's API key is not set.
            FetchError: On HTTP, decode, shape or provider-reported failures.
        """
        with self._payload_errors(url):
            return await self.fetch_single(url)

    async def fetch_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        """:meth:`fetch_account_page` with malformed payloads reported as ``FetchError``."""
        with self._payload_errors(account_id):
            return await self.fetch_account_page(
                account_id, cursor, account_url=account_url, limit=limit
            )

    # ------------------------------------------------------------------
    # Account collection
    # ------------------------------------------------------------------

    async def _resolve_account(self, handle: str) -> str:
        """Translate a handle into the identifier the listing endpoint wants.

        Identity by default; VK and YouTube override it.
        """
        return handle

    async def resolve_account(self, handle: str) -> str:
        """Resolve *handle* once per provider instance and cache the result.

        Provider instances are built per job, so the cache never outlives
        the job that filled it.
        """
        cached = self._resolved_accounts.get(handle)
        if cached is not None:
            return cached
        with self._payload_errors(handle):
            resolved = await self._resolve_account(handle)
        self._resolved_accounts[handle] = resolved
        logger.debug("%s: resolved account %r -> %r", self.platform_name, handle, resolved)
        return resolved

    async def collect_account(self, account: AccountInfo) -> list[ResultRow]:
        """Collect up to ``account.count`` rows for one account.

        Holds the quota lock for the whole walk.  A failed resolution or a
        failed page never raises: the walk is truncated and a placeholder
        row for the account URL is appended.

        Returns:
            Collected rows, each carrying ``account.account_url``.
        """
        async with self.quota_lock:
            try:
                account_id = await self.resolve_account(account.identification)
            except (FetchError, ProviderConfigurationError) as exc:
                logger.warning(
                    "%s: could not resolve account %r: %s",
                    self.platform_name,
                    account.identification,
                    exc,
                )
                return [ResultRow.placeholder(account.account_url, account.account_url)]

            rows, error = await walk_account_pages(
                partial(self.fetch_page, account_url=account.account_url),
                account_id,
                account.count,
                placeholder_url=account.account_url,
                page_delay=self.page_delay_seconds,
                account_url=account.account_url,
            )
        if error is not None:
            logger.warning(
                "%s: account walk for %r truncated after %d items: %s",
                self.platform_name,
                account.identification,
                error.collected_count,
                error,
            )
        logger.info(
            "%s: collected %d rows for account %r",
            self.platform_name,
            len(rows),
            account.identification,
        )
        return rows

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self.settings.request_timeout_seconds,
            connect=self.settings.connect_timeout_seconds,
        )

    @asynccontextmanager
    async def _build_http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Async context manager yielding an HTTP client.

        Yields the injected client directly (without re-entering it);
        otherwise creates a new client with the configured timeouts.
        """
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout()) as client:
            yield client

    def _require_setting(self, name: str) -> str:
        """Return a non-empty secret setting or raise ``ProviderConfigurationError``."""
        value = getattr(self.settings, name, "")
        if not value:
            raise ProviderConfigurationError(self.platform_name, name)
        return value

    def _rapidapi_headers(self, host: str) -> dict[str, str]:
        return {
            "x-rapidapi-key": self._require_setting("rapidapi_key"),
            "x-rapidapi-host": host,
            "Accept": "application/json",
        }

    async def _get_json(
        self,
        url: str,
        *,
        identifier: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Issue a GET request and return the decoded JSON object.

        Args:
            url: Endpoint URL.
            identifier: Item or account the call is about (for errors/logs).
            params: Query parameters.
            headers: Request headers.

        Returns:
            Parsed JSON body (always a ``dict``).

        Raises:
            FetchError: On a non-2xx status, a transport error, an
                undecodable body or a non-object JSON document.
        """
        async with self._build_http_client() as client:
            try:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise FetchError(
                    f"{self.platform_name}: HTTP {exc.response.status_code} for {identifier}",
                    platform=self.platform_name,
                    identifier=identifier,
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.RequestError as exc:
                raise FetchError(
                    f"{self.platform_name}: connection error for {identifier}: {exc}",
                    platform=self.platform_name,
                    identifier=identifier,
                ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise FetchError(
                f"{self.platform_name}: invalid JSON for {identifier}",
                platform=self.platform_name,
                identifier=identifier,
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise FetchError(
                f"{self.platform_name}: unexpected response shape for {identifier}",
                platform=self.platform_name,
                identifier=identifier,
                status_code=response.status_code,
            )
        return data

    def _check_status(self, data: dict[str, Any], identifier: str) -> None:
        """Raise ``FetchError`` when a provider envelope reports ``status != "ok"``."""
        status = data.get("status")
        if status != "ok":
            raise FetchError(
                f"{self.platform_name}: provider error for {identifier}: "
                f"{data.get('message') or status!r}",
                platform=self.platform_name,
                identifier=identifier,
            )

    async def health_check(self) -> dict[str, Any]:
        """Report whether the provider is configured (no network I/O)."""
        base: dict[str, Any] = {
            "platform": self.platform_name,
            "parsing_type": self.parsing_type.value,
            "quota_family": self.quota_family,
        }
        try:
            self._check_configured()
        except ProviderConfigurationError as exc:
            return {**base, "status": "not_configured", "detail": str(exc)}
        return {**base, "status": "ok"}

    def _check_configured(self) -> None:
        self._require_setting("rapidapi_key")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} platform={self.platform_name!r} family={self.quota_family!r}>"
