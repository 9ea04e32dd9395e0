"""Instagram reels provider.

Single reels are looked up by URL through ``/v1/media_info``; account reels
are paged through ``/v1/user_reels`` using the ``max_id`` cursor from
``data.paging_info``.  The ``reshare_count`` field is optional and defaults
to 0 when the API omits it.
"""

from __future__ import annotations

import logging
from typing import Any

from social_metrics.core.exceptions import FetchError
from social_metrics.core.models import ParsingType, ResultRow
from social_metrics.core.normalizer import normalize_metrics
from social_metrics.platforms.base import AccountPage, PlatformProvider
from social_metrics.platforms.instagram.config import (
    INSTAGRAM_MEDIA_INFO_URL,
    INSTAGRAM_PAGE_SIZE,
    INSTAGRAM_QUOTA_FAMILY,
    INSTAGRAM_RAPIDAPI_HOST,
    INSTAGRAM_REEL_URL_TEMPLATE,
    INSTAGRAM_USER_REELS_URL,
)
from social_metrics.platforms.registry import register

logger = logging.getLogger(__name__)


@register
class InstagramProvider(PlatformProvider):
    """Fetches Instagram reel metrics from the real-time-instagram-scraper RapidAPI."""

    platform_name = "instagram"
    parsing_type = ParsingType.INSTAGRAM
    quota_family = INSTAGRAM_QUOTA_FAMILY
    item_delay_setting = "instagram_item_delay"
    default_page_size = INSTAGRAM_PAGE_SIZE

    async def fetch_single(self, url: str) -> ResultRow:
        headers = self._rapidapi_headers(INSTAGRAM_RAPIDAPI_HOST)
        data = await self._get_json(
            INSTAGRAM_MEDIA_INFO_URL,
            identifier=url,
            params={"code_or_id_or_url": url},
            headers=headers,
        )
        if "status" in data:
            self._check_status(data, url)
        items = (data.get("data") or {}).get("items") or []
        if not items:
            raise FetchError(
                f"instagram: no media in response for {url}",
                platform=self.platform_name,
                identifier=url,
            )
        return self.normalize(items[0], url=url)

    async def fetch_account_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        headers = self._rapidapi_headers(INSTAGRAM_RAPIDAPI_HOST)
        params: dict[str, Any] = {"username_or_id": account_id}
        if cursor:
            params["max_id"] = cursor

        data = await self._get_json(
            INSTAGRAM_USER_REELS_URL,
            identifier=account_id,
            params=params,
            headers=headers,
        )
        self._check_status(data, account_id)

        payload = data.get("data") or {}
        paging = payload.get("paging_info") or {}
        rows = [
            self.normalize(entry.get("media") or {}, account_url=account_url)
            for entry in payload.get("items") or []
        ]
        return AccountPage(
            items=rows,
            next_cursor=str(paging.get("max_id") or ""),
            has_more=bool(paging.get("more_available")),
        )

    def normalize(
        self,
        media: dict[str, Any],
        url: str | None = None,
        account_url: str = "",
    ) -> ResultRow:
        """Map one Instagram media object to a :class:`ResultRow`.

        Args:
            media: Raw media dict (``code``, ``like_count``, ``comment_count``,
                ``reshare_count``, ``ig_play_count``, ``taken_at``, ``caption``).
            url: Item URL to report.  Built from ``code`` when omitted.
            account_url: Owning account URL for account-style jobs.
        """
        caption = media.get("caption") or {}
        item_url = url or INSTAGRAM_REEL_URL_TEMPLATE.format(code=media.get("code", ""))
        return normalize_metrics(
            item_url,
            likes=media.get("like_count"),
            shares=media.get("reshare_count"),
            comments=media.get("comment_count"),
            views=media.get("ig_play_count"),
            published_at=media.get("taken_at"),
            description=caption.get("text", "") if isinstance(caption, dict) else "",
            account_url=account_url,
        )
