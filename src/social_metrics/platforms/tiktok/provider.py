"""TikTok videos provider.

tiktok-scraper7 wraps every response in ``{"code": 0, "msg": "success",
"data": {...}}``; a non-zero ``code`` is a provider-reported failure.
"""

from __future__ import annotations

import logging
from typing import Any

from social_metrics.core.classifier import extract_tiktok_video_id
from social_metrics.core.exceptions import FetchError
from social_metrics.core.models import ParsingType, ResultRow
from social_metrics.core.normalizer import normalize_metrics
from social_metrics.platforms.base import AccountPage, PlatformProvider
from social_metrics.platforms.registry import register
from social_metrics.platforms.tiktok.config import (
    TIKTOK_PAGE_SIZE,
    TIKTOK_QUOTA_FAMILY,
    TIKTOK_RAPIDAPI_HOST,
    TIKTOK_USER_POSTS_URL,
    TIKTOK_VIDEO_INFO_URL,
    TIKTOK_VIDEO_URL_TEMPLATE,
)

logger = logging.getLogger(__name__)


@register
class TikTokProvider(PlatformProvider):
    """Fetches TikTok video metrics from the tiktok-scraper7 RapidAPI."""

    platform_name = "tiktok"
    parsing_type = ParsingType.TIKTOK
    quota_family = TIKTOK_QUOTA_FAMILY
    item_delay_setting = "tiktok_item_delay"
    default_page_size = TIKTOK_PAGE_SIZE

    async def fetch_single(self, url: str) -> ResultRow:
        # Validates the URL shape before spending a request on it.
        video_id = extract_tiktok_video_id(url)
        headers = self._rapidapi_headers(TIKTOK_RAPIDAPI_HOST)
        data = await self._get_json(
            TIKTOK_VIDEO_INFO_URL,
            identifier=video_id,
            params={"url": url},
            headers=headers,
        )
        payload = self._unwrap(data, video_id)
        if not payload:
            raise FetchError(
                f"tiktok: empty data for video {video_id}",
                platform=self.platform_name,
                identifier=url,
            )
        return self.normalize(payload, url=url)

    async def fetch_account_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        headers = self._rapidapi_headers(TIKTOK_RAPIDAPI_HOST)
        params: dict[str, Any] = {
            "unique_id": account_id,
            "count": self.default_page_size,
            "cursor": cursor or "0",
        }
        data = await self._get_json(
            TIKTOK_USER_POSTS_URL,
            identifier=account_id,
            params=params,
            headers=headers,
        )
        payload = self._unwrap(data, account_id)
        rows = []
        for video in payload.get("videos") or []:
            video_url = TIKTOK_VIDEO_URL_TEMPLATE.format(
                username=account_id,
                video_id=video.get("video_id") or video.get("id", ""),
            )
            rows.append(self.normalize(video, url=video_url, account_url=account_url))
        next_cursor = payload.get("cursor")
        return AccountPage(
            items=rows,
            next_cursor=str(next_cursor) if next_cursor else "",
            has_more=bool(payload.get("hasMore")),
        )

    def _unwrap(self, data: dict[str, Any], identifier: str) -> dict[str, Any]:
        code = data.get("code", 0)
        if code != 0:
            raise FetchError(
                f"tiktok: provider error {code} for {identifier}: {data.get('msg', '')}",
                platform=self.platform_name,
                identifier=identifier,
            )
        return data.get("data") or {}

    def normalize(
        self,
        video: dict[str, Any],
        url: str,
        account_url: str = "",
    ) -> ResultRow:
        """Map one TikTok video object to a :class:`ResultRow` (``digg_count`` is likes)."""
        return normalize_metrics(
            url,
            likes=video.get("digg_count"),
            shares=video.get("share_count"),
            comments=video.get("comment_count"),
            views=video.get("play_count"),
            published_at=video.get("create_time"),
            description=video.get("title", ""),
            account_url=account_url,
        )
