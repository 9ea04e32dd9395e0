"""YouTube shorts provider.

A channel page only lists video ids; every id is then looked up individually
through yt-api, and no more ids are looked up than the walk still needs.
A failed lookup inside a page yields a placeholder row for
that short and the page carries on, so one broken short never truncates a
channel walk.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from social_metrics.core.classifier import extract_youtube_shorts_id
from social_metrics.core.exceptions import FetchError
from social_metrics.core.models import ParsingType, ResultRow
from social_metrics.core.normalizer import normalize_metrics
from social_metrics.platforms.base import AccountPage, PlatformProvider
from social_metrics.platforms.registry import register
from social_metrics.platforms.youtube.config import (
    YOUTUBE_CHANNEL_SHORTS_URL,
    YOUTUBE_CHANNELS_URL,
    YOUTUBE_PLAYLIST_ITEMS_URL,
    YOUTUBE_PLAYLIST_PAGE_SIZE,
    YOUTUBE_QUOTA_FAMILY,
    YOUTUBE_RAPIDAPI_HOST,
    YOUTUBE_SHORT_INFO_URL,
    YOUTUBE_SHORT_URL_TEMPLATE,
    YOUTUBE_SHORTS_ITEM_TYPE,
)

logger = logging.getLogger(__name__)


@register
class YouTubeProvider(PlatformProvider):
    """Fetches YouTube shorts metrics from yt-api and the YouTube Data API v3."""

    platform_name = "youtube"
    parsing_type = ParsingType.YOUTUBE
    quota_family = YOUTUBE_QUOTA_FAMILY
    item_delay_setting = "youtube_item_delay"
    default_page_size = YOUTUBE_PLAYLIST_PAGE_SIZE

    @property
    def uses_data_api(self) -> bool:
        """``True`` when channel walking goes through the Data API."""
        return bool(self.settings.youtube_api_key)

    # ------------------------------------------------------------------
    # Single short
    # ------------------------------------------------------------------

    async def fetch_single(self, url: str) -> ResultRow:
        video_id = extract_youtube_shorts_id(url)
        return await self._fetch_short(video_id, url=url)

    async def _fetch_short(self, video_id: str, url: str, account_url: str = "") -> ResultRow:
        headers = self._rapidapi_headers(YOUTUBE_RAPIDAPI_HOST)
        data = await self._get_json(
            YOUTUBE_SHORT_INFO_URL,
            identifier=video_id,
            params={"id": video_id},
            headers=headers,
        )
        if data.get("error") or not data.get("videoId"):
            raise FetchError(
                f"youtube: no short {video_id}: {data.get('error') or data.get('message', '')}",
                platform=self.platform_name,
                identifier=url,
            )
        return self.normalize(data, url=url, account_url=account_url)

    # ------------------------------------------------------------------
    # Channel walking
    # ------------------------------------------------------------------

    async def _resolve_account(self, handle: str) -> str:
        """Resolve a channel handle to its uploads playlist id (Data API only).

        Without a Data API key the yt-api listing takes the handle itself.
        """
        if not self.uses_data_api:
            return handle

        data = await self._get_json(
            YOUTUBE_CHANNELS_URL,
            identifier=handle,
            params={
                "part": "contentDetails",
                "forHandle": handle,
                "key": self.settings.youtube_api_key,
            },
        )
        items = data.get("items") or []
        uploads = (
            items[0].get("contentDetails", {}).get("relatedPlaylists", {}).get("uploads")
            if items
            else None
        )
        if not uploads:
            raise FetchError(
                f"youtube: channel {handle!r} not found",
                platform=self.platform_name,
                identifier=handle,
            )
        return uploads

    async def fetch_account_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        if self.uses_data_api:
            video_ids, next_cursor = await self._playlist_page(account_id, cursor)
        else:
            video_ids, next_cursor = await self._channel_shorts_page(account_id, cursor)
        # Every short costs one yt-api request.
        if limit is not None:
            video_ids = video_ids[: max(limit, 0)]

        rows: list[ResultRow] = []
        for video_id in video_ids:
            short_url = YOUTUBE_SHORT_URL_TEMPLATE.format(video_id=video_id)
            if self.item_delay_seconds > 0:
                await asyncio.sleep(self.item_delay_seconds)
            try:
                rows.append(await self._fetch_short(video_id, url=short_url, account_url=account_url))
            except FetchError as exc:
                logger.warning("youtube: short lookup failed for %s: %s", video_id, exc)
                rows.append(ResultRow.placeholder(short_url, account_url))
        return AccountPage(items=rows, next_cursor=next_cursor, has_more=bool(next_cursor))

    async def _playlist_page(self, playlist_id: str, page_token: str) -> tuple[list[str], str]:
        params: dict[str, Any] = {
            "part": "snippet",
            "playlistId": playlist_id,
            "maxResults": YOUTUBE_PLAYLIST_PAGE_SIZE,
            "key": self.settings.youtube_api_key,
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self._get_json(YOUTUBE_PLAYLIST_ITEMS_URL, identifier=playlist_id, params=params)
        video_ids = [
            item["snippet"]["resourceId"]["videoId"]
            for item in data.get("items") or []
            if item.get("snippet", {}).get("resourceId", {}).get("videoId")
        ]
        return video_ids, str(data.get("nextPageToken") or "")

    async def _channel_shorts_page(self, handle: str, token: str) -> tuple[list[str], str]:
        headers = self._rapidapi_headers(YOUTUBE_RAPIDAPI_HOST)
        params: dict[str, Any] = {"forUsername": handle}
        if token:
            params["token"] = token
        data = await self._get_json(
            YOUTUBE_CHANNEL_SHORTS_URL, identifier=handle, params=params, headers=headers
        )
        video_ids = [
            entry["videoId"]
            for entry in data.get("data") or []
            if entry.get("type") == YOUTUBE_SHORTS_ITEM_TYPE and entry.get("videoId")
        ]
        return video_ids, str(data.get("continuation") or "")

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def normalize(self, short: dict[str, Any], url: str, account_url: str = "") -> ResultRow:
        """Map a yt-api short object to a :class:`ResultRow`.

        ``viewCount`` and ``commentCount`` arrive as strings.  The publish
        date is passed through as the API formats it.  Shares are always 0.
        """
        title = short.get("title") or ""
        description = short.get("description") or ""
        return normalize_metrics(
            url,
            likes=short.get("likeCount"),
            shares=0,
            comments=short.get("commentCount"),
            views=short.get("viewCount"),
            published_at=short.get("publishedDate") or short.get("publishDate") or "",
            description=f"{title}.{description}",
            account_url=account_url,
        )
