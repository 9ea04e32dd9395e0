"""Tests for the TikTok videos provider.

Covers:
- normalize(): ``digg_count`` as likes, title as description
- fetch_single() with canonical and short URLs
- non-zero ``code`` envelopes -> FetchError
- malformed URLs rejected before any request
- user posts pages with cursor and ``hasMore``
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx

from social_metrics.config.settings import Settings
from social_metrics.core.exceptions import ClassificationError, FetchError
from social_metrics.core.models import AccountInfo, ParsingType
from social_metrics.platforms.tiktok.config import TIKTOK_USER_POSTS_URL, TIKTOK_VIDEO_INFO_URL
from social_metrics.platforms.tiktok.provider import TikTokProvider

VIDEO_URL = "https://www.tiktok.com/@some.user/video/7312345678901234567"
ACCOUNT_URL = "https://www.tiktok.com/@some.user"


def _video(video_id: str = "7312345678901234567", **overrides: Any) -> dict[str, Any]:
    video: dict[str, Any] = {
        "video_id": video_id,
        "title": "видео #тег",
        "play_count": 2000,
        "digg_count": 150,
        "comment_count": 20,
        "share_count": 30,
        "create_time": 1_700_000_000,
    }
    video.update(overrides)
    return video


def _posts_page(ids: list[str], cursor: str = "", more: bool = False) -> dict[str, Any]:
    return {
        "code": 0,
        "msg": "success",
        "data": {"videos": [_video(i) for i in ids], "cursor": cursor, "hasMore": more},
    }


class TestNormalize:
    def test_maps_counters(self, settings: Settings) -> None:
        row = TikTokProvider(settings=settings).normalize(_video(), url=VIDEO_URL)

        assert (row.views, row.likes, row.comments, row.shares) == (2000, 150, 20, 30)
        assert row.er == "10.00%"
        assert row.virality == "1.50%"
        assert row.description == "видео #тег"


class TestFetchSingle:
    @pytest.mark.asyncio
    async def test_canonical_url(self, settings: Settings) -> None:
        with respx.mock:
            route = respx.get(TIKTOK_VIDEO_INFO_URL).mock(
                return_value=httpx.Response(200, json={"code": 0, "msg": "success", "data": _video()})
            )
            row = await TikTokProvider(settings=settings).fetch_single(VIDEO_URL)

        assert route.calls.last.request.url.params["url"] == VIDEO_URL
        assert row.url == VIDEO_URL
        assert row.likes == 150

    @pytest.mark.asyncio
    async def test_short_url(self, settings: Settings) -> None:
        short_url = "https://vm.tiktok.com/ZMhvqKxyz/"
        with respx.mock:
            respx.get(TIKTOK_VIDEO_INFO_URL).mock(
                return_value=httpx.Response(200, json={"code": 0, "data": _video()})
            )
            row = await TikTokProvider(settings=settings).fetch_single(short_url)

        assert row.url == short_url

    @pytest.mark.asyncio
    async def test_error_code_raises(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(TIKTOK_VIDEO_INFO_URL).mock(
                return_value=httpx.Response(200, json={"code": -1, "msg": "Url parsing is failed!"})
            )
            with pytest.raises(FetchError, match="Url parsing is failed"):
                await TikTokProvider(settings=settings).fetch_single(VIDEO_URL)

    @pytest.mark.asyncio
    async def test_empty_data_raises(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(TIKTOK_VIDEO_INFO_URL).mock(
                return_value=httpx.Response(200, json={"code": 0, "data": {}})
            )
            with pytest.raises(FetchError):
                await TikTokProvider(settings=settings).fetch_single(VIDEO_URL)

    @pytest.mark.asyncio
    async def test_profile_url_is_rejected_before_request(self, settings: Settings) -> None:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(TIKTOK_VIDEO_INFO_URL)
            with pytest.raises(ClassificationError):
                await TikTokProvider(settings=settings).fetch_single(ACCOUNT_URL)

        assert not route.called


class TestAccountCollection:
    @pytest.mark.asyncio
    async def test_posts_page(self, settings: Settings) -> None:
        with respx.mock:
            route = respx.get(TIKTOK_USER_POSTS_URL).mock(
                return_value=httpx.Response(200, json=_posts_page(["1", "2"], "1699999999000", True))
            )
            page = await TikTokProvider(settings=settings).fetch_account_page(
                "some.user", "", account_url=ACCOUNT_URL
            )

        params = route.calls.last.request.url.params
        assert params["unique_id"] == "some.user"
        assert params["cursor"] == "0"
        assert params["count"] == "30"
        assert [row.url for row in page.items] == [
            "https://www.tiktok.com/@some.user/video/1",
            "https://www.tiktok.com/@some.user/video/2",
        ]
        assert page.items[0].account_url == ACCOUNT_URL
        assert page.next_cursor == "1699999999000"
        assert page.has_more is True

    @pytest.mark.asyncio
    async def test_collect_account_stops_when_has_more_false(self, settings: Settings) -> None:
        account = AccountInfo(
            identification="some.user",
            parsing_type=ParsingType.TIKTOK,
            account_url=ACCOUNT_URL,
            count=50,
        )
        with respx.mock:
            route = respx.get(TIKTOK_USER_POSTS_URL).mock(
                side_effect=[
                    httpx.Response(200, json=_posts_page(["1", "2"], "c1", True)),
                    httpx.Response(200, json=_posts_page(["3"], "c2", False)),
                ]
            )
            rows = await TikTokProvider(settings=settings).collect_account(account)

        assert route.call_count == 2
        assert route.calls[1].request.url.params["cursor"] == "c1"
        assert len(rows) == 3
