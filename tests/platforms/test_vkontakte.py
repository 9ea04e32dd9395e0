"""Tests for the VK clips provider.

Covers:
- normalize(): nested likes/reposts counters, comments as int or object
- fetch_single() through ``video.get`` with the negative owner id preserved
- VK error envelopes and a missing service token
- group resolution through ``groups.getById`` (both response shapes),
  the ``clips-<id>`` shortcut and the per-instance cache
- group clip pages from the vk-scraper RapidAPI
- malformed payloads surface as FetchError and become placeholder rows
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
import respx

from social_metrics.config.settings import Settings
from social_metrics.core.exceptions import FetchError, ProviderConfigurationError
from social_metrics.core.models import AccountInfo, ParsingType, UrlInfo
from social_metrics.pipeline.orchestrator import BatchOrchestrator
from social_metrics.platforms.vkontakte.config import (
    VK_GROUP_CLIPS_URL,
    VK_GROUPS_GET_BY_ID_URL,
    VK_VIDEO_GET_URL,
)
from social_metrics.platforms.vkontakte.provider import VKProvider

CLIP_URL = "https://vk.com/clips-73430300?z=clip-73430300_456240003"
GROUP_URL = "https://vk.com/somegroup"


def _clip(clip_id: int = 456240003, **overrides: Any) -> dict[str, Any]:
    clip: dict[str, Any] = {
        "id": clip_id,
        "owner_id": -73430300,
        "likes": {"count": 50},
        "reposts": {"count": 5},
        "comments": 7,
        "views": 1000,
        "date": 1_700_000_000,
        "description": "клип",
    }
    clip.update(overrides)
    return clip


def _clips_page(ids: list[int], cursor: str = "") -> dict[str, Any]:
    return {"status": "ok", "data": {"clips": [_clip(i) for i in ids], "cursor": cursor}}


def _urls(*urls: str) -> list[UrlInfo]:
    return [UrlInfo(url=url) for url in urls]


class TestNormalize:
    def test_maps_nested_counters(self, settings: Settings) -> None:
        row = VKProvider(settings=settings).normalize(_clip(), url=CLIP_URL)

        assert (row.views, row.likes, row.comments, row.shares) == (1000, 50, 7, 5)
        assert row.er == "6.20%"
        assert row.virality == "0.50%"
        assert row.description == "клип"

    def test_comments_object(self, settings: Settings) -> None:
        row = VKProvider(settings=settings).normalize(_clip(comments={"count": 9}), url=CLIP_URL)

        assert row.comments == 9

    def test_url_built_from_ids(self, settings: Settings) -> None:
        row = VKProvider(settings=settings).normalize(_clip(42))

        assert row.url == "https://vk.com/clip-73430300_42"


class TestFetchSingle:
    @pytest.mark.asyncio
    async def test_video_get_with_negative_owner(self, settings: Settings) -> None:
        with respx.mock:
            route = respx.get(VK_VIDEO_GET_URL).mock(
                return_value=httpx.Response(200, json={"response": {"count": 1, "items": [_clip()]}})
            )
            row = await VKProvider(settings=settings).fetch_single(CLIP_URL)

        params = route.calls.last.request.url.params
        assert params["videos"] == "-73430300_456240003"
        assert params["access_token"] == settings.vk_access_token
        assert params["v"] == settings.vk_api_version
        assert row.url == CLIP_URL
        assert row.likes == 50

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self, settings: Settings) -> None:
        payload = {"error": {"error_code": 15, "error_msg": "Access denied"}}
        with respx.mock:
            respx.get(VK_VIDEO_GET_URL).mock(return_value=httpx.Response(200, json=payload))
            with pytest.raises(FetchError, match="Access denied"):
                await VKProvider(settings=settings).fetch_single(CLIP_URL)

    @pytest.mark.asyncio
    async def test_missing_clip_raises(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(VK_VIDEO_GET_URL).mock(
                return_value=httpx.Response(200, json={"response": {"count": 0, "items": []}})
            )
            with pytest.raises(FetchError, match="not found"):
                await VKProvider(settings=settings).fetch_single(CLIP_URL)

    @pytest.mark.asyncio
    async def test_missing_token_raises(self, settings_factory: Any) -> None:
        provider = VKProvider(settings=settings_factory(vk_access_token=""))

        with pytest.raises(ProviderConfigurationError) as exc_info:
            await provider.fetch_single(CLIP_URL)

        assert exc_info.value.setting == "vk_access_token"


class TestResolveAccount:
    @pytest.mark.asyncio
    async def test_clips_section_needs_no_request(self, settings: Settings) -> None:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(VK_GROUPS_GET_BY_ID_URL)
            resolved = await VKProvider(settings=settings).resolve_account("clips-73430300")

        assert resolved == "-73430300"
        assert not route.called

    @pytest.mark.asyncio
    async def test_groups_wrapper_shape(self, settings: Settings) -> None:
        with respx.mock:
            route = respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": {"groups": [{"id": 73430300}]}})
            )
            resolved = await VKProvider(settings=settings).resolve_account("somegroup")

        assert resolved == "-73430300"
        assert route.calls.last.request.url.params["group_id"] == "somegroup"

    @pytest.mark.asyncio
    async def test_bare_list_shape(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": [{"id": 1}]})
            )
            assert await VKProvider(settings=settings).resolve_account("club1") == "-1"

    @pytest.mark.asyncio
    async def test_resolution_is_cached_per_instance(self, settings: Settings) -> None:
        provider = VKProvider(settings=settings)
        with respx.mock:
            route = respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": {"groups": [{"id": 5}]}})
            )
            await provider.resolve_account("somegroup")
            await provider.resolve_account("somegroup")

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_unknown_group_raises(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": {"groups": []}})
            )
            with pytest.raises(FetchError):
                await VKProvider(settings=settings).resolve_account("nosuchgroup")


class TestAccountCollection:
    @pytest.mark.asyncio
    async def test_clip_page_params_and_cursor(self, settings: Settings) -> None:
        with respx.mock:
            route = respx.get(VK_GROUP_CLIPS_URL).mock(
                return_value=httpx.Response(200, json=_clips_page([1, 2], cursor="next"))
            )
            page = await VKProvider(settings=settings).fetch_account_page("-73430300", "prev")

        params = route.calls.last.request.url.params
        assert params["owner_id"] == "chplk:-73430300"
        assert params["cursor"] == "prev"
        assert len(page.items) == 2
        assert page.next_cursor == "next"
        assert page.has_more is True

    @pytest.mark.asyncio
    async def test_last_page_has_no_more(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(VK_GROUP_CLIPS_URL).mock(return_value=httpx.Response(200, json=_clips_page([1])))
            page = await VKProvider(settings=settings).fetch_account_page("-1", "")

        assert page.next_cursor == ""
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_collect_account_resolves_then_walks(self, settings: Settings) -> None:
        account = AccountInfo(
            identification="somegroup",
            parsing_type=ParsingType.VK,
            account_url=GROUP_URL,
            count=10,
        )
        with respx.mock:
            respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": {"groups": [{"id": 73430300}]}})
            )
            clips = respx.get(VK_GROUP_CLIPS_URL).mock(
                return_value=httpx.Response(200, json=_clips_page([1, 2, 3]))
            )
            rows = await VKProvider(settings=settings).collect_account(account)

        assert clips.calls.last.request.url.params["owner_id"] == "chplk:-73430300"
        assert len(rows) == 3
        assert all(row.account_url == GROUP_URL for row in rows)

    @pytest.mark.asyncio
    async def test_unresolvable_group_yields_single_placeholder(self, settings: Settings) -> None:
        account = AccountInfo(
            identification="nosuchgroup",
            parsing_type=ParsingType.VK,
            account_url=GROUP_URL,
            count=10,
        )
        with respx.mock:
            respx.get(VK_GROUPS_GET_BY_ID_URL).mock(
                return_value=httpx.Response(200, json={"response": {"groups": []}})
            )
            rows = await VKProvider(settings=settings).collect_account(account)

        assert len(rows) == 1
        assert rows[0].is_placeholder
        assert rows[0].url == GROUP_URL


class TestMalformedPayloads:
    @pytest.mark.asyncio
    async def test_fetch_reports_shape_error_as_fetch_error(self, settings: Settings) -> None:
        with respx.mock:
            respx.get(VK_VIDEO_GET_URL).mock(
                return_value=httpx.Response(200, json={"response": {"items": [{"likes": 5, "views": 10}]}})
            )
            with pytest.raises(FetchError, match="malformed payload"):
                await VKProvider(settings=settings).fetch(CLIP_URL)

    @pytest.mark.asyncio
    async def test_malformed_item_becomes_placeholder_in_batch(self, settings: Settings) -> None:
        second_url = "https://vk.com/clip-73430300_456240004"
        orchestrator = BatchOrchestrator({ParsingType.VK: VKProvider(settings=settings)}, settings=settings)
        with respx.mock:
            respx.get(VK_VIDEO_GET_URL).mock(
                side_effect=[
                    httpx.Response(200, json={"response": {"items": [{"likes": 5, "views": 10}]}}),
                    httpx.Response(200, json={"response": {"items": [_clip(456240004)]}}),
                ]
            )
            rows = await orchestrator.run_urls(_urls(CLIP_URL, second_url))

        assert [row.url for row in rows] == [CLIP_URL, second_url]
        assert rows[0].is_placeholder
        assert not rows[1].is_placeholder
        assert rows[1].likes == 50

    @pytest.mark.asyncio
    async def test_malformed_clips_page_truncates_walk(self, settings: Settings) -> None:
        account = AccountInfo(
            identification="clips-73430300",
            parsing_type=ParsingType.VK,
            account_url=GROUP_URL,
            count=10,
        )
        with respx.mock:
            respx.get(VK_GROUP_CLIPS_URL).mock(
                return_value=httpx.Response(200, json={"status": "ok", "data": [1, 2]})
            )
            rows = await VKProvider(settings=settings).collect_account(account)

        assert len(rows) == 1
        assert rows[0].is_placeholder
        assert rows[0].account_url == GROUP_URL


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_requires_both_credentials(self, settings_factory: Any) -> None:
        report = await VKProvider(settings=settings_factory(vk_access_token="")).health_check()

        assert report["status"] == "not_configured"
        assert "VK_ACCESS_TOKEN" in report["detail"]
