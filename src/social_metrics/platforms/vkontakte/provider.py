"""VKontakte clips provider.

Clip URLs carry ``clip<owner_id>_<clip_id>``; group owner ids are negative
and the sign is kept all the way to the API call.  Account jobs resolve the
group screen name to ``-<group id>`` via ``groups.getById`` once per job and
then page the group's clips through the vk-scraper RapidAPI.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from social_metrics.core.classifier import parse_vk_clip_url
from social_metrics.core.exceptions import FetchError
from social_metrics.core.models import ParsingType, ResultRow
from social_metrics.core.normalizer import normalize_metrics
from social_metrics.platforms.base import AccountPage, PlatformProvider
from social_metrics.platforms.registry import register
from social_metrics.platforms.vkontakte.config import (
    VK_CLIP_URL_TEMPLATE,
    VK_GROUP_CLIPS_URL,
    VK_GROUPS_GET_BY_ID_URL,
    VK_OWNER_ID_PREFIX,
    VK_PAGE_SIZE,
    VK_QUOTA_FAMILY,
    VK_RAPIDAPI_HOST,
    VK_VIDEO_GET_URL,
)

logger = logging.getLogger(__name__)

_CLIPS_SECTION = re.compile(r"^clips(-\d+)$")


@register
class VKProvider(PlatformProvider):
    """Fetches VK clip metrics from the VK API and the vk-scraper RapidAPI."""

    platform_name = "vk"
    parsing_type = ParsingType.VK
    quota_family = VK_QUOTA_FAMILY
    item_delay_setting = "vk_item_delay"
    default_page_size = VK_PAGE_SIZE

    # ------------------------------------------------------------------
    # Single clip
    # ------------------------------------------------------------------

    async def fetch_single(self, url: str) -> ResultRow:
        owner_id, clip_id = parse_vk_clip_url(url)
        video_key = f"{owner_id}_{clip_id}"
        response = await self._vk_method(VK_VIDEO_GET_URL, {"videos": video_key}, video_key)

        items = (response.get("items") or []) if isinstance(response, dict) else []
        if not items:
            raise FetchError(
                f"vk: clip {video_key} not found",
                platform=self.platform_name,
                identifier=url,
            )
        return self.normalize(items[0], url=url)

    # ------------------------------------------------------------------
    # Group clips
    # ------------------------------------------------------------------

    async def _resolve_account(self, handle: str) -> str:
        """Resolve a group screen name to its negative owner id."""
        section = _CLIPS_SECTION.match(handle)
        if section:
            return section.group(1)

        response = await self._vk_method(VK_GROUPS_GET_BY_ID_URL, {"group_id": handle}, handle)
        # API 5.199 wraps the list in {"groups": [...]}, older versions return it bare.
        groups = response.get("groups") if isinstance(response, dict) else response
        group_id = groups[0].get("id") if groups else None
        if not group_id:
            raise FetchError(
                f"vk: group {handle!r} not found",
                platform=self.platform_name,
                identifier=handle,
            )
        return str(-int(group_id))

    async def fetch_account_page(
        self,
        account_id: str,
        cursor: str,
        account_url: str = "",
        limit: int | None = None,
    ) -> AccountPage:
        headers = self._rapidapi_headers(VK_RAPIDAPI_HOST)
        params: dict[str, Any] = {"owner_id": f"{VK_OWNER_ID_PREFIX}{account_id}"}
        if cursor:
            params["cursor"] = cursor

        data = await self._get_json(
            VK_GROUP_CLIPS_URL,
            identifier=account_id,
            params=params,
            headers=headers,
        )
        self._check_status(data, account_id)

        payload = data.get("data") or {}
        rows = [
            self.normalize(clip, account_url=account_url) for clip in payload.get("clips") or []
        ]
        next_cursor = str(payload.get("cursor") or "")
        # The listing has no explicit end flag: a cursor means more pages.
        return AccountPage(items=rows, next_cursor=next_cursor, has_more=bool(next_cursor))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _vk_method(self, url: str, params: dict[str, Any], identifier: str) -> Any:
        """Call an official VK API method and return its ``response`` member.

        Raises:
            ProviderConfigurationError: If ``vk_access_token`` is not set.
            FetchError: On transport failures or a VK ``error`` envelope.
        """
        token = self._require_setting("vk_access_token")
        data = await self._get_json(
            url,
            identifier=identifier,
            params={**params, "access_token": token, "v": self.settings.vk_api_version},
        )
        if "error" in data:
            error = data["error"] or {}
            raise FetchError(
                f"vk: API error {error.get('error_code')} for {identifier}: "
                f"{error.get('error_msg', 'unknown error')}",
                platform=self.platform_name,
                identifier=identifier,
            )
        return data.get("response")

    def normalize(
        self,
        clip: dict[str, Any],
        url: str | None = None,
        account_url: str = "",
    ) -> ResultRow:
        """Map one VK clip object to a :class:`ResultRow`.

        ``comments`` is a plain integer on clips; ``likes`` and ``reposts``
        are ``{"count": n}`` objects.  Reposts are reported as shares.
        """
        item_url = url or VK_CLIP_URL_TEMPLATE.format(
            owner_id=clip.get("owner_id", ""), clip_id=clip.get("id", "")
        )
        comments = clip.get("comments")
        if isinstance(comments, dict):
            comments = comments.get("count")
        return normalize_metrics(
            item_url,
            likes=(clip.get("likes") or {}).get("count"),
            shares=(clip.get("reposts") or {}).get("count"),
            comments=comments,
            views=clip.get("views"),
            published_at=clip.get("date"),
            description=clip.get("description", ""),
            account_url=account_url,
        )

    def _check_configured(self) -> None:
        self._require_setting("rapidapi_key")
        self._require_setting("vk_access_token")
