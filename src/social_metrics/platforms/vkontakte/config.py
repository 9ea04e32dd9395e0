"""VKontakte provider configuration.

Single clips and group resolution use the official VK API with a service
token.  Group clip listings go through the ``vk-scraper`` RapidAPI, which
shares the ``rapidapi`` quota family with Instagram.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Official VK API
# ---------------------------------------------------------------------------

VK_API_BASE: str = "https://api.vk.com/method"

VK_VIDEO_GET_URL: str = f"{VK_API_BASE}/video.get"
"""Clip lookup.  Query parameter ``videos=<owner_id>_<clip_id>``."""

VK_GROUPS_GET_BY_ID_URL: str = f"{VK_API_BASE}/groups.getById"
"""Group handle resolution.  Query parameter ``group_id=<screen name>``."""

# ---------------------------------------------------------------------------
# RapidAPI vk-scraper
# ---------------------------------------------------------------------------

VK_RAPIDAPI_HOST: str = "vk-scraper.p.rapidapi.com"

VK_GROUP_CLIPS_URL: str = f"https://{VK_RAPIDAPI_HOST}/api/v1/users/clips"
"""Group clips listing.  Query parameters ``owner_id=chplk:<owner_id>``, ``cursor``."""

VK_OWNER_ID_PREFIX: str = "chplk:"

# ---------------------------------------------------------------------------
# URLs and limits
# ---------------------------------------------------------------------------

VK_CLIP_URL_TEMPLATE: str = "https://vk.com/clip{owner_id}_{clip_id}"

VK_PAGE_SIZE: int = 10

VK_QUOTA_FAMILY: str = "rapidapi"
"""Shared with Instagram."""
