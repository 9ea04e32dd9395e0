"""TikTok provider configuration (tiktok-scraper7 RapidAPI)."""

from __future__ import annotations

TIKTOK_RAPIDAPI_HOST: str = "tiktok-scraper7.p.rapidapi.com"

TIKTOK_VIDEO_INFO_URL: str = f"https://{TIKTOK_RAPIDAPI_HOST}/"
"""Single video lookup.  Query parameter ``url`` (canonical or short form)."""

TIKTOK_USER_POSTS_URL: str = f"https://{TIKTOK_RAPIDAPI_HOST}/user/posts"
"""Account videos listing.  Query parameters ``unique_id``, ``count``, ``cursor``."""

TIKTOK_VIDEO_URL_TEMPLATE: str = "https://www.tiktok.com/@{username}/video/{video_id}"

TIKTOK_PAGE_SIZE: int = 30
"""Videos requested per ``user/posts`` page (API maximum is 35)."""

TIKTOK_QUOTA_FAMILY: str = "tiktok"
