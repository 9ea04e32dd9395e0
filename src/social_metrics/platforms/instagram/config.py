"""Instagram provider configuration.

Reels are read through the ``real-time-instagram-scraper-api1`` RapidAPI.
Instagram shares its quota family with VK: both are billed against the same
RapidAPI subscription, so the two never run concurrently.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

INSTAGRAM_RAPIDAPI_HOST: str = "real-time-instagram-scraper-api1.p.rapidapi.com"
"""Value of the ``x-rapidapi-host`` header."""

INSTAGRAM_MEDIA_INFO_URL: str = f"https://{INSTAGRAM_RAPIDAPI_HOST}/v1/media_info"
"""Single reel lookup.  Query parameter: ``code_or_id_or_url``."""

INSTAGRAM_USER_REELS_URL: str = f"https://{INSTAGRAM_RAPIDAPI_HOST}/v1/user_reels"
"""Account reels listing.  Query parameters: ``username_or_id``, ``max_id``."""

INSTAGRAM_REEL_URL_TEMPLATE: str = "https://www.instagram.com/reel/{code}/"
"""Public reel URL built from the media ``code``."""

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

INSTAGRAM_PAGE_SIZE: int = 12
"""Reels returned per ``user_reels`` page."""

INSTAGRAM_QUOTA_FAMILY: str = "rapidapi"
"""Shared with VK: both are billed against the same RapidAPI subscription."""
