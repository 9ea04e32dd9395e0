"""YouTube provider configuration.

Short metrics come from the ``yt-api`` RapidAPI.  Channel walking uses the
YouTube Data API v3 (handle -> uploads playlist -> playlist items) when
``YOUTUBE_API_KEY`` is configured, and the yt-api channel shorts listing
otherwise.

YouTube exposes no share counter, so ``shares`` is always 0 for this
platform and virality is always ``"0"``.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# yt-api (RapidAPI)
# ---------------------------------------------------------------------------

YOUTUBE_RAPIDAPI_HOST: str = "yt-api.p.rapidapi.com"

YOUTUBE_SHORT_INFO_URL: str = f"https://{YOUTUBE_RAPIDAPI_HOST}/shorts/info"
"""Single short lookup.  Query parameter ``id``."""

YOUTUBE_CHANNEL_SHORTS_URL: str = f"https://{YOUTUBE_RAPIDAPI_HOST}/channel/shorts"
"""Channel shorts listing.  Query parameters ``forUsername``, ``token``."""

YOUTUBE_SHORTS_ITEM_TYPE: str = "shorts"
"""Listing entries of any other ``type`` are ignored."""

# ---------------------------------------------------------------------------
# YouTube Data API v3
# ---------------------------------------------------------------------------

YOUTUBE_DATA_API_BASE: str = "https://www.googleapis.com/youtube/v3"

YOUTUBE_CHANNELS_URL: str = f"{YOUTUBE_DATA_API_BASE}/channels"
"""``part=contentDetails&forHandle=<handle>`` -> uploads playlist id."""

YOUTUBE_PLAYLIST_ITEMS_URL: str = f"{YOUTUBE_DATA_API_BASE}/playlistItems"

YOUTUBE_PLAYLIST_PAGE_SIZE: int = 50
"""``maxResults`` for playlist item pages (API maximum)."""

# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

YOUTUBE_SHORT_URL_TEMPLATE: str = "https://www.youtube.com/shorts/{video_id}"

YOUTUBE_QUOTA_FAMILY: str = "youtube"
