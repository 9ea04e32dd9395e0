"""URL and account classification.

Maps a raw URL to its :class:`~social_metrics.core.models.ParsingType` and
extracts the platform-specific identifier each provider needs: an account
handle, a VK ``(owner_id, clip_id)`` pair, a TikTok video id or a YouTube
shorts id.

Platform membership (:func:`parsing_type_by_url`) is a plain substring test
on the lower-cased URL.  Identifier extraction uses the ordered regular
expressions below; the first one that matches wins.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from social_metrics.core.exceptions import ClassificationError
from social_metrics.core.models import ParsingType

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_ACCOUNT_PATTERNS: tuple[tuple[ParsingType, re.Pattern[str]], ...] = (
    (
        ParsingType.INSTAGRAM,
        re.compile(r"(?:https?://)?(?:www\.)?instagram\.com/([^/?#]+)", re.IGNORECASE),
    ),
    (
        ParsingType.VK,
        re.compile(r"(?:https?://)?(?:www\.|m\.)?vk\.(?:com|ru)/([^/?#]+)", re.IGNORECASE),
    ),
    (
        ParsingType.TELEGRAM,
        re.compile(r"(?:https?://)?(?:www\.)?t\.me/([^/?#]+)", re.IGNORECASE),
    ),
    (
        ParsingType.YOUTUBE,
        re.compile(
            r"(?:https?://)?(?:www\.|m\.)?youtube\.com/(?:c/|channel/|@)?([^/?#]+)",
            re.IGNORECASE,
        ),
    ),
    (
        ParsingType.TIKTOK,
        re.compile(r"(?:https?://)?(?:www\.)?tiktok\.com/@([^/?#]+)", re.IGNORECASE),
    ),
)
"""Account patterns in match order.  Group 1 is the account identifier."""

_VK_CLIP_PATTERN = re.compile(r"clip(-?\d+)_(\d+)")

_TIKTOK_VIDEO_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?(?:vm\.)?tiktok\.com/(?:@[^/]+/video/|)([a-zA-Z0-9]+)/?"
)

_SHORTS_MARKER = "/shorts/"

_DOMAIN_MARKERS: tuple[tuple[ParsingType, tuple[str, ...]], ...] = (
    (ParsingType.VK, ("vk.com", "vk.ru")),
    (ParsingType.INSTAGRAM, ("instagram.com",)),
    (ParsingType.YOUTUBE, ("youtube.com", "youtu.be")),
    (ParsingType.TIKTOK, ("tiktok.com",)),
    (ParsingType.TELEGRAM, ("t.me",)),
)


# ---------------------------------------------------------------------------
# Platform membership
# ---------------------------------------------------------------------------


def parsing_type_by_url(url: str) -> ParsingType:
    """Return the platform a URL belongs to, or ``ParsingType.UNKNOWN``."""
    lowered = url.lower()
    for parsing_type, markers in _DOMAIN_MARKERS:
        if any(marker in lowered for marker in markers):
            return parsing_type
    return ParsingType.UNKNOWN


def is_available_by_parsing_type(url: str, types: Iterable[ParsingType]) -> bool:
    """Return ``True`` when *url* belongs to one of the requested platforms.

    Args:
        url: Raw URL as read from the source sheet.
        types: Platforms the current job handles.  An empty iterable
            accepts nothing.
    """
    return parsing_type_by_url(url) in set(types)


# ---------------------------------------------------------------------------
# Identifier extraction
# ---------------------------------------------------------------------------


def classify(url: str) -> tuple[str, ParsingType]:
    """Extract the account identifier and platform from an account URL.

    Args:
        url: Account URL, e.g. ``https://www.instagram.com/some.user/``.

    Returns:
        ``(identifier, parsing_type)``.  The identifier has any leading
        ``@`` removed.

    Raises:
        ClassificationError: If no known account pattern matches.
    """
    cleaned = url.strip()
    for parsing_type, pattern in _ACCOUNT_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return match.group(1).lstrip("@"), parsing_type
    raise ClassificationError(
        f"unsupported account url: {url!r}",
        url=url,
        parsing_type=ParsingType.UNKNOWN,
    )


def parse_vk_clip_url(url: str) -> tuple[int, int]:
    """Extract ``(owner_id, clip_id)`` from a VK clip URL.

    Group owner ids are negative and the sign is preserved, e.g.
    ``https://vk.com/clips-73430300?z=clip-73430300_456240003`` gives
    ``(-73430300, 456240003)``.

    Raises:
        ClassificationError: If the URL carries no ``clip<owner>_<id>`` token.
    """
    match = _VK_CLIP_PATTERN.search(url)
    if not match:
        raise ClassificationError(
            f"no clip id in vk url: {url!r}", url=url, parsing_type=ParsingType.VK
        )
    return int(match.group(1)), int(match.group(2))


def extract_tiktok_video_id(url: str) -> str:
    """Extract the video id from a canonical or short TikTok URL.

    Supports ``https://www.tiktok.com/@user/video/<id>`` and
    ``https://vm.tiktok.com/<id>/``.

    Raises:
        ClassificationError: If no video id can be found.
    """
    match = _TIKTOK_VIDEO_PATTERN.search(url)
    if not match:
        raise ClassificationError(
            f"no video id in tiktok url: {url!r}", url=url, parsing_type=ParsingType.TIKTOK
        )
    return match.group(1)


def extract_youtube_shorts_id(url: str) -> str:
    """Extract the shorts id from a YouTube shorts URL.

    ``https://youtube.com/shorts/5CHd6h1-Zps?si=abc`` gives ``"5CHd6h1-Zps"``.

    Raises:
        ClassificationError: If the URL has no ``/shorts/`` segment or the
            segment is empty.
    """
    _, marker, tail = url.partition(_SHORTS_MARKER)
    if not marker:
        raise ClassificationError(
            f"not a youtube shorts url: {url!r}", url=url, parsing_type=ParsingType.YOUTUBE
        )
    video_id = tail.split("?", 1)[0].split("#", 1)[0].strip("/")
    if not video_id:
        raise ClassificationError(
            f"empty shorts id in url: {url!r}", url=url, parsing_type=ParsingType.YOUTUBE
        )
    return video_id
