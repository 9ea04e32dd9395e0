"""Metrics normalization.

Pure helpers that turn raw provider counters into a canonical
:class:`~social_metrics.core.models.ResultRow`: derived engagement-rate and
virality percentages, and publish/parsing dates rendered as
``DD.MM.YYYY HH:MM`` in the reference time zone (Europe/Moscow by default).
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from functools import lru_cache
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from social_metrics.config.settings import get_settings
from social_metrics.core.models import ResultRow

logger = logging.getLogger(__name__)

DATE_FORMAT: str = "%d.%m.%Y %H:%M"
"""Sink date format (``DD.MM.YYYY HH:MM``)."""


# ---------------------------------------------------------------------------
# Derived ratios
# ---------------------------------------------------------------------------


def engagement_rate(likes: int, shares: int, comments: int, views: int) -> str:
    """Return ``(likes + shares + comments) / views`` as a percentage string.

    Returns ``"0"`` when the interaction sum or the view count is not
    positive.

    Example::

        >>> engagement_rate(3891, 7043, 18, 173514)
        '6.31%'
    """
    total = likes + shares + comments
    if total <= 0 or views <= 0:
        return "0"
    return f"{total / views * 100:.2f}%"


def virality(shares: int, views: int) -> str:
    """Return ``shares / views`` as a percentage string, ``"0"`` when undefined."""
    if shares <= 0 or views <= 0:
        return "0"
    return f"{shares / views * 100:.2f}%"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@lru_cache(maxsize=8)
def reference_zone(name: str | None = None) -> tzinfo | None:
    """Resolve the reference time zone.

    Args:
        name: IANA zone name.  Defaults to ``Settings.timezone_name``.

    Returns:
        The resolved zone, or ``None`` (meaning the local zone) when the
        zone database has no entry for *name*.  The fallback is logged once
        per zone name because the result is cached.
    """
    zone_name = name or get_settings().timezone_name
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "normalizer: time zone %r unavailable, falling back to local time", zone_name
        )
        return None


def format_timestamp(unix_seconds: int | float | None, zone: tzinfo | None = None) -> str:
    """Render a Unix timestamp as ``DD.MM.YYYY HH:MM`` in the reference zone.

    Args:
        unix_seconds: Seconds since the epoch.  ``None`` or non-positive
            values mean "unknown" and render as an empty string.
        zone: Optional explicit zone; defaults to :func:`reference_zone`.

    Returns:
        The formatted date, or ``""``.
    """
    if unix_seconds is None or unix_seconds <= 0:
        return ""
    tz = zone if zone is not None else reference_zone()
    moment = datetime.fromtimestamp(unix_seconds, tz=tz)
    return moment.strftime(DATE_FORMAT)


def parsing_date(zone: tzinfo | None = None) -> str:
    """Return the current time formatted like :func:`format_timestamp`."""
    tz = zone if zone is not None else reference_zone()
    return datetime.now(tz=tz).strftime(DATE_FORMAT)


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


def to_int(value: Any) -> int:
    """Convert a raw counter to ``int``, tolerating ``None`` and strings.

    Some providers return counters as strings (``"173514"``) or omit them.
    Unparseable values are logged and treated as 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).replace(",", "").strip()))
    except ValueError:
        logger.debug("normalizer: unparseable counter %r, using 0", value)
        return 0


def normalize_metrics(
    url: str,
    *,
    likes: Any = 0,
    shares: Any = 0,
    comments: Any = 0,
    views: Any = 0,
    published_at: int | float | str | None = None,
    description: str | None = "",
    account_url: str = "",
) -> ResultRow:
    """Build a canonical :class:`ResultRow` from raw provider counters.

    Args:
        url: Public URL of the item.
        likes: Raw like counter; ``None`` and missing values become 0.
        shares: Raw share/repost counter.
        comments: Raw comment counter.
        views: Raw view/play counter.
        published_at: Unix seconds, or an already formatted date string
            which is passed through unchanged.
        description: Caption or title text.
        account_url: Owning account URL for account-style jobs.

    Returns:
        A fully populated ``ResultRow`` with derived ``er``/``virality``
        and ``parsing_date`` set to now.
    """
    n_likes = to_int(likes)
    n_shares = to_int(shares)
    n_comments = to_int(comments)
    n_views = to_int(views)

    if isinstance(published_at, str):
        publish_date = published_at
    else:
        publish_date = format_timestamp(published_at)

    return ResultRow(
        url=url,
        description=description or "",
        views=n_views,
        likes=n_likes,
        comments=n_comments,
        shares=n_shares,
        er=engagement_rate(n_likes, n_shares, n_comments, n_views),
        virality=virality(n_shares, n_views),
        parsing_date=parsing_date(),
        publish_date=publish_date,
        account_url=account_url,
    )
