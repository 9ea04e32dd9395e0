"""Canonical record shapes shared by every layer of the ingestion pipeline.

``UrlInfo`` and ``AccountInfo`` are created once per job from the URL source
and consumed once by the orchestrator.  ``ResultRow`` is the single output
shape produced by every platform provider, regardless of which third-party
API it came from.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

MAX_COUNT: int = 10_000
"""Upper bound on the number of items collected for one account."""

DEFAULT_ACCOUNT_COUNT: int = 12
"""Depth used for account jobs when the sheet leaves the count empty."""

DEFAULT_VK_GROUP_COUNT: int = 10
"""Depth used for VK group jobs when the sheet leaves the count empty."""

DEFAULT_SINGLE_ACCOUNT_COUNT: int = 20
"""Depth used for synchronous single-account lookups."""

UNKNOWN_PUBLISH_DATE: str = "unknown"
"""Publish date written on placeholder rows."""


class ParsingType(str, Enum):
    """Closed set of source platforms."""

    INSTAGRAM = "instagram"
    VK = "vk"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    TELEGRAM = "telegram"
    UNKNOWN = "unknown"


class UrlInfo(BaseModel):
    """One input item read from the URL source.

    ``count`` is the requested depth for account-style inputs; ``0`` means
    "use the call site default".
    """

    url: str
    count: int = 0


class AccountInfo(BaseModel):
    """Resolved form of an account-type input."""

    identification: str
    parsing_type: ParsingType
    account_url: str
    count: int


class GroupInfoPair(BaseModel):
    """A VK group handle resolved to its (negative) numeric owner id."""

    owner_id: str
    group_url: str
    count: int


class ResultRow(BaseModel):
    """Canonical engagement record written to the sink.

    ``er`` and ``virality`` are pre-formatted percentage strings so the sink
    never sees a locale-dependent float.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    description: str = ""
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    er: str = "0"
    virality: str = "0"
    parsing_date: str = ""
    publish_date: str = ""
    account_url: str = ""

    @classmethod
    def placeholder(cls, url: str, account_url: str = "") -> ResultRow:
        """Build the zero-metric row substituted for a failed fetch.

        Args:
            url: The input URL the failed fetch was about.  Never empty on
                a placeholder, so the sink still receives one row per input.
            account_url: Owning account URL for account-style jobs.

        Returns:
            A ``ResultRow`` with zero counters, ``"0"`` ratios and
            ``publish_date == "unknown"``.
        """
        # Imported here: the normalizer imports this module.
        from social_metrics.core.normalizer import parsing_date

        return cls(
            url=url,
            account_url=account_url,
            er="0",
            virality="0",
            parsing_date=parsing_date(),
            publish_date=UNKNOWN_PUBLISH_DATE,
        )

    @property
    def is_placeholder(self) -> bool:
        return self.publish_date == UNKNOWN_PUBLISH_DATE

    def to_sheet_values(self) -> list[str | int]:
        """Return the row in the URL-job sheet column order."""
        return [
            self.url,
            self.views,
            self.likes,
            self.comments,
            self.shares,
            self.er,
            self.virality,
            self.parsing_date,
            self.publish_date,
            self.description,
        ]

    def to_account_sheet_values(self) -> list[str | int]:
        """Return the row in the account-job sheet column order (account URL first)."""
        return [self.account_url, *self.to_sheet_values()]


def clamp_count(requested: int, default: int) -> int:
    """Clamp a requested collection depth to ``[1, MAX_COUNT]``.

    Args:
        requested: Depth read from the input; ``<= 0`` means unset.
        default: Call-site default substituted for unset depths.

    Returns:
        ``default`` when ``requested <= 0``, otherwise
        ``min(requested, MAX_COUNT)``.
    """
    if requested <= 0:
        return default
    return min(requested, MAX_COUNT)
