"""Application-wide exception hierarchy for the social metrics service.

All custom exceptions subclass ``SocialMetricsError``, enabling consistent
error handling and structured logging across the pipeline.

Hierarchy::

    SocialMetricsError
    ├── ClassificationError          (url, parsing_type)
    ├── ProviderConfigurationError   (platform)
    ├── FetchError                   (platform, identifier, status_code)
    │   └── PaginationError          (collected_count)
    └── SinkError                    (operation)

None of these is fatal to a job: the orchestrator turns each one into a
skipped item, a placeholder row, or a log line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from social_metrics.core.models import ParsingType


class SocialMetricsError(Exception):
    """Base class for all social metrics exceptions."""


class ClassificationError(SocialMetricsError):
    """Raised when a URL matches no known platform pattern or identifier shape.

    Args:
        message: Human-readable description of the failure.
        url: The URL that could not be classified.
        parsing_type: The platform the URL was attributed to, if any.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        parsing_type: ParsingType | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.parsing_type = parsing_type


class ProviderConfigurationError(SocialMetricsError):
    """Raised when a provider cannot run because its API key is not configured.

    Raised before any network I/O and never retried.

    Args:
        platform: Platform whose configuration is incomplete.
        setting: Name of the missing setting (e.g. ``"rapidapi_key"``).
    """

    def __init__(self, platform: str, setting: str) -> None:
        super().__init__(f"{platform}: {setting.upper()} is not set")
        self.platform = platform
        self.setting = setting


class FetchError(SocialMetricsError):
    """Raised when a provider call fails in a recoverable way.

    Covers non-2xx HTTP statuses, transport errors, JSON decode failures and
    provider-reported error statuses.

    Args:
        message: Human-readable description of the failure.
        platform: Platform identifier (e.g. ``"instagram"``).
        identifier: URL, video id or account id the call was about.
        status_code: HTTP status code when the failure was an HTTP error.
    """

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        identifier: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.platform = platform
        self.identifier = identifier
        self.status_code = status_code


class PaginationError(FetchError):
    """Raised (or returned) when a page fetch fails in the middle of an account walk.

    Args:
        message: Human-readable description of the failure.
        collected_count: Number of items collected before the failing page.
        platform: Platform identifier.
        identifier: Account identifier being walked.
    """

    def __init__(
        self,
        message: str,
        collected_count: int = 0,
        platform: str | None = None,
        identifier: str | None = None,
    ) -> None:
        super().__init__(message, platform=platform, identifier=identifier)
        self.collected_count = collected_count


class SinkError(SocialMetricsError):
    """Raised when the tabular sink or the progress store rejects an operation.

    Args:
        message: Description of the failure.
        operation: Sink operation name (e.g. ``"insert_data"``, ``"update_progress"``).
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
