"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
All API keys and secrets are accessed exclusively through this module —
never call ``os.getenv`` directly elsewhere in the codebase.

Usage::

    from social_metrics.config.settings import get_settings

    settings = get_settings()
    key = settings.rapidapi_key
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration backed by environment variables and an optional .env file.

    Every field has a default so that the process can start (and the test
    suite can import the package) without any environment.  A missing API key
    is not a startup error: the provider that needs it raises
    :class:`~social_metrics.core.exceptions.ProviderConfigurationError` on
    first use, and every item routed to that provider becomes a placeholder row.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Provider credentials
    # ------------------------------------------------------------------

    rapidapi_key: str = ""
    """RapidAPI key shared by the Instagram, VK, TikTok and YouTube (yt-api) scrapers."""

    youtube_api_key: str = ""
    """Google API key for the YouTube Data API v3 (channel and playlist walking)."""

    vk_access_token: str = ""
    """VK API service token for ``video.get`` and ``groups.getById``."""

    vk_api_version: str = "5.199"

    google_credentials_file: str = "credentials.json"
    """Path to the Google service-account JSON used by the Sheets adapters."""

    # ------------------------------------------------------------------
    # HTTP transport
    # ------------------------------------------------------------------

    request_timeout_seconds: float = 60.0
    """Upper bound on a single provider call (read + write + pool)."""

    connect_timeout_seconds: float = 10.0
    """Upper bound on connection setup for a provider call."""

    # ------------------------------------------------------------------
    # Throttling
    # ------------------------------------------------------------------

    batch_size: int = 50
    """Number of input URLs processed between two progress updates."""

    instagram_item_delay: float = 0.55
    """Fixed sleep before every single-item Instagram call (seconds)."""

    vk_item_delay: float = 0.25
    """Fixed sleep before every single-item VK call (seconds)."""

    youtube_item_delay: float = 0.0

    tiktok_item_delay: float = 0.0

    page_delay: float = 0.5
    """Fixed sleep between two account pages of the same walk (seconds)."""

    # ------------------------------------------------------------------
    # Sheets layout
    # ------------------------------------------------------------------

    data_sheet_name: str = "Сырые данные"
    """Sheet receiving rows produced by URL jobs."""

    account_sheet_name: str = "Аккаунты"
    """Sheet receiving rows produced by account jobs."""

    progress_sheet_name: str = "Прогресс"
    """Sheet holding the one-row job progress record."""

    timezone_name: str = "Europe/Moscow"
    """Reference zone for publish/parsing dates written to the sink."""

    # ------------------------------------------------------------------
    # Celery task queue
    # ------------------------------------------------------------------

    celery_broker_url: str = "redis://localhost:6379/1"
    """Redis URL used as Celery's message broker."""

    celery_result_backend: str = "redis://localhost:6379/2"
    """Redis URL used to store job results for status polling."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Social Metrics Ingestion"

    debug: bool = False

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
