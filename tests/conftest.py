"""Shared pytest fixtures for the social metrics tests.

Fixture summary
---------------
settings          — Settings with test credentials and every delay set to 0.
bare_settings     — Settings with no credentials at all.
settings_factory  — Builds Settings with custom overrides.

Every test runs without network access, Google credentials, Redis or a
Celery worker: HTTP is mocked with respx, Sheets with ``MagicMock`` and
Celery is patched at the call site.
"""

from __future__ import annotations

import pytest

from social_metrics.config.settings import Settings

TEST_RAPIDAPI_KEY = "test-rapidapi-key"
TEST_VK_TOKEN = "test-vk-token"


def make_settings(**overrides: object) -> Settings:
    """Build a Settings instance that ignores any local .env file."""
    values: dict[str, object] = {
        "rapidapi_key": TEST_RAPIDAPI_KEY,
        "youtube_api_key": "",
        "vk_access_token": TEST_VK_TOKEN,
        "instagram_item_delay": 0.0,
        "vk_item_delay": 0.0,
        "youtube_item_delay": 0.0,
        "tiktok_item_delay": 0.0,
        "page_delay": 0.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def bare_settings() -> Settings:
    return make_settings(rapidapi_key="", youtube_api_key="", vk_access_token="")


@pytest.fixture
def settings_factory():  # type: ignore[no-untyped-def]
    """Return :func:`make_settings` for tests that need custom overrides."""
    return make_settings
