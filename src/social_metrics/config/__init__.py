"""Configuration package for the social metrics service.

Re-exports the settings entry points so that callers can write::

    from social_metrics.config import get_settings
"""

from __future__ import annotations

from social_metrics.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
