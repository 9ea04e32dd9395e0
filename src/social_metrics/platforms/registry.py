"""Provider registry for dynamic discovery and registration of platform providers.

Providers register themselves on import using the ``@register`` decorator.
The registry is a module-level singleton that maps a
:class:`~social_metrics.core.models.ParsingType` to a ``PlatformProvider``
subclass, so adding a platform means registering a class, not editing a
central dispatch.

Example — looking up and building providers::

    from social_metrics.platforms.registry import autodiscover, build_providers

    autodiscover()
    providers = build_providers(settings)
    provider = providers[ParsingType.INSTAGRAM]
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import pkgutil
from collections.abc import MutableMapping
from typing import TYPE_CHECKING

from social_metrics.core.models import ParsingType

if TYPE_CHECKING:
    import httpx

    from social_metrics.config.settings import Settings
    from social_metrics.platforms.base import PlatformProvider

logger = logging.getLogger(__name__)

# Registry singleton: ParsingType -> PlatformProvider subclass
_REGISTRY: dict[ParsingType, type[PlatformProvider]] = {}

PROVIDER_DESCRIPTIONS: dict[str, str] = {
    "instagram": "Instagram reels via the real-time-instagram-scraper RapidAPI",
    "vk": "VK clips via the VK API and the vk-scraper RapidAPI",
    "youtube": "YouTube shorts via yt-api (RapidAPI) and the YouTube Data API v3",
    "tiktok": "TikTok videos via the tiktok-scraper7 RapidAPI",
}


def register(cls: type[PlatformProvider]) -> type[PlatformProvider]:
    """Decorator that registers a ``PlatformProvider`` subclass.

    If a provider for the same ``parsing_type`` is already registered, the
    new registration overwrites the old one and a warning is emitted.

    Args:
        cls: ``PlatformProvider`` subclass to register.

    Returns:
        The same class (decorator pass-through).
    """
    parsing_type: ParsingType = cls.parsing_type
    if parsing_type in _REGISTRY:
        logger.warning(
            "Parsing type '%s' is already registered (was %s). Overwriting with %s.",
            parsing_type.value,
            _REGISTRY[parsing_type].__qualname__,
            cls.__qualname__,
        )
    _REGISTRY[parsing_type] = cls
    logger.debug(
        "Registered platform provider: parsing_type=%s class=%s",
        parsing_type.value,
        cls.__qualname__,
    )
    return cls


def get_provider(parsing_type: ParsingType) -> type[PlatformProvider]:
    """Retrieve a registered provider class by parsing type.

    Raises:
        KeyError: If no provider is registered for *parsing_type*.
    """
    try:
        return _REGISTRY[parsing_type]
    except KeyError:
        registered = sorted(pt.value for pt in _REGISTRY)
        raise KeyError(
            f"No provider registered for parsing type '{parsing_type.value}'. "
            f"Registered: {registered}. "
            "Did you forget to call autodiscover() or import the provider module?"
        ) from None


def list_providers() -> list[dict[str, str]]:
    """Return metadata for all registered providers, ordered by platform name."""
    return [
        {
            "platform_name": cls.platform_name,
            "parsing_type": cls.parsing_type.value,
            "quota_family": cls.quota_family,
            "description": PROVIDER_DESCRIPTIONS.get(cls.platform_name, ""),
            "provider_class": f"{cls.__module__}.{cls.__qualname__}",
        }
        for cls in sorted(_REGISTRY.values(), key=lambda c: c.platform_name)
    ]


def build_providers(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    locks: MutableMapping[str, asyncio.Lock] | None = None,
) -> dict[ParsingType, PlatformProvider]:
    """Instantiate one provider per registered parsing type.

    Providers in the same ``quota_family`` receive the same lock.  Pass a
    long-lived *locks* mapping to share the locks across jobs running in
    the same event loop (the API process does); otherwise fresh locks are
    created, which is what a one-job-per-``asyncio.run`` worker wants.

    Args:
        settings: Service settings forwarded to every provider.
        http_client: Optional shared ``httpx.AsyncClient``.
        locks: Optional ``quota_family -> Lock`` mapping to draw from.

    Returns:
        Mapping ``ParsingType -> provider instance``.
    """
    autodiscover()
    family_locks: MutableMapping[str, asyncio.Lock] = locks if locks is not None else {}
    providers: dict[ParsingType, PlatformProvider] = {}
    for parsing_type, cls in _REGISTRY.items():
        if cls.quota_family not in family_locks:
            family_locks[cls.quota_family] = asyncio.Lock()
        providers[parsing_type] = cls(
            settings=settings,
            http_client=http_client,
            quota_lock=family_locks[cls.quota_family],
        )
    return providers


def autodiscover() -> None:
    """Import all ``provider`` modules to trigger ``@register`` decorators.

    Walks the ``social_metrics.platforms`` package tree.  Idempotent.
    Modules that fail to import are logged and skipped.
    """
    import social_metrics.platforms as platforms_pkg

    prefix = platforms_pkg.__name__ + "."
    for _finder, module_name, _is_pkg in pkgutil.walk_packages(
        path=platforms_pkg.__path__, prefix=prefix
    ):
        if module_name.endswith(".provider"):
            try:
                importlib.import_module(module_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Failed to import platform provider module '%s': %s",
                    module_name,
                    exc,
                    exc_info=True,
                )
