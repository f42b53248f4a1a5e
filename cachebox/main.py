"""Provider factory: pick one cache backend at startup.

Application code calls :func:`create_cache_provider` (or
:func:`build_cache_provider` with an explicit configuration) once, keeps the
returned :class:`ICacheProvider`, and never refers to the concrete class
again.

Configuration problems (missing/malformed ``cache`` section, unknown backend
name) raise :class:`ConfigurationError` and abort provider setup.  Backend
connectivity problems never raise: the provider comes back disconnected and
the failure is logged, so a cache outage degrades to "always miss" instead
of taking the host application down.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from cachebox.config.loader import load_config, load_settings
from cachebox.config.settings import CacheProviderConfig, Settings
from cachebox.interfaces.cache_provider import ICacheProvider
from cachebox.providers.memory_cache import MemoryCacheProvider
from cachebox.providers.redis_cache import RedisCacheProvider
from cachebox.providers.sqlite_cache import SQLiteCacheProvider
from cachebox.providers.tinydb_cache import TinyDBCacheProvider
from cachebox.utils.errors import ConfigurationError
from cachebox.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)

PROVIDERS: dict[str, type[ICacheProvider]] = {
    "memory": MemoryCacheProvider,
    "sqlite": SQLiteCacheProvider,
    "redis": RedisCacheProvider,
    "tinydb": TinyDBCacheProvider,
}


def build_cache_provider(
    provider: str,
    config: CacheProviderConfig | None,
    **options: Any,
) -> ICacheProvider:
    """Construct the provider registered under *provider*.

    Args:
        provider: Backend name: ``memory``, ``sqlite``, ``redis`` or ``tinydb``.
        config: Provider configuration.  ``None`` means the cache section is
            missing, which is a configuration error.
        **options: Extra keyword arguments forwarded to the provider
            constructor (e.g. ``sweep_interval`` or ``client``).

    Returns:
        The provider, connected or not.

    Raises:
        ConfigurationError: If *config* is missing or *provider* is unknown.
    """
    if config is None:
        raise ConfigurationError("Cache configuration missing. Caching disabled.")

    provider_cls = PROVIDERS.get(provider.strip().lower())
    if provider_cls is None:
        raise ConfigurationError(
            f"Unknown cache provider {provider!r}; expected one of {sorted(PROVIDERS)}"
        )

    if provider_cls is not MemoryCacheProvider and not config.has_connection_string:
        logger.warning(
            "cache_connection_string_missing",
            provider=provider,
            detail="Cache configuration missing ConnectionString. Caching disabled.",
        )

    logger.info("cache_provider_connecting", provider=provider_cls.__name__)
    cache = provider_cls(config, **options)

    if cache.is_connected:
        logger.info("cache_provider_ready", provider=cache.get_provider_name())
    else:
        logger.error(
            "cache_provider_not_connected",
            provider=cache.get_provider_name(),
            detail=f"{provider_cls.__name__} is not connected.",
        )
    return cache


def create_cache_provider(
    settings: Settings | None = None,
    config_path: str | Path = "config/cache.yaml",
) -> ICacheProvider:
    """Read settings and YAML configuration, configure logging, build the provider.

    Raises:
        ConfigurationError: If the environment or the YAML file holds an
            invalid or missing cache configuration.
    """
    if settings is None:
        settings = load_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.app_env == "production")

    config = load_config(config_path, settings=settings)

    options: dict[str, Any] = {}
    if settings.provider == "memory":
        options["sweep_interval"] = settings.sweep_interval_seconds
    return build_cache_provider(settings.provider, config, **options)
