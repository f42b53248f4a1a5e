"""cachebox -- one async key-value cache contract, several storage engines.

Typical use::

    from cachebox import create_cache_provider

    cache = create_cache_provider()          # backend chosen by CACHE_PROVIDER
    await cache.set("user:1", user, namespace="Users")
    user = await cache.get_as("user:1", User, namespace="Users")
"""

from cachebox.config import CacheProviderConfig, Settings, load_config
from cachebox.interfaces import ICacheProvider
from cachebox.main import build_cache_provider, create_cache_provider
from cachebox.providers import (
    MemoryCacheProvider,
    RedisCacheProvider,
    SQLiteCacheProvider,
    TinyDBCacheProvider,
)
from cachebox.utils.errors import (
    BackendUnavailableError,
    CacheBoxError,
    ConfigurationError,
    InvalidArgumentError,
    NotConnectedError,
)

__version__ = "0.1.0"

__all__ = [
    "BackendUnavailableError",
    "CacheBoxError",
    "CacheProviderConfig",
    "ConfigurationError",
    "ICacheProvider",
    "InvalidArgumentError",
    "MemoryCacheProvider",
    "NotConnectedError",
    "RedisCacheProvider",
    "SQLiteCacheProvider",
    "Settings",
    "TinyDBCacheProvider",
    "build_cache_provider",
    "create_cache_provider",
    "load_config",
]
