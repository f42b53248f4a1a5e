"""Public interface definitions for cache providers.

Concrete adapters in :mod:`cachebox.providers` implement
:class:`ICacheProvider` and are chosen at startup by
:func:`cachebox.main.build_cache_provider`:

    Interface        →  Concrete implementations (in cachebox/providers/)
    ─────────────────────────────────────────────────────────────────────
    ICacheProvider   →  MemoryCacheProvider, SQLiteCacheProvider,
                        RedisCacheProvider, TinyDBCacheProvider
"""

from cachebox.interfaces.cache_provider import ICacheProvider

__all__ = ["ICacheProvider"]
