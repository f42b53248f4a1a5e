"""Cache providers.

Every provider implements :class:`~cachebox.interfaces.ICacheProvider` on top
of :class:`BaseCacheProvider`, which owns key composition, encoding and TTL
arithmetic.  The concrete classes only translate reads, upserts and deletes
onto their engine:

- **MemoryCacheProvider** -- dict in this process, lazy expiry on read plus
  a background sweeper thread.  Not shared across processes.
- **SQLiteCacheProvider** -- single ``cache`` table, native upsert.
- **RedisCacheProvider** -- native key TTLs on a Redis server.
- **TinyDBCacheProvider** -- JSON document file, native upsert.
"""

from cachebox.providers.base import BaseCacheProvider
from cachebox.providers.memory_cache import MemoryCacheProvider
from cachebox.providers.redis_cache import RedisCacheProvider
from cachebox.providers.sqlite_cache import SQLiteCacheProvider
from cachebox.providers.tinydb_cache import TinyDBCacheProvider

__all__ = [
    "BaseCacheProvider",
    "MemoryCacheProvider",
    "RedisCacheProvider",
    "SQLiteCacheProvider",
    "TinyDBCacheProvider",
]
