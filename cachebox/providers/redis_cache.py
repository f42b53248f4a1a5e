"""Redis-backed cache provider.

Uses the synchronous ``redis`` client; every blocking call is wrapped in
``asyncio.to_thread`` so the event loop stays free while the command is in
flight.  Redis expires keys natively, so there is neither a startup purge nor
a lazy delete on read: an expired key simply reads back as absent.

``SET`` is atomic and always overwrites, which gives upsert semantics
without an existence check.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any

import redis
import structlog

from cachebox.config.settings import CacheProviderConfig
from cachebox.models.cache_record import NEVER_EXPIRES, CacheRecord, utc_now
from cachebox.providers.base import BaseCacheProvider, Clock

logger = structlog.get_logger(logger_name=__name__)

#: Seconds to wait for the initial TCP connection before giving up.
_CONNECT_TIMEOUT_S = 5.0

# TTLs beyond this are stored without expiry; Redis rejects PX values that
# overflow its internal millisecond clock.
_MAX_TTL = timedelta(days=365 * 100)


class RedisCacheProvider(BaseCacheProvider):
    """Cache provider backed by a Redis server.

    Parameters
    ----------
    config:
        Provider configuration.  ``connection_string`` is a Redis URL such as
        ``redis://localhost:6379/0``; blank disables the provider.
    client:
        Pre-built client (e.g. ``fakeredis.FakeRedis``).  When given, the
        connection string is not used.  The client must be created with
        ``decode_responses=True``.
    clock:
        Source of the current aware UTC time.
    """

    def __init__(
        self,
        config: CacheProviderConfig | None = None,
        *,
        client: redis.Redis | None = None,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config, clock=clock)
        self._client: redis.Redis | None = None

        if client is None and not self._config.has_connection_string:
            logger.error(
                "redis_cache_not_configured",
                detail="Redis is not configured properly. Caching disabled.",
            )
            return

        try:
            logger.debug("redis_cache_connecting")
            if client is None:
                client = redis.Redis.from_url(
                    (self._config.connection_string or "").strip(),
                    decode_responses=True,
                    socket_connect_timeout=_CONNECT_TIMEOUT_S,
                )
            client.ping()
            self._client = client
            logger.info("redis_cache_connected")
        except Exception as exc:
            logger.error(
                "redis_cache_connect_failed",
                error=str(exc),
                detail="Could not establish connection. Caching disabled.",
            )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        """Close the client's connection pool.  Safe to call twice."""
        client, self._client = self._client, None
        if client is not None:
            await asyncio.to_thread(client.close)
            logger.debug("redis_cache_closed")

    def get_provider_name(self) -> str:
        return "redis"

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _read(self, full_key: str, now: datetime) -> str | None:
        value = await self._call("read", "get", full_key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def _write(self, record: CacheRecord, ttl: timedelta | None) -> None:
        if ttl is None or record.valid_until == NEVER_EXPIRES or ttl >= _MAX_TTL:
            await self._call("write", "set", record.key, record.value)
            return

        # Round sub-millisecond TTLs up so a positive timeout never means
        # "no expiry".
        px = -(-ttl // timedelta(milliseconds=1))
        if px <= 0:
            # Already expired: the latest write still wins, as absence.
            await self._call("write", "delete", record.key)
            return
        await self._call("write", "set", record.key, record.value, px=px)

    async def _delete(self, full_key: str) -> None:
        await self._call("delete", "delete", full_key)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call(self, operation: str, command: str, *args: Any, **kwargs: Any) -> Any:
        client = self._client
        if client is None:
            self._ensure_connected()
        try:
            return await asyncio.to_thread(getattr(client, command), *args, **kwargs)
        except redis.RedisError as exc:
            raise self._unavailable(operation, exc) from exc
