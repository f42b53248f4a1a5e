"""Shared behaviour for every cache provider.

:class:`BaseCacheProvider` implements the public :class:`ICacheProvider`
operations once: argument validation, the not-connected check, key
composition, value encoding/decoding and TTL arithmetic.  Concrete providers
only translate three storage primitives onto their engine:

    _read(full_key, now)  -> stored string, or None when absent/expired
    _write(record, ttl)   -> upsert the record
    _delete(full_key)     -> remove the record (no-op if absent)

Operation order is fixed: validate arguments, then fail fast with
:class:`NotConnectedError`, then compose the key and touch the backend.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, TypeVar

import structlog

from cachebox.config.durations import to_timedelta
from cachebox.config.settings import CacheProviderConfig
from cachebox.interfaces.cache_provider import ICacheProvider
from cachebox.models.cache_record import CacheRecord, expiry_from, utc_now
from cachebox.utils.codec import decode, encode
from cachebox.utils.errors import BackendUnavailableError, DecodeError, NotConnectedError
from cachebox.utils.keys import compose_key

_T = TypeVar("_T")

Clock = Callable[[], datetime]

logger = structlog.get_logger(logger_name=__name__)


class BaseCacheProvider(ICacheProvider):
    """Template for concrete providers.

    Parameters
    ----------
    config:
        Provider configuration, read once here and never again.  ``None``
        uses defaults (no prefix, no connection string, no default TTL).
    clock:
        Callable returning the current aware UTC time.  Tests inject a fake
        clock to step through expiry without sleeping.
    """

    def __init__(
        self,
        config: CacheProviderConfig | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config if config is not None else CacheProviderConfig()
        self._prefix = self._config.prefix
        self._default_timeout = self._config.default_timeout
        self._clock = clock

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    @property
    def default_timeout(self) -> timedelta | None:
        """The TTL applied when :meth:`set` is called without a timeout."""
        return self._default_timeout

    def compose_key(self, key: str, namespace: str | None = None) -> str:
        """Return the storage key this provider uses for *key*."""
        return compose_key(key, namespace, self._prefix)

    async def get(self, key: str, namespace: str | None = None) -> str | None:
        return await self.get_as(key, str, namespace)

    async def get_as(
        self,
        key: str,
        model: type[_T],
        namespace: str | None = None,
    ) -> _T | None:
        full_key = self.compose_key(key, namespace)
        self._ensure_connected()

        raw = await self._read(full_key, self._clock())
        if raw is None:
            logger.debug("cache_miss", provider=self.get_provider_name(), key=full_key)
            return None

        try:
            value = decode(raw, model)
        except DecodeError as exc:
            logger.debug(
                "cache_decode_failed",
                provider=self.get_provider_name(),
                key=full_key,
                error=str(exc),
            )
            return None

        logger.debug("cache_hit", provider=self.get_provider_name(), key=full_key)
        return value

    async def remove(self, key: str, namespace: str | None = None) -> bool:
        full_key = self.compose_key(key, namespace)
        self._ensure_connected()

        await self._delete(full_key)
        logger.debug("cache_delete", provider=self.get_provider_name(), key=full_key)
        return True

    async def set(
        self,
        key: str,
        value: Any,
        timeout: timedelta | float | None = None,
        namespace: str | None = None,
    ) -> None:
        full_key = self.compose_key(key, namespace)
        payload = encode(value)
        ttl = to_timedelta(timeout)
        self._ensure_connected()

        if ttl is None:
            ttl = self._default_timeout
        record = CacheRecord(
            key=full_key,
            value=payload,
            valid_until=expiry_from(self._clock(), ttl),
        )
        await self._write(record, ttl)
        logger.debug(
            "cache_set",
            provider=self.get_provider_name(),
            key=full_key,
            ttl_seconds=ttl.total_seconds() if ttl is not None else None,
        )

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    @abstractmethod
    async def _read(self, full_key: str, now: datetime) -> str | None:
        """Return the live value for *full_key*, removing it if expired."""

    @abstractmethod
    async def _write(self, record: CacheRecord, ttl: timedelta | None) -> None:
        """Insert or wholly replace the record stored under ``record.key``."""

    @abstractmethod
    async def _delete(self, full_key: str) -> None:
        """Remove *full_key*; absent keys are not an error."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> None:
        if not self.is_connected:
            raise NotConnectedError(provider_name=self.get_provider_name())

    def _unavailable(self, operation: str, exc: Exception) -> BackendUnavailableError:
        """Build the error raised when the engine fails mid-operation."""
        logger.warning(
            "cache_backend_error",
            provider=self.get_provider_name(),
            operation=operation,
            error=str(exc),
        )
        return BackendUnavailableError(
            f"{operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )
