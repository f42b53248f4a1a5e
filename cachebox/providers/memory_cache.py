"""In-memory cache provider with per-item TTL and a background sweeper.

Records live in a plain ``dict`` keyed by composed key.  Expiry is enforced
twice:

* **Lazily** on read -- a ``get`` that finds an expired record removes it
  and reports a miss, so callers never observe a stale value regardless of
  sweep timing.
* **Actively** by a per-instance sweeper thread that evicts expired records
  every ``sweep_interval`` seconds, so keys written once and never read
  again do not accumulate.

Concurrency model
-----------------
Single dict operations are atomic in CPython, but eviction is a
compare-and-delete: the record seen as expired must still be the one stored,
otherwise a concurrent ``set`` would be thrown away.  Every mutation therefore
runs under ``_mutex``, which is held for exactly one dict operation and never
across a sweep scan.  The sweep works from a snapshot copy, so a large or
slow scan never stalls a foreground ``get``/``set``.

The sweep itself is self-exclusive through ``_sweep_guard``: a sweep that
cannot take the guard without blocking returns immediately instead of
running alongside (or queueing behind) the one already in flight.  Both locks
belong to the instance, so separate providers never serialize against each
other.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

import structlog

from cachebox.config.settings import CacheProviderConfig
from cachebox.models.cache_record import CacheRecord, utc_now
from cachebox.providers.base import BaseCacheProvider, Clock

logger = structlog.get_logger(logger_name=__name__)

#: Seconds between background sweeps.
DEFAULT_SWEEP_INTERVAL = 10.0


class MemoryCacheProvider(BaseCacheProvider):
    """Process-local cache backed by a dict of :class:`CacheRecord`.

    Parameters
    ----------
    config:
        Provider configuration; ``connection_string`` is ignored.
    sweep_interval:
        Seconds between background sweeps.  ``None`` disables the sweeper
        thread; expired records are then only removed on read or by an
        explicit :meth:`remove_expired` call.  A non-positive value is
        logged and replaced by :data:`DEFAULT_SWEEP_INTERVAL`.
    clock:
        Source of the current aware UTC time.
    """

    def __init__(
        self,
        config: CacheProviderConfig | None = None,
        *,
        sweep_interval: float | None = DEFAULT_SWEEP_INTERVAL,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config, clock=clock)
        if sweep_interval is not None and not sweep_interval > 0:
            logger.warning(
                "memory_cache_sweep_interval_invalid",
                sweep_interval=sweep_interval,
                fallback=DEFAULT_SWEEP_INTERVAL,
            )
            sweep_interval = DEFAULT_SWEEP_INTERVAL

        self._sweep_interval = sweep_interval
        self._records: dict[str, CacheRecord] | None = None
        self._mutex = threading.Lock()
        self._sweep_guard = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

        try:
            logger.debug("memory_cache_configuring")
            self._records = {}
            if sweep_interval is not None:
                self._start_sweeper(sweep_interval)
            logger.debug("memory_cache_ready", sweep_interval=sweep_interval)
        except Exception as exc:
            logger.error(
                "memory_cache_init_failed",
                error=str(exc),
                detail="Caching disabled.",
            )
            self._records = None
            self._stop.set()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._records is not None and not self._stop.is_set()

    @property
    def sweep_interval(self) -> float | None:
        return self._sweep_interval

    def __len__(self) -> int:
        """Number of stored records, including expired ones not yet evicted."""
        return len(self._records) if self._records is not None else 0

    async def close(self) -> None:
        """Stop the sweeper and drop all records.  Safe to call twice."""
        if self._stop.is_set() and self._sweeper is None:
            return
        self._stop.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=1.0)
        if self._records is not None:
            with self._mutex:
                self._records.clear()
        logger.debug("memory_cache_closed")

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _read(self, full_key: str, now: datetime) -> str | None:
        record = self._records.get(full_key)
        if record is None:
            return None
        if record.is_expired(now):
            # Losing this race to the sweeper or another reader is fine.
            self._discard(full_key, record)
            logger.debug("cache_expired", provider="memory", key=full_key)
            return None
        return record.value

    async def _write(self, record: CacheRecord, ttl: timedelta | None) -> None:
        with self._mutex:
            self._records[record.key] = record

    async def _delete(self, full_key: str) -> None:
        with self._mutex:
            self._records.pop(full_key, None)

    # ------------------------------------------------------------------
    # Expiry sweep
    # ------------------------------------------------------------------

    def remove_expired(self) -> int | None:
        """Evict every expired record.

        Returns
        -------
        int or None
            Number of records evicted, or ``None`` if another sweep was
            already running and this one was skipped.
        """
        records = self._records
        if records is None:
            return 0
        if not self._sweep_guard.acquire(blocking=False):
            logger.debug("cache_sweep_skipped", provider="memory")
            return None
        try:
            now = self._clock()
            evicted = 0
            for key, record in records.copy().items():
                if record.is_expired(now) and self._discard(key, record):
                    evicted += 1
            if evicted:
                logger.debug(
                    "cache_sweep",
                    provider="memory",
                    evicted=evicted,
                    remaining=len(records),
                )
            return evicted
        finally:
            self._sweep_guard.release()

    def _discard(self, key: str, record: CacheRecord) -> bool:
        """Delete *key* only if it still holds exactly *record*."""
        with self._mutex:
            if self._records is not None and self._records.get(key) is record:
                del self._records[key]
                return True
        return False

    def _start_sweeper(self, interval: float) -> None:
        self._sweeper = threading.Thread(
            target=self._run_sweeper,
            args=(interval,),
            name=f"cachebox-memory-sweeper-{id(self):x}",
            daemon=True,
        )
        self._sweeper.start()

    def _run_sweeper(self, interval: float) -> None:
        # Sweeps run inline, so close() joining this thread also waits for an
        # in-flight sweep.  A manual remove_expired() overlapping a tick is
        # skipped by the guard.
        while not self._stop.wait(interval):
            self.remove_expired()
