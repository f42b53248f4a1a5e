"""TinyDB-backed cache provider (embedded document store).

Stores one JSON document per record in the ``cache_records`` table of a
TinyDB file::

    {"key": "App:Users:user:1", "value": "{...}", "valid_until": "2026-...Z"}

Writes go through TinyDB's native ``Table.upsert`` keyed on ``key``, which
also keeps ``key`` unique in the table.  TinyDB is not thread-safe, so all
access to the database handle is serialized by a per-provider lock.

Expired documents are purged once when the provider opens the file;
afterwards expiry is lazy (on read) only.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, TypeVar

import structlog
from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage
from tinydb.table import Table

from cachebox.config.settings import CacheProviderConfig
from cachebox.models.cache_record import CacheRecord, format_instant, parse_instant, utc_now
from cachebox.providers.base import BaseCacheProvider, Clock

logger = structlog.get_logger(logger_name=__name__)

_R = TypeVar("_R")

TABLE_NAME = "cache_records"

_MEMORY_DATABASE = ":memory:"

_Record = Query()


class TinyDBCacheProvider(BaseCacheProvider):
    """Cache provider persisting records as TinyDB documents.

    Parameters
    ----------
    config:
        Provider configuration.  ``connection_string`` is the JSON file
        path, or ``:memory:`` for a non-persistent in-process database;
        blank disables the provider.
    clock:
        Source of the current aware UTC time.
    """

    def __init__(
        self,
        config: CacheProviderConfig | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config, clock=clock)
        self._db: TinyDB | None = None
        self._table: Table | None = None
        self._lock = threading.Lock()
        self._path: str | None = None

        if not self._config.has_connection_string:
            logger.error(
                "tinydb_cache_not_configured",
                detail="TinyDB is not configured properly. Caching disabled.",
            )
            return

        self._path = (self._config.connection_string or "").strip()
        db: TinyDB | None = None
        try:
            logger.debug("tinydb_cache_opening", path=self._path)
            if self._path == _MEMORY_DATABASE:
                db = TinyDB(storage=MemoryStorage)
            else:
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
                db = TinyDB(self._path, encoding="utf-8")
            table = db.table(TABLE_NAME)
            purged = table.remove(_Record.valid_until < format_instant(self._clock()))
            self._db, self._table = db, table
            logger.info("tinydb_cache_opened", path=self._path, purged=len(purged))
        except Exception as exc:
            logger.error(
                "tinydb_cache_open_failed",
                path=self._path,
                error=str(exc),
                detail="Could not establish connection. Caching disabled.",
            )
            if db is not None:
                db.close()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._table is not None

    async def close(self) -> None:
        """Flush and close the database file.  Safe to call twice."""
        with self._lock:
            db, self._db, self._table = self._db, None, None
        if db is not None:
            db.close()
            logger.debug("tinydb_cache_closed", path=self._path)

    def get_provider_name(self) -> str:
        return "tinydb"

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _read(self, full_key: str, now: datetime) -> str | None:
        document = self._run("read", lambda table: table.get(_Record.key == full_key))
        if document is None:
            return None

        valid_until = document["valid_until"]
        record = CacheRecord(
            key=full_key,
            value=document["value"],
            valid_until=parse_instant(valid_until),
        )
        if record.is_expired(now):
            # Only the document observed expired; a concurrent rewrite survives.
            self._run(
                "expire",
                lambda table: table.remove(
                    (_Record.key == full_key) & (_Record.valid_until == valid_until)
                ),
            )
            logger.debug("cache_expired", provider="tinydb", key=full_key)
            return None
        return record.value

    async def _write(self, record: CacheRecord, ttl: timedelta | None) -> None:
        document = {
            "key": record.key,
            "value": record.value,
            "valid_until": format_instant(record.valid_until),
        }
        self._run("write", lambda table: table.upsert(document, _Record.key == record.key))

    async def _delete(self, full_key: str) -> None:
        self._run("delete", lambda table: table.remove(_Record.key == full_key))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def purge_expired(self) -> int:
        """Delete every expired document now.  Returns the number removed."""
        self._ensure_connected()
        cutoff = format_instant(self._clock())
        return len(self._run("purge", lambda table: table.remove(_Record.valid_until < cutoff)))

    def _run(self, operation: str, action: Callable[[Table], _R]) -> _R:
        with self._lock:
            table = self._table
            if table is None:
                self._ensure_connected()
            try:
                return action(table)
            except (OSError, ValueError) as exc:
                raise self._unavailable(operation, exc) from exc
