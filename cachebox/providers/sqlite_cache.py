"""SQLite-backed cache provider.

Persists cache records to a single ``cache`` table in a local SQLite
database.  Uses sync ``sqlite3`` with one connection per provider -- each
operation touches a single indexed row, so event-loop blocking is negligible.

Writes use SQLite's native ``INSERT ... ON CONFLICT DO UPDATE`` upsert, so
two concurrent ``set`` calls on the same new key cannot both try to insert.
Expired rows are purged once when the provider connects; afterwards
expiry is lazy (on read) only.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta
from pathlib import Path

import structlog

from cachebox.config.settings import CacheProviderConfig
from cachebox.models.cache_record import CacheRecord, format_instant, parse_instant, utc_now
from cachebox.providers.base import BaseCacheProvider, Clock
from cachebox.utils.errors import NotConnectedError

logger = structlog.get_logger(logger_name=__name__)

_MEMORY_DATABASE = ":memory:"

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS cache (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    valid_until TEXT NOT NULL
) WITHOUT ROWID;
"""

_CREATE_INDEX_SQL = "CREATE INDEX IF NOT EXISTS idx_cache_valid_until ON cache(valid_until);"

_UPSERT_SQL = """\
INSERT INTO cache (key, value, valid_until)
VALUES (?, ?, ?)
ON CONFLICT(key)
DO UPDATE SET value       = excluded.value,
              valid_until = excluded.valid_until;
"""

_SELECT_SQL = "SELECT value, valid_until FROM cache WHERE key = ?;"

_DELETE_SQL = "DELETE FROM cache WHERE key = ?;"

# Only delete the exact row that was observed expired, never a fresh rewrite.
_DELETE_EXPIRED_SQL = "DELETE FROM cache WHERE key = ? AND valid_until = ?;"

_PURGE_SQL = "DELETE FROM cache WHERE valid_until < ?;"


def database_path(connection_string: str) -> str:
    """Extract the database path from *connection_string*.

    Accepts a bare path, ``:memory:``, or ADO-style
    ``Data Source=cache.db;Mode=ReadWriteCreate`` strings.
    """
    text = connection_string.strip()
    if "=" not in text:
        return text
    for part in text.split(";"):
        name, _, value = part.partition("=")
        if name.strip().lower().replace(" ", "") in ("datasource", "filename"):
            return value.strip()
    return text


class SQLiteCacheProvider(BaseCacheProvider):
    """Cache provider persisting records to SQLite.

    Parameters
    ----------
    config:
        Provider configuration.  ``connection_string`` is the database path
        (or ``:memory:``); blank disables the provider.
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
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        self._db_path: str | None = None

        if not self._config.has_connection_string:
            logger.error(
                "sqlite_cache_not_configured",
                detail="SQLite is not configured properly. Caching disabled.",
            )
            return

        self._db_path = database_path(self._config.connection_string or "")
        conn: sqlite3.Connection | None = None
        try:
            logger.debug("sqlite_cache_connecting", path=self._db_path)
            if self._db_path != _MEMORY_DATABASE:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            # isolation_level=None -> autocommit; every statement is its own
            # transaction.
            conn = sqlite3.connect(self._db_path, check_same_thread=False, isolation_level=None)
            conn.execute(_CREATE_TABLE_SQL)
            conn.execute(_CREATE_INDEX_SQL)
            purged = conn.execute(_PURGE_SQL, (format_instant(self._clock()),)).rowcount
            self._conn = conn
            logger.info("sqlite_cache_connected", path=self._db_path, purged=purged)
        except Exception as exc:
            logger.error(
                "sqlite_cache_connect_failed",
                path=self._db_path,
                error=str(exc),
                detail="Could not establish connection. Caching disabled.",
            )
            if conn is not None:
                conn.close()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def close(self) -> None:
        """Close the database connection.  Safe to call twice."""
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            logger.debug("sqlite_cache_closed", path=self._db_path)

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Storage primitives
    # ------------------------------------------------------------------

    async def _read(self, full_key: str, now: datetime) -> str | None:
        row = self._fetchone("read", _SELECT_SQL, (full_key,))
        if row is None:
            return None

        value, valid_until = row
        record = CacheRecord(key=full_key, value=value, valid_until=parse_instant(valid_until))
        if record.is_expired(now):
            self._execute("expire", _DELETE_EXPIRED_SQL, (full_key, valid_until))
            logger.debug("cache_expired", provider="sqlite", key=full_key)
            return None
        return record.value

    async def _write(self, record: CacheRecord, ttl: timedelta | None) -> None:
        self._execute(
            "write",
            _UPSERT_SQL,
            (record.key, record.value, format_instant(record.valid_until)),
        )

    async def _delete(self, full_key: str) -> None:
        self._execute("delete", _DELETE_SQL, (full_key,))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def purge_expired(self) -> int:
        """Delete every expired row now.  Returns the number of rows removed."""
        self._ensure_connected()
        return self._execute("purge", _PURGE_SQL, (format_instant(self._clock()),))

    def _fetchone(self, operation: str, sql: str, params: tuple) -> tuple | None:
        with self._lock:
            conn = self._checked_connection()
            try:
                return conn.execute(sql, params).fetchone()
            except sqlite3.Error as exc:
                raise self._unavailable(operation, exc) from exc

    def _execute(self, operation: str, sql: str, params: tuple) -> int:
        with self._lock:
            conn = self._checked_connection()
            try:
                return conn.execute(sql, params).rowcount
            except sqlite3.Error as exc:
                raise self._unavailable(operation, exc) from exc

    def _checked_connection(self) -> sqlite3.Connection:
        # The connection is shared by every caller thread; callers hold _lock.
        conn = self._conn
        if conn is None:
            raise NotConnectedError(provider_name=self.get_provider_name())
        return conn
