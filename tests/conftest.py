"""Shared pytest fixtures for the cachebox test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from cachebox.config.settings import CacheProviderConfig
from cachebox.providers.memory_cache import MemoryCacheProvider

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> CacheProviderConfig:
    """Prefix "App" with a ten second default TTL."""
    return CacheProviderConfig(app_prefix="App", timeout="0:0:10")


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "cache.db"


@pytest.fixture
def tinydb_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "cache.json"


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def memory_cache(
    app_config: CacheProviderConfig,
    clock: FakeClock,
) -> AsyncIterator[MemoryCacheProvider]:
    """Memory provider on a fake clock with the background sweeper disabled."""
    cache = MemoryCacheProvider(app_config, sweep_interval=None, clock=clock)
    yield cache
    await cache.close()
