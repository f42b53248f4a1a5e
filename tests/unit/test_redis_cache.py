"""Unit tests for RedisCacheProvider, backed by fakeredis."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import fakeredis
import pytest
import pytest_asyncio
import redis

from cachebox.config.settings import CacheProviderConfig
from cachebox.providers.redis_cache import RedisCacheProvider
from cachebox.utils.errors import BackendUnavailableError, NotConnectedError


@pytest.fixture
def fake_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture
async def cache(app_config: CacheProviderConfig, fake_client: fakeredis.FakeRedis):
    provider = RedisCacheProvider(app_config, client=fake_client)
    yield provider
    await provider.close()


class TestRedisCacheProvider:
    @pytest.mark.asyncio
    async def test_connected(self, cache: RedisCacheProvider) -> None:
        assert cache.is_connected is True
        assert cache.get_provider_name() == "redis"

    @pytest.mark.asyncio
    async def test_round_trip(self, cache: RedisCacheProvider) -> None:
        await cache.set("TestKey", "TestValue", namespace="TestCase")
        await cache.set("count", 7)

        assert await cache.get("TestKey", "TestCase") == "TestValue"
        assert await cache.get_as("count", int) == 7
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_key_layout_and_ttl(
        self, cache: RedisCacheProvider, fake_client: fakeredis.FakeRedis
    ) -> None:
        await cache.set("user:1", {"name": "Ann"}, timedelta(seconds=30), "Users")

        assert fake_client.get("App:Users:user:1") == '{"name":"Ann"}'
        assert 29_000 < fake_client.pttl("App:Users:user:1") <= 30_000

    @pytest.mark.asyncio
    async def test_default_timeout_sets_ttl(
        self, cache: RedisCacheProvider, fake_client: fakeredis.FakeRedis
    ) -> None:
        await cache.set("key", "value")
        assert 9_000 < fake_client.pttl("App:key") <= 10_000

    @pytest.mark.asyncio
    async def test_no_timeout_means_no_expiry(self, fake_client: fakeredis.FakeRedis) -> None:
        cache = RedisCacheProvider(CacheProviderConfig(app_prefix="App"), client=fake_client)
        await cache.set("key", "value")
        await cache.set("huge", "value", timedelta(days=365 * 200))

        assert fake_client.pttl("App:key") == -1
        assert fake_client.pttl("App:huge") == -1

    @pytest.mark.asyncio
    async def test_key_expires(self, cache: RedisCacheProvider) -> None:
        await cache.set("key", "value", timedelta(milliseconds=50))
        assert await cache.get("key") == "value"

        await asyncio.sleep(0.15)

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_non_positive_timeout_removes_key(
        self, cache: RedisCacheProvider, fake_client: fakeredis.FakeRedis
    ) -> None:
        await cache.set("key", "old")
        await cache.set("key", "new", timedelta(seconds=-1))

        assert fake_client.exists("App:key") == 0
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_sub_millisecond_timeout_rounds_up(
        self, app_config: CacheProviderConfig
    ) -> None:
        client = MagicMock()
        cache = RedisCacheProvider(app_config, client=client)

        await cache.set("key", "value", timedelta(microseconds=10))

        client.set.assert_called_once_with("App:key", "value", px=1)

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, cache: RedisCacheProvider) -> None:
        await cache.set("key", "value")
        assert await cache.remove("key") is True
        assert await cache.remove("key") is True
        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_overwrite_replaces_ttl(
        self, cache: RedisCacheProvider, fake_client: fakeredis.FakeRedis
    ) -> None:
        await cache.set("key", "v1", timedelta(seconds=1))
        await cache.set("key", "v2", timedelta(hours=1))

        assert await cache.get("key") == "v2"
        assert fake_client.pttl("App:key") > 1_000


class TestRedisCacheFailures:
    @pytest.mark.asyncio
    async def test_ping_failure_leaves_provider_disconnected(
        self, app_config: CacheProviderConfig
    ) -> None:
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("connection refused")

        cache = RedisCacheProvider(app_config, client=client)

        assert cache.is_connected is False
        with pytest.raises(NotConnectedError) as exc_info:
            await cache.get("key")
        assert exc_info.value.provider_name == "redis"
        with pytest.raises(NotConnectedError):
            await cache.set("key", "value")
        with pytest.raises(NotConnectedError):
            await cache.remove("key")
        client.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_connection_string(self) -> None:
        cache = RedisCacheProvider(CacheProviderConfig(app_prefix="App"))
        assert cache.is_connected is False

    @pytest.mark.asyncio
    async def test_unreachable_server(self) -> None:
        config = CacheProviderConfig(connection_string="redis://127.0.0.1:1/0")
        cache = RedisCacheProvider(config)
        assert cache.is_connected is False

    @pytest.mark.asyncio
    async def test_command_failure_raises_backend_unavailable(
        self, app_config: CacheProviderConfig
    ) -> None:
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("connection reset")
        cache = RedisCacheProvider(app_config, client=client)
        assert cache.is_connected is True

        with pytest.raises(BackendUnavailableError) as exc_info:
            await cache.get("key")

        assert exc_info.value.provider_name == "redis"
        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)
        client.get.assert_called_once_with("App:key")

    @pytest.mark.asyncio
    async def test_close_closes_client(self, app_config: CacheProviderConfig) -> None:
        client = MagicMock()
        cache = RedisCacheProvider(app_config, client=client)

        await cache.close()
        await cache.close()

        client.close.assert_called_once()
        assert cache.is_connected is False
