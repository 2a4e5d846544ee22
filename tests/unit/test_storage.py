"""Unit tests for key-value store implementations."""

from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from transfer_client.infrastructure.storage import InMemoryKeyValueStore, RedisKeyValueStore


class TestInMemoryKeyValueStore:
    """Tests for InMemoryKeyValueStore."""

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self) -> None:
        store = InMemoryKeyValueStore()

        assert await store.get("transactions") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self) -> None:
        store = InMemoryKeyValueStore()

        await store.set("transactions", "[]")

        assert await store.get("transactions") == "[]"

    @pytest.mark.asyncio
    async def test_initial_contents_are_copied(self) -> None:
        initial = {"transactions": "[]"}
        store = InMemoryKeyValueStore(initial)

        await store.set("transactions", "[1]")

        assert initial["transactions"] == "[]"


class TestRedisKeyValueStore:
    """Tests for RedisKeyValueStore."""

    def test_init_with_default_url(self) -> None:
        with patch("transfer_client.infrastructure.storage.settings") as mock_settings:
            mock_settings.redis_url = "redis://localhost:6379/0"

            store = RedisKeyValueStore()

            assert store._url == "redis://localhost:6379/0"

    def test_init_with_custom_url(self) -> None:
        store = RedisKeyValueStore(url="redis://custom-host:6380/1")

        assert store._url == "redis://custom-host:6380/1"

    def test_client_property_raises_when_not_connected(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")

        with pytest.raises(RuntimeError, match="Redis store not connected"):
            _ = store.client

    @pytest.mark.asyncio
    async def test_connect_success(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()
        mock_redis.ping = AsyncMock(return_value=True)

        with patch(
            "transfer_client.infrastructure.storage.redis.from_url",
            return_value=mock_redis,
        ) as mock_from_url:
            await store.connect()

            mock_from_url.assert_called_once_with(
                "redis://localhost:6379/0",
                encoding="utf-8",
                decode_responses=False,
            )
            mock_redis.ping.assert_called_once()
            assert store.client is mock_redis

    @pytest.mark.asyncio
    async def test_connect_logs_success(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()

        with (
            patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis),
            patch("transfer_client.infrastructure.storage.logger") as mock_logger,
        ):
            await store.connect()

            mock_logger.info.assert_called_once_with("redis_connected", url="redis://localhost:6379/0")

    @pytest.mark.asyncio
    async def test_close_releases_client(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()

        with patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis):
            await store.connect()
            await store.close()

        mock_redis.close.assert_called_once()
        assert store._client is None

    @pytest.mark.asyncio
    async def test_close_when_not_connected(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")

        await store.close()

        assert store._client is None

    @pytest.mark.asyncio
    async def test_health_check_not_connected(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")

        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_ping_failure(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()

        with patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis):
            await store.connect()

        mock_redis.ping = AsyncMock(side_effect=redis.ConnectionError("gone"))

        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=b'[{"id": "x"}]')

        with patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis):
            await store.connect()

        assert await store.get("transactions") == '[{"id": "x"}]'
        mock_redis.get.assert_awaited_once_with("transactions")

    @pytest.mark.asyncio
    async def test_get_missing_key(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()
        mock_redis.get = AsyncMock(return_value=None)

        with patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis):
            await store.connect()

        assert await store.get("transactions") is None

    @pytest.mark.asyncio
    async def test_set_encodes_value(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")
        mock_redis = AsyncMock()

        with patch("transfer_client.infrastructure.storage.redis.from_url", return_value=mock_redis):
            await store.connect()

        await store.set("transactions", "[]")

        mock_redis.set.assert_awaited_once_with("transactions", b"[]")

    @pytest.mark.asyncio
    async def test_get_without_connection_raises(self) -> None:
        store = RedisKeyValueStore(url="redis://localhost:6379/0")

        with pytest.raises(RuntimeError):
            await store.get("transactions")
