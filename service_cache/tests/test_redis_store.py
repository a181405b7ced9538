"""
Unit tests for the Redis store adapter.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from service_cache.app.stores.redis_store import RedisStore


class TestRedisStore:
    """Test cases for RedisStore."""

    @pytest.fixture
    def mock_redis(self):
        return AsyncMock()

    @pytest.fixture
    def store(self, mock_redis):
        return RedisStore(client=mock_redis)

    @pytest.mark.asyncio
    async def test_get_returns_raw_bytes(self, store, mock_redis):
        mock_redis.get.return_value = b'{"id":42}'

        assert await store.get(b"session-u42") == b'{"id":42}'
        mock_redis.get.assert_awaited_once_with(b"session-u42")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store, mock_redis):
        mock_redis.get.return_value = None

        assert await store.get(b"session-u42") is None

    @pytest.mark.asyncio
    async def test_set_uses_absolute_expiration(self, store, mock_redis):
        expires_at = datetime(2024, 1, 1, 12, 0, 30, tzinfo=timezone.utc)

        await store.set(b"session-u42", b"{}", expires_at)

        mock_redis.set.assert_awaited_once_with(b"session-u42", b"{}", pxat=1704110430000)

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_redis):
        await store.delete(b"session-u42")

        mock_redis.delete.assert_awaited_once_with(b"session-u42")

    @pytest.mark.asyncio
    async def test_errors_propagate(self, store, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("Redis connection failed")

        with pytest.raises(RedisConnectionError):
            await store.get(b"session-u42")

    @pytest.mark.asyncio
    async def test_health_check(self, store, mock_redis):
        assert await store.health_check() is True

        mock_redis.ping.side_effect = RedisConnectionError("down")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_stop_leaves_injected_client_open(self, store, mock_redis):
        await store.stop()

        mock_redis.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_and_stop_own_client(self):
        mock_redis = AsyncMock()
        with patch("service_cache.app.stores.redis_store.redis.from_url", return_value=mock_redis) as from_url:
            store = RedisStore("redis://localhost:6379/0", socket_timeout=2.0)
            await store.start()
            await store.stop()

        from_url.assert_called_once_with(
            "redis://localhost:6379/0",
            decode_responses=False,
            socket_connect_timeout=2.0,
            socket_timeout=2.0,
            health_check_interval=30,
        )
        mock_redis.ping.assert_awaited_once()
        mock_redis.aclose.assert_awaited_once()

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError):
            RedisStore()
