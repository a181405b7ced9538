"""
Tests for population lock providers.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockNotOwnedError

from service_cache.app.engine import CacheAsideEngine, CacheScope
from service_cache.app.locks.local import LocalLockProvider
from service_cache.app.locks.redis_lock import RedisLockProvider
from service_cache.app.serializers import JsonSerializer
from service_cache.app.stores.memory import InMemoryStore
from shared.test_helpers import CountingProducer, FakeRedisLocks


class TestLocalLockProvider:
    """Test cases for LocalLockProvider."""

    @pytest.mark.asyncio
    async def test_acquire_and_release(self):
        provider = LocalLockProvider()

        assert await provider.acquire("lock-a", 0.1)
        await provider.release("lock-a")

        assert len(provider) == 0

    @pytest.mark.asyncio
    async def test_second_acquire_times_out(self):
        provider = LocalLockProvider()
        assert await provider.acquire("lock-a", 0.1)

        assert await provider.acquire("lock-a", 0.05) is False

        await provider.release("lock-a")
        assert len(provider) == 0

    @pytest.mark.asyncio
    async def test_distinct_ids_do_not_block_each_other(self):
        provider = LocalLockProvider()

        assert await provider.acquire("lock-a", 0.1)
        assert await provider.acquire("lock-b", 0.1)

        await provider.release("lock-a")
        await provider.release("lock-b")

    @pytest.mark.asyncio
    async def test_waiter_gets_lock_after_release(self):
        provider = LocalLockProvider()
        assert await provider.acquire("lock-a", 0.1)

        waiter = asyncio.create_task(provider.acquire("lock-a", 1.0))
        await asyncio.sleep(0.01)
        await provider.release("lock-a")

        assert await waiter is True
        await provider.release("lock-a")
        assert len(provider) == 0

    @pytest.mark.asyncio
    async def test_release_without_acquire_raises(self):
        with pytest.raises(RuntimeError):
            await LocalLockProvider().release("lock-a")


class TestRedisLockProvider:
    """Test cases for RedisLockProvider."""

    @pytest.fixture
    def redis_lock(self):
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=True)
        lock.release = AsyncMock(return_value=None)
        return lock

    @pytest.fixture
    def client(self, redis_lock):
        client = MagicMock()
        client.lock.return_value = redis_lock
        return client

    @pytest.mark.asyncio
    async def test_acquire_creates_leased_lock(self, client, redis_lock):
        provider = RedisLockProvider(client, lease_seconds=30)

        assert await provider.acquire("lock-session-u42", 2.5) is True

        client.lock.assert_called_once_with(
            "lock-session-u42",
            timeout=30,
            sleep=0.1,
            blocking=True,
            blocking_timeout=2.5,
            thread_local=False,
        )
        redis_lock.acquire.assert_awaited_once_with(blocking=True, blocking_timeout=2.5)

    @pytest.mark.asyncio
    async def test_release_releases_held_lock(self, client, redis_lock):
        provider = RedisLockProvider(client)
        await provider.acquire("lock-a", 1.0)

        await provider.release("lock-a")

        redis_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_acquire_is_not_tracked(self, client, redis_lock):
        redis_lock.acquire.return_value = False
        provider = RedisLockProvider(client)

        assert await provider.acquire("lock-a", 1.0) is False
        await provider.release("lock-a")

        redis_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_lease_on_release_is_logged_not_raised(self, client, redis_lock):
        redis_lock.release.side_effect = LockNotOwnedError("not owned")
        provider = RedisLockProvider(client)
        await provider.acquire("lock-a", 1.0)

        await provider.release("lock-a")

    def test_lease_must_be_positive(self, client):
        with pytest.raises(ValueError):
            RedisLockProvider(client, lease_seconds=0)


class TestRedisLockOwnership:
    """Token and ownership behavior against a shared lock server."""

    @pytest.fixture
    def server(self):
        return FakeRedisLocks()

    @pytest.mark.asyncio
    async def test_second_instance_is_excluded_until_release(self, server):
        first = RedisLockProvider(server, lease_seconds=5, sleep=0.01)
        second = RedisLockProvider(server, lease_seconds=5, sleep=0.01)

        assert await first.acquire("lock-a", 0.05) is True
        assert await second.acquire("lock-a", 0.05) is False

        await first.release("lock-a")
        assert await second.acquire("lock-a", 0.05) is True
        await second.release("lock-a")

    @pytest.mark.asyncio
    async def test_stale_holder_cannot_release_new_holder_after_lease_expiry(self, server):
        provider = RedisLockProvider(server, lease_seconds=0.2, sleep=0.01)
        other = RedisLockProvider(server, lease_seconds=5, sleep=0.01)
        a_acquired, a_may_release = asyncio.Event(), asyncio.Event()
        b_acquired, b_may_release = asyncio.Event(), asyncio.Event()

        async def holder(acquired, may_release):
            assert await provider.acquire("lock-a", 1.0)
            acquired.set()
            await may_release.wait()
            await provider.release("lock-a")

        task_a = asyncio.create_task(holder(a_acquired, a_may_release))
        await a_acquired.wait()
        await asyncio.sleep(0.25)  # A's lease runs out

        task_b = asyncio.create_task(holder(b_acquired, b_may_release))
        await b_acquired.wait()

        a_may_release.set()
        await task_a
        assert await other.acquire("lock-a", 0.05) is False

        b_may_release.set()
        await task_b
        assert await other.acquire("lock-a", 0.05) is True
        await other.release("lock-a")
        assert len(provider) == 0

    @pytest.mark.asyncio
    async def test_release_from_another_task_is_ignored(self, server):
        provider = RedisLockProvider(server, lease_seconds=5, sleep=0.01)
        other = RedisLockProvider(server, lease_seconds=5, sleep=0.01)
        assert await provider.acquire("lock-a", 0.05)

        await asyncio.create_task(provider.release("lock-a"))

        assert await other.acquire("lock-a", 0.05) is False
        await provider.release("lock-a")
        assert await other.acquire("lock-a", 0.05) is True
        await other.release("lock-a")

    @pytest.mark.asyncio
    async def test_engines_on_separate_instances_produce_once(self, server):
        store = InMemoryStore()
        scope = CacheScope("session", JsonSerializer())
        engines = [
            CacheAsideEngine(store, RedisLockProvider(server, lease_seconds=5, sleep=0.01))
            for _ in range(4)
        ]
        producer = CountingProducer({"id": 7}, delay=0.05)

        results = await asyncio.gather(*[
            engine.get_or_populate(scope, "u7", producer, 30) for engine in engines
        ])

        assert producer.calls == 1
        assert results == [{"id": 7}] * 4
