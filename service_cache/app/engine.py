"""
Cache-aside engine with single-flight population.

Reads go straight to the remote store. On a miss, `get_or_populate` takes a
population lock (per cache key by default), re-reads the store, and only then
runs the producer, so concurrent misses on one key compute the value once.
Hits never touch the lock.
"""

import inspect
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from shared.errors import (
    DeserializationError,
    InvalidTtlError,
    LockTimeoutError,
    ProducerError,
    SerializationError,
    StoreReadError,
    StoreWriteError,
    ValidationError,
)
from shared.logging import get_logger

from .keys import CacheKeyBuilder, scope_name_for
from .locks.base import LockProvider
from .models import CacheSettings, utc_now
from .serializers import ModelSerializer, Serializer
from .stores.base import RemoteStore

T = TypeVar("T")

Producer = Callable[[], Union[Optional[T], Awaitable[Optional[T]]]]
TtlLike = Union[timedelta, int, float, None]


@dataclass(frozen=True)
class CacheScope(Generic[T]):
    """Namespace for one kind of cached value, paired with its serializer."""

    name: str
    serializer: Serializer[T]

    @classmethod
    def for_type(cls, value_type: type, serializer: Optional[Serializer] = None) -> "CacheScope":
        """Scope named after a class, serialized through pydantic by default.

        The name is the dotted `module.QualName`, which is why key separators
        may not contain a dot.
        """
        return cls(scope_name_for(value_type), serializer or ModelSerializer(value_type))


class CacheAsideEngine:
    """Read-through cache in front of a shared store and lock."""

    def __init__(self, store: RemoteStore, lock_provider: LockProvider,
                 settings: Optional[CacheSettings] = None, metrics: Optional[Any] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.lock_provider = lock_provider
        self.settings = settings or CacheSettings()
        self.metrics = metrics
        self.keys = CacheKeyBuilder(
            separator=self.settings.key_separator,
            prefix=self.settings.key_prefix,
            granularity=self.settings.lock_granularity,
        )
        self.logger = get_logger("cache.engine")
        self._clock = clock

    async def get(self, scope: CacheScope[T], key: str) -> Optional[T]:
        """Return the cached value, or None when absent."""
        cache_key = self.keys.cache_key(scope.name, key)
        item = await self._read(scope, cache_key)
        if item is None:
            self._count("cache_requests_total", scope=scope.name, result="miss")
            self.logger.debug("Cache miss", cache_key=cache_key)
        else:
            self._count("cache_requests_total", scope=scope.name, result="hit")
            self.logger.debug("Cache hit", cache_key=cache_key)
        return item

    async def set(self, scope: CacheScope[T], key: str, value: T, ttl: TtlLike = None) -> None:
        """Store a value that expires `ttl` from now."""
        cache_key = self.keys.cache_key(scope.name, key)
        expiration = self._resolve_ttl(ttl)
        if value is None:
            raise ValidationError("None cannot be cached", {"cache_key": cache_key})
        await self._write(scope, cache_key, value, expiration)

    async def remove(self, scope: CacheScope[T], key: str) -> None:
        """Delete an entry; removing a missing entry succeeds."""
        cache_key = self.keys.cache_key(scope.name, key)
        try:
            await self.store.delete(self.keys.store_key(cache_key))
        except Exception as e:
            self._count("cache_errors_total", scope=scope.name, error_type="store_write")
            self.logger.error("Cache remove failed", cache_key=cache_key, error=str(e))
            raise StoreWriteError(cache_key, "Remote store delete failed", {"error": str(e)}) from e
        self.logger.debug("Removed item from cache", cache_key=cache_key)

    async def get_or_populate(self, scope: CacheScope[T], key: str, producer: Producer,
                              ttl: TtlLike = None) -> Optional[T]:
        """Return the cached value, computing and storing it at most once on a miss.

        Raises LockTimeoutError without calling `producer` when the population
        lock cannot be obtained, and ProducerError when `producer` fails.
        A producer returning None is passed through and nothing is stored.
        """
        cache_key = self.keys.cache_key(scope.name, key)
        expiration = self._resolve_ttl(ttl)

        item = await self._read(scope, cache_key)
        if item is not None:
            self._count("cache_requests_total", scope=scope.name, result="hit")
            self.logger.debug("Cache hit", cache_key=cache_key)
            return item

        lock_id = self.keys.lock_id(scope.name, cache_key)
        await self._acquire(scope, cache_key, lock_id)
        try:
            # double check
            item = await self._read(scope, cache_key)
            if item is not None:
                self._count("cache_requests_total", scope=scope.name, result="hit_after_wait")
                self.logger.debug("Cache hit after lock wait", cache_key=cache_key)
                return item

            self._count("cache_requests_total", scope=scope.name, result="miss")
            self.logger.debug("Cache miss", cache_key=cache_key)

            item = await self._produce(scope, cache_key, producer)
            if item is not None:
                self.logger.debug("Setting item in cache", cache_key=cache_key, ttl=expiration.total_seconds())
                await self._write(scope, cache_key, item, expiration)
            return item
        finally:
            await self._release(scope, lock_id)

    def _resolve_ttl(self, ttl: TtlLike) -> timedelta:
        if ttl is None:
            return self.settings.default_ttl
        if isinstance(ttl, timedelta):
            expiration = ttl
        elif isinstance(ttl, (int, float)) and not isinstance(ttl, bool):
            expiration = timedelta(seconds=ttl)
        else:
            raise InvalidTtlError("TTL must be a timedelta or a number of seconds", {"ttl": repr(ttl)})
        if expiration <= timedelta(0):
            raise InvalidTtlError("TTL must be positive", {"ttl_seconds": expiration.total_seconds()})
        return expiration

    async def _read(self, scope: CacheScope[T], cache_key: str) -> Optional[T]:
        try:
            data = await self.store.get(self.keys.store_key(cache_key))
        except Exception as e:
            self._count("cache_errors_total", scope=scope.name, error_type="store_read")
            self.logger.error("Cache read failed", cache_key=cache_key, error=str(e))
            raise StoreReadError(cache_key, details={"error": str(e)}) from e

        if data is None:
            return None

        try:
            return scope.serializer.loads(data)
        except Exception as e:
            self._count("cache_errors_total", scope=scope.name, error_type="deserialization")
            self.logger.error("Cached payload does not match value shape", cache_key=cache_key, error=str(e))
            raise DeserializationError(cache_key, details={"error": str(e)}) from e

    async def _write(self, scope: CacheScope[T], cache_key: str, value: T, expiration: timedelta) -> None:
        try:
            data = scope.serializer.dumps(value)
        except Exception as e:
            self._count("cache_errors_total", scope=scope.name, error_type="serialization")
            raise SerializationError(cache_key, details={"error": str(e)}) from e

        expires_at = self._clock() + expiration
        try:
            await self.store.set(self.keys.store_key(cache_key), data, expires_at)
        except Exception as e:
            self._count("cache_errors_total", scope=scope.name, error_type="store_write")
            self.logger.error("Cache write failed", cache_key=cache_key, error=str(e))
            raise StoreWriteError(cache_key, details={"error": str(e)}) from e

    async def _acquire(self, scope: CacheScope[T], cache_key: str, lock_id: str) -> None:
        timeout = self.settings.lock_timeout.total_seconds()
        started = time.monotonic()
        try:
            acquired = await self.lock_provider.acquire(lock_id, timeout)
        except Exception as e:
            self._count("cache_lock_timeouts_total", scope=scope.name)
            self.logger.warning("Cache lock backend unavailable", lock_id=lock_id, error=str(e))
            raise LockTimeoutError(
                cache_key, lock_id, timeout,
                message=f"Cache lock backend unavailable for: '{lock_id}'",
                details={"error": str(e)}
            ) from e
        finally:
            self._observe("cache_lock_wait_seconds", time.monotonic() - started, scope=scope.name)

        if not acquired:
            self._count("cache_lock_timeouts_total", scope=scope.name)
            self.logger.warning("Failed to obtain cache lock", lock_id=lock_id, timeout=timeout)
            raise LockTimeoutError(cache_key, lock_id, timeout)

    async def _release(self, scope: CacheScope[T], lock_id: str) -> None:
        try:
            await self.lock_provider.release(lock_id)
        except Exception as e:
            # The population outcome is already decided; lock leases reclaim the key.
            self._count("cache_errors_total", scope=scope.name, error_type="lock_release")
            self.logger.error("Failed to release cache lock", lock_id=lock_id, error=str(e))

    async def _produce(self, scope: CacheScope[T], cache_key: str, producer: Producer) -> Optional[T]:
        try:
            result = producer()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._count("cache_producer_invocations_total", scope=scope.name, outcome="error")
            self.logger.warning("Value producer failed", cache_key=cache_key, error=str(e))
            raise ProducerError(cache_key, e) from e

        outcome = "empty" if result is None else "value"
        self._count("cache_producer_invocations_total", scope=scope.name, outcome=outcome)
        return result

    def _count(self, metric_name: str, **labels):
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, **labels)

    def _observe(self, metric_name: str, value: float, **labels):
        if self.metrics is not None:
            self.metrics.observe_histogram(metric_name, value, **labels)


class DistributedCache(Generic[T]):
    """Typed cache bound to one scope."""

    def __init__(self, engine: CacheAsideEngine, scope: CacheScope[T]):
        engine.keys.validate_scope(scope.name)
        self.engine = engine
        self.scope = scope

    async def get(self, key: str) -> Optional[T]:
        return await self.engine.get(self.scope, key)

    async def set(self, key: str, value: T, ttl: TtlLike = None) -> None:
        await self.engine.set(self.scope, key, value, ttl)

    async def remove(self, key: str) -> None:
        await self.engine.remove(self.scope, key)

    async def get_or_add(self, key: str, producer: Producer, ttl: TtlLike = None) -> Optional[T]:
        return await self.engine.get_or_populate(self.scope, key, producer, ttl)
