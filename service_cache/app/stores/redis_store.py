"""
Redis-backed remote store.
"""

from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger


class RedisStore:
    """Raw-bytes Redis store with absolute expirations."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None,
                 socket_timeout: float = 5.0):
        if redis_url is None and client is None:
            raise ValueError("either redis_url or client is required")
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("cache.store.redis")
        self._redis: Optional[redis.Redis] = client
        self._owns_client = client is None

    @property
    def client(self) -> redis.Redis:
        """Underlying client, shared with the Redis lock provider."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                decode_responses=False,  # values are opaque bytes
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                health_check_interval=30,
            )
        return self._redis

    async def start(self):
        """Connect and verify the Redis connection."""
        await self.client.ping()
        self.logger.info("Redis store started", redis_url=self.redis_url)

    async def stop(self):
        """Close the connection if this store opened it."""
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis store stopped")

    async def get(self, key: bytes) -> Optional[bytes]:
        return await self.client.get(key)

    async def set(self, key: bytes, value: bytes, expires_at: datetime) -> None:
        await self.client.set(key, value, pxat=int(expires_at.timestamp() * 1000))

    async def delete(self, key: bytes) -> None:
        await self.client.delete(key)

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self.client.ping()
            return True
        except RedisError as e:
            self.logger.warning("Redis health check failed", error=str(e))
            return False
