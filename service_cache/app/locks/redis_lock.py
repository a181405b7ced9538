"""
Distributed population lock on Redis.
"""

import asyncio
from typing import Dict, Optional, Tuple

import redis.asyncio as redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError

from shared.logging import get_logger


class RedisLockProvider:
    """Cross-instance lock built on redis-py's token-checked Lock.

    Every lock carries a lease so a crashed holder frees the key on its own.
    Producers that run longer than the lease lose exclusivity; size
    `lease_seconds` above the slowest expected producer.

    Held locks are tracked per acquiring task. After a lease expires, a second
    task of the same process may own the same identifier; the first task's
    release then only presents its own, stale token and cannot free it.
    """

    def __init__(self, client: redis.Redis, lease_seconds: float = 120.0, sleep: float = 0.1):
        if lease_seconds <= 0:
            raise ValueError("lease_seconds must be positive")
        self.client = client
        self.lease_seconds = lease_seconds
        self.sleep = sleep
        self.logger = get_logger("cache.lock.redis")
        self._held: Dict[Tuple[str, Optional[asyncio.Task]], Lock] = {}

    @staticmethod
    def _owner(lock_id: str) -> Tuple[str, Optional[asyncio.Task]]:
        return lock_id, asyncio.current_task()

    async def acquire(self, lock_id: str, timeout: float) -> bool:
        lock = self.client.lock(
            lock_id,
            timeout=self.lease_seconds,
            sleep=self.sleep,
            blocking=True,
            blocking_timeout=timeout,
            thread_local=False,
        )
        acquired = await lock.acquire(blocking=True, blocking_timeout=timeout)
        if acquired:
            self._held[self._owner(lock_id)] = lock
        else:
            self.logger.debug("Lock wait timed out", lock_id=lock_id, timeout=timeout)
        return acquired

    async def release(self, lock_id: str) -> None:
        lock = self._held.pop(self._owner(lock_id), None)
        if lock is None:
            self.logger.warning("Release of a lock not held by this task", lock_id=lock_id)
            return
        try:
            await lock.release()
        except LockError as e:
            # Lease ran out; another holder may already own the key.
            self.logger.warning("Lock lease expired before release", lock_id=lock_id, error=str(e))

    def __len__(self) -> int:
        return len(self._held)
