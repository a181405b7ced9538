"""
Population locks: mutual exclusion keyed by an identifier.
"""

from .base import LockProvider
from .local import LocalLockProvider
from .redis_lock import RedisLockProvider

__all__ = ["LockProvider", "LocalLockProvider", "RedisLockProvider"]
