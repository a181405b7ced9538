"""
Remote key-value stores the engine reads from and writes to.
"""

from .base import RemoteStore
from .memory import InMemoryStore
from .redis_store import RedisStore

__all__ = ["RemoteStore", "InMemoryStore", "RedisStore"]
