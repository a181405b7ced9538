"""
Cache key and lock identifier formatting.
"""

from typing import Optional

from shared.errors import InvalidCacheKeyError

from .models import LockGranularity


LOCK_NAMESPACE = "lock"


def scope_name_for(cls: type) -> str:
    """Fully-qualified class name used as the scope for values of that type."""
    return f"{cls.__module__}.{cls.__qualname__}"


class CacheKeyBuilder:
    """Builds scope-qualified cache keys and population lock identifiers."""

    def __init__(self, separator: str = "-", prefix: str = "",
                 granularity: LockGranularity = LockGranularity.KEY):
        if not separator:
            raise ValueError("separator must not be empty")
        self.separator = separator
        self.prefix = prefix
        self.granularity = granularity

    def validate_scope(self, scope: str) -> str:
        """Reject scopes that could collide with another scope's keys."""
        if not isinstance(scope, str) or not scope:
            raise InvalidCacheKeyError("Cache scope must be a non-empty string", {"scope": scope})
        if self.separator in scope:
            raise InvalidCacheKeyError(
                "Cache scope must not contain the key separator",
                {"scope": scope, "separator": self.separator}
            )
        if scope == LOCK_NAMESPACE:
            # Entries in this scope would share Redis keys with population locks.
            raise InvalidCacheKeyError(
                f"Cache scope '{LOCK_NAMESPACE}' is reserved for population locks",
                {"scope": scope}
            )
        return scope

    def cache_key(self, scope: str, key: str) -> str:
        """Format `scope + separator + key`."""
        self.validate_scope(scope)
        if not isinstance(key, str) or not key:
            raise InvalidCacheKeyError("Cache key must be a non-empty string", {"scope": scope, "key": key})
        return f"{scope}{self.separator}{key}"

    def store_key(self, cache_key: str) -> bytes:
        """Key as sent to the remote store."""
        return f"{self.prefix}{cache_key}".encode("utf-8")

    def lock_id(self, scope: str, cache_key: Optional[str] = None) -> str:
        """Population lock identifier for a key, or for its whole scope."""
        if self.granularity is LockGranularity.SCOPE or cache_key is None:
            target = scope
        else:
            target = cache_key
        return f"{self.prefix}{LOCK_NAMESPACE}{self.separator}{target}"
