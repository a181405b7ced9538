"""
Engine tunables.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class LockGranularity(str, Enum):
    """What a population lock is scoped to."""
    KEY = "key"      # one producer per cache key
    SCOPE = "scope"  # one producer per scope, across all its keys


class CacheSettings(BaseModel):
    """Runtime settings injected into a CacheAsideEngine."""

    model_config = ConfigDict(frozen=True)

    default_ttl: timedelta = timedelta(minutes=15)
    lock_timeout: timedelta = timedelta(seconds=60)
    lock_granularity: LockGranularity = LockGranularity.KEY
    key_separator: str = "-"
    key_prefix: str = ""

    @field_validator("default_ttl", "lock_timeout")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        return value

    @field_validator("key_separator")
    @classmethod
    def _separator(cls, value: str) -> str:
        if not value:
            raise ValueError("key separator must not be empty")
        if "." in value:
            # Type scopes are dotted module paths.
            raise ValueError("key separator must not contain '.'")
        return value


def utc_now() -> datetime:
    """Timezone-aware current time; the default engine and store clock."""
    return datetime.now(timezone.utc)
