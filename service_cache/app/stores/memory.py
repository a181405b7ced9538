"""
Process-local store for single-instance deployments.
"""

from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from ..models import utc_now


class InMemoryStore:
    """Dictionary-backed store; entries expire lazily on read."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._entries: Dict[bytes, Tuple[bytes, datetime]] = {}

    async def get(self, key: bytes) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: bytes, value: bytes, expires_at: datetime) -> None:
        self._entries[key] = (bytes(value), expires_at)

    async def delete(self, key: bytes) -> None:
        self._entries.pop(key, None)

    async def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._entries)
