"""
Remote store contract.
"""

from datetime import datetime
from typing import Optional, Protocol


class RemoteStore(Protocol):
    """Shared byte store with per-key atomic get/set/delete and expiry."""

    async def get(self, key: bytes) -> Optional[bytes]:
        """Return the stored bytes, or None when absent or expired."""
        ...

    async def set(self, key: bytes, value: bytes, expires_at: datetime) -> None:
        """Store bytes until the absolute, timezone-aware `expires_at`."""
        ...

    async def delete(self, key: bytes) -> None:
        """Remove the key; missing keys are not an error."""
        ...
