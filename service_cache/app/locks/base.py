"""
Lock capability contract.
"""

from typing import Protocol


class LockProvider(Protocol):
    """Mutual exclusion by identifier, with bounded waiting."""

    async def acquire(self, lock_id: str, timeout: float) -> bool:
        """Wait up to `timeout` seconds; True when the lock is now held."""
        ...

    async def release(self, lock_id: str) -> None:
        """Release a lock previously acquired through this provider."""
        ...
