"""
In-process population lock for single-instance deployments.
"""

import asyncio
from typing import Dict

from shared.logging import get_logger


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class LocalLockProvider:
    """One asyncio.Lock per identifier, dropped once nobody holds or awaits it."""

    def __init__(self):
        self.logger = get_logger("cache.lock.local")
        self._slots: Dict[str, _Slot] = {}

    async def acquire(self, lock_id: str, timeout: float) -> bool:
        slot = self._slots.get(lock_id)
        if slot is None:
            slot = self._slots[lock_id] = _Slot()
        slot.users += 1
        try:
            await asyncio.wait_for(slot.lock.acquire(), timeout)
        except asyncio.TimeoutError:
            self._leave(lock_id, slot)
            self.logger.debug("Lock wait timed out", lock_id=lock_id, timeout=timeout)
            return False
        except BaseException:
            self._leave(lock_id, slot)
            raise
        return True

    async def release(self, lock_id: str) -> None:
        slot = self._slots.get(lock_id)
        if slot is None or not slot.lock.locked():
            raise RuntimeError(f"Lock '{lock_id}' is not held")
        slot.lock.release()
        self._leave(lock_id, slot)

    def _leave(self, lock_id: str, slot: _Slot) -> None:
        slot.users -= 1
        if slot.users == 0 and self._slots.get(lock_id) is slot:
            del self._slots[lock_id]

    def __len__(self) -> int:
        return len(self._slots)
