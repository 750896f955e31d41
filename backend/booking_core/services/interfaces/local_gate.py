"""
In-process room gate - one asyncio.Lock per room id.
Correct for a single event loop; use the Redis gate across processes.
"""

import asyncio

from booking_core.services.interfaces.gate import RoomGate


class LocalRoomGate(RoomGate):
    """
    Lock registry keyed by room id.

    Each key carries a reference count of holders plus waiters; the lock is
    dropped once nobody references it, so idle rooms cost nothing.
    """

    backend = "local"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @property
    def tracked_rooms(self) -> int:
        return len(self._locks)

    def references(self, room_id) -> int:
        """Holders plus waiters currently queued on one room."""
        return self._refs.get(str(room_id), 0)

    async def _try_acquire(self, key: str, timeout: float) -> bool:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            await asyncio.wait_for(lock.acquire(), timeout)
        except asyncio.TimeoutError:
            self._unref(key)
            return False
        except asyncio.CancelledError:
            self._unref(key)
            raise
        return True

    async def _release(self, key: str) -> None:
        self._locks[key].release()
        self._unref(key)

    def _unref(self, key: str) -> None:
        self._refs[key] -= 1
        if self._refs[key] == 0:
            del self._refs[key]
            del self._locks[key]
