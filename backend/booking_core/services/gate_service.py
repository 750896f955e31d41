"""
Redis-backed room gate for deployments with several API processes.

Each room maps to a Redis lock with a lease (GATE_LEASE_SECONDS), so a
crashed holder cannot block the room forever. When Redis is unreachable the
gate degrades to the in-process lock registry and logs it; on PostgreSQL the
reservation exclusion constraint still rejects overlapping writes.
"""

from typing import Optional

from redis.exceptions import LockError, RedisError

from booking_core.core.config import get_settings
from booking_core.core.logging import get_logger
from booking_core.core.metrics import redis_connection_errors
from booking_core.infrastructure.redis_client import get_redis
from booking_core.services.interfaces.gate import RoomGate
from booking_core.services.interfaces.local_gate import LocalRoomGate

logger = get_logger(__name__)

LOCK_PREFIX = "room-gate:"


class RedisRoomGate(RoomGate):
    """
    Distributed gate.

    Use when:
    - More than one API process serves bookings
    - The sweeper runs in a separate worker
    """

    backend = "redis"

    def __init__(self, lease_seconds: Optional[float] = None, fallback: Optional[LocalRoomGate] = None, **kwargs):
        super().__init__(**kwargs)
        self.lease_seconds = lease_seconds if lease_seconds is not None else get_settings().GATE_LEASE_SECONDS
        self._fallback = fallback or LocalRoomGate(**kwargs)
        # key -> redis lock, or None when the fallback gate holds the key
        self._held: dict = {}

    async def _try_acquire(self, key: str, timeout: float) -> bool:
        client = await get_redis()
        if client is None:
            logger.warning("redis_gate_fallback", room_id=key)
            acquired = await self._fallback._try_acquire(key, timeout)
            if acquired:
                self._held[key] = None
            return acquired

        lock = client.lock(
            LOCK_PREFIX + key,
            timeout=self.lease_seconds,
            blocking=True,
            blocking_timeout=timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_gate_acquire_failed", room_id=key, error=str(e))
            return False

        if acquired:
            self._held[key] = lock
        return bool(acquired)

    async def _release(self, key: str) -> None:
        lock = self._held.pop(key)
        if lock is None:
            await self._fallback._release(key)
            return
        try:
            await lock.release()
        except LockError:
            # Lease ran out before release; the key is already free
            logger.warning("redis_gate_lease_expired", room_id=key, lease_seconds=self.lease_seconds)
        except RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_gate_release_failed", room_id=key, error=str(e))
