"""
Consistency gate interface.
Serializes every check-then-write on a room so two requests can never both
pass the overlap check before either commits.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, FrozenSet, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core.config import get_settings
from booking_core.core.exceptions import ConflictError, UnavailableError
from booking_core.core.logging import get_logger
from booking_core.core.metrics import gate_timeouts, gate_wait_latency

logger = get_logger(__name__)

T = TypeVar("T")

# How many times a guarded block may follow its record to another room
MAX_ROOM_CHASES = 3

HOLD_OVERLAP_CONSTRAINT = "excl_holds_room_overlap"


class RoomChanged(Exception):
    """The record re-read under the gate now lives in a room that is not held."""

    def __init__(self, room_ids):
        super().__init__(f"record moved to rooms {sorted(str(r) for r in room_ids)}")
        self.room_ids = frozenset(room_ids)


def ensure_room_held(room_id: UUID, held: FrozenSet[UUID], *also_needed: UUID) -> None:
    """
    Call after re-reading a record under the gate. If a concurrent move put the
    record in a room we do not hold, abandon this attempt so `run_guarded` can
    retry on the rooms actually needed.
    """
    if room_id not in held:
        raise RoomChanged({room_id, *also_needed})


def _conflict_message(exc: IntegrityError) -> str:
    constraint = getattr(getattr(exc.orig, "__cause__", None), "constraint_name", None)
    constraint = constraint or getattr(exc.orig, "constraint_name", None) or str(exc.orig)
    if HOLD_OVERLAP_CONSTRAINT in constraint:
        return "Room has an active hold for the selected date range"
    return "Room is already reserved for the selected date range"


class RoomGate(ABC):
    """
    Interface for per-room mutual exclusion.

    Implementations:
    - LocalRoomGate: asyncio locks, one process
    - RedisRoomGate: Redis leases, many processes

    Waiting is bounded: each attempt times out after `acquire_timeout`
    seconds and is retried `max_retries` times with exponential backoff
    before the caller receives UnavailableError.
    """

    backend = "abstract"

    def __init__(
        self,
        acquire_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        settings = get_settings()
        self.acquire_timeout = acquire_timeout if acquire_timeout is not None else settings.GATE_ACQUIRE_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.GATE_MAX_RETRIES
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.GATE_RETRY_BACKOFF

    @abstractmethod
    async def _try_acquire(self, key: str, timeout: float) -> bool:
        """
        Wait up to `timeout` seconds for exclusive access to `key`.

        Returns:
            True if acquired
            False if the wait timed out
        """
        pass

    @abstractmethod
    async def _release(self, key: str) -> None:
        """Give up exclusive access to `key`. Must not raise."""
        pass

    async def acquire(self, key: str) -> None:
        start = time.perf_counter()
        for attempt in range(1, self.max_retries + 1):
            if await self._try_acquire(key, self.acquire_timeout):
                gate_wait_latency.labels(backend=self.backend).observe(time.perf_counter() - start)
                return

            gate_timeouts.labels(backend=self.backend).inc()
            logger.warning("room_gate_timeout", room_id=key, attempt=attempt, backend=self.backend)
            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_backoff * (2 ** (attempt - 1)))

        raise UnavailableError("Room is busy with another booking request. Please try again.")

    @asynccontextmanager
    async def hold(self, *room_ids: UUID) -> AsyncIterator[None]:
        """
        Exclusive access to every given room for the duration of the block.
        Keys are taken in sorted order so multi-room holders cannot deadlock.
        """
        keys = sorted({str(room_id) for room_id in room_ids})
        acquired: list[str] = []
        try:
            for key in keys:
                await self.acquire(key)
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                await self._release(key)

    @asynccontextmanager
    async def guard(self, db: AsyncSession, *room_ids: UUID) -> AsyncIterator[None]:
        """
        `hold` plus session hygiene for a check-then-write block.

        The block is expected to commit. Anything raised inside it rolls the
        session back before the rooms are released; an integrity violation
        (the database's own overlap constraint) surfaces as ConflictError.
        """
        async with self.hold(*room_ids):
            try:
                yield
            except IntegrityError as exc:
                await db.rollback()
                logger.warning(
                    "room_write_rejected",
                    room_ids=[str(r) for r in room_ids],
                    error=str(exc.orig),
                )
                raise ConflictError(_conflict_message(exc)) from exc
            except (Exception, asyncio.CancelledError):
                await db.rollback()
                raise

    async def run_guarded(
        self,
        db: AsyncSession,
        work: Callable[[FrozenSet[UUID]], Awaitable[T]],
        *room_ids: UUID,
    ) -> T:
        """
        Run `work(held)` inside `guard` for `room_ids` and return its result.

        The room ids come from a read taken before queueing on the gate, so
        `work` re-reads its record and calls `ensure_room_held`. When the
        record moved meanwhile, the gate is released and the block runs again
        on the rooms the record now needs.
        """
        held = frozenset(room_ids)
        for attempt in range(1, MAX_ROOM_CHASES + 1):
            try:
                async with self.guard(db, *held):
                    return await work(held)
            except RoomChanged as moved:
                logger.info(
                    "room_changed_while_waiting",
                    held=sorted(str(r) for r in held),
                    needed=sorted(str(r) for r in moved.room_ids),
                    attempt=attempt,
                )
                held = moved.room_ids

        raise ConflictError("Booking was moved to another room concurrently. Please try again.")
