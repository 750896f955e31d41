"""
Expiration sweeper.

Holds never expire on read; this task moves due holds to EXPIRED. It runs
once right away at startup, to catch up on holds that expired while the
process was down, and then every SWEEP_INTERVAL_SECONDS.
"""

import asyncio
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.core.logging import get_logger
from booking_core.core.metrics import sweep_runs
from booking_core.models.hold import Hold
from booking_core.services.hold_service import expire_due

logger = get_logger(__name__)


async def sweep(db: AsyncSession, now: Optional[datetime] = None) -> list[Hold]:
    """One pass: expire every ACTIVE hold whose expires_at is at or before now."""
    return await expire_due(db, now)


class ExpirationSweeper:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], interval: float):
        self._session_factory = session_factory
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        async with self._session_factory() as db:
            try:
                expired = await sweep(db)
            except Exception:
                sweep_runs.labels(result="error").inc()
                raise
        sweep_runs.labels(result="ok").inc()
        return len(expired)

    async def _loop(self) -> None:
        while True:
            try:
                count = await self.run_once()
                if count:
                    logger.info("sweep_completed", expired=count)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("sweep_failed", error=str(e))
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="hold-expiration-sweeper")
        logger.info("sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("sweeper_stopped")
