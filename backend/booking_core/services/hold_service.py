"""
Hold service: temporary, time-boxed claims on a room.

CONCURRENCY STRATEGY: Per-room Gate
===================================

Problem:
  Two guests ask for the same room and dates at the same moment.
  Both run the overlap query, both see a free room, both insert.
  Result: Two ACTIVE holds on one room for one night.

Solution:
  Every write goes through the room gate (services/interfaces/gate.py):

  1. Validate input and resolve hotel/room/user (no lock held yet)
  2. Acquire the gate for the room id
  3. Run the overlap query against the interval index
  4. Insert / update and COMMIT while still holding the gate
  5. Release the gate, then publish the domain event

  The commit must happen inside the gate: releasing before commit would let
  the next request run its overlap query without seeing our row.

Expiry:
  `expire_due(now)` moves ACTIVE holds with expires_at <= now to EXPIRED.
  It takes the gate per room and re-checks each hold after acquiring, so a
  hold being promoted to a reservation at the same instant is never expired
  from under the promotion, and running it twice changes nothing the second
  time. A hold moved to another room since the scan waits for the next run.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core import clock
from booking_core.core.config import get_settings
from booking_core.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from booking_core.core.logging import get_logger
from booking_core.core.metrics import holds_expired, track_operation
from booking_core.db.base import ensure_utc
from booking_core.models.hold import Hold
from booking_core.models.status import HoldStatus
from booking_core.schemas.hold import HoldCreate, HoldSearch, HoldUpdate
from booking_core.services import directory_service, interval_index
from booking_core.services.event_publisher import (
    HOLD_CANCELLED, HOLD_CREATED, HOLD_DELETED, HOLD_EXPIRED, HOLD_UPDATED,
    DomainEvent, get_publisher, hold_payload,
)
from booking_core.services.search import hold_criteria
from booking_core.services.interfaces.gate import ensure_room_held
from booking_core.services.state_machine import ensure_hold_transition
from booking_core.services.strategy_factory import get_gate

logger = get_logger(__name__)


def validate_date_range(start: date, end: date) -> None:
    if end <= start:
        raise InvalidInputError("End date must be after start date")


def _validate_expiry(expires_at: datetime, now: datetime) -> None:
    if expires_at <= now:
        raise InvalidInputError("Expires at cannot be in the past")


async def _ensure_room_free_for_hold(
    db: AsyncSession,
    room_id: UUID,
    start: date,
    end: date,
    exclude_id: Optional[UUID] = None,
) -> None:
    """Overlap check for a hold. Caller must hold the room gate."""
    existing = await interval_index.find_overlapping_hold(db, room_id, start, end, exclude_id)
    if existing:
        logger.warning(
            "hold_conflict",
            room_id=str(room_id),
            requested_start=start.isoformat(),
            requested_end=end.isoformat(),
            conflicting_hold_id=str(existing.id),
        )
        raise ConflictError("Room has an active hold for the selected date range")

    if get_settings().HOLDS_BLOCKED_BY_RESERVATIONS:
        reservation = await interval_index.find_overlapping_reservation(db, room_id, start, end)
        if reservation:
            logger.warning(
                "hold_conflict",
                room_id=str(room_id),
                requested_start=start.isoformat(),
                requested_end=end.isoformat(),
                conflicting_reservation_id=str(reservation.id),
            )
            raise ConflictError("Room is already reserved for the selected date range")


async def _resolve_participants(db: AsyncSession, hotel_id: UUID, room_id: UUID, user_id: UUID) -> None:
    await directory_service.resolve_hotel(db, hotel_id)
    room = await directory_service.resolve_room(db, room_id)
    await directory_service.resolve_user(db, user_id)
    directory_service.ensure_room_in_hotel(room, hotel_id)


async def _load_hold(db: AsyncSession, hold_id: UUID, refresh: bool = False) -> Hold:
    hold = await db.get(Hold, hold_id, populate_existing=refresh)
    if not hold:
        raise NotFoundError(f"Reservation hold not found with id: {hold_id}")
    return hold


@track_operation("create_hold")
async def create_hold(db: AsyncSession, data: HoldCreate) -> Hold:
    """
    Place an ACTIVE hold on a room for [start_date, end_date).
    Raises 400 on bad dates/expiry, 404 on unknown references, 409 on overlap.
    """
    now = clock.utc_now()
    validate_date_range(data.start_date, data.end_date)
    if data.expires_at is None:
        expires_at = now + timedelta(minutes=get_settings().HOLD_DEFAULT_TTL_MINUTES)
    else:
        expires_at = ensure_utc(data.expires_at)
    _validate_expiry(expires_at, now)

    await _resolve_participants(db, data.hotel_id, data.room_id, data.user_id)

    async with get_gate().guard(db, data.room_id):
        await _ensure_room_free_for_hold(db, data.room_id, data.start_date, data.end_date)

        hold = Hold(
            hotel_id=data.hotel_id,
            room_id=data.room_id,
            user_id=data.user_id,
            start_date=data.start_date,
            end_date=data.end_date,
            status=HoldStatus.ACTIVE,
            expires_at=expires_at,
        )
        db.add(hold)
        await db.commit()

    await db.refresh(hold)
    logger.info(
        "hold_created",
        hold_id=str(hold.id),
        room_id=str(hold.room_id),
        start_date=hold.start_date.isoformat(),
        end_date=hold.end_date.isoformat(),
        expires_at=hold.expires_at.isoformat(),
    )
    await get_publisher().publish(DomainEvent(HOLD_CREATED, hold.id, hold_payload(hold)))
    return hold


@track_operation("update_hold")
async def update_hold(db: AsyncSession, hold_id: UUID, data: HoldUpdate) -> Hold:
    """Replace an ACTIVE hold's fields, re-checking overlap without counting itself."""
    validate_date_range(data.start_date, data.end_date)
    expires_at = ensure_utc(data.expires_at)
    _validate_expiry(expires_at, clock.utc_now())

    hold = await _load_hold(db, hold_id)
    await _resolve_participants(db, data.hotel_id, data.room_id, data.user_id)

    async def apply(held):
        hold = await _load_hold(db, hold_id, refresh=True)
        ensure_room_held(hold.room_id, held, data.room_id)
        if hold.status != HoldStatus.ACTIVE:
            raise ConflictError(f"Only active holds can be updated. Current status: {hold.status.value}")

        await _ensure_room_free_for_hold(
            db, data.room_id, data.start_date, data.end_date, exclude_id=hold.id
        )

        hold.hotel_id = data.hotel_id
        hold.room_id = data.room_id
        hold.user_id = data.user_id
        hold.start_date = data.start_date
        hold.end_date = data.end_date
        hold.expires_at = expires_at
        await db.commit()
        return hold

    # Old and new room: the hold leaves one interval set and joins another
    hold = await get_gate().run_guarded(db, apply, hold.room_id, data.room_id)
    await db.refresh(hold)
    logger.info("hold_updated", hold_id=str(hold.id), room_id=str(hold.room_id))
    await get_publisher().publish(DomainEvent(HOLD_UPDATED, hold.id, hold_payload(hold)))
    return hold


@track_operation("cancel_hold")
async def cancel_hold(db: AsyncSession, hold_id: UUID) -> Hold:
    hold = await _load_hold(db, hold_id)
    ensure_hold_transition(hold.status, HoldStatus.CANCELLED)

    async def cancel(held):
        # The sweeper may have expired it while we waited
        hold = await _load_hold(db, hold_id, refresh=True)
        ensure_room_held(hold.room_id, held)
        ensure_hold_transition(hold.status, HoldStatus.CANCELLED)
        hold.status = HoldStatus.CANCELLED
        await db.commit()
        return hold

    hold = await get_gate().run_guarded(db, cancel, hold.room_id)

    await db.refresh(hold)
    logger.info("hold_cancelled", hold_id=str(hold.id), room_id=str(hold.room_id))
    await get_publisher().publish(DomainEvent(HOLD_CANCELLED, hold.id, hold_payload(hold)))
    return hold


@track_operation("delete_hold")
async def delete_hold(db: AsyncSession, hold_id: UUID) -> None:
    hold = await _load_hold(db, hold_id)

    async def remove(held):
        hold = await _load_hold(db, hold_id, refresh=True)
        ensure_room_held(hold.room_id, held)
        room_id = hold.room_id
        await db.delete(hold)
        await db.commit()
        return room_id

    room_id = await get_gate().run_guarded(db, remove, hold.room_id)
    logger.info("hold_deleted", hold_id=str(hold_id))
    await get_publisher().publish(DomainEvent(HOLD_DELETED, hold_id, {"room_id": str(room_id)}))


async def expire_due(db: AsyncSession, now: Optional[datetime] = None) -> list[Hold]:
    """
    Move every ACTIVE hold with expires_at <= now to EXPIRED.
    Returns the holds transitioned by this call.
    """
    now = ensure_utc(now) if now is not None else clock.utc_now()

    result = await db.execute(
        select(Hold.id, Hold.room_id).where(
            Hold.status == HoldStatus.ACTIVE,
            Hold.expires_at <= now,
        )
    )
    by_room: dict[UUID, list[UUID]] = defaultdict(list)
    for hold_id, room_id in result.all():
        by_room[room_id].append(hold_id)
    # Release the read transaction before queueing on room gates
    await db.rollback()

    expired: list[Hold] = []
    gate = get_gate()
    for room_id, hold_ids in by_room.items():
        async with gate.guard(db, room_id):
            # Re-check under the gate: cancelled, promoted, moved or already expired since the scan
            rows = await db.execute(
                select(Hold)
                .where(
                    Hold.id.in_(hold_ids),
                    Hold.room_id == room_id,
                    Hold.status == HoldStatus.ACTIVE,
                    Hold.expires_at <= now,
                )
                .execution_options(populate_existing=True)
            )
            room_expired = list(rows.scalars().all())
            for hold in room_expired:
                ensure_hold_transition(hold.status, HoldStatus.EXPIRED)
                hold.status = HoldStatus.EXPIRED
            await db.commit()
        expired.extend(room_expired)

    if expired:
        holds_expired.inc(len(expired))
        logger.info("holds_expired", count=len(expired), rooms=len(by_room), now=now.isoformat())

    publisher = get_publisher()
    for hold in expired:
        await publisher.publish(DomainEvent(HOLD_EXPIRED, hold.id, hold_payload(hold)))
    return expired


async def get_hold(db: AsyncSession, hold_id: UUID) -> Hold:
    return await _load_hold(db, hold_id)


async def list_holds(db: AsyncSession) -> list[Hold]:
    result = await db.execute(select(Hold).order_by(Hold.created_at.desc()))
    return list(result.scalars().all())


async def list_user_holds(db: AsyncSession, user_id: UUID) -> list[Hold]:
    result = await db.execute(
        select(Hold).where(Hold.user_id == user_id).order_by(Hold.created_at.desc())
    )
    return list(result.scalars().all())


async def list_room_holds(db: AsyncSession, room_id: UUID) -> list[Hold]:
    result = await db.execute(
        select(Hold).where(Hold.room_id == room_id).order_by(Hold.start_date.asc())
    )
    return list(result.scalars().all())


async def search_holds(db: AsyncSession, search: HoldSearch) -> list[Hold]:
    criteria = hold_criteria(search, clock.utc_now())
    result = await db.execute(select(Hold).where(*criteria).order_by(Hold.start_date.asc()))
    return list(result.scalars().all())
