"""
Interval index: overlap queries over live holds and reservations.

Overlap formula (half-open [start, end)):
    existing.start < new.end AND existing.end > new.start

Strict inequality lets a stay end on the day the next one starts. Queries
run against the composite (room_id, start_date, end_date) indexes.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.models.hold import Hold
from booking_core.models.reservation import Reservation
from booking_core.models.status import LIVE_HOLD_STATUSES, LIVE_RESERVATION_STATUSES


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start < b_end and a_end > b_start


async def find_overlapping_reservation(
    db: AsyncSession,
    room_id: UUID,
    start: date,
    end: date,
    exclude_id: Optional[UUID] = None,
) -> Optional[Reservation]:
    """First live reservation of the room intersecting [start, end), if any."""
    query = select(Reservation).where(
        Reservation.room_id == room_id,
        Reservation.status.in_(LIVE_RESERVATION_STATUSES),
        Reservation.start_date < end,
        Reservation.end_date > start,
    )
    if exclude_id is not None:
        query = query.where(Reservation.id != exclude_id)

    result = await db.execute(query.order_by(Reservation.start_date).limit(1))
    return result.scalar_one_or_none()


async def find_overlapping_hold(
    db: AsyncSession,
    room_id: UUID,
    start: date,
    end: date,
    exclude_id: Optional[UUID] = None,
) -> Optional[Hold]:
    """First ACTIVE hold of the room intersecting [start, end), if any."""
    query = select(Hold).where(
        Hold.room_id == room_id,
        Hold.status.in_(LIVE_HOLD_STATUSES),
        Hold.start_date < end,
        Hold.end_date > start,
    )
    if exclude_id is not None:
        query = query.where(Hold.id != exclude_id)

    result = await db.execute(query.order_by(Hold.start_date).limit(1))
    return result.scalar_one_or_none()


async def overlaps(
    db: AsyncSession,
    room_id: UUID,
    start: date,
    end: date,
    exclude_id: Optional[UUID] = None,
    include_holds: bool = True,
    include_reservations: bool = True,
) -> bool:
    """Does [start, end) intersect any live allocation of the room?"""
    if include_holds and await find_overlapping_hold(db, room_id, start, end, exclude_id):
        return True
    if include_reservations and await find_overlapping_reservation(db, room_id, start, end, exclude_id):
        return True
    return False
