"""
Tests for the half-open overlap rule and the overlap queries.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core import clock
from booking_core.models import Hold, HoldStatus, Reservation, ReservationStatus
from booking_core.services import interval_index


def day(offset: int) -> date:
    return clock.today() + timedelta(days=offset)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((1, 5), (5, 8), False),   # back-to-back
        ((5, 8), (1, 5), False),
        ((1, 5), (4, 6), True),
        ((1, 10), (3, 4), True),   # containment
        ((3, 4), (1, 10), True),
        ((1, 5), (1, 5), True),
        ((1, 2), (7, 9), False),
    ],
)
def test_intervals_overlap(a, b, expected):
    assert interval_index.intervals_overlap(day(a[0]), day(a[1]), day(b[0]), day(b[1])) is expected


async def _reservation(db: AsyncSession, directory, start: int, end: int, status=ReservationStatus.CONFIRMED):
    reservation = Reservation(
        hotel_id=directory.hotel.id,
        user_id=directory.user.id,
        room_id=directory.room.id,
        room_type_id=directory.room_type.id,
        start_date=day(start),
        end_date=day(end),
        guest_count=1,
        status=status,
    )
    db.add(reservation)
    await db.commit()
    return reservation


@pytest.mark.asyncio
async def test_find_overlapping_reservation(db_session, directory):
    existing = await _reservation(db_session, directory, 10, 15)

    found = await interval_index.find_overlapping_reservation(
        db_session, directory.room.id, day(12), day(20)
    )
    assert found.id == existing.id

    # Checkout day of one stay is the check-in day of the next
    assert await interval_index.find_overlapping_reservation(
        db_session, directory.room.id, day(15), day(18)
    ) is None
    assert await interval_index.find_overlapping_reservation(
        db_session, directory.second_room.id, day(10), day(15)
    ) is None


@pytest.mark.asyncio
async def test_terminal_reservations_do_not_overlap(db_session, directory):
    await _reservation(db_session, directory, 10, 15, status=ReservationStatus.CANCELLED)
    await _reservation(db_session, directory, 10, 15, status=ReservationStatus.CHECKED_OUT)

    assert not await interval_index.overlaps(db_session, directory.room.id, day(10), day(15))


@pytest.mark.asyncio
async def test_exclude_id_skips_the_record_itself(db_session, directory):
    existing = await _reservation(db_session, directory, 10, 15)

    assert await interval_index.find_overlapping_reservation(
        db_session, directory.room.id, day(11), day(16), exclude_id=existing.id
    ) is None


@pytest.mark.asyncio
async def test_only_active_holds_overlap(db_session, directory):
    def hold(status):
        return Hold(
            hotel_id=directory.hotel.id,
            room_id=directory.room.id,
            user_id=directory.user.id,
            start_date=day(3),
            end_date=day(6),
            status=status,
            expires_at=clock.utc_now() + timedelta(minutes=10),
        )

    db_session.add_all([hold(HoldStatus.EXPIRED), hold(HoldStatus.CANCELLED), hold(HoldStatus.CONVERTED)])
    await db_session.commit()
    assert await interval_index.find_overlapping_hold(db_session, directory.room.id, day(4), day(5)) is None

    active = hold(HoldStatus.ACTIVE)
    db_session.add(active)
    await db_session.commit()

    found = await interval_index.find_overlapping_hold(db_session, directory.room.id, day(4), day(5))
    assert found.id == active.id
    assert await interval_index.overlaps(
        db_session, directory.room.id, day(4), day(5), include_holds=False
    ) is False
