"""
Reservation service: confirmed and pending room allocations.

Same gate discipline as the hold service: validate first, then inside the
room gate run the overlap query and commit.

Overlap policy:
  Reservations are checked against other live reservations only
  (PENDING, CONFIRMED, CHECKED_IN). A hold is advisory to the booking flow;
  it never blocks a reservation.

Room status:
  Check-in sets the room OCCUPIED and check-out sets it AVAILABLE in the
  same commit as the reservation status, under the same room gate.

Moves:
  Room ids read before the gate may be stale by the time it is acquired.
  Every block re-reads its reservation and, if it now sits in a room that
  is not held, starts over on that room (RoomGate.run_guarded).
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core import clock
from booking_core.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from booking_core.core.logging import get_logger
from booking_core.core.metrics import track_operation
from booking_core.models.directory import RoomType
from booking_core.models.hold import Hold
from booking_core.models.reservation import Reservation
from booking_core.models.status import HoldStatus, ReservationStatus, RoomStatus
from booking_core.schemas.reservation import (
    HoldPromotion, ReservationCancel, ReservationCreate, ReservationSearch, ReservationUpdate,
)
from booking_core.services import directory_service, interval_index
from booking_core.services.event_publisher import (
    HOLD_CONVERTED, RESERVATION_CANCELLED, RESERVATION_CHECKED_IN, RESERVATION_CHECKED_OUT,
    RESERVATION_CONFIRMED, RESERVATION_CREATED, RESERVATION_DELETED, RESERVATION_UPDATED,
    DomainEvent, get_publisher, hold_payload, reservation_payload,
)
from booking_core.services.hold_service import validate_date_range
from booking_core.services.interfaces.gate import ensure_room_held
from booking_core.services.search import reservation_criteria
from booking_core.services.state_machine import (
    INITIAL_RESERVATION_STATUSES, ensure_hold_transition, ensure_reservation_transition,
    is_terminal_reservation,
)
from booking_core.services.strategy_factory import get_gate

logger = get_logger(__name__)


def _validate_not_past(start: date) -> None:
    if start < clock.today():
        raise InvalidInputError("Start date cannot be in the past")


def _validate_initial_status(status: Optional[ReservationStatus]) -> ReservationStatus:
    if status is None:
        return ReservationStatus.PENDING
    if status not in INITIAL_RESERVATION_STATUSES:
        raise InvalidInputError(
            f"Reservations can only be created as PENDING or CONFIRMED, not {status.value}"
        )
    return status


def _validate_capacity(guest_count: int, room_type: RoomType) -> None:
    if guest_count > room_type.max_guests:
        raise InvalidInputError(
            f"Guest count ({guest_count}) exceeds room capacity ({room_type.max_guests})"
        )


async def _ensure_room_free(
    db: AsyncSession,
    room_id: UUID,
    start: date,
    end: date,
    exclude_id: Optional[UUID] = None,
) -> None:
    """Overlap check against live reservations. Caller must hold the room gate."""
    existing = await interval_index.find_overlapping_reservation(db, room_id, start, end, exclude_id)
    if existing:
        logger.warning(
            "reservation_conflict",
            room_id=str(room_id),
            requested_start=start.isoformat(),
            requested_end=end.isoformat(),
            conflicting_reservation_id=str(existing.id),
        )
        raise ConflictError("Room is already reserved for the selected date range")


async def _load_reservation(db: AsyncSession, reservation_id: UUID, refresh: bool = False) -> Reservation:
    reservation = await db.get(Reservation, reservation_id, populate_existing=refresh)
    if not reservation:
        raise NotFoundError(f"Reservation not found with id: {reservation_id}")
    return reservation


async def _resolve_booking_refs(db: AsyncSession, data: ReservationCreate) -> RoomType:
    await directory_service.resolve_hotel(db, data.hotel_id)
    await directory_service.resolve_user(db, data.user_id)
    room = await directory_service.resolve_room(db, data.room_id)
    room_type = await directory_service.resolve_room_type(db, data.room_type_id)
    directory_service.ensure_room_in_hotel(room, data.hotel_id)
    return room_type


async def _publish(name: str, reservation: Reservation) -> None:
    await get_publisher().publish(DomainEvent(name, reservation.id, reservation_payload(reservation)))


@track_operation("create_reservation")
async def create_reservation(db: AsyncSession, data: ReservationCreate) -> Reservation:
    """
    Book a room for [start_date, end_date).
    Raises 400 on bad dates/capacity, 404 on unknown references, 409 on overlap.
    """
    validate_date_range(data.start_date, data.end_date)
    _validate_not_past(data.start_date)
    status = _validate_initial_status(data.status)

    room_type = await _resolve_booking_refs(db, data)
    _validate_capacity(data.guest_count, room_type)

    async with get_gate().guard(db, data.room_id):
        await _ensure_room_free(db, data.room_id, data.start_date, data.end_date)

        reservation = Reservation(
            hotel_id=data.hotel_id,
            user_id=data.user_id,
            room_id=data.room_id,
            room_type_id=data.room_type_id,
            start_date=data.start_date,
            end_date=data.end_date,
            guest_count=data.guest_count,
            status=status,
            total_amount=data.total_amount,
            currency=data.currency.upper() if data.currency else None,
            special_requests=data.special_requests,
        )
        db.add(reservation)
        await db.commit()

    await db.refresh(reservation)
    logger.info(
        "reservation_created",
        reservation_id=str(reservation.id),
        room_id=str(reservation.room_id),
        start_date=reservation.start_date.isoformat(),
        end_date=reservation.end_date.isoformat(),
        status=reservation.status.value,
    )
    await _publish(RESERVATION_CREATED, reservation)
    return reservation


@track_operation("promote_hold")
async def promote_hold(db: AsyncSession, hold_id: UUID, data: HoldPromotion) -> Reservation:
    """
    Turn an ACTIVE, unexpired hold into a reservation for the same room and dates.
    The hold becomes CONVERTED in the same commit.
    """
    hold = await db.get(Hold, hold_id)
    if not hold:
        raise NotFoundError(f"Reservation hold not found with id: {hold_id}")
    ensure_hold_transition(hold.status, HoldStatus.CONVERTED)

    status = _validate_initial_status(data.status)
    room_type = await directory_service.resolve_room_type(db, data.room_type_id)
    _validate_capacity(data.guest_count, room_type)

    async def convert(held):
        hold = await db.get(Hold, hold_id, populate_existing=True)
        if not hold:
            raise NotFoundError(f"Reservation hold not found with id: {hold_id}")
        ensure_room_held(hold.room_id, held)
        ensure_hold_transition(hold.status, HoldStatus.CONVERTED)
        if hold.expires_at <= clock.utc_now():
            raise ConflictError("Hold has expired")
        _validate_not_past(hold.start_date)

        await _ensure_room_free(db, hold.room_id, hold.start_date, hold.end_date)

        reservation = Reservation(
            hotel_id=hold.hotel_id,
            user_id=hold.user_id,
            room_id=hold.room_id,
            room_type_id=data.room_type_id,
            hold_id=hold.id,
            start_date=hold.start_date,
            end_date=hold.end_date,
            guest_count=data.guest_count,
            status=status,
            total_amount=data.total_amount,
            currency=data.currency.upper() if data.currency else None,
            special_requests=data.special_requests,
        )
        db.add(reservation)
        hold.status = HoldStatus.CONVERTED
        await db.commit()
        return hold, reservation

    hold, reservation = await get_gate().run_guarded(db, convert, hold.room_id)

    await db.refresh(reservation)
    logger.info("hold_converted", hold_id=str(hold.id), reservation_id=str(reservation.id))
    await get_publisher().publish(DomainEvent(HOLD_CONVERTED, hold.id, hold_payload(hold)))
    await _publish(RESERVATION_CREATED, reservation)
    return reservation


@track_operation("update_reservation")
async def update_reservation(db: AsyncSession, reservation_id: UUID, data: ReservationUpdate) -> Reservation:
    """
    Replace a live reservation's booking fields.

    Only PENDING -> CONFIRMED may be requested through `status`; cancellation
    and the stay lifecycle have their own operations.
    """
    validate_date_range(data.start_date, data.end_date)

    reservation = await _load_reservation(db, reservation_id)
    room_type = await _resolve_booking_refs(db, data)
    _validate_capacity(data.guest_count, room_type)

    async def apply(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held, data.room_id)
        current = reservation.status

        if is_terminal_reservation(current):
            raise ConflictError(f"Cannot modify a reservation in {current.value} status")
        if data.start_date != reservation.start_date:
            _validate_not_past(data.start_date)
        if current == ReservationStatus.CHECKED_IN and data.room_id != reservation.room_id:
            raise ConflictError("Cannot move a checked-in reservation to another room")

        target = data.status or current
        if target != current:
            ensure_reservation_transition(current, target)
            if target != ReservationStatus.CONFIRMED:
                raise ConflictError(
                    f"Use the dedicated operation to change status to {target.value}"
                )

        await _ensure_room_free(
            db, data.room_id, data.start_date, data.end_date, exclude_id=reservation.id
        )

        reservation.hotel_id = data.hotel_id
        reservation.user_id = data.user_id
        reservation.room_id = data.room_id
        reservation.room_type_id = data.room_type_id
        reservation.start_date = data.start_date
        reservation.end_date = data.end_date
        reservation.guest_count = data.guest_count
        reservation.status = target
        reservation.total_amount = data.total_amount
        reservation.currency = data.currency.upper() if data.currency else None
        reservation.special_requests = data.special_requests
        await db.commit()
        return reservation

    # Old and new room
    reservation = await get_gate().run_guarded(db, apply, reservation.room_id, data.room_id)

    await db.refresh(reservation)
    logger.info("reservation_updated", reservation_id=str(reservation.id), status=reservation.status.value)
    await _publish(RESERVATION_UPDATED, reservation)
    return reservation


@track_operation("confirm_reservation")
async def confirm_reservation(db: AsyncSession, reservation_id: UUID) -> Reservation:
    reservation = await _load_reservation(db, reservation_id)
    ensure_reservation_transition(reservation.status, ReservationStatus.CONFIRMED)

    async def confirm(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held)
        ensure_reservation_transition(reservation.status, ReservationStatus.CONFIRMED)
        reservation.status = ReservationStatus.CONFIRMED
        await db.commit()
        return reservation

    reservation = await get_gate().run_guarded(db, confirm, reservation.room_id)

    await db.refresh(reservation)
    logger.info("reservation_confirmed", reservation_id=str(reservation.id))
    await _publish(RESERVATION_CONFIRMED, reservation)
    return reservation


async def _release_occupied_room(db: AsyncSession, room_id: UUID) -> None:
    """Free the room of a stay that ends without check-out. Caller holds its gate."""
    room = await directory_service.resolve_room(db, room_id, refresh=True)
    if room.status == RoomStatus.OCCUPIED:
        directory_service.set_room_status(room, RoomStatus.AVAILABLE)


@track_operation("cancel_reservation")
async def cancel_reservation(
    db: AsyncSession,
    reservation_id: UUID,
    data: Optional[ReservationCancel] = None,
) -> Reservation:
    """Cancel and record reason, time and actor. A checked-in stay frees its room."""
    data = data or ReservationCancel()
    reservation = await _load_reservation(db, reservation_id)
    ensure_reservation_transition(reservation.status, ReservationStatus.CANCELLED)
    if data.cancelled_by_user_id is not None:
        await directory_service.resolve_user(db, data.cancelled_by_user_id)

    async def cancel(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held)
        previous = reservation.status
        ensure_reservation_transition(previous, ReservationStatus.CANCELLED)

        reservation.status = ReservationStatus.CANCELLED
        if data.reason and data.reason.strip():
            reservation.cancellation_reason = data.reason.strip()
        reservation.cancelled_at = clock.utc_now()
        reservation.cancelled_by_user_id = data.cancelled_by_user_id

        if previous == ReservationStatus.CHECKED_IN:
            await _release_occupied_room(db, reservation.room_id)
        await db.commit()
        return reservation, previous

    reservation, previous = await get_gate().run_guarded(db, cancel, reservation.room_id)

    await db.refresh(reservation)
    logger.info(
        "reservation_cancelled",
        reservation_id=str(reservation.id),
        previous_status=previous.value,
        cancelled_by=str(data.cancelled_by_user_id) if data.cancelled_by_user_id else None,
    )
    await _publish(RESERVATION_CANCELLED, reservation)
    return reservation


@track_operation("check_in")
async def check_in(db: AsyncSession, reservation_id: UUID) -> Reservation:
    reservation = await _load_reservation(db, reservation_id)
    ensure_reservation_transition(reservation.status, ReservationStatus.CHECKED_IN)
    if reservation.start_date > clock.today():
        raise InvalidInputError("Cannot check in before the reservation start date")

    async def admit(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held)
        ensure_reservation_transition(reservation.status, ReservationStatus.CHECKED_IN)

        room = await directory_service.resolve_room(db, reservation.room_id, refresh=True)
        if room.status == RoomStatus.OCCUPIED:
            raise ConflictError("Room is already occupied")

        reservation.status = ReservationStatus.CHECKED_IN
        directory_service.set_room_status(room, RoomStatus.OCCUPIED)
        await db.commit()
        return reservation

    reservation = await get_gate().run_guarded(db, admit, reservation.room_id)

    await db.refresh(reservation)
    logger.info("reservation_checked_in", reservation_id=str(reservation.id), room_id=str(reservation.room_id))
    await _publish(RESERVATION_CHECKED_IN, reservation)
    return reservation


@track_operation("check_out")
async def check_out(db: AsyncSession, reservation_id: UUID) -> Reservation:
    reservation = await _load_reservation(db, reservation_id)
    ensure_reservation_transition(reservation.status, ReservationStatus.CHECKED_OUT)

    async def release(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held)
        ensure_reservation_transition(reservation.status, ReservationStatus.CHECKED_OUT)

        room = await directory_service.resolve_room(db, reservation.room_id, refresh=True)
        reservation.status = ReservationStatus.CHECKED_OUT
        directory_service.set_room_status(room, RoomStatus.AVAILABLE)
        await db.commit()
        return reservation

    reservation = await get_gate().run_guarded(db, release, reservation.room_id)

    await db.refresh(reservation)
    logger.info("reservation_checked_out", reservation_id=str(reservation.id), room_id=str(reservation.room_id))
    await _publish(RESERVATION_CHECKED_OUT, reservation)
    return reservation


@track_operation("delete_reservation")
async def delete_reservation(db: AsyncSession, reservation_id: UUID) -> None:
    """Remove the record outright. Deleting a checked-in stay frees its room."""
    reservation = await _load_reservation(db, reservation_id)

    async def remove(held):
        reservation = await _load_reservation(db, reservation_id, refresh=True)
        ensure_room_held(reservation.room_id, held)
        room_id = reservation.room_id
        if reservation.status == ReservationStatus.CHECKED_IN:
            await _release_occupied_room(db, room_id)
        await db.delete(reservation)
        await db.commit()
        return room_id

    room_id = await get_gate().run_guarded(db, remove, reservation.room_id)

    logger.info("reservation_deleted", reservation_id=str(reservation_id))
    await get_publisher().publish(
        DomainEvent(RESERVATION_DELETED, reservation_id, {"room_id": str(room_id)})
    )


async def get_reservation(db: AsyncSession, reservation_id: UUID) -> Reservation:
    return await _load_reservation(db, reservation_id)


async def list_reservations(db: AsyncSession) -> list[Reservation]:
    result = await db.execute(select(Reservation).order_by(Reservation.created_at.desc()))
    return list(result.scalars().all())


async def list_user_reservations(db: AsyncSession, user_id: UUID) -> list[Reservation]:
    result = await db.execute(
        select(Reservation).where(Reservation.user_id == user_id).order_by(Reservation.start_date.asc())
    )
    return list(result.scalars().all())


async def list_hotel_reservations(db: AsyncSession, hotel_id: UUID) -> list[Reservation]:
    result = await db.execute(
        select(Reservation).where(Reservation.hotel_id == hotel_id).order_by(Reservation.start_date.asc())
    )
    return list(result.scalars().all())


async def list_room_reservations(db: AsyncSession, room_id: UUID) -> list[Reservation]:
    result = await db.execute(
        select(Reservation).where(Reservation.room_id == room_id).order_by(Reservation.start_date.asc())
    )
    return list(result.scalars().all())


async def search_reservations(db: AsyncSession, search: ReservationSearch) -> list[Reservation]:
    criteria = reservation_criteria(search)
    result = await db.execute(
        select(Reservation).where(*criteria).order_by(Reservation.start_date.asc())
    )
    return list(result.scalars().all())
