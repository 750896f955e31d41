"""
Filter criteria for hold and reservation search.

Each search field that is set contributes one SQL criterion; the criteria
are AND-ed together by the caller. Search is read-only and takes no lock.
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement

from booking_core.db.base import ensure_utc
from booking_core.models.hold import Hold
from booking_core.models.reservation import Reservation
from booking_core.models.status import HoldStatus, ReservationStatus
from booking_core.schemas.hold import HoldSearch
from booking_core.schemas.reservation import ReservationSearch

EXPIRING_SOON_WINDOW = timedelta(hours=24)

Criteria = list[ColumnElement[bool]]


def _equals(criteria: Criteria, column, value: Any) -> None:
    if value is not None:
        criteria.append(column == value)


def _at_least(criteria: Criteria, column, value: Any) -> None:
    if value is not None:
        criteria.append(column >= value)


def _at_most(criteria: Criteria, column, value: Any) -> None:
    if value is not None:
        criteria.append(column <= value)


def _timestamp(value):
    return ensure_utc(value) if value is not None else None


def hold_criteria(search: HoldSearch, now: datetime) -> Criteria:
    criteria: Criteria = []

    _equals(criteria, Hold.user_id, search.user_id)
    _equals(criteria, Hold.hotel_id, search.hotel_id)
    _equals(criteria, Hold.room_id, search.room_id)
    if search.statuses:
        criteria.append(Hold.status.in_(search.statuses))

    _at_least(criteria, Hold.start_date, search.start_date_from)
    _at_most(criteria, Hold.start_date, search.start_date_to)
    _at_least(criteria, Hold.end_date, search.end_date_from)
    _at_most(criteria, Hold.end_date, search.end_date_to)

    _at_most(criteria, Hold.expires_at, _timestamp(search.expires_before))
    _at_least(criteria, Hold.expires_at, _timestamp(search.expires_after))
    _at_least(criteria, Hold.created_at, _timestamp(search.created_from))
    _at_most(criteria, Hold.created_at, _timestamp(search.created_to))

    if search.expired_only:
        criteria.append(Hold.status == HoldStatus.EXPIRED)
    if search.active_only:
        criteria.append(Hold.status == HoldStatus.ACTIVE)
    if search.expiring_soon:
        criteria.append(Hold.status == HoldStatus.ACTIVE)
        criteria.append(Hold.expires_at >= now)
        criteria.append(Hold.expires_at <= now + EXPIRING_SOON_WINDOW)

    return criteria


def reservation_criteria(search: ReservationSearch) -> Criteria:
    criteria: Criteria = []

    _equals(criteria, Reservation.user_id, search.user_id)
    _equals(criteria, Reservation.hotel_id, search.hotel_id)
    _equals(criteria, Reservation.room_id, search.room_id)
    _equals(criteria, Reservation.room_type_id, search.room_type_id)
    if search.statuses:
        criteria.append(Reservation.status.in_(search.statuses))

    _at_least(criteria, Reservation.start_date, search.start_date_from)
    _at_most(criteria, Reservation.start_date, search.start_date_to)
    _at_least(criteria, Reservation.end_date, search.end_date_from)
    _at_most(criteria, Reservation.end_date, search.end_date_to)

    _at_least(criteria, Reservation.created_at, _timestamp(search.created_from))
    _at_most(criteria, Reservation.created_at, _timestamp(search.created_to))

    _at_least(criteria, Reservation.guest_count, search.min_guest_count)
    _at_most(criteria, Reservation.guest_count, search.max_guest_count)
    _at_least(criteria, Reservation.total_amount, search.min_total_amount)
    _at_most(criteria, Reservation.total_amount, search.max_total_amount)

    if search.cancelled_only:
        criteria.append(Reservation.status == ReservationStatus.CANCELLED)
    if search.not_cancelled:
        criteria.append(Reservation.status != ReservationStatus.CANCELLED)

    return criteria
