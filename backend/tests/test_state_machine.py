"""
Tests for hold and reservation status transitions.
"""

import pytest

from booking_core.core.exceptions import ConflictError
from booking_core.models.status import HoldStatus, ReservationStatus
from booking_core.services.state_machine import (
    ensure_hold_transition, ensure_reservation_transition, is_terminal_hold, is_terminal_reservation,
)


@pytest.mark.parametrize("target", [HoldStatus.CANCELLED, HoldStatus.EXPIRED, HoldStatus.CONVERTED])
def test_active_hold_can_leave(target):
    ensure_hold_transition(HoldStatus.ACTIVE, target)


@pytest.mark.parametrize("status", [HoldStatus.CANCELLED, HoldStatus.EXPIRED, HoldStatus.CONVERTED])
def test_terminal_hold_statuses(status):
    assert is_terminal_hold(status)
    with pytest.raises(ConflictError):
        ensure_hold_transition(status, HoldStatus.ACTIVE)


def test_hold_cancel_messages():
    with pytest.raises(ConflictError) as exc:
        ensure_hold_transition(HoldStatus.CANCELLED, HoldStatus.CANCELLED)
    assert exc.value.detail == "Hold is already cancelled"

    with pytest.raises(ConflictError) as exc:
        ensure_hold_transition(HoldStatus.EXPIRED, HoldStatus.CANCELLED)
    assert exc.value.detail == "Cannot cancel an expired hold"


def test_reservation_happy_path():
    ensure_reservation_transition(ReservationStatus.PENDING, ReservationStatus.CONFIRMED)
    ensure_reservation_transition(ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)
    ensure_reservation_transition(ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT)


@pytest.mark.parametrize(
    "status",
    [ReservationStatus.PENDING, ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN],
)
def test_live_reservations_can_be_cancelled(status):
    assert not is_terminal_reservation(status)
    ensure_reservation_transition(status, ReservationStatus.CANCELLED)


def test_reservation_rejections():
    with pytest.raises(ConflictError) as exc:
        ensure_reservation_transition(ReservationStatus.PENDING, ReservationStatus.CHECKED_IN)
    assert exc.value.detail == "Reservation must be in CONFIRMED status to check in. Current status: PENDING"

    with pytest.raises(ConflictError) as exc:
        ensure_reservation_transition(ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_OUT)
    assert exc.value.detail == "Reservation must be in CHECKED_IN status to check out. Current status: CONFIRMED"

    with pytest.raises(ConflictError) as exc:
        ensure_reservation_transition(ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED)
    assert exc.value.detail == "Cannot cancel a checked-out reservation"

    with pytest.raises(ConflictError) as exc:
        ensure_reservation_transition(ReservationStatus.CANCELLED, ReservationStatus.CANCELLED)
    assert exc.value.detail == "Reservation is already cancelled"
    assert exc.value.status_code == 409
