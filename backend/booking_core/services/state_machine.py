"""
Allowed status transitions for holds and reservations.

Every status change in the services goes through `ensure_hold_transition`
or `ensure_reservation_transition`; anything not listed in the tables below
is rejected with ConflictError.
"""

from booking_core.core.exceptions import ConflictError
from booking_core.models.status import HoldStatus, ReservationStatus

HOLD_TRANSITIONS: dict[HoldStatus, frozenset[HoldStatus]] = {
    HoldStatus.ACTIVE: frozenset({HoldStatus.CANCELLED, HoldStatus.EXPIRED, HoldStatus.CONVERTED}),
    HoldStatus.CANCELLED: frozenset(),
    HoldStatus.EXPIRED: frozenset(),
    HoldStatus.CONVERTED: frozenset(),
}

RESERVATION_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED}),
    ReservationStatus.CHECKED_IN: frozenset({ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.CHECKED_OUT: frozenset(),
}

INITIAL_RESERVATION_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

_HOLD_MESSAGES = {
    (HoldStatus.CANCELLED, HoldStatus.CANCELLED): "Hold is already cancelled",
    (HoldStatus.EXPIRED, HoldStatus.CANCELLED): "Cannot cancel an expired hold",
    (HoldStatus.CONVERTED, HoldStatus.CANCELLED): "Cannot cancel a hold that was converted to a reservation",
    (HoldStatus.CONVERTED, HoldStatus.CONVERTED): "Hold was already converted to a reservation",
    (HoldStatus.EXPIRED, HoldStatus.CONVERTED): "Hold has expired",
    (HoldStatus.CANCELLED, HoldStatus.CONVERTED): "Hold is cancelled",
}

_RESERVATION_MESSAGES = {
    (ReservationStatus.CANCELLED, ReservationStatus.CANCELLED): "Reservation is already cancelled",
    (ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED): "Cannot cancel a checked-out reservation",
}


def is_terminal_hold(status: HoldStatus) -> bool:
    return not HOLD_TRANSITIONS[status]


def is_terminal_reservation(status: ReservationStatus) -> bool:
    return not RESERVATION_TRANSITIONS[status]


def ensure_hold_transition(current: HoldStatus, target: HoldStatus) -> None:
    if target in HOLD_TRANSITIONS[current]:
        return
    message = _HOLD_MESSAGES.get(
        (current, target),
        f"Hold cannot move from {current.value} to {target.value}",
    )
    raise ConflictError(message)


def ensure_reservation_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    if target in RESERVATION_TRANSITIONS[current]:
        return
    message = _RESERVATION_MESSAGES.get((current, target))
    if message is None:
        if target == ReservationStatus.CHECKED_IN:
            message = f"Reservation must be in CONFIRMED status to check in. Current status: {current.value}"
        elif target == ReservationStatus.CHECKED_OUT:
            message = f"Reservation must be in CHECKED_IN status to check out. Current status: {current.value}"
        elif target == ReservationStatus.CONFIRMED:
            message = f"Only PENDING reservations can be confirmed. Current status: {current.value}"
        else:
            message = f"Reservation cannot move from {current.value} to {target.value}"
    raise ConflictError(message)
