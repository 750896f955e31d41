from booking_core.models.directory import Hotel, Room, RoomType, User
from booking_core.models.hold import Hold
from booking_core.models.reservation import Reservation
from booking_core.models.status import HoldStatus, ReservationStatus, RoomStatus

__all__ = [
    "Hotel", "Room", "RoomType", "User",
    "Hold", "Reservation",
    "HoldStatus", "ReservationStatus", "RoomStatus",
]
