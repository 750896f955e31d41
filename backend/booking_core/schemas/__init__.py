from booking_core.schemas.hold import (
    HoldCreate, HoldResponse, HoldSearch, HoldUpdate, SweepRequest, SweepResponse,
)
from booking_core.schemas.reservation import (
    HoldPromotion, ReservationCancel, ReservationCreate, ReservationResponse,
    ReservationSearch, ReservationUpdate,
)

__all__ = [
    "HoldCreate", "HoldUpdate", "HoldResponse", "HoldSearch", "SweepRequest", "SweepResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse", "ReservationSearch",
    "ReservationCancel", "HoldPromotion",
]
