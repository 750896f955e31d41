"""
Reservation: a durable allocation of a room with a check-in/check-out lifecycle.

Key design decisions:
- Live statuses (PENDING, CONFIRMED, CHECKED_IN) must not overlap per room;
  the application gate enforces it, and on PostgreSQL the migration adds an
  exclusion constraint as a second layer
- Cancellation keeps the row and records reason, time and actor
- hold_id links a reservation to the hold it was promoted from
"""

import uuid

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, Numeric, String, Uuid

from booking_core.db.base import Base, TimestampMixin, UTCDateTime
from booking_core.models.status import ReservationStatus, status_column_type


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(Uuid, ForeignKey("hotels.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    room_id = Column(Uuid, ForeignKey("rooms.id"), nullable=False)
    room_type_id = Column(Uuid, ForeignKey("room_types.id"), nullable=False)
    hold_id = Column(Uuid, ForeignKey("reservation_holds.id", ondelete="SET NULL"), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    guest_count = Column(Integer, nullable=False, default=1)
    status = Column(
        status_column_type(ReservationStatus, "reservation_status"),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    total_amount = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=True)
    special_requests = Column(String(2000), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="check_reservation_dates_ordered"),
        CheckConstraint("guest_count > 0", name="check_reservation_guest_count_positive"),
        CheckConstraint("total_amount IS NULL OR total_amount >= 0", name="check_reservation_amount_non_negative"),
        Index("ix_reservations_room_dates", "room_id", "start_date", "end_date"),
        Index("ix_reservations_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, room={self.room_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )
