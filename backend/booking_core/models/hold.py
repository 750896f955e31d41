"""
Hold: a time-boxed claim on a room for a date range.

Key design decisions:
- end_date is exclusive, so back-to-back holds share a boundary date
- Composite index on (room_id, start_date, end_date) serves overlap queries
- Index on (status, expires_at) serves the expiration sweep
- Rows are never hard-deleted by the lifecycle; terminal statuses keep history
"""

import uuid

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Uuid

from booking_core.db.base import Base, TimestampMixin, UTCDateTime
from booking_core.models.status import HoldStatus, status_column_type


class Hold(Base, TimestampMixin):
    __tablename__ = "reservation_holds"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(Uuid, ForeignKey("hotels.id"), nullable=False, index=True)
    room_id = Column(Uuid, ForeignKey("rooms.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(status_column_type(HoldStatus, "hold_status"), nullable=False, default=HoldStatus.ACTIVE)
    expires_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="check_hold_dates_ordered"),
        Index("ix_holds_room_dates", "room_id", "start_date", "end_date"),
        Index("ix_holds_status_expires", "status", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Hold(id={self.id}, room={self.room_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )
