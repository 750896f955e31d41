"""
Reference tables for collaborators the booking core does not own.

Hotels, room types, rooms and users are managed elsewhere; the core only
needs their identifiers, a room type's capacity, and the room's operational
status, which check-in and check-out update.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Uuid

from booking_core.db.base import Base, TimestampMixin
from booking_core.models.status import RoomStatus, status_column_type


class Hotel(Base, TimestampMixin):
    __tablename__ = "hotels"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Hotel(id={self.id}, name={self.name})>"


class RoomType(Base, TimestampMixin):
    __tablename__ = "room_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(Uuid, ForeignKey("hotels.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    max_guests = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("max_guests > 0", name="check_room_type_max_guests_positive"),
    )

    def __repr__(self) -> str:
        return f"<RoomType(id={self.id}, name={self.name}, max_guests={self.max_guests})>"


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(Uuid, ForeignKey("hotels.id"), nullable=False, index=True)
    room_type_id = Column(Uuid, ForeignKey("room_types.id"), nullable=False)
    room_number = Column(String(20), nullable=False)
    status = Column(status_column_type(RoomStatus, "room_status"), nullable=False, default=RoomStatus.AVAILABLE)

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
