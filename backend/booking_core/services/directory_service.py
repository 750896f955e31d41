"""
Lookups against collaborator-owned records (hotels, rooms, users, room types).

The booking core never creates or edits these; it resolves them by id and
flips Room.status during check-in and check-out.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core.exceptions import InvalidInputError, NotFoundError
from booking_core.models.directory import Hotel, Room, RoomType, User
from booking_core.models.status import RoomStatus


async def resolve_hotel(db: AsyncSession, hotel_id: UUID) -> Hotel:
    hotel = await db.get(Hotel, hotel_id)
    if not hotel:
        raise NotFoundError(f"Hotel not found with id: {hotel_id}")
    return hotel


async def resolve_room(db: AsyncSession, room_id: UUID, refresh: bool = False) -> Room:
    """Fetch a room; `refresh` forces a re-read, used once the room gate is held."""
    room = await db.get(Room, room_id, populate_existing=refresh)
    if not room:
        raise NotFoundError(f"Room not found with id: {room_id}")
    return room


async def resolve_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User not found with id: {user_id}")
    return user


async def resolve_room_type(db: AsyncSession, room_type_id: UUID) -> RoomType:
    room_type = await db.get(RoomType, room_type_id)
    if not room_type:
        raise NotFoundError(f"RoomType not found with id: {room_type_id}")
    return room_type


def ensure_room_in_hotel(room: Room, hotel_id: UUID) -> None:
    if room.hotel_id != hotel_id:
        raise InvalidInputError(f"Room {room.id} does not belong to hotel {hotel_id}")


def set_room_status(room: Room, status: RoomStatus) -> None:
    """Stage a room status change; it commits with the caller's transaction."""
    room.status = status
