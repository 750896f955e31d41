"""
Pytest fixtures for test database, client, and seeded directory records.

Each test gets its own file-backed SQLite database (aiosqlite) so that
several sessions can run side by side, which the concurrency tests need.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SWEEP_ENABLED", "false")
os.environ.setdefault("GATE_BACKEND", "local")

from dataclasses import dataclass  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from booking_core.db.base import Base  # noqa: E402
from booking_core.db.session import get_db  # noqa: E402
from booking_core.main import app  # noqa: E402
from booking_core.models import Hotel, Room, RoomType, User  # noqa: E402
from booking_core.services import event_publisher  # noqa: E402
from booking_core.services.strategy_factory import reset_gate  # noqa: E402


@dataclass
class Directory:
    hotel: Hotel
    other_hotel: Hotel
    room_type: RoomType
    room: Room
    second_room: Room
    foreign_room: Room
    user: User
    other_user: User


@pytest.fixture(autouse=True)
def fresh_singletons():
    """New gate and publisher per test so locks and subscribers never leak."""
    reset_gate()
    event_publisher._publisher = None
    yield
    reset_gate()
    event_publisher._publisher = None


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables in a fresh database, yield a session factory, then dispose."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session from the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def directory(session_factory) -> Directory:
    """
    One hotel with a two-guest room type and two rooms, a second hotel, two users.

    Seeded through its own session: the returned objects are detached, so a
    rollback in the session under test never expires them.
    """
    async with session_factory() as db_session:
        return await _seed_directory(db_session)


async def _seed_directory(db_session: AsyncSession) -> Directory:
    hotel = Hotel(name="Harbour View")
    other_hotel = Hotel(name="Hill Lodge")
    db_session.add_all([hotel, other_hotel])
    await db_session.flush()

    room_type = RoomType(hotel_id=hotel.id, name="Double", max_guests=2)
    other_type = RoomType(hotel_id=other_hotel.id, name="Single", max_guests=1)
    db_session.add_all([room_type, other_type])
    await db_session.flush()

    room = Room(hotel_id=hotel.id, room_type_id=room_type.id, room_number="101")
    second_room = Room(hotel_id=hotel.id, room_type_id=room_type.id, room_number="102")
    foreign_room = Room(hotel_id=other_hotel.id, room_type_id=other_type.id, room_number="1")
    user = User(email="guest@example.com", first_name="Ada", last_name="Guest")
    other_user = User(email="other@example.com", first_name="Bo", last_name="Other")
    db_session.add_all([room, second_room, foreign_room, user, other_user])
    await db_session.commit()

    return Directory(
        hotel=hotel,
        other_hotel=other_hotel,
        room_type=room_type,
        room=room,
        second_room=second_room,
        foreign_room=foreign_room,
        user=user,
        other_user=other_user,
    )
