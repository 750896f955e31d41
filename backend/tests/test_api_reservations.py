"""
Tests for reservation endpoints.
"""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient

from booking_core.core import clock


def day(offset: int) -> str:
    return (clock.today() + timedelta(days=offset)).isoformat()


def reservation_body(directory, start: int, end: int, room=None, **overrides) -> dict:
    body = {
        "hotel_id": str(directory.hotel.id),
        "user_id": str(directory.user.id),
        "room_id": str((room or directory.room).id),
        "room_type_id": str(directory.room_type.id),
        "start_date": day(start),
        "end_date": day(end),
        "guest_count": 2,
        "total_amount": "199.50",
        "currency": "GBP",
    }
    body.update(overrides)
    return body


async def create(client: AsyncClient, directory, start: int, end: int, **overrides) -> dict:
    response = await client.post("/api/v1/reservations/", json=reservation_body(directory, start, end, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_reservation(client: AsyncClient, directory):
    data = await create(client, directory, 7, 10)

    assert data["status"] == "PENDING"
    assert data["guest_count"] == 2
    assert data["hold_id"] is None
    assert float(data["total_amount"]) == 199.5


@pytest.mark.asyncio
async def test_double_booking_returns_409(client: AsyncClient, directory):
    await create(client, directory, 7, 10)

    response = await client.post("/api/v1/reservations/", json=reservation_body(directory, 9, 12))
    assert response.status_code == 409
    assert response.json() == {"detail": "Room is already reserved for the selected date range"}


@pytest.mark.asyncio
async def test_validation_errors(client: AsyncClient, directory):
    past = await client.post("/api/v1/reservations/", json=reservation_body(directory, -2, 1))
    assert past.status_code == 400

    crowded = await client.post("/api/v1/reservations/", json=reservation_body(directory, 7, 10, guest_count=4))
    assert crowded.status_code == 400
    assert crowded.json()["detail"] == "Guest count (4) exceeds room capacity (2)"

    wrong_hotel = await client.post(
        "/api/v1/reservations/", json=reservation_body(directory, 7, 10, room=directory.foreign_room)
    )
    assert wrong_hotel.status_code == 400

    zero_guests = await client.post("/api/v1/reservations/", json=reservation_body(directory, 7, 10, guest_count=0))
    assert zero_guests.status_code == 422


@pytest.mark.asyncio
async def test_unknown_references_return_404(client: AsyncClient, directory):
    response = await client.post(
        "/api/v1/reservations/", json=reservation_body(directory, 7, 10, user_id=str(uuid.uuid4()))
    )
    assert response.status_code == 404

    missing = await client.get(f"/api/v1/reservations/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["detail"].startswith("Reservation not found with id:")


@pytest.mark.asyncio
async def test_full_stay(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 0, 2))["id"]

    confirmed = await client.post(f"/api/v1/reservations/{reservation_id}/confirm")
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "CONFIRMED"

    checked_in = await client.post(f"/api/v1/reservations/{reservation_id}/check-in")
    assert checked_in.status_code == 200
    assert checked_in.json()["status"] == "CHECKED_IN"

    checked_out = await client.post(f"/api/v1/reservations/{reservation_id}/check-out")
    assert checked_out.status_code == 200
    assert checked_out.json()["status"] == "CHECKED_OUT"

    cancel = await client.post(f"/api/v1/reservations/{reservation_id}/cancel")
    assert cancel.status_code == 409


@pytest.mark.asyncio
async def test_check_in_pending_returns_409(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 0, 2))["id"]

    response = await client.post(f"/api/v1/reservations/{reservation_id}/check-in")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_with_reason(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 7, 10))["id"]

    response = await client.post(
        f"/api/v1/reservations/{reservation_id}/cancel",
        json={"reason": "Flight cancelled", "cancelled_by_user_id": str(directory.user.id)},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "CANCELLED"
    assert data["cancellation_reason"] == "Flight cancelled"
    assert data["cancelled_at"] is not None

    # The range is free again
    await create(client, directory, 7, 10)


@pytest.mark.asyncio
async def test_cancel_without_body(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 7, 10))["id"]

    response = await client.post(f"/api/v1/reservations/{reservation_id}/cancel")
    assert response.status_code == 200
    assert response.json()["cancellation_reason"] is None


@pytest.mark.asyncio
async def test_update_reservation(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 7, 10))["id"]

    response = await client.put(
        f"/api/v1/reservations/{reservation_id}",
        json=reservation_body(directory, 8, 11, guest_count=1, special_requests="Late arrival"),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["start_date"] == day(8)
    assert data["special_requests"] == "Late arrival"


@pytest.mark.asyncio
async def test_lookups_and_search(client: AsyncClient, directory):
    first = await create(client, directory, 7, 10)
    await create(client, directory, 7, 10, room=directory.second_room, user_id=str(directory.other_user.id))

    assert len((await client.get("/api/v1/reservations/")).json()) == 2
    assert len((await client.get(f"/api/v1/reservations/hotel/{directory.hotel.id}")).json()) == 2
    assert len((await client.get(f"/api/v1/reservations/user/{directory.user.id}")).json()) == 1
    by_room = (await client.get(f"/api/v1/reservations/room/{directory.room.id}")).json()
    assert [r["id"] for r in by_room] == [first["id"]]

    found = await client.post(
        "/api/v1/reservations/search",
        json={"user_id": str(directory.other_user.id), "statuses": ["PENDING"]},
    )
    assert found.status_code == 200
    assert [r["room_id"] for r in found.json()] == [str(directory.second_room.id)]


@pytest.mark.asyncio
async def test_delete_reservation(client: AsyncClient, directory):
    reservation_id = (await create(client, directory, 7, 10))["id"]

    response = await client.delete(f"/api/v1/reservations/{reservation_id}")
    assert response.status_code == 204
    assert (await client.get(f"/api/v1/reservations/{reservation_id}")).status_code == 404
