"""
Tests for hold endpoints.
"""

import asyncio
import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient

from booking_core.core import clock


def day(offset: int) -> str:
    return (clock.today() + timedelta(days=offset)).isoformat()


def hold_body(directory, start: int, end: int, room=None, **overrides) -> dict:
    body = {
        "hotel_id": str(directory.hotel.id),
        "room_id": str((room or directory.room).id),
        "user_id": str(directory.user.id),
        "start_date": day(start),
        "end_date": day(end),
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_and_get_hold(client: AsyncClient, directory):
    response = await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "ACTIVE"
    assert data["room_id"] == str(directory.room.id)
    assert data["start_date"] == day(3)

    fetched = await client.get(f"/api/v1/holds/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_overlapping_hold_returns_409(client: AsyncClient, directory):
    first = await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))
    assert first.status_code == 201

    second = await client.post("/api/v1/holds/", json=hold_body(directory, 4, 6))
    assert second.status_code == 409
    assert second.json() == {"detail": "Room has an active hold for the selected date range"}


@pytest.mark.asyncio
async def test_simultaneous_requests_one_wins(client: AsyncClient, directory):
    responses = await asyncio.gather(*[
        client.post("/api/v1/holds/", json=hold_body(directory, 3, 5)) for _ in range(5)
    ])

    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 409, 409, 409, 409]


@pytest.mark.asyncio
async def test_bad_dates_return_400(client: AsyncClient, directory):
    response = await client.post("/api/v1/holds/", json=hold_body(directory, 5, 3))
    assert response.status_code == 400
    assert response.json()["detail"] == "End date must be after start date"


@pytest.mark.asyncio
async def test_malformed_body_returns_422(client: AsyncClient, directory):
    response = await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5, room_id="room-101"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_hold_returns_404(client: AsyncClient, directory):
    response = await client.get(f"/api/v1/holds/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["detail"].startswith("Reservation hold not found with id:")


@pytest.mark.asyncio
async def test_cancel_hold(client: AsyncClient, directory):
    hold_id = (await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))).json()["id"]

    response = await client.post(f"/api/v1/holds/{hold_id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    again = await client.post(f"/api/v1/holds/{hold_id}/cancel")
    assert again.status_code == 409
    assert again.json()["detail"] == "Hold is already cancelled"


@pytest.mark.asyncio
async def test_update_hold(client: AsyncClient, directory):
    hold_id = (await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))).json()["id"]
    expires_at = (clock.utc_now() + timedelta(hours=1)).isoformat()

    response = await client.put(
        f"/api/v1/holds/{hold_id}",
        json=hold_body(directory, 4, 7, room=directory.second_room, expires_at=expires_at),
    )
    assert response.status_code == 200
    assert response.json()["room_id"] == str(directory.second_room.id)
    assert response.json()["end_date"] == day(7)


@pytest.mark.asyncio
async def test_promote_hold(client: AsyncClient, directory):
    hold_id = (await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))).json()["id"]

    response = await client.post(
        f"/api/v1/holds/{hold_id}/promote",
        json={"room_type_id": str(directory.room_type.id), "guest_count": 2, "currency": "usd"},
    )
    assert response.status_code == 201
    reservation = response.json()
    assert reservation["hold_id"] == hold_id
    assert reservation["status"] == "PENDING"
    assert reservation["currency"] == "USD"

    hold = await client.get(f"/api/v1/holds/{hold_id}")
    assert hold.json()["status"] == "CONVERTED"


@pytest.mark.asyncio
async def test_expire_due_endpoint(client: AsyncClient, directory):
    hold_id = (await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))).json()["id"]

    nothing = await client.post("/api/v1/holds/expire-due")
    assert nothing.json() == {"expired": 0, "hold_ids": []}

    later = (clock.utc_now() + timedelta(hours=1)).isoformat()
    response = await client.post("/api/v1/holds/expire-due", json={"now": later})
    assert response.status_code == 200
    assert response.json() == {"expired": 1, "hold_ids": [hold_id]}

    hold = await client.get(f"/api/v1/holds/{hold_id}")
    assert hold.json()["status"] == "EXPIRED"


@pytest.mark.asyncio
async def test_list_and_search_holds(client: AsyncClient, directory):
    await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))
    await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5, room=directory.second_room))

    assert len((await client.get("/api/v1/holds/")).json()) == 2
    assert len((await client.get(f"/api/v1/holds/user/{directory.user.id}")).json()) == 2
    assert len((await client.get(f"/api/v1/holds/room/{directory.second_room.id}")).json()) == 1

    found = await client.post("/api/v1/holds/search", json={"room_id": str(directory.room.id), "active_only": True})
    assert found.status_code == 200
    assert [h["room_id"] for h in found.json()] == [str(directory.room.id)]


@pytest.mark.asyncio
async def test_delete_hold(client: AsyncClient, directory):
    hold_id = (await client.post("/api/v1/holds/", json=hold_body(directory, 3, 5))).json()["id"]

    response = await client.delete(f"/api/v1/holds/{hold_id}")
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/holds/{hold_id}")).status_code == 404
