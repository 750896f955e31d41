"""
Reservation endpoints: booking, stay lifecycle, lookups.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.session import get_db
from booking_core.schemas.reservation import (
    ReservationCancel, ReservationCreate, ReservationResponse, ReservationSearch, ReservationUpdate,
)
from booking_core.services import reservation_service

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(reservation_data: ReservationCreate, db: AsyncSession = Depends(get_db)):
    """
    Reserve a room for [start_date, end_date).

    Returns 409 if a live reservation already covers any night of the range.
    """
    return await reservation_service.create_reservation(db, reservation_data)


@router.get("/", response_model=list[ReservationResponse])
async def list_reservations(db: AsyncSession = Depends(get_db)):
    return await reservation_service.list_reservations(db)


@router.post("/search", response_model=list[ReservationResponse])
async def search_reservations(search: ReservationSearch, db: AsyncSession = Depends(get_db)):
    return await reservation_service.search_reservations(db, search)


@router.get("/user/{user_id}", response_model=list[ReservationResponse])
async def list_user_reservations(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.list_user_reservations(db, user_id)


@router.get("/hotel/{hotel_id}", response_model=list[ReservationResponse])
async def list_hotel_reservations(hotel_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.list_hotel_reservations(db, hotel_id)


@router.get("/room/{room_id}", response_model=list[ReservationResponse])
async def list_room_reservations(room_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.list_room_reservations(db, room_id)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.get_reservation(db, reservation_id)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await reservation_service.update_reservation(db, reservation_id, reservation_data)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.confirm_reservation(db, reservation_id)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: UUID,
    cancellation: Optional[ReservationCancel] = None,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a live reservation, recording reason and actor when given."""
    return await reservation_service.cancel_reservation(db, reservation_id, cancellation)


@router.post("/{reservation_id}/check-in", response_model=ReservationResponse)
async def check_in(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.check_in(db, reservation_id)


@router.post("/{reservation_id}/check-out", response_model=ReservationResponse)
async def check_out(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reservation_service.check_out(db, reservation_id)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_reservation(reservation_id: UUID, db: AsyncSession = Depends(get_db)):
    await reservation_service.delete_reservation(db, reservation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
