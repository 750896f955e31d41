"""
Hold endpoints: temporary claims on a room, promotion and expiry.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.session import get_db
from booking_core.schemas.hold import (
    HoldCreate, HoldResponse, HoldSearch, HoldUpdate, SweepRequest, SweepResponse,
)
from booking_core.schemas.reservation import HoldPromotion, ReservationResponse
from booking_core.services import hold_service, reservation_service
from booking_core.services.sweeper import sweep

router = APIRouter(prefix="/holds", tags=["Holds"])


@router.post("/", response_model=HoldResponse, status_code=status.HTTP_201_CREATED)
async def create_hold(hold_data: HoldCreate, db: AsyncSession = Depends(get_db)):
    """
    Place a hold on a room for [start_date, end_date).

    Serialized per room: of two simultaneous overlapping requests exactly one
    succeeds and the other gets 409.
    """
    return await hold_service.create_hold(db, hold_data)


@router.get("/", response_model=list[HoldResponse])
async def list_holds(db: AsyncSession = Depends(get_db)):
    return await hold_service.list_holds(db)


@router.post("/search", response_model=list[HoldResponse])
async def search_holds(search: HoldSearch, db: AsyncSession = Depends(get_db)):
    return await hold_service.search_holds(db, search)


@router.post("/expire-due", response_model=SweepResponse)
async def expire_due_holds(
    sweep_request: Optional[SweepRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """Run one expiration pass now instead of waiting for the sweeper."""
    now = sweep_request.now if sweep_request else None
    expired = await sweep(db, now)
    return SweepResponse(expired=len(expired), hold_ids=[hold.id for hold in expired])


@router.get("/user/{user_id}", response_model=list[HoldResponse])
async def list_user_holds(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await hold_service.list_user_holds(db, user_id)


@router.get("/room/{room_id}", response_model=list[HoldResponse])
async def list_room_holds(room_id: UUID, db: AsyncSession = Depends(get_db)):
    return await hold_service.list_room_holds(db, room_id)


@router.get("/{hold_id}", response_model=HoldResponse)
async def get_hold(hold_id: UUID, db: AsyncSession = Depends(get_db)):
    return await hold_service.get_hold(db, hold_id)


@router.put("/{hold_id}", response_model=HoldResponse)
async def update_hold(hold_id: UUID, hold_data: HoldUpdate, db: AsyncSession = Depends(get_db)):
    return await hold_service.update_hold(db, hold_id, hold_data)


@router.post("/{hold_id}/cancel", response_model=HoldResponse)
async def cancel_hold(hold_id: UUID, db: AsyncSession = Depends(get_db)):
    return await hold_service.cancel_hold(db, hold_id)


@router.post(
    "/{hold_id}/promote",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def promote_hold(hold_id: UUID, promotion: HoldPromotion, db: AsyncSession = Depends(get_db)):
    """Convert an active hold into a reservation for the same room and dates."""
    return await reservation_service.promote_hold(db, hold_id, promotion)


@router.delete("/{hold_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_hold(hold_id: UUID, db: AsyncSession = Depends(get_db)):
    await hold_service.delete_hold(db, hold_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
