"""
Pydantic schemas for reservation-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from booking_core.models.status import ReservationStatus


class ReservationCreate(BaseModel):
    hotel_id: UUID
    user_id: UUID
    room_id: UUID
    room_type_id: UUID
    start_date: date
    end_date: date
    guest_count: int = Field(..., ge=1)
    status: Optional[ReservationStatus] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    special_requests: Optional[str] = Field(None, max_length=2000)


class ReservationUpdate(ReservationCreate):
    pass


class HoldPromotion(BaseModel):
    room_type_id: UUID
    guest_count: int = Field(..., ge=1)
    status: Optional[ReservationStatus] = None
    total_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    special_requests: Optional[str] = Field(None, max_length=2000)


class ReservationCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    cancelled_by_user_id: Optional[UUID] = None


class ReservationResponse(BaseModel):
    id: UUID
    hotel_id: UUID
    user_id: UUID
    room_id: UUID
    room_type_id: UUID
    hold_id: Optional[UUID]
    start_date: date
    end_date: date
    guest_count: int
    status: ReservationStatus
    total_amount: Optional[Decimal]
    currency: Optional[str]
    special_requests: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_at: Optional[datetime]
    cancelled_by_user_id: Optional[UUID]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationSearch(BaseModel):
    user_id: Optional[UUID] = None
    hotel_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    room_type_id: Optional[UUID] = None
    statuses: list[ReservationStatus] = Field(default_factory=list)

    start_date_from: Optional[date] = None
    start_date_to: Optional[date] = None
    end_date_from: Optional[date] = None
    end_date_to: Optional[date] = None

    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    min_guest_count: Optional[int] = Field(None, ge=1)
    max_guest_count: Optional[int] = Field(None, ge=1)

    min_total_amount: Optional[Decimal] = Field(None, ge=0)
    max_total_amount: Optional[Decimal] = Field(None, ge=0)

    cancelled_only: bool = False
    not_cancelled: bool = False
