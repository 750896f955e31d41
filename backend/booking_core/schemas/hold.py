"""
Pydantic schemas for hold-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from booking_core.models.status import HoldStatus


class HoldCreate(BaseModel):
    hotel_id: UUID
    room_id: UUID
    user_id: UUID
    start_date: date
    end_date: date
    expires_at: Optional[datetime] = None


class HoldUpdate(BaseModel):
    hotel_id: UUID
    room_id: UUID
    user_id: UUID
    start_date: date
    end_date: date
    expires_at: datetime


class HoldResponse(BaseModel):
    id: UUID
    hotel_id: UUID
    room_id: UUID
    user_id: UUID
    start_date: date
    end_date: date
    status: HoldStatus
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class HoldSearch(BaseModel):
    user_id: Optional[UUID] = None
    hotel_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    statuses: list[HoldStatus] = Field(default_factory=list)

    start_date_from: Optional[date] = None
    start_date_to: Optional[date] = None
    end_date_from: Optional[date] = None
    end_date_to: Optional[date] = None

    expires_before: Optional[datetime] = None
    expires_after: Optional[datetime] = None

    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    expired_only: bool = False
    active_only: bool = False
    expiring_soon: bool = False  # ACTIVE and expiring within 24 hours


class SweepRequest(BaseModel):
    now: Optional[datetime] = None


class SweepResponse(BaseModel):
    expired: int
    hold_ids: list[UUID]
