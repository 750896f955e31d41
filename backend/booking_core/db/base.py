"""
Declarative base, timestamp mixin and column types shared by all models.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from booking_core.core import clock


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp on every backend.

    Values are normalised to UTC on the way in; naive values coming back
    (SQLite keeps no offset) are tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(UTCDateTime, nullable=False, default=clock.utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=clock.utc_now, onupdate=clock.utc_now)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes from callers as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
