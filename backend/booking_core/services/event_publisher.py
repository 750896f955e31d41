"""
Domain event publishing.

Events are emitted after the gate is released and the write is committed.
Delivery goes to in-process subscribers and, when Redis is enabled, to a
pub/sub channel for collaborators in other processes (notifications,
reporting). A failing subscriber is logged and never fails the booking.
"""

import inspect
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

from booking_core.core import clock
from booking_core.core.config import get_settings
from booking_core.core.logging import get_logger
from booking_core.infrastructure.redis_client import get_redis

logger = get_logger(__name__)

HOLD_CREATED = "hold.created"
HOLD_UPDATED = "hold.updated"
HOLD_CANCELLED = "hold.cancelled"
HOLD_EXPIRED = "hold.expired"
HOLD_CONVERTED = "hold.converted"
HOLD_DELETED = "hold.deleted"
RESERVATION_CREATED = "reservation.created"
RESERVATION_UPDATED = "reservation.updated"
RESERVATION_CONFIRMED = "reservation.confirmed"
RESERVATION_CANCELLED = "reservation.cancelled"
RESERVATION_CHECKED_IN = "reservation.checked_in"
RESERVATION_CHECKED_OUT = "reservation.checked_out"
RESERVATION_DELETED = "reservation.deleted"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    aggregate_id: UUID
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=clock.utc_now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "name": self.name,
                "aggregate_id": str(self.aggregate_id),
                "payload": self.payload,
                "occurred_at": self.occurred_at.isoformat(),
            },
            default=str,
        )


Subscriber = Callable[[DomainEvent], Union[Awaitable[None], None]]


class EventPublisher:
    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    async def publish(self, event: DomainEvent) -> None:
        logger.info("domain_event", event_name=event.name, aggregate_id=str(event.aggregate_id))

        for handler in list(self._subscribers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("event_handler_failed", event_name=event.name, handler=repr(handler))

        client = await get_redis()
        if not client:
            return
        try:
            await client.publish(get_settings().EVENTS_CHANNEL, event.to_json())
        except Exception as e:
            logger.error("event_publish_failed", event_name=event.name, error=str(e))


_publisher: Optional[EventPublisher] = None


def get_publisher() -> EventPublisher:
    global _publisher
    if _publisher is None:
        _publisher = EventPublisher()
    return _publisher


def hold_payload(hold) -> dict[str, Any]:
    return {
        "hotel_id": str(hold.hotel_id),
        "room_id": str(hold.room_id),
        "user_id": str(hold.user_id),
        "start_date": hold.start_date.isoformat(),
        "end_date": hold.end_date.isoformat(),
        "status": hold.status.value,
        "expires_at": hold.expires_at.isoformat(),
    }


def reservation_payload(reservation) -> dict[str, Any]:
    return {
        "hotel_id": str(reservation.hotel_id),
        "room_id": str(reservation.room_id),
        "user_id": str(reservation.user_id),
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "status": reservation.status.value,
        "guest_count": reservation.guest_count,
        "hold_id": str(reservation.hold_id) if reservation.hold_id else None,
    }
