"""
Tests for logging configuration.
"""

from booking_core.core.config import Settings
from booking_core.core.logging import service_context, use_json


def test_service_context_stamps_identity():
    settings = Settings(APP_NAME="Room Booking Core", ENVIRONMENT="staging")
    event = service_context(settings)(None, "info", {"event": "hold_created"})

    assert event["service"] == "room-booking-core"
    assert event["env"] == "staging"


def test_service_context_keeps_explicit_values():
    processor = service_context(Settings(ENVIRONMENT="staging"))
    event = processor(None, "info", {"event": "x", "env": "override"})
    assert event["env"] == "override"


def test_json_follows_environment_unless_forced():
    assert use_json(Settings(ENVIRONMENT="production")) is True
    assert use_json(Settings(ENVIRONMENT="development")) is False
    assert use_json(Settings(ENVIRONMENT="development", LOG_JSON=True)) is True
