"""Time source for the booking core.

Services call these through the module (``clock.utc_now()``) so tests can
monkeypatch a fixed instant.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def today() -> date:
    return utc_now().date()
