"""
Room gate factory.
Configures which consistency gate implementation guards booking writes.
"""

from typing import Optional

from booking_core.core.config import get_settings
from booking_core.services.gate_service import RedisRoomGate
from booking_core.services.interfaces.gate import RoomGate
from booking_core.services.interfaces.local_gate import LocalRoomGate


def create_gate() -> RoomGate:
    """
    Build the configured gate.

    - local: LocalRoomGate (single process, development and tests)
    - redis: RedisRoomGate (several processes)
    """
    backend = get_settings().GATE_BACKEND.lower()

    if backend == "redis":
        return RedisRoomGate()
    if backend == "local":
        return LocalRoomGate()
    raise ValueError(f"Unknown GATE_BACKEND: {backend}")


# Singleton instance
_gate: Optional[RoomGate] = None


def get_gate() -> RoomGate:
    """Get room gate singleton."""
    global _gate
    if _gate is None:
        _gate = create_gate()
    return _gate


def reset_gate() -> None:
    global _gate
    _gate = None
