"""
Service interfaces for dependency inversion.
Allows swapping gate implementations without changing booking logic.
"""

from .gate import RoomChanged, RoomGate, ensure_room_held
from .local_gate import LocalRoomGate

__all__ = ['RoomGate', 'LocalRoomGate', 'RoomChanged', 'ensure_room_held']
