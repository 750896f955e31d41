"""Room booking core: holds, reservations and the per-room consistency gate."""

__version__ = "1.0.0"
