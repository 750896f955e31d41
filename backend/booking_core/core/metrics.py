"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

import functools
import time

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from booking_core.core.exceptions import BookingError

# Booking metrics
booking_operations = Counter(
    'booking_operations_total',
    'Hold and reservation operations',
    ['operation', 'outcome']  # success, conflict, not_found, invalid, unavailable
)

booking_latency = Histogram(
    'booking_operation_latency_seconds',
    'Hold and reservation operation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0]
)

# Consistency gate metrics
gate_wait_latency = Histogram(
    'room_gate_wait_seconds',
    'Time spent waiting for the per-room gate',
    ['backend'],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

gate_timeouts = Counter(
    'room_gate_timeouts_total',
    'Room gate acquisition attempts that timed out',
    ['backend']
)

# Sweeper metrics
holds_expired = Counter(
    'holds_expired_total',
    'Holds transitioned to EXPIRED by the sweeper'
)

sweep_runs = Counter(
    'hold_sweeps_total',
    'Expiration sweep runs',
    ['result']  # ok, error
)

# HTTP metrics
http_request_latency = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_operation(operation: str, outcome: str):
    """Record a booking operation. Outcome: success or a BookingError kind."""
    booking_operations.labels(operation=operation, outcome=outcome).inc()


def track_operation(operation: str):
    """
    Decorator for async service functions: counts outcomes and observes latency.
    Errors are re-raised untouched.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except BookingError as exc:
                record_booking_operation(operation, exc.kind)
                raise
            finally:
                booking_latency.labels(operation=operation).observe(time.perf_counter() - start)
            record_booking_operation(operation, "success")
            return result
        return wrapper
    return decorator
