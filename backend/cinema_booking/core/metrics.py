"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, seat_conflict, insufficient_capacity, invalid, busy, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

cancellation_attempts = Counter(
    'cancellation_attempts_total',
    'Total cancellation attempts',
    ['status']  # success, forbidden, already_cancelled, busy, error
)

booking_compensations = Counter(
    'booking_compensations_total',
    'Bookings rolled back because the inventory update failed'
)

# Showtime lock metrics
lock_wait = Histogram(
    'showtime_lock_wait_seconds',
    'Time spent waiting for a showtime lock',
    buckets=[0.0001, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

lock_timeouts = Counter(
    'showtime_lock_timeouts_total',
    'Showtime lock acquisitions that timed out'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_booking_attempt(status: str):
    booking_attempts.labels(status=status).inc()


def record_cancellation(status: str):
    cancellation_attempts.labels(status=status).inc()


def record_lock_wait(seconds: float):
    lock_wait.observe(seconds)


def record_lock_timeout():
    lock_timeouts.inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
