"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total event registration attempts',
    ['status']  # registered, already_registered, full, not_found, denied
)

unregistrations = Counter(
    'unregistrations_total',
    'Total event unregistrations'
)

# Account and event lifecycle
users_registered = Counter(
    'users_registered_total',
    'Total user accounts created'
)

events_created = Counter(
    'events_created_total',
    'Total events created'
)

events_deleted = Counter(
    'events_deleted_total',
    'Total events deleted, with their registrations'
)

# Notification metrics
notifications = Counter(
    'notifications_total',
    'Notification dispatches',
    ['kind', 'result']  # result: sent, failed, logged
)

# Rate limiting
rate_limited_requests = Counter(
    'rate_limited_requests_total',
    'Requests rejected by the rate limiter'
)

# Store size
store_records = Gauge(
    'store_records',
    'Records currently held by the in-memory store',
    ['kind']  # users, events, registrations
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


def record_registration_attempt(status: str):
    """Record registration attempt. Status: registered, already_registered, full, not_found, denied"""
    registration_attempts.labels(status=status).inc()


def record_notification(kind: str, result: str):
    """Record notification dispatch. Result: sent, failed, logged"""
    notifications.labels(kind=kind, result=result).inc()


def record_store_stats(stats: dict):
    """Publish store totals as gauges."""
    for kind, value in stats.items():
        store_records.labels(kind=kind).set(value)
