"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total participant registration attempts',
    ['result']  # success, not_found, not_open, full, duplicate, error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration request latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Check-in metrics
checkins = Counter(
    'participant_checkins_total',
    'Participants checked in',
    ['mode', 'method']  # single/bulk, manual/qr/...
)

checkin_conflicts = Counter(
    'participant_checkin_conflicts_total',
    'Check-in attempts on participants already checked in'
)

# Notification queue metrics
email_jobs = Counter(
    'email_jobs_total',
    'Confirmation email jobs handed to the queue',
    ['result']  # queued, skipped, failed
)

# Authorization
access_denied = Counter(
    'access_denied_total',
    'Requests rejected by the organizer/admin guard'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration(result: str):
    """Record registration attempt. Result: success, not_found, not_open, full, duplicate, error"""
    registration_attempts.labels(result=result).inc()


def record_checkins(count: int, method: str, bulk: bool = False):
    if count <= 0:
        return
    checkins.labels(mode="bulk" if bulk else "single", method=method).inc(count)


def record_email_job(result: str):
    """Record email enqueue outcome. Result: queued, skipped, failed"""
    email_jobs.labels(result=result).inc()
