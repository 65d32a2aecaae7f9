"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own the
behaviour import the metric and increment it at the point of action.

  HTTP (filled in by MetricsMiddleware):
    http_requests_total            counter   method, endpoint, status_code
    http_request_duration_seconds  histogram method, endpoint
    http_active_requests           gauge

  Domain:
    user_mutations_total           counter   operation, outcome
    identity_resolutions_total     counter   status
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # argon2 hashing dominates /create and /login, hence the upper buckets
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

USER_MUTATIONS = Counter(
    "user_mutations_total",
    "User record mutations by operation and outcome",
    # operation: create|update|delete
    # outcome: ok|not_found|forbidden|conflict|self_delete|invalid|error
    ["operation", "outcome"],
)

IDENTITY_RESOLUTIONS = Counter(
    "identity_resolutions_total",
    "Acting-identity resolutions by status",
    ["status"],  # resolved|unresolved|invalid
)
