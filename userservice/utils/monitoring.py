"""Prometheus metrics for the HTTP layer and the user store."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "userservice_http_requests_total",
    "HTTP requests by route template and status",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "userservice_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

user_store_errors_total = Counter(
    "userservice_user_store_errors_total",
    "Failed user store operations by error kind",
    ["operation", "kind"],
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)


def record_store_error(operation: str, kind: str) -> None:
    user_store_errors_total.labels(operation=operation, kind=kind).inc()
