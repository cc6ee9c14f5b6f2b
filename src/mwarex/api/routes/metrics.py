"""Prometheus request metrics and the ``/metrics`` scrape endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

router = APIRouter(tags=["Metrics"])

REQUEST_COUNT = Counter(
    "mwarex_http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "mwarex_http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["path"],
    # Upload and approve requests stream whole video files.
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120),
)


def route_label(request: Request) -> str:
    """Route template (``/api/v1/videos/{video_id}``), never the raw path."""
    route = request.scope.get("route")
    return str(getattr(route, "path", "") or "unmatched")


def observe_request(request: Request, status_code: int, duration_seconds: float) -> None:
    path = route_label(request)
    REQUEST_COUNT.labels(method=request.method, path=path, status=status_code).inc()
    REQUEST_LATENCY.labels(path=path).observe(duration_seconds)


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router", "observe_request", "route_label"]
