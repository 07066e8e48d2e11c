"""
Prometheus metrics middleware for the lead engine API.

Exposes /metrics endpoint with request counters, latency histograms,
and lead funnel business metrics.
"""

import logging
import time
from typing import Iterable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "leads_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "leads_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
ACTIVE_REQUESTS = Gauge(
    "leads_http_active_requests",
    "Currently active HTTP requests",
)

# Business metrics
LEAD_CATEGORY_COUNT = Counter(
    "leads_category_total",
    "Page-one evaluations by lead category",
    ["category"],
)
ROUTING_OUTCOME_COUNT = Counter(
    "leads_routing_outcome_total",
    "Page-one evaluations by routing outcome",
    ["outcome"],
)
TRACKING_EVENT_COUNT = Counter(
    "leads_tracking_events_total",
    "Tracking events selected",
    ["event"],
)
EMPTY_SLOT_LOOKUPS = Counter(
    "leads_empty_slot_lookups_total",
    "Availability lookups that returned no slots",
    ["counselor"],
)


def record_evaluation(category: str, outcome: str):
    """Record a page-one classification and its route."""
    LEAD_CATEGORY_COUNT.labels(category=category).inc()
    ROUTING_OUTCOME_COUNT.labels(outcome=outcome).inc()


def record_events(event_names: Iterable[str]):
    """Record selected tracking events."""
    for name in event_names:
        TRACKING_EVENT_COUNT.labels(event=name).inc()


def record_empty_slots(counselor: str):
    """Record an availability lookup with nothing bookable."""
    EMPTY_SLOT_LOOKUPS.labels(counselor=counselor).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that records HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        ACTIVE_REQUESTS.inc()
        start = time.time()

        try:
            response = await call_next(request)
        finally:
            ACTIVE_REQUESTS.dec()

        duration = time.time() - start
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
