"""
TBO Hotel Proxy - Prometheus Metrics
Request latency, TBO latency, cache effectiveness

Metrics:
- http_requests_total: Total HTTP requests
- http_request_duration_seconds: Request latency histogram
- hotelproxy_external_api_duration_seconds: TBO / Razorpay latencies
- hotelproxy_external_api_calls_total: TBO / Razorpay call counts
- hotelproxy_cache_lookups_total: Cache hits and misses per entity
- hotelproxy_card_info_batches_total: Card-info backfill batches
"""

import re
import time
import logging
from typing import Callable
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY
)
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("HotelProxy-Metrics")

# ═══════════════════════════════════════════════════════════════════
# METRIC DEFINITIONS
# ═══════════════════════════════════════════════════════════════════

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

EXTERNAL_API_DURATION = Histogram(
    "hotelproxy_external_api_duration_seconds",
    "External API call duration",
    ["service"],  # tbo, razorpay
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0, 10.0, 30.0]
)

EXTERNAL_API_CALLS = Counter(
    "hotelproxy_external_api_calls_total",
    "Total external API calls",
    ["service", "status"]
)

CACHE_LOOKUPS = Counter(
    "hotelproxy_cache_lookups_total",
    "Cache lookups by entity and result",
    ["entity", "result"]  # result: hit, miss
)

CARD_INFO_BATCHES = Counter(
    "hotelproxy_card_info_batches_total",
    "Card-info backfill batches sent to TBO",
    ["status"]
)


# ═══════════════════════════════════════════════════════════════════
# MIDDLEWARE
# ═══════════════════════════════════════════════════════════════════

class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for automatic request metrics
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(request.url.path)

        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
        finally:
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

        return response

    def _normalize_path(self, path: str) -> str:
        """
        Normalize path by replacing IDs with placeholders
        /api/payment/bookings/order_N5xyz → /api/payment/bookings/{order_id}
        """
        path = re.sub(r'order_[A-Za-z0-9]+', '{order_id}', path)
        path = re.sub(r'/\d+(?=/|$)', '/{id}', path)
        return path


# ═══════════════════════════════════════════════════════════════════
# CONTEXT MANAGERS
# ═══════════════════════════════════════════════════════════════════

@contextmanager
def track_external_api(service: str):
    """
    Context manager to track external API calls

    Usage:
        with track_external_api("tbo"):
            response = await http.post(...)
    """
    start_time = time.perf_counter()
    status = "success"

    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        EXTERNAL_API_DURATION.labels(service=service).observe(duration)
        EXTERNAL_API_CALLS.labels(service=service, status=status).inc()

        if duration > 10.0:
            logger.warning(f"⚠️ Slow external call: {service} took {duration:.2f}s")


def record_cache_lookup(entity: str, hit: bool, count: int = 1):
    """Count cache hits/misses for an entity type"""
    if count <= 0:
        return
    CACHE_LOOKUPS.labels(entity=entity, result="hit" if hit else "miss").inc(count)


def record_card_info_batch(status: str):
    CARD_INFO_BATCHES.labels(status=status).inc()


# ═══════════════════════════════════════════════════════════════════
# METRICS ENDPOINT
# ═══════════════════════════════════════════════════════════════════

async def metrics_endpoint():
    """
    Prometheus metrics endpoint
    Returns metrics in Prometheus text format
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app):
    """
    Setup Prometheus metrics for FastAPI app

    Usage in main.py:
        from hotelproxy.core.metrics import setup_metrics
        setup_metrics(app)
    """
    app.add_middleware(PrometheusMiddleware)
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Monitoring"])

    logger.info("✅ Prometheus metrics enabled at /metrics")


__all__ = [
    "setup_metrics",
    "PrometheusMiddleware",
    "metrics_endpoint",
    "track_external_api",
    "record_cache_lookup",
    "record_card_info_batch",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "EXTERNAL_API_DURATION",
    "EXTERNAL_API_CALLS",
    "CACHE_LOOKUPS",
    "CARD_INFO_BATCHES",
]
