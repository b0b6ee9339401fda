# pricecache/observability.py
from __future__ import annotations

import logging
import time
from collections.abc import Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# ---- Prometheus metrics (low-cardinality labels) ----
REQUEST_COUNT = Counter(
    "pc_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "pc_http_request_duration_seconds",
    "HTTP request latency (seconds)",
    buckets=(0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1.0, 2.5, 5.0),
)

CACHE_LOOKUPS = Counter(
    "pc_cache_lookups_total",
    "Price history reads by cache outcome",
    ["result"],  # hit | miss
)

UPSTREAM_FETCHES = Counter(
    "pc_upstream_fetches_total",
    "CoinGecko fetch attempts by outcome",
    ["outcome"],  # success | failure
)

UPSTREAM_LATENCY = Histogram(
    "pc_upstream_fetch_duration_seconds",
    "CoinGecko fetch latency (seconds)",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

REFRESH_SKIPPED = Counter(
    "pc_refresh_skipped_total",
    "Manual refreshes skipped because the coin's budget is exhausted",
)

SCHEDULED_REFRESHES = Counter(
    "pc_scheduled_refresh_total",
    "Coins re-fetched by the scheduled sweep",
)


def metrics_endpoint(registry: CollectorRegistry = REGISTRY) -> Response:
    """Prometheus exposition of the HTTP, cache and upstream counters."""
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


# ---- Per-request timing + structured request log ----
_request_log = logging.getLogger("request")


async def timing_middleware(request: Request, call_next: Callable):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start

    # label by route template, not raw path
    route = request.scope.get("route")
    template = getattr(route, "path", request.url.path)
    status = str(response.status_code)

    REQUEST_COUNT.labels(method=request.method, path=template, status=status).inc()
    REQUEST_LATENCY.observe(elapsed)

    # fields land as top-level keys via JsonFormatter
    _request_log.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        status,
        extra={
            "route": template,
            "status_code": response.status_code,
            "duration_s": round(elapsed, 6),
            "client": request.client.host if request.client else None,
            "coin_id": request.path_params.get("coin_id"),
        },
    )
    return response
