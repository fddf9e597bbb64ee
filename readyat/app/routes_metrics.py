# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

estimates_total = Counter(
    "ready_time_estimates_total", "Total ready-time estimates computed"
)
estimates_total.inc(0)

load_cache_requests_total = Counter(
    "load_cache_requests_total",
    "Load cache lookups by outcome",
    ["outcome"],
)
for _outcome in ("hit", "miss", "contended"):
    load_cache_requests_total.labels(outcome=_outcome).inc(0)

load_cache_fallbacks_total = Counter(
    "load_cache_fallbacks_total",
    "Load cache operations that fell back after a store failure",
    ["op"],
)
load_cache_fallbacks_total.labels(op="get").inc(0)

load_cache_resyncs_total = Counter(
    "load_cache_resyncs_total",
    "Load cache entries rebuilt from the order store",
    ["reason"],
)
load_cache_resyncs_total.labels(reason="manual").inc(0)

load_cache_underflows_total = Counter(
    "load_cache_underflows_total", "Decrements clamped at zero"
)
load_cache_underflows_total.inc(0)

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
