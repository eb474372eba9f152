"""Liveness, readiness and scrape endpoints.

/health answers "is the process alive" and reports per-check status and
SLO compliance; it returns 200 even when degraded.  /ready answers "can
this instance take traffic"; with in-memory storage there is nothing
external to wait for.  /metrics serves the Prometheus text format.
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from classquiz.core.slo import evaluate_availability, evaluate_latency
from classquiz.repos import registry

router = APIRouter(tags=["observability"])


def _sum_samples(sample_name: str, label_filter: dict | None = None) -> float:
    """Sum a metric's samples across every label combination matching the filter."""
    total = 0.0
    for metric in REGISTRY.collect():
        for sample in metric.samples:
            if sample.name != sample_name:
                continue
            if label_filter and not all(
                sample.labels.get(k) == v for k, v in label_filter.items()
            ):
                continue
            total += sample.value
    return total


def _p95_estimate_ms() -> float:
    # Only sum and count are available in-process; avg * 2 is a rough
    # stand-in for histogram_quantile(0.95, ...).
    count = _sum_samples("http_request_duration_seconds_count")
    if count == 0:
        return 0.0
    avg_ms = _sum_samples("http_request_duration_seconds_sum") / count * 1000
    return avg_ms * 2.0


@router.get("/health")
async def health() -> dict:
    checks = {"storage": "in_memory"}
    for name in ("quiz_repo", "attempt_repo"):
        checks[name] = "ok" if getattr(registry, name, None) is not None else "missing"
    overall = "ok" if all(v != "missing" for v in checks.values()) else "degraded"

    total_all = _sum_samples("http_requests_total")
    total_5xx = sum(
        _sum_samples("http_requests_total", {"status_code": str(code)})
        for code in range(500, 512)
    )
    statuses = [
        evaluate_availability(int(total_all), int(total_5xx)),
        evaluate_latency(_p95_estimate_ms()),
    ]
    slos = {
        s.slo.name: {
            "current": s.current,
            "target": s.slo.target,
            "healthy": s.healthy,
        }
        for s in statuses
    }
    return {"status": overall, "checks": checks, "slos": slos}


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
