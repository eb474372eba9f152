"""Service level objectives for the quiz service.

SLI: share of requests answered without a 5xx.
SLO: 99.5% over 30 days (availability).

SLI: p95 response time.
SLO: 95% of requests under 500ms (latency).

The evaluation functions are pure: they take numbers already pulled
from the metrics registry and return a status, so /health can report
them and tests can pin them down without Prometheus.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SLODefinition:
    name: str
    description: str
    target: float  # percent
    window: str


@dataclass(frozen=True, slots=True)
class SLOStatus:
    """Result of one evaluation.

    budget_remaining is current minus target: negative means breached.
    """

    slo: SLODefinition
    current: float
    budget_remaining: float
    healthy: bool


AVAILABILITY_SLO = SLODefinition(
    name="availability",
    description="Percentage of non-5xx responses",
    target=99.5,
    window="30d",
)

LATENCY_SLO = SLODefinition(
    name="latency_p95",
    description="95th percentile response time under 500ms",
    target=95.0,
    window="30d",
)

ALL_SLOS = [AVAILABILITY_SLO, LATENCY_SLO]

LATENCY_THRESHOLD_MS = 500.0


def _status(slo: SLODefinition, current: float) -> SLOStatus:
    return SLOStatus(
        slo=slo,
        current=round(current, 3),
        budget_remaining=round(current - slo.target, 3),
        healthy=current >= slo.target,
    )


def evaluate_availability(total_requests: int, error_requests: int) -> SLOStatus:
    if total_requests == 0:
        # No traffic, no errors.
        return _status(AVAILABILITY_SLO, 100.0)
    current = (total_requests - error_requests) / total_requests * 100
    return _status(AVAILABILITY_SLO, current)


def evaluate_latency(p95_ms: float) -> SLOStatus:
    """Map a p95 estimate onto "percent of requests under the threshold".

    At or under the threshold the value sits between 95 and 100; above
    it, it falls linearly toward 0.
    """
    if p95_ms <= LATENCY_THRESHOLD_MS:
        current = 95.0 + (LATENCY_THRESHOLD_MS - p95_ms) / LATENCY_THRESHOLD_MS * 5.0
        current = min(current, 100.0)
    else:
        current = max(
            0.0,
            95.0 - (p95_ms - LATENCY_THRESHOLD_MS) / LATENCY_THRESHOLD_MS * 95.0,
        )
    return _status(LATENCY_SLO, current)
