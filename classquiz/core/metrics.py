"""Prometheus metrics for the quiz service.

Single inventory of everything the service measures.  Modules import
the metric they own and increment/observe it at the point of action.

Counters only go up (requests served, attempts started), gauges go up
and down (requests in flight), histograms bucket observations so
Prometheus can compute percentiles (request latency, score ratio).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Quiz attempt metrics
# ---------------------------------------------------------------------------

ATTEMPTS_STARTED = Counter(
    "quiz_attempts_started_total",
    "Quiz attempts opened by students",
)

ATTEMPT_REJECTIONS = Counter(
    "quiz_attempt_rejections_total",
    "Attempt creation requests refused, by reason code",
    ["code"],  # not_enrolled|not_started|active_attempt|...
)

SUBMISSIONS = Counter(
    "quiz_submissions_total",
    "Attempt submissions by outcome",
    ["result"],  # "graded" or "rejected"
)

SCORE_RATIO = Histogram(
    "quiz_score_ratio",
    "Score divided by total possible points for graded attempts",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)
