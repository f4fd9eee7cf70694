"""
Prometheus metrics middleware for the lead-intelligence API.

Exposes /metrics endpoint with request counters, latency histograms,
and business metrics for intents, morph cards and lead scoring.
"""

import logging
import time

from fastapi import Request, Response
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "leadintel_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "leadintel_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
ACTIVE_REQUESTS = Gauge(
    "leadintel_http_active_requests",
    "Currently active HTTP requests",
)

# Business metrics
INTENT_COUNT = Counter(
    "leadintel_intent_classification_total",
    "Conversational intent classifications",
    ["intent"],
)
CARD_TRIGGER_COUNT = Counter(
    "leadintel_card_triggers_total",
    "Morph cards triggered",
    ["card_type"],
)
LEAD_SCORE_HIST = Histogram(
    "leadintel_buy_intent_score",
    "Buy-intent score distribution",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)
PRIORITY_TIER_COUNT = Counter(
    "leadintel_priority_tier_total",
    "Leads routed per priority tier",
    ["tier"],
)
LLM_LATENCY = Histogram(
    "leadintel_llm_duration_seconds",
    "LLM generation latency",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)
LLM_FAILURES = Counter(
    "leadintel_llm_failures_total",
    "Chat turns answered with the apology because every provider failed",
)


def record_intent(intent: str):
    """Record an intent classification event."""
    INTENT_COUNT.labels(intent=intent).inc()


def record_card_trigger(card_type: str):
    CARD_TRIGGER_COUNT.labels(card_type=card_type).inc()


def record_lead_score(score: float):
    """Record a lead score."""
    LEAD_SCORE_HIST.observe(score)


def record_priority_tier(tier: str):
    PRIORITY_TIER_COUNT.labels(tier=tier).inc()


def record_llm_latency(provider: str, seconds: float):
    """Record LLM generation latency."""
    LLM_LATENCY.labels(provider=provider).observe(seconds)


def record_llm_failure():
    LLM_FAILURES.inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that records HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        ACTIVE_REQUESTS.inc()
        start = time.time()

        try:
            response = await call_next(request)
        except Exception:
            ACTIVE_REQUESTS.dec()
            raise

        duration = time.time() - start
        endpoint = request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)
        ACTIVE_REQUESTS.dec()

        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
