"""
Prometheus Metrics for the tenq service.

DATA FLOW:
    This file                  presentation/api/metrics.py         Scraper
    ─────────                  ────────────────────────────         ───────
    Define metrics ──────────► /metrics endpoint ──────────────►   Prometheus ──► Grafana

METRIC TYPES:
    - Gauge: Value goes up/down (in-flight submissions, breaker state)
    - Counter: Value only goes up (classified LLM errors, admission rejections)
    - Histogram: Distribution (request latency, token usage)
"""

from prometheus_client import (
    Gauge,
    Histogram,
    Counter,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


# =============================================================================
# METRICS DEFINITIONS
# =============================================================================
ACTIVE_SUBMISSIONS = Gauge(
    "tenq_active_submissions",
    "Number of response submissions currently being processed",
)

REQUEST_LATENCY = Histogram(
    "http_server_request_duration_seconds",
    "Http request latency in seconds",
    ["method", "route", "http_status_code"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60],
)

LLM_TOKENS_TOTAL = Histogram(
    "tenq_llm_tokens_total",
    "Number of LLM tokens used per call",
    ["type", "model"],
    buckets=[25, 50, 100, 150, 250, 500, 1000, 2000, 5000],
)

LLM_ERRORS_TOTAL = Counter(
    "tenq_llm_errors_total",
    "LLM call failures by classified error type",
    ["error_type"],
)

CIRCUIT_STATE = Gauge(
    "tenq_llm_circuit_state",
    "LLM circuit breaker state (0=closed, 1=half_open, 2=open)",
)

CONVERSATION_EVENTS_TOTAL = Counter(
    "tenq_conversation_events_total",
    "Conversation progression events",
    ["event"],
)

ADMISSION_REJECTIONS_TOTAL = Counter(
    "tenq_admission_rejections_total",
    "Requests rejected by admission control",
    ["reason"],
)


# =============================================================================
# LABEL CONSTANTS
# =============================================================================
class ConversationEvent:
    """Event labels for tenq_conversation_events_total."""

    CREATED = "created"
    QUESTION_GENERATED = "question_generated"
    RESPONSE_RECORDED = "response_recorded"
    COMPLETED = "completed"
    QUESTION_REGENERATED = "question_regenerated"
    SUMMARY_REGENERATED = "summary_regenerated"
    DELETED = "deleted"


class AdmissionRejection:
    RATE_LIMITED = "rate_limited"
    BUSY = "busy"


_CIRCUIT_STATE_VALUES = {"closed": 0, "half_open": 1, "open": 2}


# =============================================================================
# RECORDING FUNCTIONS
# =============================================================================
def increment_active_submissions():
    """Call when a submission is admitted. Integration point: dependencies/admission.py"""
    ACTIVE_SUBMISSIONS.inc()


def decrement_active_submissions():
    """Call when a submission ENDS (in finally block)."""
    ACTIVE_SUBMISSIONS.dec()


def observe_request_latency(method: str, route: str, status_code: int, duration: float):
    """Call to record request latency. Integration point: fastapi_app.py middleware"""
    REQUEST_LATENCY.labels(
        method=method, route=route, http_status_code=str(status_code)
    ).observe(duration)


def observe_llm_tokens(type: str, model: str, token_count: int):
    """Call to record LLM token usage. Integration point: services/llm_client.py"""
    LLM_TOKENS_TOTAL.labels(type=type, model=model).observe(token_count)


def increment_llm_error(error_type: str):
    """
    Call to record a failed LLM call.

    Args:
        error_type: One of the ErrorType values from services/llm_client.py
    """
    LLM_ERRORS_TOTAL.labels(error_type=error_type).inc()


def set_circuit_state(state: str):
    CIRCUIT_STATE.set(_CIRCUIT_STATE_VALUES.get(state, 0))


def increment_conversation_event(event: str):
    CONVERSATION_EVENTS_TOTAL.labels(event=event).inc()


def increment_admission_rejection(reason: str):
    ADMISSION_REJECTIONS_TOTAL.labels(reason=reason).inc()


# =============================================================================
# HELPER FOR /metrics ENDPOINT
# =============================================================================
def get_metrics_content():
    """
    Generate Prometheus metrics output.

    Called by: presentation/api/metrics.py

    Returns:
        Tuple of (content_bytes, content_type_string)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = [
    "increment_active_submissions",
    "decrement_active_submissions",
    "observe_request_latency",
    "observe_llm_tokens",
    "increment_llm_error",
    "set_circuit_state",
    "increment_conversation_event",
    "increment_admission_rejection",
    "get_metrics_content",
    "ConversationEvent",
    "AdmissionRejection",
]
