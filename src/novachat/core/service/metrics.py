"""Prometheus metrics.

Custom business metrics that complement the auto-instrumented HTTP
metrics provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``novachat_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

from novachat.configs.system import TracingConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chat request metrics
# ---------------------------------------------------------------------------

CHAT_REQUESTS_TOTAL = Counter(
    "novachat_chat_requests_total",
    "Total chat requests, by outcome",
    ["status"],  # "ok" | "invalid" | "upstream_error" | "busy" | "cancelled" | "error"
)

CHAT_REQUEST_DURATION_SECONDS = Histogram(
    "novachat_chat_request_duration_seconds",
    "End-to-end duration of a chat request",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

# ---------------------------------------------------------------------------
# Budget metrics
# ---------------------------------------------------------------------------

PROMPT_INPUT_TOKENS = Histogram(
    "novachat_prompt_input_tokens",
    "Estimated input tokens per prompt",
    buckets=(100, 250, 500, 1000, 2000, 4000, 6000, 8000, 16000),
)

PROMPT_HISTORY_MESSAGES = Histogram(
    "novachat_prompt_history_messages",
    "History messages kept after trimming",
    buckets=(0, 1, 2, 4, 6, 8, 10, 20),
)

HISTORY_MESSAGES_DROPPED_TOTAL = Counter(
    "novachat_history_messages_dropped_total",
    "Candidate history messages dropped by the token budget",
)

# ---------------------------------------------------------------------------
# Model call metrics
# ---------------------------------------------------------------------------

MODEL_CALL_SECONDS = Histogram(
    "novachat_model_call_seconds",
    "Latency of remote model calls",
    ["model_name"],
    buckets=(0.25, 0.5, 1, 2, 5, 10, 20, 30, 60),
)

MODEL_ERRORS_TOTAL = Counter(
    "novachat_model_errors_total",
    "Failed remote model calls, by cause",
    ["model_name", "reason"],  # "transport" | "timeout" | "status" | "payload"
)

MODEL_EMPTY_REPLIES_TOTAL = Counter(
    "novachat_model_empty_replies_total",
    "Model responses without candidate text (fallback reply used)",
    ["model_name"],
)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def setup_metrics(app: FastAPI, tracing: TracingConfig) -> None:
    """Attach HTTP instrumentation and the ``/metrics`` endpoint to *app*."""
    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=tracing.excluded_urls,
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    logger.info("Prometheus metrics initialised")
