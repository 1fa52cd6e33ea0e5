"""
Prometheus metrics for the inference client and agent layer.

Naming follows Prometheus conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for durations
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

from marketai.core.logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# INFERENCE CLIENT METRICS
# ============================================================================

inference_requests_total = Counter(
    "inference_requests_total",
    "Total number of HTTP requests sent to the inference endpoint",
    ["model", "status"],
    registry=registry,
)

inference_request_duration_seconds = Histogram(
    "inference_request_duration_seconds",
    "Inference endpoint request latency in seconds",
    ["model"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
)

inference_errors_total = Counter(
    "inference_errors_total",
    "Total number of failed inference invocations",
    ["model", "code"],
    registry=registry,
)

inference_retries_total = Counter(
    "inference_retries_total",
    "Total number of retried inference attempts",
    registry=registry,
)

inference_cache_hits_total = Counter(
    "inference_cache_hits_total",
    "Total number of AI cache hits",
    ["cache_type"],  # "inference" or an agent name
    registry=registry,
)

inference_cache_misses_total = Counter(
    "inference_cache_misses_total",
    "Total number of AI cache misses",
    ["cache_type"],
    registry=registry,
)

# ============================================================================
# AGENT METRICS
# ============================================================================

agent_runs_total = Counter(
    "agent_runs_total",
    "Total number of agent executions",
    ["agent", "status"],  # status: success, failure, cached
    registry=registry,
)

agent_run_duration_seconds = Histogram(
    "agent_run_duration_seconds",
    "Agent execution latency in seconds",
    ["agent"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=registry,
)

agent_pipeline_short_circuits_total = Counter(
    "agent_pipeline_short_circuits_total",
    "Total number of pipelines stopped early by a failed step",
    ["agent"],
    registry=registry,
)

activity_log_dropped_total = Counter(
    "activity_log_dropped_total",
    "Total number of agent activity rows dropped before being written",
    ["reason"],  # queue_full, build_error, sink_error
    registry=registry,
)


# ============================================================================
# HTTP METRICS
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def record_inference_request(model: str, status: str, duration_seconds: float) -> None:
    """
    Record one HTTP round trip to the inference endpoint.

    Args:
        model: Model identifier
        status: HTTP status code as string, or "error" for transport failures
        duration_seconds: Round-trip duration in seconds
    """
    inference_requests_total.labels(model=model, status=status).inc()
    inference_request_duration_seconds.labels(model=model).observe(duration_seconds)


def record_inference_error(model: str, code: str) -> None:
    """
    Record a failed inference call.

    Args:
        model: Model ID
        code: Error code (e.g., "AI_REQUEST_ERROR", "AI_RESPONSE_ERROR")
    """
    inference_errors_total.labels(model=model, code=code).inc()


def record_inference_retry() -> None:
    """Record a scheduled inference retry."""
    inference_retries_total.inc()


def record_ai_cache_hit(cache_type: str) -> None:
    """
    Record an inference cache hit.

    Args:
        cache_type: "inference" or the name of the agent whose result cache was used
    """
    inference_cache_hits_total.labels(cache_type=cache_type).inc()


def record_ai_cache_miss(cache_type: str) -> None:
    """
    Record an inference cache miss.

    Args:
        cache_type: "inference" or the name of the agent whose result cache was used
    """
    inference_cache_misses_total.labels(cache_type=cache_type).inc()


def record_agent_run(agent: str, status: str, latency_ms: int) -> None:
    """
    Record an agent execution.

    Args:
        agent: Agent name
        status: "success", "failure" or "cached"
        latency_ms: Latency in milliseconds (0 for cached results)
    """
    agent_runs_total.labels(agent=agent, status=status).inc()
    agent_run_duration_seconds.labels(agent=agent).observe(latency_ms / 1000.0)


def record_pipeline_short_circuit(agent: str) -> None:
    """
    Record a pipeline that stopped after a failed step.

    Args:
        agent: Name of the agent whose failure stopped the pipeline
    """
    agent_pipeline_short_circuits_total.labels(agent=agent).inc()


def record_activity_log_dropped(reason: str) -> None:
    """
    Record an activity log row that was not written.

    Args:
        reason: "queue_full", "build_error" or "sink_error"
    """
    activity_log_dropped_total.labels(reason=reason).inc()


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics (RED metrics).

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Request path
        status_code: HTTP status code
        duration_seconds: Request duration in seconds
    """
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration_seconds)


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
