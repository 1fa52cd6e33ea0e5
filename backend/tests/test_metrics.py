"""
Unit tests for Prometheus metrics collection.

Tests verify:
- Inference request/error/retry metrics are recorded with the right labels
- Agent run and pipeline metrics are recorded
- Metrics output is valid Prometheus text
"""
import pytest

from marketai.core.metrics import (
    get_metrics,
    get_metrics_content_type,
    record_activity_log_dropped,
    record_agent_run,
    record_ai_cache_hit,
    record_http_request,
    record_inference_error,
    record_inference_request,
    record_inference_retry,
    record_pipeline_short_circuit,
    registry,
)


def sample(name, labels=None):
    value = registry.get_sample_value(name, labels or {})
    return value or 0.0


def test_inference_request_counter_and_histogram():
    before = sample("inference_requests_total", {"model": "m-test", "status": "200"})
    count_before = sample("inference_request_duration_seconds_count", {"model": "m-test"})

    record_inference_request("m-test", "200", 0.12)

    assert sample("inference_requests_total", {"model": "m-test", "status": "200"}) == before + 1
    assert sample("inference_request_duration_seconds_count", {"model": "m-test"}) == count_before + 1


def test_inference_error_and_retry_counters():
    labels = {"model": "m-test", "code": "AI_REQUEST_ERROR"}
    errors_before = sample("inference_errors_total", labels)
    retries_before = sample("inference_retries_total")

    record_inference_error("m-test", "AI_REQUEST_ERROR")
    record_inference_retry()

    assert sample("inference_errors_total", labels) == errors_before + 1
    assert sample("inference_retries_total") == retries_before + 1


def test_cache_hit_counter():
    before = sample("inference_cache_hits_total", {"cache_type": "metrics-test"})
    record_ai_cache_hit("metrics-test")
    assert sample("inference_cache_hits_total", {"cache_type": "metrics-test"}) == before + 1


def test_agent_run_metrics():
    labels = {"agent": "metrics-agent", "status": "success"}
    before = sample("agent_runs_total", labels)
    sum_before = sample("agent_run_duration_seconds_sum", {"agent": "metrics-agent"})

    record_agent_run("metrics-agent", "success", 250)

    assert sample("agent_runs_total", labels) == before + 1
    assert sample("agent_run_duration_seconds_sum", {"agent": "metrics-agent"}) == pytest.approx(sum_before + 0.25)


def test_pipeline_and_activity_log_counters():
    short_before = sample("agent_pipeline_short_circuits_total", {"agent": "metrics-agent"})
    dropped_before = sample("activity_log_dropped_total", {"reason": "queue_full"})

    record_pipeline_short_circuit("metrics-agent")
    record_activity_log_dropped("queue_full")

    assert sample("agent_pipeline_short_circuits_total", {"agent": "metrics-agent"}) == short_before + 1
    assert sample("activity_log_dropped_total", {"reason": "queue_full"}) == dropped_before + 1


def test_http_request_metrics():
    labels = {"method": "POST", "endpoint": "/metrics-test", "status": "502"}
    before = sample("http_requests_total", labels)

    record_http_request("POST", "/metrics-test", 502, 0.05)

    assert sample("http_requests_total", labels) == before + 1


def test_metrics_output_is_prometheus_text():
    record_agent_run("metrics-agent", "failure", 10)

    output = get_metrics().decode("utf-8")

    assert "# HELP agent_runs_total" in output
    assert "# TYPE agent_runs_total counter" in output
    assert get_metrics_content_type().startswith("text/plain")
