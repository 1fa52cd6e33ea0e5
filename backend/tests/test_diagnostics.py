"""
Unit tests for the inference connection check and benchmark.
"""
import httpx
import pytest

from conftest import make_client
from marketai.services.ai.diagnostics import check_inference_connection, run_inference_benchmark


def route_by_model(request: httpx.Request) -> httpx.Response:
    """Answer each model with a response of the right shape."""
    url = str(request.url)
    if "bart-large-mnli" in url:
        return httpx.Response(200, json={"labels": ["delivery", "refund"], "scores": [0.9, 0.1]})
    if "sentiment" in url:
        return httpx.Response(200, json=[[{"label": "positive", "score": 0.95}]])
    if "MiniLM" in url:
        return httpx.Response(200, json=[0.1, 0.2, 0.3, 0.4])
    return httpx.Response(200, json=[{"generated_text": "x" * 200}])


@pytest.mark.asyncio
async def test_connection_check_succeeds():
    client, transport = make_client(route_by_model)

    result = await check_inference_connection(client=client)

    assert result.ok is True
    assert result.model == client.settings.sentiment_model
    assert transport.calls == 1


@pytest.mark.asyncio
async def test_connection_check_reports_missing_key_without_raising():
    client, transport = make_client(route_by_model, huggingface_api_key="")

    result = await check_inference_connection(client=client)

    assert result.ok is False
    assert "HUGGINGFACE_API_KEY" in result.message
    assert transport.calls == 0


@pytest.mark.asyncio
async def test_connection_check_reports_http_failure():
    def handler(request):
        return httpx.Response(403, text="forbidden")

    client, _ = make_client(handler, max_retries=0)

    result = await check_inference_connection(client=client)

    assert result.ok is False
    assert result.message == "Inference request failed (403): forbidden"


@pytest.mark.asyncio
async def test_benchmark_times_each_operation_in_order():
    client, _ = make_client(route_by_model)

    entries = await run_inference_benchmark(client=client)

    assert [e.operation for e in entries] == ["llm", "embeddings", "sentiment", "classification"]
    assert all(e.success for e in entries)
    assert all(e.latency_ms >= 0 for e in entries)
    by_operation = {e.operation: e for e in entries}
    assert len(by_operation["llm"].details) == 80
    assert by_operation["embeddings"].details == "4"
    assert by_operation["sentiment"].details == "positive"
    assert by_operation["classification"].details == "delivery"


@pytest.mark.asyncio
async def test_benchmark_records_failures_and_continues():
    def handler(request):
        if "MiniLM" in str(request.url):
            return httpx.Response(500, text="embedding backend down")
        return route_by_model(request)

    client, _ = make_client(handler, max_retries=0)

    entries = await run_inference_benchmark(client=client)

    assert len(entries) == 4
    failed = [e for e in entries if not e.success]
    assert [e.operation for e in failed] == ["embeddings"]
    assert failed[0].details.startswith("Inference request failed (500)")
