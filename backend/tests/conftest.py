"""
Shared fixtures.

Every HTTP call goes through httpx.MockTransport; no test touches the network.
"""
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from marketai.core.config import AISettings
from marketai.services.ai.inference_client import InferenceClient

TEST_ENDPOINT = "https://inference.test/models/"


def make_settings(**overrides: Any) -> AISettings:
    values: Dict[str, Any] = {
        "huggingface_api_key": "test-key",
        "inference_endpoint": TEST_ENDPOINT,
        "rate_limit_delay_ms": 0,
        "max_retries": 2,
        "retry_base_delay_ms": 0,
    }
    values.update(overrides)
    return AISettings(**values)


class RecordingTransport:
    """Replays a handler and remembers every request it saw."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self._handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def json_bodies(self) -> List[Any]:
        return [json.loads(request.content) for request in self.requests]


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    **settings_overrides: Any,
) -> "tuple[InferenceClient, RecordingTransport]":
    transport = RecordingTransport(handler)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    client = InferenceClient(make_settings(**settings_overrides), http_client=http_client)
    return client, transport


def generated_text_response(text: str) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"generated_text": text}])

    return handler


class MemorySink:
    """Activity log sink that keeps rows in memory."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []

    def insert(self, row: Dict[str, Any]) -> None:
        self.rows.append(row)


@pytest.fixture(autouse=True)
def reset_singletons():
    from marketai.core import config, database
    from marketai.services.ai import inference_client
    from marketai.services.ai.agents import orchestrator

    yield

    config.reset_settings()
    database.reset_supabase_client()
    inference_client.reset_inference_client()
    orchestrator.reset_agent_orchestrator()


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()
