"""
Unit tests for the agent orchestrator: registry, dispatch and pipelines.
"""
from typing import Any, List, Optional

import pytest

from conftest import MemorySink
from marketai.services.ai.agents.activity_logger import AgentLogger
from marketai.services.ai.agents.orchestrator import (
    AgentAlreadyRegisteredError,
    AgentNotRegisteredError,
    AgentOrchestrator,
    PipelineStep,
    get_agent_orchestrator,
)
from marketai.services.ai.agents.types import AgentContext, AgentInput, AgentResult


class StubAgent:
    """Agent double with a call counter and a fixed outcome."""

    def __init__(self, name: str, success: bool = True, version: Optional[str] = "1.0.0"):
        self.name = name
        self.version = version
        self.success = success
        self.calls = 0
        self.inputs: List[AgentInput[Any]] = []

    async def run(self, input: AgentInput[Any]) -> AgentResult[Any]:
        self.calls += 1
        self.inputs.append(input)
        return AgentResult(
            success=self.success,
            result={"from": self.name, "payload": input.payload},
            model="stub-model" if self.success else None,
            latency_ms=1,
        )


class FailingLogger:
    async def log(self, agent, input, result):
        raise RuntimeError("sink exploded")

    async def aclose(self):
        return None


def make_orchestrator(sink: Optional[MemorySink] = None) -> AgentOrchestrator:
    return AgentOrchestrator(AgentLogger(sink=sink or MemorySink()))


def chain(previous, initial, context):
    payload = initial if previous is None else previous.result
    return AgentInput(task="pipeline", payload=payload, context=context)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_register_and_lookup():
    orchestrator = make_orchestrator()
    agent = StubAgent("support")

    orchestrator.register(agent)

    assert orchestrator.get_agent("support") is agent
    assert orchestrator.get_agent("missing") is None
    assert orchestrator.agent_names() == ["support"]


def test_duplicate_registration_replaces_by_default():
    orchestrator = make_orchestrator()
    first, second = StubAgent("support"), StubAgent("support", version="2.0.0")

    orchestrator.register(first)
    orchestrator.register(second)

    assert orchestrator.get_agent("support") is second


def test_duplicate_registration_can_be_rejected():
    orchestrator = make_orchestrator()
    orchestrator.register(StubAgent("support"))

    with pytest.raises(AgentAlreadyRegisteredError):
        orchestrator.register(StubAgent("support"), replace=False)


def test_register_many():
    orchestrator = make_orchestrator()
    orchestrator.register_many([StubAgent("b"), StubAgent("a")])
    assert orchestrator.agent_names() == ["a", "b"]


def test_default_orchestrator_registers_built_in_agents(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)

    orchestrator = get_agent_orchestrator()

    assert orchestrator.agent_names() == ["recommendation", "refund", "sentiment", "support"]
    assert get_agent_orchestrator() is orchestrator


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_dispatch_runs_agent_and_logs_invocation():
    sink = MemorySink()
    orchestrator = make_orchestrator(sink)
    agent = StubAgent("support")
    orchestrator.register(agent)
    context = AgentContext(user_id="u1", session_id="s1")

    result = await orchestrator.dispatch("support", {"question": "where?"}, context)
    await orchestrator.activity_logger.flush()

    assert result.success is True
    assert agent.inputs[0].task == "support"
    assert agent.inputs[0].context is context
    assert len(sink.rows) == 1
    assert sink.rows[0]["agent_name"] == "support"
    assert sink.rows[0]["user_id"] == "u1"


@pytest.mark.asyncio
async def test_dispatch_unknown_task_raises():
    orchestrator = make_orchestrator()

    with pytest.raises(AgentNotRegisteredError, match="No agent registered for task: nope"):
        await orchestrator.dispatch("nope", {})


@pytest.mark.asyncio
async def test_logging_failure_does_not_change_result():
    orchestrator = AgentOrchestrator(FailingLogger())
    orchestrator.register(StubAgent("support"))

    result = await orchestrator.dispatch("support", {"q": 1})

    assert result.success is True
    assert result.result == {"from": "support", "payload": {"q": 1}}


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_pipeline_passes_previous_result_forward():
    orchestrator = make_orchestrator()
    first, second = StubAgent("first"), StubAgent("second")

    results = await orchestrator.pipeline(
        [PipelineStep(first, chain), PipelineStep(second, chain)],
        {"start": True},
    )

    assert len(results) == 2
    assert second.inputs[0].payload == {"from": "first", "payload": {"start": True}}


@pytest.mark.asyncio
async def test_pipeline_stops_after_failed_step():
    sink = MemorySink()
    orchestrator = make_orchestrator(sink)
    step1, step2, step3 = StubAgent("one"), StubAgent("two", success=False), StubAgent("three")

    results = await orchestrator.pipeline(
        [PipelineStep(step1, chain), PipelineStep(step2, chain), PipelineStep(step3, chain)],
        {"start": True},
    )
    await orchestrator.activity_logger.flush()

    assert len(results) == 2
    assert results[-1].success is False
    assert step3.calls == 0
    assert [row["agent_name"] for row in sink.rows] == ["one", "two"]


@pytest.mark.asyncio
async def test_pipeline_receives_initial_payload_and_context():
    orchestrator = make_orchestrator()
    seen = []

    def mapper(previous, initial, context):
        seen.append((previous, initial, context))
        return AgentInput(task="solo", payload=initial, context=context)

    context = AgentContext(session_id="s9")
    await orchestrator.pipeline([PipelineStep(StubAgent("solo"), mapper)], "hello", context)

    assert seen == [(None, "hello", context)]


@pytest.mark.asyncio
async def test_empty_pipeline_returns_empty_list():
    orchestrator = make_orchestrator()
    assert await orchestrator.pipeline([], {}) == []
