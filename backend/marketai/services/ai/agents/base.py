"""
Base class for prompt-driven agents.

An agent turns a structured payload into a structured result:

    build_prompt -> generate_text (chat model) -> parse_output

``run`` never raises. Any failure (configuration, transport, response or
parsing) is normalized and passed through ``parse_output`` as text, so
callers always get a value of the agent's result type back, with
``success=False``.
"""
import time
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from marketai.core.logging import get_logger
from marketai.core.metrics import record_agent_run, record_ai_cache_hit, record_ai_cache_miss
from marketai.services.ai.agents.types import AgentInput, AgentResult
from marketai.services.ai.cache import TTLCache
from marketai.services.ai.errors import normalize_ai_error
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.models.llm import generate_text
from marketai.services.ai.utils import canonical_json

logger = get_logger(__name__)

P = TypeVar("P")
R = TypeVar("R")


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


class BaseAgent(ABC, Generic[P, R]):
    """
    Named, versioned agent with optional result caching.

    Subclasses set ``name``, ``version`` and ``system_prompt`` and implement
    ``parse_output``, which must accept arbitrary text and never raise.

    Args:
        client: Inference client (defaults to the global one)
        cache_ttl_ms: Result cache TTL; 0 disables caching
    """

    name: str
    version: Optional[str] = "1.0.0"
    system_prompt: str

    def __init__(
        self,
        client: Optional[InferenceClient] = None,
        cache_ttl_ms: int = 0,
    ):
        self._client = client or get_inference_client()
        self.cache_ttl_ms = cache_ttl_ms
        self._cache: TTLCache[AgentResult[R]] = TTLCache()

    @property
    def model_id(self) -> str:
        return self._client.settings.chat_model

    @abstractmethod
    def parse_output(self, output: str) -> R:
        """Turn raw model text into the agent's result type. Must not raise."""

    def build_prompt(self, input: AgentInput[P]) -> str:
        return (
            f"{self.system_prompt}\n\n"
            f"User:\n{canonical_json(input.payload)}\n\n"
            "Assistant:"
        )

    def build_cache_key(self, input: AgentInput[P]) -> Optional[str]:
        """Result cache key; return None to skip caching for this input."""
        return f"{self.name}:{self.version}:{canonical_json(input.payload)}"

    async def run(self, input: AgentInput[P]) -> AgentResult[R]:
        cache_key = self.build_cache_key(input) if self.cache_ttl_ms > 0 else None

        if cache_key is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                record_ai_cache_hit(self.name)
                record_agent_run(self.name, "cached", 0)
                logger.debug("agent_cache_hit", agent=self.name, task=input.task)
                return cached.model_copy(update={"cached": True})
            record_ai_cache_miss(self.name)

        started = time.perf_counter()

        try:
            response = await generate_text(
                self.build_prompt(input),
                model=self.model_id,
                client=self._client,
            )
            parsed = self.parse_output(response.text)
        except Exception as exc:
            latency_ms = _elapsed_ms(started)
            normalized = normalize_ai_error(exc)
            record_agent_run(self.name, "failure", latency_ms)
            logger.warning(
                "agent_run_failed",
                agent=self.name,
                task=input.task,
                code=normalized.code,
                error=normalized.message,
                latency_ms=latency_ms,
            )
            return AgentResult(
                success=False,
                result=self.parse_output(normalized.message),
                latency_ms=latency_ms,
            )

        latency_ms = _elapsed_ms(started)
        result = AgentResult(
            success=True,
            result=parsed,
            model=response.model,
            latency_ms=latency_ms,
            cached=False,
        )

        record_agent_run(self.name, "success", latency_ms)
        logger.info(
            "agent_run_completed",
            agent=self.name,
            task=input.task,
            model=response.model,
            latency_ms=latency_ms,
        )

        if cache_key is not None:
            self._cache.set(cache_key, result, self.cache_ttl_ms)

        return result
