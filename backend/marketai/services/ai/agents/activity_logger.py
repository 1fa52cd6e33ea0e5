"""
Durable activity log of agent invocations.

One row per invocation goes to the ``activity_logs`` table. Writes happen off
the request path: ``log`` only enqueues the row on a bounded queue, and a
background task drains it into the sink on a worker thread. A full queue or a
failing sink drops the row (logged and counted), never the invocation.
"""
import asyncio
import json
from typing import Any, Dict, Optional, Protocol

from marketai.core.database import get_supabase_client
from marketai.core.logging import get_logger
from marketai.core.metrics import record_activity_log_dropped
from marketai.services.ai.agents.types import Agent, AgentInput, AgentResult
from marketai.services.ai.utils import to_jsonable

logger = get_logger(__name__)

ACTIVITY_LOG_TABLE = "activity_logs"
DEFAULT_QUEUE_SIZE = 1000


class ActivityLogSink(Protocol):
    def insert(self, row: Dict[str, Any]) -> None:
        ...


class SupabaseActivityLogSink:
    """Writes activity rows through a (synchronous) supabase-py client."""

    def __init__(self, client: Any, table: str = ACTIVITY_LOG_TABLE):
        self._client = client
        self._table = table

    def insert(self, row: Dict[str, Any]) -> None:
        self._client.table(self._table).insert(row).execute()


def to_json(value: Any) -> Any:
    """JSON-safe copy of ``value``; None when it cannot be serialized."""
    if value is None:
        return None
    try:
        return json.loads(json.dumps(to_jsonable(value)))
    except (TypeError, ValueError):
        return None


def extract_confidence(result: Any) -> Optional[float]:
    """Numeric ``confidence`` attribute or key of a result, if it has one."""
    confidence = result.get("confidence") if isinstance(result, dict) else getattr(result, "confidence", None)
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        return float(confidence)
    return None


def extract_error_message(result: Any) -> Optional[str]:
    """Error text of a failed result: the result itself if a string, else its ``error`` field."""
    if not result:
        return None
    if isinstance(result, str):
        return result

    if isinstance(result, dict):
        if "error" not in result:
            return None
        error_value = result["error"]
    elif hasattr(result, "error"):
        error_value = result.error
    else:
        return None

    if isinstance(error_value, str):
        return error_value
    try:
        return json.dumps(to_jsonable(error_value))
    except (TypeError, ValueError):
        return "Unserializable agent error payload"


def build_activity_row(
    agent: Agent[Any, Any],
    input: AgentInput[Any],
    result: AgentResult[Any],
) -> Dict[str, Any]:
    """Build the ``activity_logs`` row for one agent invocation."""
    context = input.context
    return {
        "activity_type": "ai_action",
        "action": "agent_run",
        "agent_name": agent.name,
        "agent_version": getattr(agent, "version", None),
        "model_used": result.model,
        "user_id": context.user_id if context else None,
        "session_id": context.session_id if context else None,
        "input_data": to_json(input.payload),
        "output_data": to_json(result.result),
        "confidence_score": extract_confidence(result.result),
        "processing_time_ms": result.latency_ms,
        "severity": "info" if result.success else "error",
        "status": "success" if result.success else "failure",
        "error_message": None if result.success else extract_error_message(result.result),
        "entity_type": "agent",
        "entity_id": None,
        "metadata": to_json({
            "task": input.task,
            "cached": bool(result.cached),
            "context_metadata": context.metadata if context else None,
        }),
    }


class AgentLogger:
    """
    Fire-and-forget activity logger.

    Args:
        sink: Destination for rows. Defaults to Supabase when credentials are
            configured; with no sink, logging is a no-op.
        queue_size: Maximum number of rows waiting to be written
    """

    def __init__(
        self,
        sink: Optional[ActivityLogSink] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        if sink is None:
            client = get_supabase_client()
            sink = SupabaseActivityLogSink(client) if client is not None else None
        self._sink = sink
        self._queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._worker: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self._sink is not None

    async def log(
        self,
        agent: Agent[Any, Any],
        input: AgentInput[Any],
        result: AgentResult[Any],
    ) -> None:
        """Enqueue one invocation for writing. Never raises."""
        if self._sink is None:
            return

        try:
            row = build_activity_row(agent, input, result)
            self._queue.put_nowait(row)
        except asyncio.QueueFull:
            record_activity_log_dropped("queue_full")
            logger.warning("agent_log_queue_full", agent=agent.name, queue_size=self._queue.maxsize)
            return
        except Exception as exc:
            record_activity_log_dropped("build_error")
            logger.error(
                "agent_log_build_failed",
                agent=getattr(agent, "name", None),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return

        self._ensure_worker()

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            row = await self._queue.get()
            try:
                await asyncio.to_thread(self._sink.insert, row)
            except Exception as exc:
                record_activity_log_dropped("sink_error")
                logger.error(
                    "agent_log_write_failed",
                    agent=row.get("agent_name"),
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            finally:
                self._queue.task_done()

    async def flush(self) -> None:
        """Wait until every queued row has been written (or dropped)."""
        if self._sink is None:
            return
        if not self._queue.empty():
            self._ensure_worker()
        await self._queue.join()

    async def aclose(self) -> None:
        """Flush pending rows and stop the background task."""
        await self.flush()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
