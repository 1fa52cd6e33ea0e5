"""Connection check and latency benchmark for the inference models."""
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

from marketai.core.logging import get_logger
from marketai.services.ai.errors import normalize_ai_error
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.models.classification import classify_text
from marketai.services.ai.models.embeddings import generate_embedding
from marketai.services.ai.models.llm import generate_text
from marketai.services.ai.models.sentiment import analyze_sentiment

logger = get_logger(__name__)

DETAILS_MAX_LENGTH = 80


class ConnectionCheckResult(BaseModel):
    ok: bool
    model: str
    message: str


class BenchmarkEntry(BaseModel):
    operation: str
    latency_ms: int
    success: bool
    details: Optional[str] = None


async def check_inference_connection(
    client: Optional[InferenceClient] = None,
) -> ConnectionCheckResult:
    """Run one sentiment call. Never raises; failures come back with ``ok=False``."""
    client = client or get_inference_client()
    model_id = client.settings.sentiment_model

    try:
        client.settings.assert_configured()
        await analyze_sentiment("This setup test should succeed.", client=client)
    except Exception as exc:
        message = normalize_ai_error(exc).message
        logger.warning("inference_connection_check_failed", model=model_id, error=message)
        return ConnectionCheckResult(ok=False, model=model_id, message=message)

    logger.info("inference_connection_check_succeeded", model=model_id)
    return ConnectionCheckResult(
        ok=True,
        model=model_id,
        message="Inference API connection succeeded.",
    )


async def run_inference_benchmark(
    client: Optional[InferenceClient] = None,
) -> List[BenchmarkEntry]:
    """Time one call of each model operation, in order."""
    client = client or get_inference_client()
    results: List[BenchmarkEntry] = []

    async def run(operation: str, task: Callable[[], Awaitable[Any]]) -> None:
        started = time.perf_counter()
        try:
            output = await task()
        except Exception as exc:
            results.append(BenchmarkEntry(
                operation=operation,
                latency_ms=round((time.perf_counter() - started) * 1000),
                success=False,
                details=normalize_ai_error(exc).message[:DETAILS_MAX_LENGTH],
            ))
            return

        results.append(BenchmarkEntry(
            operation=operation,
            latency_ms=round((time.perf_counter() - started) * 1000),
            success=True,
            details=str(output)[:DETAILS_MAX_LENGTH] if output is not None else None,
        ))

    async def llm() -> str:
        return (await generate_text("Summarize smart shopping in one line.", client=client)).text

    async def embeddings() -> int:
        return (await generate_embedding("Noise-cancelling headphones", client=client)).dimensions

    async def sentiment() -> str:
        return (await analyze_sentiment("Excellent quality and fast shipping", client=client)).label

    async def classification() -> str:
        response = await classify_text(
            "The parcel is late and tracking has not updated.",
            ["delivery", "inventory", "refund"],
            client=client,
        )
        return response.top_label

    await run("llm", llm)
    await run("embeddings", embeddings)
    await run("sentiment", sentiment)
    await run("classification", classification)

    summary: Dict[str, int] = {entry.operation: entry.latency_ms for entry in results}
    logger.info("inference_benchmark_completed", latencies_ms=summary)
    return results
