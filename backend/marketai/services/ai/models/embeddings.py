"""Sentence embeddings. Accepts a flat vector or a vector-of-vectors (first row is used)."""
from typing import Any, List, Optional

from marketai.services.ai.errors import ResponseError
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.schema import EmbeddingResponse

EMBEDDING_CACHE_TTL_MS = 15 * 60 * 1000


def _extract_vector(raw: Any) -> List[float]:
    if not isinstance(raw, list) or not raw:
        return []
    row = raw[0] if isinstance(raw[0], list) else raw
    try:
        return [float(value) for value in row]
    except (TypeError, ValueError) as exc:
        raise ResponseError("Embeddings response contains non-numeric values.") from exc


async def generate_embedding(
    text: str,
    client: Optional[InferenceClient] = None,
) -> EmbeddingResponse:
    """
    Embed ``text`` with the configured embedding model.

    Raises:
        ResponseError: the endpoint returned an empty or malformed vector.
    """
    client = client or get_inference_client()
    model_id = client.settings.embedding_model

    raw = await client.invoke(
        model_id,
        {"inputs": text},
        cache=True,
        cache_ttl_ms=EMBEDDING_CACHE_TTL_MS,
    )

    embedding = _extract_vector(raw)
    if not embedding:
        raise ResponseError("Embeddings response is empty.")

    return EmbeddingResponse(
        embedding=embedding,
        dimensions=len(embedding),
        model=model_id,
    )
