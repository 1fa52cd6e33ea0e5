"""Sentiment analysis over a label/score classifier model."""
from typing import Any, Dict, List, Optional

from marketai.services.ai.errors import ResponseError
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.schema import SentimentLabel, SentimentResponse

SENTIMENT_CACHE_TTL_MS = 10 * 60 * 1000


def map_sentiment_label(raw_label: str) -> SentimentLabel:
    """Map a model label ("NEGATIVE", "LABEL_neu", ...) onto positive/neutral/negative."""
    normalized = raw_label.lower()
    if "neg" in normalized:
        return "negative"
    if "neu" in normalized:
        return "neutral"
    return "positive"


def _extract_entries(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        return []
    rows = raw[0] if isinstance(raw[0], list) else raw
    return [
        entry
        for entry in rows
        if isinstance(entry, dict)
        and isinstance(entry.get("label"), str)
        and isinstance(entry.get("score"), (int, float))
    ]


async def analyze_sentiment(
    text: str,
    client: Optional[InferenceClient] = None,
) -> SentimentResponse:
    """
    Classify the sentiment of ``text``; the highest-scoring label wins.

    Raises:
        ResponseError: the endpoint returned no label/score entries.
    """
    client = client or get_inference_client()
    model_id = client.settings.sentiment_model

    raw = await client.invoke(
        model_id,
        {"inputs": text},
        cache=True,
        cache_ttl_ms=SENTIMENT_CACHE_TTL_MS,
    )

    entries = _extract_entries(raw)
    if not entries:
        raise ResponseError("Sentiment response is empty.")

    best = max(entries, key=lambda entry: entry["score"])

    return SentimentResponse(
        label=map_sentiment_label(best["label"]),
        confidence=float(best["score"]),
        raw_label=best["label"],
        model=model_id,
    )
