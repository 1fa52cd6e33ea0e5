"""
Zero-shot text classification.

The endpoint returns parallel ``labels``/``scores`` arrays sorted by
descending score; the first pair is reported as the top label without
re-sorting.
"""
from typing import List, Optional

from marketai.services.ai.errors import ResponseError
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.schema import ClassificationResponse

CLASSIFICATION_CACHE_TTL_MS = 10 * 60 * 1000


async def classify_text(
    text: str,
    candidate_labels: List[str],
    multi_label: bool = False,
    client: Optional[InferenceClient] = None,
) -> ClassificationResponse:
    """
    Score ``text`` against ``candidate_labels``.

    Raises:
        ResponseError: labels or scores are missing, empty, or of different length.
    """
    client = client or get_inference_client()
    model_id = client.settings.classification_model

    payload = {
        "inputs": text,
        "parameters": {
            "candidate_labels": candidate_labels,
            "multi_label": multi_label,
        },
    }

    raw = await client.invoke(
        model_id,
        payload,
        cache=True,
        cache_ttl_ms=CLASSIFICATION_CACHE_TTL_MS,
    )

    labels = raw.get("labels") if isinstance(raw, dict) else None
    scores = raw.get("scores") if isinstance(raw, dict) else None

    if not labels or not scores:
        raise ResponseError("Classification response is empty.")
    if len(labels) != len(scores):
        raise ResponseError(
            f"Classification response has {len(labels)} labels but {len(scores)} scores."
        )

    try:
        numeric_scores = [float(score) for score in scores]
    except (TypeError, ValueError) as exc:
        raise ResponseError("Classification response contains non-numeric scores.") from exc

    return ClassificationResponse(
        labels=[str(label) for label in labels],
        scores=numeric_scores,
        top_label=str(labels[0]),
        top_score=numeric_scores[0],
        model=model_id,
    )
