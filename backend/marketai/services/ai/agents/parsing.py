"""
Parsing of free-form model output into validated pydantic models.

Models often wrap JSON in prose or markdown fences. Candidates are tried in
order: the raw text, a fenced ```json block, then the span from the first
``{`` to the last ``}``.
"""
import json
import math
import re
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from marketai.core.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


def extract_fenced_json(text: str) -> Optional[str]:
    match = _FENCED_JSON_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def extract_brace_span(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        return text[start:end + 1].strip()
    return None


def json_candidates(text: str) -> List[str]:
    """Distinct, non-blank JSON candidates in the order they should be tried."""
    candidates: List[str] = []
    for candidate in (text, extract_fenced_json(text), extract_brace_span(text)):
        if candidate and candidate.strip() and candidate not in candidates:
            candidates.append(candidate)
    return candidates


def parse_model_output(text: str, schema: Type[M], agent: str) -> Optional[M]:
    """
    Return the first candidate that decodes and validates against ``schema``.

    Returns:
        The validated model, or None when no candidate validates.
    """
    for candidate in json_candidates(text):
        try:
            payload = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            logger.debug(
                "agent_output_schema_invalid",
                agent=agent,
                error_count=exc.error_count(),
            )
            continue

    logger.info("agent_output_unparsed", agent=agent, output_length=len(text))
    return None


def clamp_unit(value: float) -> float:
    """Clamp into [0, 1]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def fallback_text(text: str, limit: int, default: str) -> str:
    """Trimmed raw text (or ``default`` when blank), cut to ``limit`` characters."""
    return (text.strip() or default)[:limit]
