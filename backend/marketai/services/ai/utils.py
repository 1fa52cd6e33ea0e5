"""Small helpers shared by the inference client, model operations and agents."""
import json
import math
import re
from typing import Any

from pydantic import BaseModel

_WHITESPACE_RE = re.compile(r"\s+")


def to_jsonable(value: Any) -> Any:
    """Convert pydantic models (at any depth) to plain JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys and compact separators, so equal data gives equal text."""
    return json.dumps(
        to_jsonable(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def build_stable_cache_key(model: str, payload: Any) -> str:
    """Cache key for a (model, payload) pair, independent of dict key order."""
    return f"{model}:{canonical_json(payload)}"


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def approximate_token_count(text: str) -> int:
    """Rough token estimate: 1.3 tokens per whitespace-separated word."""
    words = text.split()
    if not words:
        return 0
    return math.ceil(len(words) * 1.3)

