"""
Pydantic models for model operation requests and responses.

Raw endpoint output is untrusted; these models describe what the model
operations return after validating and normalizing it.
"""
import asyncio
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SentimentLabel = Literal["positive", "neutral", "negative"]


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class RequestOptions(BaseModel):
    """Per-call overrides for text generation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=1, le=8192)
    top_p: Optional[float] = Field(None, ge=0.0, le=1.0)
    signal: Optional[asyncio.Event] = Field(
        None,
        description="Cancels the in-flight HTTP request when set",
    )


class TokenUsage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class TextGenerationResponse(BaseModel):
    text: str
    model: str
    usage: Optional[TokenUsage] = None


class EmbeddingResponse(BaseModel):
    embedding: List[float]
    dimensions: int
    model: str


class SentimentResponse(BaseModel):
    label: SentimentLabel
    confidence: float
    raw_label: str
    model: str


class ClassificationResponse(BaseModel):
    labels: List[str]
    scores: List[float]
    top_label: str
    top_score: float
    model: str
