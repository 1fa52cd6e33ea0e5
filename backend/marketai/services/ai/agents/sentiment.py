"""Customer feedback analysis: sentiment, urgency and key concerns."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from marketai.services.ai.agents.base import BaseAgent
from marketai.services.ai.agents.parsing import clamp_unit, fallback_text, parse_model_output
from marketai.services.ai.agents.prompts import AGENT_PROMPTS
from marketai.services.ai.models.sentiment import map_sentiment_label
from marketai.services.ai.schema import SentimentLabel

Urgency = Literal["low", "medium", "high"]

MAX_CONCERNS = 10
SUMMARY_MAX_LENGTH = 500


class FeedbackPayload(BaseModel):
    feedback: str = Field(..., min_length=1, max_length=5000)
    product_id: Optional[str] = Field(None, max_length=100)
    rating: Optional[int] = Field(None, ge=1, le=5)


class FeedbackAnalysis(BaseModel):
    sentiment: SentimentLabel
    urgency: Urgency
    key_concerns: List[str] = Field(default_factory=list)
    confidence: float
    summary: Optional[str] = None


class _FeedbackOutput(BaseModel):
    sentiment: str = Field(..., min_length=1)
    urgency: Urgency = "low"
    key_concerns: List[str] = Field(default_factory=list)
    confidence: float = 0.0
    summary: Optional[str] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def normalize_urgency(cls, value: object) -> object:
        return value.lower().strip() if isinstance(value, str) else value


class FeedbackSentimentAgent(BaseAgent[FeedbackPayload, FeedbackAnalysis]):
    name = "sentiment"
    version = "1.0.0"
    system_prompt = (
        f"{AGENT_PROMPTS['sentiment']}\n\n"
        "Return JSON only with this structure:\n"
        '{"sentiment": "positive | neutral | negative", '
        '"urgency": "low | medium | high", '
        '"key_concerns": ["string"], '
        '"confidence": 0.0, '
        '"summary": "string"}\n\n'
        "Rules:\n"
        "- List at most 10 concerns, most important first.\n"
        "- Confidence must be between 0 and 1."
    )

    def parse_output(self, output: str) -> FeedbackAnalysis:
        parsed = parse_model_output(output, _FeedbackOutput, agent=self.name)
        if parsed is not None:
            concerns = [c.strip() for c in parsed.key_concerns if c and c.strip()]
            return FeedbackAnalysis(
                sentiment=map_sentiment_label(parsed.sentiment),
                urgency=parsed.urgency,
                key_concerns=concerns[:MAX_CONCERNS],
                confidence=clamp_unit(parsed.confidence),
                summary=parsed.summary[:SUMMARY_MAX_LENGTH] if parsed.summary else None,
            )

        return FeedbackAnalysis(
            sentiment="neutral",
            urgency="low",
            key_concerns=[],
            confidence=0.0,
            summary=fallback_text(output, SUMMARY_MAX_LENGTH, "No feedback analysis received."),
        )
