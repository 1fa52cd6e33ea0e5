"""
Product recommendation agent.

Input: user intent, an optional context summary, the candidate products and
optional constraints. Output: a short summary plus at most 10 recommendations
sorted by descending score in [0, 1].

Model output is parsed from raw JSON, a fenced block or a brace span. If
nothing validates, the trimmed raw text becomes the summary and the list is
empty.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from marketai.services.ai.agents.base import BaseAgent
from marketai.services.ai.agents.parsing import clamp_unit, fallback_text, parse_model_output
from marketai.services.ai.agents.prompts import AGENT_PROMPTS
from marketai.services.ai.errors import InputValidationError

MAX_RECOMMENDATIONS = 10
SUMMARY_MAX_LENGTH = 500
EMPTY_RESPONSE_SUMMARY = "No recommendation response received."


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class ProductCandidate(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=120)
    brand: Optional[str] = Field(None, min_length=1, max_length=120)
    price: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = Field(None, max_length=20)

    @model_validator(mode="after")
    def validate_tags(self) -> "ProductCandidate":
        for tag in self.tags or []:
            if not 1 <= len(tag) <= 50:
                raise ValueError("tags must be 1-50 characters long")
        return self


class RecommendationConstraints(BaseModel):
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    categories: Optional[List[str]] = Field(None, max_length=20)
    brands: Optional[List[str]] = Field(None, max_length=20)
    must_have_tags: Optional[List[str]] = Field(None, max_length=20)
    exclude_product_ids: Optional[List[str]] = Field(None, max_length=50)
    max_results: Optional[int] = Field(None, ge=1, le=MAX_RECOMMENDATIONS)

    @model_validator(mode="after")
    def validate_budget_range(self) -> "RecommendationConstraints":
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValueError("budget_min must be less than or equal to budget_max")
        return self


class RecommendationPayload(BaseModel):
    user_intent: str = Field(..., min_length=3, max_length=500)
    context_summary: Optional[str] = Field(None, max_length=500)
    candidates: List[ProductCandidate] = Field(..., min_length=1, max_length=100)
    constraints: Optional[RecommendationConstraints] = None


def validate_recommendation_request(payload: Any) -> RecommendationPayload:
    """
    Validate a raw recommendation request before any agent is invoked.

    Raises:
        InputValidationError: with the pydantic issue list.
    """
    try:
        return RecommendationPayload.model_validate(payload)
    except ValidationError as exc:
        raise InputValidationError(
            "Validation failed.",
            issues=exc.errors(include_url=False, include_context=False),
        ) from exc


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------

class ProductRecommendation(BaseModel):
    product_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    reason: str = Field(..., min_length=1, max_length=400)
    score: float
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)


class RecommendationResult(BaseModel):
    summary: str
    recommendations: List[ProductRecommendation] = Field(default_factory=list)


class _RecommendationOutput(BaseModel):
    """Schema the model's JSON must satisfy before normalization."""

    summary: str = Field(..., min_length=1, max_length=SUMMARY_MAX_LENGTH)
    recommendations: List[ProductRecommendation] = Field(..., min_length=1)


RECOMMENDATION_OUTPUT_RULES = """Return JSON only with this structure:
{
  "summary": "string",
  "recommendations": [
    {
      "product_id": "string (optional)",
      "title": "string",
      "reason": "string",
      "score": 0.0,
      "category": "string (optional)",
      "price": 0
    }
  ]
}

Rules:
- Recommend only from provided candidates.
- Respect budget/category/brand/tag constraints if provided.
- Keep reason concise and concrete.
- Sort by highest score first.
- Score must be between 0 and 1."""


def normalize_recommendations(
    recommendations: List[ProductRecommendation],
) -> List[ProductRecommendation]:
    """Clamp scores into [0, 1], sort by descending score, keep the top 10."""
    clamped = [
        item.model_copy(update={"score": clamp_unit(item.score)})
        for item in recommendations
    ]
    clamped.sort(key=lambda item: item.score, reverse=True)
    return clamped[:MAX_RECOMMENDATIONS]


class RecommendationAgent(BaseAgent[RecommendationPayload, RecommendationResult]):
    name = "recommendation"
    version = "1.0.0"
    system_prompt = f"{AGENT_PROMPTS['recommendation']}\n\n{RECOMMENDATION_OUTPUT_RULES}"

    def parse_output(self, output: str) -> RecommendationResult:
        parsed = parse_model_output(output, _RecommendationOutput, agent=self.name)
        if parsed is not None:
            return RecommendationResult(
                summary=parsed.summary,
                recommendations=normalize_recommendations(parsed.recommendations),
            )

        return RecommendationResult(
            summary=fallback_text(output, SUMMARY_MAX_LENGTH, EMPTY_RESPONSE_SUMMARY),
            recommendations=[],
        )
