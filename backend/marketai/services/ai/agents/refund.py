"""
Refund request evaluation.

The agent recommends; it never issues refunds. Anything it cannot parse is
sent to manual review as high risk.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from marketai.services.ai.agents.base import BaseAgent
from marketai.services.ai.agents.parsing import clamp_unit, fallback_text, parse_model_output
from marketai.services.ai.agents.prompts import AGENT_PROMPTS

RefundDecision = Literal["approve", "deny", "review"]
RiskLevel = Literal["low", "medium", "high"]

RATIONALE_MAX_LENGTH = 500


class RefundRequest(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=100)
    reason: str = Field(..., min_length=3, max_length=1000)
    amount: float = Field(..., ge=0)
    order_total: Optional[float] = Field(None, ge=0)
    days_since_delivery: Optional[int] = Field(None, ge=0)
    prior_refunds: int = Field(0, ge=0)

    @model_validator(mode="after")
    def validate_amount(self) -> "RefundRequest":
        if self.order_total is not None and self.amount > self.order_total:
            raise ValueError("amount must not exceed order_total")
        return self


class RefundAssessment(BaseModel):
    decision: RefundDecision
    rationale: str
    risk_level: RiskLevel
    confidence: float


class _RefundOutput(BaseModel):
    decision: RefundDecision
    rationale: str = Field(..., min_length=1)
    risk_level: RiskLevel
    confidence: float = 0.0

    @field_validator("decision", "risk_level", mode="before")
    @classmethod
    def lowercase(cls, value: object) -> object:
        return value.lower().strip() if isinstance(value, str) else value


class RefundAgent(BaseAgent[RefundRequest, RefundAssessment]):
    name = "refund"
    version = "1.0.0"
    system_prompt = (
        f"{AGENT_PROMPTS['refund']}\n\n"
        "Return JSON only with this structure:\n"
        '{"decision": "approve | deny | review", '
        '"rationale": "string", '
        '"risk_level": "low | medium | high", '
        '"confidence": 0.0}\n\n'
        "Rules:\n"
        "- Use review when information is missing or contradictory.\n"
        "- Confidence must be between 0 and 1."
    )

    def parse_output(self, output: str) -> RefundAssessment:
        parsed = parse_model_output(output, _RefundOutput, agent=self.name)
        if parsed is not None:
            return RefundAssessment(
                decision=parsed.decision,
                rationale=parsed.rationale[:RATIONALE_MAX_LENGTH],
                risk_level=parsed.risk_level,
                confidence=clamp_unit(parsed.confidence),
            )

        return RefundAssessment(
            decision="review",
            rationale=fallback_text(output, RATIONALE_MAX_LENGTH, "No refund assessment received."),
            risk_level="high",
            confidence=0.0,
        )
