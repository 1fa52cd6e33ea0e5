"""Customer support agent: answers a shopper question and flags when a human should take over."""
from typing import List, Optional

from pydantic import BaseModel, Field

from marketai.services.ai.agents.base import BaseAgent
from marketai.services.ai.agents.parsing import clamp_unit, fallback_text, parse_model_output
from marketai.services.ai.agents.prompts import AGENT_PROMPTS

ANSWER_MAX_LENGTH = 1000


class SupportRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    order_id: Optional[str] = Field(None, max_length=100)
    history: List[str] = Field(default_factory=list, max_length=20)


class SupportReply(BaseModel):
    answer: str
    escalate: bool = False
    confidence: Optional[float] = None


class _SupportOutput(BaseModel):
    answer: str = Field(..., min_length=1)
    escalate: bool = False
    confidence: Optional[float] = None


class SupportAgent(BaseAgent[SupportRequest, SupportReply]):
    name = "support"
    version = "1.0.0"
    system_prompt = (
        f"{AGENT_PROMPTS['support']}\n\n"
        "Return JSON only with this structure:\n"
        '{"answer": "string", "escalate": false, "confidence": 0.0}\n\n'
        "Rules:\n"
        "- Never promise refunds, discounts or delivery dates.\n"
        "- Set escalate to true when the question needs a human agent.\n"
        "- Confidence must be between 0 and 1."
    )

    def parse_output(self, output: str) -> SupportReply:
        parsed = parse_model_output(output, _SupportOutput, agent=self.name)
        if parsed is not None:
            return SupportReply(
                answer=parsed.answer[:ANSWER_MAX_LENGTH],
                escalate=parsed.escalate,
                confidence=clamp_unit(parsed.confidence) if parsed.confidence is not None else None,
            )

        # Unstructured answers go to a human.
        return SupportReply(
            answer=fallback_text(output, ANSWER_MAX_LENGTH, "No support response received."),
            escalate=True,
        )
