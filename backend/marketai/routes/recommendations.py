"""
AI product recommendations.

POST /api/recommendations
"""
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from marketai.core.logging import get_logger
from marketai.services.ai.agents.orchestrator import AgentOrchestrator, get_agent_orchestrator
from marketai.services.ai.agents.recommendation import (
    RecommendationResult,
    validate_recommendation_request,
)
from marketai.services.ai.agents.types import AgentContext, AgentResult
from marketai.services.ai.errors import InputValidationError

logger = get_logger(__name__)

router = APIRouter()

RECOMMENDATION_TASK = "recommendation"


def _response_body(result: AgentResult[Any], max_results: Optional[int]) -> Dict[str, Any]:
    payload = result.result
    if max_results is not None and isinstance(payload, RecommendationResult):
        payload = payload.model_copy(
            update={"recommendations": payload.recommendations[:max_results]}
        )

    body: Dict[str, Any] = {
        "success": result.success,
        "result": payload.model_dump(mode="json") if hasattr(payload, "model_dump") else payload,
    }
    for field in ("model", "latency_ms", "cached"):
        value = getattr(result, field)
        if value is not None:
            body[field] = value
    return body


@router.post("/recommendations")
async def create_recommendations(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_session_id: Optional[str] = Header(None, alias="X-Session-ID"),
    orchestrator: AgentOrchestrator = Depends(get_agent_orchestrator),
):
    """
    Recommend products from the supplied candidates.

    Returns 400 for malformed JSON or a payload that fails validation (no agent
    is called), 200 when the agent succeeded, 502 when it failed.
    """
    try:
        raw_payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"error": "Invalid JSON payload."})

    try:
        payload = validate_recommendation_request(raw_payload)
    except InputValidationError as exc:
        logger.info("recommendation_request_invalid", issue_count=len(exc.issues))
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed.", "issues": jsonable_encoder(exc.issues)},
        )

    context = AgentContext(
        user_id=x_user_id,
        session_id=x_session_id,
        metadata={"route": "/api/recommendations"},
    )

    result = await orchestrator.dispatch(RECOMMENDATION_TASK, payload, context)

    max_results = payload.constraints.max_results if payload.constraints else None
    return JSONResponse(
        status_code=200 if result.success else 502,
        content=_response_body(result, max_results),
    )
