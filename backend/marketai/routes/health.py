"""
Health check endpoints.
"""
from fastapi import APIRouter

from marketai.core.config import get_settings
from marketai.core.logging import get_logger
from marketai.services.ai.agents.orchestrator import get_agent_orchestrator

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def health_check():
    """Basic liveness check."""
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/ai")
async def ai_health():
    """
    Readiness of the agent layer.

    Reports whether an inference API key is configured, which agents are
    registered and whether activity rows are being persisted. Makes no
    network calls.
    """
    settings = get_settings()
    orchestrator = get_agent_orchestrator()
    configured = settings.is_configured

    return {
        "status": "ok" if configured else "unavailable",
        "inference_configured": configured,
        "chat_model": settings.chat_model,
        "agents": orchestrator.agent_names(),
        "activity_logging": orchestrator.activity_logger.enabled,
    }
