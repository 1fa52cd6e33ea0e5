import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings, load_env_file
from .core.logging import configure_logging, get_logger, get_trace_id
from .core.middleware import RequestContextMiddleware
from .routes import health, metrics, recommendations
from .services.ai.agents.orchestrator import get_agent_orchestrator

load_env_file()

# JSON output in production (containerized), console output in development
log_level = os.getenv("LOG_LEVEL", "INFO")
json_output = os.getenv("LOG_JSON", "true").lower() == "true"
configure_logging(log_level=log_level, json_output=json_output)

logger = get_logger(__name__)

app = FastAPI(
    title="MarketAI Agents API",
    description="AI agents for product recommendations, support, feedback and refunds",
    version="1.0.0"
)

# CORS for local dev; restrict in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)


@app.on_event("startup")
async def startup_event():
    logger.info("app_startup_started")

    settings = get_settings()
    if not settings.is_configured:
        logger.warning(
            "app_startup_inference_unconfigured",
            message="HUGGINGFACE_API_KEY is not set. Agent calls will fail until it is configured.",
        )

    orchestrator = get_agent_orchestrator()
    logger.info(
        "app_startup_completed",
        agents=orchestrator.agent_names(),
        activity_logging=orchestrator.activity_logger.enabled,
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Flush pending activity rows before the process exits."""
    logger.info("app_shutdown_started")
    await get_agent_orchestrator().aclose()
    logger.info("app_shutdown_completed")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    trace_id = get_trace_id()
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    response = JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "status_code": exc.status_code,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    trace_id = get_trace_id()
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    response = JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "status_code": 500,
            "trace_id": trace_id,
        }
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(recommendations.router, prefix="/api", tags=["Recommendations"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
