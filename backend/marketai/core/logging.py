"""
Structured logging configuration for the agent framework.

Log entries are JSON in production and pretty-printed in development.
Every entry carries:
- timestamp (ISO 8601 format)
- level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- service (service name identifier)
- trace_id / request_id (when a request is being served)
- user_id / session_id (when an agent context is bound)
"""
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

import structlog
from structlog.types import Processor

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)

SERVICE_NAME = "marketai_agents"


def add_trace_context(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Add trace and agent context variables to every log entry."""
    for key, var in (
        ("trace_id", trace_id_var),
        ("request_id", request_id_var),
        ("user_id", user_id_var),
        ("session_id", session_id_var),
    ):
        value = var.get()
        if value:
            event_dict.setdefault(key, value)

    event_dict["service"] = SERVICE_NAME

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    return event_dict


def configure_logging(
    log_level: str = "INFO",
    service_name: Optional[str] = None,
    json_output: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name identifier (defaults to SERVICE_NAME)
        json_output: JSON lines when True, console renderer when False
    """
    global SERVICE_NAME
    if service_name:
        SERVICE_NAME = service_name

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_trace_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return structlog.get_logger(name)


def set_trace_id(trace_id: Optional[str]) -> None:
    """
    Set trace ID in context for current request.

    Args:
        trace_id: Trace ID to set (or None to clear)
    """
    trace_id_var.set(trace_id)


def get_trace_id() -> Optional[str]:
    """
    Get current trace ID from context.

    Returns:
        Current trace ID or None
    """
    return trace_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    """
    Set request ID in context for current request.

    Args:
        request_id: Request ID to set (or None to clear)
    """
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    """
    Get current request ID from context.

    Returns:
        Current request ID or None
    """
    return request_id_var.get()


def get_user_id() -> Optional[str]:
    """
    Get the user ID bound for the current agent dispatch.

    Returns:
        Current user ID or None
    """
    return user_id_var.get()


def get_session_id() -> Optional[str]:
    """
    Get the session ID bound for the current agent dispatch.

    Returns:
        Current session ID or None
    """
    return session_id_var.get()


@contextmanager
def bind_agent_context(
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Iterator[None]:
    """
    Bind user/session identifiers for log entries emitted inside the block.

    Previous values are restored on exit, so nested dispatches do not leak
    identifiers into each other.

    Args:
        user_id: User ID for log entries (or None)
        session_id: Session ID for log entries (or None)
    """
    user_token = user_id_var.set(user_id)
    session_token = session_id_var.set(session_id)
    try:
        yield
    finally:
        session_id_var.reset(session_token)
        user_id_var.reset(user_token)


def generate_request_id() -> str:
    """Generate a new unique request ID (UUID4 string)."""
    return str(uuid.uuid4())


def generate_trace_id() -> str:
    """Generate a new unique trace ID (UUID4 string)."""
    return str(uuid.uuid4())
