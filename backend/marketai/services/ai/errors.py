"""
Error taxonomy for the inference client and agents.

Every error carries a stable machine-readable ``code`` and a human message.
``retriable`` tells the retry controller whether another attempt can help:
- ConfigurationError: fatal, never retried
- RequestError: transient transport/HTTP failure, retried
- ResponseError: the endpoint answered but the content is unusable, not retried
"""
from typing import Any, List, Optional


class AIServiceError(Exception):
    """Base class for all AI service errors."""

    code = "AI_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
        retriable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.status = status
        self.retriable = retriable

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(AIServiceError):
    """Raised when the service is not configured (e.g. missing API key)."""

    code = "AI_CONFIGURATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class RequestError(AIServiceError):
    """Raised when the inference endpoint answers with a non-2xx status or cannot be reached."""

    code = "AI_REQUEST_ERROR"

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message, status=status, retriable=True)
        self.body = body


class RequestCancelledError(AIServiceError):
    """Raised when the caller's cancellation signal fires during a request."""

    code = "AI_REQUEST_CANCELLED"

    def __init__(self, message: str = "Inference request was cancelled."):
        super().__init__(message)


class ResponseError(AIServiceError):
    """Raised when a successful response has an empty or malformed payload."""

    code = "AI_RESPONSE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class InputValidationError(AIServiceError):
    """Raised when an agent payload fails validation before any agent runs."""

    code = "AI_INPUT_VALIDATION_ERROR"

    def __init__(self, message: str, issues: Optional[List[Any]] = None):
        super().__init__(message)
        self.issues = issues or []


def normalize_ai_error(error: BaseException) -> AIServiceError:
    """Coerce any exception into an AIServiceError, keeping taxonomy errors as-is."""
    if isinstance(error, AIServiceError):
        return error
    return AIServiceError(str(error) or "Unexpected AI error")


def is_retriable_error(error: BaseException) -> bool:
    """Retry policy: taxonomy errors decide for themselves, anything else is retried."""
    if isinstance(error, AIServiceError):
        return error.retriable
    return True
