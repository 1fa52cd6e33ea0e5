"""
Async HTTP client for the model inference endpoint.

Composes the response cache, the rate limiter and the retry controller around
a single POST to ``{HF_INFERENCE_ENDPOINT}{model_id}``:

    invoke -> [cache] -> RateLimiter.schedule -> run_with_retry -> httpx POST

Design constraints:
- No provider SDKs, only httpx against the HTTP contract
- Configuration is injected (AISettings), never read from the environment here
- Error taxonomy lives in marketai.services.ai.errors
"""
import asyncio
import time
from typing import Any, Awaitable, Dict, Optional

import httpx

from marketai.core.config import AISettings, get_settings
from marketai.core.logging import get_logger
from marketai.core.metrics import (
    record_ai_cache_hit,
    record_ai_cache_miss,
    record_inference_error,
    record_inference_request,
)
from marketai.services.ai.cache import TTLCache
from marketai.services.ai.errors import (
    AIServiceError,
    ConfigurationError,
    RequestCancelledError,
    RequestError,
    ResponseError,
    is_retriable_error,
)
from marketai.services.ai.rate_limiter import RateLimiter
from marketai.services.ai.retry import run_with_retry
from marketai.services.ai.utils import build_stable_cache_key

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_MS = 5 * 60 * 1000


class InferenceClient:
    """Async client for the inference endpoint, with caching, rate limiting and retries."""

    def __init__(
        self,
        settings: AISettings,
        http_client: Optional[httpx.AsyncClient] = None,
        cache: Optional[TTLCache[Any]] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.settings = settings
        self._http_client = http_client
        self.cache: TTLCache[Any] = cache if cache is not None else TTLCache()
        self.rate_limiter = (
            rate_limiter
            if rate_limiter is not None
            else RateLimiter(settings.rate_limit_delay_ms)
        )

    def resolve_inference_url(self, model_id: str) -> str:
        base = self.settings.inference_endpoint
        if not base.endswith("/"):
            base = f"{base}/"
        return f"{base}{model_id}"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.settings.is_configured:
            raise ConfigurationError(
                "HUGGINGFACE_API_KEY is required to call the inference endpoint."
            )
        return {
            "Authorization": f"Bearer {self.settings.huggingface_api_key}",
            "Content-Type": "application/json",
        }

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        signal: Optional[asyncio.Event],
    ) -> httpx.Response:
        """Low-level POST helper (isolated so tests can inject a transport)."""
        headers = self._auth_headers()
        if self._http_client is not None:
            return await _race_signal(
                self._http_client.post(url, headers=headers, json=payload), signal
            )

        async with httpx.AsyncClient(timeout=self.settings.request_timeout_seconds) as client:
            return await _race_signal(client.post(url, headers=headers, json=payload), signal)

    async def _execute(
        self,
        model_id: str,
        payload: Dict[str, Any],
        signal: Optional[asyncio.Event],
    ) -> Any:
        """One attempt: POST, check status, decode JSON."""
        url = self.resolve_inference_url(model_id)
        start = time.perf_counter()

        try:
            response = await self._post(url, payload, signal)
        except httpx.HTTPError as exc:
            record_inference_request(model_id, "error", time.perf_counter() - start)
            logger.warning(
                "inference_transport_error",
                model=model_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise RequestError(
                f"Inference request to {model_id} failed: {str(exc) or type(exc).__name__}"
            ) from exc

        record_inference_request(model_id, str(response.status_code), time.perf_counter() - start)

        if not response.is_success:
            body = response.text
            logger.warning(
                "inference_http_error",
                model=model_id,
                status=response.status_code,
            )
            raise RequestError(
                f"Inference request failed ({response.status_code}): {body}",
                status=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ResponseError(f"Inference response from {model_id} is not valid JSON.") from exc

    async def invoke(
        self,
        model_id: str,
        payload: Dict[str, Any],
        *,
        cache: bool = False,
        cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        signal: Optional[asyncio.Event] = None,
    ) -> Any:
        """
        Invoke a model and return its decoded JSON response.

        Args:
            model_id: Model identifier appended to the endpoint URL
            payload: JSON request body
            cache: Serve from / store into the response cache
            cache_ttl_ms: TTL for a stored response
            signal: Optional event; setting it cancels the in-flight request

        Raises:
            ConfigurationError: no API key configured (never retried)
            RequestError: non-2xx status or transport failure after all retries
            ResponseError: 2xx response whose body is not JSON
            RequestCancelledError: ``signal`` was set during the request
        """
        try:
            self.settings.assert_configured()
        except ConfigurationError as exc:
            record_inference_error(model_id, exc.code)
            logger.error("inference_not_configured", model=model_id)
            raise

        cache_key = build_stable_cache_key(model_id, payload)

        if cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                record_ai_cache_hit("inference")
                logger.debug("inference_cache_hit", model=model_id)
                return cached
            record_ai_cache_miss("inference")

        try:
            result = await self.rate_limiter.schedule(
                lambda: run_with_retry(
                    lambda: self._execute(model_id, payload, signal),
                    self.settings.max_retries,
                    self.settings.retry_base_delay_ms,
                    should_retry=is_retriable_error,
                )
            )
        except AIServiceError as exc:
            record_inference_error(model_id, exc.code)
            logger.warning(
                "inference_invoke_failed",
                model=model_id,
                code=exc.code,
                status=exc.status,
                error=exc.message,
            )
            raise

        if cache:
            self.cache.set(cache_key, result, cache_ttl_ms)

        return result


async def _race_signal(
    request: Awaitable[httpx.Response],
    signal: Optional[asyncio.Event],
) -> httpx.Response:
    """Await ``request`` unless ``signal`` is set first, in which case cancel it."""
    if signal is None:
        return await request

    request_task = asyncio.ensure_future(request)
    if signal.is_set():
        request_task.cancel()
        raise RequestCancelledError()

    signal_task = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait(
            {request_task, signal_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (request_task, signal_task):
            if not task.done():
                task.cancel()

    if request_task in done:
        return request_task.result()
    raise RequestCancelledError()


_inference_client: Optional[InferenceClient] = None


def get_inference_client() -> InferenceClient:
    """Global inference client built from the process settings."""
    global _inference_client
    if _inference_client is None:
        _inference_client = InferenceClient(settings=get_settings())
    return _inference_client


def reset_inference_client() -> None:
    global _inference_client
    _inference_client = None
