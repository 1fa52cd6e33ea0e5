"""
Text generation and chat completion.

Responses are never cached: generation is sampled and callers expect fresh
output. The endpoint may return either ``[{"generated_text": ...}]`` or
``{"generated_text": ...}``.
"""
from typing import Any, List, Optional, Sequence

from marketai.core.logging import get_logger
from marketai.services.ai.errors import ResponseError
from marketai.services.ai.inference_client import InferenceClient, get_inference_client
from marketai.services.ai.schema import (
    ChatMessage,
    RequestOptions,
    TextGenerationResponse,
    TokenUsage,
)
from marketai.services.ai.utils import approximate_token_count, normalize_whitespace

logger = get_logger(__name__)


def _extract_generated_text(raw: Any) -> Optional[str]:
    item = raw
    if isinstance(raw, list):
        item = raw[0] if raw else None
    if not isinstance(item, dict):
        return None
    text = item.get("generated_text")
    return text if isinstance(text, str) else None


async def generate_text(
    prompt: str,
    *,
    model: Optional[str] = None,
    options: Optional[RequestOptions] = None,
    client: Optional[InferenceClient] = None,
) -> TextGenerationResponse:
    """
    Generate a completion for ``prompt``.

    Args:
        prompt: Full prompt text
        model: Model id (defaults to the configured LLM model)
        options: Sampling overrides and cancellation signal
        client: Inference client (defaults to the global one)

    Raises:
        ResponseError: the endpoint returned no generated text.
        Any error from InferenceClient.invoke.
    """
    client = client or get_inference_client()
    settings = client.settings
    options = options or RequestOptions()
    model_id = model or settings.llm_model

    payload = {
        "inputs": prompt,
        "parameters": {
            "temperature": options.temperature if options.temperature is not None else settings.temperature,
            "max_new_tokens": options.max_tokens if options.max_tokens is not None else settings.max_tokens,
            "top_p": options.top_p if options.top_p is not None else settings.top_p,
            "return_full_text": False,
        },
    }

    raw = await client.invoke(model_id, payload, cache=False, signal=options.signal)

    generated = _extract_generated_text(raw)
    if not generated:
        logger.warning("text_generation_empty_output", model=model_id)
        raise ResponseError("Text generation returned empty output.")

    text = normalize_whitespace(generated)
    prompt_tokens = approximate_token_count(prompt)
    completion_tokens = approximate_token_count(text)

    return TextGenerationResponse(
        text=text,
        model=model_id,
        usage=TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


def build_chat_prompt(messages: Sequence[ChatMessage]) -> str:
    """Render chat messages as ``ROLE: content`` blocks separated by blank lines."""
    return "\n\n".join(f"{m.role.upper()}: {m.content}" for m in messages)


async def generate_chat_completion(
    messages: List[ChatMessage],
    options: Optional[RequestOptions] = None,
    client: Optional[InferenceClient] = None,
) -> TextGenerationResponse:
    """Chat completion on the configured chat model."""
    client = client or get_inference_client()
    return await generate_text(
        build_chat_prompt(messages),
        model=client.settings.chat_model,
        options=options,
        client=client,
    )
