"""
Typed model operations over the inference client.

Each operation shapes a task-specific request, calls InferenceClient.invoke,
and validates/normalizes the raw response before returning it.
"""
from marketai.services.ai.models.classification import classify_text
from marketai.services.ai.models.embeddings import generate_embedding
from marketai.services.ai.models.llm import (
    build_chat_prompt,
    generate_chat_completion,
    generate_text,
)
from marketai.services.ai.models.sentiment import analyze_sentiment, map_sentiment_label

__all__ = [
    "analyze_sentiment",
    "build_chat_prompt",
    "classify_text",
    "generate_chat_completion",
    "generate_embedding",
    "generate_text",
    "map_sentiment_label",
]
