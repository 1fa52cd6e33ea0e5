"""
AI service configuration.

Settings are read once from the environment (after loading an optional .env
file) into an immutable AISettings object, which is then passed explicitly to
the InferenceClient. Nothing else reads AI-related environment variables.

Environment configuration:
- HUGGINGFACE_API_KEY: Bearer token for the inference endpoint (empty = disabled)
- HF_LLM_MODEL / HF_CHAT_MODEL / HF_EMBEDDING_MODEL / HF_SENTIMENT_MODEL /
  HF_CLASSIFICATION_MODEL: Model ids per task
- AI_TEMPERATURE, AI_MAX_TOKENS, AI_TOP_P: Text generation defaults
- HF_INFERENCE_ENDPOINT: Base URL, model id is appended
- HF_RATE_LIMIT_DELAY: Minimum delay between request starts (ms)
- HF_MAX_RETRIES, HF_RETRY_BASE_DELAY_MS: Retry policy
- HF_REQUEST_TIMEOUT_SECONDS: httpx timeout for a single request
- AGENT_LOG_QUEUE_SIZE: Bound of the activity log queue
"""
import os
from pathlib import Path
from typing import Dict, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from marketai.core.logging import get_logger
from marketai.services.ai.errors import ConfigurationError

logger = get_logger(__name__)

ModelTask = Literal["text-generation", "chat", "embeddings", "sentiment", "classification"]

_ENV_FIELDS = {
    "HUGGINGFACE_API_KEY": "huggingface_api_key",
    "HF_LLM_MODEL": "llm_model",
    "HF_CHAT_MODEL": "chat_model",
    "HF_EMBEDDING_MODEL": "embedding_model",
    "HF_SENTIMENT_MODEL": "sentiment_model",
    "HF_CLASSIFICATION_MODEL": "classification_model",
    "AI_TEMPERATURE": "temperature",
    "AI_MAX_TOKENS": "max_tokens",
    "AI_TOP_P": "top_p",
    "HF_INFERENCE_ENDPOINT": "inference_endpoint",
    "HF_RATE_LIMIT_DELAY": "rate_limit_delay_ms",
    "HF_MAX_RETRIES": "max_retries",
    "HF_RETRY_BASE_DELAY_MS": "retry_base_delay_ms",
    "HF_REQUEST_TIMEOUT_SECONDS": "request_timeout_seconds",
    "AGENT_LOG_QUEUE_SIZE": "activity_log_queue_size",
}


class ModelConfig(BaseModel):
    """Model id and generation defaults for one task."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    task: ModelTask
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None


class AISettings(BaseModel):
    """Immutable AI configuration, constructed once at process start."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    huggingface_api_key: str = ""
    llm_model: str = "mistralai/Mixtral-8x7B-Instruct-v0.1"
    chat_model: str = "meta-llama/Meta-Llama-3-8B-Instruct"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    sentiment_model: str = "cardiffnlp/twitter-roberta-base-sentiment-latest"
    classification_model: str = "facebook/bart-large-mnli"
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1024, ge=1, le=8192)
    top_p: float = Field(0.9, ge=0.0, le=1.0)
    inference_endpoint: str = "https://api-inference.huggingface.co/models/"
    rate_limit_delay_ms: int = Field(100, ge=0)
    max_retries: int = Field(3, ge=0)
    retry_base_delay_ms: int = Field(250, ge=0)
    request_timeout_seconds: float = Field(30.0, gt=0.0)
    activity_log_queue_size: int = Field(1000, ge=1)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AISettings":
        """
        Build settings from environment variables.

        Unset or empty variables fall back to defaults, except the API key,
        which is taken as-is. Out-of-range values raise ConfigurationError.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, str] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = environ.get(env_name)
            if raw is None:
                continue
            if raw.strip() == "" and field_name != "huggingface_api_key":
                continue
            values[field_name] = raw.strip()

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid AI configuration: {exc}") from exc

    @property
    def is_configured(self) -> bool:
        return len(self.huggingface_api_key.strip()) > 0

    def assert_configured(self) -> None:
        """
        Raises:
            ConfigurationError: no inference API key is set
        """
        if not self.is_configured:
            raise ConfigurationError(
                "HUGGINGFACE_API_KEY is missing. Add it to .env before running AI features."
            )

    def model_configs(self) -> Dict[str, ModelConfig]:
        """Per-task model configuration keyed by logical name."""
        generation = {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }
        return {
            "llm": ModelConfig(id=self.llm_model, task="text-generation", **generation),
            "chat": ModelConfig(id=self.chat_model, task="chat", **generation),
            "embeddings": ModelConfig(id=self.embedding_model, task="embeddings"),
            "sentiment": ModelConfig(id=self.sentiment_model, task="sentiment"),
            "classification": ModelConfig(id=self.classification_model, task="classification"),
        }


def load_env_file(env_path: Optional[Path] = None) -> bool:
    """Load a .env file from the repository root (or the given path) if it exists."""
    env_path = env_path or Path(__file__).resolve().parent.parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("env_loaded", env_path=str(env_path))
        return True
    logger.debug("env_file_not_found", expected_path=str(env_path))
    return False


_settings: Optional[AISettings] = None


def get_settings() -> AISettings:
    """Process-wide settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        load_env_file()
        _settings = AISettings.from_env()
        logger.info(
            "ai_settings_loaded",
            configured=_settings.is_configured,
            inference_endpoint=_settings.inference_endpoint,
            chat_model=_settings.chat_model,
        )
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (used by tests and reconfiguration)."""
    global _settings
    _settings = None
