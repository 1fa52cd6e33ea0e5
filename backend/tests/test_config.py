"""
Unit tests for AI settings and the error taxonomy.
"""
import pytest

from marketai.core.config import AISettings, get_settings
from marketai.services.ai.errors import (
    AIServiceError,
    ConfigurationError,
    InputValidationError,
    RequestCancelledError,
    RequestError,
    ResponseError,
    is_retriable_error,
    normalize_ai_error,
)


def test_defaults_when_environment_is_empty():
    settings = AISettings.from_env({})

    assert settings.huggingface_api_key == ""
    assert settings.is_configured is False
    assert settings.chat_model == "meta-llama/Meta-Llama-3-8B-Instruct"
    assert settings.rate_limit_delay_ms == 100
    assert settings.max_retries == 3
    assert settings.retry_base_delay_ms == 250
    assert settings.request_timeout_seconds == 30.0
    assert settings.activity_log_queue_size == 1000


def test_environment_overrides_are_coerced():
    settings = AISettings.from_env({
        "HUGGINGFACE_API_KEY": "hf_abc",
        "HF_CHAT_MODEL": "org/chat",
        "AI_TEMPERATURE": "0.2",
        "HF_MAX_RETRIES": "5",
        "HF_RATE_LIMIT_DELAY": " 250 ",
        "AI_MAX_TOKENS": "",
    })

    assert settings.is_configured is True
    assert settings.chat_model == "org/chat"
    assert settings.temperature == pytest.approx(0.2)
    assert settings.max_retries == 5
    assert settings.rate_limit_delay_ms == 250
    assert settings.max_tokens == 1024


@pytest.mark.parametrize(
    "env",
    [
        {"AI_TEMPERATURE": "3"},
        {"AI_TOP_P": "1.5"},
        {"AI_MAX_TOKENS": "0"},
        {"HF_MAX_RETRIES": "-1"},
        {"HF_REQUEST_TIMEOUT_SECONDS": "0"},
        {"AGENT_LOG_QUEUE_SIZE": "0"},
        {"HF_RATE_LIMIT_DELAY": "fast"},
    ],
)
def test_out_of_range_values_raise_configuration_error(env):
    with pytest.raises(ConfigurationError):
        AISettings.from_env(env)


def test_whitespace_api_key_is_not_configured():
    settings = AISettings.from_env({"HUGGINGFACE_API_KEY": "   "})

    assert settings.is_configured is False
    with pytest.raises(ConfigurationError):
        settings.assert_configured()


def test_settings_are_immutable():
    settings = AISettings()
    with pytest.raises(Exception):
        settings.max_retries = 10


def test_model_configs_cover_every_task():
    configs = AISettings().model_configs()

    assert set(configs) == {"llm", "chat", "embeddings", "sentiment", "classification"}
    assert configs["chat"].task == "chat"
    assert configs["chat"].temperature == pytest.approx(0.7)
    assert configs["embeddings"].temperature is None


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("HF_CHAT_MODEL", "org/first")
    first = get_settings()
    monkeypatch.setenv("HF_CHAT_MODEL", "org/second")

    assert get_settings() is first
    assert first.chat_model == "org/first"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "error, code, retriable",
    [
        (ConfigurationError("x"), "AI_CONFIGURATION_ERROR", False),
        (RequestError("x", status=500), "AI_REQUEST_ERROR", True),
        (ResponseError("x"), "AI_RESPONSE_ERROR", False),
        (RequestCancelledError(), "AI_REQUEST_CANCELLED", False),
        (InputValidationError("x"), "AI_INPUT_VALIDATION_ERROR", False),
    ],
)
def test_error_codes_and_retry_policy(error, code, retriable):
    assert error.code == code
    assert error.retriable is retriable
    assert is_retriable_error(error) is retriable


def test_normalize_passes_taxonomy_errors_through():
    error = RequestError("boom", status=502, body="bad gateway")
    assert normalize_ai_error(error) is error


def test_normalize_wraps_other_exceptions():
    normalized = normalize_ai_error(ValueError("bad value"))

    assert isinstance(normalized, AIServiceError)
    assert normalized.code == "AI_SERVICE_ERROR"
    assert normalized.message == "bad value"


def test_normalize_uses_default_message_for_empty_errors():
    assert normalize_ai_error(RuntimeError()).message == "Unexpected AI error"
