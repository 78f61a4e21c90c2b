import pytest
from pydantic import ValidationError

from config import ConfigurationError, LlmRoute, Settings, StorageConfig
from conftest import make_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.TAVUS_BASE_URL == "https://tavusapi.com/v2"
    assert settings.FEEDBACK_MODEL == "gpt-4o"
    assert settings.GENERAL_PERSONA_STRATEGY == "patch_shared"
    assert settings.TRANSCRIPT_RETRY_DELAY_S == 10.0
    assert settings.RECORDING_AGE_THRESHOLD_HOURS == 2.0
    assert settings.DOCUMENT_POLL_INTERVAL_S == 5.0
    assert settings.TAVUS_API_KEY is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TAVUS_API_KEY", "from-env")
    monkeypatch.setenv("GENERAL_PERSONA_STRATEGY", "create_per_interview")
    settings = Settings(_env_file=None)
    assert settings.TAVUS_API_KEY == "from-env"
    assert settings.GENERAL_PERSONA_STRATEGY == "create_per_interview"


def test_unknown_strategy_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, GENERAL_PERSONA_STRATEGY="round_robin")


def test_storage_is_optional():
    assert StorageConfig.from_settings(make_settings(S3_BUCKET_NAME=None)) is None
    storage = StorageConfig.from_settings(make_settings())
    assert storage.bucket == "recordings"
    assert storage.region == "us-east-1"


def test_feedback_route_requires_key():
    with pytest.raises(ConfigurationError) as excinfo:
        LlmRoute.feedback_route(make_settings(OPENAI_API_KEY=None))
    assert str(excinfo.value) == "OPENAI_API_KEY environment variable is not set"

    route = LlmRoute.feedback_route(make_settings())
    assert route.endpoint == "/v1/chat/completions"
    assert route.model == "gpt-4o"
    assert route.timeout_s == 120.0
