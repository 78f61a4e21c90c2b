from __future__ import annotations  # Validated provider configuration objects

from typing import Dict, Optional

from pydantic import BaseModel, Field

from .settings import Settings


class ConfigurationError(RuntimeError):  # Required provider setting is missing
    def __init__(self, variable: str) -> None:
        super().__init__(f"{variable} environment variable is not set")
        self.variable = variable


def _require(settings: Settings, name: str) -> str:
    value = getattr(settings, name)
    if not value:
        raise ConfigurationError(name)
    return value


class TavusConfig(BaseModel):  # Credentials and identifiers for the video-persona provider
    api_key: str
    base_url: str
    replica_id: Optional[str] = None
    leetcode_persona_id: Optional[str] = None
    general_recruiter_id: Optional[str] = None
    timeout_s: float = Field(default=30.0, ge=0.1)

    @classmethod
    def from_settings(cls, settings: Settings, *, conversations: bool = False) -> "TavusConfig":
        """Build the config, failing fast on missing values.

        ``conversations=True`` also requires the replica and both persona ids,
        which only the conversation-creation path needs.
        """
        api_key = _require(settings, "TAVUS_API_KEY")
        replica_id = settings.REPLICA_ID
        leetcode_persona_id = settings.LEET_CODE_PERSONA_ID
        general_recruiter_id = settings.GENERAL_RECRUITER_ID
        if conversations:
            replica_id = _require(settings, "REPLICA_ID")
            leetcode_persona_id = _require(settings, "LEET_CODE_PERSONA_ID")
            general_recruiter_id = _require(settings, "GENERAL_RECRUITER_ID")
        return cls(
            api_key=api_key,
            base_url=settings.TAVUS_BASE_URL.rstrip("/"),
            replica_id=replica_id,
            leetcode_persona_id=leetcode_persona_id,
            general_recruiter_id=general_recruiter_id,
            timeout_s=settings.HTTP_TIMEOUT_S,
        )


class StorageConfig(BaseModel):  # Object storage holding conversation recordings
    access_key_id: str
    secret_access_key: str
    bucket: str
    region: str

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["StorageConfig"]:
        """Return ``None`` when any storage value is absent; storage is optional."""
        values = (
            settings.AWS_ACCESS_KEY_ID,
            settings.AWS_SECRET_ACCESS_KEY,
            settings.S3_BUCKET_NAME,
            settings.S3_BUCKET_REGION,
        )
        if not all(values):
            return None
        access_key_id, secret_access_key, bucket, region = values
        return cls(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            bucket=bucket,
            region=region,
        )


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False

    @classmethod
    def feedback_route(cls, settings: Settings) -> "LlmRoute":
        return cls(
            name="feedback",
            base_url=settings.OPENAI_BASE_URL.rstrip("/"),
            endpoint="/v1/chat/completions",
            model=settings.FEEDBACK_MODEL,
            timeout_s=settings.LLM_TIMEOUT_S,
            api_key=_require(settings, "OPENAI_API_KEY"),
        )


__all__ = ["ConfigurationError", "LlmRoute", "StorageConfig", "TavusConfig"]
