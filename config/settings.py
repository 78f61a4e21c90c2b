"""Application settings and configuration management."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


PersonaStrategy = Literal["patch_shared", "create_per_interview"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    # Tavus video-persona provider
    TAVUS_API_KEY: Optional[str] = None
    TAVUS_BASE_URL: str = "https://tavusapi.com/v2"
    REPLICA_ID: Optional[str] = None
    LEET_CODE_PERSONA_ID: Optional[str] = None
    GENERAL_RECRUITER_ID: Optional[str] = None
    GENERAL_PERSONA_STRATEGY: PersonaStrategy = "patch_shared"

    # Completion provider
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com"
    FEEDBACK_MODEL: str = "gpt-4o"

    # Recording storage (optional)
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET_NAME: Optional[str] = None
    S3_BUCKET_REGION: Optional[str] = None

    HTTP_TIMEOUT_S: float = Field(default=30.0, ge=0.1)
    LLM_TIMEOUT_S: float = Field(default=120.0, ge=0.1)
    TRANSCRIPT_RETRY_DELAY_S: float = Field(default=10.0, ge=0.0)
    RECORDING_AGE_THRESHOLD_HOURS: float = Field(default=2.0, gt=0.0)
    DOCUMENT_POLL_INTERVAL_S: float = Field(default=5.0, gt=0.0)

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)


settings = Settings()
