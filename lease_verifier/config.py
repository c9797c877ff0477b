"""
Centralized settings for the verification pipeline.

Values come from the environment (or a local .env file) and are validated
once. The confidence threshold lives here as a named value rather than as a
literal buried in the decision code.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

DEFAULT_MIN_CONFIDENCE_SCORE = 60
DEFAULT_LLM_TIMEOUT_SECONDS = 25.0


class Settings(BaseSettings):
    """Pipeline configuration."""

    OPENAI_API_KEY: Optional[SecretStr] = None
    LLM_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "gpt-5"
    LLM_TIMEOUT_SECONDS: float = Field(default=DEFAULT_LLM_TIMEOUT_SECONDS, gt=0)

    # Scores at or below this value fail verification (60 fails, 61 passes)
    MIN_CONFIDENCE_SCORE: int = Field(default=DEFAULT_MIN_CONFIDENCE_SCORE, ge=0, le=100)

    DOCUMENT_TEMP_DIR: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
