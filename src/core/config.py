"""Central runtime configuration for the image fusion service."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    env: str = "development"
    log_level: str = "INFO"
    port: int = 8000
    app_name: str = "image_fusion"
    app_version: str = "0.1.0"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_seconds: Optional[float] = None
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.0
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class CredentialSettings(BaseSettings):
    """Secrets that must be re-read on every request."""

    google_api_key: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def _validate(settings: Settings) -> Settings:
    if settings.sentry_traces_sample_rate < 0 or settings.sentry_traces_sample_rate > 1:
        raise ValueError("SENTRY_TRACES_SAMPLE_RATE must be between 0 and 1.")
    if not settings.gemini_image_model.strip():
        raise ValueError("GEMINI_IMAGE_MODEL must not be empty.")
    if not settings.gemini_api_base_url.strip():
        raise ValueError("GEMINI_API_BASE_URL must not be empty.")
    if settings.gemini_timeout_seconds is not None and settings.gemini_timeout_seconds <= 0:
        raise ValueError("GEMINI_TIMEOUT_SECONDS must be positive when set.")
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return validated settings as a cached singleton."""

    return _validate(Settings())


def read_google_api_key() -> str:
    """Read the Gemini credential from the environment, bypassing any cache."""

    return CredentialSettings().google_api_key.strip()
