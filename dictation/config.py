"""
Configuration management using pydantic-settings.
Loads environment variables with type validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderCredentials(BaseModel):
    """
    Provider API keys, fixed at startup.
    A missing key disables the matching adapter instead of failing the process.
    """

    model_config = {"frozen": True}

    speech_to_text_key: str | None = None
    structuring_key: str | None = None

    @property
    def speech_to_text_enabled(self) -> bool:
        return bool(self.speech_to_text_key)

    @property
    def structuring_enabled(self) -> bool:
        return bool(self.structuring_key)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "AI Voice Dictation Backend"
    app_version: str = "0.1.0"
    debug: bool = False

    # OpenAI (speech-to-text)
    openai_api_key: str | None = None
    whisper_model: str = "whisper-1"
    transcription_language: str = "ko"

    # Anthropic (structuring)
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"
    structuring_max_tokens: int = 4000

    provider_timeout_seconds: float = 120.0

    # Uploads
    upload_dir: Path = Path("uploads")
    max_upload_bytes: int = 25 * 1024 * 1024

    # Rate limiting
    rate_limit: str = "30/minute"
    rate_limit_enabled: bool = True

    # CORS
    cors_origins: str = "*"

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def credentials(self) -> ProviderCredentials:
        return ProviderCredentials(
            speech_to_text_key=self.openai_api_key or None,
            structuring_key=self.anthropic_api_key or None,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    Use dependency injection in FastAPI routes.
    """
    return Settings()
