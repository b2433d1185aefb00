"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ResQ"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Remote AI function (question generation, judging, punctuation)
    ai_function_url: str = ""
    ai_function_token: str = ""
    ai_timeout_seconds: float = 60.0

    # Question generation
    max_questions: int = 15
    use_fallback_questions: bool = True  # Substitute the category set when generation fails

    # Simulated analysis progress (the remote call reports none)
    progress_step: int = 5
    progress_interval_seconds: float = 0.3
    progress_cap: int = 90

    # Speech recognition
    speech_language: str = "en-US"

    # Speech synthesis
    speech_rate: float = 0.8  # Slower than default for clarity
    speech_pitch: float = 1.0
    speech_volume: float = 1.0
    tts_provider: str = "browser"  # Options: browser, edge-tts
    tts_voice: str = "en-US-JennyNeural"  # Edge TTS voice

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
