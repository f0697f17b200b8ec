"""Application settings loaded from environment variables and .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STORAGE_DIR = Path.home() / ".cache/github-autocomplete"


class Settings(BaseSettings):
    """Settings for the autocomplete engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: str | None = None
    storage_dir: Path = DEFAULT_STORAGE_DIR
    min_chars: int = 3
    debounce_ms: int = 500
    typing_threshold_ms: int = 500
    request_timeout: float = 30.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
