"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Fallback credentials; keys stored through the API take precedence
    google_tts_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "GOOGLE_TTS_API_KEY", "GOOGLE_CLOUD_API_KEY", "google_tts_api_key"
        ),
    )
    google_tts_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://texttospeech.googleapis.com/v1"),
        validation_alias=AliasChoices("GOOGLE_TTS_BASE_URL", "google_tts_base_url"),
    )
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key"),
    )
    gemini_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl(
            "https://generativelanguage.googleapis.com/v1beta"
        ),
        validation_alias=AliasChoices("GEMINI_BASE_URL", "gemini_base_url"),
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        validation_alias=AliasChoices("GEMINI_MODEL", "gemini_model"),
    )
    request_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("REQUEST_TIMEOUT", "timeout"),
        ge=1,
    )
    fetch_user_agent: str = Field(
        default="Mozilla/5.0 (compatible; ArticleReader/1.0)",
        validation_alias=AliasChoices("FETCH_USER_AGENT", "fetch_user_agent"),
    )
    chunk_max_chars: int = Field(
        default=500,
        ge=1,
        validation_alias=AliasChoices("CHUNK_MAX_CHARS", "chunk_max_chars"),
    )
    min_content_chars: int = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("MIN_CONTENT_CHARS", "min_content_chars"),
    )
    preferences_path: Path = Field(
        default_factory=lambda: Path("data/preferences.json"),
        validation_alias=AliasChoices("PREFERENCES_PATH", "preferences_path"),
    )
    saved_articles_db_path: Path = Field(
        default_factory=lambda: Path("data/saved_articles.db"),
        validation_alias=AliasChoices(
            "SAVED_ARTICLES_DB_PATH", "saved_articles_db_path"
        ),
    )
    saved_audio_dir: Path = Field(
        default_factory=lambda: Path("data/saved_audio"),
        validation_alias=AliasChoices("SAVED_AUDIO_DIR", "saved_audio_dir"),
    )
    logging_settings_path: Path = Field(
        default_factory=lambda: Path("logging_settings.conf"),
        validation_alias=AliasChoices(
            "LOGGING_SETTINGS_PATH", "logging_settings_path"
        ),
    )
    log_dir: Path = Field(
        default_factory=lambda: Path("logs/app"),
        validation_alias=AliasChoices("LOG_DIR", "log_dir"),
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["PROJECT_ROOT", "Settings", "get_settings"]
