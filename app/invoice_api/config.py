"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment: "development", "test" or "production"
    app_env: str = "development"

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"

    # Database
    database_url: str = "sqlite:///./invoices.db"

    # Text extraction limits
    extract_max_pages: int = 5
    extract_max_chars: int = 100_000

    # Substitute a canned invoice text when a PDF cannot be read.
    # Only allowed outside production.
    extract_sample_fallback: bool = False

    # Upload limits (bytes)
    upload_max_bytes: int = 25 * 1024 * 1024
    convert_max_bytes: int = 10 * 1024 * 1024

    # Comma-separated list of allowed CORS origins
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Echo SQL statements
    sql_debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def check_sample_fallback(self) -> "Settings":
        """Refuse the canned-sample fallback in production."""
        if self.extract_sample_fallback and self.is_production:
            raise ValueError(
                "EXTRACT_SAMPLE_FALLBACK cannot be enabled when APP_ENV=production"
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
