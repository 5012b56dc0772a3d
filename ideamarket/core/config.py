"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ideamarket.core.logging import LogLevel


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix IDEAMARKET_)."""

    model_config = SettingsConfigDict(
        env_prefix="IDEAMARKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Верхняя граница trading/platform fee rate (basis points, шкала 10_000)
    max_fee_rate: int = Field(default=1_000, ge=0, le=10_000)

    # Logging
    log_level: LogLevel = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
