"""Service configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Analysis result cache
    cache_ttl_seconds: float = 15.0
    cache_max_entries: int = 500
    cache_low_water: int = 400  # Size to shrink to when evicting oldest entries


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
