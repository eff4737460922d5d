"""
Configuration and settings for the Ask Quasimatt service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CACHE_NAME = "pwa-cache-v1"
DEFAULT_PRECACHE = ("/style.css", "/manifest.json", "/")


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "POSTGRES_URL"),
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=10, ge=0)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    # Service worker served at /service-worker.js
    sw_strategy: Literal["cache-first", "network-first"] = Field(
        default="cache-first"
    )
    sw_cache_name: str = Field(default=DEFAULT_CACHE_NAME)
    sw_precache: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PRECACHE)
    )
    sw_enable_push: bool = Field(default=True)
    sw_cleanup_old_caches: bool = Field(default=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
