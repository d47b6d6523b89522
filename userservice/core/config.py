"""
Configuration management for the user service.

Environment-driven configuration using Pydantic's `BaseSettings`. Modules
consume the shared `settings` instance so the API, the storage layer and the
CLI agree on the same values.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, MongoDsn, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # General application settings
    API_TITLE: str = "User Service"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: PositiveInt = 3000
    LOG_LEVEL: str = "INFO"

    # Database connection
    MONGODB_URL: MongoDsn = Field("mongodb://127.0.0.1:27017")
    MONGODB_DATABASE: str = "testdb"
    MONGODB_USERS_COLLECTION: str = "users"
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: PositiveInt = 5000

    # Monitoring
    ENABLE_METRICS: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
