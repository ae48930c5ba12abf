"""
HostelHub Finance - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "HostelHub Finance"
    app_env: str = "development"
    debug: bool = False
    api_version: str = "v1"
    log_level: str = "INFO"

    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "hostelhub_finance"
    database_url_async: str = ""

    @property
    def async_database_url(self) -> str:
        """Explicit DATABASE_URL_ASYNC, or one built from the postgres_* parts."""
        if self.database_url_async:
            return self.database_url_async
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # ===========================================
    # CACHE CONFIGURATION
    # "memory" keeps reports in-process, "redis" shares them across workers
    # ===========================================
    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    report_cache_ttl_seconds: int = 300  # 5 minutes
    report_cache_max_entries: int = 500

    # ===========================================
    # REPORTING
    # ===========================================
    default_basis: str = "cash"
    balance_tolerance: float = 0.01  # Assets vs Liabilities + Equity

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
