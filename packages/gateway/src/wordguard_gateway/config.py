"""
WordGuard Gateway Configuration

Settings and configuration management.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # CORS settings
    allowed_origins: List[str] = ["*"]

    # Redis settings
    redis_url: str = "redis://localhost:6379"

    # Content filter settings
    filter_enabled: bool = True
    word_cache_ttl_seconds: float = 300.0

    # Violation log settings
    violation_retention_days: int = 90
    violation_stats_limit: int = 10000
    cleanup_interval_hours: float = 24.0

    # Admin token settings
    admin_secret_key: str = "wordguard-admin-secret-change-in-production"
    admin_algorithm: str = "HS256"

    # Logging
    log_level: str = "info"

    class Config:
        env_prefix = "WORDGUARD_"
        env_file = ".env"


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
