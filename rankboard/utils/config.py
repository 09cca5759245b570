"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: Optional[str] = None
    SQLITE_PATH: str = "rankboard_dev.db"
    SQL_DEBUG: bool = False

    # Collection views
    PAGE_SIZE: int = 20

    # Revenue model. The rates are independent business assumptions,
    # none of them is derived from another.
    CLIENT_KEYWORD_CONVERSION_RATE: float = 0.15     # ad-click value (client keyword view)
    KEYWORD_PREVIEW_CONVERSION_RATE: float = 0.005   # closed-job value (admin keyword preview)
    KEYWORD_PREVIEW_JOB_VALUE: float = 500.0
    COMPETITOR_PROFIT_CONVERSION_RATE: float = 0.005

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
