"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Usage:
    from utils.config import settings

    token_url = settings.TOKEN_URL
    cache_dir = settings.CACHE_DIR
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream API Configuration
    TOKEN_URL: str = Field(default="https://rolexcoderz.in/api/get-token")
    CONTENT_URL: str = Field(default="https://rolexcoderz.in/api/get-live-classes")
    REFERER: str = Field(default="https://rolexcoderz.in/live-classes")
    USER_AGENT: str = Field(default=DEFAULT_USER_AGENT)
    HTTP_TIMEOUT: Optional[float] = Field(default=None)

    # Refresh Configuration
    REFRESH_INTERVAL_SECONDS: int = Field(default=60)
    FETCH_MAX_ATTEMPTS: int = Field(default=5)
    FETCH_BACKOFF_BASE: float = Field(default=2.0)

    # File System Paths
    CACHE_DIR: str = Field(default="cache")
    STATIC_DIR: str = Field(default="static")

    # HTTP Server Configuration
    PORT: int = Field(default=3000)
    API_HOST: str = Field(default="0.0.0.0")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")

    # Application Metadata
    APP_NAME: str = Field(default="classfeed")
    APP_VERSION: str = Field(default="0.1.0")

    @validator("REFRESH_INTERVAL_SECONDS", "FETCH_MAX_ATTEMPTS")
    def validate_positive(cls, v: int) -> int:
        """Interval and attempt count must be at least 1."""
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @validator("FETCH_BACKOFF_BASE")
    def validate_backoff_base(cls, v: float) -> float:
        if v <= 1:
            raise ValueError("backoff base must be > 1")
        return v

    @validator("LOG_FORMAT")
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError("LOG_FORMAT must be 'text' or 'json'")
        return v

    def default_headers(self) -> dict[str, str]:
        """Browser-like headers sent with every upstream request."""
        return {
            "Content-Type": "application/json",
            "User-Agent": self.USER_AGENT,
            "Referer": self.REFERER,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "en-US,en;q=0.9",
            "Connection": "keep-alive",
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
