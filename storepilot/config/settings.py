"""Application settings using Pydantic BaseSettings."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "demo-jwt-secret-change-in-production"


def _get_default_db_path() -> str:
    """Get absolute path to default SQLite database."""
    config_dir = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.dirname(config_dir)
    db_path = os.path.join(package_dir, "data", "storepilot.db")
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: str = Field(default="development")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    cors_origins: str = Field(default="http://localhost:3000")

    # Database
    database_url: str = Field(default_factory=_get_default_db_path)

    # Tokens
    # Rotating the secret invalidates every outstanding token at once.
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET)
    jwt_issuer: str = Field(default="shopify-automation-platform")
    jwt_access_audience: str = Field(default="shopify-automation-users")
    jwt_refresh_audience: str = Field(default="shopify-automation-refresh")
    access_token_ttl_seconds: int = Field(default=15 * 60, gt=0)
    refresh_token_ttl_days: int = Field(default=7, gt=0)
    refresh_token_remember_ttl_days: int = Field(default=30, gt=0)

    # Cookies
    refresh_cookie_name: str = Field(default="refreshToken")
    cookie_secure: bool = Field(default=False)

    # Rate limiting
    # "memory" = per-process tables (single instance only)
    # "redis"  = shared counters across instances (requires redis_url)
    limits_backend: str = Field(default="memory")
    redis_url: str = Field(default="")
    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    register_rate_limit: int = Field(default=5, ge=1)
    login_rate_limit: int = Field(default=5, ge=1)
    refresh_rate_limit: int = Field(default=10, ge=1)
    profile_rate_limit: int = Field(default=15, ge=1)
    stores_rate_limit: int = Field(default=10, ge=1)
    progress_rate_limit: int = Field(default=20, ge=1)

    # Login lockout
    login_max_attempts: int = Field(default=5, ge=1)
    login_window_seconds: int = Field(default=15 * 60, gt=0)
    login_lockout_seconds: int = Field(default=30 * 60, gt=0)

    # Demo account (demo@example.com / password123), never seeded in production
    demo_user_enabled: bool = Field(default=True)
    demo_user_email: str = Field(default="demo@example.com")
    demo_user_password: str = Field(default="password123")

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_staging(self) -> bool:
        return self.environment == "staging"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def is_prod_like(self) -> bool:
        """Check if running in production or staging mode."""
        return self.is_production or self.is_staging

    @property
    def docs_url(self) -> str | None:
        return None if self.is_prod_like else "/docs"

    @property
    def openapi_url(self) -> str | None:
        return None if self.is_prod_like else "/openapi.json"

    def refresh_ttl_seconds(self, remember: bool) -> int:
        """Refresh token lifetime in seconds for the given remember-me choice."""
        days = self.refresh_token_remember_ttl_days if remember else self.refresh_token_ttl_days
        return days * 24 * 60 * 60

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"development", "staging", "production", "test"}:
            raise ValueError("ENVIRONMENT must be one of: development, staging, production, test")
        return vv

    @field_validator("limits_backend")
    @classmethod
    def validate_limits_backend(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"memory", "redis"}:
            raise ValueError("LIMITS_BACKEND must be one of: memory, redis")
        return vv


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
