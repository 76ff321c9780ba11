"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # "development" or "production" - controls cookie flags and error detail
    environment: str = "development"

    # Storage
    db_path: Path = Path("data/notetaker.db")
    otp_sweep_interval_seconds: int = 60

    # Session tokens
    jwt_secret: str = "dev-access-secret-change-me-in-production"
    jwt_refresh_secret: str = "dev-refresh-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "note-taking-app"
    jwt_audience: str = "note-taking-app-users"
    access_token_ttl_days: int = 7
    refresh_token_ttl_days: int = 30
    jwt_leeway_seconds: int = 60

    # One-time codes
    otp_length: int = Field(6, ge=4, le=10)
    otp_expiry_minutes: int = 10
    otp_resend_cooldown_seconds: int = 30

    # Google sign-in
    google_client_id: str = ""
    google_timeout_seconds: float = 10.0
    google_allow_mock_tokens: bool = False

    # Email: "console" logs messages, "smtp" delivers them
    email_backend: str = "console"
    email_from: str = "Note Taking App <no-reply@notetaker.local>"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_timeout_seconds: float = 10.0

    # Rate limits (requests per window)
    rate_limit_general_max: int = 100
    rate_limit_general_window_seconds: int = 900
    rate_limit_auth_max: int = 10
    rate_limit_auth_window_seconds: int = 900
    rate_limit_otp_max: int = 15
    rate_limit_otp_window_seconds: int = 300
    rate_limit_signup_max: int = 5
    rate_limit_signup_window_seconds: int = 3600

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
