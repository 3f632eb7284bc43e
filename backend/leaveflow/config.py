from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "LeaveFlow"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    database_url: str = "postgresql+asyncpg://leaveflow:leaveflow@db:5432/leaveflow"
    db_pool_size: int = Field(default=5, ge=1)
    # Upper bound on waiting for a row lock (PostgreSQL only).
    db_lock_timeout_ms: int = Field(default=5000, ge=0)

    # Attempts per transaction when the database reports a transient failure.
    transaction_max_attempts: int = Field(default=3, ge=1)
    # Re-check the owner's balance under lock when a request is approved.
    enforce_balance_on_approve: bool = False


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
