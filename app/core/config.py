"""
Centralized configuration management.

Follows Layer 5 rules:
- All secrets (DB URLs, passwords) MUST come from environment variables or a
  secure secret store (never hardcoded)
- Centralize configuration in this module
- Do not spread os.getenv calls all over the codebase
- Do not log secrets or environment values
"""
from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Postgres ---
    DATABASE_URL: str | None = Field(default=None, description="Full PostgreSQL DSN (overrides PG_*)")
    PG_HOST: str = Field(default="localhost", description="PostgreSQL host")
    PG_PORT: int = Field(default=5432, description="PostgreSQL port")
    PG_DB: str = Field(default="postgres", description="PostgreSQL database name")
    PG_USER: str = Field(default="postgres", description="PostgreSQL user")
    PG_PASSWORD: str | None = Field(default=None, description="PostgreSQL password")
    PG_SSLMODE: str = Field(default="require", description="PostgreSQL SSL mode (require/disable)")
    PG_POOL_MAX: int = Field(default=10, description="Maximum pooled connections")

    # --- Tenancy layout ---
    REGISTRY_SCHEMA: str = Field(default="public", description="Schema holding tenants and tenant_users")
    TENANT_USERS_TABLE: str = Field(default="users", description="User table name inside each tenant schema")

    # --- Reconciliation ---
    RECONCILE_STRICT: bool = Field(
        default=False,
        description="Exit non-zero when any candidate failed (otherwise only the summary reports it)",
    )

    # --- Runtime ---
    APP_ENV: str = Field(default="production", description="production | development")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level for the app logger")
    CORS_ORIGINS: str = Field(default="*", description="CORS allowed origins (comma-separated)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"


settings = Settings()
