"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "RBAC Core"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Database (required - no default)
    database_url: str = Field(
        description="PostgreSQL connection URL (SQLite allowed outside production)."
    )
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Upper bound for a single store call, in seconds
    store_timeout_seconds: float = Field(default=5.0, gt=0)

    # Treat assignments past their expires_at as revoked
    enforce_assignment_expiry: bool = True

    # Role that identifies super administrators
    super_admin_role: str = "super_admin"

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings for security requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG mode cannot be enabled in production environment. "
                "This would expose detailed error messages."
            )

        url = self.database_url
        if not url.startswith(("postgresql://", "postgres://", "postgresql+asyncpg://", "sqlite")):
            raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite URL")

        if self.environment == "production" and url.startswith("sqlite"):
            raise ValueError("DATABASE_URL must point to PostgreSQL in production")

        return self

    @property
    def is_sqlite(self) -> bool:
        """Whether the store is SQLite (development and tests)."""
        return self.database_url.startswith("sqlite")

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy.

        PostgreSQL URLs are rewritten for asyncpg (sslmode -> ssl), SQLite
        URLs are rewritten for aiosqlite.
        """
        url = self.database_url
        if self.is_sqlite:
            if not url.startswith("sqlite+aiosqlite"):
                url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
            return url
        url = url.replace("postgres://", "postgresql://", 1)
        if not url.startswith("postgresql+asyncpg://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        # Convert sslmode to ssl for asyncpg compatibility
        url = url.replace("sslmode=", "ssl=")
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
