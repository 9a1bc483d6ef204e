"""Facility Maintenance Tracker - Configuration Management.

Strictly-typed configuration system using pydantic-settings.
All settings are loaded from environment variables (or a local ``.env``
file) with validation.

Sections:
    - DB_*           : DatabaseSettings
    - LOG_*          : LogSettings
    - API_*          : ApiSettings
    - MAINTENANCE_*  : MaintenanceSettings
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store connection configuration.

    SQLite (through aiosqlite) is the default so the service runs without
    any infrastructure; PostgreSQL (through asyncpg) is used when
    ``DB_DRIVER=postgresql``.

    Attributes:
        driver: Database backend.
        sqlite_path: SQLite database file, or ``:memory:``.
        host: PostgreSQL server hostname.
        port: PostgreSQL server port.
        name: PostgreSQL database name.
        user: PostgreSQL username.
        password: PostgreSQL password (SecretStr for security).
        pool_size: Connection pool size (PostgreSQL only).
        max_overflow: Extra connections above pool_size (PostgreSQL only).
        echo: Echo SQL statements.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    driver: Literal["sqlite", "postgresql"] = Field(default="sqlite", description="Database backend")
    sqlite_path: str = Field(default="maintenance.db", description="SQLite file path or :memory:")
    host: str = Field(default="localhost", description="Database server hostname")
    port: int = Field(default=5432, ge=1, le=65535, description="Database server port")
    name: str = Field(default="maintenance_tracker", description="Database name")
    user: str = Field(default="maintenance", description="Database username")
    password: SecretStr | None = Field(default=None, description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Pool size")
    max_overflow: int = Field(default=10, ge=0, le=100, description="Max overflow connections")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @model_validator(mode="after")
    def validate_password_for_postgres(self) -> "DatabaseSettings":
        """Require a password when talking to PostgreSQL."""
        if self.driver == "postgresql":
            if self.password is None or not self.password.get_secret_value().strip():
                raise ValueError(
                    "DB_PASSWORD is required when DB_DRIVER=postgresql. "
                    "Set it in .env or as an environment variable."
                )
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.driver == "sqlite"

    @property
    def async_dsn(self) -> str:
        """Build the SQLAlchemy async connection string."""
        if self.is_sqlite:
            if self.sqlite_path == ":memory:":
                return "sqlite+aiosqlite:///:memory:"
            return f"sqlite+aiosqlite:///{Path(self.sqlite_path).expanduser()}"
        return (
            f"postgresql+asyncpg://{self.user}:"
            f"{self.password.get_secret_value()}@"
            f"{self.host}:{self.port}/{self.name}"
        )

    @property
    def dsn_safe(self) -> str:
        """Build connection string safe for logging (password masked)."""
        if self.is_sqlite:
            return self.async_dsn
        return (
            f"postgresql+asyncpg://{self.user}:***@"
            f"{self.host}:{self.port}/{self.name}"
        )


class LogSettings(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Log output format. ``None`` picks json outside development.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "text"] | None = Field(
        default=None,
        description="Log format (json for production)",
    )


class ApiSettings(BaseSettings):
    """HTTP API configuration.

    Attributes:
        title: OpenAPI title.
        prefix: Path prefix for all resource routes.
        cors_origins: Allowed CORS origins for the dashboard client.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    title: str = Field(default="Facility Maintenance Tracker API", description="OpenAPI title")
    prefix: str = Field(default="/api", description="Route prefix")
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    @field_validator("prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Ensure the prefix starts with a slash and has no trailing slash."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class MaintenanceSettings(BaseSettings):
    """Maintenance scheduling rules.

    Attributes:
        upcoming_window_days: Horizon of the "upcoming" view, today included.
        seed_demo_data: Insert sample machines and tasks into an empty database at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAINTENANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    upcoming_window_days: int = Field(default=7, ge=1, le=365, description="Upcoming horizon (days)")
    seed_demo_data: bool = Field(default=False, description="Seed demo data on startup")


class Settings(BaseSettings):
    """Root application settings aggregating all configuration sections.

    Use get_settings() to obtain a cached instance, or construct one
    explicitly and hand it to ``create_app`` (tests do this).

    Example:
        >>> settings = get_settings()
        >>> print(settings.database.dsn_safe)
        sqlite+aiosqlite:///maintenance.db
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Facility Maintenance Tracker", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(default=False, description="Debug mode (disable in production!)")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    maintenance: MaintenanceSettings = Field(default_factory=MaintenanceSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Enforce strict settings in production."""
        if self.environment == "production":
            if self.debug:
                raise ValueError("Debug mode must be disabled in production")
            if self.log.level == "DEBUG":
                raise ValueError("DEBUG log level is not allowed in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Raises:
        ValidationError: If settings are missing or invalid.
            This will cause immediate application startup failure.
    """
    return Settings()
