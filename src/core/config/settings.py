# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
scheduling engine. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.scheduling.low_credit_threshold
    5
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration for the scheduling store.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL; takes precedence over components.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        operation_timeout_seconds: Upper bound for one atomic operation.
        ledger_max_retries: Attempts for an operation that lost an
            optimistic-concurrency race on an enrollment row.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "tutorops"
    password: SecretStr = SecretStr("tutorops_password")
    host: str = "tutorops-db"
    port: int = 5432
    database: str = "tutorops"
    url_override: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = 10
    max_overflow: int = 20
    operation_timeout_seconds: float = 10.0
    ledger_max_retries: int = 3

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class SchedulingSettings(BaseSettings):
    """Business rules for the session lifecycle.

    These values are read once and handed to the lifecycle manager as an
    explicit policy object.

    Attributes:
        company_name: Company name substituted into message templates.
        low_credit_alerts_enabled: Whether parents get low-credit alerts.
        low_credit_threshold: Balance at or below which the alert fires.
        low_credit_template_id: Message template used for the alert.
        xp_per_completed_session: Experience points for a completed session.
        assignment_due_days: Days until an auto-created assignment is due.
        join_buffer_minutes_before: Minutes before start a session opens.
        join_buffer_minutes_after: Minutes after end a session stays open.
        max_recurring_occurrences: Largest batch a single request may create.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULING_",
        extra="ignore",
    )

    company_name: str = "TutorOps Academy"
    low_credit_alerts_enabled: bool = True
    low_credit_threshold: int = Field(default=5, ge=0)
    low_credit_template_id: str = "low-credit-alert"
    xp_per_completed_session: int = Field(default=50, ge=0)
    assignment_due_days: int = Field(default=7, ge=0)
    join_buffer_minutes_before: int = Field(default=15, ge=0)
    join_buffer_minutes_after: int = Field(default=10, ge=0)
    max_recurring_occurrences: int = Field(default=52, ge=1)


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
        title: Title shown in the OpenAPI schema.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 34000
    workers: int = 2
    reload: bool = False
    title: str = "TutorOps Scheduling API"


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        scheduling: Session lifecycle business rules.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scheduling: SchedulingSettings = Field(default_factory=SchedulingSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.db.password.get_secret_value() == "tutorops_password" and not self.db.url_override:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD or DATABASE_URL environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
