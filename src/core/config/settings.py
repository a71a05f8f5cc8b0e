# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
Registrar engine. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.registration.default_max_credits)
    16
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PASSWORD = "registrar_password"


class DatabaseSettings(BaseSettings):
    """Database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        url_override: Full async URL used verbatim when set (DB_URL),
            e.g. sqlite+aiosqlite:///./registrar.db for local runs.
        sqlite_busy_timeout_ms: How long a SQLite writer waits for the
            database lock before failing.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "registrar"
    password: SecretStr = SecretStr(DEFAULT_DB_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "registrar"
    pool_size: int = 10
    max_overflow: int = 20
    url_override: str | None = Field(default=None, validation_alias="DB_URL")
    sqlite_busy_timeout_ms: int = Field(default=5000, ge=0)

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
        if self.url_override:
            return self.url_override.replace("+asyncpg", "").replace("+aiosqlite", "")
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL points at SQLite."""
        return self.url.startswith("sqlite")


class RegistrationSettings(BaseSettings):
    """Registration policy configuration.

    Attributes:
        teacher_approval_requires_closed_window: Teachers may approve pending
            registrations only after the term's registration window closes.
        admin_bypasses_registration_window: Admins may register and switch
            on a student's behalf outside the registration window.
        default_max_credits: Max credits per student for new terms.
        default_min_credits: Advisory min credits per student for new terms.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTRATION_",
        extra="ignore",
    )

    teacher_approval_requires_closed_window: bool = True
    admin_bypasses_registration_window: bool = False
    default_max_credits: int = Field(default=16, ge=1)
    default_min_credits: int = Field(default=8, ge=0)

    @model_validator(mode="after")
    def validate_credit_defaults(self) -> Self:
        """Ensure default min credits do not exceed default max credits."""
        if self.default_min_credits > self.default_max_credits:
            raise ValueError(
                "REGISTRATION_DEFAULT_MIN_CREDITS cannot exceed REGISTRATION_DEFAULT_MAX_CREDITS"
            )
        return self


class LifecycleSyncSettings(BaseSettings):
    """Periodic section lifecycle sync configuration.

    Attributes:
        enabled: Whether the background sync job is scheduled.
        interval_minutes: Minutes between sync runs.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFECYCLE_SYNC_",
        extra="ignore",
    )

    enabled: bool = True
    interval_minutes: int = Field(default=15, ge=1)


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
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        registration: Registration policy settings.
        lifecycle_sync: Background lifecycle sync settings.
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
    registration: RegistrationSettings = Field(default_factory=RegistrationSettings)
    lifecycle_sync: LifecycleSyncSettings = Field(default_factory=LifecycleSyncSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if (
                self.db.url_override is None
                and self.db.password.get_secret_value() == DEFAULT_DB_PASSWORD
            ):
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD or DB_URL environment variable."
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
