# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the student
portal. Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from student_portal.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.registration.limit)
    200
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration for the registration counter.

    Attributes:
        driver: SQLAlchemy async driver name.
        user: Database username.
        password: Database password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        operation_timeout: Upper bound in seconds for a single counter operation.
        create_schema: Whether to create missing tables at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        extra="ignore",
    )

    driver: str = "postgresql+asyncpg"
    user: str = "portal"
    password: SecretStr = SecretStr("portal_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "student_portal"
    pool_size: int = 10
    max_overflow: int = 10
    operation_timeout: float = 5.0
    create_schema: bool = True

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class DirectorySettings(BaseSettings):
    """Google Workspace Directory API configuration.

    The portal authenticates against the Admin SDK with a long-lived
    refresh token that is exchanged for short-lived access tokens.

    Attributes:
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        refresh_token: OAuth refresh token with directory scopes.
        token_url: OAuth token endpoint.
        api_base_url: Directory API base URL.
        timeout: Request timeout in seconds.
        token_expiry_margin: Seconds before expiry at which a token is refreshed.
    """

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        extra="ignore",
    )

    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    refresh_token: SecretStr = SecretStr("")
    token_url: str = "https://oauth2.googleapis.com/token"
    api_base_url: str = "https://admin.googleapis.com/admin/directory/v1"
    timeout: float = 10.0
    token_expiry_margin: int = 60


class RegistrationSettings(BaseSettings):
    """Registration quota and account naming configuration.

    Attributes:
        limit: Default registration limit used when the counter is created.
        min_trust_level: Minimum forum trust level required to provision.
        email_domain: Workspace domain for student accounts.
        secondary_prefix: Local-part prefix for secondary accounts.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTRATION_",
        extra="ignore",
    )

    limit: int = Field(default=200, ge=0)
    min_trust_level: int = 3
    email_domain: str = Field(
        default="chatgpt.org.uk",
        validation_alias="EMAIL_DOMAIN",
    )
    secondary_prefix: str = "kst_"

    @property
    def domain(self) -> str:
        """Return the e-mail domain without a leading '@'."""
        return self.email_domain.lstrip("@")


class AdminSettings(BaseSettings):
    """Administrative API configuration.

    Attributes:
        api_key: Key expected in the X-API-Key header of admin requests.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_",
        extra="ignore",
    )

    api_key: SecretStr | None = None


class ReconciliationSettings(BaseSettings):
    """Counter reconciliation configuration.

    Attributes:
        enabled: Whether the periodic reconciliation job runs.
        interval_minutes: Minutes between reconciliation runs.
        auto_correct: Whether detected drift overwrites the stored count.
        excluded_identities: Comma-separated directory accounts not counted
            against the quota (administrators, service accounts).
    """

    model_config = SettingsConfigDict(
        env_prefix="RECONCILIATION_",
        extra="ignore",
    )

    enabled: bool = False
    interval_minutes: int = 60
    auto_correct: bool = False
    excluded_identities: str = ""

    @property
    def excluded_list(self) -> list[str]:
        """Parse excluded identities into a lower-cased list."""
        return [
            identity.strip().lower()
            for identity in self.excluded_identities.split(",")
            if identity.strip()
        ]


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        requests_per_minute: Maximum requests per minute per client.
        provisioning_per_minute: Maximum account creations/deletions per minute.
        storage_uri: slowapi storage backend, in-memory by default.
        enabled: Whether rate limits are enforced.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    requests_per_minute: int = 60
    provisioning_per_minute: int = 5
    storage_uri: str = "memory://"
    enabled: bool = True


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

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Counter database settings.
        directory: Directory API settings.
        registration: Quota and naming settings.
        admin: Admin API settings.
        reconciliation: Reconciliation job settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
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
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    directory: DirectorySettings = Field(default_factory=DirectorySettings)
    registration: RegistrationSettings = Field(default_factory=RegistrationSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without an admin API key.
        """
        if self.environment == "production":
            if self.admin.api_key is None or not self.admin.api_key.get_secret_value():
                raise ValueError(
                    "Admin API key must be configured in production. "
                    "Set ADMIN_API_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


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

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
