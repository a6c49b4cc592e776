# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for boardprep.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from boardprep.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.practice.max_session_questions
    200
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_REDIS_PASSWORD = "boardprep_redis_password"


class RedisSettings(BaseSettings):
    """Redis configuration for the idempotency key store.

    Keys are namespaced by key_prefix: {key_prefix}:idempotency:*

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
        key_prefix: Namespace prepended to every key.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr(_DEFAULT_REDIS_PASSWORD)
    database: int = 0
    max_connections: int = 50
    key_prefix: str = "boardprep"

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class PracticeSettings(BaseSettings):
    """Limits and windows of the practice engine.

    Attributes:
        max_session_questions: Largest question count a session may request.
        max_tag_filters: Most tag slugs accepted as filters.
        max_difficulty_filters: Most difficulty values accepted as filters.
        max_time_spent_seconds: Upper bound for reported time on a question.
        max_pagination_limit: Largest page size for history and missed lists.
        stats_window_days: Length of the dashboard accuracy window.
        streak_window_days: History loaded for streak computation. This also
            caps the longest streak that can be reported.
        recent_activity_limit: Rows in the recent activity list.
    """

    model_config = SettingsConfigDict(
        env_prefix="PRACTICE_",
        extra="ignore",
    )

    max_session_questions: int = Field(default=200, ge=1)
    max_tag_filters: int = Field(default=50, ge=0)
    max_difficulty_filters: int = Field(default=3, ge=0)
    max_time_spent_seconds: int = Field(default=86400, ge=0)
    max_pagination_limit: int = Field(default=100, ge=1)
    stats_window_days: int = Field(default=7, ge=1)
    streak_window_days: int = Field(default=60, ge=1)
    recent_activity_limit: int = Field(default=20, ge=1)


class IdempotencySettings(BaseSettings):
    """Idempotency guard configuration.

    Attributes:
        ttl_seconds: Lifetime of a claimed key.
        max_wait_seconds: How long a duplicate request waits for the first
            execution to store its outcome.
        poll_interval_seconds: Delay between lookups while waiting.
        prune_batch_limit: Expired records removed per request.
        error_message_limit: Stored error messages are truncated to this.
    """

    model_config = SettingsConfigDict(
        env_prefix="IDEMPOTENCY_",
        extra="ignore",
    )

    ttl_seconds: int = Field(default=86400, ge=1)
    max_wait_seconds: float = Field(default=2.0, ge=0)
    poll_interval_seconds: float = Field(default=0.05, gt=0)
    prune_batch_limit: int = Field(default=100, ge=0)
    error_message_limit: int = Field(default=1000, ge=1)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        redis: Redis settings.
        practice: Practice engine limits.
        idempotency: Idempotency guard settings.
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
    redis: RedisSettings = Field(default_factory=RedisSettings)
    practice: PracticeSettings = Field(default_factory=PracticeSettings)
    idempotency: IdempotencySettings = Field(default_factory=IdempotencySettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.redis.password.get_secret_value() == _DEFAULT_REDIS_PASSWORD:
                raise ValueError(
                    "Redis password must be changed from default in production. "
                    "Set REDIS_PASSWORD environment variable."
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

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
