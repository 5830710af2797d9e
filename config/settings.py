"""
Settings Module for Uptime Workers

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime configuration.
Includes validation, type checking, and sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

from pydantic import (
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.constants import Defaults, Limits


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    Backs the record store. SQLite (via aiosqlite) for single-node
    deployments and development, PostgreSQL (via asyncpg) otherwise.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql or sqlite"
    )

    # PostgreSQL settings
    host: str = Field(
        default="localhost",
        description="Database host address"
    )
    port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="Database port number"
    )
    name: str = Field(
        default="uptime",
        min_length=1,
        max_length=64,
        description="Database name"
    )
    user: str = Field(
        default="postgres",
        min_length=1,
        max_length=64,
        description="Database username"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password"
    )

    # SQLite settings
    sqlite_path: Path = Field(
        default=Path("data/uptime.db"),
        description="Path to SQLite database file"
    )

    # Connection pool settings
    pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size"
    )
    max_overflow: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum overflow connections"
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Pool connection timeout in seconds"
    )
    pool_recycle: int = Field(
        default=1800,
        ge=60,
        le=7200,
        description="Connection recycle time in seconds"
    )

    echo: bool = Field(
        default=False,
        description="Echo SQL queries (debug mode)"
    )

    @property
    def url(self) -> str:
        """Generate database URL based on configuration."""
        if self.type == DatabaseType.SQLITE:
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        password = self.password.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.user}:{password}"
            f"@{self.host}:{self.port}/{self.name}"
        )


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Configuration Settings

    Controls the check cycle cadence, the concurrency bound of the
    probe fan-out and per-check serialisation.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    check_interval: int = Field(
        default=Defaults.CHECK_INTERVAL_SECONDS,
        ge=1,
        le=86400,
        description="Seconds between two check cycles"
    )
    tick_interval: float = Field(
        default=1.0,
        gt=0,
        le=60,
        description="How often the scheduler wakes up to look for due jobs"
    )
    heartbeat_interval: int = Field(
        default=Defaults.HEARTBEAT_INTERVAL_SECONDS,
        ge=10,
        description="Seconds between two heartbeat log entries"
    )

    # Concurrency
    max_concurrent_probes: int = Field(
        default=Defaults.MAX_CONCURRENT_PROBES,
        ge=1,
        le=1000,
        description="Maximum number of checks processed at the same time"
    )
    serialize_per_check: bool = Field(
        default=True,
        description="Hold a per-check lock so overlapping cycles never race on one record"
    )

    # Probe timeouts (seconds)
    min_timeout: int = Field(
        default=Limits.MIN_TIMEOUT_SECONDS,
        ge=1,
        description="Smallest accepted timeoutSeconds on a check"
    )
    max_timeout: int = Field(
        default=Limits.MAX_TIMEOUT_SECONDS,
        ge=1,
        le=60,
        description="Largest accepted timeoutSeconds on a check"
    )

    user_agent: str = Field(
        default=Defaults.USER_AGENT,
        description="User-Agent header sent with every probe"
    )
    record_ping_logs: bool = Field(
        default=True,
        description="Append every reconciliation to the ping_logs table"
    )

    @model_validator(mode="after")
    def validate_timeouts(self) -> "MonitoringSettings":
        """Ensure the timeout bounds are ordered."""
        if self.min_timeout > self.max_timeout:
            raise ValueError(
                f"min_timeout ({self.min_timeout}) must not exceed "
                f"max_timeout ({self.max_timeout})"
            )
        return self


class AlertSettings(BaseSettingsConfig):
    """
    Alert Configuration Settings

    Credentials and switches for the SMS channel (Twilio) and the
    optional Telegram operator mirror.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALERT_",
        env_file=".env",
        extra="ignore"
    )

    # SMS (Twilio)
    sms_enabled: bool = Field(
        default=False,
        description="Deliver alerts to check owners by SMS"
    )
    twilio_account_sid: Optional[str] = Field(
        default=None,
        description="Twilio account SID"
    )
    twilio_auth_token: Optional[SecretStr] = Field(
        default=None,
        description="Twilio auth token"
    )
    twilio_from_phone: Optional[str] = Field(
        default=None,
        description="Sender phone number registered with Twilio"
    )
    sms_country_prefix: str = Field(
        default="+61",
        description="Prefix prepended to the owner's local phone number"
    )
    sms_timeout: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Timeout for one SMS API call in seconds"
    )

    # Telegram mirror
    telegram_enabled: bool = Field(
        default=False,
        description="Mirror every alert into an operator Telegram chat"
    )
    telegram_bot_token: Optional[SecretStr] = Field(
        default=None,
        description="Telegram bot token"
    )
    telegram_chat_id: Optional[int] = Field(
        default=None,
        description="Telegram chat receiving the alert mirror"
    )

    @model_validator(mode="after")
    def validate_channels(self) -> "AlertSettings":
        """Enabled channels must carry their credentials."""
        if self.sms_enabled and not (
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_phone
        ):
            raise ValueError(
                "SMS alerts are enabled but Twilio credentials are incomplete"
            )
        if self.telegram_enabled and not (
            self.telegram_bot_token and self.telegram_chat_id is not None
        ):
            raise ValueError(
                "Telegram alerts are enabled but bot token or chat id is missing"
            )
        return self


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings

    Controls the loguru sinks installed by utils.logger.setup_logging().
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Minimum log level"
    )
    to_console: bool = Field(
        default=True,
        description="Enable console output"
    )
    colorize: bool = Field(
        default=True,
        description="Use colors in console output"
    )
    to_file: bool = Field(
        default=True,
        description="Enable file logging"
    )
    file_path: Path = Field(
        default=Path("logs/workers.log"),
        description="Log file path"
    )
    file_rotation: str = Field(
        default="10 MB",
        description="Log file rotation size/time"
    )
    file_retention: str = Field(
        default="30 days",
        description="Log file retention period"
    )
    serialize: bool = Field(
        default=False,
        description="Write the log file as JSON lines"
    )

    @property
    def logs_dir(self) -> Path:
        return self.file_path.parent


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections and provides the main
    configuration interface for the application.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    app_name: str = Field(
        default="Uptime Workers",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # Nested settings
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings
    )
    monitoring: MonitoringSettings = Field(
        default_factory=MonitoringSettings
    )
    alerts: AlertSettings = Field(
        default_factory=AlertSettings
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            self.debug = False
            self.database.echo = False

        elif self.is_development and self.debug:
            self.logging.level = LogLevel.DEBUG

        return self

    def to_dict(self, *, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump()

        if exclude_secrets:
            def remove_secrets(obj: Any) -> Any:
                if isinstance(obj, dict):
                    return {
                        k: remove_secrets(v)
                        for k, v in obj.items()
                        if "password" not in k.lower()
                        and "secret" not in k.lower()
                        and "token" not in k.lower()
                    }
                elif isinstance(obj, list):
                    return [remove_secrets(item) for item in obj]
                return obj

            data = remove_secrets(data)

        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure a single settings instance
    is used throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
