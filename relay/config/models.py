"""
Pydantic-based configuration models for the relay server.

Each section is a BaseSettings model with its own environment prefix;
AppConfig aggregates them and also reads a local .env file.
"""

import json
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a value from the environment as a JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list | tuple):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(
        default=5000,
        validation_alias=AliasChoices("SERVER_PORT", "PORT"),
        description="Server port",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1-65535")
            raise ValueError("Port must be between 1 and 65535")
        return v

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore", "populate_by_name": True}


class DatabaseConfig(BaseSettings):
    """Database configuration."""

    url: str = Field(default="sqlite+aiosqlite:///./data/relay.db", description="Message store database URL")
    echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Connection pool configuration (ignored for SQLite)
    pool_size: int = Field(default=5, description="Number of connections to maintain in pool")
    max_overflow: int = Field(default=10, description="Additional connections beyond pool_size")
    pool_timeout: int = Field(default=30, description="Seconds to wait for connection from pool")

    @field_validator("url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL format - PostgreSQL or SQLite."""
        if not v:
            logger.error("Database URL validation failed - empty URL")
            raise ValueError("Database URL cannot be empty")
        if not (v.startswith("postgresql") or v.startswith("sqlite")):
            logger.error("Database URL validation failed - unsupported protocol", url_preview=v[:50])
            raise ValueError("Database URL must start with 'postgresql' or 'sqlite'")
        return v

    @field_validator("pool_size", "max_overflow", "pool_timeout")
    @classmethod
    def validate_pool_config(cls, v: int) -> int:
        """Validate pool configuration values are positive."""
        if v < 1:
            raise ValueError("Pool configuration values must be at least 1")
        return v

    model_config = {"env_prefix": "DATABASE_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format")
    log_base: str = Field(default="logs", description="Base log directory")
    rotation_max_size: str = Field(default="100MB", description="Log rotation max size")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable file logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "e2e_test", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "human"]
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}, got '{v}'")
        return v

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to the dict structure expected by setup_enhanced_logging."""
        return {
            "environment": self.environment,
            "level": self.level,
            "format": self.format,
            "log_base": self.log_base,
            "rotation": {
                "max_size": self.rotation_max_size,
                "backup_count": self.rotation_backup_count,
            },
            "disable_logging": self.disable_logging,
        }


class CORSConfig(BaseSettings):
    """Cross-origin resource sharing configuration."""

    allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("allow_origins", "CORS_ALLOW_ORIGINS", "CORS_ORIGINS"),
        description="Origins permitted to access the relay",
    )
    allow_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST"],
        description="HTTP methods permitted by CORS responses",
    )
    allow_credentials: bool = Field(default=True, description="Whether credentialed requests are accepted")

    @field_validator("allow_origins", "allow_methods", mode="before")
    @classmethod
    def parse_list(cls, value: object) -> list[str]:
        """Accept JSON lists or comma-separated strings."""
        return _parse_env_list(value)

    @field_validator("allow_methods")
    @classmethod
    def normalize_methods(cls, value: list[str]) -> list[str]:
        return [method.upper() for method in value]

    model_config = {"env_prefix": "CORS_", "case_sensitive": False, "extra": "ignore", "populate_by_name": True}


class UploadConfig(BaseSettings):
    """Blob store configuration for uploaded files."""

    directory: str = Field(default="uploads", description="Directory uploaded files are written to")
    public_path: str = Field(default="/uploads", description="URL prefix uploaded files are served under")
    max_file_size: int = Field(default=20 * 1024 * 1024, description="Maximum upload size in bytes")

    @field_validator("public_path")
    @classmethod
    def validate_public_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("public_path must start with '/'")
        return v.rstrip("/") or "/"

    @field_validator("max_file_size")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_file_size must be positive")
        return v

    model_config = {"env_prefix": "UPLOAD_", "case_sensitive": False, "extra": "ignore"}


class PresenceConfig(BaseSettings):
    """Presence registry behaviour switches."""

    # False keeps the historical behaviour: any disconnect for a username removes it,
    # even when a newer connection for that username has already replaced the handle.
    guard_stale_disconnect: bool = Field(
        default=False,
        description="Only remove a presence entry when the disconnecting handle still owns it",
    )

    model_config = {"env_prefix": "PRESENCE_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    This is the main configuration class that aggregates all other configs.
    Access via get_config().
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    presence: PresenceConfig = Field(default_factory=PresenceConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """
        Convert to a plain dict.

        setup_enhanced_logging() consumes this shape.
        """
        return {
            "host": self.server.host,
            "port": self.server.port,
            "database_url": self.database.url,
            "logging": self.logging.to_legacy_dict(),
            "cors": {
                "allow_origins": self.cors.allow_origins,
                "allow_methods": self.cors.allow_methods,
                "allow_credentials": self.cors.allow_credentials,
            },
            "upload": {
                "directory": self.upload.directory,
                "public_path": self.upload.public_path,
                "max_file_size": self.upload.max_file_size,
            },
            "presence": {"guard_stale_disconnect": self.presence.guard_stale_disconnect},
        }
