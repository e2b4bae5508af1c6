"""
Configuration management using environment variables.
Handles database, token and logging settings with validation and defaults.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Core application settings shared by the catalog services.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Database Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./bookshelf.db")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=3600)  # seconds
    db_pool_timeout: int = Field(default=30)  # seconds
    db_echo: bool = Field(default=False)

    # Identity Token Configuration
    jwt_key: str = Field(default="change-me-in-production-bookshelf-signing-key")
    jwt_expiration: timedelta = Field(default=timedelta(hours=24))
    jwt_issuer: str = Field(default="bookshelf-server")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    @field_validator("db_pool_size")
    @classmethod
    def validate_pool_size(cls, v):
        """Ensure the pool size is reasonable."""
        if v < 1 or v > 100:
            raise ValueError("db_pool_size must be between 1 and 100")
        return v

    @field_validator("db_max_overflow")
    @classmethod
    def validate_max_overflow(cls, v):
        """Ensure the pool overflow is non-negative."""
        if v < 0:
            raise ValueError("db_max_overflow cannot be negative")
        return v

    @field_validator("jwt_expiration")
    @classmethod
    def validate_jwt_expiration(cls, v):
        """Tokens must expire in the future."""
        if v.total_seconds() <= 0:
            raise ValueError("jwt_expiration must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @model_validator(mode="after")
    def validate_pool_capacity(self):
        """A search holds two connections at once, so the pool must offer at least two."""
        if self.db_pool_size + self.db_max_overflow < 2:
            raise ValueError("db_pool_size + db_max_overflow must be at least 2")
        return self

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def is_sqlite(self) -> bool:
        """Check whether the configured store is SQLite."""
        return self.database_url.startswith("sqlite")

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug
