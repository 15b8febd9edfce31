"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The data root, document formatting and logging are the only knobs;
everything else about the persisted layout is fixed.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_root() -> Path:
    return Path.home() / ".local" / "share" / "finance-tracker"


class StorageSettings(BaseSettings):
    """Where and how the JSON documents are written."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_root: Path = Field(
        default_factory=_default_data_root,
        description="Application-owned directory holding the data folder"
    )
    base_dir_name: str = Field(
        default="finance-data",
        min_length=1,
        description="Name of the data folder inside data_root"
    )
    json_indent: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Indentation used when writing documents"
    )
    run_migration: bool = Field(
        default=True,
        description="Import legacy flat files on startup"
    )

    @field_validator('base_dir_name')
    @classmethod
    def validate_base_dir_name(cls, v: str) -> str:
        """The data folder must be a single path segment."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"base_dir_name must be a plain folder name, got {v!r}")
        return v

    @property
    def base_dir(self) -> Path:
        """Get the data folder (all documents live below it)."""
        return self.data_root / self.base_dir_name


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=False,
        description="Render log lines as JSON instead of console text"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
