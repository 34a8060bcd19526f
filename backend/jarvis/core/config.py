"""
Configuration module for the Jarvis backend.

Settings are loaded from environment variables (and an optional ``.env``
file) and validated once. Invalid configuration surfaces as a
``CONFIG_ERROR`` DomainError so bootstrap code handles it like any other
structured failure.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jarvis.core.errors import ErrorFactory


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    project_name: str = Field(default="jarvis-ultimate", alias="PROJECT_NAME")
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        alias="APP_ENV",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
    )
    sql_echo: bool = Field(default=False, alias="SQL_ECHO")

    storage_path: Path = Field(default=Path("./data"), alias="STORAGE_PATH")
    sqlite_filename: str = Field(default="brain.db", alias="SQLITE_FILENAME")
    raw_database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Explicit SQLAlchemy URL; derived from STORAGE_PATH when unset.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("sqlite_filename", "project_name", mode="before")
    @classmethod
    def _strip_string(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be provided.")
        trimmed = value.strip()
        if not trimmed:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return trimmed

    @field_validator("raw_database_url", mode="before")
    @classmethod
    def _blank_url_is_unset(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None

    @field_validator("sqlite_filename")
    @classmethod
    def _validate_filename(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError("SQLITE_FILENAME must be a bare file name.")
        return value

    @property
    def database_path(self) -> Path:
        return self.storage_path / self.sqlite_filename

    @property
    def database_url(self) -> str:
        """Return the SQLAlchemy URL used by the storage layer."""
        if self.raw_database_url:
            return self.raw_database_url
        return f"sqlite+aiosqlite:///{self.database_path.as_posix()}"


def load_settings() -> Settings:
    """Build Settings, converting validation failures into a configuration error."""
    try:
        # BaseSettings loads values from env/.env during instantiation.
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise ErrorFactory.configuration("Invalid configuration", {"errors": errors}) from exc


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    return load_settings()


__all__ = ["Settings", "get_settings", "load_settings"]
