from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError
from pydantic_settings import PydanticBaseSettingsSource

from jarvis.core.config import Settings, load_settings
from jarvis.core.errors import DomainError, ErrorKind


def build_settings(**overrides: object) -> Settings:
    return NoEnvSettings.model_validate(dict(overrides))


class NoEnvSettings(Settings):
    """Helper subclass that ignores environment and .env files during validation."""

    model_config = Settings.model_config.copy()
    model_config["env_file"] = ()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[Settings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)


def test_defaults_derive_sqlite_url_from_storage_path() -> None:
    settings = build_settings()

    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.database_path == Path("./data") / "brain.db"
    assert settings.database_url == "sqlite+aiosqlite:///data/brain.db"


def test_explicit_database_url_wins() -> None:
    settings = build_settings(DATABASE_URL="sqlite+aiosqlite:///:memory:")

    assert settings.database_url == "sqlite+aiosqlite:///:memory:"


def test_blank_database_url_falls_back_to_storage_path(tmp_path: Path) -> None:
    settings = build_settings(DATABASE_URL="   ", STORAGE_PATH=str(tmp_path))

    assert settings.raw_database_url is None
    assert settings.database_url.endswith(f"{tmp_path.as_posix()}/brain.db")


def test_log_level_is_normalized() -> None:
    assert build_settings(LOG_LEVEL=" debug ").log_level == "DEBUG"


def test_invalid_log_level_is_rejected() -> None:
    with pytest.raises(ValidationError):
        build_settings(LOG_LEVEL="verbose")


@pytest.mark.parametrize("filename", ["", "   ", "nested/brain.db", "..\\brain.db"])
def test_sqlite_filename_must_be_bare_name(filename: str) -> None:
    with pytest.raises(ValidationError):
        build_settings(SQLITE_FILENAME=filename)


def test_load_settings_wraps_validation_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")

    with pytest.raises(DomainError) as exc_info:
        load_settings()

    assert exc_info.value.kind is ErrorKind.CONFIGURATION
    assert exc_info.value.message == "Invalid configuration"
    assert exc_info.value.context["errors"]


def test_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("SQL_ECHO", "true")

    settings = load_settings()

    assert settings.environment == "production"
    assert settings.sql_echo is True
