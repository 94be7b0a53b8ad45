"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from dbslots import config as config_module
from dbslots.config import DatabaseSettings, load_settings, settings_from_store


def test_defaults_match_resource_settings() -> None:
    settings = DatabaseSettings()

    assert settings.driver == "mysql"
    assert settings.server == "localhost"
    assert settings.user == "root"
    assert settings.password == ""
    assert settings.database == "mta"
    assert settings.port == 3306
    assert settings.socket is None
    assert settings.poll_timeout == 500
    assert settings.max_query_handles == 128
    assert settings.blocked_callers == ["runcode"]


def test_load_settings_returns_defaults_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.toml")

    assert load_settings() == DatabaseSettings()


def test_load_settings_reads_database_table(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
[database]
driver = "postgresql"
server = "db.internal"
user = "game"
password = "secret"
database = "roleplay"
port = 5432
socket = "/run/postgresql"
poll_timeout = 250
max_query_handles = 16
blocked_callers = ["runcode", "admin-console"]
unknown = "ignored"
"""
    )

    settings = load_settings(config_path)

    assert settings.driver == "postgresql"
    assert settings.server == "db.internal"
    assert settings.user == "game"
    assert settings.password == "secret"
    assert settings.database == "roleplay"
    assert settings.port == 5432
    assert settings.socket == "/run/postgresql"
    assert settings.poll_timeout == 250
    assert settings.max_query_handles == 16
    assert settings.blocked_callers == ["runcode", "admin-console"]


def test_load_settings_drops_wrongly_typed_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[database]\nport = "3307"\nuser = "game"\n')

    settings = load_settings(config_path)

    assert settings.port == 3306
    assert settings.user == "game"


def test_load_settings_handles_toml_errors(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[database\nserver = ")

    assert load_settings(config_path) == DatabaseSettings()


def test_load_settings_rejects_invalid_ranges(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[database]\npoll_timeout = 0\n")

    assert load_settings(config_path) == DatabaseSettings()


def test_settings_from_store_treats_empty_values_as_defaults() -> None:
    store = {"server": "10.0.0.5", "user": "", "port": 3307, "socket": None, "poll_timeout": 750}

    settings = settings_from_store(store.get)

    assert settings.server == "10.0.0.5"
    assert settings.user == "root"
    assert settings.port == 3307
    assert settings.socket is None
    assert settings.poll_timeout == 750


def test_settings_validate_positive_limits() -> None:
    with pytest.raises(ValidationError):
        DatabaseSettings(max_query_handles=0)


def test_is_caller_blocked() -> None:
    settings = DatabaseSettings()

    assert settings.is_caller_blocked("runcode") is True
    assert settings.is_caller_blocked("accounts") is False
    assert settings.is_caller_blocked(None) is False
