"""Database settings loading helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import tomllib

from pydantic import BaseModel, Field, ValidationError

CONFIG_FILE = Path.home() / ".config" / "dbslots" / "config.toml"


class DatabaseSettings(BaseModel):
    """Connection target plus pool and poll tuning."""

    driver: str = "mysql"
    server: str = "localhost"
    user: str = "root"
    password: str = ""
    database: str = "mta"
    port: int = Field(default=3306, gt=0, lt=65536)
    socket: str | None = None
    poll_timeout: int = Field(default=500, gt=0)
    max_query_handles: int = Field(default=128, gt=0)
    blocked_callers: list[str] = Field(default_factory=lambda: ["runcode"])

    def is_caller_blocked(self, caller: str | None) -> bool:
        return caller is not None and caller in self.blocked_callers


def load_settings(path: Path | None = None) -> DatabaseSettings:
    """Load the ``[database]`` table; fall back to defaults if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return DatabaseSettings()
    except (tomllib.TOMLDecodeError, OSError):
        return DatabaseSettings()
    try:
        return DatabaseSettings(**data)
    except ValidationError:
        return DatabaseSettings()


def settings_from_store(get: Callable[[str], object | None]) -> DatabaseSettings:
    """Build settings from a host key/value getter; empty values mean default."""

    data: dict[str, object] = {}
    for key in DatabaseSettings.model_fields:
        value = get(key)
        if value is None or value == "":
            continue
        data[key] = value
    return DatabaseSettings(**data)


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    section = raw.get("database")
    data: dict[str, object] = {}
    if not isinstance(section, dict):
        return data
    for key in ("driver", "server", "user", "password", "database", "socket"):
        value = section.get(key)
        if isinstance(value, str):
            data[key] = value
    for key in ("port", "poll_timeout", "max_query_handles"):
        value = section.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            data[key] = value
    blocked = section.get("blocked_callers")
    if isinstance(blocked, list):
        data["blocked_callers"] = [str(name) for name in blocked]
    return data


__all__ = ["CONFIG_FILE", "DatabaseSettings", "load_settings", "settings_from_store"]
