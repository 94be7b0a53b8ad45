"""Tests for the command line entry point."""

from __future__ import annotations

from concurrent.futures import Future
import json
from pathlib import Path

import pytest

from dbslots import __main__ as cli
from dbslots.config import DatabaseSettings
from dbslots.drivers.base import DriverError, DriverResult, QueryHandle
from dbslots.session import DatabaseSession


class _FakeConnection:
    def __init__(self) -> None:
        self.queries: list[str] = []

    def escape_string(self, text: str) -> str:
        return text.replace("'", "\\'")

    def query(self, text: str) -> QueryHandle:
        self.queries.append(text)
        future: Future[DriverResult] = Future()
        future.set_result(
            DriverResult(result_sets=(({"id": "7", "name": "alice"},),), affected_rows=1, last_insert_id=7)
        )
        return QueryHandle(future, text)

    def is_connected(self) -> bool:
        return True

    def destroy(self) -> None:
        return None


class _FakeDriver:
    name = "fake"
    superusers = frozenset({"root"})

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.connection = _FakeConnection()

    def open(self, host_string: str, user: str, password: str) -> _FakeConnection:
        if self.fail:
            raise DriverError("refused")
        return self.connection

    def shutdown(self) -> None:
        return None


def _patch_session(monkeypatch: pytest.MonkeyPatch, driver: _FakeDriver) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda path: DatabaseSettings(user="game"))
    monkeypatch.setattr(cli, "DatabaseSession", lambda settings: DatabaseSession(settings, driver=driver))


def test_main_prints_rows_as_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    driver = _FakeDriver()
    _patch_session(monkeypatch, driver)

    exit_code = cli.main(["SELECT * FROM accounts WHERE name = '%s'", "o'brien"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == [{"id": 7, "name": "alice"}]
    assert driver.connection.queries == ["SELECT * FROM accounts WHERE name = 'o\\'brien'"]


@pytest.mark.parametrize(
    ("mode", "expected"),
    [("single", {"id": 7, "name": "alice"}), ("insert-id", 7), ("affected", 1), ("forget", True)],
)
def test_main_modes(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    mode: str,
    expected: object,
) -> None:
    _patch_session(monkeypatch, _FakeDriver())

    assert cli.main(["--mode", mode, "SELECT 1"]) == 0
    assert json.loads(capsys.readouterr().out) == expected


def test_main_reports_failures(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _patch_session(monkeypatch, _FakeDriver(fail=True))

    assert cli.main(["SELECT 1"]) == 1
    assert "Database failed to connect." in capsys.readouterr().err


def test_main_reports_blocked_caller(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _patch_session(monkeypatch, _FakeDriver())

    assert cli.main(["--caller", "runcode", "SELECT 1"]) == 1
    assert "CallerNotAllowedError" in capsys.readouterr().err


def test_parse_args_defaults() -> None:
    options = cli.parse_args(["SELECT 1"])

    assert options.mode == "rows"
    assert options.args == []
    assert options.config is None
    assert cli.parse_args(["--config", "x.toml", "SELECT 1"]).config == Path("x.toml")
