"""PostgreSQL driver running asyncpg on a background event loop."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
import logging
import re
import threading
from typing import Any, Coroutine, Iterable, TypeVar

import asyncpg

from .base import DriverError, DriverResult, QueryHandle, parse_host_string

LOG = logging.getLogger(__name__)

T = TypeVar("T")

_RETURNING = re.compile(r"\breturning\b", re.IGNORECASE)


class PostgresDriver:
    """Opens asyncpg connections and executes their queries off-thread."""

    name = "postgresql"
    superusers = frozenset({"postgres"})

    def __init__(self, *, connect_timeout: float = 3.0) -> None:
        self._connect_timeout = connect_timeout
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="dbslots-asyncpg-driver",
            daemon=True,
        )
        self._loop_thread.start()

    def open(self, host_string: str, user: str, password: str) -> "PostgresConnection":
        params = parse_host_string(host_string)
        kwargs: dict[str, object] = {
            "host": params.get("unix_socket") or params.get("host") or "localhost",
            "user": user,
            "timeout": self._connect_timeout,
        }
        if params.get("port"):
            kwargs["port"] = int(params["port"])
        if params.get("dbname"):
            kwargs["database"] = params["dbname"]
        if password:
            kwargs["password"] = password
        try:
            conn = self.run(asyncpg.connect(**kwargs))
        except Exception as exc:
            raise DriverError(f"Failed to connect to '{kwargs['host']}': {exc}") from exc
        return PostgresConnection(self, conn)

    def submit(self, coro: Coroutine[Any, Any, DriverResult]) -> "Future[DriverResult]":
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        if not self._loop.is_running():
            coro.close()
            raise DriverError("Driver has been shut down.")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def shutdown(self) -> None:
        """Stop the background event loop."""

        if not self._loop.is_running():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)


class PostgresConnection:
    """Single asyncpg connection; statements run one at a time."""

    def __init__(self, driver: PostgresDriver, conn: asyncpg.Connection) -> None:
        self._driver = driver
        self._conn = conn
        self._lock = asyncio.Lock()

    def escape_string(self, text: str) -> str:
        # standard_conforming_strings is on by default, so only quotes need doubling.
        if "\x00" in text:
            raise DriverError("PostgreSQL text cannot contain NUL characters.")
        return text.replace("'", "''")

    def query(self, text: str) -> QueryHandle:
        future = self._driver.submit(self._execute(text))
        return QueryHandle(future, text)

    def is_connected(self) -> bool:
        return not self._conn.is_closed()

    def destroy(self) -> None:
        if self._conn.is_closed():
            return
        try:
            self._driver.run(self._conn.close())
        except Exception:
            LOG.debug("Graceful close failed; terminating connection.", exc_info=True)
            self._conn.terminate()

    async def _execute(self, text: str) -> DriverResult:
        async with self._lock:
            try:
                if _returns_rows(text):
                    records = await self._conn.fetch(text)
                    return _records_to_result(text, records)
                status = await self._conn.execute(text)
            except (asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
                raise DriverError(str(exc), code=getattr(exc, "sqlstate", None)) from exc
        return _status_to_result(status)


def _returns_rows(statement: str) -> bool:
    token = statement.lstrip().split(None, 1)
    if not token:
        return False
    head = token[0].lower()
    if head in {"select", "with", "show", "values", "table"}:
        return True
    return _RETURNING.search(statement) is not None


def _records_to_result(statement: str, records: Iterable[asyncpg.Record]) -> DriverResult:
    rows = tuple(dict(record.items()) for record in records)
    last_insert_id = None
    if rows and statement.lstrip()[:6].lower() == "insert":
        first = next(iter(rows[0].values()), None)
        if isinstance(first, int):
            last_insert_id = first
    return DriverResult(result_sets=(rows,), affected_rows=len(rows), last_insert_id=last_insert_id)


def _status_to_result(status: str) -> DriverResult:
    """Translate a command tag such as ``INSERT 0 3`` or ``UPDATE 2``."""

    parts = status.split()
    affected = int(parts[-1]) if parts and parts[-1].isdigit() else 0
    last_insert_id = None
    if len(parts) == 3 and parts[0] == "INSERT" and parts[1].isdigit() and int(parts[1]):
        last_insert_id = int(parts[1])
    return DriverResult(result_sets=(), affected_rows=affected, last_insert_id=last_insert_id)


__all__ = ["PostgresConnection", "PostgresDriver"]
