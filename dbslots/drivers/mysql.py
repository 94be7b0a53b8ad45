"""MySQL driver backed by PyMySQL and a single-worker executor per connection."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
import logging

import pymysql
import pymysql.cursors

from .base import DriverError, DriverResult, QueryHandle, parse_host_string

LOG = logging.getLogger(__name__)


class MySQLDriver:
    """Opens PyMySQL connections."""

    name = "mysql"
    superusers = frozenset({"root"})

    def __init__(self, *, connect_timeout: int = 10, close_timeout: float = 5.0) -> None:
        self._connect_timeout = connect_timeout
        self._close_timeout = close_timeout

    def open(self, host_string: str, user: str, password: str) -> "MySQLConnection":
        params = parse_host_string(host_string)
        kwargs: dict[str, object] = {
            "host": params.get("host") or "localhost",
            "port": int(params.get("port") or 3306),
            "user": user,
            "password": password,
            "charset": "utf8mb4",
            "autocommit": True,
            "cursorclass": pymysql.cursors.DictCursor,
            "connect_timeout": self._connect_timeout,
        }
        if params.get("dbname"):
            kwargs["database"] = params["dbname"]
        if params.get("unix_socket"):
            kwargs["unix_socket"] = params["unix_socket"]
        try:
            conn = pymysql.connect(**kwargs)
        except pymysql.MySQLError as exc:
            raise DriverError(f"Failed to connect to '{kwargs['host']}': {exc}", code=_error_code(exc)) from exc
        return MySQLConnection(conn, close_timeout=self._close_timeout)

    def shutdown(self) -> None:
        return None


class MySQLConnection:
    """Single PyMySQL connection; statements run in submission order."""

    def __init__(self, conn: pymysql.connections.Connection, *, close_timeout: float = 5.0) -> None:
        self._conn = conn
        self._close_timeout = close_timeout
        self._closing = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dbslots-mysql")

    def escape_string(self, text: str) -> str:
        return self._conn.escape_string(text)

    def query(self, text: str) -> QueryHandle:
        if self._closing:
            raise DriverError("Connection has been closed.")
        future = self._executor.submit(self._execute, text)
        return QueryHandle(future, text)

    def is_connected(self) -> bool:
        return bool(self._conn.open) and not self._closing

    def destroy(self) -> None:
        """Close on the worker thread once every queued statement has run."""

        if self._closing:
            return
        self._closing = True
        future = self._executor.submit(self._close)
        self._executor.shutdown(wait=False)
        try:
            future.result(timeout=self._close_timeout)
        except FutureTimeoutError:
            LOG.warning(
                "Connection close still waiting on a running statement after %.1fs.",
                self._close_timeout,
            )

    def _close(self) -> None:
        if not self._conn.open:
            return
        try:
            self._conn.close()
        except pymysql.err.Error:
            LOG.debug("Connection was already closed by the server.", exc_info=True)

    def _execute(self, text: str) -> DriverResult:
        try:
            with self._conn.cursor() as cursor:
                affected = cursor.execute(text)
                result_sets = [tuple(cursor.fetchall())]
                while cursor.nextset():
                    result_sets.append(tuple(cursor.fetchall()))
                last_insert_id = cursor.lastrowid or None
        except pymysql.MySQLError as exc:
            raise DriverError(_error_message(exc), code=_error_code(exc)) from exc
        return DriverResult(
            result_sets=tuple(result_sets),
            affected_rows=affected,
            last_insert_id=last_insert_id,
        )


def _error_code(exc: pymysql.MySQLError) -> int | None:
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def _error_message(exc: pymysql.MySQLError) -> str:
    if len(exc.args) >= 2:
        return str(exc.args[1])
    return str(exc)


__all__ = ["MySQLConnection", "MySQLDriver"]
