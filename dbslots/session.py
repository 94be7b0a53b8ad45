"""Database session: lifecycle plus the public query entry points."""

from __future__ import annotations

import logging
from types import TracebackType

from .config import DatabaseSettings
from .connections import ConnectionFailedError, ConnectionManager
from .drivers import Driver, DriverConnection, DriverError, QueryHandle, create_driver
from .interpolate import escape, interpolate
from .models import PollError, PollOutcome, PollSuccess, PollTimeout, Row
from .poller import QueryPoller
from .pool import QueryHandlePool
from .query import (
    CallerNotAllowedError,
    PollTimeoutError,
    QueryError,
    shape_row,
    shape_rows,
)

LOG = logging.getLogger(__name__)


class DatabaseSession:
    """Owns the connection, the handle pool and the poller for one process.

    Construct once at startup, call :meth:`open`, and share the instance with
    every caller. :meth:`close` frees outstanding handles and disconnects.
    """

    def __init__(self, settings: DatabaseSettings | None = None, *, driver: Driver | None = None) -> None:
        self._settings = settings or DatabaseSettings()
        self._driver = driver or create_driver(self._settings.driver)
        self._connections = ConnectionManager(self._settings, self._driver)
        self._pool = QueryHandlePool(self._settings.max_query_handles)
        self._poller = QueryPoller(self._pool, timeout_ms=self._settings.poll_timeout)

    @property
    def settings(self) -> DatabaseSettings:
        return self._settings

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    @property
    def pool(self) -> QueryHandlePool:
        return self._pool

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> DatabaseSession:
        """Connect eagerly; a failure here is fatal for the host."""

        if not self._connections.connect():
            raise ConnectionFailedError("Database failed to connect.")
        return self

    def close(self) -> None:
        freed = self._pool.drain_all()
        if freed:
            LOG.info("Freed %d outstanding query handle(s) at shutdown.", freed)
        self._connections.disconnect()
        self._driver.shutdown()

    def __enter__(self) -> DatabaseSession:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Slot management
    # ------------------------------------------------------------------

    def escape_string(self, value: object) -> str:
        return escape(self._connections.require(), value)

    def query(self, template: str, *args: object) -> int:
        """Issue a query and return the pool slot holding its handle."""

        connection = self._connections.require()
        statement = interpolate(connection, template, *args)
        handle = self._issue(connection, statement)
        LOG.debug("Issued query: %s", statement)
        return self._pool.allocate(handle, statement)

    def poll(self, index: int, *, multiple_result_sets: bool = False) -> PollOutcome:
        return self._poller.poll(index, multiple_result_sets=multiple_result_sets)

    def free_query_handle(self, index: int) -> None:
        self._pool.release(index)

    def remove_query_handle(self, index: int) -> None:
        """Clear a slot whose handle has already been freed."""

        self._pool.forget(index)

    # ------------------------------------------------------------------
    # Fetching entry points
    # ------------------------------------------------------------------

    def query_assoc(self, template: str, *args: object, caller: str | None = None) -> list[Row]:
        """Run a query and return every row."""

        return shape_rows(self._fetch(template, args, caller).rows)

    def query_assoc_single(self, template: str, *args: object, caller: str | None = None) -> Row | None:
        """Run a query and return its first row, or ``None`` when empty."""

        rows = self._fetch(template, args, caller).rows
        if not rows:
            return None
        return shape_row(rows[0])

    def query_insertid(self, template: str, *args: object, caller: str | None = None) -> int | None:
        return self._fetch(template, args, caller).last_insert_id

    def query_affected_rows(self, template: str, *args: object, caller: str | None = None) -> int:
        return self._fetch(template, args, caller).affected_rows

    def query_free(self, template: str, *args: object, caller: str | None = None) -> bool:
        """Run a query without waiting for its result."""

        self._check_caller(caller)
        connection = self._connections.require()
        statement = interpolate(connection, template, *args)
        self._issue(connection, statement).free()
        return True

    @staticmethod
    def _issue(connection: DriverConnection, statement: str) -> QueryHandle:
        try:
            return connection.query(statement)
        except DriverError as exc:
            raise QueryError(str(exc)) from exc

    def _fetch(self, template: str, args: tuple[object, ...], caller: str | None) -> PollSuccess:
        self._check_caller(caller)
        index = self.query(template, *args)
        try:
            outcome = self._poller.poll(index, multiple_result_sets=False)
        except BaseException:
            self._pool.release(index)
            raise
        if isinstance(outcome, PollTimeout):
            self._pool.release(index)
            raise PollTimeoutError()
        self._pool.forget(index)
        if isinstance(outcome, PollError):
            raise QueryError(outcome.message)
        return outcome

    def _check_caller(self, caller: str | None) -> None:
        if self._settings.is_caller_blocked(caller):
            raise CallerNotAllowedError()


__all__ = ["DatabaseSession"]
