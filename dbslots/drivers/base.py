"""Driver protocols plus the future-backed query handle shared by drivers."""

from __future__ import annotations

from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
import logging
import threading
from typing import Protocol, runtime_checkable

from ..models import DatabaseError, ResultSets

LOG = logging.getLogger(__name__)


class DriverError(DatabaseError):
    """Raised by drivers when connecting or executing fails."""

    def __init__(self, message: str, *, code: int | str | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class DriverResult:
    """Raw output of one executed statement."""

    result_sets: ResultSets
    affected_rows: int
    last_insert_id: int | None = None


class QueryHandle:
    """Reference to one issued query whose result arrives through a future.

    Delivering the result (or the driver error) through :meth:`poll` consumes
    the handle, the same as an explicit :meth:`free`.
    """

    def __init__(self, future: "Future[DriverResult]", query: str) -> None:
        self._future = future
        self._query = query
        self._freed = False
        self._lock = threading.Lock()

    @property
    def query(self) -> str:
        return self._query

    @property
    def freed(self) -> bool:
        return self._freed

    def poll(self, timeout_ms: int, multiple_result_sets: bool = False) -> DriverResult:
        """Wait up to ``timeout_ms`` for the result.

        Raises ``concurrent.futures.TimeoutError`` when the deadline passes and
        :class:`DriverError` when the query failed.
        """

        if self._freed:
            raise DriverError("Query handle has already been freed.")
        try:
            result = self._future.result(timeout=timeout_ms / 1000)
        except CancelledError as exc:
            self._freed = True
            raise DriverError("Query was cancelled.") from exc
        except DriverError:
            self._freed = True
            raise
        self._freed = True
        if multiple_result_sets or len(result.result_sets) <= 1:
            return result
        return DriverResult(
            result_sets=result.result_sets[:1],
            affected_rows=result.affected_rows,
            last_insert_id=result.last_insert_id,
        )

    def free(self) -> None:
        """Discard the handle; the query still runs to completion."""

        with self._lock:
            if self._freed:
                return
            self._freed = True
        self._future.add_done_callback(self._discard)

    def _discard(self, future: "Future[DriverResult]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            LOG.debug("Discarded query failed: %s (%s)", self._query, exc)


@runtime_checkable
class DriverConnection(Protocol):
    """One live database session opened by a driver."""

    def escape_string(self, text: str) -> str:
        """Escape text for inclusion inside a quoted SQL literal."""

    def query(self, text: str) -> QueryHandle:
        """Start executing ``text`` and return its handle."""

    def is_connected(self) -> bool:
        """Whether the session is still usable."""

    def destroy(self) -> None:
        """Close the session."""


@runtime_checkable
class Driver(Protocol):
    """Factory for driver connections."""

    name: str
    superusers: frozenset[str]

    def open(self, host_string: str, user: str, password: str) -> DriverConnection:
        """Open a connection described by a ``key=value;...`` host string."""

    def shutdown(self) -> None:
        """Release driver-wide resources."""


def parse_host_string(host_string: str) -> dict[str, str]:
    """Split ``dbname=mta;host=localhost;port=3306`` into a dict."""

    params: dict[str, str] = {}
    for part in host_string.split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ValueError(f"Malformed host string segment '{part}'.")
        params[key.strip()] = value.strip()
    return params


__all__ = [
    "Driver",
    "DriverConnection",
    "DriverError",
    "DriverResult",
    "QueryHandle",
    "parse_host_string",
]
