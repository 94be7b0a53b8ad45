"""Bounded wait on pooled query handles."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
import logging

from .drivers.base import DriverError
from .models import PollError, PollOutcome, PollSuccess, PollTimeout
from .pool import QueryHandlePool
from .query import QueryError

LOG = logging.getLogger(__name__)

DEFAULT_POLL_TIMEOUT_MS = 500


class QueryPoller:
    """Resolves a slot's handle into success, driver error or timeout."""

    def __init__(self, pool: QueryHandlePool, *, timeout_ms: int = DEFAULT_POLL_TIMEOUT_MS) -> None:
        self._pool = pool
        self._timeout_ms = timeout_ms

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def poll(
        self,
        index: int,
        *,
        multiple_result_sets: bool = False,
        timeout_ms: int | None = None,
    ) -> PollOutcome:
        slot = self._pool.get(index)
        if slot is None:
            raise QueryError(f"No query handle in slot {index}.")
        timeout = self._timeout_ms if timeout_ms is None else timeout_ms
        try:
            result = slot.handle.poll(timeout, multiple_result_sets)
        except FutureTimeoutError:
            LOG.debug("Poll of slot %d timed out after %d ms: %s", index, timeout, slot.query)
            return PollTimeout(timeout_ms=timeout)
        except DriverError as exc:
            return PollError(message=str(exc), code=exc.code)
        return PollSuccess(
            result_sets=result.result_sets,
            affected_rows=result.affected_rows,
            last_insert_id=result.last_insert_id,
        )


__all__ = ["DEFAULT_POLL_TIMEOUT_MS", "QueryPoller"]
