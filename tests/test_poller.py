"""Tests for polling pooled handles."""

from __future__ import annotations

from concurrent.futures import Future

import pytest

from dbslots.drivers.base import DriverError, DriverResult, QueryHandle
from dbslots.models import PollError, PollSuccess, PollTimeout
from dbslots.poller import QueryPoller
from dbslots.pool import QueryHandlePool
from dbslots.query import QueryError


def _issue(pool: QueryHandlePool, future: Future[DriverResult], query: str = "SELECT 1") -> tuple[int, QueryHandle]:
    handle = QueryHandle(future, query)
    return pool.allocate(handle, query), handle


def test_poll_returns_success_with_summary() -> None:
    pool = QueryHandlePool(capacity=2)
    future: Future[DriverResult] = Future()
    future.set_result(
        DriverResult(result_sets=(({"id": "1"},),), affected_rows=1, last_insert_id=42)
    )
    index, handle = _issue(pool, future)

    outcome = QueryPoller(pool).poll(index)

    assert outcome == PollSuccess(result_sets=(({"id": "1"},),), affected_rows=1, last_insert_id=42)
    assert outcome.rows == ({"id": "1"},)
    assert handle.freed is True
    assert pool.occupied() == (index,)


def test_poll_returns_driver_error() -> None:
    pool = QueryHandlePool(capacity=1)
    future: Future[DriverResult] = Future()
    future.set_exception(DriverError("You have an error in your SQL syntax", code=1064))
    index, handle = _issue(pool, future, "SELEKT 1")

    outcome = QueryPoller(pool).poll(index)

    assert isinstance(outcome, PollError)
    assert outcome.message == "You have an error in your SQL syntax"
    assert outcome.code == 1064
    assert handle.freed is True


def test_poll_times_out_without_freeing() -> None:
    pool = QueryHandlePool(capacity=1)
    index, handle = _issue(pool, Future())

    outcome = QueryPoller(pool, timeout_ms=500).poll(index, timeout_ms=10)

    assert outcome == PollTimeout(timeout_ms=10)
    assert handle.freed is False


def test_poll_uses_configured_timeout_by_default() -> None:
    pool = QueryHandlePool(capacity=1)
    index, _ = _issue(pool, Future())
    poller = QueryPoller(pool, timeout_ms=15)

    assert poller.poll(index) == PollTimeout(timeout_ms=15)


def test_single_result_set_unless_requested() -> None:
    pool = QueryHandlePool(capacity=2)
    sets = (({"a": 1},), ({"b": 2},))
    first: Future[DriverResult] = Future()
    first.set_result(DriverResult(result_sets=sets, affected_rows=0))
    second: Future[DriverResult] = Future()
    second.set_result(DriverResult(result_sets=sets, affected_rows=0))
    single_index, _ = _issue(pool, first, "CALL report()")
    multi_index, _ = _issue(pool, second, "CALL report()")
    poller = QueryPoller(pool)

    single = poller.poll(single_index)
    multi = poller.poll(multi_index, multiple_result_sets=True)

    assert isinstance(single, PollSuccess) and single.result_sets == (({"a": 1},),)
    assert isinstance(multi, PollSuccess) and multi.result_sets == sets


def test_poll_of_empty_slot_raises() -> None:
    with pytest.raises(QueryError):
        QueryPoller(QueryHandlePool(capacity=1)).poll(1)
