"""Fixed-capacity table of in-flight query handles."""

from __future__ import annotations

from dataclasses import dataclass
import heapq
import logging
import threading

from .drivers.base import QueryHandle
from .models import DatabaseError

LOG = logging.getLogger(__name__)

DEFAULT_CAPACITY = 128


class PoolExhaustedError(DatabaseError):
    """Raised when every slot is occupied.

    The query already executed on the server; only its handle was discarded.
    """


@dataclass(frozen=True, slots=True)
class QuerySlot:
    """Occupant of one pool index."""

    handle: QueryHandle
    query: str


class QueryHandlePool:
    """Slots ``1..capacity``; allocation always takes the lowest free index."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Pool capacity must be positive.")
        self._capacity = capacity
        self._slots: dict[int, QuerySlot] = {}
        self._free: list[int] = list(range(1, capacity + 1))
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def occupied(self) -> tuple[int, ...]:
        """Indices currently holding a handle, ascending."""

        with self._lock:
            return tuple(sorted(self._slots))

    def get(self, index: int) -> QuerySlot | None:
        with self._lock:
            return self._slots.get(index)

    def allocate(self, handle: QueryHandle, query: str) -> int:
        with self._lock:
            if self._free:
                index = heapq.heappop(self._free)
                self._slots[index] = QuerySlot(handle=handle, query=query)
                return index
        handle.free()
        LOG.warning("Query handle pool exhausted (%d slots); discarded handle for: %s", self._capacity, query)
        raise PoolExhaustedError("Unable to allocate query handle in pool")

    def release(self, index: int) -> bool:
        """Free the slot's handle and clear the slot."""

        slot = self._take(index)
        if slot is None:
            return False
        slot.handle.free()
        return True

    def forget(self, index: int) -> bool:
        """Clear the slot of a handle that was already freed."""

        return self._take(index) is not None

    def drain_all(self) -> int:
        """Free every outstanding handle; returns how many were freed."""

        with self._lock:
            slots = [self._slots[index] for index in sorted(self._slots)]
            self._slots.clear()
            self._free = list(range(1, self._capacity + 1))
        for slot in slots:
            slot.handle.free()
            LOG.warning("Query freed at stop: %s", slot.query)
        return len(slots)

    def _take(self, index: int) -> QuerySlot | None:
        with self._lock:
            slot = self._slots.pop(index, None)
            if slot is not None:
                heapq.heappush(self._free, index)
            return slot


__all__ = ["DEFAULT_CAPACITY", "PoolExhaustedError", "QueryHandlePool", "QuerySlot"]
