"""Round-robin selection of read replicas."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .infrastructure.postgres import AsyncConnectionPool, EndpointRegistry


class ReadRouter:
    """Cycle through the registry's replicas in configured order.

    There is no weighting and no health awareness: a replica that is down
    is still handed out on its turn, and the caller sees the connection error.

    The index is advanced under a `threading.Lock`. Nothing inside the
    critical section awaits, so the same lock is correct for concurrent
    asyncio tasks and for OS threads sharing one router.
    """

    __slots__ = ("_index", "_lock", "_registry")

    def __init__(self, registry: EndpointRegistry) -> None:
        self._registry = registry
        self._index = 0
        self._lock = threading.Lock()

    def next_index(self) -> int:
        """Return the current index and advance it, wrapping to zero."""
        with self._lock:
            index = self._index
            self._index = (index + 1) % self._registry.replica_count
        return index

    def next(self) -> AsyncConnectionPool:
        """Return the replica whose turn it is."""
        return self._registry.acquire_read(self.next_index())
