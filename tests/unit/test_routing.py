from __future__ import annotations

from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest

from splitdb.infrastructure.postgres import EndpointRegistry
from splitdb.routing import ReadRouter

from .fakes import make_pool

if TYPE_CHECKING:
    from unittest.mock import MagicMock


class TestReadRouter:
    """Round-robin replica selection."""

    def test_cycles_in_configured_order(self, registry: EndpointRegistry) -> None:
        router = ReadRouter(registry)

        names = [router.next().name for _ in range(7)]

        assert names == [
            "replica-a",
            "replica-b",
            "replica-c",
            "replica-a",
            "replica-b",
            "replica-c",
            "replica-a",
        ]

    @pytest.mark.parametrize("calls", [1, 5, 30, 31, 100])
    def test_distribution_is_fair(self, registry: EndpointRegistry, calls: int) -> None:
        """Over M calls with N replicas each replica serves floor(M/N) or ceil(M/N)."""
        router = ReadRouter(registry)

        counts = Counter(router.next_index() for _ in range(calls))

        n = registry.replica_count
        for index in range(n):
            assert counts[index] in (calls // n, -(-calls // n))

    def test_single_replica_always_selected(self, master_pool: MagicMock) -> None:
        registry = EndpointRegistry(master_pool, [make_pool("only")])  # type: ignore[arg-type]
        router = ReadRouter(registry)

        assert {router.next().name for _ in range(5)} == {"only"}

    def test_never_returns_master(self, registry: EndpointRegistry, master_pool: MagicMock) -> None:
        router = ReadRouter(registry)

        assert all(router.next() is not master_pool for _ in range(10))

    def test_index_advance_is_atomic_across_threads(self, registry: EndpointRegistry) -> None:
        """Concurrent callers neither skip nor repeat a slot in aggregate."""
        router = ReadRouter(registry)
        threads, per_thread = 8, 300

        def pick(_: int) -> list[int]:
            return [router.next_index() for _ in range(per_thread)]

        with ThreadPoolExecutor(max_workers=threads) as executor:
            picks = [index for batch in executor.map(pick, range(threads)) for index in batch]

        counts = Counter(picks)
        assert sum(counts.values()) == threads * per_thread
        assert set(counts.values()) == {threads * per_thread // registry.replica_count}
