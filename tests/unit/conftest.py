from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from splitdb.infrastructure.postgres import EndpointRegistry

from .fakes import FakeClock, make_pool

if TYPE_CHECKING:
    from unittest.mock import MagicMock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def replica_pools() -> list[MagicMock]:
    return [make_pool("replica-a"), make_pool("replica-b"), make_pool("replica-c")]


@pytest.fixture
def master_pool() -> MagicMock:
    return make_pool("master")


@pytest.fixture
def registry(master_pool: MagicMock, replica_pools: list[MagicMock]) -> EndpointRegistry:
    return EndpointRegistry(master_pool, replica_pools)  # type: ignore[arg-type]
