"""Fixtures for the replication integration tests.

One master and two replicas are started once per session; each test gets a
fresh `DataLayer` over them and an emptied blog table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from splitdb.bootstrap import ReplicationSettings
from splitdb.cache import CacheLayer
from splitdb.infrastructure.postgres import EndpointRegistry
from splitdb.service import DataLayer

from ..conftest import is_docker_available
from .replication_fixtures import (
    PostgresMasterContainer,
    PostgresReplicaContainer,
    build_cluster_config,
    cleanup_network,
    get_container_internal_ip,
    wait_for_rows,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from splitdb.infrastructure.postgres import ClusterConfig


@pytest.fixture(scope="session")
def master_container() -> Iterator[PostgresMasterContainer]:
    if not is_docker_available():
        pytest.skip("Docker daemon not accessible")

    container = PostgresMasterContainer()
    container.start()
    try:
        yield container
    finally:
        container.stop()
        cleanup_network()


@pytest.fixture(scope="session")
def replica_containers(master_container: PostgresMasterContainer) -> Iterator[list[PostgresReplicaContainer]]:
    containers: list[PostgresReplicaContainer] = []
    try:
        for _ in range(2):
            container = PostgresReplicaContainer()
            container.start()
            containers.append(container)
        yield containers
    finally:
        for container in containers:
            container.stop()


@pytest.fixture
def cluster_config(
    master_container: PostgresMasterContainer, replica_containers: list[PostgresReplicaContainer]
) -> ClusterConfig:
    return build_cluster_config(master_container, replica_containers)


@pytest.fixture
def replication_settings(master_container: PostgresMasterContainer) -> ReplicationSettings:
    return ReplicationSettings(
        source_host=get_container_internal_ip(master_container),
        source_port=5432,
        wait_attempts=10,
        wait_interval_seconds=0.5,
    )


@pytest_asyncio.fixture
async def layer(
    cluster_config: ClusterConfig, replication_settings: ReplicationSettings
) -> AsyncIterator[DataLayer]:
    """Bootstrapped data layer over an empty, fully replicated blog table."""
    registry = EndpointRegistry.from_config(cluster_config)
    data_layer = DataLayer(registry, CacheLayer(ttl_seconds=10), replication_settings)
    async with registry:
        await data_layer.astart()
        await registry.master.aexecute("TRUNCATE TABLE blogs RESTART IDENTITY")
        for replica in registry.replicas:
            await wait_for_rows(replica, 0)
        yield data_layer
