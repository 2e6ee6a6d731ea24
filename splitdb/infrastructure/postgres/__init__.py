"""PostgreSQL infrastructure with asyncpg.

This module provides:

- `AsyncConnectionPool`: lazily connected pool for one endpoint
- `EndpointRegistry`: the master pool plus the ordered replica pools
- `ClusterConfig` / `EndpointConfig`: topology configuration

Usage
-----
::

    registry = EndpointRegistry.from_config(ClusterConfig.with_replica_hosts(master_cfg, ["r1", "r2"]))
    async with registry:
        await registry.acquire_write().aexecute("INSERT ...")
        await registry.acquire_read(0).afetch("SELECT ...")
"""

from .config import ClusterConfig, ConnectionSettings, EndpointConfig, PoolSettings
from .pool import AsyncConnectionPool
from .registry import EndpointRegistry

__all__ = [
    "AsyncConnectionPool",
    "ClusterConfig",
    "ConnectionSettings",
    "EndpointConfig",
    "EndpointRegistry",
    "PoolSettings",
]
