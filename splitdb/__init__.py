"""Read/write split blog storage over one PostgreSQL master and its replicas.

- `EndpointRegistry`: master and replica connection pools
- `ReplicationBootstrapper`: one-shot startup wiring of replicas to the master
- `ReadRouter`: round-robin replica selection
- `CacheLayer`: TTL cache for read responses, cleared on every write
- `WriteCoordinator` / `BlogReader`: the write and read paths
"""

from __future__ import annotations

from .blogs import BlogPage, BlogReader, WriteCoordinator
from .bootstrap import BootstrapProgress, ReplicationBootstrapper, ReplicationSettings
from .cache import CacheLayer, page_cache_key
from .infrastructure.postgres import AsyncConnectionPool, ClusterConfig, EndpointConfig, EndpointRegistry
from .routing import ReadRouter
from .service import DataLayer
from .settings import CacheSettings, ServerSettings, Settings

__all__ = [
    "AsyncConnectionPool",
    "BlogPage",
    "BlogReader",
    "BootstrapProgress",
    "CacheLayer",
    "CacheSettings",
    "ClusterConfig",
    "DataLayer",
    "EndpointConfig",
    "EndpointRegistry",
    "ReadRouter",
    "ReplicationBootstrapper",
    "ReplicationSettings",
    "ServerSettings",
    "Settings",
    "WriteCoordinator",
    "page_cache_key",
]
