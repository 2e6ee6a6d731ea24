"""Wiring of the data-access layer.

`DataLayer` owns one instance of each component and the order they start
in: the bootstrap runs to completion before anything else is used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from .blogs import BlogReader, WriteCoordinator
from .bootstrap import ReplicationBootstrapper, ReplicationSettings
from .cache import CacheLayer
from .infrastructure.postgres import EndpointRegistry
from .logger import get_logger
from .routing import ReadRouter

if TYPE_CHECKING:
    from .bootstrap import BootstrapProgress
    from .cache import Clock
    from .settings import Settings

logger = get_logger(__name__)


class DataLayer:
    """Registry, router, cache, reader, writer and bootstrapper for one process."""

    __slots__ = ("bootstrapper", "cache", "reader", "registry", "router", "writer")

    def __init__(
        self,
        registry: EndpointRegistry,
        cache: CacheLayer,
        replication: ReplicationSettings | None = None,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.router = ReadRouter(registry)
        self.reader = BlogReader(self.router, cache)
        self.writer = WriteCoordinator(registry, cache)
        self.bootstrapper = ReplicationBootstrapper(registry, replication or ReplicationSettings())

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock | None = None) -> Self:
        cache_kwargs = {"clock": clock} if clock is not None else {}
        return cls(
            EndpointRegistry.from_config(settings.cluster),
            CacheLayer(settings.cache.ttl_seconds, settings.cache.max_entries, **cache_kwargs),
            settings.replication,
        )

    @property
    def bootstrap_progress(self) -> BootstrapProgress | None:
        return self.bootstrapper.progress

    async def astart(self, *, bootstrap: bool = True) -> None:
        """Prepare for traffic. Bootstrap failures are logged, never raised."""
        if bootstrap:
            await self.bootstrapper.run()
        logger.info("Data layer ready", replicas=self.registry.replica_count, bootstrapped=bootstrap)

    async def aclose(self) -> None:
        await self.registry.aclose()
