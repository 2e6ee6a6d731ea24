"""Registry of the writable master and the read-only replicas.

The registry only owns connection resources. It never decides where a query
goes: writers ask for ``acquire_write()``, readers ask the `ReadRouter`
which replica index is next and then call ``acquire_read(index)``. It holds
no retry logic either; callers own that policy.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Self

from ...core.exceptions import ConfigurationError
from ...logger import get_logger
from .pool import AsyncConnectionPool

if TYPE_CHECKING:
    import types

    from .config import ClusterConfig

logger = get_logger(__name__)


class EndpointRegistry:
    """Connection pools for exactly one master and one or more replicas.

    Attributes
    ----------
    master : AsyncConnectionPool
        The writable endpoint.
    replicas : tuple[AsyncConnectionPool, ...]
        The read endpoints, in round-robin order.
    """

    __slots__ = ("_master", "_replicas")

    def __init__(self, master: AsyncConnectionPool, replicas: list[AsyncConnectionPool]) -> None:
        if not replicas:
            msg = "At least one replica endpoint is required to serve reads"
            raise ConfigurationError(msg)
        self._master = master
        self._replicas = tuple(replicas)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "EndpointRegistry exiting with exception",
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        await self.aclose()

    @classmethod
    def from_config(cls, config: ClusterConfig) -> Self:
        """Create a registry from cluster configuration. Nothing connects yet."""
        return cls(
            AsyncConnectionPool(config.master),
            [AsyncConnectionPool(replica) for replica in config.replicas],
        )

    @property
    def master(self) -> AsyncConnectionPool:
        return self._master

    @property
    def replicas(self) -> tuple[AsyncConnectionPool, ...]:
        return self._replicas

    @property
    def replica_count(self) -> int:
        return len(self._replicas)

    def acquire_write(self) -> AsyncConnectionPool:
        """Return the master pool. All mutations go here."""
        return self._master

    def acquire_read(self, index: int) -> AsyncConnectionPool:
        """Return the replica pool at ``index``.

        Raises
        ------
        IndexError
            If ``index`` is outside ``[0, replica_count)``.
        """
        if not 0 <= index < len(self._replicas):
            msg = f"Replica index {index} out of range for {len(self._replicas)} replicas"
            raise IndexError(msg)
        return self._replicas[index]

    async def aclose(self) -> None:
        """Close every pool; a failing replica close does not stop the others."""
        await self._master.aclose()

        results = await asyncio.gather(*(replica.aclose() for replica in self._replicas), return_exceptions=True)
        for replica, result in zip(self._replicas, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Replica pool failed to close", replica=replica.name, error=str(result))

        logger.info("Endpoint registry closed")
