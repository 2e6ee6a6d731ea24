"""Async connection pool for one PostgreSQL endpoint using asyncpg.

The pool connects lazily: the first query creates the underlying asyncpg
pool. Endpoints that are down at process start therefore do not prevent the
registry from being built, and a replica whose database is created during
bootstrap is only connected to after it exists.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Self

import asyncpg
from asyncpg import Pool, Record

from ...logger import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from asyncpg.pool import PoolConnectionProxy

    from ...core.enums import EndpointRole
    from .config import EndpointConfig

logger = get_logger(__name__)


class AsyncConnectionPool:
    """Async connection pool for a single endpoint.

    Examples
    --------
    >>> pool = AsyncConnectionPool(config)
    >>> rows = await pool.afetch("SELECT * FROM blogs")   # connects on first use
    >>> await pool.aexecute("DELETE FROM blogs WHERE id = $1", 3)
    >>> await pool.aclose()
    """

    __slots__ = ("_config", "_init_lock", "_pool")

    def __init__(self, config: EndpointConfig) -> None:
        self._config = config
        self._pool: Pool[Record] | None = None
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self.ainitialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "AsyncConnectionPool context manager exiting with exception",
                endpoint=self.name,
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        await self.aclose()

    @property
    def config(self) -> EndpointConfig:
        return self._config

    @property
    def name(self) -> str:
        """Identity of the endpoint, reported as the source of replica reads."""
        return self._config.identity

    @property
    def role(self) -> EndpointRole:
        return self._config.role

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def ainitialize(self) -> Pool[Record]:
        """Create the underlying pool if it does not exist yet.

        Idempotent. The lock keeps two concurrent first queries from each
        creating a pool and orphaning one of them.
        """
        async with self._init_lock:
            if self._pool is not None:
                return self._pool

            self._pool = await asyncpg.create_pool(**self._config.to_pool_params())
            logger.info(
                "AsyncConnectionPool initialized",
                endpoint=self.name,
                role=str(self.role),
                min_size=self._config.pool.min_size,
                max_size=self._config.pool.max_size,
            )
            return self._pool

    async def aclose(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("AsyncConnectionPool closed", endpoint=self.name)

    @asynccontextmanager
    async def aacquire(self) -> AsyncIterator[PoolConnectionProxy[Record]]:
        """Acquire a connection, creating the pool on first use.

        Yields
        ------
        PoolConnectionProxy[Record]
            A connection proxy that is returned to the pool on exit.
        """
        pool = self._pool or await self.ainitialize()
        async with pool.acquire() as conn:
            yield conn

    async def aping(self, timeout: float | None = None) -> None:
        """Open a fresh connection and run ``SELECT 1``.

        Bypasses the pool so that a health check never leaves a half-built pool
        behind when the endpoint is still starting up.
        """
        conn = await asyncpg.connect(self._config.dsn, timeout=timeout or 60.0)
        try:
            await conn.fetchval("SELECT 1")
        finally:
            await conn.close()

    async def aexecute_maintenance(self, query: str) -> str:
        """Run a statement on the endpoint's maintenance database.

        Server-level statements such as ``CREATE DATABASE`` must run while
        connected to a database other than the one being created, and
        outside a transaction block, hence the simple query protocol.
        """
        conn = await asyncpg.connect(self._config.maintenance_dsn)
        try:
            return await conn.execute(query)
        finally:
            await conn.close()

    async def afetchval_maintenance(self, query: str, *args: object) -> Any:
        """Run a query on the maintenance database and return its first value."""
        conn = await asyncpg.connect(self._config.maintenance_dsn)
        try:
            return await conn.fetchval(query, *args)
        finally:
            await conn.close()

    async def aexecute(self, query: str, *args: object, timeout: float | None = None) -> str:
        """Execute a query without returning results.

        Returns
        -------
        str
            Command status string (e.g., "DELETE 1").
        """
        async with self.aacquire() as conn:
            return await conn.execute(query, *args, timeout=timeout)

    async def afetch(self, query: str, *args: object, timeout: float | None = None) -> list[Record]:
        """Execute a query and return all rows."""
        async with self.aacquire() as conn:
            return await conn.fetch(query, *args, timeout=timeout)

    async def afetchrow(self, query: str, *args: object, timeout: float | None = None) -> Record | None:
        """Execute a query and return the first row, or None."""
        async with self.aacquire() as conn:
            return await conn.fetchrow(query, *args, timeout=timeout)

    async def afetchval(self, query: str, *args: object, timeout: float | None = None) -> Any:
        """Execute a query and return the first column of the first row, or None."""
        async with self.aacquire() as conn:
            return await conn.fetchval(query, *args, timeout=timeout)
