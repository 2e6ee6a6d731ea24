"""The individual replication bootstrap steps.

Each step is a coroutine function taking the shared `BootstrapContext`.
Master-only steps return None on success and raise on failure. Per-replica
steps run every replica concurrently, never raise for a single replica's
failure, and return one `ReplicaOutcome` per replica.

Replication is PostgreSQL logical replication: a role with the REPLICATION
attribute, a publication for the blog table on the master, and one
subscription per replica started from an explicitly captured WAL position.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import asyncpg

from ..blogs.schema import BLOGS_TABLE, CREATE_BLOGS_TABLE
from ..core.exceptions import ReplicationUnavailableError
from ..infrastructure.postgres.sql import build_conninfo, quote_ident, quote_literal
from ..logger import get_logger
from ..resilience import RetryConfig, log_before_sleep, retry
from .domain import LogPosition, ReplicaOutcome

if TYPE_CHECKING:
    from ..infrastructure.postgres import AsyncConnectionPool, EndpointRegistry
    from .config import ReplicationSettings

logger = get_logger(__name__)

# Dollar-quote tag for DO blocks; plain $$ could collide with a password.
_DO_TAG = "$splitdb$"

_ORIGIN_RELEASE_RETRY = RetryConfig(
    max_attempts=20,
    fixed_wait=0.5,
    retry_on_exceptions=(asyncpg.exceptions.ObjectInUseError,),
)


class BootstrapContext:
    """State handed from one step to the next during a single bootstrap run."""

    __slots__ = ("log_position", "ready_replicas", "registry", "settings")

    def __init__(self, registry: EndpointRegistry, settings: ReplicationSettings) -> None:
        self.registry = registry
        self.settings = settings
        self.log_position: LogPosition | None = None
        self.ready_replicas: set[str] = set()


async def _for_each_replica(
    replicas: tuple[AsyncConnectionPool, ...],
    action: Callable[[int, AsyncConnectionPool], Awaitable[None]],
    step: str,
) -> tuple[ReplicaOutcome, ...]:
    results = await asyncio.gather(
        *(action(index, replica) for index, replica in enumerate(replicas)),
        return_exceptions=True,
    )
    outcomes: list[ReplicaOutcome] = []
    for replica, result in zip(replicas, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("Replica step failed", step=step, replica=replica.name, error=str(result))
            outcomes.append(ReplicaOutcome(replica=replica.name, ok=False, error=str(result)))
        else:
            logger.info("Replica step succeeded", step=step, replica=replica.name)
            outcomes.append(ReplicaOutcome(replica=replica.name, ok=True))
    return tuple(outcomes)


async def wait_for_master(ctx: BootstrapContext) -> None:
    """Probe the master until it accepts connections, a bounded number of times."""
    master = ctx.registry.master
    config = RetryConfig(
        max_attempts=ctx.settings.wait_attempts,
        fixed_wait=ctx.settings.wait_interval_seconds,
    )
    ping = retry(config, before_sleep=log_before_sleep(master.name))(master.aping)
    await ping()
    logger.info("Master is ready", endpoint=master.name)


async def ensure_replication_identity(ctx: BootstrapContext) -> None:
    """Create the replication role on the master if absent and let it read published tables."""
    role = ctx.settings.username
    password = ctx.settings.password.get_secret_value()
    master = ctx.registry.acquire_write()

    await master.aexecute(f"""
        DO {_DO_TAG}
        BEGIN
            IF NOT EXISTS (SELECT FROM pg_catalog.pg_roles WHERE rolname = {quote_literal(role)}) THEN
                CREATE ROLE {quote_ident(role)} WITH REPLICATION LOGIN PASSWORD {quote_literal(password)};
            END IF;
        END
        {_DO_TAG};
    """)
    # Initial sync and the walsender both read tables as this role.
    await master.aexecute(f"GRANT SELECT ON ALL TABLES IN SCHEMA public TO {quote_ident(role)}")
    await master.aexecute(f"ALTER DEFAULT PRIVILEGES IN SCHEMA public GRANT SELECT ON TABLES TO {quote_ident(role)}")
    logger.info("Replication identity ensured on master", role=role)


async def ensure_write_schema(ctx: BootstrapContext) -> None:
    """Create the blog table and its publication on the master if absent."""
    master = ctx.registry.acquire_write()
    publication = ctx.settings.publication

    await master.aexecute(CREATE_BLOGS_TABLE)
    await master.aexecute(f"""
        DO {_DO_TAG}
        BEGIN
            IF NOT EXISTS (SELECT FROM pg_catalog.pg_publication WHERE pubname = {quote_literal(publication)}) THEN
                CREATE PUBLICATION {quote_ident(publication)} FOR TABLE {quote_ident(BLOGS_TABLE)};
            END IF;
        END
        {_DO_TAG};
    """)
    logger.info("Write schema ensured on master", table=BLOGS_TABLE, publication=publication)


async def _ensure_replica_schema(_index: int, replica: AsyncConnectionPool) -> None:
    database = replica.config.connection.database
    exists = await replica.afetchval_maintenance("SELECT 1 FROM pg_catalog.pg_database WHERE datname = $1", database)
    if not exists:
        await replica.aexecute_maintenance(f"CREATE DATABASE {quote_ident(database)}")
        logger.info("Database created on replica", replica=replica.name, database=database)
    await replica.aexecute(CREATE_BLOGS_TABLE)


async def ensure_replica_schemas(ctx: BootstrapContext) -> tuple[ReplicaOutcome, ...]:
    """Create the database and blog table on every replica, each independently."""
    outcomes = await _for_each_replica(ctx.registry.replicas, _ensure_replica_schema, "ensure_replica_schemas")
    ctx.ready_replicas = {outcome.replica for outcome in outcomes if outcome.ok}
    return outcomes


async def capture_log_position(ctx: BootstrapContext) -> None:
    """Read the master's current WAL position, the starting point for every replica."""
    master = ctx.registry.acquire_write()

    wal_level = await master.afetchval("SHOW wal_level")
    if wal_level != "logical":
        msg = f"Master wal_level is {wal_level!r}; logical replication needs 'logical'"
        raise ReplicationUnavailableError(msg)

    lsn = await master.afetchval("SELECT pg_current_wal_lsn()::text")
    if not lsn:
        msg = "Master did not report a WAL position"
        raise ReplicationUnavailableError(msg)

    ctx.log_position = LogPosition(lsn=lsn)
    logger.info("Master log position captured", lsn=lsn)


def subscription_name(settings: ReplicationSettings, index: int) -> str:
    return f"{settings.subscription_prefix}_{index}"


async def _configure_replica(ctx: BootstrapContext, index: int, replica: AsyncConnectionPool) -> None:
    if replica.name not in ctx.ready_replicas:
        msg = "replica schema is not ready"
        raise ReplicationUnavailableError(msg)
    if ctx.log_position is None:
        msg = "no master log position captured"
        raise ReplicationUnavailableError(msg)

    settings = ctx.settings
    master = ctx.registry.master.config
    name = subscription_name(settings, index)
    conninfo = build_conninfo(
        host=settings.source_host or master.connection.host,
        port=settings.source_port or master.connection.port,
        dbname=master.connection.database,
        user=settings.username,
        password=settings.password.get_secret_value(),
    )
    find_subscription = "SELECT oid FROM pg_catalog.pg_subscription WHERE subname = $1"

    oid = await replica.afetchval(find_subscription, name)
    if oid is not None:
        # Stop the running stream and repoint it; the slot on the master is kept.
        await replica.aexecute(f"ALTER SUBSCRIPTION {quote_ident(name)} DISABLE")
        await replica.aexecute(f"ALTER SUBSCRIPTION {quote_ident(name)} CONNECTION {quote_literal(conninfo)}")
    else:
        await replica.aexecute(
            f"CREATE SUBSCRIPTION {quote_ident(name)} "
            f"CONNECTION {quote_literal(conninfo)} "
            f"PUBLICATION {quote_ident(settings.publication)} "
            "WITH (copy_data = false, enabled = false)"
        )
        oid = await replica.afetchval(find_subscription, name)

    # A subscription's replication origin is named pg_<oid>. After DISABLE the
    # apply worker exits asynchronously and holds the origin until it does.
    advance = retry(_ORIGIN_RELEASE_RETRY)(replica.afetchval)
    await advance("SELECT pg_replication_origin_advance($1, $2::pg_lsn)", f"pg_{oid}", ctx.log_position.lsn)
    await replica.aexecute(f"ALTER SUBSCRIPTION {quote_ident(name)} ENABLE")
    logger.info("Replica streaming started", replica=replica.name, subscription=name, lsn=ctx.log_position.lsn)


async def configure_replicas(ctx: BootstrapContext) -> tuple[ReplicaOutcome, ...]:
    """Point every ready replica at the master from the captured position and start streaming."""

    async def _configure(index: int, replica: AsyncConnectionPool) -> None:
        await _configure_replica(ctx, index, replica)

    return await _for_each_replica(ctx.registry.replicas, _configure, "configure_replicas")
