"""Configuration models for the master/replica endpoints.

- `EndpointConfig`: one PostgreSQL endpoint (connection + pool settings + role)
- `ClusterConfig`: one master and an ordered, non-empty tuple of replicas
"""

from __future__ import annotations

from typing import Any, Self
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, SecretStr, computed_field, field_validator, model_validator

from ...core.enums import EndpointRole

SQL_IDENTIFIER_PATTERN = r"^[a-z_][a-z0-9_]*$"


class ConnectionSettings(BaseModel):
    """Connection settings for a PostgreSQL database."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="blogdb", pattern=SQL_IDENTIFIER_PATTERN)
    user: str = Field(default="postgres")
    password: SecretStr | None = Field(default=None)


class PoolSettings(BaseModel):
    """Connection pool settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    min_size: int = Field(default=1, ge=0, le=100)
    max_size: int = Field(default=10, ge=1, le=200)
    max_inactive_connection_lifetime: float = Field(default=300.0, ge=0.0)
    command_timeout: float = Field(default=60.0, ge=1.0, le=300.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.min_size > self.max_size:
            msg = f"min_size ({self.min_size}) must not exceed max_size ({self.max_size})"
            raise ValueError(msg)
        return self


class EndpointConfig(BaseModel):
    """Complete configuration for one database endpoint.

    Examples
    --------
    >>> master = EndpointConfig(
    ...     role=EndpointRole.MASTER,
    ...     connection=ConnectionSettings(host="db-master", password=SecretStr("root")),
    ... )
    >>> replica = master.for_replica("db-replica1")
    >>> replica.identity
    'db-replica1'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    role: EndpointRole = Field(default=EndpointRole.REPLICA)
    name: str | None = Field(default=None, description="Identity reported for reads; defaults to host")
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    pool: PoolSettings = Field(default_factory=PoolSettings)
    maintenance_database: str = Field(
        default="postgres",
        description="Database used for server-level statements such as CREATE DATABASE",
    )

    @property
    def identity(self) -> str:
        return self.name or self.connection.host

    @computed_field  # type: ignore[prop-decorator]
    @property
    def dsn(self) -> str:
        """Build PostgreSQL DSN from connection settings."""
        return self._build_dsn(self.connection.database)

    @property
    def maintenance_dsn(self) -> str:
        return self._build_dsn(self.maintenance_database)

    def _build_dsn(self, database: str) -> str:
        password = self.connection.password.get_secret_value() if self.connection.password else ""
        escaped_user = quote_plus(self.connection.user)
        auth = f"{escaped_user}:{quote_plus(password)}@" if password else f"{escaped_user}@"
        return f"postgresql://{auth}{self.connection.host}:{self.connection.port}/{database}"

    def to_pool_params(self) -> dict[str, Any]:
        """Convert config to ``asyncpg.create_pool()`` parameters."""
        return {
            "dsn": self.dsn,
            **self.pool.model_dump(),
            "server_settings": {"application_name": f"splitdb-{self.role}"},
        }

    def for_replica(self, host: str, port: int | None = None, name: str | None = None) -> Self:
        """Copy this config for a replica that differs only by host (and maybe port).

        Parameters
        ----------
        host
            Hostname for the replica database.
        port
            Optional port override. Defaults to this config's port.
        name
            Optional identity override. Defaults to ``host``.
        """
        new_connection = self.connection.model_copy(
            update={"host": host, "port": port if port is not None else self.connection.port}
        )
        return self.model_copy(update={"role": EndpointRole.REPLICA, "name": name, "connection": new_connection})


def _default_master() -> EndpointConfig:
    return EndpointConfig(
        role=EndpointRole.MASTER,
        connection=ConnectionSettings(host="db-master", password=SecretStr("root")),
    )


def _default_replicas() -> tuple[EndpointConfig, ...]:
    master = _default_master()
    return (master.for_replica("db-replica1"), master.for_replica("db-replica2"))


class ClusterConfig(BaseModel):
    """One master and the ordered replicas that follow it.

    Replica order is the round-robin order. At least one replica is required:
    a cluster without replicas cannot serve reads, and that is a configuration
    mistake rather than something to discover at request time.

    Examples
    --------
    >>> config = ClusterConfig.with_replica_hosts(master_cfg, ["db-replica1", "db-replica2"])
    >>> config = ClusterConfig.model_validate(yaml.safe_load(f))
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    master: EndpointConfig = Field(default_factory=_default_master)
    replicas: tuple[EndpointConfig, ...] = Field(default_factory=_default_replicas, min_length=1)

    @field_validator("master")
    @classmethod
    def _as_master(cls, value: EndpointConfig) -> EndpointConfig:
        if value.role is EndpointRole.MASTER:
            return value
        return value.model_copy(update={"role": EndpointRole.MASTER})

    @field_validator("replicas")
    @classmethod
    def _as_replicas(cls, value: tuple[EndpointConfig, ...]) -> tuple[EndpointConfig, ...]:
        return tuple(
            replica if replica.role is EndpointRole.REPLICA else replica.model_copy(update={"role": EndpointRole.REPLICA})
            for replica in value
        )

    @model_validator(mode="after")
    def _check_unique_identities(self) -> Self:
        identities = [replica.identity for replica in self.replicas]
        if len(set(identities)) != len(identities):
            msg = f"Replica identities must be unique, got {identities}"
            raise ValueError(msg)
        return self

    @classmethod
    def with_replica_hosts(cls, master: EndpointConfig, hosts: list[str]) -> Self:
        """Create a cluster config whose replicas inherit everything but the host from ``master``."""
        return cls(master=master, replicas=tuple(master.for_replica(host) for host in hosts))
