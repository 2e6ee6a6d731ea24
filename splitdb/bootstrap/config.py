from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..infrastructure.postgres.config import SQL_IDENTIFIER_PATTERN


class ReplicationSettings(BaseModel):
    """How replicas authenticate to the master and how long startup waits for it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = Field(default="replica", pattern=SQL_IDENTIFIER_PATTERN, description="Replication role name")
    password: SecretStr = Field(default=SecretStr("replica_pass"), description="Replication role password")
    publication: str = Field(default="splitdb_blogs", pattern=SQL_IDENTIFIER_PATTERN)
    subscription_prefix: str = Field(
        default="splitdb_sub",
        pattern=SQL_IDENTIFIER_PATTERN,
        description="Subscription on replica i is named '<prefix>_<i>'; also names its slot on the master",
    )
    source_host: str | None = Field(
        default=None,
        description="Master host as reachable from the replicas (defaults to the master's configured host)",
    )
    source_port: int | None = Field(default=None, ge=1, le=65535)

    wait_attempts: int = Field(default=20, ge=1, description="Connection attempts while waiting for the master")
    wait_interval_seconds: float = Field(default=3.0, ge=0, description="Fixed delay between attempts")
