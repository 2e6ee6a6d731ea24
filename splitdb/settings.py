"""Process-wide settings, read from ``SPLITDB_*`` environment variables or ``.env``.

Nested fields use ``__`` as the delimiter, e.g.::

    SPLITDB_CACHE__TTL_SECONDS=30
    SPLITDB_REPLICATION__SOURCE_HOST=db-master
    SPLITDB_CLUSTER='{"master": {...}, "replicas": [{...}, {...}]}'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .bootstrap.config import ReplicationSettings
from .infrastructure.postgres.config import ClusterConfig
from .logger import LoggingConfig


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    ttl_seconds: float = Field(default=10.0, gt=0, description="Age at which a cached read is treated as absent")
    max_entries: int = Field(default=1024, ge=1, description="Entries kept before least recently used are dropped")


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    bootstrap_on_startup: bool = Field(
        default=True, description="Run the replication bootstrap before accepting requests"
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SPLITDB_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    replication: ReplicationSettings = Field(default_factory=ReplicationSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
