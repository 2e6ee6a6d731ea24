from __future__ import annotations


class SplitDBError(Exception):
    """Base class for errors raised by splitdb itself.

    Driver errors (``asyncpg.PostgresError``, ``OSError``) are not wrapped and
    propagate unchanged.
    """


class ConfigurationError(SplitDBError):
    """Topology or settings that cannot work, e.g. no replicas configured."""


class BootstrapError(SplitDBError):
    """The replication bootstrap was misused, e.g. run a second time."""


class ReplicationUnavailableError(SplitDBError):
    """The master cannot serve as a replication source."""
