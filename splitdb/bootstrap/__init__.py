"""Replication bootstrap: wire the replicas to the master at startup."""

from __future__ import annotations

from .bootstrapper import BootstrapStep, ReplicationBootstrapper, default_steps
from .config import ReplicationSettings
from .domain import BootstrapProgress, LogPosition, ReplicaOutcome, StepName, StepResult
from .steps import BootstrapContext

__all__ = [
    "BootstrapContext",
    "BootstrapProgress",
    "BootstrapStep",
    "LogPosition",
    "ReplicaOutcome",
    "ReplicationBootstrapper",
    "ReplicationSettings",
    "StepName",
    "StepResult",
    "default_steps",
]
