from __future__ import annotations

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import StepStatus


class StepName(StrEnum):
    WAIT_FOR_MASTER = "wait_for_master"
    ENSURE_REPLICATION_IDENTITY = "ensure_replication_identity"
    ENSURE_WRITE_SCHEMA = "ensure_write_schema"
    ENSURE_REPLICA_SCHEMAS = "ensure_replica_schemas"
    CAPTURE_LOG_POSITION = "capture_log_position"
    CONFIGURE_REPLICAS = "configure_replicas"


class LogPosition(BaseModel):
    """A point in the master's write-ahead log where replicas start applying changes."""

    model_config = ConfigDict(frozen=True)

    lsn: str = Field(min_length=1, description="pg_lsn in text form, e.g. '0/1A2B3C8'")


class ReplicaOutcome(BaseModel):
    """Result of one replica's share of a per-replica step."""

    model_config = ConfigDict(frozen=True)

    replica: str
    ok: bool
    error: str | None = None


class StepResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    status: StepStatus
    error: str | None = None
    replicas: tuple[ReplicaOutcome, ...] = ()

    @classmethod
    def from_outcomes(cls, name: str, outcomes: tuple[ReplicaOutcome, ...] | None) -> Self:
        """Succeeded when every replica did, degraded when some did, failed when none did.

        A step with no per-replica outcomes (a master-only step) that returned
        normally has succeeded.
        """
        if not outcomes:
            return cls(name=name, status=StepStatus.SUCCEEDED)

        ok_count = sum(outcome.ok for outcome in outcomes)
        if ok_count == len(outcomes):
            status = StepStatus.SUCCEEDED
        elif ok_count:
            status = StepStatus.DEGRADED
        else:
            status = StepStatus.FAILED
        return cls(name=name, status=status, replicas=outcomes)

    @property
    def usable(self) -> bool:
        """Whether later steps that depend on this one may run."""
        return self.status in (StepStatus.SUCCEEDED, StepStatus.DEGRADED)


class BootstrapProgress(BaseModel):
    """Ordered checklist of what the bootstrap did. Never persisted."""

    steps: list[StepResult] = Field(default_factory=list)

    def record(self, result: StepResult) -> None:
        self.steps.append(result)

    def get(self, name: str) -> StepResult | None:
        return next((step for step in self.steps if step.name == name), None)

    @property
    def status(self) -> StepStatus:
        if self.steps and all(step.status is StepStatus.SUCCEEDED for step in self.steps):
            return StepStatus.SUCCEEDED
        return StepStatus.DEGRADED

    def summary(self) -> list[dict[str, str]]:
        return [{"step": step.name, "status": str(step.status)} for step in self.steps]
