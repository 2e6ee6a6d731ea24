from __future__ import annotations

from enum import StrEnum


class EndpointRole(StrEnum):
    MASTER = "master"
    REPLICA = "replica"


class StepStatus(StrEnum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    FAILED = "failed"
    SKIPPED = "skipped"
