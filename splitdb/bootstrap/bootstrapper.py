"""One-shot startup sequence that wires the replicas to the master.

The sequence is an explicit, ordered list of named steps. The driver runs
them one after another and never raises for a failed step: it logs the
failure, records it, and moves on. What a failure stops is expressed per
step through ``requires``: a step whose requirements did not succeed (or
only partially succeeded) is recorded as skipped instead of run.

With the default steps this means:

- the master wait failing stops nothing; later steps fail loudly on their own
- a missing replication identity stops replica configuration, but schema
  preparation still runs on the master and the replicas
- an unreadable log position stops replica configuration
- one replica failing never stops another

Usage
-----
>>> bootstrapper = ReplicationBootstrapper(registry, ReplicationSettings())
>>> progress = await bootstrapper.run()
>>> progress.status
<StepStatus.SUCCEEDED: 'succeeded'>
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.enums import StepStatus
from ..core.exceptions import BootstrapError
from ..logger import get_logger
from . import steps as _steps
from .domain import BootstrapProgress, ReplicaOutcome, StepName, StepResult

if TYPE_CHECKING:
    from ..infrastructure.postgres import EndpointRegistry
    from .config import ReplicationSettings

logger = get_logger(__name__)

type StepFunction = Callable[[_steps.BootstrapContext], Awaitable[tuple[ReplicaOutcome, ...] | None]]


@dataclass(frozen=True, slots=True)
class BootstrapStep:
    name: str
    run: StepFunction
    requires: tuple[str, ...] = ()


def default_steps() -> tuple[BootstrapStep, ...]:
    return (
        BootstrapStep(StepName.WAIT_FOR_MASTER, _steps.wait_for_master),
        BootstrapStep(StepName.ENSURE_REPLICATION_IDENTITY, _steps.ensure_replication_identity),
        BootstrapStep(StepName.ENSURE_WRITE_SCHEMA, _steps.ensure_write_schema),
        BootstrapStep(StepName.ENSURE_REPLICA_SCHEMAS, _steps.ensure_replica_schemas),
        BootstrapStep(StepName.CAPTURE_LOG_POSITION, _steps.capture_log_position),
        BootstrapStep(
            StepName.CONFIGURE_REPLICAS,
            _steps.configure_replicas,
            requires=(
                StepName.ENSURE_REPLICATION_IDENTITY,
                StepName.ENSURE_WRITE_SCHEMA,
                StepName.ENSURE_REPLICA_SCHEMAS,
                StepName.CAPTURE_LOG_POSITION,
            ),
        ),
    )


class ReplicationBootstrapper:
    """Run the bootstrap steps once, in order, before the service takes traffic."""

    __slots__ = ("_context", "_progress", "_steps")

    def __init__(
        self,
        registry: EndpointRegistry,
        settings: ReplicationSettings,
        bootstrap_steps: tuple[BootstrapStep, ...] | None = None,
    ) -> None:
        self._context = _steps.BootstrapContext(registry, settings)
        self._steps = bootstrap_steps if bootstrap_steps is not None else default_steps()
        self._progress: BootstrapProgress | None = None

    @property
    def steps(self) -> tuple[BootstrapStep, ...]:
        return self._steps

    @property
    def progress(self) -> BootstrapProgress | None:
        """Progress of the run, None until ``run()`` has been called."""
        return self._progress

    @property
    def context(self) -> _steps.BootstrapContext:
        return self._context

    async def run(self) -> BootstrapProgress:
        """Execute every step in order and return what happened.

        Raises
        ------
        BootstrapError
            If this bootstrapper has already been run. The sequence is not
            re-entrant.
        """
        if self._progress is not None:
            msg = "Replication bootstrap has already run for this process"
            raise BootstrapError(msg)

        progress = self._progress = BootstrapProgress()
        logger.info("Replication bootstrap started", steps=[step.name for step in self._steps])

        for step in self._steps:
            progress.record(await self._run_step(step, progress))

        logger.info("Replication bootstrap finished", status=str(progress.status), steps=progress.summary())
        return progress

    async def _run_step(self, step: BootstrapStep, progress: BootstrapProgress) -> StepResult:
        blocked_by = [name for name in step.requires if not self._is_usable(progress, name)]
        if blocked_by:
            logger.warning("Bootstrap step skipped", step=step.name, blocked_by=blocked_by)
            return StepResult(
                name=step.name,
                status=StepStatus.SKIPPED,
                error=f"required steps did not succeed: {', '.join(blocked_by)}",
            )

        logger.info("Bootstrap step started", step=step.name)
        try:
            outcomes = await step.run(self._context)
        except Exception as e:
            logger.error("Bootstrap step failed", step=step.name, error_type=type(e).__name__, error=str(e))
            return StepResult(name=step.name, status=StepStatus.FAILED, error=str(e))

        result = StepResult.from_outcomes(step.name, outcomes)
        log = logger.info if result.status is StepStatus.SUCCEEDED else logger.warning
        log("Bootstrap step finished", step=step.name, status=str(result.status))
        return result

    @staticmethod
    def _is_usable(progress: BootstrapProgress, name: str) -> bool:
        result = progress.get(name)
        return result is not None and result.usable
