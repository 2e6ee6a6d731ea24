from __future__ import annotations

import pytest
from pydantic import ValidationError

from splitdb.bootstrap import BootstrapProgress, LogPosition, ReplicaOutcome, StepResult
from splitdb.core.enums import StepStatus


class TestStepResult:
    def test_master_only_step_succeeds_without_outcomes(self) -> None:
        result = StepResult.from_outcomes("capture_log_position", None)

        assert result.status is StepStatus.SUCCEEDED
        assert result.replicas == ()

    @pytest.mark.parametrize(
        ("oks", "expected"),
        [
            ((True, True), StepStatus.SUCCEEDED),
            ((True, False), StepStatus.DEGRADED),
            ((False, False), StepStatus.FAILED),
        ],
    )
    def test_status_from_replica_outcomes(self, oks: tuple[bool, ...], expected: StepStatus) -> None:
        outcomes = tuple(
            ReplicaOutcome(replica=f"r{i}", ok=ok, error=None if ok else "down") for i, ok in enumerate(oks)
        )

        result = StepResult.from_outcomes("configure_replicas", outcomes)

        assert result.status is expected
        assert result.replicas == outcomes

    @pytest.mark.parametrize(
        ("status", "usable"),
        [
            (StepStatus.SUCCEEDED, True),
            (StepStatus.DEGRADED, True),
            (StepStatus.FAILED, False),
            (StepStatus.SKIPPED, False),
        ],
    )
    def test_usable(self, status: StepStatus, usable: bool) -> None:
        assert StepResult(name="step", status=status).usable is usable


class TestBootstrapProgress:
    def test_empty_progress_is_not_succeeded(self) -> None:
        assert BootstrapProgress().status is StepStatus.DEGRADED

    def test_summary_preserves_order(self) -> None:
        progress = BootstrapProgress()
        progress.record(StepResult(name="a", status=StepStatus.SUCCEEDED))
        progress.record(StepResult(name="b", status=StepStatus.SKIPPED))

        assert progress.summary() == [
            {"step": "a", "status": "succeeded"},
            {"step": "b", "status": "skipped"},
        ]
        assert progress.status is StepStatus.DEGRADED
        assert progress.get("b") is not None
        assert progress.get("missing") is None


def test_log_position_requires_value() -> None:
    with pytest.raises(ValidationError):
        LogPosition(lsn="")
