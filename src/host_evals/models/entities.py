"""Value objects exchanged between the harness components.

Tasks are static script content, FeatureStatus and TestReport are
snapshots of tracker state, and ToolReply is what every harness tool
hands back to the MCP layer (text for the operator plus structured
fields for programmatic hosts).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, computed_field

from host_evals.models.base import HostEvalsBaseModel
from host_evals.models.enums import StepperPhase


class Task(HostEvalsBaseModel):
    """One scripted test task shown to the operator.

    Attributes:
        title: Short task title
        description: What the task verifies
        protocol: Protocol method(s) under test, comma separated
        instructions: Ordered instruction lines for the operator
        is_manual: True when the task needs a human action in the host UI
    """

    title: str = Field(..., min_length=1)
    description: str
    protocol: str
    instructions: tuple[str, ...] = Field(default_factory=tuple)
    is_manual: bool = False


class FeatureStatus(HostEvalsBaseModel):
    """Pass/fail snapshot for one tracked feature."""

    name: str
    is_passed: bool = False


class StepperState(HostEvalsBaseModel):
    """Snapshot of the task stepper cursor."""

    phase: StepperPhase = StepperPhase.IDLE
    step: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class ToolReply(HostEvalsBaseModel):
    """Reply produced by a harness tool.

    Attributes:
        text: Human-readable text shown to the operator
        data: Structured fields (step number, event name, counts)
    """

    text: str
    data: dict[str, Any] = Field(default_factory=dict)


class TestReport(HostEvalsBaseModel):
    """Aggregate pass/fail result of a harness run."""

    __test__ = False

    passed_features: tuple[str, ...] = Field(default_factory=tuple)
    failed_features: tuple[str, ...] = Field(default_factory=tuple)
    manual_task_count: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> int:
        return len(self.passed_features)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return len(self.failed_features)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.passed + self.failed

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pass_rate(self) -> int:
        """Percentage of passed features, rounded half up; 0 when nothing is tracked."""
        if self.total == 0:
            return 0
        return int(100 * self.passed / self.total + 0.5)
