"""Harness models.

This module provides the Pydantic value objects and enums shared across
the harness components.
"""

from host_evals.models.base import HostEvalsBaseModel
from host_evals.models.entities import (
    FeatureStatus,
    StepperState,
    Task,
    TestReport,
    ToolReply,
)
from host_evals.models.enums import (
    EventClass,
    LogLevel,
    StepAction,
    StepperPhase,
    ToolName,
    TriggerStatus,
)

__all__ = [
    "EventClass",
    "FeatureStatus",
    "HostEvalsBaseModel",
    "LogLevel",
    "StepAction",
    "StepperPhase",
    "StepperState",
    "Task",
    "TestReport",
    "ToolName",
    "ToolReply",
    "TriggerStatus",
]
