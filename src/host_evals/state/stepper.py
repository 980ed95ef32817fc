"""Task stepper for the mcp_test_guide tool.

The stepper walks the operator through the scripted task list. The step
number is always supplied by the caller, so jumping ahead or replaying a
task is tolerated; the stepper only keeps a cursor for reporting.

Example:
    >>> from host_evals.features import FeatureTracker
    >>> stepper = TaskStepper(FeatureTracker())
    >>> reply = stepper.advance(1)
    >>> stepper.state.phase
    <StepperPhase.RUNNING: 'running'>
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from host_evals.errors import InvalidStepError
from host_evals.features.tracker import FeatureTracker
from host_evals.models.entities import StepperState, Task, ToolReply
from host_evals.models.enums import StepAction, StepperPhase, ToolName
from host_evals.observability import get_logger
from host_evals.state.tasks import DEFAULT_TASKS

__all__ = ["TaskStepper", "VALID_TRANSITIONS", "can_transition"]

# No phase ever returns to IDLE
VALID_TRANSITIONS: dict[StepperPhase, set[StepperPhase]] = {
    StepperPhase.IDLE: {StepperPhase.RUNNING, StepperPhase.COMPLETED},
    StepperPhase.RUNNING: {StepperPhase.RUNNING, StepperPhase.COMPLETED},
    StepperPhase.COMPLETED: {StepperPhase.RUNNING, StepperPhase.COMPLETED},
}

RESET_TEXT = (
    "Test progress has been reset, will start from the first task. "
    "Please call this tool again to start testing. step is 1."
)


def can_transition(from_phase: StepperPhase, to_phase: StepperPhase) -> bool:
    """Check if the stepper may move between two phases.

    Example:
        >>> can_transition(StepperPhase.COMPLETED, StepperPhase.IDLE)
        False
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, set())


def render_task(task: Task, step: int, total: int) -> str:
    """Render one task as the operator-facing instruction block."""
    if step < total:
        footer = (
            "🔄 **Continue**: Please complete the current test and continue to the next "
            f"task, next step is {step + 1}"
        )
    else:
        footer = "🏁 **Almost Done**: This is the last test task"
    return (
        f"**Task ID**: {step}\n"
        f"**MCP Protocol Assessment Task {step}/{total}**\n\n"
        f"**Task Title**: {task.title}\n"
        f"**Test Protocol**: {task.protocol}\n"
        f"**Task Description**: {task.description}\n\n"
        f"**Task Instructions**: {chr(10).join(task.instructions)}\n\n"
        f"{footer}"
    )


class TaskStepper:
    """Linear step machine over the scripted tasks of one session."""

    def __init__(
        self,
        tracker: FeatureTracker,
        tasks: Sequence[Task] = DEFAULT_TASKS,
        on_reset: Callable[[], None] | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the stepper.

        Args:
            tracker: Tracker cleared when the operator resets the run.
            tasks: Ordered task list, automatic tasks first.
            on_reset: Extra session state to clear on reset (the log level).
            logger: Logger to use; defaults to this module's logger.
        """
        self.tracker = tracker
        self.tasks = tuple(tasks)
        self._on_reset = on_reset
        self._logger = logger or get_logger(__name__)
        self._phase = StepperPhase.IDLE
        self._step = 0

    @property
    def total(self) -> int:
        return len(self.tasks)

    @property
    def state(self) -> StepperState:
        return StepperState(phase=self._phase, step=self._step, total=self.total)

    def advance(self, step: int = 1, action: StepAction | str = StepAction.NEXT) -> ToolReply:
        """Handle one mcp_test_guide call.

        Args:
            step: 1-based task number requested by the operator.
            action: ``next`` renders ``step``; ``reset`` clears the run.

        Returns:
            The reply for the operator.

        Raises:
            InvalidStepError: If ``step`` is below 1 on a ``next`` action.
            ValueError: If ``action`` is not a known StepAction.
        """
        action = StepAction(action)
        if action is StepAction.RESET:
            self.reset()
            return ToolReply(
                text=RESET_TEXT,
                data={"action": action.value, **self._state_data()},
            )

        if step < 1:
            raise InvalidStepError(step)

        if step > self.total:
            self._move(StepperPhase.COMPLETED, step)
            return ToolReply(
                text=(
                    "🎉 Congratulations! All assessment tasks have been completed! "
                    f"Please call the tool {ToolName.GET_RESULT.value} to get the test result. "
                    "ensure ask user everything about the test result."
                ),
                data={"action": action.value, **self._state_data()},
            )

        task = self.tasks[step - 1]
        self._move(StepperPhase.RUNNING, step)
        return ToolReply(
            text=render_task(task, step, self.total),
            data={
                "action": action.value,
                **self._state_data(),
                "title": task.title,
                "protocol": task.protocol,
                "is_manual": task.is_manual,
            },
        )

    def reset(self) -> None:
        """Clear the tracker and every awaiting state, then rewind to step 1."""
        self.tracker.reset()
        self.tracker.clear_pending_events()
        self.tracker.clear_confirmations()
        if self._on_reset is not None:
            self._on_reset()
        self._move(StepperPhase.RUNNING, 1)

    def _move(self, phase: StepperPhase, step: int) -> None:
        if not can_transition(self._phase, phase):
            raise RuntimeError(f"Invalid stepper transition {self._phase.value} -> {phase.value}")
        self._logger.debug(
            "stepper.transition",
            from_phase=self._phase.value,
            to_phase=phase.value,
            step=step,
        )
        self._phase = phase
        self._step = step

    def _state_data(self) -> dict[str, object]:
        return {"step": self._step, "total": self.total, "phase": self._phase.value}
