"""Tests for the task stepper."""

import pytest

from host_evals.errors import InvalidStepError
from host_evals.features.tracker import FeatureTracker
from host_evals.models.entities import Task
from host_evals.models.enums import StepAction, StepperPhase
from host_evals.state.stepper import (
    RESET_TEXT,
    VALID_TRANSITIONS,
    TaskStepper,
    can_transition,
    render_task,
)

TWO_TASKS = (
    Task(title="First", description="first task", protocol="ping", instructions=("a", "b")),
    Task(title="Second", description="second task", protocol="roots/list", is_manual=True),
)


class TestTransitions:
    """No phase ever returns to IDLE."""

    @pytest.mark.parametrize("phase", list(StepperPhase))
    def test_nothing_returns_to_idle(self, phase: StepperPhase) -> None:
        assert not can_transition(phase, StepperPhase.IDLE)

    def test_every_phase_listed(self) -> None:
        assert set(VALID_TRANSITIONS) == set(StepperPhase)

    def test_completed_can_restart(self) -> None:
        assert can_transition(StepperPhase.COMPLETED, StepperPhase.RUNNING)


class TestRenderTask:
    """Rendered task blocks carry header fields and a footer."""

    def test_middle_task_points_to_next_step(self) -> None:
        text = render_task(TWO_TASKS[0], 1, 2)

        assert text.startswith("**Task ID**: 1\n**MCP Protocol Assessment Task 1/2**")
        assert "**Task Title**: First" in text
        assert "**Test Protocol**: ping" in text
        assert "**Task Description**: first task" in text
        assert "**Task Instructions**: a\nb" in text
        assert text.endswith("next step is 2")

    def test_last_task_footer(self) -> None:
        text = render_task(TWO_TASKS[1], 2, 2)
        assert text.endswith("🏁 **Almost Done**: This is the last test task")


class TestAdvance:
    """advance() renders tasks by the caller-supplied step."""

    def test_starts_idle(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)
        assert stepper.state.phase is StepperPhase.IDLE
        assert stepper.state.step == 0
        assert stepper.total == 2

    def test_first_step_runs(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)

        reply = stepper.advance(1)

        assert stepper.state.phase is StepperPhase.RUNNING
        assert reply.data["step"] == 1
        assert reply.data["title"] == "First"
        assert reply.data["is_manual"] is False
        assert "Task 1/2" in reply.text

    def test_steps_may_jump_and_replay(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)

        stepper.advance(2)
        reply = stepper.advance(1)

        assert stepper.state.step == 1
        assert reply.data["title"] == "First"

    def test_past_last_completes(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)

        reply = stepper.advance(3)

        assert stepper.state.phase is StepperPhase.COMPLETED
        assert reply.text.startswith("🎉 Congratulations!")
        assert "get_result" in reply.text

    def test_completed_keeps_accepting_steps(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)
        stepper.advance(10)

        stepper.advance(2)

        assert stepper.state.phase is StepperPhase.RUNNING

    @pytest.mark.parametrize("step", [0, -1])
    def test_step_below_one_rejected(self, tracker: FeatureTracker, step: int) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)
        with pytest.raises(InvalidStepError) as exc_info:
            stepper.advance(step)
        assert exc_info.value.step == step
        assert stepper.state.phase is StepperPhase.IDLE

    def test_unknown_action_rejected(self, tracker: FeatureTracker) -> None:
        stepper = TaskStepper(tracker, TWO_TASKS)
        with pytest.raises(ValueError):
            stepper.advance(1, "skip")


class TestReset:
    """Reset clears the tracker but not the protected features."""

    async def test_reset_clears_run_state(self, tracker: FeatureTracker) -> None:
        resets: list[bool] = []
        stepper = TaskStepper(tracker, TWO_TASKS, on_reset=lambda: resets.append(True))
        tracker.record_feature_call("tools/call", True)
        tracker.record_feature_call("resources/list", True)
        tracker.record_pending_event("notifications/tools/list_changed")
        tracker.record_expected_message("notifications/message", "abc")
        stepper.advance(3)

        reply = stepper.advance(7, StepAction.RESET)

        assert reply.text == RESET_TEXT
        assert reply.data["action"] == "reset"
        assert stepper.state.phase is StepperPhase.RUNNING
        assert stepper.state.step == 1
        assert tracker.is_passed("tools/call")
        assert not tracker.is_passed("resources/list")
        assert tracker.pending_events == {}
        assert tracker.confirmations == {}
        assert resets == [True]

    def test_reset_from_idle(self, stepper: TaskStepper) -> None:
        reply = stepper.advance(action="reset")
        assert reply.data["phase"] == StepperPhase.RUNNING.value

    def test_step_one_identical_after_reset(self, stepper: TaskStepper) -> None:
        first = stepper.advance(1)
        stepper.advance(5)

        stepper.advance(action=StepAction.RESET)

        assert stepper.advance(1) == first
