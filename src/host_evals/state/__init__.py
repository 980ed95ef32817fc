"""Task script and stepper."""

from host_evals.state.stepper import VALID_TRANSITIONS, TaskStepper, can_transition
from host_evals.state.tasks import DEFAULT_TASKS, order_tasks

__all__ = ["DEFAULT_TASKS", "TaskStepper", "VALID_TRANSITIONS", "can_transition", "order_tasks"]
