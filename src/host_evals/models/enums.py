"""Enumerations for the harness.

This module defines the enum types shared by the stepper, the dispatcher
and the tool layer to prevent magic strings.
"""

from enum import Enum


class ToolName(str, Enum):
    """Tools the harness exposes to the host."""

    TEST_GUIDE = "mcp_test_guide"
    TEST_TOOL_CALL = "test_tool_call"
    TRIGGER_EVENT = "trigger_event"
    CALLBACK = "callback"
    GET_RESULT = "get_result"


class StepAction(str, Enum):
    """Actions accepted by the mcp_test_guide tool.

    Example:
        >>> StepAction("reset")
        <StepAction.RESET: 'reset'>
    """

    NEXT = "next"
    RESET = "reset"


class StepperPhase(str, Enum):
    """Task stepper lifecycle phases.

    The stepper starts IDLE, moves to RUNNING on the first rendered task and
    to COMPLETED once a step past the last task is requested. A reset moves
    any phase back to RUNNING at step 1.
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class EventClass(str, Enum):
    """How the dispatcher confirms a triggered event."""

    CAPABILITY_GATED = "capability_gated"
    CALLBACK_CONFIRMED = "callback_confirmed"
    IMMEDIATE = "immediate"
    MESSAGE_CONTENT = "message_content"


class TriggerStatus(str, Enum):
    """Outcome reported back to the operator by trigger_event."""

    TRIGGERED = "triggered"
    UNSUPPORTED = "unsupported"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    ERROR = "error"


class LogLevel(str, Enum):
    """Logging levels a host may set through logging/setLevel."""

    DEBUG = "debug"
    INFO = "info"
    NOTICE = "notice"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"
    ALERT = "alert"
    EMERGENCY = "emergency"
