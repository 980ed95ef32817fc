"""Host Evals Error Taxonomy.

This module defines the error hierarchy for the harness, providing
structured error handling with specific error codes and context
information.

Only operator-facing mistakes (unknown tool, event or callback names,
invalid step numbers) and transport startup failures are errors.
An unsupported host capability, a failed notification send, a mismatched
confirmation or an expired pending event are reported as ordinary replies
and never raise.
"""
from __future__ import annotations

from typing import Any


class HostEvalsError(Exception):
    """Base exception for all harness errors.

    Attributes:
        code: Error code following the host-evals:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnknownToolError(HostEvalsError):
    """Raised when the host calls a tool the harness does not expose."""

    def __init__(self, tool_name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:tool/unknown",
            message=f"Unknown tool: {tool_name}",
            details={"tool_name": tool_name, **(details or {})},
        )
        self.tool_name = tool_name


class UnknownEventError(HostEvalsError):
    """Raised when trigger_event names an event the dispatcher cannot fire.

    Attributes:
        event_type: The rejected event type
    """

    def __init__(self, event_type: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:event/unsupported",
            message=f"Unsupported event type: {event_type}",
            details={"event_type": event_type, **(details or {})},
        )
        self.event_type = event_type


class UnknownCallbackError(HostEvalsError):
    """Raised when the callback tool names an event that has no confirmation path."""

    def __init__(self, event_name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:callback/unsupported",
            message=f"Unsupported callback event name: {event_name}",
            details={"event_name": event_name, **(details or {})},
        )
        self.event_name = event_name


class InvalidStepError(HostEvalsError):
    """Raised when the task stepper is asked for a step below 1.

    Steps beyond the last task are not an error; they complete the run.
    """

    def __init__(self, step: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:stepper/invalid_step",
            message=f"Invalid step: {step}. Steps start from 1",
            details={"step": step, **(details or {})},
        )
        self.step = step


class PortUnavailableError(HostEvalsError):
    """Raised when the HTTP transport cannot bind its port, even after retrying.

    Attributes:
        host: Interface the server tried to bind
        ports: Every port that was attempted, in order
    """

    def __init__(
        self, host: str, ports: list[int], details: dict[str, Any] | None = None
    ) -> None:
        attempted = ", ".join(str(port) for port in ports)
        super().__init__(
            code="host-evals:transport/port_unavailable",
            message=f"Could not bind {host} on port(s) {attempted}",
            details={"host": host, "ports": ports, **(details or {})},
        )
        self.host = host
        self.ports = ports


class UnknownResourceError(HostEvalsError):
    """Raised when the host reads or subscribes to a resource the harness does not serve."""

    def __init__(self, uri: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:resource/unknown",
            message=f"Unknown resource: {uri}",
            details={"uri": uri, **(details or {})},
        )
        self.uri = uri


class UnknownPromptError(HostEvalsError):
    """Raised when the host asks for a prompt the harness does not define."""

    def __init__(self, prompt_name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="host-evals:prompt/unknown",
            message=f"Unknown prompt: {prompt_name}",
            details={"prompt_name": prompt_name, **(details or {})},
        )
        self.prompt_name = prompt_name
