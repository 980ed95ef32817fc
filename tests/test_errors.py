"""Tests for the harness error taxonomy."""

import pytest

from host_evals.errors import (
    HostEvalsError,
    InvalidStepError,
    PortUnavailableError,
    UnknownCallbackError,
    UnknownEventError,
    UnknownPromptError,
    UnknownResourceError,
    UnknownToolError,
)


class TestHostEvalsError:
    def test_to_dict(self) -> None:
        error = HostEvalsError("host-evals:test/code", "boom", {"key": "value"})

        assert str(error) == "boom"
        assert error.to_dict() == {
            "code": "host-evals:test/code",
            "message": "boom",
            "details": {"key": "value"},
        }

    def test_details_default_empty(self) -> None:
        assert HostEvalsError("c", "m").details == {}


class TestSubclasses:
    """Each subclass carries its code and the offending value."""

    @pytest.mark.parametrize(
        ("error", "code", "message"),
        [
            (UnknownToolError("nope"), "host-evals:tool/unknown", "Unknown tool: nope"),
            (
                UnknownEventError("bogus"),
                "host-evals:event/unsupported",
                "Unsupported event type: bogus",
            ),
            (
                UnknownCallbackError("ping"),
                "host-evals:callback/unsupported",
                "Unsupported callback event name: ping",
            ),
            (
                InvalidStepError(0),
                "host-evals:stepper/invalid_step",
                "Invalid step: 0. Steps start from 1",
            ),
            (
                UnknownResourceError("file://x"),
                "host-evals:resource/unknown",
                "Unknown resource: file://x",
            ),
            (UnknownPromptError("p"), "host-evals:prompt/unknown", "Unknown prompt: p"),
        ],
    )
    def test_code_and_message(self, error: HostEvalsError, code: str, message: str) -> None:
        assert isinstance(error, HostEvalsError)
        assert error.code == code
        assert error.message == message

    def test_port_unavailable_lists_ports(self) -> None:
        error = PortUnavailableError("0.0.0.0", [3000, 3001])

        assert error.message == "Could not bind 0.0.0.0 on port(s) 3000, 3001"
        assert error.details == {"host": "0.0.0.0", "ports": [3000, 3001]}

    def test_extra_details_merged(self) -> None:
        error = UnknownEventError("bogus", details={"session": "s1"})
        assert error.details == {"event_type": "bogus", "session": "s1"}
