"""Testing utilities for harness tests.

Modules:
    fixtures: Pytest fixtures (tracker, dispatcher, stepper, harness,
              mock_channel, harness_config).
    mocks: MockHostChannel for dispatcher tests; connected_session and
           RecordingHost for in-memory end-to-end sessions.

Example:
    >>> from host_evals.testing import MockHostChannel
    >>> channel = MockHostChannel(capabilities={"roots"})
    >>> channel.supports("sampling")
    False
"""

from host_evals.testing.mocks import MockHostChannel, RecordingHost, connected_session

__all__ = ["MockHostChannel", "RecordingHost", "connected_session"]
