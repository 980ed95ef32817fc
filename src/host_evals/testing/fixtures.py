"""Pytest fixtures for harness tests.

Fixtures (use with pytest):
    harness_config: Config with short timeouts so expiry tests run fast.
    tracker: FeatureTracker over the default registry.
    mock_channel: MockHostChannel advertising every client capability.
    dispatcher: EventDispatcher bound to ``tracker``.
    stepper: TaskStepper bound to ``tracker``.
    harness: HostEvalsServer built from ``harness_config``.
"""

from collections.abc import AsyncIterator, Iterator

import pytest

from host_evals.config import HarnessConfig
from host_evals.features.dispatcher import EventDispatcher
from host_evals.features.tracker import FeatureTracker
from host_evals.mcp.server import HostEvalsServer
from host_evals.state.stepper import TaskStepper
from host_evals.testing.mocks import MockHostChannel

FAST_PENDING_TIMEOUT = 0.2
FAST_CONFIRMATION_TIMEOUT = 0.5


@pytest.fixture
def harness_config() -> HarnessConfig:
    """Config with sub-second windows for expiry tests."""
    return HarnessConfig(
        pending_event_timeout=FAST_PENDING_TIMEOUT,
        confirmation_timeout=FAST_CONFIRMATION_TIMEOUT,
        host_request_timeout=1.0,
    )


@pytest.fixture
def tracker(harness_config: HarnessConfig) -> Iterator[FeatureTracker]:
    """Fresh tracker; timers are cancelled after the test."""
    tracker = FeatureTracker(
        pending_timeout=harness_config.pending_event_timeout,
        confirmation_timeout=harness_config.confirmation_timeout,
    )
    yield tracker
    tracker.close()


@pytest.fixture
def mock_channel() -> MockHostChannel:
    return MockHostChannel()


@pytest.fixture
async def dispatcher(
    tracker: FeatureTracker, harness_config: HarnessConfig
) -> AsyncIterator[EventDispatcher]:
    """Dispatcher whose background requests are cancelled after the test."""
    dispatcher = EventDispatcher(tracker, harness_config)
    yield dispatcher
    await dispatcher.close()


@pytest.fixture
def stepper(tracker: FeatureTracker) -> TaskStepper:
    return TaskStepper(tracker)


@pytest.fixture
def harness(harness_config: HarnessConfig) -> HostEvalsServer:
    return HostEvalsServer(harness_config)
