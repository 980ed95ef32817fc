"""Mock host channel and in-memory host sessions for harness tests.

This module provides:

- MockHostChannel: a configurable stand-in for a host connection that
  records every notification and request the dispatcher sends;
- connected_session: an async context manager running a HostEvalsServer
  against a real MCP SDK ClientSession over in-memory streams.

Features:
    - Configurable client capabilities (roots, sampling, elicitation).
    - Pre-set request results per method.
    - Configurable delay or failure for error-path tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anyio
from mcp import ClientSession, types
from mcp.shared.context import RequestContext
from mcp.shared.memory import create_client_server_memory_streams

from host_evals.mcp.server import HostEvalsServer

DEFAULT_CAPABILITIES = frozenset({"roots", "sampling", "elicitation"})

MOCK_ROOT_URI = "file:///tmp/host-evals-project"


class MockHostChannel:
    """Configurable host channel for dispatcher tests.

    Attributes:
        capabilities: Client capability names the mock host negotiated.
        notifications: ``(method, params)`` for every notification sent.
        requests: ``(method, params, related)`` for every request sent.
    """

    def __init__(
        self,
        capabilities: frozenset[str] | set[str] = DEFAULT_CAPABILITIES,
        progress_token: types.ProgressToken = "mock-progress",
    ) -> None:
        self.capabilities = set(capabilities)
        self._progress_token = progress_token
        self._results: dict[str, Any] = {}
        self._failures: dict[str | None, BaseException] = {}
        self._delay_seconds = 0.0
        self.notifications: list[tuple[str, dict[str, Any] | None]] = []
        self.requests: list[tuple[str, dict[str, Any] | None, bool]] = []

    @property
    def progress_token(self) -> types.ProgressToken:
        return self._progress_token

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def set_result(self, method: str, result: Any) -> None:
        """Pre-set the result returned for a request method."""
        self._results[method] = result

    def set_failure(self, exception: BaseException | None, method: str | None = None) -> None:
        """Raise ``exception`` on the next send of ``method`` (any method when None).

        Clears after raise.
        """
        if exception is None:
            self._failures.pop(method, None)
        else:
            self._failures[method] = exception

    def set_delay(self, seconds: float) -> None:
        """Sleep before answering requests. Useful for timeout and drain tests."""
        self._delay_seconds = max(0.0, seconds)

    def methods(self) -> list[str]:
        """Methods of all notifications and requests, in send order."""
        return [m for m, _ in self.notifications] + [m for m, _, _ in self.requests]

    def last_notification(self, method: str) -> dict[str, Any] | None:
        for sent, params in reversed(self.notifications):
            if sent == method:
                return params
        return None

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        self._raise_failure(method)
        self.notifications.append((method, params))

    async def request(
        self, method: str, params: dict[str, Any] | None = None, *, related: bool = True
    ) -> Any:
        self.requests.append((method, params, related))
        if self._delay_seconds:
            await anyio.sleep(self._delay_seconds)
        self._raise_failure(method)
        return self._results.get(method, {})

    def _raise_failure(self, method: str) -> None:
        failure = self._failures.pop(method, None) or self._failures.pop(None, None)
        if failure is not None:
            raise failure


async def _list_roots(context: RequestContext[ClientSession, Any]) -> types.ListRootsResult:
    return types.ListRootsResult(roots=[types.Root(uri=MOCK_ROOT_URI, name="project")])  # type: ignore[arg-type]


async def _sample(
    context: RequestContext[ClientSession, Any], params: types.CreateMessageRequestParams
) -> types.CreateMessageResult:
    return types.CreateMessageResult(
        role="assistant",
        content=types.TextContent(type="text", text="I am a mock MCP host."),
        model="mock-model",
        stopReason="endTurn",
    )


async def _elicit(
    context: RequestContext[ClientSession, Any], params: types.ElicitRequestParams
) -> types.ElicitResult:
    return types.ElicitResult(action="accept", content={"isGetElicitation": True})


class RecordingHost:
    """Collects what the harness pushes to an in-memory host."""

    def __init__(self) -> None:
        self.notifications: list[types.ServerNotification] = []
        self.log_messages: list[types.LoggingMessageNotificationParams] = []

    async def message_handler(self, message: Any) -> None:
        if isinstance(message, types.ServerNotification):
            self.notifications.append(message)

    async def logging_callback(self, params: types.LoggingMessageNotificationParams) -> None:
        self.log_messages.append(params)

    def methods(self) -> list[str]:
        return [notification.root.method for notification in self.notifications]

    def last(self, method: str) -> Any:
        for notification in reversed(self.notifications):
            if notification.root.method == method:
                return notification.root
        return None


@asynccontextmanager
async def connected_session(
    harness: HostEvalsServer,
    host: RecordingHost | None = None,
    *,
    roots: bool = True,
    sampling: bool = True,
    elicitation: bool = True,
) -> AsyncIterator[ClientSession]:
    """Run ``harness`` against an initialized in-memory MCP client.

    The client lists tools once after initialize, like a real host, so
    later tool calls never trigger an implicit tools/list.

    Args:
        harness: Harness under test; closed when the context exits.
        host: Recorder for notifications and log messages.
        roots: Advertise the roots capability.
        sampling: Advertise the sampling capability.
        elicitation: Advertise the elicitation capability.
    """
    host = host or RecordingHost()
    async with create_client_server_memory_streams() as (client_streams, server_streams):
        async with anyio.create_task_group() as tg:
            tg.start_soon(harness.run, *server_streams)
            async with ClientSession(
                *client_streams,
                list_roots_callback=_list_roots if roots else None,
                sampling_callback=_sample if sampling else None,
                elicitation_callback=_elicit if elicitation else None,
                logging_callback=host.logging_callback,
                message_handler=host.message_handler,
            ) as client:
                await client.initialize()
                await client.list_tools()
                yield client
            tg.cancel_scope.cancel()
