"""Outbound channel from the harness to the host.

The dispatcher never touches the MCP SDK directly. It talks to a
``HostChannel``: something that knows the host's negotiated capabilities
and can send notifications and requests to it. ``SessionChannel`` is the
production implementation over an SDK ``ServerSession``; tests use
``host_evals.testing.mocks.MockHostChannel``.

Payloads are plain ``{"method", "params"}`` dicts validated into the SDK's
typed ``ServerNotification`` / ``ServerRequest`` unions, so a malformed
payload fails before anything is written to the wire.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from mcp import types
from mcp.server.session import ServerSession
from mcp.shared.message import ServerMessageMetadata

__all__ = ["HostChannel", "SessionChannel", "REQUEST_RESULT_TYPES"]

# Host request method -> SDK result model
REQUEST_RESULT_TYPES: dict[str, type[types.Result]] = {
    "ping": types.EmptyResult,
    "roots/list": types.ListRootsResult,
    "sampling/createMessage": types.CreateMessageResult,
    "elicitation/create": types.ElicitResult,
}


@runtime_checkable
class HostChannel(Protocol):
    """What the dispatcher needs from a live host connection."""

    @property
    def progress_token(self) -> types.ProgressToken: ...

    def supports(self, capability: str) -> bool:
        """Return True if the host negotiated the named client capability."""
        ...

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification tied to the tool call being served."""
        ...

    async def request(
        self, method: str, params: dict[str, Any] | None = None, *, related: bool = True
    ) -> Any:
        """Send a request to the host and return its result."""
        ...


class SessionChannel:
    """HostChannel over an MCP SDK server session.

    Args:
        session: The SDK session of the current connection.
        related_request_id: Id of the tool call being served. Notifications
            and related requests are routed on that call's response stream,
            which matters for the streamable HTTP transport.
        progress_token: Token from the tool call's ``_meta``; falls back to
            the request id so progress notifications always carry one.
    """

    def __init__(
        self,
        session: ServerSession,
        related_request_id: types.RequestId | None = None,
        progress_token: types.ProgressToken | None = None,
    ) -> None:
        self.session = session
        self.related_request_id = related_request_id
        if progress_token is None:
            progress_token = related_request_id if related_request_id is not None else 0
        self._progress_token = progress_token

    @property
    def progress_token(self) -> types.ProgressToken:
        return self._progress_token

    def supports(self, capability: str) -> bool:
        params = self.session.client_params
        if params is None:
            return False
        return getattr(params.capabilities, capability, None) is not None

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        payload: dict[str, Any] = {"method": method}
        if params is not None:
            payload["params"] = params
        notification = types.ServerNotification.model_validate(payload)
        await self.session.send_notification(
            notification, related_request_id=self.related_request_id
        )

    async def request(
        self, method: str, params: dict[str, Any] | None = None, *, related: bool = True
    ) -> Any:
        result_type = REQUEST_RESULT_TYPES.get(method)
        if result_type is None:
            raise ValueError(f"No host request is defined for {method!r}")
        payload: dict[str, Any] = {"method": method}
        if params is not None:
            payload["params"] = params
        request = types.ServerRequest.model_validate(payload)
        metadata = None
        if related and self.related_request_id is not None:
            metadata = ServerMessageMetadata(related_request_id=self.related_request_id)
        return await self.session.send_request(request, result_type, metadata=metadata)
