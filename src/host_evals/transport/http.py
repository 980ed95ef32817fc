"""Streamable HTTP transport with one harness per MCP session.

The ``/mcp`` endpoint multiplexes sessions by the ``mcp-session-id``
header:

- a known session id is routed to that session's SDK transport;
- a POST without a session id carrying an ``initialize`` request opens a
  new session (fresh transport and fresh harness) whose id the SDK returns
  in the response headers. If the SDK rejects that request the session is
  dropped again;
- anything else is rejected with 400 and a JSON-RPC error body.

When a session's transport closes (DELETE, disconnect or shutdown) its
harness is closed and the session is forgotten.

Example:
    >>> from host_evals.transport.http import bind_socket, create_app, serve_http
    >>> app = create_app()
    >>> # Run with: serve_http(app, bind_socket("127.0.0.1", 3000))
"""

from __future__ import annotations

import socket
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anyio
import uvicorn
from anyio.abc import TaskGroup, TaskStatus
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from mcp import types
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from pydantic import ValidationError
from starlette.types import Message, Receive, Scope, Send

from host_evals import __version__
from host_evals.config import HarnessConfig
from host_evals.errors import PortUnavailableError
from host_evals.mcp.server import HostEvalsServer
from host_evals.models.constants import HEALTH_PATH, MCP_ENDPOINT_PATH
from host_evals.observability import get_logger

__all__ = ["SessionRouter", "bind_socket", "create_app", "serve_http"]

logger = get_logger(__name__)

BAD_REQUEST_BODY: dict[str, Any] = {
    "jsonrpc": "2.0",
    "error": {"code": -32000, "message": "Bad Request: No valid session ID provided"},
    "id": None,
}


class SessionRouter:
    """ASGI app routing ``/mcp`` requests to per-session SDK transports."""

    def __init__(self, config: HarnessConfig, *, json_response: bool = False) -> None:
        self.config = config
        self.json_response = json_response
        self.transports: dict[str, StreamableHTTPServerTransport] = {}
        self.harnesses: dict[str, HostEvalsServer] = {}
        self._task_group: TaskGroup | None = None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Own the task group that session servers run in."""
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield
            finally:
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = _header(scope, MCP_SESSION_ID_HEADER)
        if session_id is not None and session_id in self.transports:
            await self.transports[session_id].handle_request(scope, receive, send)
            return
        if session_id is None and scope.get("method") == "POST":
            body = await _read_body(receive)
            if _is_initialize_request(body):
                transport = await self._open_session()
                await self._handle_first_request(transport, scope, _replay(body, receive), send)
                return
        logger.warning("http.session.rejected", session_id=session_id, method=scope.get("method"))
        response = JSONResponse(status_code=400, content=BAD_REQUEST_BODY)
        await response(scope, receive, send)

    async def _handle_first_request(
        self,
        transport: StreamableHTTPServerTransport,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Serve the initialize request; drop the session if the SDK rejects it."""
        statuses: list[int] = []

        async def send_with_status(message: Message) -> None:
            if message["type"] == "http.response.start":
                statuses.append(message["status"])
            await send(message)

        await transport.handle_request(scope, receive, send_with_status)
        if statuses and statuses[0] >= 400:
            session_id = transport.mcp_session_id
            logger.warning(
                "http.session.initialize_rejected", session_id=session_id, status=statuses[0]
            )
            if session_id is not None:
                self.transports.pop(session_id, None)
                self.harnesses.pop(session_id, None)
            await transport.terminate()

    async def _open_session(self) -> StreamableHTTPServerTransport:
        if self._task_group is None:
            raise RuntimeError("SessionRouter.run() must be active to open sessions")
        session_id = uuid.uuid4().hex
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
            event_store=None,
        )
        harness = HostEvalsServer(self.config, logger=logger.bind(session_id=session_id))
        self.transports[session_id] = transport
        self.harnesses[session_id] = harness
        await self._task_group.start(self._run_session, session_id, transport, harness)
        logger.info("http.session.opened", session_id=session_id)
        return transport

    async def _run_session(
        self,
        session_id: str,
        transport: StreamableHTTPServerTransport,
        harness: HostEvalsServer,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        try:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                await harness.run(read_stream, write_stream)
        finally:
            self.transports.pop(session_id, None)
            self.harnesses.pop(session_id, None)
            with anyio.CancelScope(shield=True):
                await harness.close()
            logger.info("http.session.closed", session_id=session_id)


def _header(scope: Scope, name: str) -> str | None:
    wanted = name.lower().encode("latin-1")
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            return value.decode("latin-1")
    return None


async def _read_body(receive: Receive) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Wrap ``receive`` so an already consumed body is delivered again."""
    replayed = False

    async def replay_receive() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay_receive


def _is_initialize_request(body: bytes) -> bool:
    """Check whether ``body`` is a single JSON-RPC initialize request."""
    try:
        message = types.JSONRPCMessage.model_validate_json(body)
    except ValidationError:
        return False
    return isinstance(message.root, types.JSONRPCRequest) and message.root.method == "initialize"


def create_app(config: HarnessConfig | None = None, *, json_response: bool = False) -> FastAPI:
    """Create the FastAPI application serving the harness over streamable HTTP.

    Args:
        config: Harness config shared by every session.
        json_response: Answer POSTs with plain JSON instead of an SSE stream.

    Returns:
        Configured FastAPI application. The session router is available as
        ``app.state.sessions``.
    """
    config = config or HarnessConfig.from_env()
    router = SessionRouter(config, json_response=json_response)

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with router.run():
            yield

    app = FastAPI(
        title="MCP Host Evals",
        description="Conformance test harness for MCP hosts",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=_lifespan,
    )
    app.state.sessions = router
    app.add_route(MCP_ENDPOINT_PATH, router, methods=["GET", "POST", "DELETE"])

    @app.get(HEALTH_PATH)
    async def health() -> JSONResponse:
        """Liveness probe with the number of open sessions."""
        return JSONResponse(
            status_code=200,
            content={"status": "ok", "sessions": len(router.transports)},
        )

    return app


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind ``host:port``, falling back to ``port + 1`` once.

    Raises:
        PortUnavailableError: If neither port can be bound.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    attempted: list[int] = []
    for candidate in (port, port + 1):
        if candidate > 65535:
            break
        attempted.append(candidate)
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, candidate))
        except OSError as exc:
            sock.close()
            logger.warning("http.bind.failed", host=host, port=candidate, error=str(exc))
            continue
        if candidate != port:
            logger.info("http.bind.fallback", host=host, requested=port, port=candidate)
        return sock
    raise PortUnavailableError(host, attempted)


def serve_http(app: FastAPI, sock: socket.socket, log_level: str = "info") -> None:
    """Serve ``app`` on an already bound socket until interrupted."""
    host, port = sock.getsockname()[:2]
    logger.info(
        "http.server.start",
        url=f"http://{host}:{port}{MCP_ENDPOINT_PATH}",
        health=f"http://{host}:{port}{HEALTH_PATH}",
    )
    server = uvicorn.Server(uvicorn.Config(app, log_level=log_level.lower(), log_config=None))
    server.run(sockets=[sock])
