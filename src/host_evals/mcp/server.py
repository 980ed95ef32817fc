"""MCP server wiring for one harness session.

``HostEvalsServer`` owns the per-session objects (tracker, stepper,
dispatcher), registers the harness tools, resources, prompts and
completion handlers on an MCP SDK low-level ``Server``, and runs it over
a pair of SDK streams.

Every inbound JSON-RPC request and notification passes through the
tracker before the SDK dispatches it, so receiving a method is enough to
mark it passed and to resolve a pending event waiting for it.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import anyio
import jsonschema
import structlog
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions
from mcp.shared.message import SessionMessage
from pydantic import AnyUrl

from host_evals.config import HarnessConfig
from host_evals.errors import UnknownResourceError, UnknownToolError
from host_evals.features.dispatcher import EventDispatcher
from host_evals.features.registry import FeatureRegistry
from host_evals.features.report import build_report, render_report
from host_evals.features.tracker import FeatureTracker
from host_evals.mcp.channel import HostChannel, SessionChannel
from host_evals.mcp.protocol import (
    completion_for,
    harness_resource,
    prompt_definitions,
    render_prompt,
    tool_definitions,
)
from host_evals.models.constants import TEST_RESOURCE_TEXT, TEST_RESOURCE_URI
from host_evals.models.entities import Task, ToolReply
from host_evals.models.enums import LogLevel, ToolName
from host_evals.observability import get_logger
from host_evals.state.stepper import TaskStepper
from host_evals.state.tasks import DEFAULT_TASKS

__all__ = ["HostEvalsServer", "RegisteredTool"]

ToolFunc = Callable[..., Awaitable[ToolReply]]


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    func: ToolFunc
    input_schema: dict[str, Any]
    description: str

    def as_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )


class HostEvalsServer:
    """One harness instance bound to one protocol session.

    Register extra tools with register_tool(), then call run() with the
    SDK stream pair produced by a transport. The instance is single use;
    close() runs when the session ends.
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        registry: FeatureRegistry | None = None,
        tasks: Sequence[Task] = DEFAULT_TASKS,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the harness.

        Args:
            config: Harness timeouts and server identity.
            registry: Feature catalog; defaults to the built-in MCP catalog.
            tasks: Scripted task list shown by mcp_test_guide.
            logger: Logger shared with the tracker, stepper and dispatcher;
                each defaults to its own module's logger.
        """
        self.config = config or HarnessConfig()
        self._logger = logger or get_logger(__name__)
        self.tracker = FeatureTracker(
            registry,
            pending_timeout=self.config.pending_event_timeout,
            confirmation_timeout=self.config.confirmation_timeout,
            logger=logger,
        )
        self.registry = self.tracker.registry
        self.stepper = TaskStepper(
            self.tracker, tasks, on_reset=self._reset_log_level, logger=logger
        )
        self.dispatcher = EventDispatcher(self.tracker, self.config, logger=logger)
        self.log_level = LogLevel.INFO
        self.subscriptions: set[str] = set()
        self.server: Server[Any, Any] = Server(
            self.config.server_name, version=self.config.server_version
        )
        self._tools: dict[str, RegisteredTool] = {}
        self._closed = False
        self._register_builtin_tools()
        self._register_handlers()

    # Tools

    def register_tool(
        self,
        name: str,
        func: ToolFunc,
        schema: dict[str, Any],
        *,
        description: str = "",
    ) -> None:
        """Register a tool that can be invoked via tools/call.

        Args:
            name: Unique tool name.
            func: Coroutine function receiving the call arguments as keywords.
            schema: JSON Schema for the arguments (inputSchema).
            description: Human-readable description.
        """
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Tool {name!r} must be a coroutine function")
        self._tools[name] = RegisteredTool(
            name=name,
            func=func,
            input_schema=schema,
            description=description or f"Tool {name}",
        )

    @property
    def tools(self) -> list[types.Tool]:
        return [tool.as_tool() for tool in self._tools.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolReply:
        """Validate arguments and run a registered tool.

        Raises:
            UnknownToolError: If no tool is registered under ``name``.
            ValueError: If the arguments do not match the tool's schema.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        arguments = arguments or {}
        try:
            jsonschema.validate(instance=arguments, schema=tool.input_schema)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid arguments: {e.message}") from e
        self._logger.info("server.tool.call", tool=name)
        return await tool.func(**arguments)

    def _register_builtin_tools(self) -> None:
        funcs: dict[str, ToolFunc] = {
            ToolName.TEST_GUIDE.value: self._test_guide,
            ToolName.TEST_TOOL_CALL.value: self._test_tool_call,
            ToolName.TRIGGER_EVENT.value: self._trigger_event,
            ToolName.CALLBACK.value: self._callback,
            ToolName.GET_RESULT.value: self._get_result,
        }
        for name, (description, schema) in tool_definitions(self.registry).items():
            self.register_tool(name, funcs[name], schema, description=description)

    async def _test_guide(self, step: int = 1, action: str = "next") -> ToolReply:
        return self.stepper.advance(int(step), action)

    async def _test_tool_call(self, tool_name: str | None = None) -> ToolReply:
        return ToolReply(text="success", data={"tool_name": tool_name})

    async def _trigger_event(self, event_type: str) -> ToolReply:
        return await self.dispatcher.trigger(event_type, self.channel())

    async def _callback(self, event_name: str, message: str | None = None) -> ToolReply:
        return self.dispatcher.callback(event_name, message)

    async def _get_result(self) -> ToolReply:
        report = build_report(self.tracker.features_status, self.stepper.tasks)
        self._logger.info(
            "server.report", passed=report.passed, failed=report.failed, total=report.total
        )
        return render_report(report)

    def channel(self) -> HostChannel:
        """Host channel for the request currently being served."""
        ctx = self.server.request_context
        token = ctx.meta.progressToken if ctx.meta is not None else None
        return SessionChannel(ctx.session, related_request_id=ctx.request_id, progress_token=token)

    # SDK handlers

    def _register_handlers(self) -> None:
        server = self.server

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return self.tools

        @server.call_tool()
        async def call_tool(
            name: str, arguments: dict[str, Any]
        ) -> tuple[list[types.TextContent], dict[str, Any]]:
            reply = await self.call_tool(name, arguments)
            return [types.TextContent(type="text", text=reply.text)], reply.data

        @server.list_resources()
        async def list_resources() -> list[types.Resource]:
            return [harness_resource()]

        @server.list_resource_templates()
        async def list_resource_templates() -> list[types.ResourceTemplate]:
            return []

        @server.read_resource()
        async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
            self._require_resource(uri)
            return [ReadResourceContents(content=TEST_RESOURCE_TEXT, mime_type="text/plain")]

        @server.subscribe_resource()
        async def subscribe_resource(uri: AnyUrl) -> None:
            self.subscriptions.add(self._require_resource(uri))

        @server.unsubscribe_resource()
        async def unsubscribe_resource(uri: AnyUrl) -> None:
            self.subscriptions.discard(self._require_resource(uri))

        @server.list_prompts()
        async def list_prompts() -> list[types.Prompt]:
            return prompt_definitions()

        @server.get_prompt()
        async def get_prompt(
            name: str, arguments: dict[str, str] | None
        ) -> types.GetPromptResult:
            return render_prompt(name, arguments)

        @server.completion()
        async def complete(
            ref: types.PromptReference | types.ResourceTemplateReference,
            argument: types.CompletionArgument,
            context: types.CompletionContext | None = None,
        ) -> types.Completion:
            return completion_for(ref)

        @server.set_logging_level()
        async def set_logging_level(level: types.LoggingLevel) -> None:
            self.log_level = LogLevel(level)
            self._logger.info("server.log_level.set", level=self.log_level.value)

    def _require_resource(self, uri: AnyUrl | str) -> str:
        # AnyUrl may normalize the uri, so compare without a trailing slash
        value = str(uri)
        if value.rstrip("/") != TEST_RESOURCE_URI:
            raise UnknownResourceError(value)
        return TEST_RESOURCE_URI

    def _reset_log_level(self) -> None:
        self.log_level = LogLevel.INFO

    def initialization_options(self) -> InitializationOptions:
        options = self.server.create_initialization_options(
            NotificationOptions(prompts_changed=True, resources_changed=True, tools_changed=True)
        )
        options.capabilities.resources = types.ResourcesCapability(
            subscribe=True, listChanged=True
        )
        return options

    # Session lifecycle

    async def run(
        self,
        read_stream: MemoryObjectReceiveStream[SessionMessage | Exception],
        write_stream: MemoryObjectSendStream[SessionMessage],
        *,
        stateless: bool = False,
    ) -> None:
        """Serve one session over an SDK stream pair until the host disconnects."""
        inbound_send, inbound_receive = anyio.create_memory_object_stream[
            SessionMessage | Exception
        ](0)
        self._logger.info("server.session.start", server_name=self.config.server_name)
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._intercept, read_stream, inbound_send)
                await self.server.run(
                    inbound_receive,
                    write_stream,
                    self.initialization_options(),
                    stateless=stateless,
                )
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await self.close()
            self._logger.info("server.session.end")

    async def _intercept(
        self,
        source: MemoryObjectReceiveStream[SessionMessage | Exception],
        sink: MemoryObjectSendStream[SessionMessage | Exception],
    ) -> None:
        async with sink:
            async for message in source:
                if isinstance(message, SessionMessage):
                    self.observe(message.message.root)
                try:
                    await sink.send(message)
                except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                    return

    def observe(self, message: Any) -> None:
        """Account for one inbound JSON-RPC message."""
        if isinstance(message, (types.JSONRPCRequest, types.JSONRPCNotification)):
            resolved = self.tracker.resolve_inbound_call(message.method)
            self._logger.debug("server.inbound", method=message.method, resolved=resolved)

    async def close(self) -> None:
        """Cancel timers and background requests; safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.tracker.close()
        await self.dispatcher.close()
