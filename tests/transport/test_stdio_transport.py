"""Tests for the stdio transport."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import patch

import anyio
from mcp import ClientSession
from mcp.shared.memory import create_client_server_memory_streams

from host_evals.config import HarnessConfig
from host_evals.transport.stdio import serve_stdio


class TestServeStdio:
    async def test_serves_one_session(self) -> None:
        async with create_client_server_memory_streams() as (client_streams, server_streams):

            @asynccontextmanager
            async def fake_stdio_server() -> AsyncIterator[Any]:
                yield server_streams

            with patch("host_evals.transport.stdio.stdio_server", fake_stdio_server):
                async with anyio.create_task_group() as tg:
                    tg.start_soon(serve_stdio, HarnessConfig())
                    async with ClientSession(*client_streams) as client:
                        init = await client.initialize()
                        tools = await client.list_tools()
                    tg.cancel_scope.cancel()

        assert init.serverInfo.name == "mcp-host-evals"
        assert tools.tools[0].name == "mcp_test_guide"
