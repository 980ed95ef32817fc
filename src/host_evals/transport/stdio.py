"""stdio transport: one harness for the lifetime of the process.

stdout carries the protocol, so logging must be configured to write to
stderr before this runs.
"""

from __future__ import annotations

import anyio
from mcp.server.stdio import stdio_server

from host_evals.config import HarnessConfig
from host_evals.mcp.server import HostEvalsServer
from host_evals.observability import get_logger

__all__ = ["run_stdio", "serve_stdio"]

logger = get_logger(__name__)


async def serve_stdio(config: HarnessConfig | None = None) -> None:
    """Serve one harness session over the process's stdin/stdout."""
    harness = HostEvalsServer(config or HarnessConfig.from_env())
    logger.info("stdio.server.start")
    async with stdio_server() as (read_stream, write_stream):
        await harness.run(read_stream, write_stream)
    logger.info("stdio.server.stop")


def run_stdio(config: HarnessConfig | None = None) -> None:
    """Blocking entry point used by the CLI."""
    anyio.run(serve_stdio, config)
