"""Model Context Protocol (MCP) integration for the harness.

Protocol framing and session handling come from the official MCP Python
SDK; this package adapts the harness engine to it.

Example:
    >>> from host_evals.mcp import HostEvalsServer
    >>> harness = HostEvalsServer()
    >>> [tool.name for tool in harness.tools][:2]
    ['mcp_test_guide', 'test_tool_call']
"""

from host_evals.mcp.channel import HostChannel, SessionChannel
from host_evals.mcp.server import HostEvalsServer, RegisteredTool

__all__ = ["HostChannel", "HostEvalsServer", "RegisteredTool", "SessionChannel"]
