"""Transport bindings for the harness.

Modules:
    stdio: One session over the process's stdin/stdout.
    http: Streamable HTTP with one harness per MCP session.
"""

from host_evals.transport.http import SessionRouter, bind_socket, create_app, serve_http
from host_evals.transport.stdio import run_stdio, serve_stdio

__all__ = [
    "SessionRouter",
    "bind_socket",
    "create_app",
    "run_stdio",
    "serve_http",
    "serve_stdio",
]
