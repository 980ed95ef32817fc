"""Command-line interface for the MCP host evals harness.

Example:
    >>> # From terminal:
    >>> # mcp-host-evals --version
    >>> # mcp-host-evals http --port 3000 --host 127.0.0.1
    >>> # mcp-host-evals --log-format json stdio
"""

import contextlib
import sys
from pathlib import Path
from typing import IO, Annotated, Any, Optional

import typer

from host_evals import __version__
from host_evals.config import HarnessConfig
from host_evals.errors import PortUnavailableError
from host_evals.models.constants import DEFAULT_HTTP_HOST, DEFAULT_HTTP_PORT
from host_evals.observability import bind_context, configure_logging, get_logger

app = typer.Typer(help="MCP host conformance test harness.")

logger = get_logger(__name__)

# Logging options collected by the root callback, applied by each command
_log_options: dict[str, Any] = {"log_format": None, "log_level": None, "log_dir": None}


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show mcp-host-evals version and exit.",
    callback=_version_callback,
    is_eager=True,
)


def parse_port(value: str) -> int:
    """Parse a TCP port, rejecting non-integers and values outside 1..65535.

    Raises:
        ValueError: If ``value`` is not a usable port.
    """
    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"Invalid port: {value!r} is not an integer") from None
    if port <= 0 or port > 65535:
        raise ValueError(f"Invalid port: {port} must be between 1 and 65535")
    return port


def _configure_logging(stream: IO[str] | None = None) -> None:
    configure_logging(
        log_format=_log_options["log_format"],
        log_level=_log_options["log_level"],
        log_dir=_log_options["log_dir"],
        stream=stream,
        force=True,
    )


@app.callback()
def cli(
    version: bool = VERSION_OPTION,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log output format: console or json."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)."),
    ] = None,
    log_dir: Annotated[
        Optional[Path],
        typer.Option("--log-dir", help="Directory for rotating runtime.log and error.log."),
    ] = None,
) -> None:
    """MCP host evals entrypoint."""
    _log_options.update(log_format=log_format, log_level=log_level, log_dir=log_dir)


@app.command("http")
def http(
    port: Annotated[
        str,
        typer.Option("--port", "-p", help="Port to listen on; the next port is tried once if busy."),
    ] = str(DEFAULT_HTTP_PORT),
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind."),
    ] = DEFAULT_HTTP_HOST,
) -> None:
    """Serve the harness over streamable HTTP at /mcp."""
    try:
        port_number = parse_port(port)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc

    from host_evals.transport.http import bind_socket, create_app, serve_http

    _configure_logging()
    bind_context(transport="http")
    try:
        sock = bind_socket(host, port_number)
    except PortUnavailableError as exc:
        logger.error("cli.http.bind_failed", **exc.to_dict())
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(1) from exc

    app_ = create_app(HarnessConfig.from_env())
    with contextlib.suppress(KeyboardInterrupt):
        serve_http(app_, sock, log_level=str(_log_options["log_level"] or "info"))


@app.command("stdio")
def stdio() -> None:
    """Serve the harness over stdin/stdout."""
    from host_evals.transport.stdio import run_stdio

    _configure_logging(stream=sys.stderr)
    bind_context(transport="stdio")
    with contextlib.suppress(BrokenPipeError, KeyboardInterrupt):
        run_stdio(HarnessConfig.from_env())


def main() -> None:
    """Run the mcp-host-evals CLI."""
    app()


if __name__ == "__main__":
    main()
