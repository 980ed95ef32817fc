"""Structured logging configuration for the harness.

This module configures structlog for structured logging with support for
both development (console) and production (JSON) output formats.

The logging configuration includes:
- JSON renderer for production environments
- Console renderer with colors for development
- Automatic timestamp and log level injection
- Context binding for the transport name and session id
- Optional rotating runtime.log / error.log files

The stdio transport owns stdout for protocol frames, so the CLI points
the console handler at stderr in that mode.

Environment Variables:
    HOST_EVALS_LOG_FORMAT: Set to "json" for JSON output, "console" for colored output
    HOST_EVALS_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR)
    HOST_EVALS_SERVICE_NAME: Service name to include in logs
    HOST_EVALS_LOG_DIR: Directory for rotating runtime.log and error.log files

Example:
    >>> from host_evals.observability.logging import get_logger, configure_logging
    >>>
    >>> configure_logging(log_format="json", log_level="INFO")
    >>> logger = get_logger("host_evals.features.tracker")
    >>> logger.info("tracker.pending.recorded", event_type="notifications/tools/list_changed")
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import IO, Any

import structlog
from structlog.typing import Processor

# Default configuration
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "mcp-host-evals"

# Environment variable names
ENV_LOG_FORMAT = "HOST_EVALS_LOG_FORMAT"
ENV_LOG_LEVEL = "HOST_EVALS_LOG_LEVEL"
ENV_SERVICE_NAME = "HOST_EVALS_SERVICE_NAME"
ENV_LOG_DIR = "HOST_EVALS_LOG_DIR"

# Rotating file settings
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5
RUNTIME_LOG_NAME = "runtime.log"
ERROR_LOG_NAME = "error.log"

# Module-level flag to track if logging has been configured
_logging_configured = False


def _get_log_level() -> str:
    """Get log level from environment or use default."""
    return os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()


def _get_log_format() -> str:
    """Get log format from environment or use default."""
    return os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT).lower()


def _get_service_name() -> str:
    """Get service name from environment or use default."""
    return os.environ.get(ENV_SERVICE_NAME, DEFAULT_SERVICE_NAME)


def _get_log_dir() -> Path | None:
    value = os.environ.get(ENV_LOG_DIR, "").strip()
    return Path(value) if value else None


def _get_shared_processors() -> list[Processor]:
    """Get shared processors for all log formats."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _get_console_renderer(colors: bool = True) -> Processor:
    """Get console renderer for development."""
    return structlog.dev.ConsoleRenderer(
        colors=colors,
        exception_formatter=structlog.dev.plain_traceback,
    )


def _get_json_renderer() -> Processor:
    """Get JSON renderer for production."""
    return structlog.processors.JSONRenderer()


def _file_handlers(log_dir: Path, formatter: logging.Formatter) -> list[logging.Handler]:
    """Rotating runtime.log (all levels) and error.log (ERROR and above)."""
    log_dir.mkdir(parents=True, exist_ok=True)
    runtime = logging.handlers.RotatingFileHandler(
        log_dir / RUNTIME_LOG_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    errors = logging.handlers.RotatingFileHandler(
        log_dir / ERROR_LOG_NAME,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    errors.setLevel(logging.ERROR)
    for handler in (runtime, errors):
        handler.setFormatter(formatter)
    return [runtime, errors]


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    stream: IO[str] | None = None,
    log_dir: Path | None = None,
    force: bool = False,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_format: Output format - "json" or "console". Defaults to env var or "console"
        log_level: Minimum log level. Defaults to env var or "INFO"
        service_name: Service name for log context. Defaults to env var or "mcp-host-evals"
        stream: Console stream. Defaults to stdout; the stdio transport passes stderr
        log_dir: Directory for rotating log files. Defaults to env var or no files
        force: If True, reconfigure even if already configured

    Example:
        >>> configure_logging(log_format="json", log_level="INFO")
        >>> configure_logging(log_format="console", log_level="DEBUG", stream=sys.stderr)
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    log_format = (log_format or _get_log_format()).lower()
    log_level = (log_level or _get_log_level()).upper()
    service_name = service_name or _get_service_name()
    log_dir = log_dir or _get_log_dir()

    shared_processors = _get_shared_processors()

    if log_format == "json":
        renderer: Processor = _get_json_renderer()
    else:
        renderer = _get_console_renderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [handler]

    if log_dir is not None:
        # Files never get ANSI colors, whatever the console uses
        file_renderer = renderer if log_format == "json" else _get_console_renderer(colors=False)
        file_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                file_renderer,
            ],
        )
        handlers.extend(_file_handlers(log_dir, file_formatter))

    root_logger = logging.getLogger()
    for old_handler in root_logger.handlers[:]:
        root_logger.removeHandler(old_handler)
        old_handler.close()
    for new_handler in handlers:
        root_logger.addHandler(new_handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    structlog.contextvars.bind_contextvars(service=service_name)

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given name.

    If logging has not been configured, it will be configured with
    default settings.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Bound structlog logger
    """
    if not _logging_configured:
        configure_logging()

    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    Example:
        >>> bind_context(transport="stdio")
        >>> logger.info("event")  # Will include transport
    """
    structlog.contextvars.bind_contextvars(**kwargs)
