"""Observability module for the harness.

Structured logging built on structlog, shared by every component.

Example:
    >>> from host_evals.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("dispatcher.event.triggered", event_type="ping")
"""

from host_evals.observability.logging import (
    bind_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "bind_context",
    "configure_logging",
    "get_logger",
]
