"""Configuration for the host evals harness."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from host_evals import __version__
from host_evals.models.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_HOST_REQUEST_TIMEOUT,
    DEFAULT_PENDING_EVENT_TIMEOUT,
    SERVER_NAME,
)

ENV_PENDING_EVENT_TIMEOUT = "HOST_EVALS_PENDING_EVENT_TIMEOUT"
ENV_CONFIRMATION_TIMEOUT = "HOST_EVALS_CONFIRMATION_TIMEOUT"
ENV_HOST_REQUEST_TIMEOUT = "HOST_EVALS_HOST_REQUEST_TIMEOUT"


class HarnessConfig(BaseModel):
    server_name: str = Field(default=SERVER_NAME, description="Server name sent in initialize")
    server_version: str = Field(default=__version__, description="Server version sent in initialize")
    pending_event_timeout: float = Field(
        default=DEFAULT_PENDING_EVENT_TIMEOUT,
        gt=0,
        description="Seconds a callback-confirmed event waits for the host's follow-up call",
    )
    confirmation_timeout: float = Field(
        default=DEFAULT_CONFIRMATION_TIMEOUT,
        gt=0,
        description="Seconds a message-content value stays confirmable through the callback tool",
    )
    host_request_timeout: float = Field(
        default=DEFAULT_HOST_REQUEST_TIMEOUT,
        gt=0,
        description="Seconds to wait for the host to answer a ping issued by trigger_event",
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> HarnessConfig:
        """Build a config, overriding defaults with HOST_EVALS_* variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, float] = {}
        for field_name, var in (
            ("pending_event_timeout", ENV_PENDING_EVENT_TIMEOUT),
            ("confirmation_timeout", ENV_CONFIRMATION_TIMEOUT),
            ("host_request_timeout", ENV_HOST_REQUEST_TIMEOUT),
        ):
            value = env.get(var, "").strip()
            if value:
                overrides[field_name] = float(value)
        return cls.model_validate(overrides)
