"""Per-event-type trigger logic for the trigger_event and callback tools.

Every triggerable event falls in one confirmation class, checked in this
order:

1. capability-gated (``roots/list``, ``sampling/createMessage``,
   ``elicitation/create``): fired only when the host negotiated the
   capability, as a background request that marks the feature passed
   once the host answers;
2. callback-confirmed (list_changed and resources/updated
   notifications): a pending event is recorded and resolved when the host
   calls the expected passive method;
3. immediate (``ping``/``pong``): a ping round-trip passes both at once;
4. message-content (progress and message notifications): a fresh random
   value is sent and the operator must echo it through ``callback``.

Anything else is an ``UnknownEventError``.
"""

from __future__ import annotations

import asyncio
import random
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import anyio
import structlog

from host_evals.config import HarnessConfig
from host_evals.errors import UnknownCallbackError, UnknownEventError
from host_evals.features.tracker import FeatureTracker
from host_evals.models.constants import (
    NOTIFICATION_LOGGER_NAME,
    TEST_RESOURCE_URI,
)
from host_evals.models.entities import ToolReply
from host_evals.models.enums import EventClass, TriggerStatus
from host_evals.observability import get_logger

if TYPE_CHECKING:
    from host_evals.mcp.channel import HostChannel

__all__ = ["EventDispatcher", "gated_request_params"]

ASK_USER_INPUT_TEXT = (
    "Please ask user to input the following message to continue. "
    'if cant get this message, input "continue" to skip this step. '
    'if user input "continue", you should skip this step. if user input the message, '
    'you should call the tool "callback", pass the raw message (ensure the message is '
    "only include user input content) to confirm that the message has been received "
    "and processed by the client."
)

SAMPLING_PROMPT = "Who are you?"
SAMPLING_MAX_TOKENS = 100
ELICITATION_MESSAGE = "Can you get this message?"
ELICITATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "isGetElicitation": {
            "type": "boolean",
            "title": "Can get elicitation",
            "description": "Can you get elicitation action?",
        },
    },
    "required": ["isGetElicitation"],
}


def gated_request_params(event_type: str) -> dict[str, Any] | None:
    """Request params for a capability-gated event."""
    if event_type == "sampling/createMessage":
        return {
            "messages": [
                {"role": "user", "content": {"type": "text", "text": SAMPLING_PROMPT}},
            ],
            "maxTokens": SAMPLING_MAX_TOKENS,
        }
    if event_type == "elicitation/create":
        return {"message": ELICITATION_MESSAGE, "requestedSchema": ELICITATION_SCHEMA}
    return None


class EventDispatcher:
    """Fires harness-initiated events and accounts for the host's reaction.

    One dispatcher serves one session. Capability-gated requests run as
    background tasks owned by the dispatcher; ``close()`` cancels them
    when the session ends.

    Example:
        ::

            dispatcher = EventDispatcher(FeatureTracker())
            reply = await dispatcher.trigger("notifications/tools/list_changed", channel)
            assert reply.data["status"] == "triggered"
    """

    def __init__(
        self,
        tracker: FeatureTracker,
        config: HarnessConfig | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.tracker = tracker
        self.registry = tracker.registry
        self.config = config or HarnessConfig()
        self._logger = logger or get_logger(__name__)
        self._background: set[asyncio.Task[None]] = set()

    async def trigger(self, event_type: str, channel: HostChannel) -> ToolReply:
        """Fire ``event_type`` at the host behind ``channel``.

        Raises:
            UnknownEventError: If the event has no trigger path.
        """
        event_class = self.registry.classify(event_type)
        self._logger.info(
            "dispatcher.trigger",
            event_type=event_type,
            event_class=event_class.value if event_class else None,
        )
        if event_class is EventClass.CAPABILITY_GATED:
            return self._trigger_gated(event_type, channel)
        if event_class is EventClass.CALLBACK_CONFIRMED:
            return await self._trigger_callback_confirmed(event_type, channel)
        if event_class is EventClass.IMMEDIATE:
            return await self._trigger_immediate(event_type, channel)
        if event_class is EventClass.MESSAGE_CONTENT:
            return await self._trigger_message_content(event_type, channel)
        raise UnknownEventError(event_type)

    def callback(self, event_name: str, message: str | None = None) -> ToolReply:
        """Check a value the operator read from the host UI.

        Raises:
            UnknownCallbackError: If ``event_name`` has no echoed value.
        """
        if event_name not in self.registry.message_content:
            raise UnknownCallbackError(event_name)
        matched = self.tracker.confirm_message(event_name, message)
        return ToolReply(
            text=f"Callback received: {event_name}, message: {message}",
            data={"event_name": event_name, "message": message, "matched": matched},
        )

    async def drain(self) -> None:
        """Wait for every in-flight background action to finish."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight background actions."""
        for task in list(self._background):
            task.cancel()
        await self.drain()

    @property
    def in_flight(self) -> int:
        return len(self._background)

    # Event classes

    def _trigger_gated(self, event_type: str, channel: HostChannel) -> ToolReply:
        capability = self.registry.capability_gated[event_type]
        if not channel.supports(capability):
            self._logger.info(
                "dispatcher.capability.missing", event_type=event_type, capability=capability
            )
            return _unsupported(event_type)
        self._spawn(
            event_type,
            lambda: channel.request(event_type, gated_request_params(event_type), related=False),
        )
        return _triggered(event_type)

    async def _trigger_callback_confirmed(
        self, event_type: str, channel: HostChannel
    ) -> ToolReply:
        self.tracker.record_pending_event(event_type)
        params = None
        if event_type == "notifications/resources/updated":
            params = {"uri": TEST_RESOURCE_URI}
        try:
            await channel.notify(event_type, params)
        except Exception as exc:
            self.tracker.clear_pending_event(event_type)
            self._logger.warning("dispatcher.send.failed", event_type=event_type, error=str(exc))
            return _unsupported(event_type)
        return _triggered(event_type)

    async def _trigger_immediate(self, event_type: str, channel: HostChannel) -> ToolReply:
        try:
            with anyio.fail_after(self.config.host_request_timeout):
                await channel.request("ping")
        except Exception as exc:
            self._logger.warning("dispatcher.ping.failed", event_type=event_type, error=str(exc))
            return _unsupported(event_type)
        self.tracker.record_feature_call(event_type, True)
        self.tracker.record_feature_call(self.registry.immediate[event_type], True)
        return _triggered(event_type)

    async def _trigger_message_content(
        self, event_type: str, channel: HostChannel
    ) -> ToolReply:
        if event_type == "notifications/progress":
            value = str(random.random())
            params: dict[str, Any] = {
                "progressToken": channel.progress_token,
                "progress": float(value),
                "total": 1.0,
                "message": value,
            }
        else:
            value = str(uuid.uuid4())
            params = {
                "level": "info",
                "logger": NOTIFICATION_LOGGER_NAME,
                "data": {"message": value},
            }
        self.tracker.record_expected_message(event_type, value)
        try:
            await channel.notify(event_type, params)
        except Exception as exc:
            self.tracker.clear_confirmation(event_type)
            self._logger.warning("dispatcher.send.failed", event_type=event_type, error=str(exc))
            return ToolReply(
                text=f"Failed to send {event_type}: {exc}. Please continue to the next step.",
                data={"event_type": event_type, "status": TriggerStatus.ERROR.value},
            )
        return ToolReply(
            text=ASK_USER_INPUT_TEXT,
            data={
                "event_type": event_type,
                "status": TriggerStatus.AWAITING_CONFIRMATION.value,
            },
        )

    def _spawn(self, event_type: str, action: Callable[[], Awaitable[Any]]) -> None:
        task = asyncio.create_task(self._run_gated(event_type, action))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_gated(self, event_type: str, action: Callable[[], Awaitable[Any]]) -> None:
        # Sampling and elicitation wait on a human, so the long window applies
        try:
            with anyio.fail_after(self.config.confirmation_timeout):
                await action()
        except Exception as exc:
            self._logger.warning("dispatcher.request.failed", event_type=event_type, error=str(exc))
            return
        self.tracker.record_feature_call(event_type, True)
        self._logger.info("dispatcher.request.answered", event_type=event_type)


def _triggered(event_type: str) -> ToolReply:
    return ToolReply(
        text=f"Event triggered successfully! {event_type}",
        data={"event_type": event_type, "status": TriggerStatus.TRIGGERED.value},
    )


def _unsupported(event_type: str) -> ToolReply:
    return ToolReply(
        text=f"Client does not support {event_type}, please continue to the next step.",
        data={"event_type": event_type, "status": TriggerStatus.UNSUPPORTED.value},
    )
