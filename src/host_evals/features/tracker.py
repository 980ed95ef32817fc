"""Feature status table and pending-event correlation.

The tracker answers two questions for one protocol session:

1. Which features has the host proven it implements?  Every feature in
   the registry has a pass flag that starts unpassed. A flag only moves
   from unpassed to passed; later failures never clear a success.
2. Which harness-initiated events are still waiting for the host's
   reaction?  A callback-confirmed event records a ``PendingEvent``
   keyed by event type, resolved when the host calls the expected
   method. Message-content events record a ``Confirmation`` holding the
   random value the operator must echo back.

Both kinds of awaiting state share one expiry policy: each entry owns an
``asyncio`` timer handle that silently evicts it when its window elapses.
The handle is cancelled whenever the entry leaves the map through any
other path, and the expiry callback checks entry identity so a timer
armed for a replaced entry never evicts its successor.

Correlation is by expected method name. When two pending events expect
the same method, the one registered first wins; re-recording an event
moves it to the back of that order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from host_evals.features.registry import FeatureRegistry, default_registry
from host_evals.models.constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_PENDING_EVENT_TIMEOUT,
)
from host_evals.models.entities import FeatureStatus
from host_evals.observability import get_logger

__all__ = ["Confirmation", "FeatureTracker", "PendingEvent"]


@dataclass
class PendingEvent:
    """A triggered event waiting for the host to call ``expected_callback``."""

    event_type: str
    expected_callback: str
    timestamp: float = field(default_factory=time.time)
    data: Any = None
    expiry_handle: asyncio.TimerHandle | None = field(default=None, repr=False, compare=False)


@dataclass
class Confirmation:
    """A message-content event waiting for the operator to echo ``expected_value``."""

    event_type: str
    expected_value: str
    timestamp: float = field(default_factory=time.time)
    expiry_handle: asyncio.TimerHandle | None = field(default=None, repr=False, compare=False)


class FeatureTracker:
    """Per-session pass/fail table plus awaiting-state bookkeeping.

    Timers are armed on the running event loop, so recording pending
    events and confirmations must happen from inside a coroutine.

    Example:
        >>> tracker = FeatureTracker()
        >>> tracker.record_feature_call("tools/list", True)
        >>> tracker.is_passed("tools/list")
        True
    """

    def __init__(
        self,
        registry: FeatureRegistry | None = None,
        pending_timeout: float = DEFAULT_PENDING_EVENT_TIMEOUT,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            registry: Feature catalog; defaults to the built-in MCP catalog.
            pending_timeout: Seconds before an unresolved pending event is evicted.
            confirmation_timeout: Seconds before an unconfirmed value is evicted.
            logger: Logger to use; defaults to this module's logger.
        """
        self.registry = registry or default_registry()
        self.pending_timeout = pending_timeout
        self.confirmation_timeout = confirmation_timeout
        self._logger = logger or get_logger(__name__)
        self._status: dict[str, bool] = dict.fromkeys(self.registry.feature_ids, False)
        self._pending: dict[str, PendingEvent] = {}
        self._confirmations: dict[str, Confirmation] = {}

    # Status table

    def record_feature_call(self, feature_id: str, success: bool) -> None:
        """Record the outcome of exercising a feature.

        No-op for unknown ids and for features that already passed, so the
        same feature can be signalled from several paths without a later
        failure overwriting an earlier success.
        """
        current = self._status.get(feature_id)
        if current is None or current:
            return
        self._status[feature_id] = success
        if success:
            self._logger.info("tracker.feature.passed", feature=feature_id)

    def is_passed(self, feature_id: str) -> bool:
        return self._status.get(feature_id, False)

    @property
    def features_status(self) -> Mapping[str, FeatureStatus]:
        """Snapshot of the status table keyed by feature id."""
        return {
            name: FeatureStatus(name=name, is_passed=passed)
            for name, passed in self._status.items()
        }

    def reset(self) -> None:
        """Clear every pass flag except the registry's protected features.

        Pending events and confirmations are left alone; callers clear them
        with clear_pending_events() and clear_confirmations().
        """
        for name in self._status:
            if name not in self.registry.protected:
                self._status[name] = False
        self._logger.info("tracker.reset", protected=sorted(self.registry.protected))

    # Pending events

    @property
    def pending_events(self) -> Mapping[str, PendingEvent]:
        return dict(self._pending)

    def record_pending_event(self, event_type: str, data: Any = None) -> PendingEvent | None:
        """Start waiting for the host's reaction to ``event_type``.

        Returns the new entry, or None when the event has no expected
        callback. An existing entry for the same event is replaced and its
        timer cancelled.
        """
        expected = self.registry.expected_callback(event_type)
        if expected is None:
            return None
        self._discard_pending(event_type)
        pending = PendingEvent(event_type=event_type, expected_callback=expected, data=data)
        loop = asyncio.get_running_loop()
        pending.expiry_handle = loop.call_later(
            self.pending_timeout, self._expire_pending, event_type, pending
        )
        self._pending[event_type] = pending
        self._logger.debug(
            "tracker.pending.recorded",
            event_type=event_type,
            expected_callback=expected,
            timeout=self.pending_timeout,
        )
        return pending

    def get_pending_event_by_method(self, method: str) -> PendingEvent | None:
        """First pending event (in registration order) expecting ``method``."""
        for pending in self._pending.values():
            if pending.expected_callback == method:
                return pending
        return None

    def clear_pending_event(self, event_type: str) -> PendingEvent | None:
        """Cancel the timer and drop the entry for ``event_type``; return it if present."""
        return self._discard_pending(event_type)

    def clear_pending_events(self) -> None:
        for event_type in list(self._pending):
            self._discard_pending(event_type)

    def _discard_pending(self, event_type: str) -> PendingEvent | None:
        pending = self._pending.pop(event_type, None)
        if pending is not None and pending.expiry_handle is not None:
            pending.expiry_handle.cancel()
        return pending

    def _expire_pending(self, event_type: str, pending: PendingEvent) -> None:
        if self._pending.get(event_type) is not pending:
            return
        del self._pending[event_type]
        self._logger.info(
            "tracker.pending.expired",
            event_type=event_type,
            expected_callback=pending.expected_callback,
        )

    def resolve_inbound_call(self, method: str) -> str | None:
        """Account for a request or notification received from the host.

        The method itself is marked passed. If a pending event was waiting
        for this method, it is cleared and its event type marked passed.

        Returns:
            The resolved event type, or None.
        """
        self.record_feature_call(method, True)
        pending = self.get_pending_event_by_method(method)
        if pending is None:
            return None
        self._discard_pending(pending.event_type)
        self._logger.info(
            "tracker.pending.resolved",
            event_type=pending.event_type,
            method=method,
            elapsed=round(time.time() - pending.timestamp, 3),
        )
        self.record_feature_call(pending.event_type, True)
        return pending.event_type

    # Message-content confirmations

    @property
    def confirmations(self) -> Mapping[str, Confirmation]:
        return dict(self._confirmations)

    def record_expected_message(self, event_type: str, value: str) -> Confirmation:
        """Store the value the host must surface for ``event_type``, replacing any older one."""
        self._discard_confirmation(event_type)
        confirmation = Confirmation(event_type=event_type, expected_value=value)
        loop = asyncio.get_running_loop()
        confirmation.expiry_handle = loop.call_later(
            self.confirmation_timeout, self._expire_confirmation, event_type, confirmation
        )
        self._confirmations[event_type] = confirmation
        return confirmation

    def expected_message(self, event_type: str) -> str | None:
        confirmation = self._confirmations.get(event_type)
        return confirmation.expected_value if confirmation else None

    def confirm_message(self, event_type: str, message: str | None) -> bool:
        """Compare an echoed value against the latest stored one.

        A match marks the feature passed and consumes the confirmation.
        A mismatch changes nothing so the operator can retry.
        """
        expected = self.expected_message(event_type)
        if expected is None or message != expected:
            self._logger.info(
                "tracker.confirmation.mismatch",
                event_type=event_type,
                expected=expected,
                actual=message,
            )
            return False
        self._discard_confirmation(event_type)
        self.record_feature_call(event_type, True)
        return True

    def clear_confirmation(self, event_type: str) -> Confirmation | None:
        return self._discard_confirmation(event_type)

    def clear_confirmations(self) -> None:
        for event_type in list(self._confirmations):
            self._discard_confirmation(event_type)

    def _discard_confirmation(self, event_type: str) -> Confirmation | None:
        confirmation = self._confirmations.pop(event_type, None)
        if confirmation is not None and confirmation.expiry_handle is not None:
            confirmation.expiry_handle.cancel()
        return confirmation

    def _expire_confirmation(self, event_type: str, confirmation: Confirmation) -> None:
        if self._confirmations.get(event_type) is not confirmation:
            return
        del self._confirmations[event_type]
        self._logger.info("tracker.confirmation.expired", event_type=event_type)

    def close(self) -> None:
        """Cancel every timer; called when the session's transport closes."""
        self.clear_pending_events()
        self.clear_confirmations()
