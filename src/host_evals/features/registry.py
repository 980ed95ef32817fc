"""Catalog of trackable MCP features.

Feature ids are MCP method or notification names split into two kinds:

- passive features are requests the host sends to the harness; receiving
  one is proof the host implements it;
- active features are things the harness sends to the host, which pass
  only once the expected host reaction is observed.

The catalog is an immutable value handed to each tracker and dispatcher
at construction, so concurrent sessions never share mutable registry data.

Example:
    >>> registry = default_registry()
    >>> registry.expected_callback("notifications/tools/list_changed")
    'tools/list'
    >>> "resources/list" in registry
    True
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from host_evals.models.enums import EventClass

__all__ = [
    "ACTIVE_FEATURES",
    "CAPABILITY_GATED_EVENTS",
    "EVENT_CALLBACK_MAP",
    "FeatureRegistry",
    "IMMEDIATE_EVENTS",
    "MESSAGE_CONTENT_EVENTS",
    "PASSIVE_FEATURES",
    "PROTECTED_FEATURES",
    "default_registry",
]

PASSIVE_FEATURES: tuple[str, ...] = (
    "tools/list",
    "tools/call",
    "resources/list",
    "resources/read",
    "resources/templates/list",
    "resources/subscribe",
    "resources/unsubscribe",
    "prompts/list",
    "prompts/get",
    "roots/list",
    "completion/complete",
    "logging/setLevel",
    "ping",
    "pong",
)

ACTIVE_FEATURES: tuple[str, ...] = (
    "notifications/progress",
    "notifications/message",
    "notifications/cancelled",
    "notifications/initialized",
    "notifications/resources/list_changed",
    "notifications/resources/updated",
    "notifications/tools/list_changed",
    "notifications/prompts/list_changed",
    "notifications/roots/list_changed",
    "notifications/logging/message",
    "sampling/createMessage",
    "elicitation/create",
    "ping",
    "pong",
)

# Active event -> passive method the host is expected to call in reaction
EVENT_CALLBACK_MAP: Mapping[str, str] = MappingProxyType(
    {
        "notifications/resources/list_changed": "resources/list",
        "notifications/prompts/list_changed": "prompts/list",
        "notifications/tools/list_changed": "tools/list",
        "notifications/resources/updated": "resources/read",
    }
)

# Event -> client capability that must be negotiated before firing
CAPABILITY_GATED_EVENTS: Mapping[str, str] = MappingProxyType(
    {
        "roots/list": "roots",
        "sampling/createMessage": "sampling",
        "elicitation/create": "elicitation",
    }
)

# Event -> feature that passes together with it
IMMEDIATE_EVENTS: Mapping[str, str] = MappingProxyType({"ping": "pong", "pong": "ping"})

MESSAGE_CONTENT_EVENTS: frozenset[str] = frozenset(
    {"notifications/progress", "notifications/message"}
)

# Never cleared by reset: the handshake and the tool plumbing the harness itself depends on
PROTECTED_FEATURES: frozenset[str] = frozenset(
    {"notifications/initialized", "tools/list", "tools/call"}
)


@dataclass(frozen=True)
class FeatureRegistry:
    """Immutable feature catalog.

    Attributes:
        passive: Host-invoked request methods
        active: Harness-initiated notifications and requests
        event_callbacks: Active event -> expected passive reaction
        capability_gated: Event -> required client capability name
        immediate: Event -> paired feature passed alongside it
        message_content: Events confirmed by an echoed value
        protected: Features kept passed across reset
    """

    passive: tuple[str, ...] = PASSIVE_FEATURES
    active: tuple[str, ...] = ACTIVE_FEATURES
    event_callbacks: Mapping[str, str] = field(default_factory=lambda: EVENT_CALLBACK_MAP)
    capability_gated: Mapping[str, str] = field(default_factory=lambda: CAPABILITY_GATED_EVENTS)
    immediate: Mapping[str, str] = field(default_factory=lambda: IMMEDIATE_EVENTS)
    message_content: frozenset[str] = MESSAGE_CONTENT_EVENTS
    protected: frozenset[str] = PROTECTED_FEATURES

    def __post_init__(self) -> None:
        known = set(self.passive) | set(self.active)
        for event_type, callback in self.event_callbacks.items():
            if event_type not in self.active or callback not in self.passive:
                raise ValueError(
                    f"Callback mapping {event_type!r} -> {callback!r} must map an active "
                    "feature to a passive one"
                )
        unknown = (set(self.immediate) | set(self.immediate.values()) | self.protected) - known
        if unknown:
            raise ValueError(f"Unknown feature ids in registry: {sorted(unknown)}")

    @property
    def feature_ids(self) -> tuple[str, ...]:
        """All tracked ids, passive first, without duplicates."""
        return tuple(dict.fromkeys((*self.passive, *self.active)))

    @property
    def triggerable_events(self) -> tuple[str, ...]:
        """Event types accepted by the trigger_event tool, in catalog order."""
        candidates = dict.fromkeys((*self.active, *self.capability_gated))
        return tuple(event for event in candidates if self.classify(event) is not None)

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self.passive or feature_id in self.active

    def __iter__(self) -> Iterator[str]:
        return iter(self.feature_ids)

    def __len__(self) -> int:
        return len(self.feature_ids)

    def is_passive(self, feature_id: str) -> bool:
        return feature_id in self.passive

    def is_active(self, feature_id: str) -> bool:
        return feature_id in self.active

    def expected_callback(self, event_type: str) -> str | None:
        """Passive method the host should call after ``event_type``, if any."""
        return self.event_callbacks.get(event_type)

    def classify(self, event_type: str) -> EventClass | None:
        """Return how an event is confirmed, checking classes in dispatch priority order."""
        if event_type in self.capability_gated:
            return EventClass.CAPABILITY_GATED
        if event_type in self.event_callbacks:
            return EventClass.CALLBACK_CONFIRMED
        if event_type in self.immediate:
            return EventClass.IMMEDIATE
        if event_type in self.message_content:
            return EventClass.MESSAGE_CONTENT
        return None


_DEFAULT_REGISTRY = FeatureRegistry()


def default_registry() -> FeatureRegistry:
    """Return the shared default catalog (immutable, safe to share across sessions)."""
    return _DEFAULT_REGISTRY
