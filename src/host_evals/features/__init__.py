"""Feature tracking engine.

Modules:
    registry: Immutable catalog of trackable MCP features.
    tracker: Pass/fail table with pending-event and confirmation timers.
    dispatcher: Trigger logic per event class.
    report: Pass/fail summary for get_result.

Example:
    >>> from host_evals.features import FeatureTracker, build_report
    >>> tracker = FeatureTracker()
    >>> build_report(tracker.features_status).passed
    0
"""

from host_evals.features.dispatcher import EventDispatcher
from host_evals.features.registry import FeatureRegistry, default_registry
from host_evals.features.report import build_report, render_report
from host_evals.features.tracker import Confirmation, FeatureTracker, PendingEvent

__all__ = [
    "Confirmation",
    "EventDispatcher",
    "FeatureRegistry",
    "FeatureTracker",
    "PendingEvent",
    "build_report",
    "default_registry",
    "render_report",
]
