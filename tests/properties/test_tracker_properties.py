"""Property-based tests for the feature tracker status table.

Invariants: a passed feature never reverts except through reset; reset keeps
exactly the protected features that had passed.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from host_evals.features.registry import PROTECTED_FEATURES, default_registry
from host_evals.features.tracker import FeatureTracker

_FEATURES = list(default_registry().feature_ids)


def st_calls() -> st.SearchStrategy[list[tuple[str, bool]]]:
    """Generate sequences of (feature id, success) outcomes, including unknown ids."""
    feature = st.one_of(st.sampled_from(_FEATURES), st.sampled_from(["bogus", "tools/delete"]))
    return st.lists(st.tuples(feature, st.booleans()), max_size=60)


class TestMonotonicStatus:
    """Invariant: pass flags only move from unpassed to passed."""

    @given(calls=st_calls())
    def test_passed_equals_any_success(self, calls: list[tuple[str, bool]]) -> None:
        """A feature is passed iff at least one recorded outcome succeeded."""
        tracker = FeatureTracker()
        for feature, success in calls:
            tracker.record_feature_call(feature, success)

        succeeded = {feature for feature, success in calls if success}
        for name, status in tracker.features_status.items():
            assert status.is_passed == (name in succeeded)

    @given(calls=st_calls())
    def test_table_keys_never_change(self, calls: list[tuple[str, bool]]) -> None:
        tracker = FeatureTracker()
        for feature, success in calls:
            tracker.record_feature_call(feature, success)
        assert list(tracker.features_status) == _FEATURES


class TestResetProperties:
    """Invariant: reset keeps only protected features that had passed."""

    @given(calls=st_calls())
    def test_reset_keeps_protected_only(self, calls: list[tuple[str, bool]]) -> None:
        tracker = FeatureTracker()
        for feature, success in calls:
            tracker.record_feature_call(feature, success)
        before = {name for name, status in tracker.features_status.items() if status.is_passed}

        tracker.reset()

        after = {name for name, status in tracker.features_status.items() if status.is_passed}
        assert after == before & PROTECTED_FEATURES
