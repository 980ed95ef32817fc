"""Shared pytest fixtures for harness tests."""

from __future__ import annotations

import pytest

from host_evals.features.registry import FeatureRegistry, default_registry

# Load host_evals.testing fixtures (tracker, dispatcher, stepper, harness, mock_channel)
pytest_plugins = ["host_evals.testing.fixtures"]


@pytest.fixture
def registry() -> FeatureRegistry:
    return default_registry()
