"""
Shared pytest fixtures and configuration for neurowave tests.

This module provides common fixtures, marks, and configuration
for deterministic, reproducible testing across the test suite.
"""

from __future__ import annotations

import os
import random
from typing import TYPE_CHECKING, Any

import numpy as np
import pytest

from neurowave.core.profile import EvaluationSettings, TargetProfile
from neurowave.observability.metrics import MetricsExporter

if TYPE_CHECKING:
    from collections.abc import Callable

    from neurowave.utils.time_provider import FakeTimeProvider

# ============================================================
# Pytest Hooks and Configuration
# ============================================================


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")


# ============================================================
# Deterministic Seed Fixtures
# ============================================================


def _set_random_seeds(seed: int) -> None:
    random.seed(seed)
    np.random.seed(seed)


_DEFAULT_SEED = 42


@pytest.fixture(autouse=True, scope="function")
def _ensure_deterministic_random_state() -> None:
    """Reset random seeds before every test."""
    _set_random_seeds(_DEFAULT_SEED)


@pytest.fixture
def deterministic_seed() -> int:
    _set_random_seeds(_DEFAULT_SEED)
    return _DEFAULT_SEED


# ============================================================
# Environment Isolation Fixtures
# ============================================================


@pytest.fixture(scope="function", autouse=False)
def isolate_environment() -> Any:
    """Snapshot os.environ before the test and restore it after."""
    import copy

    original_env = copy.deepcopy(dict(os.environ))

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================
# Domain Fixtures
# ============================================================

# Profile used by the end-to-end scenarios: a distinctive target pattern
# with a generous tolerance.
SCENARIO_TARGETS = (0.1, 0.2, 0.6, 0.6, 0.2)


@pytest.fixture
def default_settings() -> EvaluationSettings:
    """Calibration-default evaluation settings."""
    return EvaluationSettings()


@pytest.fixture
def default_profile() -> TargetProfile:
    """Calibration-default target profile."""
    return TargetProfile()


@pytest.fixture
def scenario_settings() -> EvaluationSettings:
    """Settings for scenario tests: 30 Hz, success 0.8, overload 0.2, fail 0.9.

    The short time constant lets the first matching tick clear the success
    threshold, since the smoothed score starts from 0.
    """
    return EvaluationSettings(
        sample_rate=30.0,
        smoothing_tau=0.01,
        success_threshold=0.8,
        overload_threshold=0.2,
        instability_fail_threshold=0.9,
        instability_recovery_rate=0.2,
    )


@pytest.fixture
def scenario_profile() -> TargetProfile:
    """Target [0.1, 0.2, 0.6, 0.6, 0.2], tolerance 0.2, min stimulation 2s."""
    return TargetProfile(
        profile_id="scenario",
        display_name="Scenario Citizen",
        targets=SCENARIO_TARGETS,
        tolerances=(0.2,) * 5,
        weights=(1.0,) * 5,
        baseline_instability=0.0,
        instability_rate=0.5,
        min_stimulation_time=2.0,
        recovery_time=5.0,
    )


@pytest.fixture
def fast_settings() -> EvaluationSettings:
    """High sample rate for scheduler tests that run on the real clock."""
    return EvaluationSettings(sample_rate=200.0, smoothing_tau=0.05)


@pytest.fixture
def metrics() -> MetricsExporter:
    """Metrics exporter with a private registry."""
    return MetricsExporter()


@pytest.fixture
def fake_time() -> FakeTimeProvider:
    """A FakeTimeProvider starting at time 0."""
    from neurowave.utils.time_provider import FakeTimeProvider

    return FakeTimeProvider(start_time=0.0)


@pytest.fixture
def run_ticks() -> Callable[..., list[Any]]:
    """Drive an actor runtime synchronously for a number of seconds.

    Returns the list of states after each tick.
    """

    def _run(actor: Any, seconds: float, dt: float | None = None) -> list[Any]:
        dt = dt if dt is not None else actor.settings.sample_interval
        ticks = int(round(seconds / dt))
        return [actor.tick(dt) for _ in range(ticks)]

    return _run
