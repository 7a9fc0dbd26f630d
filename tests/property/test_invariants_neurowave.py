"""
Property-based tests for evaluator and state machine invariants.
"""

import math

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from neurowave.cognition.emotion_state_machine import EmotionState, EmotionStateMachine
from neurowave.cognition.wave_evaluator import WaveEvaluator
from neurowave.core.profile import EvaluationSettings, TargetProfile
from neurowave.core.wave_sample import WaveSample

SETTINGS = EvaluationSettings()
PROFILE = TargetProfile()

any_float = st.floats(allow_nan=True, allow_infinity=True)
unit_float = st.floats(min_value=0.0, max_value=1.0, allow_nan=False, allow_infinity=False)
band_vector = st.lists(any_float, min_size=5, max_size=5)
huge_int = st.integers(min_value=-(10**400), max_value=10**400)


@given(bands=st.lists(any_float, min_size=0, max_size=8))
def test_sample_bands_always_finite_and_bounded(bands) -> None:
    sample = WaveSample(timestamp=0.0, bands=bands)
    assert sample.bands.shape == (5,)
    assert np.isfinite(sample.bands).all()
    assert ((sample.bands >= 0.0) & (sample.bands <= 1.0)).all()


@given(bands=st.lists(st.one_of(any_float, huge_int), min_size=5, max_size=5))
def test_sample_bands_bounded_for_any_numbers(bands) -> None:
    sample = WaveSample(timestamp=0.0, bands=bands)
    assert np.isfinite(sample.bands).all()
    assert ((sample.bands >= 0.0) & (sample.bands <= 1.0)).all()


@given(bands=band_vector, index=st.integers(min_value=0, max_value=4))
def test_non_finite_band_scored_as_zero(bands, index) -> None:
    bands = list(bands)
    bands[index] = math.nan
    with_nan = WaveEvaluator(PROFILE, SETTINGS).band_scores(bands)
    bands[index] = 0.0
    with_zero = WaveEvaluator(PROFILE, SETTINGS).band_scores(bands)
    assert np.array_equal(with_nan, with_zero)


@settings(max_examples=50, deadline=None)
@given(samples=st.lists(band_vector, min_size=1, max_size=30))
def test_scores_stay_in_unit_interval(samples) -> None:
    evaluator = WaveEvaluator(PROFILE, SETTINGS)
    for bands in samples:
        smoothed = evaluator.evaluate(bands)
        assert math.isfinite(smoothed)
        assert 0.0 <= evaluator.raw_score <= 1.0
        assert 0.0 <= smoothed <= 1.0


@given(previous=unit_float, bands=st.lists(unit_float, min_size=5, max_size=5))
def test_smoothing_update_rule(previous, bands) -> None:
    evaluator = WaveEvaluator(PROFILE, SETTINGS)
    evaluator.smoothed_score = previous
    smoothed = evaluator.evaluate(bands)
    alpha = SETTINGS.smoothing_alpha
    expected = alpha * evaluator.raw_score + (1.0 - alpha) * previous
    assert math.isclose(smoothed, expected, rel_tol=1e-9, abs_tol=1e-12)


@settings(max_examples=30, deadline=None)
@given(bands=st.lists(unit_float, min_size=5, max_size=5))
def test_constant_input_converges_monotonically(bands) -> None:
    evaluator = WaveEvaluator(PROFILE, SETTINGS)
    evaluator.evaluate(bands)
    target = evaluator.raw_score
    gap = abs(target - evaluator.smoothed_score)
    for _ in range(60):
        evaluator.evaluate(bands)
        new_gap = abs(target - evaluator.smoothed_score)
        assert new_gap <= gap + 1e-12
        gap = new_gap


@settings(max_examples=50, deadline=None)
@given(
    steps=st.lists(st.tuples(any_float, any_float), min_size=1, max_size=50),
    rate=st.floats(min_value=0.0, max_value=50.0),
    baseline=unit_float,
    stimulate=st.booleans(),
)
def test_instability_stays_in_unit_interval(steps, rate, baseline, stimulate) -> None:
    profile = TargetProfile(instability_rate=rate, baseline_instability=baseline)
    machine = EmotionStateMachine(profile, SETTINGS)
    if stimulate:
        machine.start_stimulation()
    for metric, dt in steps:
        machine.update(metric, dt)
        assert 0.0 <= machine.instability <= 1.0
        assert 0.0 <= machine.agitation_level <= 1.0
        assert math.isfinite(machine.state_time)


@given(steps=st.lists(st.tuples(unit_float, unit_float), min_size=1, max_size=50))
def test_idle_never_changes_without_stimulation(steps) -> None:
    machine = EmotionStateMachine(PROFILE, SETTINGS)
    for metric, dt in steps:
        assert machine.update(metric, dt) == EmotionState.IDLE


@given(steps=st.lists(st.tuples(unit_float, unit_float), min_size=1, max_size=50))
def test_critical_failure_is_absorbing(steps) -> None:
    machine = EmotionStateMachine(PROFILE, SETTINGS)
    machine.start_stimulation()
    machine.instability = 1.0
    machine.update(0.0, 0.01)
    assert machine.state == EmotionState.CRITICAL_FAILURE
    for metric, dt in steps:
        assert machine.update(metric, dt) == EmotionState.CRITICAL_FAILURE
