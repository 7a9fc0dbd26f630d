"""Tests for the emotion state machine transition table and instability."""

import math

import pytest

from neurowave.cognition.emotion_state_machine import EmotionState, EmotionStateMachine
from neurowave.core.profile import EvaluationSettings, TargetProfile

# Default settings: success 0.75, overload 0.25, fail 0.8, recovery 0.2/s.
# Default profile: rate 0.5, min stimulation 2s, recovery time 5s.


@pytest.fixture
def machine(default_profile, default_settings) -> EmotionStateMachine:
    return EmotionStateMachine(default_profile, default_settings)


@pytest.fixture
def stimulated(machine) -> EmotionStateMachine:
    machine.start_stimulation()
    return machine


class TestExternalControl:
    """Tests for start/stop/reset."""

    def test_initial_state(self, machine) -> None:
        assert machine.state == EmotionState.IDLE
        assert machine.state_time == 0.0
        assert machine.instability == 0.0

    def test_baseline_instability_used(self, default_settings) -> None:
        machine = EmotionStateMachine(TargetProfile(baseline_instability=0.3), default_settings)
        assert machine.instability == pytest.approx(0.3)

    def test_start_only_from_idle(self, machine) -> None:
        machine.start_stimulation()
        assert machine.state == EmotionState.BEING_STIMULATED
        machine.update(1.0, 2.0)
        assert machine.state == EmotionState.STABILIZED
        machine.start_stimulation()
        assert machine.state == EmotionState.STABILIZED

    def test_stop_from_stimulated_and_agitated(self, stimulated) -> None:
        stimulated.stop_stimulation()
        assert stimulated.state == EmotionState.IDLE

        stimulated.start_stimulation()
        stimulated.update(0.0, 0.1)
        assert stimulated.state == EmotionState.AGITATED
        stimulated.stop_stimulation()
        assert stimulated.state == EmotionState.IDLE

    def test_stop_ignored_in_other_states(self, stimulated) -> None:
        stimulated.update(1.0, 2.0)
        assert stimulated.state == EmotionState.STABILIZED
        stimulated.stop_stimulation()
        assert stimulated.state == EmotionState.STABILIZED

    def test_reset_from_critical_failure(self, stimulated) -> None:
        stimulated.instability = 0.79
        stimulated.update(0.0, 1.0)
        assert stimulated.state == EmotionState.CRITICAL_FAILURE

        stimulated.reset()
        assert stimulated.state == EmotionState.IDLE
        assert stimulated.instability == 0.0
        assert stimulated.state_time == 0.0

    def test_reset_notifies_listeners(self, stimulated) -> None:
        events = []
        stimulated.add_listener(lambda old, new: events.append((old, new)))
        stimulated.reset()
        assert events == [(EmotionState.BEING_STIMULATED, EmotionState.IDLE)]

    def test_reset_from_idle_is_silent(self, machine) -> None:
        events = []
        machine.add_listener(lambda old, new: events.append((old, new)))
        machine.reset()
        assert events == []


class TestTransitions:
    """Tests for the per-state transition rules."""

    def test_stabilizes_after_min_stimulation(self, stimulated) -> None:
        stimulated.update(1.0, 1.0)
        assert stimulated.state == EmotionState.BEING_STIMULATED
        stimulated.update(1.0, 1.0)
        assert stimulated.state == EmotionState.STABILIZED
        assert stimulated.state_time == 0.0

    def test_success_before_min_time_keeps_stimulating(self, stimulated) -> None:
        for _ in range(10):
            stimulated.update(1.0, 0.1)
        assert stimulated.state == EmotionState.BEING_STIMULATED

    def test_overload_agitates(self, stimulated) -> None:
        stimulated.update(0.1, 0.1)
        assert stimulated.state == EmotionState.AGITATED

    def test_middle_metric_keeps_stimulating(self, stimulated) -> None:
        stimulated.update(0.5, 5.0)
        assert stimulated.state == EmotionState.BEING_STIMULATED

    def test_stabilized_drops_back_when_score_falls(self, stimulated) -> None:
        stimulated.update(1.0, 2.0)
        stimulated.update(0.5, 0.1)
        assert stimulated.state == EmotionState.BEING_STIMULATED

    def test_agitated_to_recovering_on_success(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        stimulated.update(0.9, 0.1)
        assert stimulated.state == EmotionState.RECOVERING

    def test_recovering_to_stabilized(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        stimulated.update(0.9, 0.1)
        stimulated.update(0.9, 4.0)
        assert stimulated.state == EmotionState.RECOVERING
        stimulated.update(0.9, 1.0)
        assert stimulated.state == EmotionState.STABILIZED

    def test_recovering_to_idle_without_success(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        stimulated.update(0.9, 0.1)
        stimulated.update(0.5, 5.0)
        assert stimulated.state == EmotionState.IDLE

    def test_critical_failure_from_stimulated(self, stimulated) -> None:
        stimulated.instability = 0.79
        stimulated.update(0.0, 0.1)
        assert stimulated.instability >= 0.8
        assert stimulated.state == EmotionState.CRITICAL_FAILURE

    def test_critical_failure_from_agitated(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        assert stimulated.state == EmotionState.AGITATED
        stimulated.instability = 0.79
        stimulated.update(0.0, 0.1)
        assert stimulated.state == EmotionState.CRITICAL_FAILURE

    def test_critical_failure_is_terminal(self, stimulated) -> None:
        stimulated.instability = 0.79
        stimulated.update(0.0, 0.1)
        instability = stimulated.instability
        for _ in range(20):
            stimulated.update(1.0, 1.0)
        assert stimulated.state == EmotionState.CRITICAL_FAILURE
        assert stimulated.instability == pytest.approx(instability)

    def test_idle_never_transitions_on_update(self, machine) -> None:
        for metric in (0.0, 0.5, 1.0):
            machine.update(metric, 10.0)
        assert machine.state == EmotionState.IDLE

    def test_at_most_one_transition_per_update(self, stimulated) -> None:
        events = []
        stimulated.add_listener(lambda old, new: events.append(new))
        stimulated.update(0.0, 0.1)
        assert events == [EmotionState.AGITATED]


class TestInstability:
    """Tests for instability growth and recovery."""

    def test_growth_formula(self, stimulated) -> None:
        stimulated.update(0.05, 0.5)
        # (0.25 - 0.05) * 0.5 * 1.0 * 0.5
        assert stimulated.instability == pytest.approx(0.05)

    def test_recovery_when_successful(self, default_settings) -> None:
        machine = EmotionStateMachine(TargetProfile(baseline_instability=0.5), default_settings)
        machine.update(0.9, 1.0)
        assert machine.instability == pytest.approx(0.3)

    def test_no_change_between_thresholds(self, default_settings) -> None:
        machine = EmotionStateMachine(TargetProfile(baseline_instability=0.5), default_settings)
        machine.update(0.5, 3.0)
        assert machine.instability == pytest.approx(0.5)

    def test_clamped_to_unit_interval(self, default_settings) -> None:
        machine = EmotionStateMachine(
            TargetProfile(instability_rate=100.0, baseline_instability=0.1), default_settings
        )
        machine.update(0.0, 10.0)
        assert machine.instability == 1.0
        machine.reset()
        machine.update(1.0, 100.0)
        assert machine.instability == 0.0

    def test_obedience_multiplier_scales_growth(self, stimulated) -> None:
        stimulated.obedience_multiplier = 2.0
        stimulated.update(0.05, 0.5)
        assert stimulated.instability == pytest.approx(0.1)

    def test_obedience_multiplier_does_not_scale_recovery(self, default_settings) -> None:
        machine = EmotionStateMachine(TargetProfile(baseline_instability=0.5), default_settings)
        machine.obedience_multiplier = 3.0
        machine.update(0.9, 1.0)
        assert machine.instability == pytest.approx(0.3)

    def test_obedience_multiplier_clamped_and_validated(self, machine) -> None:
        machine.obedience_multiplier = -1.0
        assert machine.obedience_multiplier == 0.0
        machine.obedience_multiplier = 1.5
        machine.obedience_multiplier = math.nan
        assert machine.obedience_multiplier == 1.5

    @pytest.mark.parametrize("metric", [math.nan, math.inf, -math.inf])
    def test_non_finite_metric_treated_as_zero(self, stimulated, metric: float) -> None:
        stimulated.update(metric, 0.5)
        assert stimulated.instability == pytest.approx(0.0625)
        assert stimulated.state == EmotionState.AGITATED

    def test_non_finite_or_negative_dt_is_no_time(self, stimulated) -> None:
        stimulated.update(0.0, math.nan)
        stimulated.update(0.0, -1.0)
        assert stimulated.instability == 0.0
        assert stimulated.state_time == 0.0


class TestListeners:
    """Tests for state change notifications."""

    def test_add_is_idempotent(self, machine) -> None:
        events = []

        def listener(old, new):
            events.append((old, new))

        machine.add_listener(listener)
        machine.add_listener(listener)
        machine.start_stimulation()
        assert events == [(EmotionState.IDLE, EmotionState.BEING_STIMULATED)]

    def test_unsubscribe_handle(self, machine) -> None:
        events = []
        unsubscribe = machine.add_listener(lambda old, new: events.append(new))
        unsubscribe()
        machine.start_stimulation()
        assert events == []

    def test_remove_unknown_listener(self, machine) -> None:
        assert machine.remove_listener(lambda old, new: None) is False

    def test_failing_listener_does_not_block_others(self, machine) -> None:
        events = []

        def broken(old, new):
            raise RuntimeError("boom")

        machine.add_listener(broken)
        machine.add_listener(lambda old, new: events.append(new))
        machine.start_stimulation()
        assert events == [EmotionState.BEING_STIMULATED]
        assert machine.state == EmotionState.BEING_STIMULATED


class TestViews:
    """Tests for agitation and composure."""

    def test_idle_and_stabilized_are_calm(self, stimulated) -> None:
        stimulated.stop_stimulation()
        assert stimulated.agitation_level == 0.0
        stimulated.start_stimulation()
        stimulated.update(1.0, 2.0)
        assert stimulated.agitation_level == 0.0
        assert stimulated.composure_level == 1.0

    def test_stimulated_is_half_instability(self, default_settings) -> None:
        machine = EmotionStateMachine(TargetProfile(baseline_instability=0.4), default_settings)
        machine.start_stimulation()
        assert machine.agitation_level == pytest.approx(0.2)

    def test_agitated_equals_instability(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        assert stimulated.agitation_level == pytest.approx(stimulated.instability)

    def test_critical_failure_is_maximal(self, stimulated) -> None:
        stimulated.instability = 0.79
        stimulated.update(0.0, 0.1)
        assert stimulated.agitation_level == 1.0
        assert stimulated.composure_level == 0.0

    def test_recovering_decays_linearly(self, stimulated) -> None:
        stimulated.update(0.0, 0.1)
        stimulated.update(0.9, 0.1)
        assert stimulated.agitation_level == pytest.approx(0.5)
        stimulated.update(0.9, 2.5)
        assert stimulated.agitation_level == pytest.approx(0.25)

    def test_recovering_with_zero_recovery_time(self) -> None:
        settings = EvaluationSettings()
        machine = EmotionStateMachine(TargetProfile(recovery_time=0.0), settings)
        machine.state = EmotionState.RECOVERING
        assert machine.agitation_level == 0.0

    def test_get_state(self, stimulated) -> None:
        state = stimulated.get_state()
        assert state["state"] == "being_stimulated"
        assert state["composure"] == pytest.approx(1.0)
