"""Per-actor runtime: one evaluator, one state machine, one latest sample."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from neurowave.cognition.emotion_state_machine import EmotionState, EmotionStateMachine
from neurowave.cognition.wave_evaluator import WaveEvaluator
from neurowave.core.wave_sample import WaveSample

if TYPE_CHECKING:
    import numpy as np

    from neurowave.cognition.obedience import ObedienceSource
    from neurowave.core.profile import EvaluationSettings, TargetProfile
    from neurowave.observability.metrics import MetricsExporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorTelemetry:
    """Read-only snapshot of an actor's evaluation state."""

    actor_id: str
    profile_id: str
    state: EmotionState
    state_time: float
    instability: float
    smoothed_score: float
    raw_score: float
    agitation: float
    composure: float
    obedience_multiplier: float
    is_active: bool
    tick_count: int
    sample_timestamp: float
    band_scores: tuple[float, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["band_scores"] = list(self.band_scores)
        return data


class ActorRuntime:
    """Evaluation state owned by one registered actor.

    ``tick`` is synchronous and only ever called by the actor's own
    evaluation loop or directly by tests; the coordinator only swaps the
    latest sample and toggles stimulation between ticks.
    """

    def __init__(
        self,
        actor_id: str,
        profile: TargetProfile,
        settings: EvaluationSettings,
        *,
        obedience_source: ObedienceSource | None = None,
        metrics: MetricsExporter | None = None,
    ) -> None:
        self.actor_id = actor_id
        self.profile = profile
        self.settings = settings
        self.obedience_source = obedience_source
        self.metrics = metrics

        self.evaluator = WaveEvaluator(profile, settings)
        self.state_machine = EmotionStateMachine(profile, settings)
        self.latest_sample = WaveSample.zero()
        self.is_active = False
        self.tick_count = 0

    @property
    def state(self) -> EmotionState:
        return self.state_machine.state

    def receive_sample(self, sample: WaveSample) -> None:
        """Replace the latest sample; the next tick reads it."""
        self.latest_sample = sample

    def engage(self, sample: WaveSample | None = None) -> None:
        """Mark active, hand over the current sample and start stimulation."""
        self.is_active = True
        if sample is not None:
            self.latest_sample = sample
        self.state_machine.start_stimulation()

    def disengage(self) -> None:
        """Mark inactive, stop stimulation and clear the smoothing state."""
        self.is_active = False
        self.state_machine.stop_stimulation()
        self.evaluator.reset()

    def tick(self, dt: float | None = None) -> EmotionState:
        """Run one evaluation step.

        Args:
            dt: Elapsed seconds; defaults to the settings sample interval

        Returns:
            The state after the update
        """
        if dt is None:
            dt = self.settings.sample_interval
        started = time.perf_counter()

        score = self.evaluator.evaluate(self.latest_sample)
        if self.obedience_source is not None:
            self.obedience_source.update_dynamic(score, dt)
            metric = max(0.0, min(self.obedience_source.current_value() / 100.0, 1.0))
        else:
            metric = score

        state = self.state_machine.update(metric, dt)
        self.tick_count += 1

        if self.metrics is not None:
            self.metrics.increment_ticks(self.actor_id)
            self.metrics.set_actor_values(
                self.actor_id,
                self.evaluator.smoothed_score,
                self.state_machine.instability,
                self.state_machine.agitation_level,
            )
            self.metrics.observe_tick_latency((time.perf_counter() - started) * 1000.0)
        return state

    def band_scores(self) -> np.ndarray:
        """Per-band match of the latest sample; the smoothing state is untouched."""
        return self.evaluator.band_scores(self.latest_sample)

    def reset(self) -> None:
        """Return evaluator, state machine and sample to their initial values."""
        self.evaluator.reset()
        self.state_machine.reset()
        self.latest_sample = WaveSample.zero()
        self.tick_count = 0

    def telemetry(self) -> ActorTelemetry:
        machine = self.state_machine
        return ActorTelemetry(
            actor_id=self.actor_id,
            profile_id=self.profile.profile_id,
            state=machine.state,
            state_time=machine.state_time,
            instability=machine.instability,
            smoothed_score=self.evaluator.smoothed_score,
            raw_score=self.evaluator.raw_score,
            agitation=machine.agitation_level,
            composure=machine.composure_level,
            obedience_multiplier=machine.obedience_multiplier,
            is_active=self.is_active,
            tick_count=self.tick_count,
            sample_timestamp=self.latest_sample.timestamp,
            band_scores=tuple(float(score) for score in self.band_scores()),
        )
