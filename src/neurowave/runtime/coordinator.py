"""Actor registry, shared wave sample and single-active-actor control.

The coordinator is constructed explicitly and passed to whoever needs it.
Activation and deactivation are serialised by an ``asyncio.Lock`` so that
the previous actor's loop has fully stopped before the next one starts.
Unknown actor ids are reported through return values, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any

from neurowave.core.wave_sample import WaveSample
from neurowave.runtime.actor import ActorRuntime, ActorTelemetry
from neurowave.runtime.scheduler import EvaluationScheduler
from neurowave.utils.errors import ErrorCode, SchedulerError, ValidationError
from neurowave.utils.time_provider import get_default_time_provider

if TYPE_CHECKING:
    import numpy as np

    from neurowave.cognition.emotion_state_machine import EmotionState
    from neurowave.cognition.obedience import ObedienceSource
    from neurowave.core.profile import EvaluationSettings, TargetProfile
    from neurowave.observability.logger import ObservabilityLogger
    from neurowave.observability.metrics import MetricsExporter
    from neurowave.utils.time_provider import TimeProvider

logger = logging.getLogger(__name__)


class ActivationResult(str, Enum):
    ACTIVATED = "activated"
    ALREADY_ACTIVE = "already_active"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class StateChangedEvent:
    """Emitted whenever a registered actor changes emotional state."""

    actor_id: str
    old_state: EmotionState
    new_state: EmotionState
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "old_state": self.old_state.value,
            "new_state": self.new_state.value,
            "timestamp": self.timestamp,
        }


StateChangedListener = Callable[[StateChangedEvent], None]


class Coordinator:
    """Owns the actor registry and decides which actor is stimulated.

    At most one actor is active at a time. ``set_sample`` stores the latest
    sanitized sample and hands it only to the active actor; inactive actors
    keep whatever they last saw.
    """

    def __init__(
        self,
        settings: EvaluationSettings,
        *,
        scheduler: EvaluationScheduler | None = None,
        metrics: MetricsExporter | None = None,
        observability: ObservabilityLogger | None = None,
        time_provider: TimeProvider | None = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.observability = observability
        self.scheduler = scheduler or EvaluationScheduler(
            metrics=metrics, observability=observability
        )
        self._time = time_provider or get_default_time_provider()

        self._actors: dict[str, ActorRuntime] = {}
        self._active_id: str | None = None
        self._current_sample = WaveSample.zero(self._time.monotonic())
        self._listeners: list[StateChangedListener] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def active_actor_id(self) -> str | None:
        return self._active_id

    @property
    def current_sample(self) -> WaveSample:
        return self._current_sample

    @property
    def actor_ids(self) -> list[str]:
        return list(self._actors)

    def __contains__(self, actor_id: object) -> bool:
        return actor_id in self._actors

    def __len__(self) -> int:
        return len(self._actors)

    def get_actor(self, actor_id: str) -> ActorRuntime | None:
        return self._actors.get(actor_id)

    def telemetry(self, actor_id: str) -> ActorTelemetry | None:
        actor = self._actors.get(actor_id)
        return actor.telemetry() if actor is not None else None

    def all_telemetry(self) -> list[ActorTelemetry]:
        return [actor.telemetry() for actor in self._actors.values()]

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(
        self,
        actor_id: str,
        profile: TargetProfile,
        *,
        obedience_source: ObedienceSource | None = None,
    ) -> ActorRuntime:
        """Create the runtime for ``actor_id``.

        Registering an id that already exists returns the existing runtime
        unchanged.
        """
        if not isinstance(actor_id, str) or not actor_id:
            raise ValidationError(
                "actor_id must be a non-empty string",
                details={"actor_id": repr(actor_id)},
            )

        existing = self._actors.get(actor_id)
        if existing is not None:
            logger.warning("Actor %s already registered; keeping existing runtime", actor_id)
            return existing

        actor = ActorRuntime(
            actor_id,
            profile,
            self.settings,
            obedience_source=obedience_source,
            metrics=self.metrics,
        )
        actor.state_machine.add_listener(partial(self._on_state_changed, actor_id))
        self._actors[actor_id] = actor

        logger.info("Registered actor %s (profile=%s)", actor_id, profile.profile_id)
        if self.observability is not None:
            self.observability.log_actor_registered(actor_id, profile.profile_id)
        return actor

    def register_many(self, entries: Iterable[tuple[str, TargetProfile]]) -> list[ActorRuntime]:
        return [self.register(actor_id, profile) for actor_id, profile in entries]

    async def unregister(self, actor_id: str) -> bool:
        """Remove an actor, deactivating it first if needed."""
        async with self._lock:
            if actor_id not in self._actors:
                return False
            if self._active_id == actor_id:
                await self._disengage_locked(actor_id)
            await self.scheduler.stop(actor_id)
            del self._actors[actor_id]

        if self.metrics is not None:
            self.metrics.remove_actor(actor_id)
        logger.info("Unregistered actor %s", actor_id)
        if self.observability is not None:
            self.observability.log_actor_unregistered(actor_id)
        return True

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------

    def set_sample(self, values: WaveSample | Iterable[float] | np.ndarray | None) -> WaveSample:
        """Store a new current sample and hand it to the active actor.

        Malformed input is sanitized, never rejected.
        """
        if isinstance(values, WaveSample):
            sample = values
        else:
            sample = WaveSample(timestamp=self._time.monotonic(), bands=values)

        self._current_sample = sample
        if self.metrics is not None:
            self.metrics.increment_samples_received(sanitized=sample.was_sanitized)
        if sample.was_sanitized and self.observability is not None:
            self.observability.log_sample_sanitized(sample.to_list())

        if self._active_id is not None:
            self._actors[self._active_id].receive_sample(sample)
        return sample

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    async def activate(self, actor_id: str) -> ActivationResult:
        """Make ``actor_id`` the single stimulated actor.

        The previously active actor's loop is stopped and awaited, and the
        actor disengaged, before the new actor is engaged and its loop
        started. An unknown id changes nothing.

        Raises:
            SchedulerError: If the coordinator has been shut down
        """
        async with self._lock:
            actor = self._actors.get(actor_id)
            if actor is None:
                logger.warning("Cannot activate unknown actor %s", actor_id)
                return ActivationResult.NOT_FOUND
            if self._active_id == actor_id:
                return ActivationResult.ALREADY_ACTIVE
            if self.scheduler.is_closed:
                raise SchedulerError(
                    ErrorCode.E702_SHUTDOWN_IN_PROGRESS,
                    f"Cannot activate {actor_id}: coordinator is shut down",
                    details={"actor_id": actor_id},
                )

            previous_id = self._active_id
            if previous_id is not None:
                await self._disengage_locked(previous_id)

            self._active_id = actor_id
            actor.engage(self._current_sample)
            await self.scheduler.start(actor)

        if self.metrics is not None:
            self.metrics.increment_activations()
        logger.info("Activated actor %s (previous=%s)", actor_id, previous_id)
        if self.observability is not None:
            self.observability.log_actor_activated(actor_id, previous_id)
        return ActivationResult.ACTIVATED

    async def deactivate(self) -> bool:
        """Stop and disengage the active actor, if any."""
        async with self._lock:
            if self._active_id is None:
                return False
            await self._disengage_locked(self._active_id)
            return True

    async def reset_actor(self, actor_id: str) -> bool:
        """Deactivate if active, then reset evaluator, state and sample."""
        async with self._lock:
            actor = self._actors.get(actor_id)
            if actor is None:
                return False
            if self._active_id == actor_id:
                await self._disengage_locked(actor_id)
            actor.reset()

        logger.info("Reset actor %s", actor_id)
        if self.observability is not None:
            self.observability.log_actor_reset(actor_id, actor.state.value)
        return True

    async def shutdown(self) -> None:
        """Stop every evaluation loop."""
        async with self._lock:
            if self._active_id is not None:
                await self._disengage_locked(self._active_id)
            await self.scheduler.stop_all(close=True)
        logger.info("Coordinator shut down (%d actors registered)", len(self._actors))

    async def _disengage_locked(self, actor_id: str) -> None:
        await self.scheduler.stop(actor_id)
        actor = self._actors.get(actor_id)
        if actor is not None:
            actor.disengage()
        if self._active_id == actor_id:
            self._active_id = None

        logger.info("Deactivated actor %s", actor_id)
        if self.observability is not None:
            self.observability.log_actor_deactivated(actor_id)

    # ------------------------------------------------------------------
    # State change listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: StateChangedListener) -> Callable[[], None]:
        """Subscribe to state changes of every actor. Idempotent.

        Returns:
            A callable that removes the listener again
        """
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.remove_listener(listener)

    def remove_listener(self, listener: StateChangedListener) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    def _on_state_changed(
        self, actor_id: str, old_state: EmotionState, new_state: EmotionState
    ) -> None:
        event = StateChangedEvent(
            actor_id=actor_id,
            old_state=old_state,
            new_state=new_state,
            timestamp=self._time.now(),
        )

        if self.metrics is not None:
            self.metrics.increment_state_transition(old_state.value, new_state.value)
        if self.observability is not None:
            actor = self._actors.get(actor_id)
            self.observability.log_state_transition(
                actor_id,
                old_state.value,
                new_state.value,
                actor.state_machine.instability if actor is not None else None,
            )

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("State change listener %r failed for %s", listener, actor_id)
