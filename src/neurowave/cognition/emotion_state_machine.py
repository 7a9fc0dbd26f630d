"""Per-actor emotional state machine.

Consumes one scalar metric per tick and advances instability and state.
The state machine performs no downstream action itself; interested parties
subscribe to ``(old_state, new_state)`` notifications.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from neurowave.core.profile import EvaluationSettings, TargetProfile

logger = logging.getLogger(__name__)


class EmotionState(str, Enum):
    IDLE = "idle"
    BEING_STIMULATED = "being_stimulated"
    STABILIZED = "stabilized"
    AGITATED = "agitated"
    CRITICAL_FAILURE = "critical_failure"
    RECOVERING = "recovering"


StateListener = Callable[[EmotionState, EmotionState], None]


def _clamp01(value: float) -> float:
    return max(0.0, min(value, 1.0))


def _finite_or_zero(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


class EmotionStateMachine:
    """Instability dynamics plus the six-state transition table.

    ``update`` applies instability growth or recovery first, then evaluates
    at most one transition for the current state. ``CRITICAL_FAILURE`` is
    only left through ``reset``.
    """

    def __init__(self, profile: TargetProfile, settings: EvaluationSettings) -> None:
        self.profile = profile
        self.settings = settings
        self.state = EmotionState.IDLE
        self.state_time = 0.0
        self.instability = profile.baseline_instability
        self._obedience_multiplier = 1.0
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state changes. Adding the same callable twice is a no-op.

        Returns:
            A callable that removes the listener again
        """
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.remove_listener(listener)

    def remove_listener(self, listener: StateListener) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    # ------------------------------------------------------------------
    # Obedience coupling
    # ------------------------------------------------------------------

    @property
    def obedience_multiplier(self) -> float:
        """Scale factor on instability growth only (default 1)."""
        return self._obedience_multiplier

    @obedience_multiplier.setter
    def obedience_multiplier(self, value: float) -> None:
        value = float(value)
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite obedience multiplier: %r", value)
            return
        self._obedience_multiplier = max(0.0, value)

    # ------------------------------------------------------------------
    # External control
    # ------------------------------------------------------------------

    def start_stimulation(self) -> None:
        if self.state == EmotionState.IDLE:
            self._change_state(EmotionState.BEING_STIMULATED)

    def stop_stimulation(self) -> None:
        if self.state in (EmotionState.BEING_STIMULATED, EmotionState.AGITATED):
            self._change_state(EmotionState.IDLE)

    def reset(self) -> None:
        """Force IDLE and restore baseline instability."""
        self.instability = self.profile.baseline_instability
        if self.state != EmotionState.IDLE:
            self._change_state(EmotionState.IDLE)
        self.state_time = 0.0

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self, metric: float, dt: float) -> EmotionState:
        """Advance by ``dt`` seconds given the current metric in [0, 1].

        Non-finite metric or dt values are treated as 0.

        Returns:
            The state after this update
        """
        metric = _finite_or_zero(metric)
        dt = max(0.0, _finite_or_zero(dt))

        self.state_time += dt
        self._update_instability(metric, dt)

        next_state = self._next_state(metric)
        if next_state is not None:
            self._change_state(next_state)
        return self.state

    def _update_instability(self, metric: float, dt: float) -> None:
        settings = self.settings
        if metric <= settings.overload_threshold:
            growth = (
                (settings.overload_threshold - metric)
                * self.profile.instability_rate
                * self._obedience_multiplier
                * dt
            )
            self.instability += growth
        elif metric >= settings.success_threshold and self.state != EmotionState.CRITICAL_FAILURE:
            self.instability -= settings.instability_recovery_rate * dt
        self.instability = _clamp01(self.instability)

    def _next_state(self, metric: float) -> EmotionState | None:
        settings = self.settings
        failed = self.instability >= settings.instability_fail_threshold
        success = metric >= settings.success_threshold
        state = self.state

        if state == EmotionState.BEING_STIMULATED:
            if failed:
                return EmotionState.CRITICAL_FAILURE
            if success and self.state_time >= self.profile.min_stimulation_time:
                return EmotionState.STABILIZED
            if metric <= settings.overload_threshold:
                return EmotionState.AGITATED
        elif state == EmotionState.STABILIZED:
            if not success:
                return EmotionState.BEING_STIMULATED
        elif state == EmotionState.AGITATED:
            if failed:
                return EmotionState.CRITICAL_FAILURE
            if success:
                return EmotionState.RECOVERING
        elif state == EmotionState.RECOVERING:
            if self.state_time >= self.profile.recovery_time:
                return EmotionState.STABILIZED if success else EmotionState.IDLE
        return None

    def _change_state(self, new_state: EmotionState) -> None:
        old_state = self.state
        if old_state == new_state:
            return
        self.state = new_state
        self.state_time = 0.0

        if self.settings.verbose_logging:
            logger.debug(
                "State %s -> %s (profile=%s instability=%.3f)",
                old_state.value,
                new_state.value,
                self.profile.profile_id,
                self.instability,
            )

        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception(
                    "State listener %r failed on %s -> %s",
                    listener,
                    old_state.value,
                    new_state.value,
                )

    # ------------------------------------------------------------------
    # Presentation views
    # ------------------------------------------------------------------

    @property
    def agitation_level(self) -> float:
        state = self.state
        if state == EmotionState.BEING_STIMULATED:
            return 0.5 * self.instability
        if state == EmotionState.AGITATED:
            return _clamp01(self.instability)
        if state == EmotionState.CRITICAL_FAILURE:
            return 1.0
        if state == EmotionState.RECOVERING:
            recovery_time = self.profile.recovery_time
            if recovery_time <= 0.0:
                return 0.0
            progress = _clamp01(self.state_time / recovery_time)
            return 0.5 * (1.0 - progress)
        return 0.0

    @property
    def composure_level(self) -> float:
        return 1.0 - self.agitation_level

    def get_state(self) -> dict[str, float | str]:
        return {
            "state": self.state.value,
            "state_time": float(self.state_time),
            "instability": float(self.instability),
            "obedience_multiplier": float(self._obedience_multiplier),
            "agitation": float(self.agitation_level),
            "composure": float(self.composure_level),
        }
