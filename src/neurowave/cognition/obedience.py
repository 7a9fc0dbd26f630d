"""Obedience contract and the manually controlled obedience level.

An obedience source is an external 0-100 signal that an actor runtime can
use as its state-machine metric instead of the smoothed wave score. The rule
that moves it over time belongs to whoever implements the source.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from neurowave.config.calibration import OBEDIENCE_DEFAULTS

if TYPE_CHECKING:
    from neurowave.config.calibration import ObedienceCalibration
    from neurowave.core.profile import EvaluationSettings, TargetProfile

logger = logging.getLogger(__name__)

OBEDIENCE_MIN = 0.0
OBEDIENCE_MAX = 100.0

# Lower bound (inclusive) of each label, checked from the top down.
_LABELS: tuple[tuple[float, str], ...] = (
    (90.0, "COMPLIANT"),
    (75.0, "COOPERATIVE"),
    (60.0, "STABLE"),
    (40.0, "NEUTRAL"),
    (25.0, "RESISTANT"),
    (10.0, "DEFIANT"),
)


@runtime_checkable
class ObedienceSource(Protocol):
    """External obedience signal consulted once per evaluation tick."""

    def current_value(self) -> float:
        """Current obedience in [0, 100]."""
        ...

    def update_dynamic(self, score: float, dt: float) -> None:
        """Feed the latest smoothed wave score and elapsed seconds."""
        ...


def obedience_label(value: float) -> str:
    for lower_bound, label in _LABELS:
        if value >= lower_bound:
            return label
    return "REBELLIOUS"


def _lerp(bounds: tuple[float, float], t: float) -> float:
    return bounds[0] + (bounds[1] - bounds[0]) * t


class ObedienceLevel:
    """A manually set obedience level.

    Higher obedience makes actors easier to stabilize: wider tolerances,
    slower instability growth and a lower success threshold. The derived
    profile and settings are new objects; the originals are never mutated.
    """

    def __init__(
        self,
        value: float | None = None,
        calibration: ObedienceCalibration | None = None,
    ) -> None:
        self.calibration = calibration or OBEDIENCE_DEFAULTS
        self._value = OBEDIENCE_MIN
        self._listeners: list[Callable[[float], None]] = []
        self.last_score = 0.0
        self.elapsed = 0.0
        self.set_value(self.calibration.default_level if value is None else value, notify=False)

    @property
    def value(self) -> float:
        return self._value

    @property
    def normalized(self) -> float:
        return self._value / OBEDIENCE_MAX

    @property
    def label(self) -> str:
        return obedience_label(self._value)

    def set_value(self, value: float, *, notify: bool = True) -> float:
        """Set the level, clamped to [0, 100]. Non-finite values are ignored."""
        value = float(value)
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite obedience value: %r", value)
            return self._value
        clamped = max(OBEDIENCE_MIN, min(value, OBEDIENCE_MAX))
        changed = clamped != self._value
        self._value = clamped
        if notify and changed:
            for listener in list(self._listeners):
                try:
                    listener(clamped)
                except Exception:
                    logger.exception("Obedience listener %r failed", listener)
        return clamped

    def reset_to_default(self) -> float:
        return self.set_value(self.calibration.default_level)

    def add_listener(self, listener: Callable[[float], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[float], None]) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    # ObedienceSource

    def current_value(self) -> float:
        return self._value

    def update_dynamic(self, score: float, dt: float) -> None:
        # Manual level: remember the inputs, leave the value alone.
        self.last_score = float(score)
        self.elapsed += max(0.0, float(dt))

    # Parameter mapping

    def tolerance_multiplier(self) -> float:
        return _lerp(self.calibration.tolerance_multiplier_range, self.normalized)

    def instability_multiplier(self) -> float:
        return _lerp(self.calibration.instability_multiplier_range, self.normalized)

    def success_threshold_shift(self) -> float:
        return _lerp(self.calibration.success_threshold_shift_range, self.normalized)

    def adjust_profile(self, profile: TargetProfile) -> TargetProfile:
        """Profile with tolerances scaled by the tolerance multiplier."""
        multiplier = self.tolerance_multiplier()
        return dataclasses.replace(
            profile,
            tolerances=tuple(t * multiplier for t in profile.tolerances),
        )

    def adjust_settings(self, settings: EvaluationSettings) -> EvaluationSettings:
        """Settings with the success threshold shifted.

        The shifted threshold is clamped to [overload_threshold, 1] so the
        derived settings stay valid.
        """
        shifted = settings.success_threshold + self.success_threshold_shift()
        shifted = max(settings.overload_threshold, min(shifted, 1.0))
        return dataclasses.replace(settings, success_threshold=shifted)

    def get_state(self) -> dict[str, float | str]:
        return {
            "value": self._value,
            "label": self.label,
            "tolerance_multiplier": self.tolerance_multiplier(),
            "instability_multiplier": self.instability_multiplier(),
            "success_threshold_shift": self.success_threshold_shift(),
        }
