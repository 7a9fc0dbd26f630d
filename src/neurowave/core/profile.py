"""Target profiles and shared evaluation settings.

Both are read-only configuration values validated at construction time;
invalid values raise ``ConfigurationError`` so that a bad profile is caught
when it is loaded instead of when the evaluator divides by its tolerance.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from neurowave.config.calibration import (
    BAND_COUNT,
    EVALUATION_DEFAULTS,
    PROFILE_DEFAULTS,
)
from neurowave.utils.errors import ConfigurationError, ErrorCode


def _as_band_tuple(name: str, values: Sequence[float]) -> tuple[float, ...]:
    try:
        result = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            f"{name} must be a sequence of numbers",
            details={"field": name},
        ) from e
    if len(result) != BAND_COUNT:
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            f"{name} must have exactly {BAND_COUNT} entries, got {len(result)}",
            details={"field": name, "length": len(result)},
        )
    if not all(math.isfinite(v) for v in result):
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            f"{name} must contain only finite values",
            details={"field": name},
        )
    return result


def _require_range(name: str, value: float, low: float, high: float = math.inf) -> float:
    value = float(value)
    if not (low <= value <= high) or math.isnan(value):
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            f"{name} must be in [{low}, {high}], got {value}",
            details={"field": name, "value": value},
        )
    return value


def _default_bands(value: float) -> tuple[float, ...]:
    return (value,) * BAND_COUNT


@dataclass(frozen=True)
class TargetProfile:
    """Desired band values and per-actor tuning for one actor."""

    profile_id: str = "default"
    display_name: str = "Citizen"
    targets: tuple[float, ...] = field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_target)
    )
    tolerances: tuple[float, ...] = field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_tolerance)
    )
    weights: tuple[float, ...] = field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_weight)
    )
    baseline_instability: float = PROFILE_DEFAULTS.baseline_instability
    instability_rate: float = PROFILE_DEFAULTS.instability_rate
    min_stimulation_time: float = PROFILE_DEFAULTS.min_stimulation_time
    recovery_time: float = PROFILE_DEFAULTS.recovery_time
    starting_obedience: float = PROFILE_DEFAULTS.starting_obedience

    def __post_init__(self) -> None:
        targets = _as_band_tuple("targets", self.targets)
        tolerances = _as_band_tuple("tolerances", self.tolerances)
        weights = _as_band_tuple("weights", self.weights)

        for i, value in enumerate(targets):
            _require_range(f"targets[{i}]", value, 0.0, 1.0)
        for i, value in enumerate(tolerances):
            if value <= 0.0:
                raise ConfigurationError(
                    ErrorCode.E802_INVALID_TOLERANCE,
                    f"tolerances[{i}] must be > 0, got {value}",
                    details={"profile_id": self.profile_id, "band": i, "value": value},
                )
        for i, value in enumerate(weights):
            _require_range(f"weights[{i}]", value, 0.0)

        object.__setattr__(self, "targets", targets)
        object.__setattr__(self, "tolerances", tolerances)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(
            self,
            "baseline_instability",
            _require_range("baseline_instability", self.baseline_instability, 0.0, 1.0),
        )
        object.__setattr__(
            self, "instability_rate", _require_range("instability_rate", self.instability_rate, 0.0)
        )
        object.__setattr__(
            self,
            "min_stimulation_time",
            _require_range("min_stimulation_time", self.min_stimulation_time, 0.0),
        )
        object.__setattr__(
            self, "recovery_time", _require_range("recovery_time", self.recovery_time, 0.0)
        )
        object.__setattr__(
            self,
            "starting_obedience",
            _require_range("starting_obedience", self.starting_obedience, 0.0, 100.0),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetProfile:
        """Build a profile from a plain mapping, ignoring unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile_id": self.profile_id,
            "display_name": self.display_name,
            "targets": list(self.targets),
            "tolerances": list(self.tolerances),
            "weights": list(self.weights),
            "baseline_instability": self.baseline_instability,
            "instability_rate": self.instability_rate,
            "min_stimulation_time": self.min_stimulation_time,
            "recovery_time": self.recovery_time,
            "starting_obedience": self.starting_obedience,
        }


@dataclass(frozen=True)
class EvaluationSettings:
    """Process-wide thresholds, sampling and smoothing parameters.

    ``smoothing_alpha`` is derived from the sample interval and the EMA
    time constant, so changing the sample rate does not change how fast
    the smoothed score reacts in wall-clock terms.
    """

    sample_rate: float = EVALUATION_DEFAULTS.sample_rate
    smoothing_tau: float = EVALUATION_DEFAULTS.smoothing_tau
    success_threshold: float = EVALUATION_DEFAULTS.success_threshold
    overload_threshold: float = EVALUATION_DEFAULTS.overload_threshold
    instability_fail_threshold: float = EVALUATION_DEFAULTS.instability_fail_threshold
    instability_recovery_rate: float = EVALUATION_DEFAULTS.instability_recovery_rate
    verbose_logging: bool = False

    def __post_init__(self) -> None:
        for name in ("sample_rate", "smoothing_tau"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(
                    ErrorCode.E803_CONFIG_VALIDATION_FAILED,
                    f"{name} must be > 0, got {value}",
                    details={"field": name, "value": value},
                )
            object.__setattr__(self, name, value)
        for name in ("success_threshold", "overload_threshold", "instability_fail_threshold"):
            object.__setattr__(self, name, _require_range(name, getattr(self, name), 0.0, 1.0))
        object.__setattr__(
            self,
            "instability_recovery_rate",
            _require_range("instability_recovery_rate", self.instability_recovery_rate, 0.0),
        )
        if self.overload_threshold > self.success_threshold:
            raise ConfigurationError(
                ErrorCode.E804_INVALID_THRESHOLDS,
                f"overload_threshold ({self.overload_threshold}) must be <= "
                f"success_threshold ({self.success_threshold})",
                details={
                    "overload_threshold": self.overload_threshold,
                    "success_threshold": self.success_threshold,
                },
            )

    @property
    def sample_interval(self) -> float:
        """Seconds between evaluation ticks."""
        return 1.0 / self.sample_rate

    @property
    def smoothing_alpha(self) -> float:
        """EMA weight of the newest raw score."""
        return 1.0 - math.exp(-self.sample_interval / self.smoothing_tau)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EvaluationSettings:
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_rate": self.sample_rate,
            "sample_interval": self.sample_interval,
            "smoothing_tau": self.smoothing_tau,
            "smoothing_alpha": self.smoothing_alpha,
            "success_threshold": self.success_threshold,
            "overload_threshold": self.overload_threshold,
            "instability_fail_threshold": self.instability_fail_threshold,
            "instability_recovery_rate": self.instability_recovery_rate,
            "verbose_logging": self.verbose_logging,
        }
