"""Centralized calibration parameters for neurowave.

Single source of truth for the default thresholds, rates and timing
constants used by the wave evaluator, the emotion state machine and the
obedience mapping.

Configuration Hierarchy:
1. Hardcoded defaults in this module (baseline calibration)
2. Config file overrides (config/*.yaml)
3. Environment variable overrides (NEUROWAVE_* prefixed)

Usage:
    from neurowave.config.calibration import EVALUATION_DEFAULTS
    threshold = EVALUATION_DEFAULTS.success_threshold
"""

from dataclasses import asdict, dataclass
from typing import Any

# =============================================================================
# WAVE BANDS
# =============================================================================

BAND_NAMES: tuple[str, ...] = ("delta", "theta", "alpha", "beta", "gamma")
BAND_COUNT = len(BAND_NAMES)


# =============================================================================
# EVALUATION CALIBRATION
# =============================================================================
# Shared, process-wide thresholds and sampling parameters.

@dataclass(frozen=True)
class EvaluationCalibration:
    """Wave evaluation and instability calibrated parameters."""

    # Smoothed score at or above which the wave counts as a match (0.0-1.0)
    # Direction: ↑ harder to stabilize, ↓ easier
    success_threshold: float = 0.75

    # Smoothed score at or below which instability builds (0.0-1.0)
    # Direction: ↑ instability builds sooner, ↓ more forgiving
    overload_threshold: float = 0.25

    # Instability level that triggers critical failure (0.0-1.0)
    instability_fail_threshold: float = 0.8

    # Evaluation ticks per second (Hz)
    sample_rate: float = 30.0

    # EMA time constant in seconds
    # Direction: ↑ smoother/slower score, ↓ more responsive
    smoothing_tau: float = 0.3

    # Instability recovered per second while the score is good
    instability_recovery_rate: float = 0.2


EVALUATION_DEFAULTS = EvaluationCalibration()


# =============================================================================
# TARGET PROFILE CALIBRATION
# =============================================================================

@dataclass(frozen=True)
class ProfileCalibration:
    """Per-actor defaults for profiles that omit a field."""

    band_target: float = 0.2
    band_tolerance: float = 0.15
    band_weight: float = 1.0
    baseline_instability: float = 0.0

    # Instability growth per second per unit of shortfall below overload
    instability_rate: float = 0.5

    # Seconds of good score required before stabilizing
    min_stimulation_time: float = 2.0

    # Seconds an actor spends recovering after agitation
    recovery_time: float = 5.0

    # Obedience (0-100) an actor starts with
    starting_obedience: float = 50.0


PROFILE_DEFAULTS = ProfileCalibration()


# =============================================================================
# OBEDIENCE MAPPING CALIBRATION
# =============================================================================
# Linear ranges applied as obedience goes from 0 to 100.

@dataclass(frozen=True)
class ObedienceCalibration:
    """Obedience-to-parameter mapping ranges."""

    default_level: float = 50.0

    # Tolerance multiplier at obedience 0 and 100
    tolerance_multiplier_range: tuple[float, float] = (0.5, 2.5)

    # Instability growth multiplier at obedience 0 and 100
    instability_multiplier_range: tuple[float, float] = (2.0, 0.3)

    # Success threshold shift at obedience 0 and 100
    success_threshold_shift_range: tuple[float, float] = (0.1, -0.2)


OBEDIENCE_DEFAULTS = ObedienceCalibration()


def get_calibration_summary() -> dict[str, Any]:
    """Get all calibration defaults as a nested dict (debugging aid)."""
    return {
        "bands": list(BAND_NAMES),
        "evaluation": asdict(EVALUATION_DEFAULTS),
        "profile": asdict(PROFILE_DEFAULTS),
        "obedience": asdict(OBEDIENCE_DEFAULTS),
    }
