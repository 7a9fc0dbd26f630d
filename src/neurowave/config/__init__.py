"""neurowave configuration layer.

Public API:
-----------
Calibration Dataclasses:
    - EvaluationCalibration: thresholds, sampling and smoothing
    - ProfileCalibration: per-actor profile defaults
    - ObedienceCalibration: obedience-to-parameter mapping ranges

Default Instances:
    - EVALUATION_DEFAULTS
    - PROFILE_DEFAULTS
    - OBEDIENCE_DEFAULTS
"""

from .calibration import (
    BAND_COUNT,
    BAND_NAMES,
    EVALUATION_DEFAULTS,
    OBEDIENCE_DEFAULTS,
    PROFILE_DEFAULTS,
    EvaluationCalibration,
    ObedienceCalibration,
    ProfileCalibration,
    get_calibration_summary,
)

__all__ = [
    "BAND_COUNT",
    "BAND_NAMES",
    "EvaluationCalibration",
    "ProfileCalibration",
    "ObedienceCalibration",
    "EVALUATION_DEFAULTS",
    "PROFILE_DEFAULTS",
    "OBEDIENCE_DEFAULTS",
    "get_calibration_summary",
]
