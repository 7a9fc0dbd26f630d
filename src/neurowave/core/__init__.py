# package

from .profile import EvaluationSettings, TargetProfile
from .wave_sample import BAND_COUNT, BAND_NAMES, WaveSample, sanitize_bands

__all__ = [
    "BAND_COUNT",
    "BAND_NAMES",
    "EvaluationSettings",
    "TargetProfile",
    "WaveSample",
    "sanitize_bands",
]
