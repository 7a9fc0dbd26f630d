from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from neurowave.core.wave_sample import WaveSample, sanitize_bands

if TYPE_CHECKING:
    from collections.abc import Iterable

    from neurowave.core.profile import EvaluationSettings, TargetProfile

logger = logging.getLogger(__name__)


class WaveEvaluator:
    """Scores how closely a wave sample matches an actor's target profile.

    Each band contributes ``clamp01(1 - |x - target| / tolerance)``; the raw
    score is the weighted mean of those matches and the smoothed score is an
    exponential moving average whose weight comes from the settings.

    The evaluator never raises on input: a missing or malformed sample is
    scored as the zero vector.
    """

    def __init__(self, profile: TargetProfile, settings: EvaluationSettings) -> None:
        self.profile = profile
        self.settings = settings
        self._targets = np.asarray(profile.targets, dtype=np.float64)
        self._tolerances = np.asarray(profile.tolerances, dtype=np.float64)
        self._weights = np.asarray(profile.weights, dtype=np.float64)
        self._total_weight = float(self._weights.sum())
        self._alpha = settings.smoothing_alpha
        self.raw_score = 0.0
        self.smoothed_score = 0.0

    def band_scores(self, sample: WaveSample | Iterable[float] | None) -> np.ndarray:
        """Per-band match in [0, 1]. Does not touch the smoothing state."""
        bands = self._bands_of(sample)
        distance = np.abs(bands - self._targets) / self._tolerances
        return np.clip(1.0 - distance, 0.0, 1.0)

    def evaluate(self, sample: WaveSample | Iterable[float] | None) -> float:
        """Score a sample and fold it into the smoothed score.

        Returns:
            The updated smoothed score in [0, 1]
        """
        matches = self.band_scores(sample)
        if self._total_weight <= 0.0:
            raw = 0.0
        else:
            raw = float(np.dot(matches, self._weights) / self._total_weight)

        self.raw_score = raw
        self.smoothed_score = self._alpha * raw + (1.0 - self._alpha) * self.smoothed_score
        return self.smoothed_score

    def reset(self) -> None:
        self.raw_score = 0.0
        self.smoothed_score = 0.0

    def is_successful(self) -> bool:
        return self.smoothed_score >= self.settings.success_threshold

    def is_overloaded(self) -> bool:
        return self.smoothed_score <= self.settings.overload_threshold

    def get_state(self) -> dict[str, float]:
        return {
            "raw_score": float(self.raw_score),
            "smoothed_score": float(self.smoothed_score),
            "smoothing_alpha": float(self._alpha),
        }

    @staticmethod
    def _bands_of(sample: WaveSample | Iterable[float] | None) -> np.ndarray:
        if isinstance(sample, WaveSample):
            return sample.bands
        bands, changed = sanitize_bands(sample)
        if changed:
            logger.debug("WaveEvaluator sanitized malformed sample input")
        return bands
