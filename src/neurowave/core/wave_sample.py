"""Wave sample value object.

A sample is a timestamp plus one normalized energy per band. Values are
sanitized on construction: a vector of the wrong shape becomes the zero
vector, non-finite entries become 0 and everything else is clamped to
[0, 1]. A sample is never mutated; the next input supersedes it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np

from neurowave.config.calibration import BAND_COUNT, BAND_NAMES

__all__ = ["BAND_COUNT", "BAND_NAMES", "WaveSample", "sanitize_bands"]


def _zero_bands() -> np.ndarray:
    zeros = np.zeros(BAND_COUNT, dtype=np.float64)
    zeros.setflags(write=False)
    return zeros


def _to_float(value: Any) -> float:
    if value is None:
        return np.nan
    try:
        return float(value)
    except OverflowError:
        # Integers beyond float range clamp like any other out-of-range value.
        return 1.0 if value > 0 else 0.0


def sanitize_bands(values: Iterable[float] | np.ndarray | None) -> tuple[np.ndarray, bool]:
    """Coerce raw band values into a clean, read-only vector.

    Strings and bytes are not band vectors and yield the zero vector.

    Returns:
        Tuple of (bands, was_sanitized). ``was_sanitized`` is True when any
        value had to be replaced or clamped.
    """
    if values is None or isinstance(values, (str, bytes)):
        return _zero_bands(), True
    try:
        if isinstance(values, np.ndarray) and values.dtype != object:
            raw = np.asarray(values, dtype=np.float64)
        else:
            raw = np.asarray([_to_float(v) for v in values], dtype=np.float64)
    except (TypeError, ValueError):
        return _zero_bands(), True

    if raw.ndim != 1 or raw.shape[0] != BAND_COUNT:
        return _zero_bands(), True

    finite = np.isfinite(raw)
    cleaned = np.where(finite, raw, 0.0)
    bands = np.clip(cleaned, 0.0, 1.0)
    changed = bool(not finite.all() or not np.array_equal(bands, cleaned))
    bands.setflags(write=False)
    return bands, changed


@dataclass(frozen=True, eq=False)
class WaveSample:
    """Immutable multi-band wave sample.

    Attributes:
        timestamp: Monotonic capture time in seconds
        bands: Read-only vector of ``BAND_COUNT`` values in [0, 1]
        was_sanitized: Whether the raw input needed repair
    """

    timestamp: float
    bands: np.ndarray
    was_sanitized: bool = False

    def __post_init__(self) -> None:
        bands, changed = sanitize_bands(self.bands)
        object.__setattr__(self, "bands", bands)
        if changed:
            object.__setattr__(self, "was_sanitized", True)

    @classmethod
    def zero(cls, timestamp: float = 0.0) -> WaveSample:
        """All-zero sample (the value before any input arrives)."""
        return cls(timestamp=timestamp, bands=_zero_bands())

    def __len__(self) -> int:
        return BAND_COUNT

    def __getitem__(self, index: int) -> float:
        return float(self.bands[index])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WaveSample):
            return NotImplemented
        return self.timestamp == other.timestamp and bool(np.array_equal(self.bands, other.bands))

    def __hash__(self) -> int:
        return hash((self.timestamp, self.bands.tobytes()))

    def to_list(self) -> list[float]:
        return [float(v) for v in self.bands]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "bands": dict(zip(BAND_NAMES, self.to_list())),
            "was_sanitized": self.was_sanitized,
        }
