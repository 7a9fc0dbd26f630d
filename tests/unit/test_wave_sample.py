"""Tests for wave sample sanitization and immutability."""

import math

import numpy as np
import pytest

from neurowave.core.wave_sample import BAND_COUNT, BAND_NAMES, WaveSample, sanitize_bands


class TestSanitizeBands:
    """Tests for sanitize_bands."""

    def test_clean_vector_passes_through(self) -> None:
        bands, changed = sanitize_bands([0.1, 0.2, 0.3, 0.4, 0.5])
        assert bands.tolist() == [0.1, 0.2, 0.3, 0.4, 0.5]
        assert changed is False

    def test_non_finite_values_become_zero(self) -> None:
        bands, changed = sanitize_bands([math.nan, math.inf, -math.inf, 0.5, 0.5])
        assert bands.tolist() == [0.0, 0.0, 0.0, 0.5, 0.5]
        assert changed is True

    def test_out_of_range_values_are_clamped(self) -> None:
        bands, changed = sanitize_bands([-0.5, 1.5, 0.5, 2.0, -1.0])
        assert bands.tolist() == [0.0, 1.0, 0.5, 1.0, 0.0]
        assert changed is True

    @pytest.mark.parametrize(
        "raw",
        [None, [], [0.1, 0.2], [0.1] * 6, [[0.1] * 5], "abcde", 42],
    )
    def test_malformed_input_becomes_zero_vector(self, raw) -> None:
        bands, changed = sanitize_bands(raw)
        assert bands.shape == (BAND_COUNT,)
        assert not bands.any()
        assert changed is True

    def test_huge_integers_are_clamped(self) -> None:
        bands, changed = sanitize_bands([10**400, -(10**400), 0, 1, 0])
        assert bands.tolist() == [1.0, 0.0, 0.0, 1.0, 0.0]
        assert changed is True

    def test_huge_integers_in_object_array(self) -> None:
        raw = np.array([10**400, 0, 0, 0, 0], dtype=object)
        bands, changed = sanitize_bands(raw)
        assert bands.tolist() == [1.0, 0.0, 0.0, 0.0, 0.0]
        assert changed is True

    @pytest.mark.parametrize("raw", ["10101", b"10101", "0.1,0.1,0.1,0.1,0.1"])
    def test_text_is_not_a_band_vector(self, raw) -> None:
        bands, changed = sanitize_bands(raw)
        assert not bands.any()
        assert changed is True

    def test_missing_entries_become_zero(self) -> None:
        bands, changed = sanitize_bands([None, 0.3, 0.3, 0.3, 0.3])
        assert bands.tolist() == [0.0, 0.3, 0.3, 0.3, 0.3]
        assert changed is True

    def test_result_is_read_only(self) -> None:
        bands, _ = sanitize_bands([0.2] * 5)
        with pytest.raises(ValueError):
            bands[0] = 1.0

    def test_numpy_input_is_not_aliased(self) -> None:
        raw = np.array([0.2, 0.2, 0.2, 0.2, 0.2])
        bands, _ = sanitize_bands(raw)
        raw[0] = 0.9
        assert bands[0] == pytest.approx(0.2)


class TestWaveSample:
    """Tests for the WaveSample value object."""

    def test_construction_sanitizes(self) -> None:
        sample = WaveSample(timestamp=1.0, bands=[math.nan, 0.5, 2.0, 0.1, 0.1])
        assert sample.to_list() == [0.0, 0.5, 1.0, 0.1, 0.1]
        assert sample.was_sanitized is True

    def test_clean_sample_is_not_flagged(self) -> None:
        sample = WaveSample(timestamp=1.0, bands=[0.2] * 5)
        assert sample.was_sanitized is False

    def test_zero_sample(self) -> None:
        sample = WaveSample.zero(timestamp=3.0)
        assert sample.timestamp == 3.0
        assert sample.to_list() == [0.0] * BAND_COUNT
        assert len(sample) == BAND_COUNT

    def test_sample_is_frozen(self) -> None:
        sample = WaveSample(timestamp=0.0, bands=[0.2] * 5)
        with pytest.raises(AttributeError):
            sample.timestamp = 1.0  # type: ignore[misc]
        with pytest.raises(ValueError):
            sample.bands[0] = 0.9

    def test_equality_and_hash(self) -> None:
        a = WaveSample(timestamp=1.0, bands=[0.1, 0.2, 0.3, 0.4, 0.5])
        b = WaveSample(timestamp=1.0, bands=[0.1, 0.2, 0.3, 0.4, 0.5])
        c = WaveSample(timestamp=2.0, bands=[0.1, 0.2, 0.3, 0.4, 0.5])
        assert a == b
        assert hash(a) == hash(b)
        assert a != c

    def test_indexing(self) -> None:
        sample = WaveSample(timestamp=0.0, bands=[0.1, 0.2, 0.3, 0.4, 0.5])
        assert sample[2] == pytest.approx(0.3)

    def test_to_dict_names_bands(self) -> None:
        sample = WaveSample(timestamp=0.5, bands=[0.1, 0.2, 0.3, 0.4, 0.5])
        data = sample.to_dict()
        assert list(data["bands"]) == list(BAND_NAMES)
        assert data["bands"]["alpha"] == pytest.approx(0.3)
        assert data["timestamp"] == 0.5
