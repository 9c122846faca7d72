"""
Tests für die selektive Rekonstruktion.
"""

import pytest
import numpy as np

from mdwave.core.config import AnalysisConfig
from mdwave.core.floor import FloorResult
from mdwave.core.normalization import find_max_magnitude, normalize_spectra
from mdwave.core.reconstruction import (
    BLANK_FACTOR,
    ReconstructionStats,
    SelectiveReconstructor,
    blank_mask,
)
from mdwave.core.spectral import SpectralAnalyzer


SR = 32000


@pytest.fixture
def tone_block(make_block):
    """1000 Hz laut, 3000 Hz mittel, 15650 Hz (CRT) laut."""
    t = np.arange(SR) / SR
    signal = (
        8000 * np.sin(2 * np.pi * 1000 * t)
        + 2000 * np.sin(2 * np.pi * 3000 * t)
        + 8000 * np.sin(2 * np.pi * 15650 * t)
    )
    return make_block(np.round(signal))


def _run(block, invert, channel="stereo", floor=FloorResult(found=False), use_floor=False):
    config = AnalysisConfig(window="none", max_freq=2, channel=channel, use_floor=use_floor)
    analyzer = SpectralAnalyzer(SR, config)

    spectrum = analyzer.analyze(block)
    max_magnitude = find_max_magnitude([spectrum])
    normalize_spectra([spectrum], max_magnitude)

    reconstructor = SelectiveReconstructor(analyzer, max_magnitude, floor, config, invert=invert)
    target = block.samples.copy()
    blanked = reconstructor.reconstruct(block, spectrum, target)
    return reconstructor, target, blanked


def _levels(samples):
    """|X| / N bei 1000, 3000 und 15650 Hz (1 Hz pro Bin)."""
    spectrum = np.abs(np.fft.rfft(samples.astype(np.float64))) / len(samples)
    return spectrum[1000], spectrum[3000], spectrum[15650]


class TestBlankMask:
    """Tests für die Auswahl der gedämpften Bins."""

    def setup_method(self):
        self.amplitude = np.array([0.0, -10.0, -20.0, -30.0, 0.0])
        self.hertz = np.array([100.0, 200.0, 300.0, 15650.0, 5.0])
        self.in_range = np.array([True, True, True, True, False])

    def test_keep_above_cutoff(self):
        """Unter/gleich Cutoff, CRT und außerhalb des Bereichs werden gedämpft."""
        mask = blank_mask(self.amplitude, self.hertz, self.in_range, -10.0, invert=False)

        np.testing.assert_array_equal(mask, [False, True, True, True, True])

    def test_keep_below_cutoff(self):
        """Invertiert: nur Bins über dem Cutoff im Bereich werden gedämpft."""
        mask = blank_mask(self.amplitude, self.hertz, self.in_range, -10.0, invert=True)

        np.testing.assert_array_equal(mask, [True, False, False, False, False])


class TestReconstruct:
    """Tests für einen rekonstruierten Block."""

    def test_keep_strong(self, tone_block):
        """Nur der stärkste Ton bleibt, 3000 Hz und CRT werden gedämpft."""
        _, target, blanked = _run(tone_block, invert=False)
        tone, medium, crt = _levels(target[:, 0])

        assert tone == pytest.approx(4000.0, rel=0.01)
        assert medium == pytest.approx(1000.0 * BLANK_FACTOR, abs=0.5)
        assert crt == pytest.approx(4000.0 * BLANK_FACTOR, abs=0.5)
        # Bins 1..N/2-1 außer dem 1000-Hz-Bin
        assert blanked == SR // 2 - 2

    def test_keep_weak(self, tone_block):
        """Invertiert: 1000 Hz wird gedämpft, 3000 Hz und CRT bleiben."""
        _, target, blanked = _run(tone_block, invert=True)
        tone, medium, crt = _levels(target[:, 0])

        assert tone == pytest.approx(4000.0 * BLANK_FACTOR, abs=0.5)
        assert medium == pytest.approx(1000.0, rel=0.01)
        assert crt == pytest.approx(4000.0, rel=0.01)
        assert blanked == 1

    def test_both_channels_written(self, tone_block):
        """stereo schreibt beide Kanäle gleich."""
        _, target, _ = _run(tone_block, invert=False)

        np.testing.assert_array_equal(target[:, 0], target[:, 1])

    def test_left_keeps_right_channel(self, tone_block):
        """left lässt den rechten Kanal unverändert."""
        _, target, _ = _run(tone_block, invert=False, channel="left")

        np.testing.assert_array_equal(target[:, 1], tone_block.samples[:, 1])
        assert not np.array_equal(target[:, 0], tone_block.samples[:, 0])

    def test_floor_cutoff(self, tone_block):
        """Mit Rauschboden als Cutoff bleiben beide Töne erhalten."""
        floor = FloorResult(found=True, amplitude=-40.0, hertz=50.0)
        reconstructor, target, _ = _run(tone_block, invert=False, floor=floor, use_floor=True)
        tone, medium, crt = _levels(target[:, 0])

        assert reconstructor.uses_floor
        assert tone == pytest.approx(4000.0, rel=0.01)
        assert medium == pytest.approx(1000.0, rel=0.01)
        assert crt < 10.0

    def test_floor_ignored_when_not_found(self, tone_block):
        """use_floor ohne gefundenen Boden nutzt den schwächsten Peak."""
        reconstructor, _, _ = _run(tone_block, invert=False, use_floor=True)

        assert not reconstructor.uses_floor

    def test_stats(self, tone_block):
        """Statistik zählt gedämpfte Bins."""
        reconstructor, _, blanked = _run(tone_block, invert=True)

        assert reconstructor.stats.blocks == 1
        assert reconstructor.stats.max_blanked == blanked
        assert reconstructor.stats.total_blanked == blanked

    def test_target_shape_checked(self, tone_block):
        """Zielpuffer muss zur Blocklänge passen."""
        config = AnalysisConfig(window="none")
        analyzer = SpectralAnalyzer(SR, config)
        spectrum = analyzer.analyze(tone_block)
        max_magnitude = find_max_magnitude([spectrum])
        normalize_spectra([spectrum], max_magnitude)
        reconstructor = SelectiveReconstructor(
            analyzer, max_magnitude, FloorResult(found=False), config
        )

        with pytest.raises(ValueError):
            reconstructor.reconstruct(tone_block, spectrum, np.zeros((10, 2), dtype=np.int16))


class TestReconstructionStats:
    """Tests für die Diagnosewerte."""

    def test_record(self):
        """Maximum und Summe über Blöcke."""
        stats = ReconstructionStats()
        for blanked in (3, 7, 5):
            stats.record(blanked)

        assert stats == ReconstructionStats(blocks=3, max_blanked=7, total_blanked=15)
