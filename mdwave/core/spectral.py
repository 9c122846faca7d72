"""
Spectral Analysis Module

Turns each block into its list of strongest frequencies.

Technical assumptions:
- One real-input FFT per block over the whole block (no STFT, no overlap)
- Transform length equals the block's mono sample count, bins are
  1/duration Hz apart (0.5 Hz for FM blocks, 1 Hz for PSG blocks)
- magnitude = |X[i]| / N, hertz = i / duration, phase = atan2(im, re)
- Bins in the CRT noise band (15620-15710 Hz) are never recorded
- Amplitudes in dB are only known after global normalization
"""

from dataclasses import dataclass
import logging
import math
from typing import Optional

import numpy as np
from scipy import fft

from .config import AnalysisConfig
from .peaks import PeakList
from .segmentation import Block, BlockType
from .signal_processing import apply_window, downmix_to_mono


logger = logging.getLogger(__name__)

# Horizontal scan noise of CRT displays leaks into the capture here
CRT_NOISE_LOW_HZ = 15620.0
CRT_NOISE_HIGH_HZ = 15710.0


def is_crt_noise(hertz):
    """True where hertz lies in the CRT noise band (inclusive). Accepts arrays."""
    return (hertz >= CRT_NOISE_LOW_HZ) & (hertz <= CRT_NOISE_HIGH_HZ)


def bin_range(boxsize: float, start_hz: float, end_hz: float, size: int) -> tuple[int, int]:
    """
    Half-open bin range [start, end) analysed for a block.

    Args:
        boxsize: Block duration in seconds (bins per Hz)
        start_hz: Lowest frequency
        end_hz: Highest frequency
        size: Transform length (mono samples)
    """
    # Round to 3 decimal places so that 48 kHz and 44.1 kHz line up
    boxsize = round(boxsize, 3)
    start = math.ceil(start_hz * boxsize)
    end = min(math.floor(end_hz * boxsize), size // 2)
    return start, max(start, end)


@dataclass
class BlockSpectrum:
    """
    Peaks of one block.

    Read-only once the peak list has been normalized.
    """
    index: int
    type: BlockType
    seconds: float
    peaks: PeakList

    @property
    def frozen(self) -> bool:
        return self.peaks.normalized


class TransformArena:
    """
    Pre-sized transform input buffers, one per block length.

    Owned by one pipeline run; each block overwrites the buffer of its
    duration class completely before use.
    """

    def __init__(self):
        self._buffers: dict[int, np.ndarray] = {}

    def get(self, length: int) -> np.ndarray:
        buffer = self._buffers.get(length)
        if buffer is None:
            buffer = np.empty(length, dtype=np.float64)
            self._buffers[length] = buffer
        return buffer

    def release(self) -> None:
        self._buffers.clear()


class SpectralAnalyzer:
    """
    Forward transform and peak extraction for one signal.

    Example:
        analyzer = SpectralAnalyzer(44100, AnalysisConfig())
        spectra = [analyzer.analyze(block) for block in segmenter]
    """

    def __init__(
        self,
        sample_rate: int,
        config: AnalysisConfig,
        arena: Optional[TransformArena] = None,
    ):
        self.sample_rate = sample_rate
        self.config = config
        self.arena = arena if arena is not None else TransformArena()
        self.end_hz = config.resolved_end_hz(sample_rate)

    def transform(self, block: Block) -> np.ndarray:
        """
        Channel reduction, windowing and forward FFT of a block.

        Returns:
            One-sided complex spectrum, length N//2 + 1 (a new array)
        """
        mono = downmix_to_mono(
            block.samples, self.config.channel, out=self.arena.get(block.length)
        )
        apply_window(mono, block.window)
        return fft.rfft(mono)

    def bin_range(self, block: Block) -> tuple[int, int]:
        return bin_range(
            block.length / self.sample_rate, self.config.start_hz, self.end_hz, block.length
        )

    def analyze(self, block: Block) -> BlockSpectrum:
        """
        Extract the strongest max_freq peaks of a block.

        Returns:
            BlockSpectrum with raw (unnormalized) magnitudes
        """
        spectrum = self.transform(block)
        size = block.length
        seconds = size / self.sample_rate
        start, end = self.bin_range(block)

        bins = np.arange(start, end)
        values = spectrum[start:end]
        re = values.real
        im = values.imag

        magnitude = np.sqrt(re * re + im * im) / size
        hertz = bins / seconds
        phase = np.arctan2(im, re)

        keep = ~is_crt_noise(hertz)
        peaks = PeakList.from_candidates(
            self.config.max_freq, hertz[keep], magnitude[keep], phase[keep], bins[keep]
        )

        return BlockSpectrum(index=block.index, type=block.type, seconds=seconds, peaks=peaks)
