"""
Selective Reconstruction

Second pass over the blocks: attenuate the bins that fall on the wrong
side of a cutoff and transform back to the time domain.

Technical assumptions:
- Same windows, channel reduction and bin layout as the analysis pass
- Amplitudes are relative to the maximum fixed by the analysis pass
- Cutoff is the measured floor (use_floor) or the amplitude of the
  block's weakest retained peak
- invert=False keeps bins above the cutoff and always drops the CRT band;
  invert=True keeps bins at or under the cutoff and never drops the CRT band
- Bins outside [start_hz, end_hz) count as under the cutoff
- DC and Nyquist bins are left untouched
- Blanked bins are scaled by 0.001 instead of zeroed. This still rings
  (Gibbs), the output is meant for listening, not for measurement.
- The window is not undone, block edges stay tapered
"""

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np
from scipy import fft

from .config import AnalysisConfig
from .floor import FloorResult
from .normalization import MaxMagnitude, calculate_amplitude
from .segmentation import Block
from .signal_processing import write_back
from .spectral import BlockSpectrum, SpectralAnalyzer, is_crt_noise


logger = logging.getLogger(__name__)

BLANK_FACTOR = 0.001


def blank_mask(
    amplitude: np.ndarray,
    hertz: np.ndarray,
    in_range: np.ndarray,
    cutoff: float,
    invert: bool,
) -> np.ndarray:
    """
    Bins to attenuate.

    Args:
        amplitude: dBFS of each bin
        hertz: Frequency of each bin
        in_range: True for bins inside [start_hz, end_hz)
        cutoff: Amplitude threshold in dBFS
        invert: Keep what is under the cutoff instead of what exceeds it
    """
    crt = is_crt_noise(hertz)
    if not invert:
        return (amplitude <= cutoff) | ~in_range | crt
    return in_range & (amplitude > cutoff) & ~crt


@dataclass
class ReconstructionStats:
    """Diagnostics of one reconstruction pass."""
    blocks: int = 0
    max_blanked: int = 0
    total_blanked: int = 0

    def record(self, blanked: int) -> None:
        self.blocks += 1
        self.total_blanked += blanked
        if blanked > self.max_blanked:
            self.max_blanked = blanked


class SelectiveReconstructor:
    """
    Frequency-selective resynthesis of the blocks of one signal.

    Example:
        reconstructor = SelectiveReconstructor(analyzer, max_mag, floor, config)
        for block, spectrum in zip(segmenter, spectra):
            reconstructor.reconstruct(block, spectrum, output[block.offset:...])
    """

    def __init__(
        self,
        analyzer: SpectralAnalyzer,
        max_magnitude: MaxMagnitude,
        floor: FloorResult,
        config: AnalysisConfig,
        invert: Optional[bool] = None,
    ):
        self.analyzer = analyzer
        self.max_magnitude = max_magnitude
        self.floor = floor
        self.config = config
        self.invert = config.invert if invert is None else invert
        self.stats = ReconstructionStats()

    @property
    def uses_floor(self) -> bool:
        return self.config.use_floor and self.floor.found

    def cutoff(self, spectrum: BlockSpectrum) -> float:
        """Amplitude threshold for one block."""
        if self.uses_floor:
            return self.floor.amplitude
        return spectrum.peaks.weakest_amplitude

    def reconstruct(self, block: Block, spectrum: BlockSpectrum, target: np.ndarray) -> int:
        """
        Filter one block and write the result into target.

        Args:
            block: Block descriptor from the segmenter
            spectrum: Normalized peaks of the same block
            target: int16 stereo buffer for the block, Shape: (length, 2)

        Returns:
            Number of blanked bins
        """
        if target.shape != (block.length, 2):
            raise ValueError(f"Target shape {target.shape} does not match block length {block.length}")

        values = self.analyzer.transform(block)
        size = block.length
        seconds = size / self.analyzer.sample_rate
        start, end = self.analyzer.bin_range(block)

        limit = size // 2
        bins = np.arange(1, limit)
        inner = values[1:limit]
        re = inner.real
        im = inner.imag

        magnitude = np.sqrt(re * re + im * im) / size
        amplitude = calculate_amplitude(magnitude, self.max_magnitude.magnitude)
        hertz = bins / seconds
        in_range = (bins >= start) & (bins < end)

        blank = blank_mask(amplitude, hertz, in_range, self.cutoff(spectrum), self.invert)
        inner[blank] *= BLANK_FACTOR
        blanked = int(np.count_nonzero(blank))

        # irfft already scales by 1/N
        mono = fft.irfft(values, n=size)
        write_back(target, mono, self.config.channel)

        self.stats.record(blanked)
        return blanked
