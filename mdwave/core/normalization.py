"""
Global normalization.

The maximum magnitude is reduced once over the raw peaks of every block.
All amplitudes of a signal, in both passes, are relative to that snapshot.
"""

from dataclasses import dataclass
import logging
from typing import Sequence

import numpy as np

from .peaks import NO_AMPLITUDE
from .spectral import BlockSpectrum


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaxMagnitude:
    """Location of the strongest raw peak of a signal."""
    magnitude: float = 0.0
    hertz: float = 0.0
    block: int = -1


def find_max_magnitude(spectra: Sequence[BlockSpectrum]) -> MaxMagnitude:
    """
    Strongest raw magnitude over all blocks.

    The first block holding the maximum wins.
    """
    best = MaxMagnitude()
    for spectrum in spectra:
        if spectrum.frozen:
            raise RuntimeError(f"Block {spectrum.index} is already normalized")
        peaks = spectrum.peaks
        if len(peaks) and peaks.max_magnitude > best.magnitude:
            best = MaxMagnitude(
                magnitude=peaks.max_magnitude,
                hertz=float(peaks.hertz[0]),
                block=spectrum.index,
            )
    return best


def normalize_spectra(spectra: Sequence[BlockSpectrum], max_magnitude: MaxMagnitude) -> None:
    """Convert every peak to percentage and dBFS against max_magnitude."""
    if max_magnitude.magnitude == 0:
        logger.warning("Signal has no spectral content, amplitudes cannot be computed")

    for spectrum in spectra:
        spectrum.peaks.normalize(max_magnitude.magnitude)


def calculate_amplitude(magnitude: np.ndarray, max_magnitude: float) -> np.ndarray:
    """
    20*log10(magnitude / max_magnitude), NO_AMPLITUDE where undefined.

    Works on scalars and arrays.
    """
    magnitude = np.asarray(magnitude, dtype=np.float64)
    amplitude = np.full(magnitude.shape, NO_AMPLITUDE)
    if max_magnitude > 0:
        nonzero = magnitude > 0
        amplitude[nonzero] = 20 * np.log10(magnitude[nonzero] / max_magnitude)
    return amplitude
