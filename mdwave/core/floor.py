"""
Noise floor detection from the trailing silence block.
"""

from dataclasses import dataclass
import logging
from typing import Optional, Sequence

from .segmentation import BlockType
from .spectral import BlockSpectrum, is_crt_noise


logger = logging.getLogger(__name__)

# Quantization limit of 16-bit PCM
PCM_16BIT_MIN_AMPLITUDE = -96.0


@dataclass(frozen=True)
class FloorResult:
    """Outcome of floor detection."""
    found: bool
    amplitude: float = 0.0
    hertz: float = 0.0

    @property
    def significant(self) -> bool:
        """Whether the floor is above what 16-bit PCM can resolve."""
        return self.found and self.amplitude >= PCM_16BIT_MIN_AMPLITUDE


def find_floor_block(spectra: Sequence[BlockSpectrum]) -> Optional[BlockSpectrum]:
    for spectrum in spectra:
        if spectrum.type is BlockType.FLOOR:
            return spectrum
    return None


def find_floor(spectra: Sequence[BlockSpectrum]) -> FloorResult:
    """
    Amplitude of the loudest non-CRT peak in the silence block.

    Must run after normalization. The peak list is already sorted,
    so the first peak outside the CRT band is the answer.

    Returns:
        FloorResult, found=False if there is no usable floor
    """
    floor_block = find_floor_block(spectra)
    if floor_block is None:
        return FloorResult(found=False)
    if not floor_block.frozen:
        raise RuntimeError("Floor detection requires normalized peaks")

    for peak in floor_block.peaks:
        if not is_crt_noise(peak.hertz):
            result = FloorResult(found=True, amplitude=peak.amplitude, hertz=peak.hertz)
            logger.info(
                "Signal noise floor: %g dBFS [%g Hz]%s",
                result.amplitude, result.hertz,
                "" if result.significant else " (not significant)",
            )
            return result

    logger.warning("No meaningful floor found, ignoring the silence block")
    return FloorResult(found=False)
