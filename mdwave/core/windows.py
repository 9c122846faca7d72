"""
Window Functions

Tapering envelopes applied to a block before the forward transform.

Technical assumptions:
- Every envelope is built from its first half and mirrored, so
  w[i] == w[n-1-i] holds exactly for even and odd n
- Tukey: only the outer 2.5% at each end are attenuated, center is 1.0
- Flattop: five-term cosine sum, low scalloping loss
- Hann: raised cosine that never reaches zero at the ends
- One envelope per block duration class, reused for every block of
  that duration
"""

from typing import Optional

import numpy as np
from scipy import signal

from .config import WindowName


def _mirror(first_half: np.ndarray, n: int) -> np.ndarray:
    """Complete a symmetric window from its first ceil(n/2) values."""
    if n % 2 == 0:
        return np.concatenate([first_half, first_half[::-1]])
    return np.concatenate([first_half, first_half[-2::-1]])


def _half_length(n: int) -> int:
    return (n + 1) // 2


def tukey_window(n: int) -> np.ndarray:
    """
    Tukey-style window with 2.5% slopes.

    The slope is a steep raised cosine clamped to 1.0; only the
    edges are attenuated.
    """
    if n <= 0:
        return np.zeros(0)

    slope = n // 40 if n % 2 == 0 else (n + 1) // 40
    half = np.ones(_half_length(n))

    i = np.arange(slope)
    ramp = 85 * (1 + np.cos(2 * np.pi / max(n - 1, 1) * (i - (n - 1) // 2)))
    half[:slope] = np.minimum(ramp, 1.0)

    return _mirror(half, n)


def flattop_window(n: int) -> np.ndarray:
    """Five-term flat top window, reduces scalloping loss."""
    if n <= 0:
        return np.zeros(0)

    half = signal.windows.flattop(n)[:_half_length(n)]

    return _mirror(half, n)


def hann_window(n: int) -> np.ndarray:
    """Hann window sampled at (i+1)/(n+1), nonzero at both ends."""
    if n <= 0:
        return np.zeros(0)

    # Drop the zero end points of a window two samples longer
    half = signal.windows.hann(n + 2)[1:-1][:_half_length(n)]

    return _mirror(half, n)


_GENERATORS = {
    "tukey": tukey_window,
    "flattop": flattop_window,
    "hann": hann_window,
}


def create_window(window_type: WindowName, size: int) -> Optional[np.ndarray]:
    """
    Create window function.

    Returns:
        The envelope, or None for "none"
    """
    if window_type == "none":
        return None
    try:
        generator = _GENERATORS[window_type]
    except KeyError:
        raise ValueError(f"Unknown window function: {window_type}") from None
    return generator(size)


class WindowManager:
    """
    Holds one envelope per block length.

    Two instances per signal in practice: one sized for the 2-second
    blocks, one for the 1-second blocks.
    """

    def __init__(self, window_type: WindowName, sample_rate: int, durations=(2, 1)):
        self.window_type = window_type
        self.sample_rate = sample_rate
        self._windows: dict[int, Optional[np.ndarray]] = {}

        for seconds in durations:
            length = int(seconds * sample_rate)
            self._windows[length] = create_window(window_type, length)

    def get(self, length: int) -> Optional[np.ndarray]:
        """
        Envelope for a block of length mono samples.

        Raises:
            KeyError: No envelope was built for this length
        """
        return self._windows[length]
