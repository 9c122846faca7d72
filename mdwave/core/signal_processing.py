"""
General Signal Processing

Channel reduction, windowing and conversion back to 16-bit PCM.

Technical assumptions:
- Downmix of both channels is the arithmetic mean (no energy compensation)
- Samples stay in integer scale (-32768..32767), no normalization to [-1, 1]
- Writing back rounds half away from zero and clips to int16
"""

from typing import Optional

import numpy as np

from .config import ChannelName


INT16_MIN = -32768
INT16_MAX = 32767


def downmix_to_mono(
    data: np.ndarray,
    channel: ChannelName = "stereo",
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Reduce a stereo block to one channel.

    Methods:
    - left: Left channel only
    - right: Right channel only
    - stereo: (L + R) / 2

    Args:
        data: Stereo samples, Shape: (samples, 2)
        channel: Channel selector
        out: Optional float64 buffer of length samples to write into

    Returns:
        Mono samples as float64, Shape: (samples,)
    """
    if data.ndim != 2 or data.shape[1] != 2:
        raise ValueError(f"Expected stereo (samples, 2), got: {data.shape}")

    if out is None:
        out = np.empty(data.shape[0], dtype=np.float64)

    if channel == "left":
        np.copyto(out, data[:, 0])
    elif channel == "right":
        np.copyto(out, data[:, 1])
    elif channel == "stereo":
        np.add(data[:, 0], data[:, 1], out=out, dtype=np.float64)
        out /= 2.0
    else:
        raise ValueError(f"Unknown channel: {channel}")

    return out


def apply_window(data: np.ndarray, window: Optional[np.ndarray]) -> np.ndarray:
    """
    Multiply a mono signal in place by a window envelope.

    A None window leaves the signal untouched.
    """
    if window is None:
        return data
    if len(window) != len(data):
        raise ValueError(f"Window length {len(window)} does not match signal length {len(data)}")
    data *= window
    return data


def to_pcm16(data: np.ndarray) -> np.ndarray:
    """Round half away from zero and clip to the int16 range."""
    rounded = np.trunc(data + np.copysign(0.5, data))
    return np.clip(rounded, INT16_MIN, INT16_MAX).astype(np.int16)


def write_back(
    target: np.ndarray,
    mono: np.ndarray,
    channel: ChannelName = "stereo",
) -> None:
    """
    Write a mono signal into a stereo block.

    stereo writes both channels, left/right only the selected one;
    the other channel keeps whatever target already holds.

    Args:
        target: int16 stereo buffer, Shape: (samples, 2)
        mono: Samples to write, Shape: (samples,)
        channel: Channel selector used for the reduction
    """
    pcm = to_pcm16(mono)
    if channel in ("left", "stereo"):
        target[:, 0] = pcm
    if channel in ("right", "stereo"):
        target[:, 1] = pcm
