"""
Analysis Configuration

All options consumed by the core, with their defaults.
Parsing of command lines or dialogs is left to the front end, which
hands over either an AnalysisConfig or a plain mapping.

Technical assumptions:
- end_hz=None means "up to Nyquist" and is resolved per signal
- tolerance, hz_width and hz_diff are carried for the comparison tool
  and are not used by the single-file pipeline
"""

from dataclasses import dataclass, fields
from typing import Any, Literal, Mapping, Optional


MAX_FREQ_COUNT = 22050
MAX_HZ = 192000.0

WindowName = Literal["none", "tukey", "flattop", "hann"]
ChannelName = Literal["left", "right", "stereo"]

WINDOW_NAMES = ("none", "tukey", "flattop", "hann")
CHANNEL_NAMES = ("left", "right", "stereo")


@dataclass
class AnalysisConfig:
    """
    Configuration for one analysis run.

    Attributes:
        tolerance: Amplitude matching tolerance in dB
        hz_width: Frequency matching width in Hz (reserved)
        hz_diff: Frequency matching difference in Hz (reserved)
        start_hz: Lowest frequency considered
        end_hz: Highest frequency considered (None = Nyquist)
        window: Tapering window applied before the transform
        channel: Channel reduction (left, right or average of both)
        max_freq: Number of peaks kept per block
        invert: Keep what falls under the cutoff instead of what exceeds it
        use_floor: Use the measured noise floor as cutoff
        chunks: Write one debug WAV per block before and after processing
        both_outputs: Write the kept and the discarded file in one run
        clock: Log the time spent in each pass
        verbose: Log the peak list of every block
    """
    tolerance: float = 3.0
    hz_width: float = 0.0
    hz_diff: float = 0.0
    start_hz: float = 10.0
    end_hz: Optional[float] = None
    window: WindowName = "tukey"
    channel: ChannelName = "stereo"
    max_freq: int = 2000
    invert: bool = False
    use_floor: bool = False
    chunks: bool = False
    both_outputs: bool = False
    clock: bool = False
    verbose: bool = False

    def __post_init__(self):
        """Validate ranges."""
        if self.window not in WINDOW_NAMES:
            raise ValueError(f"Unknown window function: {self.window}")
        if self.channel not in CHANNEL_NAMES:
            raise ValueError(f"Unknown channel: {self.channel}")
        if not 1 <= self.max_freq <= MAX_FREQ_COUNT:
            raise ValueError(
                f"Number of frequencies must be between 1 and {MAX_FREQ_COUNT}"
            )
        if self.start_hz < 1.0 or self.start_hz > MAX_HZ - 100.0:
            raise ValueError(f"Requested {self.start_hz:g} start frequency is out of range")
        if self.end_hz is not None:
            if self.end_hz < self.start_hz * 2.0:
                raise ValueError(f"Requested {self.end_hz:g} end frequency is lower than possible")
            if self.end_hz > MAX_HZ:
                raise ValueError(f"Requested {self.end_hz:g} end frequency is higher than possible")
        if self.tolerance < 0:
            raise ValueError("Tolerance must not be negative")
        if self.hz_width < 0 or self.hz_diff < 0:
            raise ValueError("Frequency tolerances must not be negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AnalysisConfig":
        """
        Build a configuration from a plain mapping.

        Keys with value None fall back to the default.

        Raises:
            ValueError: Unknown key or invalid value
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")

        return cls(**{k: v for k, v in values.items() if v is not None})

    def resolved_end_hz(self, sample_rate: int) -> float:
        """End frequency in Hz, never above Nyquist."""
        nyquist = sample_rate / 2
        if self.end_hz is None:
            return nyquist
        return min(self.end_hz, nyquist)
