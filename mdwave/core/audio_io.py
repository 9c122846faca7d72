"""
Audio I/O Module

Loads 16-bit stereo PCM captures of the audio test and writes processed
WAV files.

Technical assumptions:
- The input carries the canonical 44-byte WAV header, read verbatim
- Only PCM (format 1), 2 channels, 16 bits per sample are accepted
- Sample data is kept as int16, shape (frames, 2), channel order [left, right]
- Output files are written with soundfile as PCM_16
- Writes go to a temporary sibling first, a failed write leaves no output
"""

from dataclasses import dataclass
from pathlib import Path
import struct

import numpy as np
import soundfile as sf

from .errors import FormatError


WAVE_HEADER_FORMAT = "<4sI4s4sIHHIIHH4sI"
WAVE_HEADER_SIZE = struct.calcsize(WAVE_HEADER_FORMAT)  # 44

PCM_FORMAT = 1
REQUIRED_CHANNELS = 2
REQUIRED_BITS = 16
FRAME_BYTES = REQUIRED_CHANNELS * REQUIRED_BITS // 8


@dataclass
class WaveHeader:
    """
    The canonical 44-byte RIFF/WAVE header.

    Field names follow the RIFF specification.
    """
    riff: bytes
    chunk_size: int
    wave: bytes
    fmt: bytes
    subchunk1_size: int
    audio_format: int
    num_channels: int
    samples_per_sec: int
    bytes_per_sec: int
    block_align: int
    bits_per_sample: int
    subchunk2_id: bytes
    subchunk2_size: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "WaveHeader":
        """
        Parse and validate a header.

        Raises:
            FormatError: Short, malformed or unsupported header
        """
        if len(raw) < WAVE_HEADER_SIZE:
            raise FormatError(
                f"File too short for a WAV header ({len(raw)} of {WAVE_HEADER_SIZE} bytes)"
            )

        header = cls(*struct.unpack(WAVE_HEADER_FORMAT, raw[:WAVE_HEADER_SIZE]))
        header.validate()
        return header

    def validate(self) -> None:
        """Reject anything but canonical 16-bit stereo PCM."""
        if self.riff != b"RIFF" or self.wave != b"WAVE":
            raise FormatError("Not a RIFF/WAVE file")
        if self.fmt != b"fmt ":
            raise FormatError("Missing 'fmt ' chunk at the expected position")
        if self.subchunk2_id != b"data":
            raise FormatError("Missing 'data' chunk at the expected position")
        if self.audio_format != PCM_FORMAT:
            raise FormatError(f"Unsupported audio format {self.audio_format}, only PCM is supported")
        if self.num_channels != REQUIRED_CHANNELS:
            raise FormatError(f"Unsupported channel count {self.num_channels}, stereo is required")
        if self.bits_per_sample != REQUIRED_BITS:
            raise FormatError(f"Unsupported bit depth {self.bits_per_sample}, 16 bits are required")
        if self.samples_per_sec <= 0:
            raise FormatError("Invalid sample rate 0")
        if self.block_align != FRAME_BYTES:
            raise FormatError(f"Invalid block align {self.block_align}, expected {FRAME_BYTES}")
        if self.bytes_per_sec != self.samples_per_sec * FRAME_BYTES:
            raise FormatError(
                f"Invalid byte rate {self.bytes_per_sec} for {self.samples_per_sec} Hz stereo 16-bit"
            )


@dataclass
class SampleStream:
    """
    A loaded capture.

    The sample array is read-only; processing writes into a separate
    output buffer.

    Attributes:
        data: int16 samples, Shape: (frames, 2)
        sample_rate: Sample rate from the header
        header: Parsed WAV header
        file_path: Path to source file
    """
    data: np.ndarray
    sample_rate: int
    header: WaveHeader
    file_path: Path

    def __post_init__(self):
        """Validate data integrity."""
        if self.data.ndim != 2 or self.data.shape[1] != REQUIRED_CHANNELS:
            raise ValueError("Sample stream must be shaped (frames, 2)")

    @property
    def num_frames(self) -> int:
        """Number of stereo sample frames."""
        return self.data.shape[0]

    @property
    def duration_seconds(self) -> float:
        return self.num_frames / self.sample_rate

    def frames(self, start: int, count: int) -> np.ndarray:
        """View of count frames starting at start (no copy)."""
        return self.data[start:start + count]


def load_wave(file_path: str | Path) -> SampleStream:
    """
    Load a 16-bit stereo PCM WAV capture.

    The payload length comes from the header's data size. A file shorter
    than announced yields fewer frames; the segmenter reports the
    resulting truncation.

    Args:
        file_path: Path to the WAV file

    Returns:
        SampleStream with the interleaved samples as (frames, 2) int16

    Raises:
        FileNotFoundError: File does not exist
        FormatError: Header is malformed or not 16-bit stereo PCM
        OSError: File could not be read
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")

    with open(path, "rb") as f:
        header = WaveHeader.from_bytes(f.read(WAVE_HEADER_SIZE))
        payload = f.read(header.subchunk2_size)

    # Whole frames only
    usable = len(payload) - len(payload) % FRAME_BYTES
    data = np.frombuffer(payload[:usable], dtype="<i2").reshape(-1, REQUIRED_CHANNELS)

    return SampleStream(
        data=data,
        sample_rate=header.samples_per_sec,
        header=header,
        file_path=path,
    )


def partial_path(path: Path) -> Path:
    """Temporary sibling a file is written to before it is moved into place."""
    return path.with_name(path.name + ".part")


def write_wave(data: np.ndarray, file_path: str | Path, sample_rate: int) -> Path:
    """
    Write int16 stereo samples as a 16-bit PCM WAV file, in place.

    Raises:
        ValueError: Invalid data
        OSError: File could not be written
    """
    path = Path(file_path)

    if data.ndim != 2 or data.shape[1] != REQUIRED_CHANNELS:
        raise ValueError("Audio must be shaped (frames, 2)")
    if data.dtype != np.int16:
        raise ValueError("Audio data must be int16")

    try:
        sf.write(path, data, sample_rate, subtype="PCM_16", format="WAV")
    except RuntimeError as e:
        # libsndfile errors are RuntimeErrors
        path.unlink(missing_ok=True)
        raise OSError(f"Could not write {path}: {e}") from e

    return path


def save_wave(
    data: np.ndarray,
    file_path: str | Path,
    sample_rate: int,
) -> Path:
    """
    Save int16 stereo samples as a 16-bit PCM WAV file.

    The file is written next to its destination and moved into place
    once complete.

    Args:
        data: int16 samples, Shape: (frames, 2)
        file_path: Target path
        sample_rate: Sample rate

    Returns:
        The written path

    Raises:
        ValueError: Invalid data
        OSError: File could not be written
    """
    path = Path(file_path)
    partial = partial_path(path)
    try:
        write_wave(data, partial, sample_rate)
        partial.replace(path)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    return path
