"""
Gemeinsame Fixtures für synthetische Aufnahmen.
"""

import struct

import numpy as np
import pytest

from mdwave.core.audio_io import WAVE_HEADER_FORMAT
from mdwave.core.segmentation import Block, BlockType, sequence_length_frames


def _pack_header(sample_rate: int, data_size: int, **overrides) -> bytes:
    """Kanonischer 44-Byte-Header für 16-Bit-Stereo, Felder überschreibbar."""
    fields = {
        "riff": b"RIFF",
        "chunk_size": 36 + data_size,
        "wave": b"WAVE",
        "fmt": b"fmt ",
        "subchunk1_size": 16,
        "audio_format": 1,
        "num_channels": 2,
        "samples_per_sec": sample_rate,
        "bytes_per_sec": sample_rate * 4,
        "block_align": 4,
        "bits_per_sample": 16,
        "subchunk2_id": b"data",
        "subchunk2_size": data_size,
    }
    fields.update(overrides)
    return struct.pack(WAVE_HEADER_FORMAT, *fields.values())


@pytest.fixture
def header_bytes():
    """Erzeugt Header-Bytes, z.B. header_bytes(44100, 0, audio_format=3)."""
    return _pack_header


@pytest.fixture
def capture_writer(tmp_path):
    """Schreibt int16-Stereodaten mit kanonischem Header in tmp_path."""
    def _write(data, sample_rate, name="capture.wav"):
        data = np.ascontiguousarray(data, dtype="<i2")
        path = tmp_path / name
        path.write_bytes(_pack_header(sample_rate, data.nbytes) + data.tobytes())
        return path
    return _write


@pytest.fixture
def synth_capture():
    """
    Vollständige Testsequenz: Sinuston in allen FM/PSG-Blöcken,
    ±1 LSB Rauschen im abschließenden Stilleblock.
    """
    def _synth(sample_rate, tone_hz=1000.0, amplitude=8000.0, seed=1234):
        total = sequence_length_frames(sample_rate)
        t = np.arange(total) / sample_rate
        mono = np.round(amplitude * np.sin(2 * np.pi * tone_hz * t))

        floor_offset = total - sample_rate
        rng = np.random.default_rng(seed)
        mono[floor_offset:] = rng.integers(-1, 2, size=total - floor_offset)

        return np.column_stack([mono, mono]).astype(np.int16)
    return _synth


@pytest.fixture
def make_block():
    """Block direkt aus Samples (Mono wird auf beide Kanäle kopiert)."""
    def _make(samples, index=0, block_type=BlockType.PSG, window=None):
        samples = np.asarray(samples)
        if samples.ndim == 1:
            samples = np.column_stack([samples, samples])
        samples = samples.astype(np.int16)
        return Block(
            index=index,
            type=block_type,
            sub_index=1,
            seconds=1,
            offset=0,
            length=samples.shape[0],
            window=window,
            samples=samples,
        )
    return _make
