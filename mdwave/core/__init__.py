"""
Core DSP module - fully testable without any front end.

This module contains all processing logic:
- WAV I/O (canonical 16-bit stereo PCM)
- Window functions
- Block segmentation of the audio test sequence
- Spectral analysis and peak extraction
- Global normalization and noise floor detection
- Frequency-selective reconstruction
"""

from .audio_io import SampleStream, WaveHeader, load_wave, save_wave
from .config import AnalysisConfig
from .errors import FormatError, MDWaveError, TruncatedDataError
from .floor import FloorResult, find_floor
from .normalization import MaxMagnitude, find_max_magnitude, normalize_spectra
from .peaks import FrequencyPeak, PeakList, NO_AMPLITUDE
from .pipeline import AnalysisPipeline, ProcessingResult, Signal, process_file
from .reconstruction import SelectiveReconstructor
from .segmentation import Block, BlockSegmenter, BlockType, compute_gap
from .spectral import BlockSpectrum, SpectralAnalyzer, CRT_NOISE_LOW_HZ, CRT_NOISE_HIGH_HZ
from .windows import WindowManager, create_window

__all__ = [
    "SampleStream",
    "WaveHeader",
    "load_wave",
    "save_wave",
    "AnalysisConfig",
    "FormatError",
    "MDWaveError",
    "TruncatedDataError",
    "FloorResult",
    "find_floor",
    "MaxMagnitude",
    "find_max_magnitude",
    "normalize_spectra",
    "FrequencyPeak",
    "PeakList",
    "NO_AMPLITUDE",
    "AnalysisPipeline",
    "ProcessingResult",
    "Signal",
    "process_file",
    "SelectiveReconstructor",
    "Block",
    "BlockSegmenter",
    "BlockType",
    "compute_gap",
    "BlockSpectrum",
    "SpectralAnalyzer",
    "CRT_NOISE_LOW_HZ",
    "CRT_NOISE_HIGH_HZ",
    "WindowManager",
    "create_window",
]
