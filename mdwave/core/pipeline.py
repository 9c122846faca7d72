"""
Analysis Pipeline

Runs one capture through the whole process:

    header validation -> segment and analyze (pass 1) -> normalize
    -> floor detection -> segment and reconstruct (pass 2) -> write output

Any failure aborts the run before an output file is committed.
A truncated capture is reported with a warning and processed with the
blocks it contains.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
import time
from typing import Optional

import numpy as np

from .audio_io import SampleStream, load_wave, partial_path, write_wave
from .config import AnalysisConfig
from .errors import TruncatedDataError
from .floor import FloorResult, find_floor
from .normalization import MaxMagnitude, find_max_magnitude, normalize_spectra
from .reconstruction import ReconstructionStats, SelectiveReconstructor
from .segmentation import BlockSegmenter
from .spectral import BlockSpectrum, SpectralAnalyzer, TransformArena
from .windows import WindowManager
from ..utils.formatting import (
    format_db,
    format_duration,
    format_frequency,
    format_sample_rate,
    output_file_name,
    processed_chunk_name,
    source_chunk_name,
)


logger = logging.getLogger(__name__)


@dataclass
class Signal:
    """
    Analysis state of one capture.

    Attributes:
        file_path: Source file
        sample_rate: Sample rate of the capture
        spectra: Peaks of every block produced, in sequence order
        max_magnitude: Global maximum snapshot used for all amplitudes
        has_floor: True if a usable noise floor was measured
        floor: Floor detection outcome
        truncation: Set if the capture ended before the full sequence
    """
    file_path: Path
    sample_rate: int
    spectra: list[BlockSpectrum] = field(default_factory=list)
    max_magnitude: MaxMagnitude = field(default_factory=MaxMagnitude)
    has_floor: bool = False
    floor: FloorResult = field(default_factory=lambda: FloorResult(found=False))
    truncation: Optional[TruncatedDataError] = None

    @property
    def floor_amplitude(self) -> float:
        return self.floor.amplitude if self.has_floor else 0.0

    @property
    def block_count(self) -> int:
        return len(self.spectra)


@dataclass
class ProcessingResult:
    """
    Everything one run produced.

    Attributes:
        signal: Analysis state
        outputs: Processed WAV files, one per polarity written
        chunks: Per-block debug WAV files
        stats: Reconstruction diagnostics per output file
    """
    signal: Signal
    outputs: list[Path] = field(default_factory=list)
    chunks: list[Path] = field(default_factory=list)
    stats: dict[Path, ReconstructionStats] = field(default_factory=dict)


class AnalysisPipeline:
    """
    Two-pass processing of one capture.

    Example:
        pipeline = AnalysisPipeline(AnalysisConfig(max_freq=500))
        result = pipeline.process_file("capture.wav")
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config if config is not None else AnalysisConfig()

    def process_file(
        self,
        file_path: str | Path,
        output_dir: Optional[str | Path] = None,
    ) -> ProcessingResult:
        """
        Analyze a capture and write the processed file(s).

        Args:
            file_path: WAV capture of the audio test
            output_dir: Target folder (default: next to the input)

        Returns:
            ProcessingResult

        Raises:
            FileNotFoundError: Input does not exist
            FormatError: Input is not 16-bit stereo PCM
            OSError: Reading or writing failed
        """
        stream = load_wave(file_path)
        logger.info(
            "Loaded %s: %s, %s",
            stream.file_path.name,
            format_sample_rate(stream.sample_rate),
            format_duration(stream.duration_seconds),
        )

        out_dir = Path(output_dir) if output_dir is not None else stream.file_path.parent

        arena = TransformArena()
        try:
            windows = WindowManager(self.config.window, stream.sample_rate)
            segmenter = BlockSegmenter(stream, windows)
            analyzer = SpectralAnalyzer(stream.sample_rate, self.config, arena)

            signal = self.analyze(stream, segmenter, analyzer)

            polarities = [self.config.invert]
            if self.config.both_outputs:
                polarities = [False, True]

            rendered = []
            for invert in polarities:
                output, stats = self.reconstruct(stream, signal, segmenter, analyzer, invert)
                rendered.append((invert, output, stats))
        finally:
            arena.release()

        return self._write(stream, signal, segmenter, rendered, out_dir)

    def analyze(
        self,
        stream: SampleStream,
        segmenter: BlockSegmenter,
        analyzer: SpectralAnalyzer,
    ) -> Signal:
        """Pass 1, normalization and floor detection."""
        start = time.perf_counter()

        signal = Signal(
            file_path=stream.file_path,
            sample_rate=stream.sample_rate,
            truncation=segmenter.truncation,
        )
        signal.spectra = [analyzer.analyze(block) for block in segmenter]
        logger.info("Analyzed %d of the test sequence blocks", signal.block_count)

        if self.config.clock:
            logger.info("FFT on audio blocks took %0.2fs", time.perf_counter() - start)

        # Every block must be complete before the maximum is taken
        signal.max_magnitude = find_max_magnitude(signal.spectra)
        normalize_spectra(signal.spectra, signal.max_magnitude)
        if signal.max_magnitude.block >= 0:
            logger.info(
                "Max magnitude found in block %d at %s",
                signal.max_magnitude.block,
                format_frequency(signal.max_magnitude.hertz),
            )

        if segmenter.has_floor:
            signal.floor = find_floor(signal.spectra)
            signal.has_floor = signal.floor.found

        if self.config.verbose:
            for spectrum in signal.spectra:
                _log_block_peaks(spectrum)

        return signal

    def reconstruct(
        self,
        stream: SampleStream,
        signal: Signal,
        segmenter: BlockSegmenter,
        analyzer: SpectralAnalyzer,
        invert: bool,
    ) -> tuple[np.ndarray, ReconstructionStats]:
        """
        Pass 2 into a fresh output buffer.

        Gaps between blocks and everything after the last block stay silent.
        """
        start = time.perf_counter()

        reconstructor = SelectiveReconstructor(
            analyzer, signal.max_magnitude, signal.floor, self.config, invert=invert
        )
        output = np.zeros_like(stream.data)

        for block, spectrum in zip(segmenter, signal.spectra):
            target = output[block.offset:block.offset + block.length]
            # Unselected channel keeps the source audio
            target[:] = block.samples
            reconstructor.reconstruct(block, spectrum, target)

        logger.info("Max blanked frequencies per block: %d", reconstructor.stats.max_blanked)
        if self.config.clock:
            logger.info("iFFT on audio blocks took %0.2fs", time.perf_counter() - start)

        return output, reconstructor.stats

    def _write(
        self,
        stream: SampleStream,
        signal: Signal,
        segmenter: BlockSegmenter,
        rendered: list[tuple[bool, np.ndarray, ReconstructionStats]],
        out_dir: Path,
    ) -> ProcessingResult:
        """
        Stage every file as a partial sibling, then move them all into place.

        A failure while staging removes what was staged, so a run commits
        either all of its files or none.
        """
        result = ProcessingResult(signal=signal)
        used_floor = self.config.use_floor and signal.has_floor
        pending: list[tuple[Path, np.ndarray]] = []

        for invert, output, stats in rendered:
            name = output_file_name(stream.file_path, invert, used_floor, self.config.max_freq)
            path = out_dir / name
            pending.append((path, output))
            result.outputs.append(path)
            result.stats[path] = stats

            if self.config.chunks:
                for block in segmenter:
                    chunk = output[block.offset:block.offset + block.length]
                    path = out_dir / processed_chunk_name(block.index, name)
                    pending.append((path, chunk))
                    result.chunks.append(path)

        if self.config.chunks:
            for block in segmenter:
                path = out_dir / source_chunk_name(block.index, stream.file_path)
                pending.append((path, np.ascontiguousarray(block.samples)))
                result.chunks.append(path)

        out_dir.mkdir(parents=True, exist_ok=True)
        staged: list[Path] = []
        try:
            for path, data in pending:
                partial = partial_path(path)
                staged.append(partial)
                write_wave(data, partial, stream.sample_rate)
        except BaseException:
            for partial in staged:
                partial.unlink(missing_ok=True)
            raise

        for path, _ in pending:
            partial_path(path).replace(path)
        for path in result.outputs:
            logger.info("Wrote %s", path)

        return result


def _log_block_peaks(spectrum: BlockSpectrum, limit: int = 10) -> None:
    """Verbose listing of the strongest peaks of a block."""
    logger.debug("==================== %s block %d ====================",
                 spectrum.type.value, spectrum.index)
    for i, peak in enumerate(spectrum.peaks):
        if i >= limit:
            break
        logger.debug("[%5d] %10.2f Hz %s (%.2f%%)",
                     i, peak.hertz, format_db(peak.amplitude, precision=4), peak.magnitude)


def process_file(
    file_path: str | Path,
    config: Optional[AnalysisConfig] = None,
    output_dir: Optional[str | Path] = None,
) -> ProcessingResult:
    """Convenience wrapper around AnalysisPipeline.process_file."""
    return AnalysisPipeline(config).process_file(file_path, output_dir)
