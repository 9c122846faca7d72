"""
Block Segmentation

Slices a capture of the audio test into its fixed sequence of blocks.

The test sequence is 40 FM tones of 2 seconds, 100 PSG tones of 1 second
and one trailing second of silence used to measure the noise floor.

Technical assumptions:
- The console runs slightly slower than nominal: one nominal second of
  frames lasts 1.00128 seconds. Between blocks the cursor skips the
  difference, rounded up to an even sample count.
- Offsets and lengths are in stereo frames
- A block is only produced if the capture holds all of its frames;
  segmentation stops at the first block that does not fit
- The trailing floor block is optional, a capture without it is not
  reported as truncated
"""

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Iterator, Optional
import warnings

import numpy as np

from .audio_io import SampleStream
from .errors import TruncatedDataError
from .windows import WindowManager


logger = logging.getLogger(__name__)

FRAME_PERIOD_RATIO = 1.00128


class BlockType(Enum):
    """Semantic category of a block."""
    FM = "FM"
    PSG = "PSG"
    FLOOR = "Floor"


# (type, count, seconds) in recording order
TEST_SEQUENCE = (
    (BlockType.FM, 40, 2),
    (BlockType.PSG, 100, 1),
    (BlockType.FLOOR, 1, 1),
)

TOTAL_BLOCKS = sum(count for _, count, _ in TEST_SEQUENCE)


@dataclass(frozen=True, eq=False)
class Block:
    """
    One analysis unit.

    Attributes:
        index: Position in the test sequence
        type: FM, PSG or Floor
        sub_index: Position within blocks of the same type
        seconds: Nominal duration class (2 or 1)
        offset: First frame in the capture
        length: Number of frames
        window: Envelope for this duration class, None if unwindowed
        samples: View into the capture, Shape: (length, 2)
    """
    index: int
    type: BlockType
    sub_index: int
    seconds: int
    offset: int
    length: int
    window: Optional[np.ndarray]
    samples: np.ndarray


def compute_gap(sample_rate: int) -> int:
    """
    Frames skipped after each block.

    round(1.00128 x sample_rate), rounded up to even, minus sample_rate.
    """
    real_second = math.floor(FRAME_PERIOD_RATIO * sample_rate + 0.5)
    if real_second % 2:
        real_second += 1
    return real_second - sample_rate


def sequence_length_frames(sample_rate: int) -> int:
    """Frames needed to hold the complete sequence including the floor block."""
    gap = compute_gap(sample_rate)
    total = 0
    for _, count, seconds in TEST_SEQUENCE:
        total += count * (seconds * sample_rate + gap)
    # No gap is needed after the last block
    return total - gap


@dataclass(frozen=True)
class _Placement:
    index: int
    type: BlockType
    sub_index: int
    seconds: int
    offset: int
    length: int


class BlockSegmenter:
    """
    Restartable sequence of the blocks found in a capture.

    The layout is computed once; every iteration yields fresh Block
    descriptors over the same frames, so the analysis pass and the
    reconstruction pass walk identical offsets.

    Attributes:
        gap: Frames skipped between blocks
        truncation: TruncatedDataError if the capture ended early, else None
    """

    def __init__(self, stream: SampleStream, windows: WindowManager):
        self.stream = stream
        self.windows = windows
        self.gap = compute_gap(stream.sample_rate)
        self.truncation: Optional[TruncatedDataError] = None
        self._placements = self._plan()

        if self.truncation is not None:
            logger.warning(str(self.truncation))
            warnings.warn(self.truncation, stacklevel=2)

    def _plan(self) -> list[_Placement]:
        sample_rate = self.stream.sample_rate
        available = self.stream.num_frames
        placements: list[_Placement] = []
        pos = 0
        index = 0

        for block_type, count, seconds in TEST_SEQUENCE:
            length = seconds * sample_rate
            for sub_index in range(1, count + 1):
                if pos + length > available:
                    if index != TOTAL_BLOCKS - 1:
                        self.truncation = TruncatedDataError(
                            "Unexpected end of file after block "
                            f"{index} of {TOTAL_BLOCKS}, please record the full audio test",
                            blocks_produced=index,
                            blocks_expected=TOTAL_BLOCKS,
                        )
                    return placements

                placements.append(_Placement(
                    index=index,
                    type=block_type,
                    sub_index=sub_index,
                    seconds=seconds,
                    offset=pos,
                    length=length,
                ))
                pos += length + self.gap
                index += 1

        return placements

    def __iter__(self) -> Iterator[Block]:
        for p in self._placements:
            yield Block(
                index=p.index,
                type=p.type,
                sub_index=p.sub_index,
                seconds=p.seconds,
                offset=p.offset,
                length=p.length,
                window=self.windows.get(p.length),
                samples=self.stream.frames(p.offset, p.length),
            )

    def __len__(self) -> int:
        return len(self._placements)

    @property
    def has_floor(self) -> bool:
        """True if the trailing silence block was captured."""
        return bool(self._placements) and self._placements[-1].type is BlockType.FLOOR
