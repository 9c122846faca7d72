"""
Peak Lists

Bounded, magnitude-sorted list of the strongest bins of one block.

Ordering rules:
- Strictly non-increasing by magnitude
- On equal magnitude the earlier inserted peak stays ahead
- When full, a new peak displaces the weakest one only if it is
  strictly stronger
- Empty slots count as magnitude 0, so zero-magnitude bins are never kept
"""

from dataclasses import dataclass
from typing import Iterator

import numpy as np


# Amplitude of a peak that has not been normalized or has zero magnitude
NO_AMPLITUDE = -10000.0


@dataclass
class FrequencyPeak:
    """
    A single spectral peak.

    Attributes:
        hertz: Frequency of the bin
        magnitude: Raw magnitude, percentage of the global maximum once normalized
        amplitude: dBFS relative to the global maximum (NO_AMPLITUDE until normalized)
        phase: Phase in radians
        bin: Bin index in the block's spectrum
        matched: Index+1 of the matching peak in a comparison, 0 if none
    """
    hertz: float
    magnitude: float
    amplitude: float
    phase: float
    bin: int
    matched: int = 0


class PeakList:
    """
    Array-backed top-K container.

    insert() is O(K); from_candidates() builds the same list from a whole
    spectrum in one stable sort.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("Capacity must be at least 1")
        self.capacity = capacity
        self._count = 0
        self._hertz = np.zeros(capacity)
        self._magnitude = np.zeros(capacity)
        self._amplitude = np.full(capacity, NO_AMPLITUDE)
        self._phase = np.zeros(capacity)
        self._bin = np.zeros(capacity, dtype=np.int64)
        self._matched = np.zeros(capacity, dtype=np.int64)
        self.normalized = False

    @classmethod
    def from_candidates(
        cls,
        capacity: int,
        hertz: np.ndarray,
        magnitude: np.ndarray,
        phase: np.ndarray,
        bins: np.ndarray,
    ) -> "PeakList":
        """
        Build a list as if every candidate had been inserted in order.

        A stable descending sort keeps earlier candidates ahead on ties,
        which is exactly what repeated insert() does.
        """
        peaks = cls(capacity)

        keep = np.flatnonzero(magnitude > 0)
        order = keep[np.argsort(-magnitude[keep], kind="stable")[:capacity]]
        n = len(order)

        peaks._hertz[:n] = hertz[order]
        peaks._magnitude[:n] = magnitude[order]
        peaks._phase[:n] = phase[order]
        peaks._bin[:n] = bins[order]
        peaks._count = n
        return peaks

    def insert(self, hertz: float, magnitude: float, phase: float, bin_index: int) -> bool:
        """
        Insert a candidate.

        Returns:
            True if the candidate was kept
        """
        if self.normalized:
            raise RuntimeError("Peak list is read-only after normalization")
        if magnitude <= 0:
            return False

        count = self._count
        # Past every recorded magnitude >= candidate
        pos = int(np.searchsorted(-self._magnitude[:count], -magnitude, side="right"))
        if pos >= self.capacity:
            return False

        end = min(count, self.capacity - 1)
        for column in (self._hertz, self._magnitude, self._phase, self._bin):
            column[pos + 1:end + 1] = column[pos:end]

        self._hertz[pos] = hertz
        self._magnitude[pos] = magnitude
        self._phase[pos] = phase
        self._bin[pos] = bin_index
        self._count = end + 1
        return True

    def normalize(self, max_magnitude: float) -> None:
        """
        Convert raw magnitudes against the global maximum.

        amplitude = 20*log10(magnitude / max_magnitude) in dBFS,
        magnitude becomes a 0-100 percentage. Zero magnitudes get
        NO_AMPLITUDE instead of going through log10.
        """
        if self.normalized:
            raise RuntimeError("Peak list is already normalized")

        n = self._count
        if max_magnitude > 0:
            # ratio first, so the maximum maps to exactly 100.0 and 0.0 dB
            ratio = self._magnitude[:n] / max_magnitude
            amplitude = np.full(n, NO_AMPLITUDE)
            nonzero = ratio > 0
            amplitude[nonzero] = 20 * np.log10(ratio[nonzero])
            self._amplitude[:n] = amplitude
            self._magnitude[:n] = ratio * 100
        else:
            self._amplitude[:n] = NO_AMPLITUDE

        self.normalized = True
        for column in (self._hertz, self._magnitude, self._amplitude, self._phase, self._bin):
            column.flags.writeable = False

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, i: int) -> FrequencyPeak:
        if i < 0:
            i += self._count
        if not 0 <= i < self._count:
            raise IndexError("peak index out of range")
        return FrequencyPeak(
            hertz=float(self._hertz[i]),
            magnitude=float(self._magnitude[i]),
            amplitude=float(self._amplitude[i]),
            phase=float(self._phase[i]),
            bin=int(self._bin[i]),
            matched=int(self._matched[i]),
        )

    def __iter__(self) -> Iterator[FrequencyPeak]:
        for i in range(self._count):
            yield self[i]

    @property
    def hertz(self) -> np.ndarray:
        return self._hertz[:self._count]

    @property
    def magnitude(self) -> np.ndarray:
        return self._magnitude[:self._count]

    @property
    def amplitude(self) -> np.ndarray:
        return self._amplitude[:self._count]

    @property
    def phase(self) -> np.ndarray:
        return self._phase[:self._count]

    @property
    def bins(self) -> np.ndarray:
        return self._bin[:self._count]

    @property
    def max_magnitude(self) -> float:
        """Strongest magnitude in the list, 0 if empty."""
        return float(self._magnitude[0]) if self._count else 0.0

    @property
    def weakest_amplitude(self) -> float:
        """Amplitude of the last retained peak, NO_AMPLITUDE if empty."""
        return float(self._amplitude[self._count - 1]) if self._count else NO_AMPLITUDE
