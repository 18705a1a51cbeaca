"""
Range algebra for CutDeck.
All functions are pure (no side effects) and operate on timeline ranges
expressed in seconds. Silence detection is vectorized with numpy.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional
import numpy as np

from .config import SILENCE_CONFIG
from .types import EntityDict, Peaks

if TYPE_CHECKING:
    from .media import Probe


@dataclass(frozen=True)
class Range:
    """A [start, end) interval on the timeline, in seconds."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    def overlaps(self, other: "Range", epsilon: float = 0.0) -> bool:
        """True when the ranges overlap or touch (within epsilon)."""
        return self.start <= other.end + epsilon and other.start <= self.end + epsilon

    def contains(self, time: float) -> bool:
        return self.start <= time < self.end

    def to_dict(self) -> EntityDict:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: EntityDict) -> "Range":
        return cls(start=float(data["start"]), end=float(data["end"]))

    def __repr__(self) -> str:
        return f"Range({self.start:.3f}-{self.end:.3f})"


def merge_ranges(ranges: Iterable[Range], epsilon: float = 0.0) -> list[Range]:
    """
    Merge overlapping or touching ranges.

    Args:
        ranges: Ranges in any order
        epsilon: Extra gap (seconds) still treated as touching

    Returns:
        Minimal cover of the input, sorted by start, with no two ranges
        overlapping or touching
    """
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    if not ordered:
        return []

    merged: list[Range] = []
    current_start, current_end = ordered[0].start, ordered[0].end
    for rng in ordered[1:]:
        if rng.start <= current_end + epsilon:
            current_end = max(current_end, rng.end)
        else:
            merged.append(Range(current_start, current_end))
            current_start, current_end = rng.start, rng.end
    merged.append(Range(current_start, current_end))
    return merged


def silence_threshold(peaks: Peaks) -> float:
    """Amplitude below which a peak sample counts as silent."""
    samples = np.asarray(peaks, dtype=np.float64)
    loudest = float(samples.max()) if samples.size else 0.0
    return SILENCE_CONFIG.threshold_ratio * max(loudest, SILENCE_CONFIG.amplitude_floor)


def _silent_runs(silent: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return (first_index, last_index_exclusive) arrays of True runs."""
    padded = np.concatenate(([False], silent, [False])).astype(np.int8)
    edges = np.diff(padded)
    return np.flatnonzero(edges == 1), np.flatnonzero(edges == -1)


def detect_silences(probe: "Probe", peaks: Peaks, min_duration: float) -> list[Range]:
    """
    Find runs of quiet peak samples.

    Peaks are assumed to be uniformly distributed over [0, probe.duration].

    Args:
        probe: Media metadata (only duration is used)
        peaks: Amplitude samples
        min_duration: Shortest silence (seconds) worth reporting

    Returns:
        Sorted, disjoint silence ranges each at least min_duration long
    """
    samples = np.asarray(peaks, dtype=np.float64)
    if probe is None or samples.size == 0 or probe.duration <= 0:
        return []

    bin_seconds = probe.duration / samples.size
    silent = samples < silence_threshold(samples)
    starts, stops = _silent_runs(silent)

    silences = []
    for first, stop in zip(starts.tolist(), stops.tolist()):
        start_time = first * bin_seconds
        end_time = stop * bin_seconds
        if end_time - start_time >= min_duration:
            silences.append(Range(start_time, end_time))
    return silences


def tighten_silences(
    probe: "Probe",
    peaks: Peaks,
    min_duration: float,
    leave_ms: Optional[float] = None,
) -> list[Range]:
    """
    Detect silences and shrink each one inward, keeping some audible padding.

    Args:
        probe: Media metadata
        peaks: Amplitude samples
        min_duration: Shortest silence (seconds) worth cutting
        leave_ms: Padding kept on each side of the cut, in milliseconds

    Returns:
        Merged cut ranges; ranges that collapse while shrinking are dropped
    """
    if leave_ms is None:
        leave_ms = SILENCE_CONFIG.default_leave_ms
    pad = leave_ms / 1000.0

    cuts = []
    for silence in detect_silences(probe, peaks, min_duration):
        start, end = silence.start + pad, silence.end - pad
        if end - start > SILENCE_CONFIG.min_tightened_seconds:
            cuts.append(Range(start, end))
    return merge_ranges(cuts)
