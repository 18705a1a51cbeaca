"""
Tests for range merging and silence detection.
"""
import pytest
import numpy as np

from cutdeck.core.media import Probe
from cutdeck.core.ranges import (
    Range,
    detect_silences,
    merge_ranges,
    silence_threshold,
    tighten_silences,
)


class TestRange:

    def test_duration(self):
        assert Range(1.5, 4.0).duration == pytest.approx(2.5)

    def test_is_valid(self):
        assert Range(0, 1).is_valid
        assert not Range(1, 1).is_valid
        assert not Range(2, 1).is_valid

    def test_overlaps_touching(self):
        assert Range(0, 2).overlaps(Range(2, 3))
        assert not Range(0, 2).overlaps(Range(2.1, 3))
        assert Range(0, 2).overlaps(Range(2.1, 3), epsilon=0.2)

    def test_contains_is_half_open(self):
        rng = Range(1, 2)
        assert rng.contains(1)
        assert not rng.contains(2)

    def test_dict_conversion(self):
        assert Range.from_dict({"start": 1, "end": "2.5"}) == Range(1.0, 2.5)
        assert Range(1.0, 2.5).to_dict() == {"start": 1.0, "end": 2.5}


class TestMergeRanges:

    def test_empty(self):
        assert merge_ranges([]) == []

    def test_overlapping_are_fused(self):
        merged = merge_ranges([Range(0, 2), Range(1, 3), Range(5, 6)])
        assert merged == [Range(0, 3), Range(5, 6)]

    def test_touching_are_fused(self):
        assert merge_ranges([Range(0, 1), Range(1, 2)]) == [Range(0, 2)]

    def test_unsorted_input(self):
        merged = merge_ranges([Range(5, 6), Range(1, 3), Range(0, 2)])
        assert merged == [Range(0, 3), Range(5, 6)]

    def test_contained_range(self):
        assert merge_ranges([Range(0, 10), Range(2, 3)]) == [Range(0, 10)]

    def test_epsilon_bridges_small_gaps(self):
        ranges = [Range(0, 1), Range(1.05, 2)]
        assert merge_ranges(ranges) == ranges
        assert merge_ranges(ranges, epsilon=0.1) == [Range(0, 2)]

    def test_result_is_disjoint_and_sorted(self):
        merged = merge_ranges([Range(7, 9), Range(0, 1), Range(8, 12), Range(3, 4), Range(0.5, 2)])
        for left, right in zip(merged, merged[1:]):
            assert left.end < right.start

    def test_idempotent(self):
        once = merge_ranges([Range(0, 2), Range(1, 3), Range(5, 6)])
        assert merge_ranges(once) == once

    @pytest.mark.parametrize("ranges", [
        [Range(0, 2), Range(1, 3), Range(5, 6)],
        [Range(4, 5), Range(0, 1), Range(1, 2), Range(2.5, 4.2)],
        [Range(0, 10), Range(2, 3), Range(9, 12), Range(20, 21)],
        [Range(3, 3.5)],
    ])
    def test_union_is_preserved(self, ranges):
        def covered(time, cover):
            return any(r.start <= time <= r.end for r in cover)

        merged = merge_ranges(ranges)

        for rng in ranges:
            for time in (rng.start, (rng.start + rng.end) / 2, rng.end):
                assert covered(time, merged)
        for rng in merged:
            steps = 16
            for k in range(steps + 1):
                assert covered(rng.start + rng.duration * k / steps, ranges)
        assert sum(r.duration for r in merged) <= sum(r.duration for r in ranges)


class TestSilenceDetection:

    def test_threshold_uses_loudest_peak(self):
        assert silence_threshold([0, 2, 4]) == pytest.approx(0.6)

    def test_threshold_has_floor(self):
        assert silence_threshold([0, 0.1]) == pytest.approx(0.15)

    def test_detects_quiet_runs(self, probe, silence_peaks):
        assert detect_silences(probe, silence_peaks, 2) == [Range(0, 3), Range(5, 8)]

    def test_min_duration_filters(self, probe, silence_peaks):
        assert detect_silences(probe, silence_peaks, 3) == [Range(0, 3), Range(5, 8)]
        assert detect_silences(probe, silence_peaks, 3.5) == []

    def test_accepts_plain_lists(self, probe):
        assert detect_silences(probe, [1, 0, 0, 0, 0, 0, 0, 1], 1) == [Range(1, 7)]

    def test_empty_peaks(self, probe):
        assert detect_silences(probe, [], 1) == []

    def test_zero_duration(self, silence_peaks):
        assert detect_silences(Probe(duration=0.0), silence_peaks, 1) == []

    def test_all_loud(self, probe):
        assert detect_silences(probe, np.ones(8), 0.5) == []

    def test_bins_scale_with_duration(self, silence_peaks):
        silences = detect_silences(Probe(duration=16.0), silence_peaks, 2)
        assert silences == [Range(0, 6), Range(10, 16)]


class TestTightenSilences:

    def test_default_padding(self, probe, silence_peaks):
        cuts = tighten_silences(probe, silence_peaks, 2)
        assert len(cuts) == 2
        assert cuts[0].start == pytest.approx(0.15)
        assert cuts[0].end == pytest.approx(2.85)
        assert cuts[1].start == pytest.approx(5.15)
        assert cuts[1].end == pytest.approx(7.85)

    def test_custom_padding(self, probe, silence_peaks):
        cuts = tighten_silences(probe, silence_peaks, 2, leave_ms=500)
        assert cuts[0].start == pytest.approx(0.5)
        assert cuts[0].end == pytest.approx(2.5)

    def test_collapsed_cuts_are_dropped(self, probe, silence_peaks):
        assert tighten_silences(probe, silence_peaks, 2, leave_ms=1500) == []

    def test_cuts_stay_inside_silences(self, probe, silence_peaks):
        silences = detect_silences(probe, silence_peaks, 2)
        for cut in tighten_silences(probe, silence_peaks, 2, leave_ms=200):
            assert any(s.start <= cut.start and cut.end <= s.end for s in silences)
