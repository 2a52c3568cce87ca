"""Tests for blocked-range normalisation and merging."""

import random
from datetime import date, timedelta

from apps.bookings.domain.ranges import merge_ranges
from shared.domain.value_objects import DateRange


def _days(ranges):
    covered = set()
    for r in ranges:
        day = r.start
        while day <= r.end:
            covered.add(day)
            day += timedelta(days=1)
    return covered


def test_empty_input():
    assert merge_ranges([]) == []


def test_overlapping_and_touching_ranges_merge():
    ranges = [
        DateRange(date(2024, 1, 12), date(2024, 1, 20)),
        DateRange(date(2024, 1, 10), date(2024, 1, 15)),
        DateRange(date(2024, 1, 20), date(2024, 1, 22)),
    ]
    assert merge_ranges(ranges) == [DateRange(date(2024, 1, 10), date(2024, 1, 22))]


def test_adjacent_days_stay_separate():
    ranges = [
        DateRange(date(2024, 1, 16), date(2024, 1, 18)),
        DateRange(date(2024, 1, 10), date(2024, 1, 15)),
    ]
    assert merge_ranges(ranges) == [
        DateRange(date(2024, 1, 10), date(2024, 1, 15)),
        DateRange(date(2024, 1, 16), date(2024, 1, 18)),
    ]


def test_contained_range_does_not_shrink_running_range():
    ranges = [
        DateRange(date(2024, 1, 1), date(2024, 1, 31)),
        DateRange(date(2024, 1, 5), date(2024, 1, 6)),
    ]
    assert merge_ranges(ranges) == [DateRange(date(2024, 1, 1), date(2024, 1, 31))]


def test_merge_is_sorted_disjoint_and_covers_the_same_days():
    rng = random.Random(20240110)
    base = date(2024, 1, 1)
    for _ in range(200):
        ranges = []
        for _ in range(rng.randint(0, 12)):
            start = base + timedelta(days=rng.randint(0, 60))
            ranges.append(DateRange(start, start + timedelta(days=rng.randint(0, 10))))

        merged = merge_ranges(ranges)

        assert len(merged) <= len(ranges)
        assert _days(merged) == _days(ranges)
        for left, right in zip(merged, merged[1:]):
            assert left.end < right.start
