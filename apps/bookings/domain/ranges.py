"""Blocked date ranges.

Bookings are stored as instants; calendars work in whole local days. A
booking blocks every calendar day from its start day through its end day
inclusive.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange


def to_local_date(value: date | datetime) -> date:
    """Calendar day of ``value`` in the project time zone."""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def booking_to_range(start: date | datetime, end: date | datetime) -> DateRange:
    return DateRange(start=to_local_date(start), end=to_local_date(end))


def merge_ranges(ranges: Iterable[DateRange]) -> list[DateRange]:
    """
    Merge overlapping or touching ranges.

    The result is sorted by start, pairwise disjoint, and covers exactly
    the days covered by the input. A range that starts on the day another
    one ends is merged into it; one starting the day after is not.
    """
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    if not ordered:
        return []

    merged: list[DateRange] = []
    current = ordered[0]
    for candidate in ordered[1:]:
        if current.touches(candidate):
            if candidate.end > current.end:
                current = DateRange(start=current.start, end=candidate.end)
        else:
            merged.append(current)
            current = candidate
    merged.append(current)
    return merged
