"""Pure rules derived from a booking window: status, box score, week number."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ..models import Booking

SECONDS_PER_HOUR = 3600
DAYS_PER_WEEK = 7


def calculate_booking_status(start: datetime, end: datetime, now: datetime) -> str:
    """
    Status of a booking window relative to ``now``.

    Windows that ended before ``now`` are completed, windows containing
    ``now`` (bounds included) are active, everything else is upcoming.
    """
    if end < now:
        return Booking.Status.COMPLETED
    if start <= now <= end:
        return Booking.Status.ACTIVE
    return Booking.Status.UPCOMING


def calculate_rental_hours(start: datetime, end: datetime) -> int:
    """Whole rental hours, rounded up; at least one."""
    seconds = (end - start).total_seconds()
    if seconds < 0:
        raise ValueError(f"Rental window ends before it starts: {start} -> {end}")
    return max(1, math.ceil(seconds / SECONDS_PER_HOUR))


def calculate_box_score(start: datetime, end: datetime, returned_at: Optional[datetime] = None) -> int:
    """
    Score written to a box: the rental length in hours.

    Once the box has been returned the actual return time replaces the
    booked end.
    """
    return calculate_rental_hours(start, returned_at or end)


def get_week_number(date_value: datetime, start: datetime) -> int:
    """1-based rental week that ``date_value`` falls in, counted from ``start``."""
    days = (date_value - start).days
    return max(1, days // DAYS_PER_WEEK + 1)
