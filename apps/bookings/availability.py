"""
Availability engine.

Answers three questions from the open bookings on a box (or on every box
of one model at a location):

* is the box free for a requested range, and if not, when is it free;
* are all boxes of a model taken, and how many are free;
* which calendar days are blocked, as merged date ranges.

Only ``upcoming`` and ``active`` bookings hold a box here. Overlap is
checked inclusively on both ends: a booking ending on the 15th blocks a
request starting on the 15th.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from django.db.models import Prefetch  # type: ignore
from django.utils import timezone  # type: ignore

from apps.locations.models import Box, Location

from .domain.ranges import booking_to_range, merge_ranges
from .exceptions import BoxNotFound, LocationNotFound
from .models import OPEN_STATUSES, Booking
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return timezone.localtime(value).isoformat() if value is not None else None


@dataclass(frozen=True)
class AvailabilityResult:
    is_available: bool
    next_available_date: Optional[datetime] = None
    conflicting_bookings: tuple = ()

    def to_dict(self) -> dict:
        return {
            "is_available": self.is_available,
            "next_available_date": _isoformat(self.next_available_date),
            "conflicting_bookings": [b.pk for b in self.conflicting_bookings],
        }


@dataclass(frozen=True)
class ModelAvailability:
    is_fully_booked: bool
    next_available_date: Optional[datetime]
    available_boxes: int
    total_boxes: int

    def to_dict(self) -> dict:
        return {
            "is_fully_booked": self.is_fully_booked,
            "next_available_date": _isoformat(self.next_available_date),
            "available_boxes": self.available_boxes,
            "total_boxes": self.total_boxes,
        }


@dataclass(frozen=True)
class BlockedRanges:
    ranges: list[DateRange] = field(default_factory=list)
    total_bookings: int = 0
    merged_count: int = 0

    def to_dict(self) -> dict:
        return {
            "blocked_ranges": [r.to_dict() for r in self.ranges],
            "total_bookings": self.total_bookings,
            "merged_count": self.merged_count,
        }


def has_date_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Inclusive overlap of two windows; touching bounds count."""
    return start1 <= end2 and start2 <= end1


def _is_open(booking) -> bool:
    status = getattr(booking, "status", None)
    return status is None or status in OPEN_STATUSES


def find_conflicting_bookings(
    bookings: Iterable,
    requested_start: datetime,
    requested_end: datetime,
) -> list:
    return [
        booking
        for booking in bookings
        if _is_open(booking)
        and has_date_overlap(booking.start_date, booking.end_date, requested_start, requested_end)
    ]


def get_latest_end_date(bookings: Sequence) -> Optional[datetime]:
    return max((b.end_date for b in bookings), default=None)


def calculate_availability(
    bookings: Sequence,
    requested_start: Optional[datetime] = None,
    requested_end: Optional[datetime] = None,
) -> AvailabilityResult:
    """
    Availability of a single box given its bookings.

    Without a requested range the box is free only when it has no open
    bookings at all, and ``next_available_date`` is the latest end among
    them. With a range, the box is free unless an open booking overlaps
    it, and ``next_available_date`` is the latest end among the overlaps.
    """
    open_bookings = [b for b in bookings if _is_open(b)]
    if not open_bookings:
        return AvailabilityResult(is_available=True)

    if requested_start is None or requested_end is None:
        return AvailabilityResult(
            is_available=False,
            next_available_date=get_latest_end_date(open_bookings),
        )

    conflicts = find_conflicting_bookings(open_bookings, requested_start, requested_end)
    if not conflicts:
        return AvailabilityResult(is_available=True)
    return AvailabilityResult(
        is_available=False,
        next_available_date=get_latest_end_date(conflicts),
        conflicting_bookings=tuple(conflicts),
    )


def _open_bookings_for_box(box_id: int):
    return Booking.objects.filter(box_id=box_id, status__in=OPEN_STATUSES).order_by("start_date")


def _get_box(box_id: int) -> Box:
    try:
        return Box.objects.get(pk=box_id)
    except (Box.DoesNotExist, ValueError, TypeError):
        raise BoxNotFound(f"Box {box_id} not found")


def get_box_availability(
    box_id: int,
    requested_start: Optional[datetime] = None,
    requested_end: Optional[datetime] = None,
) -> AvailabilityResult:
    box = _get_box(box_id)
    bookings = list(_open_bookings_for_box(box.pk))
    return calculate_availability(bookings, requested_start, requested_end)


def _model_boxes(location_id: int, model: str):
    try:
        exists = Location.objects.filter(pk=location_id).exists()
    except (ValueError, TypeError):
        exists = False
    if not exists:
        raise LocationNotFound(f"Location {location_id} not found")
    open_bookings = Booking.objects.filter(status__in=OPEN_STATUSES).order_by("start_date")
    return (
        Box.objects.filter(stand__location_id=location_id, model=model, status=Box.Status.ACTIVE)
        .prefetch_related(Prefetch("bookings", queryset=open_bookings, to_attr="open_bookings"))
        .order_by("pk")
    )


def calculate_model_availability(location_id: int, model: str) -> ModelAvailability:
    """
    How many active boxes of ``model`` at a location are free right now.

    A box counts as free when it has no open bookings.
    ``next_available_date`` is the latest end among all open bookings of
    the model, the point after which every box is free again.
    """
    boxes = list(_model_boxes(location_id, model))
    free = 0
    release_dates = []
    for box in boxes:
        result = calculate_availability(box.open_bookings)
        if result.is_available:
            free += 1
        elif result.next_available_date is not None:
            release_dates.append(result.next_available_date)

    return ModelAvailability(
        is_fully_booked=bool(boxes) and free == 0,
        next_available_date=max(release_dates, default=None),
        available_boxes=free,
        total_boxes=len(boxes),
    )


def get_box_blocked_ranges(box_id: int) -> BlockedRanges:
    """Calendar days taken on one box, one range per booking, sorted by start."""
    box = _get_box(box_id)
    bookings = list(_open_bookings_for_box(box.pk))
    ranges = sorted(
        (booking_to_range(b.start_date, b.end_date) for b in bookings),
        key=lambda r: (r.start, r.end),
    )
    return BlockedRanges(ranges=ranges, total_bookings=len(bookings), merged_count=len(ranges))


def get_model_blocked_ranges(location_id: int, model: str) -> BlockedRanges:
    """
    Calendar days on which *some* box of the model is taken, merged.

    Used by calendars that pick a model rather than a box; the days shown
    as blocked are the union over every active box of the model.
    """
    boxes = list(_model_boxes(location_id, model))
    bookings = [b for box in boxes for b in box.open_bookings]
    merged = merge_ranges(booking_to_range(b.start_date, b.end_date) for b in bookings)
    logger.debug(
        f"Blocked ranges for model {model} at location {location_id}: "
        f"{len(bookings)} bookings merged into {len(merged)} ranges"
    )
    return BlockedRanges(ranges=merged, total_bookings=len(bookings), merged_count=len(merged))
