"""
Booking request validation and price calculation.

Everything here is read-only: requests are parsed into aware datetimes in
the project time zone, checked, priced, and flattened into the metadata
bag that travels with the payment until the booking is created from it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date, parse_time  # type: ignore

from apps.locations.models import Box

from .availability import get_box_availability
from .exceptions import (
    BoxNotFound,
    BoxUnavailable,
    EndBeforeStart,
    InvalidBookingMetadata,
    InvalidDateFormat,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
DEFAULT_START_TIME = "00:00"
DEFAULT_END_TIME = "23:59"
METADATA_SOURCE = "boxrental-api"
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class DateValidation:
    """Outcome of :func:`validate_booking_dates`.

    ``start``/``end`` are only set when the request parsed; ``error`` holds
    the code of the matching exception from :mod:`apps.bookings.exceptions`.
    """

    is_valid: bool
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    error: Optional[str] = None
    message: str = ""

    def raise_for_error(self) -> None:
        if self.is_valid:
            return
        if self.error == EndBeforeStart.code:
            raise EndBeforeStart(self.message)
        raise InvalidDateFormat(self.message)


@dataclass(frozen=True)
class BookingPrice:
    days: int
    price_per_day: Decimal
    subtotal: Decimal
    deposit: Decimal
    total: Decimal
    currency: str = "SEK"

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "price_per_day": str(self.price_per_day),
            "subtotal": str(self.subtotal),
            "deposit": str(self.deposit),
            "total": str(self.total),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PreparedBooking:
    box: Box
    start: datetime
    end: datetime
    price: BookingPrice
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingMetadata:
    """Booking details recovered from a payment's metadata bag."""

    box_id: int
    start_date: str
    end_date: str
    start_time: str
    end_time: str
    amount: Decimal


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return to_naive_local(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_date(value.strip())
        except ValueError:
            return None
    return None


def _as_time(value: Any) -> Optional[time]:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return parse_time(value.strip())
        except ValueError:
            return None
    return None


def to_naive_local(value: datetime) -> datetime:
    if timezone.is_aware(value):
        return timezone.make_naive(value)
    return value


def parse_booking_instant(date_value: Any, time_value: Any = None, default_time: str = DEFAULT_START_TIME) -> Optional[datetime]:
    """
    Combine a calendar date and a wall-clock time into an aware datetime.

    The wall-clock time is read in the project time zone. Returns None when
    either part does not parse.
    """
    day = _as_date(date_value)
    if day is None:
        return None
    clock = _as_time(time_value if time_value not in (None, "") else default_time)
    if clock is None:
        return None
    return timezone.make_aware(datetime.combine(day, clock.replace(tzinfo=None)))


def validate_booking_dates(
    start_date: Any,
    end_date: Any,
    start_time: Any = None,
    end_time: Any = None,
) -> DateValidation:
    start = parse_booking_instant(start_date, start_time, DEFAULT_START_TIME)
    end = parse_booking_instant(end_date, end_time, DEFAULT_END_TIME)
    if start is None or end is None:
        return DateValidation(
            is_valid=False,
            error=InvalidDateFormat.code,
            message="Invalid date or time format",
        )
    if end <= start:
        return DateValidation(
            is_valid=False,
            start=start,
            end=end,
            error=EndBeforeStart.code,
            message="End date must be after start date",
        )
    return DateValidation(is_valid=True, start=start, end=end)


def calculate_booking_days(start: datetime, end: datetime) -> int:
    """Billable days: the elapsed time in days rounded up, never below one."""
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def calculate_booking_price(
    days: int,
    price_per_day: Optional[Decimal] = None,
    deposit: Optional[Decimal] = None,
) -> BookingPrice:
    if price_per_day is None:
        price_per_day = settings.BOOKING_DEFAULT_PRICE_PER_DAY
    price_per_day = Decimal(price_per_day).quantize(CENTS)
    deposit = Decimal(deposit or 0).quantize(CENTS)
    subtotal = (price_per_day * days).quantize(CENTS)
    return BookingPrice(
        days=days,
        price_per_day=price_per_day,
        subtotal=subtotal,
        deposit=deposit,
        total=subtotal + deposit,
        currency=settings.BOOKING_CURRENCY,
    )


def build_booking_metadata(
    box: Box,
    start: datetime,
    end: datetime,
    price: BookingPrice,
) -> dict[str, str]:
    """String-only metadata bag stored on the payment."""
    local_start = timezone.localtime(start)
    local_end = timezone.localtime(end)
    return {
        "locationId": str(box.stand.location_id),
        "standId": str(box.stand_id),
        "boxId": str(box.pk),
        "model": box.model,
        "startDate": local_start.date().isoformat(),
        "endDate": local_end.date().isoformat(),
        "startTime": local_start.strftime("%H:%M"),
        "endTime": local_end.strftime("%H:%M"),
        "days": str(price.days),
        "pricePerDay": str(price.price_per_day),
        "deposit": str(price.deposit),
        "amount": str(price.total),
        "source": METADATA_SOURCE,
    }


def validate_and_prepare_booking(
    box_id: int,
    start_date: Any,
    end_date: Any,
    start_time: Any = None,
    end_time: Any = None,
    *,
    check_availability: bool = True,
) -> PreparedBooking:
    """
    Validate a booking request for ``box_id`` and price it.

    Raises :class:`InvalidDateFormat` / :class:`EndBeforeStart` for bad
    dates, :class:`BoxNotFound` for an unknown box and, unless
    ``check_availability`` is off, :class:`BoxUnavailable` when an open
    booking already covers part of the range.
    """
    validation = validate_booking_dates(start_date, end_date, start_time, end_time)
    validation.raise_for_error()

    try:
        box = Box.objects.select_related("stand").get(pk=box_id)
    except (Box.DoesNotExist, ValueError, TypeError):
        raise BoxNotFound(f"Box {box_id} not found")

    if check_availability:
        availability = get_box_availability(box.pk, validation.start, validation.end)
        if not availability.is_available:
            raise BoxUnavailable(
                "Box is already booked for the requested dates",
                next_available_date=availability.next_available_date,
            )

    days = calculate_booking_days(validation.start, validation.end)
    price = calculate_booking_price(days, box.price_per_day, box.deposit)
    metadata = build_booking_metadata(box, validation.start, validation.end, price)
    logger.info(f"Prepared booking for box {box.pk}: {days} days, total {price.total}")
    return PreparedBooking(
        box=box,
        start=validation.start,
        end=validation.end,
        price=price,
        metadata=metadata,
    )


def extract_booking_metadata(metadata: Optional[Mapping[str, Any]], payment_amount: Any) -> BookingMetadata:
    """
    Read booking details back out of a payment's metadata.

    ``boxId``, ``startDate`` and ``endDate`` are required. Times default to
    the whole day and the amount to what the payment captured.
    """
    metadata = metadata or {}
    missing = [key for key in ("boxId", "startDate", "endDate") if not metadata.get(key)]
    if missing:
        raise InvalidBookingMetadata(f"Missing booking details in payment metadata: {', '.join(missing)}")

    try:
        box_id = int(metadata["boxId"])
    except (TypeError, ValueError):
        raise InvalidBookingMetadata(f"Invalid boxId in payment metadata: {metadata['boxId']!r}")

    raw_amount = metadata.get("amount")
    try:
        amount = Decimal(str(raw_amount)) if raw_amount not in (None, "") else Decimal(str(payment_amount))
    except InvalidOperation:
        raise InvalidBookingMetadata(f"Invalid amount in payment metadata: {raw_amount!r}")

    return BookingMetadata(
        box_id=box_id,
        start_date=str(metadata["startDate"]),
        end_date=str(metadata["endDate"]),
        start_time=str(metadata.get("startTime") or DEFAULT_START_TIME),
        end_time=str(metadata.get("endTime") or DEFAULT_END_TIME),
        amount=amount.quantize(CENTS),
    )
