"""
Extension engine.

An extension moves a booking's end date later. Other bookings on the same
box that start inside the newly claimed window are moved to another box
of the same model at the same location; if any of them cannot be moved,
nothing changes. The customer gets a new PIN for the whole extended
window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings  # type: ignore
from django.db.models import Case, IntegerField, Q, Value, When  # type: ignore
from django.utils import timezone  # type: ignore

from apps.locations.models import Box, LocationPricing
from apps.notifications.services import create_notification
from apps.payments.models import Payment
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork

from .domain.events import BookingExtended, BookingReassigned
from .domain.status import get_week_number
from .exceptions import (
    CannotExtend,
    InvalidDateFormat,
    InvalidExtensionRange,
    NoAlternativeBoxes,
    NoAvailableAlternative,
    PaymentNotFound,
    Unauthorized,
)
from .models import BLOCKING_STATUSES, Booking, BookingExtension
from .services import _default_gateway, fetch_booking, lock_rows
from .validation import CENTS, DEFAULT_END_TIME, calculate_booking_days, parse_booking_instant

logger = logging.getLogger(__name__)

NON_EXTENDABLE_STATUSES = (Booking.Status.CANCELLED, Booking.Status.COMPLETED)


@dataclass(frozen=True)
class ExtensionQuote:
    can_extend: bool
    current_end_date: datetime
    new_end_date: datetime
    additional_days: int
    price_per_day: Decimal
    additional_cost: Decimal
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "can_extend": self.can_extend,
            "current_end_date": timezone.localtime(self.current_end_date).isoformat(),
            "new_end_date": timezone.localtime(self.new_end_date).isoformat(),
            "additional_days": self.additional_days,
            "price_per_day": str(self.price_per_day),
            "additional_cost": str(self.additional_cost),
            "reason": self.reason,
        }


@dataclass
class Reassignment:
    booking_id: int
    from_box_id: int
    to_box_id: int


@dataclass
class ExtensionResult:
    success: bool
    extension: BookingExtension
    booking: Booking
    reassignments: list[Reassignment] = field(default_factory=list)


def resolve_price_per_day(box: Box, booking_start: datetime, new_end: datetime) -> Decimal:
    """
    Daily price for an extension of a booking on ``box``.

    Among the location's weekly rules covering the week the new end falls
    in, one for the box's model beats a generic one and the newest wins a
    tie. Without a rule the box's own price applies, then the configured
    default.
    """
    week = get_week_number(new_end, booking_start)
    rule = (
        LocationPricing.objects.filter(
            Q(model_type=box.model) | Q(model_type=""),
            location_id=box.stand.location_id,
            week_from__lte=week,
            week_to__gte=week,
        )
        .annotate(
            generic=Case(When(model_type="", then=Value(1)), default=Value(0), output_field=IntegerField())
        )
        .order_by("generic", "-created_at", "-pk")
        .first()
    )
    if rule is not None:
        return rule.price_per_day
    if box.price_per_day is not None:
        return box.price_per_day
    return settings.BOOKING_DEFAULT_PRICE_PER_DAY


def _get_owned_booking(booking_id, user_id: int, *, lock: bool = False) -> Booking:
    booking = fetch_booking(booking_id, lock=lock)
    if booking.payment.user_id is None or booking.payment.user_id != user_id:
        raise Unauthorized("You do not own this booking")
    return booking


def _quote(booking: Booking, new_end_date: Any, new_end_time: Any) -> ExtensionQuote:
    if booking.status in NON_EXTENDABLE_STATUSES:
        raise CannotExtend(f"Cannot extend a {booking.status} booking")

    new_end = parse_booking_instant(new_end_date, new_end_time, DEFAULT_END_TIME)
    if new_end is None:
        raise InvalidDateFormat("Invalid date or time format")
    if new_end <= booking.end_date:
        raise InvalidExtensionRange("New end date must be after current end date")

    additional_days = calculate_booking_days(booking.end_date, new_end)
    price_per_day = Decimal(resolve_price_per_day(booking.box, booking.start_date, new_end)).quantize(CENTS)
    return ExtensionQuote(
        can_extend=True,
        current_end_date=booking.end_date,
        new_end_date=new_end,
        additional_days=additional_days,
        price_per_day=price_per_day,
        additional_cost=(price_per_day * additional_days).quantize(CENTS),
        reason=f"Extend by {additional_days} day(s)",
    )


def calculate_extension(booking_id: int, user_id: int, new_end_date: Any, new_end_time: Any = None) -> ExtensionQuote:
    """
    Quote an extension without changing anything.

    Raises :class:`BookingNotFound`, :class:`Unauthorized`,
    :class:`CannotExtend`, :class:`InvalidDateFormat` or
    :class:`InvalidExtensionRange`.
    """
    booking = _get_owned_booking(booking_id, user_id)
    return _quote(booking, new_end_date, new_end_time)


def find_displaced_bookings(booking: Booking, new_end: datetime):
    """Other bookings on the box that overlap the extended window but not the old one."""
    overlaps_new = Q(start_date__lt=new_end, end_date__gt=booking.start_date)
    overlaps_old = Q(start_date__lt=booking.end_date, end_date__gt=booking.start_date)
    queryset = (
        Booking.objects.filter(box_id=booking.box_id, status__in=BLOCKING_STATUSES)
        .exclude(pk=booking.pk)
        .filter(overlaps_new)
        .exclude(overlaps_old)
        .order_by("start_date", "pk")
    )
    return list(lock_rows(queryset))


def _has_conflict(box: Box, displaced: Booking) -> bool:
    return (
        Booking.objects.filter(
            box_id=box.pk,
            status__in=BLOCKING_STATUSES,
            start_date__lt=displaced.end_date,
            end_date__gt=displaced.start_date,
        )
        .exclude(pk=displaced.pk)
        .exists()
    )


def find_alternative_box(current_box: Box, displaced: Booking) -> Box:
    """
    Lowest-score box of the same model at the same location that is free
    for ``displaced``'s window.
    """
    candidates = list(
        lock_rows(
            Box.objects.filter(
                stand__location_id=current_box.stand.location_id,
                model=current_box.model,
                status=Box.Status.ACTIVE,
            )
            .exclude(pk=current_box.pk)
            .order_by("score", "pk")
        )
    )
    if not candidates:
        raise NoAlternativeBoxes(
            "No alternative boxes of the same model exist at this location",
            booking_id=displaced.pk,
        )

    for candidate in candidates:
        if not _has_conflict(candidate, displaced):
            return candidate

    raise NoAvailableAlternative(
        f"All {len(candidates)} alternative boxes are booked for the conflicting period",
        booking_id=displaced.pk,
    )


def _reassign(displaced: Booking, current_box: Box, uow: DjangoUnitOfWork) -> Reassignment:
    target = find_alternative_box(current_box, displaced)
    displaced.box = target
    displaced.save(update_fields=["box", "updated_at"])
    logger.info(f"Booking {displaced.display_code} moved from box {current_box.pk} to box {target.pk}")

    notification = None
    user_id = displaced.payment.user_id
    if user_id is None:
        logger.warning(f"Reassigned booking {displaced.display_code} has no customer to notify")
    else:
        notification = create_notification(
            user_id,
            f"Booking {displaced.display_code} moved to box {target.display_code}",
            (
                f"Another rental was extended into your dates, so your booking has been moved "
                f"from box {current_box.display_code} to box {target.display_code} at the same "
                f"location. Your dates and lock PIN are unchanged."
            ),
            entity=displaced,
        )
    uow.add_event(
        BookingReassigned(
            booking_id=displaced.pk,
            from_box_id=current_box.pk,
            to_box_id=target.pk,
            notification_id=notification.pk if notification else None,
        )
    )
    return Reassignment(booking_id=displaced.pk, from_box_id=current_box.pk, to_box_id=target.pk)


def request_extension(
    booking_id: int,
    user_id: int,
    new_end_date: Any,
    new_end_time: Any = None,
    payment_id: Optional[int] = None,
    *,
    pin_gateway=None,
    bus: Optional[MessageBus] = None,
) -> ExtensionResult:
    """
    Extend a booking, moving displaced bookings to other boxes.

    All-or-nothing: a failed reassignment or PIN request rolls back every
    reassignment already made along with the booking itself.
    """
    gateway = _default_gateway(pin_gateway)

    with DjangoUnitOfWork(bus, label=f"request_extension({booking_id})") as uow:
        booking = _get_owned_booking(booking_id, user_id, lock=True)
        quote = _quote(booking, new_end_date, new_end_time)
        box = lock_rows(Box.objects.filter(pk=booking.box_id)).get()

        payment = None
        if payment_id is not None:
            try:
                payment = Payment.objects.get(pk=payment_id)
            except Payment.DoesNotExist:
                raise PaymentNotFound(f"Payment {payment_id} not found")

        reassignments = [
            _reassign(displaced, box, uow)
            for displaced in find_displaced_bookings(booking, quote.new_end_date)
        ]

        new_pin = gateway.generate_and_parse_booking_pin(
            booking.start_date,
            quote.new_end_date,
            device_id=box.stand.lock_device_id or None,
        )

        extension = BookingExtension.objects.create(
            booking=booking,
            payment=payment,
            previous_end_date=booking.end_date,
            new_end_date=quote.new_end_date,
            previous_lock_pin=booking.lock_pin,
            new_lock_pin=new_pin,
            additional_days=quote.additional_days,
            additional_cost=quote.additional_cost,
            box_status_at_extension=box.status,
        )

        booking.end_date = quote.new_end_date
        booking.lock_pin = new_pin
        booking.save(update_fields=["end_date", "lock_pin", "updated_at"])

        local_end = timezone.localtime(quote.new_end_date)
        notification = create_notification(
            user_id,
            f"Booking {booking.display_code} extended",
            (
                f"Your booking now ends {local_end:%Y-%m-%d %H:%M}. New lock PIN: {new_pin}. "
                f"Additional cost: {quote.additional_cost} {settings.BOOKING_CURRENCY} "
                f"for {quote.additional_days} day(s)."
            ),
            entity=booking,
        )
        uow.add_event(
            BookingExtended(
                booking_id=booking.pk,
                extension_id=extension.pk,
                additional_days=quote.additional_days,
                additional_cost=quote.additional_cost,
                notification_id=notification.pk,
            )
        )
        logger.info(
            f"Booking {booking.display_code} extended by {quote.additional_days} day(s), "
            f"{len(reassignments)} booking(s) reassigned"
        )

    return ExtensionResult(success=True, extension=extension, booking=booking, reassignments=reassignments)
