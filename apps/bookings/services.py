"""
Service layer for the booking lifecycle.

``create_booking`` is the one place a booking row comes into existence:
it completes the payment, issues the lock PIN, takes the next display
code for today and writes the booking in a single unit of work. Any
failure leaves the payment exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from django.conf import settings  # type: ignore
from django.db import NotSupportedError, connection, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.locations.models import Box
from apps.locks.services import IglooService
from apps.notifications.services import create_notification
from apps.payments.models import Payment
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork

from .domain.events import BookingCancelled, BookingCreated, BoxReturned
from .domain.status import calculate_booking_status, calculate_box_score
from .exceptions import (
    BookingNotFound,
    BoxNotFound,
    CannotCancel,
    CannotReturn,
    DataIntegrityError,
    DuplicateBooking,
    IncompleteReturn,
    PaymentNotFound,
    SequenceExhausted,
    Unauthorized,
)
from .models import OPEN_STATUSES, Booking, BoxReturn, DailyBookingSequence
from .validation import BookingMetadata, calculate_booking_days, extract_booking_metadata, validate_booking_dates

logger = logging.getLogger(__name__)

MAX_DAILY_SEQUENCE = 999
FALLBACK_BOX_SCORE = 1

SHORT_RENTAL_DAYS = 3
SHORT_RENTAL_NOTICE = timedelta(hours=24)
LONG_RENTAL_NOTICE = timedelta(hours=48)
SHORT_RENTAL_LATE_REFUND = Decimal("0.50")
LONG_RENTAL_LATE_REFUND = Decimal("0.75")
CENTS = Decimal("0.01")


def lock_rows(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        if connection.features.has_select_for_update_of:
            return queryset.select_for_update(of=("self",))
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _default_gateway(pin_gateway):
    return pin_gateway if pin_gateway is not None else IglooService.from_settings()


# ---------------------------------------------------------------------------
# Display codes
# ---------------------------------------------------------------------------


def _highest_existing_sequence(day) -> int:
    prefix = f"{day:%y%m%d}-"
    codes = Booking.objects.filter(display_code__startswith=prefix).values_list("display_code", flat=True)
    return max((int(code[len(prefix):]) for code in codes), default=0)


def generate_display_code(day=None) -> str:
    """
    Take the next ``YYMMDD-NNN`` code for ``day`` (today by default).

    Must run inside a transaction: the day's sequence row stays locked
    until the caller commits, so concurrent creations queue up behind it.
    """
    day = day or timezone.localdate()
    DailyBookingSequence.objects.get_or_create(
        day=day,
        defaults={"last_value": _highest_existing_sequence(day)},
    )
    sequence = lock_rows(DailyBookingSequence.objects.filter(day=day)).get()

    next_value = sequence.last_value + 1
    if next_value > MAX_DAILY_SEQUENCE:
        raise SequenceExhausted(f"Daily booking sequence exhausted for {day:%Y-%m-%d}")

    sequence.last_value = next_value
    sequence.save(update_fields=["last_value"])
    return f"{day:%y%m%d}-{next_value:03d}"


def compute_box_score(start: datetime, end: datetime, returned_at: Optional[datetime] = None) -> int:
    try:
        return calculate_box_score(start, end, returned_at)
    except (TypeError, ValueError, OverflowError) as exc:
        logger.warning(f"Box score calculation failed, using {FALLBACK_BOX_SCORE}: {exc}")
        return FALLBACK_BOX_SCORE


def fetch_booking(booking_id, *, lock: bool = False) -> Booking:
    """Load a booking with its payment; ids that are not numbers are simply not found."""
    try:
        queryset = Booking.objects.select_related("payment").filter(pk=booking_id)
        if lock:
            queryset = lock_rows(queryset)
        return queryset.get()
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise BookingNotFound(f"Booking {booking_id} not found")


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def _complete_payment(payment_id: int, user_id: Optional[int], now: datetime) -> Payment:
    try:
        payment = lock_rows(Payment.objects.filter(pk=payment_id)).get()
    except Payment.DoesNotExist:
        raise PaymentNotFound(f"Payment {payment_id} not found")

    if Booking.objects.filter(payment_id=payment.pk).exists():
        raise DuplicateBooking(f"Payment {payment_id} already has a booking")

    payment.user_id = user_id
    payment.completed_at = now
    payment.status = Payment.Status.COMPLETED
    payment.save(update_fields=["user", "completed_at", "status", "updated_at"])

    payment.refresh_from_db(fields=["user", "completed_at", "status"])
    if payment.user_id != user_id or payment.completed_at != now:
        raise DataIntegrityError(
            f"Payment {payment_id} did not persist completion "
            f"(user {payment.user_id!r}, completed_at {payment.completed_at!r})"
        )
    return payment


def create_booking(
    payment_id: int,
    user_id: Optional[int],
    request: BookingMetadata,
    *,
    pin_gateway=None,
    bus: Optional[MessageBus] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Turn a captured payment into a booking.

    Steps, all in one transaction: complete the payment, parse the window,
    lock the box, derive the status, issue the lock PIN, take a display
    code, insert the booking, update the box score and queue the customer
    notification. Everything except the box score is mandatory; the first
    failure rolls all of it back.
    """
    gateway = _default_gateway(pin_gateway)
    now = now or timezone.now()

    with DjangoUnitOfWork(bus, label=f"create_booking(payment={payment_id})") as uow:
        payment = _complete_payment(payment_id, user_id, now)

        validation = validate_booking_dates(
            request.start_date, request.end_date, request.start_time, request.end_time
        )
        validation.raise_for_error()
        start, end = validation.start, validation.end

        try:
            box = lock_rows(Box.objects.filter(pk=request.box_id)).get()
        except Box.DoesNotExist:
            raise BoxNotFound(f"Box {request.box_id} not found")

        status = calculate_booking_status(start, end, now)
        lock_pin = gateway.generate_and_parse_booking_pin(
            start,
            end,
            device_id=box.stand.lock_device_id or None,
        )
        score = compute_box_score(start, end)
        display_code = generate_display_code(timezone.localdate(now))

        booking = Booking.objects.create(
            display_code=display_code,
            box=box,
            payment=payment,
            start_date=start,
            end_date=end,
            status=status,
            lock_pin=lock_pin,
            total_amount=request.amount,
        )
        Box.objects.filter(pk=box.pk).update(score=score)
        logger.info(
            f"Booking {display_code} created on box {box.pk} for payment {payment.pk}: "
            f"status={status}, score={score}"
        )

        notification = None
        if user_id is not None:
            local_start = timezone.localtime(start)
            local_end = timezone.localtime(end)
            notification = create_notification(
                user_id,
                f"Booking {display_code} confirmed",
                (
                    f"Your box {box.display_code} is booked from {local_start:%Y-%m-%d %H:%M} "
                    f"to {local_end:%Y-%m-%d %H:%M}. Your lock PIN is {lock_pin}."
                ),
                entity=booking,
            )
        uow.add_event(
            BookingCreated(
                booking_id=booking.pk,
                box_id=box.pk,
                display_code=display_code,
                notification_id=notification.pk if notification else None,
            )
        )

    return booking


def create_booking_from_payment(
    payment_id: int,
    user_id: Optional[int],
    *,
    pin_gateway=None,
    bus: Optional[MessageBus] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """Create the booking described by a payment's metadata."""
    try:
        payment = Payment.objects.get(pk=payment_id)
    except Payment.DoesNotExist:
        raise PaymentNotFound(f"Payment {payment_id} not found")

    request = extract_booking_metadata(payment.metadata, payment.amount)
    return create_booking(payment.pk, user_id, request, pin_gateway=pin_gateway, bus=bus, now=now)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefundCalculation:
    eligible: bool
    refund_amount: Decimal
    refund_percentage: int
    reason: str

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "refund_amount": str(self.refund_amount),
            "refund_percentage": self.refund_percentage,
            "reason": self.reason,
        }


def calculate_refund(booking: Booking, at: Optional[datetime] = None) -> RefundCalculation:
    """
    Refund owed if ``booking`` were cancelled at ``at``.

    Rentals of up to three days refund half within 24 hours of the start;
    longer rentals refund three quarters within 48 hours. Earlier than that
    the full amount minus the transaction fee comes back. A running rental
    can be cancelled but refunds nothing.
    """
    at = at or timezone.now()
    if booking.status == Booking.Status.CANCELLED:
        return RefundCalculation(False, Decimal("0.00"), 0, "Booking is already cancelled")

    status = calculate_booking_status(booking.start_date, booking.end_date, at)
    if status == Booking.Status.COMPLETED or booking.status == Booking.Status.COMPLETED:
        return RefundCalculation(False, Decimal("0.00"), 0, "Booking has already ended")
    if status == Booking.Status.ACTIVE:
        return RefundCalculation(True, Decimal("0.00"), 0, "Rental has started; no refund")

    paid = booking.payment.amount
    days = calculate_booking_days(booking.start_date, booking.end_date)
    notice = booking.start_date - at

    if days <= SHORT_RENTAL_DAYS and notice < SHORT_RENTAL_NOTICE:
        ratio, reason = SHORT_RENTAL_LATE_REFUND, "Cancelled within 24 hours of start"
    elif days > SHORT_RENTAL_DAYS and notice < LONG_RENTAL_NOTICE:
        ratio, reason = LONG_RENTAL_LATE_REFUND, "Cancelled within 48 hours of start"
    else:
        amount = max(paid - settings.BOOKING_TRANSACTION_FEE, Decimal("0.00")).quantize(CENTS)
        return RefundCalculation(True, amount, 100, "Full refund minus transaction fee")

    return RefundCalculation(True, (paid * ratio).quantize(CENTS), int(ratio * 100), reason)


def _release_box_hours(booking: Booking) -> None:
    """Take the cancelled rental's hours back off its box score, never below zero."""
    box = lock_rows(Box.objects.filter(pk=booking.box_id)).get()
    hours = compute_box_score(booking.start_date, booking.end_date)
    box.score = max(0, box.score - hours)
    box.save(update_fields=["score", "updated_at"])
    logger.info(f"Box {box.pk} score reduced by {hours} hours to {box.score}")


def cancel_booking(
    booking_id: int,
    user_id: int,
    *,
    reason: str = "",
    bus: Optional[MessageBus] = None,
    now: Optional[datetime] = None,
) -> RefundCalculation:
    now = now or timezone.now()
    with DjangoUnitOfWork(bus, label=f"cancel_booking({booking_id})") as uow:
        booking = fetch_booking(booking_id, lock=True)
        if booking.payment.user_id is None or booking.payment.user_id != user_id:
            raise Unauthorized("You do not own this booking")

        refund = calculate_refund(booking, now)
        if not refund.eligible:
            raise CannotCancel(refund.reason)

        booking.status = Booking.Status.CANCELLED
        booking.cancelled_at = now
        booking.cancellation_reason = reason[:255]
        booking.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])
        _release_box_hours(booking)

        payment = booking.payment
        payment.refund_amount = refund.refund_amount
        if refund.refund_amount > 0:
            payment.status = Payment.Status.REFUNDED
            payment.refunded_at = now
        payment.save(update_fields=["refund_amount", "status", "refunded_at", "updated_at"])

        notification = create_notification(
            user_id,
            f"Booking {booking.display_code} cancelled",
            f"Your booking has been cancelled. Refund: {refund.refund_amount} {payment.currency}.",
            entity=booking,
        )
        uow.add_event(
            BookingCancelled(
                booking_id=booking.pk,
                refund_amount=refund.refund_amount,
                notification_id=notification.pk,
            )
        )
        logger.info(f"Booking {booking.display_code} cancelled, refund {refund.refund_amount}")

    return refund


# ---------------------------------------------------------------------------
# Box return
# ---------------------------------------------------------------------------

RETURN_STEPS = (
    "Open the stand and unlock it with the Igloo lock",
    "Take the box off the car",
    "Place the box on the stand, fasten the straps and leave the padlocks in the box",
    "Clean the box with water if needed",
    "Photograph the box from the front and from the back",
    "Close the stand and lock the Igloo lock",
    "Photograph the locked stand",
    "Confirm that the box is back in good condition",
)


@dataclass(frozen=True)
class ReturnPhotos:
    box_front_view: str
    box_back_view: str
    closed_stand_lock: str

    def is_complete(self) -> bool:
        return all((self.box_front_view, self.box_back_view, self.closed_stand_lock))


@dataclass(frozen=True)
class ReturnCheck:
    can_return: bool
    reason: str = ""
    booking: Optional[Booking] = None

    def to_dict(self) -> dict:
        data = {"can_return": self.can_return, "reason": self.reason, "steps": list(RETURN_STEPS)}
        if self.booking is not None:
            data["booking"] = {
                "id": self.booking.pk,
                "status": self.booking.status,
                "start_date": timezone.localtime(self.booking.start_date).isoformat(),
                "end_date": timezone.localtime(self.booking.end_date).isoformat(),
            }
        return data


def _return_refusal(booking: Booking) -> str:
    if booking.status == Booking.Status.COMPLETED or booking.returned_at is not None:
        return "Box has already been returned"
    if booking.status == Booking.Status.CANCELLED:
        return "Cannot return a cancelled booking"
    if booking.status != Booking.Status.ACTIVE:
        return "Can only return a box during an active rental"
    return ""


def can_return_box(booking_id, user_id: int) -> ReturnCheck:
    """Whether the owner may hand the box back now; raises only for unknown or foreign bookings."""
    booking = fetch_booking(booking_id)
    if booking.payment.user_id is None or booking.payment.user_id != user_id:
        raise Unauthorized("You do not own this booking")
    reason = _return_refusal(booking)
    return ReturnCheck(can_return=not reason, reason=reason, booking=booking)


def return_box(
    booking_id,
    user_id: int,
    photos: ReturnPhotos,
    confirmed_good_status: bool,
    *,
    bus: Optional[MessageBus] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Hand an active booking's box back.

    The booking completes at ``now``, the photos are kept on a BoxReturn
    row and the box score is recomputed from the actual rental length.
    """
    if not confirmed_good_status:
        raise IncompleteReturn("You must confirm that the box has been returned in good condition")
    if not photos.is_complete():
        raise IncompleteReturn("All three photos are required: box front, box back and the locked stand")

    now = now or timezone.now()
    with DjangoUnitOfWork(bus, label=f"return_box({booking_id})") as uow:
        booking = fetch_booking(booking_id, lock=True)
        if booking.payment.user_id is None or booking.payment.user_id != user_id:
            raise Unauthorized("You do not own this booking")
        reason = _return_refusal(booking)
        if reason:
            raise CannotReturn(reason)

        booking.status = Booking.Status.COMPLETED
        booking.returned_at = now
        booking.save(update_fields=["status", "returned_at", "updated_at"])
        BoxReturn.objects.create(
            booking=booking,
            confirmed_good_status=True,
            box_front_view=photos.box_front_view,
            box_back_view=photos.box_back_view,
            closed_stand_lock=photos.closed_stand_lock,
        )

        box = lock_rows(Box.objects.filter(pk=booking.box_id)).get()
        box.score = compute_box_score(booking.start_date, booking.end_date, now)
        box.save(update_fields=["score", "updated_at"])

        local_now = timezone.localtime(now)
        notification = create_notification(
            user_id,
            f"Booking {booking.display_code} returned",
            f"Box {box.display_code} was returned {local_now:%Y-%m-%d %H:%M}. Your deposit is released.",
            entity=booking,
        )
        uow.add_event(BoxReturned(booking_id=booking.pk, box_id=box.pk, notification_id=notification.pk))
        logger.info(f"Booking {booking.display_code} returned, box {box.pk} score {box.score}")

    return booking


# ---------------------------------------------------------------------------
# Status maintenance
# ---------------------------------------------------------------------------


def sync_booking_statuses(now: Optional[datetime] = None) -> int:
    """Move open bookings to the status their window implies; returns rows changed."""
    now = now or timezone.now()
    changes: dict[str, list[int]] = {}
    for pk, start, end, current in Booking.objects.filter(status__in=OPEN_STATUSES).values_list(
        "pk", "start_date", "end_date", "status"
    ):
        status = calculate_booking_status(start, end, now)
        if status != current:
            changes.setdefault(status, []).append(pk)

    updated = 0
    with transaction.atomic():
        for status, pks in changes.items():
            updated += Booking.objects.filter(pk__in=pks, status__in=OPEN_STATUSES).update(
                status=status, updated_at=now
            )
    if updated:
        logger.info(f"Booking status sync updated {updated} bookings")
    return updated
