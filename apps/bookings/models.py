"""Booking domain models."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

DISPLAY_CODE_PATTERN = r"^\d{6}-\d{3}$"


class Booking(models.Model):
    """A box rental tied 1:1 to the payment that bought it.

    A booking row only exists together with its display code and its lock
    PIN; both are set in the creation transaction. Only the extension
    engine changes ``end_date`` and ``lock_pin`` afterwards. Bookings are
    never deleted, only moved between statuses.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        UPCOMING = "upcoming", _("Upcoming")
        ACTIVE = "active", _("Active")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")
        OVERDUE = "overdue", _("Overdue")

    display_code = models.CharField(
        max_length=10,
        unique=True,
        editable=False,
        validators=[RegexValidator(DISPLAY_CODE_PATTERN)],
    )
    box = models.ForeignKey(
        "locations.Box",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    payment = models.OneToOneField(
        "payments.Payment",
        on_delete=models.PROTECT,
        related_name="booking",
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UPCOMING)
    lock_pin = models.BigIntegerField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    returned_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["box", "status", "start_date", "end_date"], name="booking_box_status_window_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.display_code} on box {self.box_id}"


# Bookings that hold a box for their date range.
OPEN_STATUSES = (Booking.Status.UPCOMING, Booking.Status.ACTIVE)
# Bookings an extension has to work around, including not yet confirmed ones.
BLOCKING_STATUSES = (Booking.Status.PENDING, Booking.Status.UPCOMING, Booking.Status.ACTIVE)


class BookingExtension(models.Model):
    """Append-only history row, one per successful extension."""

    booking = models.ForeignKey(Booking, on_delete=models.PROTECT, related_name="extensions")
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking_extensions",
    )
    previous_end_date = models.DateTimeField()
    new_end_date = models.DateTimeField()
    previous_lock_pin = models.BigIntegerField()
    new_lock_pin = models.BigIntegerField()
    additional_days = models.PositiveIntegerField()
    additional_cost = models.DecimalField(max_digits=12, decimal_places=2)
    box_status_at_extension = models.CharField(max_length=16)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booking extension")
        verbose_name_plural = _("Booking extensions")
        ordering = ["booking_id", "created_at"]

    def __str__(self) -> str:
        return f"Extension of {self.booking_id}: {self.previous_end_date} -> {self.new_end_date}"


class DailyBookingSequence(models.Model):
    """Per-day counter behind the ``YYMMDD-NNN`` display codes.

    The row for a day is read with ``SELECT ... FOR UPDATE`` so concurrent
    booking creations on the same day take sequence numbers one at a time.
    """

    day = models.DateField(unique=True)
    last_value = models.PositiveSmallIntegerField(default=0)

    class Meta:
        verbose_name = _("Daily booking sequence")
        verbose_name_plural = _("Daily booking sequences")

    def __str__(self) -> str:
        return f"{self.day:%y%m%d}: {self.last_value}"


class BoxReturn(models.Model):
    """The customer's hand-back of a box, with the photos they took of it."""

    booking = models.OneToOneField(Booking, on_delete=models.PROTECT, related_name="box_return")
    confirmed_good_status = models.BooleanField(default=False)
    box_front_view = models.URLField(max_length=500)
    box_back_view = models.URLField(max_length=500)
    closed_stand_lock = models.URLField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Box return")
        verbose_name_plural = _("Box returns")

    def __str__(self) -> str:
        return f"Return of booking {self.booking_id}"
