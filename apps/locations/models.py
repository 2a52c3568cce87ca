"""Rental site models: distributors, locations, stands and boxes."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Distributor(models.Model):
    """Company that owns locations and rents out boxes."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="distributors",
    )
    name = models.CharField(max_length=255)
    contact_email = models.EmailField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Distributor")
        verbose_name_plural = _("Distributors")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Location(models.Model):
    """A distributor site containing one or more stands."""

    distributor = models.ForeignKey(
        Distributor,
        on_delete=models.CASCADE,
        related_name="locations",
    )
    display_code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Location")
        verbose_name_plural = _("Locations")
        ordering = ["display_code"]

    def __str__(self) -> str:
        return f"{self.display_code} {self.name}"


class Stand(models.Model):
    """Physical grouping of boxes within a location."""

    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="stands",
    )
    display_code = models.CharField(max_length=20)
    name = models.CharField(max_length=255, blank=True)
    lock_device_id = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Smart-lock device id; falls back to IGLOO_DEVICE_ID when empty."),
    )

    class Meta:
        verbose_name = _("Stand")
        verbose_name_plural = _("Stands")
        ordering = ["location_id", "display_code"]
        constraints = [
            models.UniqueConstraint(fields=["location", "display_code"], name="stand_code_per_location"),
        ]

    def __str__(self) -> str:
        return f"Stand {self.display_code} @ {self.location_id}"


class BoxModel(models.TextChoices):
    CLASSIC = "classic", _("Classic")
    PRO = "pro", _("Pro")


class Box(models.Model):
    """A rentable box.

    ``score`` is the rental duration in hours of the booking most recently
    created on the box; lower scores are preferred when a displaced booking
    has to be moved to another box.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        UPCOMING = "upcoming", _("Upcoming")

    stand = models.ForeignKey(
        Stand,
        on_delete=models.CASCADE,
        related_name="boxes",
    )
    display_code = models.CharField(max_length=20)
    model = models.CharField(max_length=16, choices=BoxModel.choices, default=BoxModel.CLASSIC)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    score = models.BigIntegerField(default=0)
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    deposit = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Box")
        verbose_name_plural = _("Boxes")
        ordering = ["stand_id", "display_code"]
        indexes = [
            models.Index(fields=["model", "status", "score"], name="box_model_status_score_idx"),
        ]

    def __str__(self) -> str:
        return f"Box {self.display_code} ({self.model})"

    @property
    def location_id(self):
        return self.stand.location_id


class LocationPricing(models.Model):
    """Daily price for a range of rental weeks at a location.

    Week 1 is the first seven days counted from the booking start.
    ``model_type`` restricts the rule to one box model; empty applies to all.
    """

    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name="pricing_rules",
    )
    week_from = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    week_to = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)
    model_type = models.CharField(max_length=16, choices=BoxModel.choices, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Location pricing")
        verbose_name_plural = _("Location pricing")
        ordering = ["location_id", "week_from"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(week_to__gte=models.F("week_from")),
                name="location_pricing_valid_weeks",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.location_id}: weeks {self.week_from}-{self.week_to} @ {self.price_per_day}"
