"""Shared pytest fixtures: a small rental site, payments, bookings and a fake lock gateway."""

from __future__ import annotations

import itertools
from decimal import Decimal

import pytest

from apps.locations.models import Box, BoxModel, Distributor, Location, Stand
from apps.payments.models import Payment

_codes = itertools.count(1)


class FakePinGateway:
    """Stands in for IglooService; records every window it was asked for."""

    def __init__(self, pins=(111111,), error: Exception | None = None):
        self.pins = list(pins)
        self.error = error
        self.calls: list[tuple] = []

    def generate_and_parse_booking_pin(self, start, end, access_name="Customer", device_id=None):
        self.calls.append((start, end, device_id))
        if self.error is not None:
            raise self.error
        return self.pins[min(len(self.calls), len(self.pins)) - 1]


@pytest.fixture
def customer(django_user_model):
    return django_user_model.objects.create_user(
        username="customer", email="customer@example.com", password="pass"
    )


@pytest.fixture
def other_customer(django_user_model):
    return django_user_model.objects.create_user(
        username="other", email="other@example.com", password="pass"
    )


@pytest.fixture
def site(django_user_model):
    """One location, one stand, three classic boxes and one pro box."""
    owner = django_user_model.objects.create_user(username="owner", password="pass")
    distributor = Distributor.objects.create(owner=owner, name="Boxes AB")
    location = Location.objects.create(distributor=distributor, display_code="STO1", name="Stockholm")
    stand = Stand.objects.create(location=location, display_code="A", lock_device_id="STAND-A")
    boxes = [
        Box.objects.create(stand=stand, display_code="A1", model=BoxModel.CLASSIC, price_per_day=Decimal("250.00"), score=10),
        Box.objects.create(stand=stand, display_code="A2", model=BoxModel.CLASSIC, price_per_day=Decimal("250.00"), score=5),
        Box.objects.create(stand=stand, display_code="A3", model=BoxModel.CLASSIC, price_per_day=Decimal("250.00"), score=20),
        Box.objects.create(stand=stand, display_code="P1", model=BoxModel.PRO, deposit=Decimal("50.00")),
    ]
    return {"location": location, "stand": stand, "boxes": boxes}


@pytest.fixture
def make_payment():
    def _make(user=None, amount=Decimal("950.00"), metadata=None, **extra):
        return Payment.objects.create(user=user, amount=amount, metadata=metadata or {}, **extra)

    return _make


@pytest.fixture
def make_booking(make_payment):
    """Insert a booking row directly, bypassing the creation transaction."""
    from apps.bookings.models import Booking

    def _make(box, start, end, user=None, status=Booking.Status.UPCOMING, lock_pin=999999, amount=Decimal("500.00")):
        payment = make_payment(user=user, amount=amount, status=Payment.Status.COMPLETED)
        return Booking.objects.create(
            display_code=f"300101-{next(_codes) % 1000:03d}",
            box=box,
            payment=payment,
            start_date=start,
            end_date=end,
            status=status,
            lock_pin=lock_pin,
            total_amount=amount,
        )

    return _make


@pytest.fixture
def pin_gateway():
    return FakePinGateway(pins=(123456, 654321))


@pytest.fixture
def pin_gateway_factory():
    return FakePinGateway
