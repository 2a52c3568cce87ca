"""Integration tests for the availability endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.locations.models import Box, BoxModel, Distributor, Location, Stand
from apps.payments.models import Payment

User = get_user_model()


def local(*args):
    return timezone.make_aware(datetime(*args))


class AvailabilityAPITests(APITestCase):
    def setUp(self) -> None:
        owner = User.objects.create_user(username="owner", password="pass")
        distributor = Distributor.objects.create(owner=owner, name="Boxes AB")
        self.location = Location.objects.create(distributor=distributor, display_code="MAL", name="Malmö")
        stand = Stand.objects.create(location=self.location, display_code="C")
        self.box = Box.objects.create(stand=stand, display_code="C1", model=BoxModel.CLASSIC)
        self.other = Box.objects.create(stand=stand, display_code="C2", model=BoxModel.CLASSIC)
        self._book(self.box, local(2030, 1, 10), local(2030, 1, 15), "300101-001")
        self._book(self.other, local(2030, 1, 14), local(2030, 1, 18), "300101-002")

    def _book(self, box, start, end, code):
        payment = Payment.objects.create(amount=Decimal("100.00"), status=Payment.Status.COMPLETED)
        Booking.objects.create(
            display_code=code,
            box=box,
            payment=payment,
            start_date=start,
            end_date=end,
            lock_pin=1,
        )

    def test_box_availability_for_range(self) -> None:
        url = reverse("box-availability", args=[self.box.pk])

        busy = self.client.get(url, {"start": "2030-01-12", "end": "2030-01-14"})
        free = self.client.get(url, {"start": "2030-01-16", "end": "2030-01-18"})

        self.assertEqual(busy.status_code, status.HTTP_200_OK)
        self.assertFalse(busy.data["is_available"])
        self.assertEqual(busy.data["next_available_date"], local(2030, 1, 15).isoformat())
        self.assertTrue(free.data["is_available"])

    def test_box_availability_rejects_bad_dates(self) -> None:
        response = self.client.get(reverse("box-availability", args=[self.box.pk]), {"start": "someday"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_date_format")

    def test_unknown_box(self) -> None:
        response = self.client.get(reverse("box-availability", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "box_not_found")

    def test_box_blocked_ranges(self) -> None:
        response = self.client.get(reverse("box-blocked-ranges", args=[self.box.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["blocked_ranges"], [{"start": "2030-01-10", "end": "2030-01-15"}])

    def test_model_availability(self) -> None:
        response = self.client.get(
            reverse("location-model-availability", args=[self.location.pk]), {"model": BoxModel.CLASSIC}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_boxes"], 2)
        self.assertTrue(response.data["is_fully_booked"])
        self.assertEqual(response.data["next_available_date"], local(2030, 1, 18).isoformat())

    def test_model_blocked_ranges_are_merged(self) -> None:
        response = self.client.get(
            reverse("location-model-blocked-ranges", args=[self.location.pk]), {"model": BoxModel.CLASSIC}
        )
        self.assertEqual(response.data["blocked_ranges"], [{"start": "2030-01-10", "end": "2030-01-18"}])
        self.assertEqual(response.data["total_bookings"], 2)

    def test_model_is_required(self) -> None:
        response = self.client.get(reverse("location-model-availability", args=[self.location.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_location(self) -> None:
        response = self.client.get(reverse("location-model-availability", args=[424242]), {"model": BoxModel.CLASSIC})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "location_not_found")
