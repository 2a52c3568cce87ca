"""Tests for handing a box back at the end of a rental."""

from datetime import datetime

import pytest
from django.utils import timezone

from apps.bookings.application.bootstrap import build_message_bus
from apps.bookings.domain.events import BoxReturned
from apps.bookings.exceptions import BookingNotFound, CannotReturn, IncompleteReturn, Unauthorized
from apps.bookings.models import Booking, BoxReturn
from apps.bookings.services import ReturnPhotos, can_return_box, return_box
from apps.notifications.models import Notification

PHOTOS = ReturnPhotos(
    box_front_view="https://cdn.example.com/returns/front.jpg",
    box_back_view="https://cdn.example.com/returns/back.jpg",
    closed_stand_lock="https://cdn.example.com/returns/lock.jpg",
)


def local(*args):
    return timezone.make_aware(datetime(*args))


@pytest.fixture
def rental(site, customer, make_booking):
    return make_booking(
        site["boxes"][0],
        local(2030, 1, 10, 10),
        local(2030, 1, 13, 10),
        user=customer,
        status=Booking.Status.ACTIVE,
    )


@pytest.mark.django_db
def test_return_completes_booking_and_keeps_photos(rental, customer):
    booking = return_box(rental.pk, customer.pk, PHOTOS, True, now=local(2030, 1, 12, 10))

    booking.refresh_from_db()
    assert booking.status == Booking.Status.COMPLETED
    assert booking.returned_at == local(2030, 1, 12, 10)
    record = BoxReturn.objects.get(booking=booking)
    assert record.confirmed_good_status
    assert record.box_front_view == PHOTOS.box_front_view
    assert record.closed_stand_lock == PHOTOS.closed_stand_lock
    assert Notification.objects.filter(user=customer, entity_id=str(booking.pk)).exists()


@pytest.mark.django_db
def test_return_scores_box_by_actual_rental_length(rental, customer):
    return_box(rental.pk, customer.pk, PHOTOS, True, now=local(2030, 1, 12, 10))

    rental.box.refresh_from_db()
    assert rental.box.score == 48


@pytest.mark.django_db
def test_return_publishes_event_after_commit(rental, customer, django_capture_on_commit_callbacks):
    bus = build_message_bus()
    received = []
    bus.register_event_handler(BoxReturned, received.append)

    with django_capture_on_commit_callbacks(execute=True):
        return_box(rental.pk, customer.pk, PHOTOS, True, bus=bus, now=local(2030, 1, 12, 10))

    assert [event.booking_id for event in received] == [rental.pk]
    assert received[0].notification_id is not None


@pytest.mark.django_db
@pytest.mark.parametrize(
    "photos, confirmed",
    [
        (PHOTOS, False),
        (ReturnPhotos(PHOTOS.box_front_view, "", PHOTOS.closed_stand_lock), True),
        (ReturnPhotos("", "", ""), True),
    ],
)
def test_incomplete_return_is_refused(rental, customer, photos, confirmed):
    with pytest.raises(IncompleteReturn):
        return_box(rental.pk, customer.pk, photos, confirmed, now=local(2030, 1, 12))

    assert Booking.objects.get(pk=rental.pk).status == Booking.Status.ACTIVE
    assert not BoxReturn.objects.exists()


@pytest.mark.django_db
def test_only_owner_can_return(rental, other_customer):
    with pytest.raises(Unauthorized):
        return_box(rental.pk, other_customer.pk, PHOTOS, True, now=local(2030, 1, 12))
    assert not BoxReturn.objects.exists()


@pytest.mark.django_db
@pytest.mark.parametrize(
    "status, message",
    [
        (Booking.Status.UPCOMING, "active rental"),
        (Booking.Status.CANCELLED, "cancelled"),
        (Booking.Status.COMPLETED, "already been returned"),
    ],
)
def test_return_needs_active_booking(rental, customer, status, message):
    Booking.objects.filter(pk=rental.pk).update(status=status)

    with pytest.raises(CannotReturn, match=message):
        return_box(rental.pk, customer.pk, PHOTOS, True, now=local(2030, 1, 12))

    check = can_return_box(rental.pk, customer.pk)
    assert not check.can_return
    assert message in check.reason


@pytest.mark.django_db
def test_second_return_is_refused(rental, customer):
    return_box(rental.pk, customer.pk, PHOTOS, True, now=local(2030, 1, 12))

    with pytest.raises(CannotReturn):
        return_box(rental.pk, customer.pk, PHOTOS, True, now=local(2030, 1, 12, 1))
    assert BoxReturn.objects.count() == 1


@pytest.mark.django_db
def test_can_return_box_for_active_rental(rental, customer):
    check = can_return_box(rental.pk, customer.pk)

    assert check.can_return
    data = check.to_dict()
    assert data["reason"] == ""
    assert data["booking"]["id"] == rental.pk
    assert data["steps"]


@pytest.mark.django_db
def test_can_return_box_checks_owner_and_id(rental, other_customer, customer):
    with pytest.raises(Unauthorized):
        can_return_box(rental.pk, other_customer.pk)
    with pytest.raises(BookingNotFound):
        can_return_box("abc", customer.pk)
