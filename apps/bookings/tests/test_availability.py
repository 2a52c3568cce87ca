"""Tests for the availability engine."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest
from django.utils import timezone

from apps.bookings.availability import (
    calculate_availability,
    calculate_model_availability,
    find_conflicting_bookings,
    get_box_availability,
    get_box_blocked_ranges,
    get_model_blocked_ranges,
    has_date_overlap,
)
from apps.bookings.exceptions import BoxNotFound, LocationNotFound
from apps.bookings.models import Booking
from apps.locations.models import Box, BoxModel
from shared.domain.value_objects import DateRange


def local(*args):
    return timezone.make_aware(datetime(*args))


def _booking(start, end, status=Booking.Status.UPCOMING):
    return SimpleNamespace(start_date=start, end_date=end, status=status)


def test_overlap_is_inclusive_and_symmetric():
    a = (local(2030, 1, 10), local(2030, 1, 15))
    touching = (local(2030, 1, 15), local(2030, 1, 18))
    apart = (local(2030, 1, 16), local(2030, 1, 18))

    assert has_date_overlap(*a, *touching)
    assert has_date_overlap(*touching, *a)
    assert not has_date_overlap(*a, *apart)
    assert not has_date_overlap(*apart, *a)


def test_conflicts_ignore_closed_bookings():
    bookings = [
        _booking(local(2030, 1, 10), local(2030, 1, 15)),
        _booking(local(2030, 1, 10), local(2030, 1, 15), Booking.Status.CANCELLED),
        _booking(local(2030, 1, 10), local(2030, 1, 15), Booking.Status.COMPLETED),
    ]
    assert find_conflicting_bookings(bookings, local(2030, 1, 12), local(2030, 1, 14)) == bookings[:1]


def test_request_inside_existing_booking_is_unavailable_until_its_end():
    bookings = [_booking(local(2030, 1, 10), local(2030, 1, 15))]

    inside = calculate_availability(bookings, local(2030, 1, 12), local(2030, 1, 14))
    after = calculate_availability(bookings, local(2030, 1, 16), local(2030, 1, 18))

    assert not inside.is_available
    assert inside.next_available_date == local(2030, 1, 15)
    assert after.is_available
    assert after.next_available_date is None


def test_next_available_date_only_considers_conflicts():
    bookings = [
        _booking(local(2030, 1, 10), local(2030, 1, 15)),
        _booking(local(2030, 3, 1), local(2030, 3, 20)),
    ]
    result = calculate_availability(bookings, local(2030, 1, 12), local(2030, 1, 14))
    assert result.next_available_date == local(2030, 1, 15)


def test_without_range_any_open_booking_makes_box_unavailable():
    assert calculate_availability([]).is_available

    bookings = [
        _booking(local(2030, 1, 10), local(2030, 1, 15)),
        _booking(local(2030, 2, 1), local(2030, 2, 3)),
    ]
    result = calculate_availability(bookings)
    assert not result.is_available
    assert result.next_available_date == local(2030, 2, 3)


@pytest.mark.django_db
def test_box_availability_reads_open_bookings(site, make_booking):
    box = site["boxes"][0]
    make_booking(box, local(2030, 1, 10), local(2030, 1, 15))
    make_booking(box, local(2030, 1, 16), local(2030, 1, 18), status=Booking.Status.CANCELLED)

    assert not get_box_availability(box.pk, local(2030, 1, 12), local(2030, 1, 14)).is_available
    assert get_box_availability(box.pk, local(2030, 1, 16), local(2030, 1, 18)).is_available


@pytest.mark.django_db
def test_box_availability_unknown_box():
    with pytest.raises(BoxNotFound):
        get_box_availability(424242)


@pytest.mark.django_db
def test_model_availability_counts_free_boxes(site, make_booking):
    a1, a2, a3, _ = site["boxes"]
    make_booking(a1, local(2030, 1, 10), local(2030, 1, 15))
    make_booking(a2, local(2030, 1, 12), local(2030, 1, 20))

    result = calculate_model_availability(site["location"].pk, BoxModel.CLASSIC)

    assert result.total_boxes == 3
    assert result.available_boxes == 1
    assert not result.is_fully_booked


@pytest.mark.django_db
def test_model_fully_booked_reports_latest_end(site, make_booking):
    a1, a2, a3, _ = site["boxes"]
    make_booking(a1, local(2030, 1, 10), local(2030, 1, 15))
    make_booking(a2, local(2030, 1, 12), local(2030, 1, 20))
    make_booking(a3, local(2030, 1, 1), local(2030, 1, 3))

    result = calculate_model_availability(site["location"].pk, BoxModel.CLASSIC)

    assert result.is_fully_booked
    assert result.available_boxes == 0
    assert result.next_available_date == local(2030, 1, 20)


@pytest.mark.django_db
def test_inactive_boxes_are_not_counted(site):
    Box.objects.filter(pk=site["boxes"][0].pk).update(status=Box.Status.INACTIVE)
    result = calculate_model_availability(site["location"].pk, BoxModel.CLASSIC)
    assert result.total_boxes == 2


@pytest.mark.django_db
def test_model_with_no_boxes_is_not_fully_booked(site):
    Box.objects.filter(model=BoxModel.PRO).delete()
    result = calculate_model_availability(site["location"].pk, BoxModel.PRO)
    assert result.total_boxes == 0
    assert not result.is_fully_booked


@pytest.mark.django_db
def test_unknown_location_is_reported():
    with pytest.raises(LocationNotFound):
        calculate_model_availability(987654, BoxModel.CLASSIC)
    with pytest.raises(LocationNotFound):
        get_model_blocked_ranges(987654, BoxModel.CLASSIC)


@pytest.mark.django_db
def test_box_blocked_ranges_are_sorted_calendar_days(site, make_booking):
    box = site["boxes"][0]
    make_booking(box, local(2030, 2, 1, 10), local(2030, 2, 2, 9))
    make_booking(box, local(2030, 1, 10, 8), local(2030, 1, 15, 23, 59))

    result = get_box_blocked_ranges(box.pk)

    assert result.ranges == [
        DateRange(date(2030, 1, 10), date(2030, 1, 15)),
        DateRange(date(2030, 2, 1), date(2030, 2, 2)),
    ]
    assert result.total_bookings == 2


@pytest.mark.django_db
def test_model_blocked_ranges_merge_across_boxes(site, make_booking):
    a1, a2, a3, pro = site["boxes"]
    make_booking(a1, local(2030, 1, 10), local(2030, 1, 15))
    make_booking(a2, local(2030, 1, 14), local(2030, 1, 20))
    make_booking(a3, local(2030, 2, 1), local(2030, 2, 3))
    make_booking(pro, local(2030, 1, 1), local(2030, 1, 31))

    result = get_model_blocked_ranges(site["location"].pk, BoxModel.CLASSIC)

    assert result.ranges == [
        DateRange(date(2030, 1, 10), date(2030, 1, 20)),
        DateRange(date(2030, 2, 1), date(2030, 2, 3)),
    ]
    assert result.total_bookings == 3
    assert result.merged_count == 2
