"""Read-only site views and the availability endpoints."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_datetime  # type: ignore
from rest_framework import permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.availability import (
    calculate_model_availability,
    get_box_availability,
    get_box_blocked_ranges,
    get_model_blocked_ranges,
)
from apps.bookings.exceptions import BookingError, InvalidDateFormat
from apps.bookings.validation import DEFAULT_END_TIME, DEFAULT_START_TIME, parse_booking_instant
from apps.bookings.views import error_response

from .models import Box, Location
from .serializers import BoxSerializer, LocationSerializer, ModelQuerySerializer, RangeQuerySerializer


def parse_query_instant(value: str, default_time: str):
    """``2024-01-10`` or ``2024-01-10T12:00[:00][+01:00]``; empty gives None."""
    if not value:
        return None
    instant = parse_booking_instant(value, None, default_time)
    if instant is not None:
        return instant
    try:
        instant = parse_datetime(value)
    except ValueError:
        instant = None
    if instant is None:
        raise InvalidDateFormat(f"Invalid date: {value!r}")
    return timezone.make_aware(instant) if timezone.is_naive(instant) else instant


class LocationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = LocationSerializer
    permission_classes = [permissions.AllowAny]
    queryset = Location.objects.filter(is_active=True).prefetch_related("stands__boxes")

    @action(detail=True, methods=["get"], url_path="model-availability")
    def model_availability(self, request, pk=None):  # type: ignore
        query = ModelQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            result = calculate_model_availability(pk, query.validated_data["model"])
        except BookingError as exc:
            return error_response(exc)
        return Response(result.to_dict())

    @action(detail=True, methods=["get"], url_path="model-blocked-ranges")
    def model_blocked_ranges(self, request, pk=None):  # type: ignore
        query = ModelQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            result = get_model_blocked_ranges(pk, query.validated_data["model"])
        except BookingError as exc:
            return error_response(exc)
        return Response(result.to_dict())


class BoxViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = BoxSerializer
    permission_classes = [permissions.AllowAny]
    queryset = Box.objects.select_related("stand")

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        query = RangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            start = parse_query_instant(query.validated_data["start"], DEFAULT_START_TIME)
            end = parse_query_instant(query.validated_data["end"], DEFAULT_END_TIME)
            result = get_box_availability(pk, start, end)
        except BookingError as exc:
            return error_response(exc)
        return Response(result.to_dict())

    @action(detail=True, methods=["get"], url_path="blocked-ranges")
    def blocked_ranges(self, request, pk=None):  # type: ignore
        try:
            result = get_box_blocked_ranges(pk)
        except BookingError as exc:
            return error_response(exc)
        return Response(result.to_dict())
