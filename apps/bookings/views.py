"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.locks.exceptions import PinGatewayError
from apps.locks.services import IglooService

from .application.bootstrap import build_message_bus
from .exceptions import BookingError, http_status_for
from .extensions import calculate_extension, request_extension
from .models import Booking
from .serializers import (
    BookingExtensionSerializer,
    BookingFromPaymentSerializer,
    BookingQuoteSerializer,
    BookingSerializer,
    CancelBookingSerializer,
    ExtensionRequestSerializer,
    ReturnBoxSerializer,
)
from .services import ReturnPhotos, can_return_box, cancel_booking, create_booking_from_payment, return_box
from .validation import validate_and_prepare_booking

logger = logging.getLogger(__name__)


def error_response(exc: Exception) -> Response:
    code = getattr(exc, "code", "error")
    http_status = http_status_for(exc)
    if http_status >= 500:
        logger.error(f"Lock provider failure ({code}): {exc}")
    return Response(
        {"success": False, "error": code, "detail": str(exc)},
        status=http_status,
    )


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Bookings of the authenticated customer plus the booking workflows."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        qs = Booking.objects.select_related("box", "box__stand", "payment")
        user = self.request.user
        if getattr(user, "is_staff", False):
            return qs
        return qs.filter(payment__user=user)

    def get_pin_gateway(self):
        return IglooService.from_settings()

    @action(detail=False, methods=["post"], permission_classes=[permissions.AllowAny])
    def quote(self, request):  # type: ignore
        serializer = BookingQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            prepared = validate_and_prepare_booking(
                data["box_id"],
                data["start_date"],
                data["end_date"],
                data["start_time"],
                data["end_time"],
            )
        except BookingError as exc:
            return error_response(exc)
        return Response(
            {
                "success": True,
                "box_id": prepared.box.pk,
                "start": prepared.start.isoformat(),
                "end": prepared.end.isoformat(),
                "price": prepared.price.to_dict(),
                "metadata": prepared.metadata,
            }
        )

    @action(
        detail=False,
        methods=["post"],
        url_path="from-payment",
        permission_classes=[permissions.IsAdminUser],
    )
    def from_payment(self, request):  # type: ignore
        serializer = BookingFromPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = create_booking_from_payment(
                serializer.validated_data["payment_id"],
                serializer.validated_data["user_id"],
                pin_gateway=self.get_pin_gateway(),
                bus=build_message_bus(),
            )
        except (BookingError, PinGatewayError) as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="extension-quote")
    def extension_quote(self, request, pk=None):  # type: ignore
        serializer = ExtensionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            quote = calculate_extension(
                pk,
                request.user.pk,
                serializer.validated_data["new_end_date"],
                serializer.validated_data["new_end_time"],
            )
        except BookingError as exc:
            return error_response(exc)
        return Response({"success": True, **quote.to_dict()})

    @action(detail=True, methods=["post"])
    def extend(self, request, pk=None):  # type: ignore
        serializer = ExtensionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = request_extension(
                pk,
                request.user.pk,
                serializer.validated_data["new_end_date"],
                serializer.validated_data["new_end_time"],
                serializer.validated_data["payment_id"],
                pin_gateway=self.get_pin_gateway(),
                bus=build_message_bus(),
            )
        except (BookingError, PinGatewayError) as exc:
            return error_response(exc)
        return Response(
            {
                "success": True,
                "extension": BookingExtensionSerializer(result.extension).data,
                "booking": BookingSerializer(result.booking).data,
                "reassigned_bookings": [r.booking_id for r in result.reassignments],
            }
        )

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            refund = cancel_booking(
                pk,
                request.user.pk,
                reason=serializer.validated_data["reason"],
                bus=build_message_bus(),
            )
        except BookingError as exc:
            return error_response(exc)
        return Response({"success": True, "status": Booking.Status.CANCELLED, "refund": refund.to_dict()})

    @action(detail=True, methods=["get", "post"], url_path="return", url_name="return")
    def return_box(self, request, pk=None):  # type: ignore
        """GET tells whether the box can be handed back now; POST hands it back."""
        if request.method == "GET":
            try:
                check = can_return_box(pk, request.user.pk)
            except BookingError as exc:
                return error_response(exc)
            return Response({"success": True, **check.to_dict()})

        serializer = ReturnBoxSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            booking = return_box(
                pk,
                request.user.pk,
                ReturnPhotos(
                    box_front_view=data["box_front_view"],
                    box_back_view=data["box_back_view"],
                    closed_stand_lock=data["closed_stand_lock"],
                ),
                data["confirmed_good_status"],
                bus=build_message_bus(),
            )
        except BookingError as exc:
            return error_response(exc)
        return Response({"success": True, "booking": BookingSerializer(booking).data})
