"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Booking, BookingExtension


class BookingQuoteSerializer(serializers.Serializer):
    """Booking request as sent by the booking form.

    Dates and times stay strings here; the validation service owns parsing
    so that bad input yields the same error code everywhere.
    """

    box_id = serializers.IntegerField()
    start_date = serializers.CharField()
    end_date = serializers.CharField()
    start_time = serializers.CharField(required=False, allow_blank=True, default="")
    end_time = serializers.CharField(required=False, allow_blank=True, default="")


class BookingFromPaymentSerializer(serializers.Serializer):
    payment_id = serializers.IntegerField()
    user_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class ExtensionRequestSerializer(serializers.Serializer):
    new_end_date = serializers.CharField()
    new_end_time = serializers.CharField(required=False, allow_blank=True, default="")
    payment_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class ReturnBoxSerializer(serializers.Serializer):
    confirmed_good_status = serializers.BooleanField(default=False)
    box_front_view = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")
    box_back_view = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")
    closed_stand_lock = serializers.URLField(max_length=500, required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    box_code = serializers.ReadOnlyField(source="box.display_code")
    box_model = serializers.ReadOnlyField(source="box.model")
    location_id = serializers.ReadOnlyField(source="box.stand.location_id")

    class Meta:
        model = Booking
        fields = [
            "id",
            "display_code",
            "box",
            "box_code",
            "box_model",
            "location_id",
            "payment",
            "start_date",
            "end_date",
            "status",
            "lock_pin",
            "total_amount",
            "cancelled_at",
            "cancellation_reason",
            "returned_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingExtensionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingExtension
        fields = [
            "id",
            "booking",
            "payment",
            "previous_end_date",
            "new_end_date",
            "new_lock_pin",
            "additional_days",
            "additional_cost",
            "box_status_at_extension",
            "created_at",
        ]
        read_only_fields = fields
