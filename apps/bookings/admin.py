"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingExtension, BoxReturn, DailyBookingSequence


class BookingExtensionInline(admin.TabularInline):
    model = BookingExtension
    extra = 0
    can_delete = False
    readonly_fields = (
        "previous_end_date",
        "new_end_date",
        "additional_days",
        "additional_cost",
        "box_status_at_extension",
        "payment",
        "created_at",
    )
    exclude = ("previous_lock_pin", "new_lock_pin")


class BoxReturnInline(admin.StackedInline):
    model = BoxReturn
    extra = 0
    can_delete = False
    readonly_fields = (
        "confirmed_good_status",
        "box_front_view",
        "box_back_view",
        "closed_stand_lock",
        "created_at",
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "display_code",
        "box",
        "status",
        "start_date",
        "end_date",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "box__model", "box__stand__location")
    search_fields = ("display_code", "payment__payment_intent_id", "payment__user__email")
    readonly_fields = (
        "display_code",
        "payment",
        "lock_pin",
        "returned_at",
        "created_at",
        "updated_at",
    )
    inlines = [BookingExtensionInline, BoxReturnInline]


@admin.register(DailyBookingSequence)
class DailyBookingSequenceAdmin(admin.ModelAdmin):
    list_display = ("day", "last_value")
    ordering = ("-day",)
