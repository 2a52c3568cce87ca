"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "currency", "status", "completed_at", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("payment_intent_id", "charge_id", "user__email")
    readonly_fields = ("metadata", "completed_at", "refunded_at", "created_at", "updated_at")
