"""Admin registration for notifications."""

from __future__ import annotations

from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "entity_type", "entity_id", "is_read", "emailed_at", "created_at")
    list_filter = ("is_read", "notification_type")
    search_fields = ("title", "user__email", "entity_id")
