"""Serializers for notifications."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    emailed = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id', 'title', 'message', 'notification_type',
            'entity_type', 'entity_id', 'is_read', 'emailed', 'created_at',
        ]
        read_only_fields = fields

    def get_emailed(self, obj: Notification) -> bool:
        return obj.emailed_at is not None
