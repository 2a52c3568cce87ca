"""Notification model.

A notification is a message row for one user, optionally linked to the
entity it is about (e.g. a booking). Rows are created inside the booking
transactions, so a rolled back booking leaves no notification behind.
Delivery by e-mail happens after commit and is tracked by ``emailed_at``.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore


class Notification(models.Model):
    """A message sent to a user about some event."""

    class Type(models.TextChoices):
        EMAIL = 'email', 'Email'
        IN_APP = 'in_app', 'In-app'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications'
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(max_length=16, choices=Type.choices, default=Type.EMAIL)
    entity_type = models.CharField(max_length=32, blank=True)
    entity_id = models.CharField(max_length=64, blank=True)
    is_read = models.BooleanField(default=False)
    emailed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['entity_type', 'entity_id'], name='notification_entity_idx')]

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"
