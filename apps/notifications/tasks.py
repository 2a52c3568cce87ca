"""Celery tasks for notification delivery."""

from __future__ import annotations

from celery import shared_task  # type: ignore

from .services import deliver_notification


@shared_task(name="notifications.deliver_notification_email")
def deliver_notification_email(notification_id: int) -> bool:
    return deliver_notification(notification_id)
