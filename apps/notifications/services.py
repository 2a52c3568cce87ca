"""Notification services: the in-app sink and e-mail delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from django.db.models import Model

logger = logging.getLogger(__name__)


def create_notification(
    user_id: int,
    title: str,
    message: str,
    *,
    entity: "Model | None" = None,
    notification_type: str = Notification.Type.EMAIL,
) -> Notification:
    """
    Create a notification row for ``user_id``.

    Runs inside the caller's transaction and lets database errors
    propagate, so the notification commits or rolls back together with
    the change it describes.
    """
    notification = Notification.objects.create(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        entity_type=entity._meta.model_name if entity is not None else '',
        entity_id=str(entity.pk) if entity is not None else '',
    )
    logger.info(f"Notification {notification.pk} created for user {user_id}: {title}")
    return notification


def send_email_notification(
    recipient_email: str,
    subject: str,
    message: str,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send a single e-mail.

    Returns True when the message was handed to the e-mail backend.
    Failures are logged and reported as False.
    """
    try:
        text_message = strip_tags(html_message) if html_message else message
        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def deliver_notification(notification_id: int) -> bool:
    """E-mail an in-app notification to its recipient once."""
    try:
        notification = Notification.objects.select_related('user').get(pk=notification_id)
    except Notification.DoesNotExist:
        logger.warning(f"Notification {notification_id} vanished before delivery")
        return False

    if notification.notification_type != Notification.Type.EMAIL:
        return False
    if notification.emailed_at is not None:
        return True
    if not notification.user.email:
        logger.info(f"User {notification.user_id} has no e-mail; notification {notification_id} stays in-app")
        return False

    sent = send_email_notification(
        recipient_email=notification.user.email,
        subject=notification.title,
        message=notification.message,
    )
    if sent:
        Notification.objects.filter(pk=notification_id).update(emailed_at=timezone.now())
    return sent
