"""
Event handlers for the booking domain.

Handlers run after commit. They only hand work to Celery; the
notification rows they refer to were written inside the transaction.
"""

import logging

from apps.notifications.tasks import deliver_notification_email

from ..domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingExtended,
    BookingReassigned,
    BoxReturned,
)

logger = logging.getLogger(__name__)


def queue_notification_email(event):
    """Queue e-mail delivery of the notification attached to ``event``."""
    if event.notification_id is None:
        logger.debug(f"{type(event).__name__} for booking {event.booking_id} has no notification")
        return
    deliver_notification_email.delay(event.notification_id)
    logger.info(f"Queued e-mail for notification {event.notification_id} ({type(event).__name__})")


def log_booking_event(event):
    logger.info(f"Booking event {type(event).__name__}: {event.to_dict()}")


BOOKING_EVENTS = (BookingCreated, BookingExtended, BookingReassigned, BookingCancelled, BoxReturned)
