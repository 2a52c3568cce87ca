"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import sync_booking_statuses as sync_statuses

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (run by Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="bookings.sync_booking_statuses")
def sync_booking_statuses() -> dict[str, int]:
    """
    Move upcoming bookings to active and active ones to completed.

    Returns:
        dict: {"updated": number of bookings whose status changed}
    """
    updated = sync_statuses()
    logger.info(f"Status sync finished: {updated} updated")
    return {"updated": updated}
