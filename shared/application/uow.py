"""
Unit of Work

One database transaction per business operation. Domain events collected
while it runs reach the message bus only once the outermost transaction
has committed; a rollback drops them.
"""

from typing import List, Optional
import logging

from django.db import transaction

from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Context manager around ``transaction.atomic()``.

    Any exception raised inside the block undoes every ORM write made in
    it, including writes from steps that had already succeeded.

    Usage:
        with DjangoUnitOfWork(bus, label="create_booking") as uow:
            payment = lock_rows(Payment.objects.filter(pk=payment_id)).get()
            ...
            uow.add_event(BookingCreated(booking_id=booking.pk, ...))
    """

    def __init__(self, bus: Optional[MessageBus] = None, label: str = ''):
        self.bus = bus
        self.label = label or 'unit of work'
        self.events: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self):
        logger.debug(f"Opening {self.label}")
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            else:
                logger.warning(
                    f"Rolling back {self.label} after {exc_type.__name__}, "
                    f"dropping {len(self.events)} events"
                )
                self.events.clear()
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        return False

    def add_event(self, event: DomainEvent):
        self.events.append(event)

    def _schedule_publish(self):
        events, self.events = self.events, []
        if not events or self.bus is None:
            return
        bus = self.bus
        label = self.label
        logger.debug(f"{label}: {len(events)} events wait for commit")

        def publish():
            try:
                bus.publish_events(events)
            except Exception:
                # Rows are committed by now; nothing left to undo
                logger.exception(f"Publishing events of {label} failed")

        transaction.on_commit(publish)
