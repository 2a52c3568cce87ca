"""Wiring of the booking message bus."""

from shared.application.message_bus import MessageBus

from .event_handlers import BOOKING_EVENTS, log_booking_event, queue_notification_email


def build_message_bus() -> MessageBus:
    bus = MessageBus()
    for event_type in BOOKING_EVENTS:
        bus.register_event_handler(event_type, log_booking_event)
        bus.register_event_handler(event_type, queue_notification_email)
    return bus
