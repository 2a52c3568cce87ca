"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
They are collected by the unit of work and published after commit; the
in-app notification row already exists at that point, so every event
carries the id of the notification to deliver by e-mail.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from shared.domain.base import DomainEvent


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: A paid booking was created with its lock PIN

    Triggers:
    - E-mail the booking confirmation to the customer
    """
    booking_id: int
    box_id: int
    display_code: str
    notification_id: Optional[int] = None


@dataclass
class BookingExtended(DomainEvent):
    """
    Event: A booking's end date moved later and a new PIN was issued

    Triggers:
    - E-mail the new end date and PIN to the customer
    """
    booking_id: int
    extension_id: int
    additional_days: int
    additional_cost: Decimal
    notification_id: Optional[int] = None


@dataclass
class BookingReassigned(DomainEvent):
    """
    Event: A booking was moved to another box to make room for an extension

    Triggers:
    - Tell the displaced customer about their new box
    """
    booking_id: int
    from_box_id: int
    to_box_id: int
    notification_id: Optional[int] = None


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: A booking was cancelled by its owner

    Triggers:
    - E-mail the cancellation and refund amount
    """
    booking_id: int
    refund_amount: Decimal
    notification_id: Optional[int] = None


@dataclass
class BoxReturned(DomainEvent):
    """
    Event: The customer handed the box back and the booking completed

    Triggers:
    - E-mail the return confirmation
    """
    booking_id: int
    box_id: int
    notification_id: Optional[int] = None
