"""
Message Bus

Routes committed domain events to their handlers. The booking app builds
its bus in ``apps.bookings.application.bootstrap`` and hands it to each
unit of work; there is no module-level instance.
"""

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class MessageBus:
    """One event type, any number of handlers, called in registration order."""

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def register_event_handler(self, event_type: Type[DomainEvent], handler: Handler):
        self._handlers[event_type].append(handler)
        logger.debug(f"{getattr(handler, '__name__', handler)} subscribed to {event_type.__name__}")

    def handlers_for(self, event_type: Type[DomainEvent]) -> List[Handler]:
        return list(self._handlers.get(event_type, ()))

    def publish_events(self, events: Iterable[DomainEvent]):
        """
        Call every handler for every event.

        A failing handler is logged and skipped so the remaining handlers
        still run.
        """
        for event in events:
            name = type(event).__name__
            handlers = self.handlers_for(type(event))
            if not handlers:
                logger.warning(f"No handlers registered for {name}")
                continue

            logger.info(f"Publishing {name} ({event.event_id}) to {len(handlers)} handlers")
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Handler {getattr(handler, '__name__', handler)} failed on {name}")
