"""In-process dispatch of domain events after a successful commit."""

from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from app.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventSink(Protocol):
    """Receives events drained from an aggregate once its changes are committed."""

    async def publish(self, event: DomainEvent) -> None: ...


class DomainEventDispatcher:
    """Routes each event to the handlers subscribed to its type or a base type."""

    def __init__(self) -> None:
        """Initialize with no subscriptions."""
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def handlers_for(self, event: DomainEvent) -> list[EventHandler]:
        """Handlers subscribed to the event's class hierarchy, most specific first."""
        return [
            handler
            for event_type in type(event).__mro__
            for handler in self._handlers.get(event_type, [])
        ]

    async def publish(self, event: DomainEvent) -> None:
        """
        Deliver an event to its handlers in subscription order.

        Args:
            event: Committed domain event
        """
        logger.info(
            "publishing_domain_event", event_name=event.name, event_id=str(event.event_id)
        )

        for handler in self.handlers_for(event):
            await handler(event)
