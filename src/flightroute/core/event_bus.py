"""Synchronous event bus used to announce flight plan changes.

Handlers run immediately, on the thread that publishes, in priority order.
The route assembler publishes a change event after every committed
transaction and the owning session reacts by recomputing the profile before
control returns to the caller.

Typical usage example:
    from flightroute.core.event_bus import EventBus, EventPriority

    bus = EventBus()
    bus.subscribe(FlightPlanChangedEvent, recompute_profile, EventPriority.HIGH)
    bus.publish(FlightPlanChangedEvent(label="Reverse", revision=3))
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class EventPriority(Enum):
    """Priority levels for event handlers, executed from CRITICAL to LOW."""

    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


@dataclass
class Event:
    """Base class for all events.

    Attributes:
        timestamp: Unix timestamp when the event was created.
    """

    timestamp: float = field(default_factory=time.time)


class EventBus:
    """Central event bus for synchronous event dispatch.

    Dispatch is by exact event class. Exceptions raised by a handler
    propagate to the publisher and stop dispatch to lower priority handlers.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(FlightPlanChangedEvent, print)
        >>> bus.publish(FlightPlanChangedEvent(label="Add Waypoint", revision=1))
    """

    def __init__(self) -> None:
        """Initialize an empty event bus."""
        self._handlers: dict[type[Event], list[tuple[Callable[[Any], None], EventPriority]]] = {}

    def subscribe(
        self,
        event_type: type[Event],
        handler: Callable[[Any], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The class of event to subscribe to.
            handler: Callable that accepts the event as its only parameter.
            priority: Priority level for this handler.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append((handler, priority))
        # Stable sort keeps subscription order within one priority
        handlers.sort(key=lambda x: x[1].value)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler from an event type.

        Unknown handlers are ignored.

        Args:
            event_type: The event type to unsubscribe from.
            handler: The handler function to remove.
        """
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (h, p) for h, p in self._handlers[event_type] if h != handler
        ]
        if not self._handlers[event_type]:
            del self._handlers[event_type]

    def publish(self, event: Event) -> int:
        """Publish an event to all subscribers of its class.

        Args:
            event: The event to publish.

        Returns:
            Number of handlers the event was delivered to.
        """
        handlers = list(self._handlers.get(type(event), []))
        for handler, _ in handlers:
            handler(event)
        return len(handlers)

    def clear(self) -> None:
        """Remove all event handlers."""
        self._handlers.clear()

    def get_subscriber_count(self, event_type: type[Event]) -> int:
        """Get the number of subscribers for an event type.

        Args:
            event_type: The event type to query.

        Returns:
            Number of handlers subscribed to this event type.
        """
        return len(self._handlers.get(event_type, []))
