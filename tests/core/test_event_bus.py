"""Tests for the event bus system."""

import time
from dataclasses import dataclass

import pytest

from flightroute.core.event_bus import Event, EventBus, EventPriority
from flightroute.navigation.events import FlightPlanChangedEvent, ProfileUpdatedEvent


@dataclass
class RouteEditedEvent(Event):
    """Sample event carrying a label."""

    label: str = ""


class TestEventBus:
    """Test suite for EventBus."""

    def test_publish_delivers_to_subscriber(self) -> None:
        """Test that a subscribed handler receives the published event."""
        bus = EventBus()
        received = []

        bus.subscribe(RouteEditedEvent, received.append)
        event = RouteEditedEvent(label="Insert MERIT")
        delivered = bus.publish(event)

        assert delivered == 1
        assert received == [event]
        assert received[0].label == "Insert MERIT"

    def test_publish_without_subscribers_returns_zero(self) -> None:
        """Test that nobody receives an event without subscribers."""
        bus = EventBus()
        assert bus.publish(RouteEditedEvent(label="Reverse")) == 0

    def test_priority_order(self) -> None:
        """Test that handlers run from CRITICAL to LOW regardless of subscription order."""
        bus = EventBus()
        calls = []

        bus.subscribe(RouteEditedEvent, lambda e: calls.append("normal"), EventPriority.NORMAL)
        bus.subscribe(RouteEditedEvent, lambda e: calls.append("low"), EventPriority.LOW)
        bus.subscribe(RouteEditedEvent, lambda e: calls.append("critical"), EventPriority.CRITICAL)
        bus.subscribe(RouteEditedEvent, lambda e: calls.append("high"), EventPriority.HIGH)

        bus.publish(RouteEditedEvent())

        assert calls == ["critical", "high", "normal", "low"]

    def test_same_priority_keeps_subscription_order(self) -> None:
        """Test that handlers of equal priority run in the order they subscribed."""
        bus = EventBus()
        calls = []

        for i in range(4):
            bus.subscribe(RouteEditedEvent, lambda e, i=i: calls.append(i))

        bus.publish(RouteEditedEvent())
        assert calls == [0, 1, 2, 3]

    def test_dispatch_by_exact_class(self) -> None:
        """Test that plan and profile events reach only their own subscribers."""
        bus = EventBus()
        plan_events = []
        profile_events = []

        bus.subscribe(FlightPlanChangedEvent, plan_events.append)
        bus.subscribe(ProfileUpdatedEvent, profile_events.append)

        bus.publish(FlightPlanChangedEvent(label="Reverse", revision=1))
        bus.publish(ProfileUpdatedEvent(revision=1))
        bus.publish(FlightPlanChangedEvent(label="Undo Reverse", revision=2))

        assert [e.label for e in plan_events] == ["Reverse", "Undo Reverse"]
        assert len(profile_events) == 1

    def test_unsubscribe(self) -> None:
        """Test that an unsubscribed handler no longer receives events."""
        bus = EventBus()
        received = []

        bus.subscribe(RouteEditedEvent, received.append)
        bus.publish(RouteEditedEvent(label="first"))
        bus.unsubscribe(RouteEditedEvent, received.append)
        bus.publish(RouteEditedEvent(label="second"))

        assert [e.label for e in received] == ["first"]
        assert bus.get_subscriber_count(RouteEditedEvent) == 0

    def test_unsubscribe_unknown_handler_is_ignored(self) -> None:
        """Test that unsubscribing a handler never subscribed does not raise."""
        bus = EventBus()
        bus.unsubscribe(RouteEditedEvent, print)

    def test_bound_method_unsubscribe(self) -> None:
        """Test that bound methods can be unsubscribed with a fresh reference."""

        class Listener:
            def __init__(self) -> None:
                self.count = 0

            def on_event(self, event: RouteEditedEvent) -> None:
                self.count += 1

        bus = EventBus()
        listener = Listener()
        bus.subscribe(RouteEditedEvent, listener.on_event)
        bus.unsubscribe(RouteEditedEvent, listener.on_event)
        bus.publish(RouteEditedEvent())

        assert listener.count == 0

    def test_clear(self) -> None:
        """Test that clear removes all handlers."""
        bus = EventBus()
        received = []

        bus.subscribe(RouteEditedEvent, received.append)
        bus.subscribe(FlightPlanChangedEvent, received.append)
        bus.clear()

        bus.publish(RouteEditedEvent())
        bus.publish(FlightPlanChangedEvent())
        assert received == []

    def test_get_subscriber_count(self) -> None:
        """Test counting subscribers per event class."""
        bus = EventBus()
        assert bus.get_subscriber_count(RouteEditedEvent) == 0

        bus.subscribe(RouteEditedEvent, print)
        bus.subscribe(RouteEditedEvent, repr)
        assert bus.get_subscriber_count(RouteEditedEvent) == 2
        assert bus.get_subscriber_count(FlightPlanChangedEvent) == 0

    def test_event_has_timestamp(self) -> None:
        """Test that events are stamped at creation."""
        before = time.time()
        event = FlightPlanChangedEvent(label="New Flight Plan")
        after = time.time()

        assert before <= event.timestamp <= after

    def test_handler_exception_stops_dispatch(self) -> None:
        """Test that a failing handler propagates and lower priorities are skipped."""
        bus = EventBus()
        calls = []

        def failing_handler(event: RouteEditedEvent) -> None:
            raise ValueError("Handler error")

        bus.subscribe(RouteEditedEvent, failing_handler, EventPriority.HIGH)
        bus.subscribe(RouteEditedEvent, calls.append, EventPriority.LOW)

        with pytest.raises(ValueError, match="Handler error"):
            bus.publish(RouteEditedEvent())
        assert calls == []
