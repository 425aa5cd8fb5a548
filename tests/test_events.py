"""Tests for app/events.py - the event bus."""
import threading

from app.events import TRANSITION_EVENT_TYPES, Event, EventBus, EventType, transition_payload
from monitor.models import EntityKind, TransitionEvent, TransitionKind


class TestEventBus:
    """Tests for EventBus."""

    def test_subscribe_and_publish(self):
        """Events should be delivered to subscribers."""
        bus = EventBus(async_mode=False)
        received = []

        bus.subscribe(EventType.SNAPSHOT_UPDATED, received.append)
        bus.publish(EventType.SNAPSHOT_UPDATED, {"entity_kind": "vpn"})

        assert len(received) == 1
        assert received[0].data["entity_kind"] == "vpn"

    def test_multiple_subscribers(self):
        """Multiple subscribers should all receive events."""
        bus = EventBus(async_mode=False)
        count = [0]

        def handler1(event):
            count[0] += 1

        def handler2(event):
            count[0] += 10

        bus.subscribe(EventType.CONNECTED, handler1)
        bus.subscribe(EventType.CONNECTED, handler2)
        bus.publish(EventType.CONNECTED)

        assert count[0] == 11

    def test_unsubscribe(self):
        """Unsubscribed handlers should not receive events."""
        bus = EventBus(async_mode=False)
        received = []

        bus.subscribe(EventType.POLL_FAILED, received.append)
        bus.publish(EventType.POLL_FAILED)
        assert len(received) == 1

        assert bus.unsubscribe(EventType.POLL_FAILED, received.append) is True
        bus.publish(EventType.POLL_FAILED)
        assert len(received) == 1  # No new events

    def test_unsubscribe_unknown_handler(self):
        bus = EventBus(async_mode=False)
        assert bus.unsubscribe(EventType.POLL_FAILED, print) is False

    def test_different_event_types(self):
        """Handlers should only receive their subscribed event type."""
        bus = EventBus(async_mode=False)
        received = []

        bus.subscribe(EventType.CONNECTED, lambda e: received.append(e.event_type))

        bus.publish(EventType.CONNECTED)
        bus.publish(EventType.DISCONNECTED)  # Should not trigger
        bus.publish(EventType.CONNECTED)

        assert received == [EventType.CONNECTED, EventType.CONNECTED]

    def test_handler_error_isolated(self):
        """A failing handler does not stop the others."""
        bus = EventBus(async_mode=False)
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(EventType.ACTION_FAILED, broken)
        bus.subscribe(EventType.ACTION_FAILED, received.append)
        bus.publish(EventType.ACTION_FAILED)

        assert len(received) == 1

    def test_async_mode_preserves_order(self):
        """Async mode processes events in the background, in publish order."""
        bus = EventBus(async_mode=True)
        received = []
        threads = set()

        def handler(event):
            received.append(event.data["n"])
            threads.add(threading.current_thread().name)

        bus.subscribe(EventType.SNAPSHOT_UPDATED, handler)
        for n in range(20):
            bus.publish(EventType.SNAPSHOT_UPDATED, {"n": n})

        assert bus.wait_idle(timeout=2.0)
        assert received == list(range(20))
        assert threads == {"EventBus-Worker"}
        bus.shutdown()

    def test_clear_subscribers(self):
        bus = EventBus(async_mode=False)
        bus.subscribe(EventType.CONNECTED, print)
        bus.subscribe(EventType.VANISHED, print)

        bus.clear_subscribers(EventType.CONNECTED)
        assert bus.get_subscriber_count(EventType.CONNECTED) == 0
        assert bus.get_subscriber_count(EventType.VANISHED) == 1

        bus.clear_subscribers()
        assert bus.get_subscriber_count(EventType.VANISHED) == 0

    def test_event_str(self):
        event = Event(EventType.APP_STARTING, {"a": 1}, source="test")
        assert str(event) == "Event(APP_STARTING, data={'a': 1})"


class TestTransitions:
    """Tests for publishing reconciler transitions."""

    def test_every_transition_kind_has_event_type(self):
        assert set(TRANSITION_EVENT_TYPES) == set(TransitionKind)

    def test_payload(self):
        transition = TransitionEvent(TransitionKind.DISCONNECTED, "HomeNet", EntityKind.WIFI)
        data = transition_payload(transition)
        assert data == {
            "name": "HomeNet",
            "entity_kind": "wifi",
            "key": "wifi:HomeNet",
            "transition": transition,
        }

    def test_publish_transition(self):
        bus = EventBus(async_mode=False)
        received = []
        bus.subscribe(EventType.VANISHED, received.append)

        transition = TransitionEvent(TransitionKind.VANISHED, "work", EntityKind.VPN)
        bus.publish_transition(transition, source="reconciler", was_active=True)

        (event,) = received
        assert event.source == "reconciler"
        assert event.data["was_active"] is True
        assert event.data["transition"] is transition
