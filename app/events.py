"""Event bus for internal application communication.

The controller publishes connection transitions and action outcomes here;
the desktop notifier and the dashboard subscribe without holding a
reference to the controller.

Usage:
    from app.events import EventBus, EventType

    bus = EventBus()
    bus.subscribe(EventType.CONNECTED, lambda e: print(e.data["name"]))
    bus.publish(EventType.CONNECTED, {"name": "work-vpn", "entity_kind": "vpn"})
"""
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from config import get_logger
from monitor.models import TransitionEvent, TransitionKind

logger = get_logger(__name__)


class EventType(Enum):
    """Types of events that can be published/subscribed."""

    # Connection transitions, one per TransitionKind
    VANISHED = auto()
    APPEARED = auto()
    CONNECTED = auto()
    DISCONNECTED = auto()

    # Polling
    SNAPSHOT_UPDATED = auto()
    POLL_FAILED = auto()

    # User actions
    ACTION_STARTED = auto()
    ACTION_FAILED = auto()
    ACTION_REJECTED = auto()

    # App lifecycle events
    APP_STARTING = auto()
    APP_STOPPING = auto()


TRANSITION_EVENT_TYPES = {
    TransitionKind.VANISHED: EventType.VANISHED,
    TransitionKind.APPEARED: EventType.APPEARED,
    TransitionKind.CONNECTED: EventType.CONNECTED,
    TransitionKind.DISCONNECTED: EventType.DISCONNECTED,
}


@dataclass
class Event:
    """Represents an event with type and data.

    Attributes:
        event_type: The type of event.
        data: Optional dictionary with event-specific data.
        timestamp: When the event was created.
        source: Optional identifier of the event source.
    """
    event_type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    source: Optional[str] = None

    def __str__(self) -> str:
        return f"Event({self.event_type.name}, data={self.data})"


# Type alias for event handlers
EventHandler = Callable[[Event], None]


def transition_payload(transition: TransitionEvent) -> Dict[str, Any]:
    """Event data for a connection transition."""
    return {
        "name": transition.name,
        "entity_kind": transition.entity_kind.value,
        "key": transition.key,
        "transition": transition,
    }


class EventBus:
    """Thread-safe publish/subscribe event bus.

    Events are processed in a background thread by default, so a slow
    handler never holds up the poll that produced the event. Ordering is
    preserved: handlers see events in publish order.

    Attributes:
        async_mode: If True (default), events are processed in a background thread.

    Example:
        >>> bus = EventBus(async_mode=False)
        >>> bus.subscribe(EventType.DISCONNECTED, lambda e: print(e.data["name"]))
        >>> bus.publish(EventType.DISCONNECTED, {"name": "HomeNet"})
        HomeNet
    """

    def __init__(self, async_mode: bool = True):
        self._subscribers: Dict[EventType, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._async_mode = async_mode
        self._event_queue: queue.Queue = queue.Queue()
        self._running = False
        self._worker_thread: Optional[threading.Thread] = None

        if async_mode:
            self._start_worker()

    def _start_worker(self) -> None:
        """Start the background event processing thread."""
        self._running = True
        self._worker_thread = threading.Thread(
            target=self._process_events,
            daemon=True,
            name="EventBus-Worker"
        )
        self._worker_thread.start()
        logger.debug("EventBus worker thread started")

    def _process_events(self) -> None:
        """Process events from the queue in background thread."""
        while self._running:
            try:
                event = self._event_queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self._dispatch_event(event)
            except Exception as e:
                logger.error(f"Error processing event: {e}", exc_info=True)
            finally:
                self._event_queue.task_done()

    def _dispatch_event(self, event: Event) -> None:
        """Dispatch event to all subscribers."""
        with self._lock:
            handlers = self._subscribers.get(event.event_type, []).copy()

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in event handler for {event.event_type.name}: {e}",
                    exc_info=True
                )

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type.

        Args:
            event_type: The type of event to subscribe to.
            handler: Callback function that takes an Event parameter.
        """
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)

        logger.debug(f"Subscribed to {event_type.name}")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """Unsubscribe from an event type.

        Returns:
            True if handler was found and removed, False otherwise.
        """
        with self._lock:
            if event_type in self._subscribers:
                try:
                    self._subscribers[event_type].remove(handler)
                    logger.debug(f"Unsubscribed from {event_type.name}")
                    return True
                except ValueError:
                    pass
        return False

    def publish(self, event_type: EventType, data: Dict[str, Any] = None,
                source: str = None) -> None:
        """Publish an event.

        Args:
            event_type: The type of event to publish.
            data: Optional data to include with the event.
            source: Optional identifier of the event source.
        """
        event = Event(
            event_type=event_type,
            data=data or {},
            source=source
        )

        if self._async_mode:
            self._event_queue.put(event)
        else:
            self._dispatch_event(event)

        logger.debug(f"Published {event_type.name}")

    def publish_transition(self, transition: TransitionEvent, source: str = None,
                           **extra: Any) -> None:
        """Publish a reconciler transition under its matching event type."""
        data = transition_payload(transition)
        data.update(extra)
        self.publish(TRANSITION_EVENT_TYPES[transition.kind], data, source=source)

    def wait_idle(self, timeout: float = 1.0) -> bool:
        """Block until queued events have been dispatched.

        Returns:
            True if the queue drained within the timeout.
        """
        if not self._async_mode:
            return True
        done = threading.Event()

        def _join():
            self._event_queue.join()
            done.set()

        threading.Thread(target=_join, daemon=True).start()
        return done.wait(timeout)

    def clear_subscribers(self, event_type: Optional[EventType] = None) -> None:
        """Clear subscribers for an event type or all events."""
        with self._lock:
            if event_type:
                self._subscribers.pop(event_type, None)
            else:
                self._subscribers.clear()

    def get_subscriber_count(self, event_type: EventType) -> int:
        """Get the number of subscribers for an event type."""
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def shutdown(self) -> None:
        """Shutdown the event bus and stop the worker thread."""
        self._running = False
        if self._worker_thread:
            self._worker_thread.join(timeout=1.0)
        logger.debug("EventBus shut down")


__all__ = ["Event", "EventBus", "EventHandler", "EventType",
           "TRANSITION_EVENT_TYPES", "transition_payload"]
