"""Desktop notifications for connection transitions.

Subscribes to the event bus and sends each enabled transition through
``notify-send``. Delivery is fire and forget: the command runs on the
bridge's worker pool and a failure is only logged.
"""
from concurrent.futures import Future
from typing import Optional, Tuple

from config import UI, BridgeError, NotificationDeliveryError, get_logger
from app.events import Event, EventBus, EventType
from monitor import nmcli
from monitor.command_bridge import CommandBridge
from monitor.models import EntityKind, TransitionKind
from storage.settings import NotificationSettings

logger = get_logger(__name__)

ICON_OK = UI.ICON_CONNECTED
ICON_ERROR = UI.ICON_DISCONNECTED

_SUBJECT = {
    EntityKind.VPN.value: ("VPN", "Tunnel"),
    EntityKind.WIFI.value: ("Wi-Fi", "Network"),
}

_TEXT = {
    TransitionKind.CONNECTED: ("connected", "'{name}' active."),
    TransitionKind.DISCONNECTED: ("disconnected", "'{name}' closed."),
    TransitionKind.APPEARED: ("available", "'{name}' is now listed."),
    TransitionKind.VANISHED: ("gone", "'{name}' is no longer listed."),
}


def format_notification(transition_kind: TransitionKind, entity_kind: str,
                        name: str) -> Tuple[str, str, bool]:
    """Title, body and urgency for a transition.

    Examples:
        >>> format_notification(TransitionKind.CONNECTED, "vpn", "work")
        ('VPN connected', "Tunnel 'work' active.", False)
    """
    label, noun = _SUBJECT.get(entity_kind, ("Connection", "Connection"))
    verb, body = _TEXT[transition_kind]
    critical = transition_kind in (TransitionKind.DISCONNECTED, TransitionKind.VANISHED)
    return f"{label} {verb}", f"{noun} {body.format(name=name)}", critical


class DesktopNotifier:
    """Sends desktop notifications for transition events.

    Attributes:
        settings: Which transition kinds are announced.
    """

    def __init__(self, bridge: CommandBridge, settings: Optional[NotificationSettings] = None):
        self._bridge = bridge
        self.settings = settings or NotificationSettings()
        self.sent = 0

    def attach(self, bus: EventBus) -> None:
        """Subscribe to the transition events on a bus."""
        for event_type in (EventType.CONNECTED, EventType.DISCONNECTED,
                           EventType.APPEARED, EventType.VANISHED):
            bus.subscribe(event_type, self.handle)

    def detach(self, bus: EventBus) -> None:
        for event_type in (EventType.CONNECTED, EventType.DISCONNECTED,
                           EventType.APPEARED, EventType.VANISHED):
            bus.unsubscribe(event_type, self.handle)

    def handle(self, event: Event) -> None:
        transition = event.data.get("transition")
        if transition is None:
            return
        # a vanished entry only matters if it was a live connection
        if transition.kind is TransitionKind.VANISHED and not event.data.get("was_active", True):
            return
        if not self.settings.wants(transition.kind):
            return
        self.notify(transition.kind, transition.entity_kind.value, transition.name)

    def notify(self, transition_kind: TransitionKind, entity_kind: str, name: str) -> Future:
        title, body, critical = format_notification(transition_kind, entity_kind, name)
        icon = ICON_ERROR if critical else ICON_OK
        future = self._bridge.submit(nmcli.notify(title, body, critical, icon))
        future.add_done_callback(lambda f: self._delivered(f, title))
        self.sent += 1
        return future

    def _delivered(self, future: Future, title: str) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            logger.debug(f"Notification sent: {title}")
            return
        if isinstance(exc, BridgeError):
            error = NotificationDeliveryError(f"Notification '{title}' not delivered: {exc.short}")
        else:
            error = NotificationDeliveryError(f"Notification '{title}' not delivered: {exc}")
        logger.warning(str(error))


__all__ = ["DesktopNotifier", "format_notification", "ICON_OK", "ICON_ERROR"]
