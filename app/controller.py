"""Application controller for netdash.

Orchestrates the two data paths and the user actions:

- graph path, every tick: counters -> RateSampler -> BandwidthSeries
- management path, every poll interval: nmcli -> parser -> reconciler -> events
- actions: connect/disconnect through the ActionQueue, confirmed by a later poll

Usage:
    from app.controller import DashboardController
    from app.dependencies import create_dependencies

    deps = create_dependencies()
    controller = DashboardController(deps)
    controller.start()
"""
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from config import (
    INTERVALS,
    AlreadyPendingError,
    BridgeError,
    get_logger,
)
from config.logging_config import LogContext, log_exception
from app.dependencies import AppDependencies
from app.events import EventBus, EventType
from monitor import nmcli
from monitor.actions import ActionKind, ActionResult
from monitor.interfaces import ActiveInterface, graph_candidates
from monitor.models import EntityKind, ManagedEntity, Snapshot, TransitionKind
from monitor.parser import (
    build_vpn_connections,
    mark_saved,
    parse_active_connections,
    parse_connection_profiles,
    parse_saved_wifi,
    parse_wifi_list,
)

logger = get_logger(__name__)

# Status message key for messages not tied to one entity
GENERAL = "*"


@dataclass(frozen=True)
class StatusMessage:
    """Transient text shown next to an entity (or in the footer)."""

    text: str
    expires_at: float
    error: bool = True


class DashboardController:
    """Central controller that orchestrates application logic.

    Separates business logic from UI concerns. tick() is called from the
    timer thread; everything that talks to nmcli runs on worker threads, so
    neither the timer nor the UI ever waits for a subprocess.

    Attributes:
        deps: The dependency container with all components.
        event_bus: Event bus for publishing state changes.
    """

    def __init__(self, deps: AppDependencies, clock=time.monotonic):
        """Initialize the controller with dependencies.

        Args:
            deps: AppDependencies container with all required components.
            clock: Monotonic time source, injectable for tests.
        """
        self.deps = deps
        self.event_bus: EventBus = deps.event_bus
        self._clock = clock

        self._poll_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="poll")
        self._poll_future: Optional[Future] = None
        self._poll_requested = False
        self._rescan_requested = False
        self._last_poll_at: Optional[float] = None

        self._lock = threading.Lock()
        self._status: Dict[str, StatusMessage] = {}
        self._poll_errors: Dict[str, str] = {}
        self._interfaces: Tuple[ActiveInterface, ...] = ()
        self._running = False

        self.deps.actions.on_complete = self._on_action_complete
        logger.info("DashboardController initialized")

    # === Lifecycle ===

    def start(self) -> None:
        """Start the controller and schedule the first poll."""
        logger.info("Starting DashboardController...")
        self._running = True
        self.event_bus.publish(EventType.APP_STARTING)
        self.tick()
        logger.info("DashboardController started")

    def stop(self) -> None:
        """Stop the controller, abandoning in-flight commands."""
        if not self._running:
            return
        logger.info("Stopping DashboardController...")
        self._running = False
        self.event_bus.publish(EventType.APP_STOPPING)
        self.deps.bridge.shutdown()
        self._poll_executor.shutdown(wait=False, cancel_futures=True)
        logger.info("DashboardController stopped")

    @property
    def running(self) -> bool:
        return self._running

    # === Tick ===

    def tick(self, now: Optional[float] = None) -> None:
        """Advance both data paths by one step.

        Args:
            now: Monotonic timestamp for this tick, defaults to the clock.
        """
        now = self._clock() if now is None else now

        rates = self.deps.sampler.poll(now)
        for name, sample in rates.items():
            self.deps.series.push(name, sample.rx_rate, sample.tx_rate)
        self.deps.series.retain(self.deps.sampler.tracked())

        self._interfaces = tuple(self.deps.interface_source())
        self._expire_status(now)
        self._maybe_schedule_poll(now)

    def _maybe_schedule_poll(self, now: float) -> None:
        with self._lock:
            if not self._running:
                return
            if self._poll_future is not None and not self._poll_future.done():
                return
            due = (
                self._last_poll_at is None
                or now - self._last_poll_at >= self.deps.settings.poll_seconds
            )
            if not (due or self._poll_requested):
                return
            rescan = self._rescan_requested
            self._poll_requested = False
            self._rescan_requested = False
            self._last_poll_at = now
            try:
                self._poll_future = self._poll_executor.submit(self._poll, rescan)
            except RuntimeError:
                # executor already shut down
                self._poll_future = None

    def refresh(self) -> None:
        """Poll as soon as possible, asking nmcli for a fresh Wi-Fi scan."""
        with self._lock:
            self._poll_requested = True
            self._rescan_requested = True
        logger.info("Refresh requested")
        self._maybe_schedule_poll(self._clock())

    def poll_in_flight(self) -> bool:
        with self._lock:
            return self._poll_future is not None and not self._poll_future.done()

    def wait_for_poll(self, timeout: float = 5.0) -> bool:
        """Block until the current poll, if any, has finished."""
        with self._lock:
            future = self._poll_future
        if future is None:
            return True
        try:
            future.result(timeout=timeout)
        except Exception:
            return future.done()
        return True

    # === Poll (runs on the poll worker) ===

    def _poll(self, rescan: bool = False) -> None:
        try:
            with LogContext(logger, "Management poll"):
                self._poll_wifi(rescan)
                self._poll_vpn()
            self.event_bus.publish(EventType.SNAPSHOT_UPDATED)
        except Exception as e:
            log_exception(logger, "Unexpected poll error", e)

    def _poll_wifi(self, rescan: bool) -> None:
        try:
            output = self.deps.bridge.invoke(nmcli.list_wifi(rescan))
            profiles_out = self.deps.bridge.invoke(nmcli.list_profiles())
        except BridgeError as e:
            self._record_poll_error(EntityKind.WIFI, e)
            return
        networks = mark_saved(parse_wifi_list(output.stdout),
                              parse_saved_wifi(profiles_out.stdout))
        self._apply(Snapshot.from_entities(EntityKind.WIFI, networks))

    def _poll_vpn(self) -> None:
        try:
            profiles_out = self.deps.bridge.invoke(nmcli.list_profiles())
            active_out = self.deps.bridge.invoke(nmcli.list_active())
        except BridgeError as e:
            self._record_poll_error(EntityKind.VPN, e)
            return
        vpns = build_vpn_connections(
            parse_connection_profiles(profiles_out.stdout),
            parse_active_connections(active_out.stdout),
        )
        self._apply(Snapshot.from_entities(EntityKind.VPN, vpns))

    def _record_poll_error(self, kind: EntityKind, error: BridgeError) -> None:
        logger.warning(f"{kind.value} poll failed, keeping last snapshot: {error}")
        with self._lock:
            self._poll_errors[kind.value] = error.short
        self.event_bus.publish(EventType.POLL_FAILED,
                               {"entity_kind": kind.value, "error": error.short})

    def _apply(self, snapshot: Snapshot) -> None:
        kind = snapshot.kind
        reconciler = self.deps.reconcilers[kind]
        first_poll = not reconciler.has_polled
        events = reconciler.apply(snapshot)

        with self._lock:
            self._poll_errors.pop(kind.value, None)
            for event in events:
                if event.kind in (TransitionKind.CONNECTED, TransitionKind.DISCONNECTED,
                                  TransitionKind.VANISHED):
                    self._status.pop(event.key, None)

        if first_poll:
            # the first listing describes the starting state, not changes
            logger.info(f"Initial {kind.value} snapshot: {len(snapshot)} entries")
            return
        previous = reconciler.previous
        for event in events:
            before = previous.get(event.name)
            self.event_bus.publish_transition(
                event, source="reconciler",
                was_active=bool(before is not None and before.active),
            )

    # === Actions ===

    def connect(self, entity: ManagedEntity, secret: Optional[str] = None) -> bool:
        """Request activation of a Wi-Fi network or VPN profile.

        Args:
            entity: The entity to connect.
            secret: Password typed at the prompt; None or empty uses the
                saved profile or stored secrets.

        Returns:
            True if the action was started, False if it was rejected.
        """
        return self._request(ActionKind.CONNECT, entity, nmcli.connect(entity, secret or None))

    def disconnect(self, entity: ManagedEntity) -> bool:
        """Request deactivation of an entity's connection."""
        return self._request(ActionKind.DISCONNECT, entity, nmcli.disconnect(entity))

    def _request(self, kind: ActionKind, entity: ManagedEntity, plan) -> bool:
        if not self._running:
            return False
        # cleared first: completion may already have set a fresh status
        # by the time request() returns
        with self._lock:
            self._status.pop(entity.key, None)
        try:
            self.deps.actions.request(kind, entity.key, plan)
        except AlreadyPendingError as e:
            self._set_status(entity.key, f"busy: {e.kind or 'action'} pending")
            self.event_bus.publish(EventType.ACTION_REJECTED,
                                   {"key": entity.key, "action": kind.value})
            return False

        self.event_bus.publish(EventType.ACTION_STARTED,
                               {"key": entity.key, "action": kind.value, "name": entity.name})
        return True

    def _on_action_complete(self, result: ActionResult) -> None:
        """Runs on a bridge worker once the target is Idle again."""
        target = result.action.target
        if result.ok:
            # the next poll confirms; pull it forward
            with self._lock:
                self._poll_requested = True
            self._maybe_schedule_poll(self._clock())
            return

        self._set_status(target, result.error.short)
        self.event_bus.publish(EventType.ACTION_FAILED, {
            "key": target,
            "action": result.action.kind.value,
            "error": result.error.short,
        })

    def open_editor(self) -> bool:
        """Launch the graphical connection editor."""
        started = self.deps.bridge.launch_detached(nmcli.connection_editor())
        if not started:
            self._set_status(GENERAL, "could not start connection editor")
        return started

    # === Status messages ===

    def _set_status(self, key: str, text: str, error: bool = True) -> None:
        expires_at = self._clock() + INTERVALS.STATUS_MESSAGE_SECONDS
        with self._lock:
            self._status[key] = StatusMessage(text, expires_at, error)

    def _expire_status(self, now: float) -> None:
        with self._lock:
            expired = [k for k, m in self._status.items() if m.expires_at <= now]
            for key in expired:
                del self._status[key]

    # === Read accessors for the UI ===

    def snapshot(self, kind: EntityKind) -> Snapshot:
        return self.deps.reconcilers[kind].current

    def status_for(self, key: str) -> Optional[StatusMessage]:
        with self._lock:
            return self._status.get(key)

    def status_messages(self) -> Dict[str, StatusMessage]:
        with self._lock:
            return dict(self._status)

    def poll_errors(self) -> Dict[str, str]:
        """Last poll failure per source ("wifi", "vpn"), cleared on success."""
        with self._lock:
            return dict(self._poll_errors)

    def pending_keys(self) -> List[str]:
        return sorted(self.deps.actions.pending())

    def is_pending(self, entity: ManagedEntity) -> bool:
        return self.deps.actions.is_pending(entity.key)

    def active_interfaces(self) -> Tuple[ActiveInterface, ...]:
        return self._interfaces

    def graph_interfaces(self) -> List[str]:
        return graph_candidates(self.deps.series.interfaces())

    @property
    def series(self):
        return self.deps.series


__all__ = ["DashboardController", "StatusMessage", "GENERAL"]
