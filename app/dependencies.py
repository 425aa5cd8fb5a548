"""Dependency injection container for netdash.

Provides a centralized way to create and manage application dependencies,
making components easier to test and swap out.

Usage:
    from app.dependencies import create_dependencies

    # Create all dependencies
    deps = create_dependencies()

    # Access individual components
    deps.sampler.poll()
    deps.reconcilers[EntityKind.VPN].current
"""

from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Dict, List, Optional

from config import STORAGE, get_logger

logger = get_logger(__name__)


@dataclass
class AppDependencies:
    """Container for all application dependencies.

    Using a dataclass makes dependencies explicit and easy to mock in tests.
    Each field represents a component that can be injected.
    """

    # Settings
    settings: "AppSettings"

    # Acquisition components
    sampler: "RateSampler"
    series: "BandwidthSeries"
    bridge: "CommandBridge"
    reconcilers: Dict["EntityKind", "ConnectionReconciler"]
    actions: "ActionQueue"

    # Event bus (shared by controller, notifier and UI)
    event_bus: "EventBus"

    # Active-interface source for the interfaces panel
    interface_source: Callable[[], List["ActiveInterface"]] = field(default=None)

    def __post_init__(self):
        """Log dependency creation."""
        if self.interface_source is None:
            from monitor.interfaces import get_active_interfaces
            self.interface_source = get_active_interfaces
        logger.debug("AppDependencies container created")


def create_dependencies(
    data_dir: Optional[Path] = None,
    settings: Optional["AppSettings"] = None,
    counters_path: Optional[str] = None,
    event_bus: Optional["EventBus"] = None,
) -> AppDependencies:
    """Create all application dependencies.

    Factory function that instantiates all required components
    and wires them together.

    Args:
        data_dir: Override the default data directory.
        settings: Pre-loaded settings; read from data_dir when None.
        counters_path: Alternative counter file (for replay and debugging).
        event_bus: Provide an existing event bus, or one will be created.

    Returns:
        AppDependencies container with all components.
    """
    # Import here to avoid circular imports
    from app.events import EventBus
    from monitor.actions import ActionQueue
    from monitor.bandwidth_series import BandwidthSeries
    from monitor.command_bridge import CommandBridge
    from monitor.counters import read_counters
    from monitor.models import EntityKind
    from monitor.rate_sampler import RateSampler
    from monitor.reconciler import ConnectionReconciler
    from storage.settings import get_settings_manager

    logger.info("Creating application dependencies...")

    if settings is None:
        if data_dir is None:
            data_dir = Path.home() / STORAGE.DATA_DIR_NAME
        settings = get_settings_manager(data_dir).settings

    reader = partial(read_counters, counters_path,
                     exclude=tuple(settings.excluded_interfaces))
    bridge = CommandBridge(default_timeout=settings.command_timeout)

    deps = AppDependencies(
        settings=settings,
        sampler=RateSampler(reader=reader),
        series=BandwidthSeries(capacity=settings.series_capacity),
        bridge=bridge,
        reconcilers={kind: ConnectionReconciler(kind) for kind in EntityKind},
        actions=ActionQueue(bridge),
        event_bus=event_bus or EventBus(async_mode=True),
    )

    logger.info("All dependencies created successfully")
    return deps


__all__ = ["AppDependencies", "create_dependencies"]
