"""Application module for netdash.

Contains the main application components:
- EventBus: Internal event communication
- DashboardController: Tick, poll and action orchestration with DI
- PeriodicTimer: Background tick thread
- DesktopNotifier: notify-send sink for connection transitions
- DashboardApp: rich full-screen UI (app.tui)
"""

from app.controller import DashboardController
from app.dependencies import AppDependencies, create_dependencies
from app.events import Event, EventBus, EventType
from app.notifications import DesktopNotifier
from app.timer import PeriodicTimer

__all__ = [
    "AppDependencies",
    "DashboardController",
    "DesktopNotifier",
    "Event",
    "EventBus",
    "EventType",
    "PeriodicTimer",
    "create_dependencies",
]
