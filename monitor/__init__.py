"""Network acquisition and connection-management components.

This package provides the data side of netdash: interface counters and
rates for the bandwidth graph, and the nmcli bridge, parser and reconciler
for Wi-Fi and VPN connections.

Modules:
    counters: /proc/net/dev reading and parsing
    rate_sampler: Counter deltas to bits per second
    bandwidth_series: Bounded per-interface rate history
    interfaces: Active interfaces and their IPv4 addresses (psutil)
    command_bridge: Subprocess execution with timeouts
    nmcli: Command specs for nmcli and the desktop helpers
    parser: nmcli terse output to typed records
    reconciler: Snapshot diffing and transition events
    actions: One pending connect/disconnect per target
    utils: Shared formatting functions

Example:
    >>> from monitor import RateSampler, BandwidthSeries
    >>> sampler = RateSampler()
    >>> series = BandwidthSeries()
    >>> for name, sample in sampler.poll().items():
    ...     series.push(name, sample.rx_rate, sample.tx_rate)
"""
from .actions import ActionKind, ActionQueue, ActionResult, PendingAction
from .bandwidth_series import BandwidthSeries
from .command_bridge import CommandBridge, CommandSpec, RawOutput
from .counters import InterfaceCounters, read_counters
from .interfaces import ActiveInterface, get_active_interfaces
from .models import (
    ActiveConnection,
    EntityKind,
    Snapshot,
    TransitionEvent,
    TransitionKind,
    VpnConnection,
    WifiNetwork,
)
from .rate_sampler import RateSample, RateSampler
from .reconciler import ConnectionReconciler, diff_snapshots
from .utils import format_rate

__all__ = [
    # Counters and rates
    "InterfaceCounters",
    "read_counters",
    "RateSample",
    "RateSampler",
    "BandwidthSeries",
    "ActiveInterface",
    "get_active_interfaces",
    # Commands
    "CommandBridge",
    "CommandSpec",
    "RawOutput",
    # Connection state
    "ActiveConnection",
    "EntityKind",
    "Snapshot",
    "TransitionEvent",
    "TransitionKind",
    "VpnConnection",
    "WifiNetwork",
    "ConnectionReconciler",
    "diff_snapshots",
    # Actions
    "ActionKind",
    "ActionQueue",
    "ActionResult",
    "PendingAction",
    # Utilities
    "format_rate",
]
