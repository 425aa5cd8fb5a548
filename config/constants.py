"""Centralized constants and configuration for netdash.

This module contains the magic numbers, strings, and configuration values
used across the acquisition layer and the terminal UI. Centralizing them
makes the code easier to maintain and configure.

Usage:
    from config.constants import INTERVALS, THRESHOLDS, STORAGE

    # Access values
    tick = INTERVALS.TICK_SECONDS
    capacity = THRESHOLDS.SERIES_CAPACITY
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Intervals:
    """Time intervals for various operations (in seconds).

    All interval values are in seconds unless otherwise specified.
    """
    # Main timer tick (rate sampling)
    TICK_SECONDS: float = 0.5

    # Management poll (nmcli list/status commands)
    POLL_SECONDS: float = 2.0

    # Subprocess timeouts
    SUBPROCESS_TIMEOUT_SECONDS: float = 5.0
    ACTION_TIMEOUT_SECONDS: float = 30.0      # connect/disconnect may negotiate
    NOTIFY_TIMEOUT_SECONDS: float = 3.0

    # How long an inline status message stays next to an entity
    STATUS_MESSAGE_SECONDS: float = 8.0

    # UI refresh
    RENDER_SECONDS: float = 0.1


@dataclass(frozen=True)
class Thresholds:
    """Threshold values for sampling and history."""
    # Samples closer together than this are not turned into a rate
    MIN_SAMPLE_INTERVAL_SECONDS: float = 0.05

    # History size (data points in the graph window)
    SERIES_CAPACITY: int = 300

    # Bridge output kept in error details
    STDERR_EXCERPT_CHARS: int = 500


@dataclass(frozen=True)
class StorageConfig:
    """Storage and file-related configuration."""
    # Directory and file names
    DATA_DIR_NAME: str = ".netdash"
    SETTINGS_FILE: str = "settings.json"
    LOG_FILE: str = "netdash.log"

    # Log rotation
    LOG_MAX_BYTES: int = 2_000_000  # 2MB
    LOG_BACKUP_COUNT: int = 3


@dataclass(frozen=True)
class NetworkConfig:
    """Network-related configuration."""
    # Kernel counter source
    PROC_NET_DEV: str = "/proc/net/dev"

    # Interfaces never graphed
    EXCLUDED_INTERFACES: Tuple[str, ...] = ("lo",)
    EXCLUDED_SUBSTRINGS: Tuple[str, ...] = ("docker",)
    EXCLUDED_PREFIXES: Tuple[str, ...] = ("br-",)

    # Interface classification for the graph selector
    PHYSICAL_PREFIXES: Tuple[str, ...] = ("e", "w")
    TUNNEL_PREFIXES: Tuple[str, ...] = ("tun", "wg", "ppp")

    # nmcli connection types listed as VPNs
    VPN_CONNECTION_TYPES: Tuple[str, ...] = ("vpn", "wireguard")
    WIFI_CONNECTION_TYPE: str = "802-11-wireless"

    # passwd-file keys for secrets typed at the prompt
    WIFI_PSK_SECRET: str = "802-11-wireless-security.psk"
    WIFI_WEP_SECRET: str = "802-11-wireless-security.wep-key0"
    VPN_PASSWORD_SECRET: str = "vpn.secrets.password"

    # Management tool
    NMCLI: str = "nmcli"
    NOTIFY_SEND: str = "notify-send"
    CONNECTION_EDITOR: str = "nm-connection-editor"


@dataclass(frozen=True)
class UIConfig:
    """UI-related configuration."""
    # Graph
    GRAPH_HEIGHT: int = 8

    # Text truncation
    MAX_ENTITY_NAME_LENGTH: int = 32

    # Notification icons (freedesktop icon names)
    ICON_CONNECTED: str = "network-transmit-receive"
    ICON_DISCONNECTED: str = "network-error"


# Global instances - import these
INTERVALS = Intervals()
THRESHOLDS = Thresholds()
STORAGE = StorageConfig()
NETWORK = NetworkConfig()
UI = UIConfig()


# Allowed commands for subprocess safety
ALLOWED_SUBPROCESS_COMMANDS = frozenset({
    'nmcli',
    'notify-send',
    'nm-connection-editor',
})
