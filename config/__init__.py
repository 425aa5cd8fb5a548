"""Configuration module for netdash.

Provides centralized constants, logging and the exception hierarchy.
"""
from config.constants import (
    ALLOWED_SUBPROCESS_COMMANDS,
    INTERVALS,
    NETWORK,
    STORAGE,
    THRESHOLDS,
    UI,
    Intervals,
    NetworkConfig,
    StorageConfig,
    Thresholds,
    UIConfig,
)
from config.exceptions import (
    AlreadyPendingError,
    BridgeError,
    BridgeTimeoutError,
    ConfigurationError,
    CounterReadError,
    NetDashError,
    NonZeroExitError,
    NotificationDeliveryError,
    ParseError,
    SpawnFailedError,
)
from config.logging_config import get_logger, setup_logging

__all__ = [
    # Constants
    "INTERVALS",
    "THRESHOLDS",
    "STORAGE",
    "NETWORK",
    "UI",
    "Intervals",
    "Thresholds",
    "StorageConfig",
    "NetworkConfig",
    "UIConfig",
    "ALLOWED_SUBPROCESS_COMMANDS",
    # Exceptions
    "NetDashError",
    "CounterReadError",
    "BridgeError",
    "BridgeTimeoutError",
    "SpawnFailedError",
    "NonZeroExitError",
    "ParseError",
    "AlreadyPendingError",
    "NotificationDeliveryError",
    "ConfigurationError",
    # Logging
    "setup_logging",
    "get_logger",
]
