"""Settings management for netdash.

Settings live in ``settings.json`` inside the data directory. Unknown keys
are ignored and invalid values fall back to their defaults, so a hand
edited file can never stop the dashboard from starting.
"""
import json
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

from config import INTERVALS, STORAGE, THRESHOLDS, ConfigurationError, get_logger
from monitor.models import TransitionKind

logger = get_logger(__name__)


@dataclass
class NotificationSettings:
    """Which transitions produce a desktop notification."""
    enabled: bool = True
    notify_connected: bool = True
    notify_disconnected: bool = True
    notify_appeared: bool = False     # Wi-Fi scans make this noisy
    notify_vanished: bool = False

    def wants(self, kind: TransitionKind) -> bool:
        if not self.enabled:
            return False
        return {
            TransitionKind.CONNECTED: self.notify_connected,
            TransitionKind.DISCONNECTED: self.notify_disconnected,
            TransitionKind.APPEARED: self.notify_appeared,
            TransitionKind.VANISHED: self.notify_vanished,
        }[kind]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'NotificationSettings':
        defaults = cls()
        values = {}
        for f in fields(cls):
            value = data.get(f.name, getattr(defaults, f.name))
            values[f.name] = value if isinstance(value, bool) else getattr(defaults, f.name)
        return cls(**values)


@dataclass
class AppSettings:
    """Application settings."""
    tick_seconds: float = INTERVALS.TICK_SECONDS
    poll_seconds: float = INTERVALS.POLL_SECONDS
    command_timeout: float = INTERVALS.SUBPROCESS_TIMEOUT_SECONDS
    series_capacity: int = THRESHOLDS.SERIES_CAPACITY
    excluded_interfaces: List[str] = field(default_factory=list)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: On the first invalid value.
        """
        for name in ("tick_seconds", "poll_seconds", "command_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"Invalid {name}", {"value": value})
        if self.poll_seconds < self.tick_seconds:
            raise ConfigurationError(
                "poll_seconds must not be shorter than tick_seconds",
                {"poll_seconds": self.poll_seconds, "tick_seconds": self.tick_seconds},
            )
        if not isinstance(self.series_capacity, int) or self.series_capacity < 10:
            raise ConfigurationError("Invalid series_capacity", {"value": self.series_capacity})
        if not isinstance(self.excluded_interfaces, list) or not all(
            isinstance(n, str) for n in self.excluded_interfaces
        ):
            raise ConfigurationError("excluded_interfaces must be a list of names",
                                     {"value": self.excluded_interfaces})

    def to_dict(self) -> dict:
        return {
            "tick_seconds": self.tick_seconds,
            "poll_seconds": self.poll_seconds,
            "command_timeout": self.command_timeout,
            "series_capacity": self.series_capacity,
            "excluded_interfaces": list(self.excluded_interfaces),
            "notifications": self.notifications.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AppSettings':
        """Build settings from a dict, keeping defaults for invalid values."""
        defaults = cls()
        settings = cls(
            tick_seconds=data.get("tick_seconds", defaults.tick_seconds),
            poll_seconds=data.get("poll_seconds", defaults.poll_seconds),
            command_timeout=data.get("command_timeout", defaults.command_timeout),
            series_capacity=data.get("series_capacity", defaults.series_capacity),
            excluded_interfaces=data.get("excluded_interfaces", []),
            notifications=NotificationSettings.from_dict(data.get("notifications") or {}),
        )
        try:
            settings.validate()
        except ConfigurationError as e:
            logger.warning(f"Ignoring invalid settings, using defaults: {e}")
            return cls(notifications=settings.notifications)
        return settings


class SettingsManager:
    """Loads application settings and applies command-line overrides."""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.settings_file = data_dir / STORAGE.SETTINGS_FILE
        self._lock = threading.Lock()
        self._settings: AppSettings = AppSettings()
        self._load()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def _load(self) -> None:
        """Load settings from file."""
        if not self.settings_file.exists():
            self._settings = AppSettings()
            return
        try:
            with open(self.settings_file, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ConfigurationError("Settings file is not a JSON object")
            self._settings = AppSettings.from_dict(data)
            logger.debug(f"Loaded settings from {self.settings_file}")
        except (json.JSONDecodeError, OSError, TypeError, ConfigurationError) as e:
            logger.warning(f"Could not load settings: {e}")
            self._settings = AppSettings()

    def update(self, **changes) -> AppSettings:
        """Apply overrides (e.g. from the command line) without saving.

        Raises:
            ConfigurationError: If an override is invalid.
        """
        with self._lock:
            data = self._settings.to_dict()
            data.update({k: v for k, v in changes.items() if v is not None})
            candidate = AppSettings(
                tick_seconds=data["tick_seconds"],
                poll_seconds=data["poll_seconds"],
                command_timeout=data["command_timeout"],
                series_capacity=data["series_capacity"],
                excluded_interfaces=data["excluded_interfaces"],
                notifications=self._settings.notifications,
            )
            candidate.validate()
            self._settings = candidate
            return candidate

    def set_notifications_enabled(self, enabled: bool) -> None:
        with self._lock:
            self._settings.notifications.enabled = enabled


def get_settings_manager(data_dir: Optional[Path] = None) -> SettingsManager:
    """Create a settings manager for the data directory."""
    if data_dir is None:
        data_dir = Path.home() / STORAGE.DATA_DIR_NAME
    return SettingsManager(data_dir)
