"""User settings for netdash.

Only configuration is stored; all monitoring state is rebuilt from live
polling on every start.
"""
from .settings import AppSettings, NotificationSettings, SettingsManager, get_settings_manager

__all__ = ["AppSettings", "NotificationSettings", "SettingsManager", "get_settings_manager"]
