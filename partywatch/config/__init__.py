"""
Configuration module for the party notification bridge.

Provides layered settings for the event stream connection, push
notification credentials and the per-event notification toggles.
"""

from .settings import (
    ApplicationSettings,
    ConnectionSettings,
    PushoverSettings,
    ConfigError,
    PUSHOVER_MESSAGE_URL,
)
from .loader import ConfigLoader, load_settings

__all__ = [
    "ApplicationSettings",
    "ConnectionSettings",
    "PushoverSettings",
    "ConfigError",
    "PUSHOVER_MESSAGE_URL",
    "ConfigLoader",
    "load_settings",
]
