"""
Configuration settings for the party notification bridge.

Settings are layered: dataclass defaults, then a YAML config file, then
environment variables, then command-line flags. The result is built once at
startup and passed explicitly to the components that need it.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from ..parser.categorizer import NotificationToggles

logger = logging.getLogger(__name__)

PUSHOVER_MESSAGE_URL = "https://api.pushover.net/1/messages.json"

TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded or is invalid."""


@dataclass(frozen=True)
class ConnectionSettings:
    """Event stream connection settings."""

    server_address: str = "127.0.0.1:10501"
    path: str = "MiniParse"
    close_grace: float = 1.0  # seconds to wait for the server after a close frame
    reconnect_attempts: int = 0
    reconnect_delay: float = 5.0

    @property
    def url(self) -> str:
        """Get the WebSocket URL of the event stream."""
        return f"ws://{self.server_address}/{self.path}"


@dataclass(frozen=True)
class PushoverSettings:
    """Push notification delivery settings."""

    app_token: str = ""
    user_key: str = ""
    endpoint: str = PUSHOVER_MESSAGE_URL
    timeout: float = 10.0


# config key -> (section, attribute, type)
SETTING_KEYS: Dict[str, Tuple[str, str, type]] = {
    "server_address": ("connection", "server_address", str),
    "close_grace": ("connection", "close_grace", float),
    "reconnect_attempts": ("connection", "reconnect_attempts", int),
    "reconnect_delay": ("connection", "reconnect_delay", float),
    "app_token": ("pushover", "app_token", str),
    "user_key": ("pushover", "user_key", str),
    "http_timeout": ("pushover", "timeout", float),
    "notify_fill": ("toggles", "fill", bool),
    "notify_disband": ("toggles", "disband", bool),
    "notify_join": ("toggles", "join", bool),
    "notify_leave": ("toggles", "leave", bool),
}

ENV_VARS: Dict[str, str] = {
    "server_address": "PARTYWATCH_ADDR",
    "close_grace": "PARTYWATCH_CLOSE_GRACE",
    "reconnect_attempts": "PARTYWATCH_RECONNECT_ATTEMPTS",
    "reconnect_delay": "PARTYWATCH_RECONNECT_DELAY",
    "app_token": "PUSHOVER_APP_TOKEN",
    "user_key": "PUSHOVER_USER_KEY",
    "http_timeout": "PARTYWATCH_HTTP_TIMEOUT",
    "notify_fill": "PARTYWATCH_NOTIFY_FILL",
    "notify_disband": "PARTYWATCH_NOTIFY_DISBAND",
    "notify_join": "PARTYWATCH_NOTIFY_JOIN",
    "notify_leave": "PARTYWATCH_NOTIFY_LEAVE",
}


def coerce_value(key: str, value: Any, kind: type) -> Any:
    """
    Convert a raw config value to the type of its setting.

    Strings are accepted for every type so environment variables and YAML
    scalars can be used interchangeably.

    Raises:
        ConfigError: If the value cannot be converted
    """
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in TRUE_STRINGS:
            return True
        if isinstance(value, str) and value.strip().lower() in FALSE_STRINGS:
            return False
    elif kind is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
    elif kind is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
    elif kind is str:
        if isinstance(value, str):
            return value

    raise ConfigError(f"Invalid value for {key}: {value!r} (expected {kind.__name__})")


@dataclass(frozen=True)
class ApplicationSettings:
    """Main application settings container."""

    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    pushover: PushoverSettings = field(default_factory=PushoverSettings)
    toggles: NotificationToggles = field(default_factory=NotificationToggles)

    def with_overrides(self, values: Mapping[str, Any]) -> "ApplicationSettings":
        """
        Return a copy with the given flat config keys applied.

        Keys with a value of None are skipped; unknown keys are logged and
        ignored.

        Raises:
            ConfigError: If a value has the wrong type
        """
        sections: Dict[str, Dict[str, Any]] = {"connection": {}, "pushover": {}, "toggles": {}}

        for key, value in values.items():
            if value is None:
                continue
            if key not in SETTING_KEYS:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            section, attribute, kind = SETTING_KEYS[key]
            sections[section][attribute] = coerce_value(key, value, kind)

        settings = replace(
            self,
            connection=replace(self.connection, **sections["connection"]),
            pushover=replace(self.pushover, **sections["pushover"]),
            toggles=replace(self.toggles, **sections["toggles"]),
        )
        settings.check_ranges()
        return settings

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        base: Optional["ApplicationSettings"] = None,
    ) -> "ApplicationSettings":
        """Load settings from environment variables on top of base (or defaults)."""
        environ = os.environ if environ is None else environ
        values = {key: environ.get(var) for key, var in ENV_VARS.items()}
        return (base or cls()).with_overrides(values)

    def check_ranges(self):
        """Validate numeric settings."""
        errors = []

        if self.connection.close_grace < 0:
            errors.append(f"close_grace must not be negative: {self.connection.close_grace}")
        if self.connection.reconnect_attempts < 0:
            errors.append(
                f"reconnect_attempts must not be negative: {self.connection.reconnect_attempts}"
            )
        if self.connection.reconnect_delay < 0:
            errors.append(
                f"reconnect_delay must not be negative: {self.connection.reconnect_delay}"
            )
        if self.pushover.timeout <= 0:
            errors.append(f"http_timeout must be positive: {self.pushover.timeout}")

        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

    def validate(self):
        """Validate that everything needed to deliver notifications is present."""
        errors = []

        if not self.pushover.user_key:
            errors.append("Pushover user key is required (--key or PUSHOVER_USER_KEY)")
        if not self.pushover.app_token:
            errors.append("Pushover app token is required (--token or PUSHOVER_APP_TOKEN)")
        if not self.connection.server_address:
            errors.append("Server address is required (--addr or PARTYWATCH_ADDR)")

        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

    def log_configuration(self):
        """Log current configuration (excluding credentials)."""
        logger.info("=== Partywatch Configuration ===")
        logger.info(f"Event stream: {self.connection.url}")
        logger.info(f"Notify on fill: {self.toggles.fill}")
        logger.info(f"Notify on disband: {self.toggles.disband}")
        logger.info(f"Notify on join: {self.toggles.join}")
        logger.info(f"Notify on leave: {self.toggles.leave}")
        if self.connection.reconnect_attempts:
            logger.info(
                f"Reconnect: up to {self.connection.reconnect_attempts} attempts, "
                f"{self.connection.reconnect_delay}s apart"
            )
        logger.info("=== End Configuration ===")
