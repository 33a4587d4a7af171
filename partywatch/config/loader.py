"""
Configuration file loader.

Reads settings from a YAML file so credentials and toggles don't have to be
passed on every invocation.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .settings import ApplicationSettings, ConfigError

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads configuration from YAML files."""

    @staticmethod
    def search_paths() -> list:
        """Default locations checked when no explicit path is given."""
        return [
            Path("partywatch.yaml"),
            Path("config/partywatch.yaml"),
            Path.home() / ".partywatch" / "partywatch.yaml",
        ]

    @staticmethod
    def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to config file. If None, looks for:
                        1. partywatch.yaml in current directory
                        2. config/partywatch.yaml
                        3. ~/.partywatch/partywatch.yaml

        Returns:
            Configuration dictionary (empty if no file was found)

        Raises:
            ConfigError: If the explicit path is missing, or a file cannot be
                read or parsed
        """
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            search_paths = [path]
        else:
            search_paths = ConfigLoader.search_paths()

        for path in search_paths:
            if path.exists():
                try:
                    with open(path, "r", encoding="utf-8") as f:
                        config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    raise ConfigError(f"Failed to load config from {path}: {e}") from e

                if not isinstance(config, dict):
                    raise ConfigError(f"Config file {path} must contain a mapping")

                logger.info(f"Loaded configuration from {path}")
                return config

        logger.debug("No configuration file found, using defaults")
        return {}


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ApplicationSettings:
    """
    Build settings from defaults, config file, environment and overrides.

    Args:
        config_path: Optional path to a config file
        overrides: Flat config keys from the command line; None values are
            treated as "not given"
        environ: Environment mapping, defaults to os.environ

    Returns:
        The merged ApplicationSettings
    """
    settings = ApplicationSettings().with_overrides(ConfigLoader.load_config(config_path))
    settings = ApplicationSettings.from_env(environ, base=settings)
    if overrides:
        settings = settings.with_overrides(overrides)
    return settings
