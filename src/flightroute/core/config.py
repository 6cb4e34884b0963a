"""Configuration loader for YAML files.

This module provides configuration loading with support for nested access,
defaults, and the typed settings consumed by the route planner.

Typical usage example:
    from flightroute.core.config import ConfigLoader, PlannerSettings

    config = ConfigLoader.load("config/planner.yaml")
    settings = PlannerSettings.from_config(config)
    tolerance = config.get("planner.altitude_tolerance_ft", default=10.0)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""


class ConfigLoader:
    """Configuration loader for YAML files.

    Provides loading, nested access, and default values for configuration.

    Examples:
        >>> config = ConfigLoader.load("config/planner.yaml")
        >>> undo_depth = config.get("planner.undo_depth", default=100)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary.
        """
        self._data = data if data is not None else {}

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If file cannot be loaded.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data)

    @classmethod
    def from_string(cls, text: str) -> "ConfigLoader":
        """Load configuration from a YAML document held in memory.

        Args:
            text: YAML document.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If the document cannot be parsed.
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")

        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Supports nested access like "planner.undo_depth".

        Args:
            key: Configuration key (supports dot notation).
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        keys = key.split(".")
        value = self._data

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation).
            value: Value to set.
        """
        keys = key.split(".")
        data = self._data

        for k in keys[:-1]:
            if k not in data:
                data[k] = {}
            data = data[k]

        data[keys[-1]] = value

    def get_section(self, key: str) -> dict[str, Any]:
        """Get an entire configuration section.

        Args:
            key: Section key (supports dot notation).

        Returns:
            Configuration section as dictionary.

        Raises:
            ConfigError: If section not found or not a dict.
        """
        value = self.get(key)

        if value is None:
            raise ConfigError(f"Configuration section not found: {key}")

        if not isinstance(value, dict):
            raise ConfigError(f"Configuration key is not a section: {key}")

        return value

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save configuration.

        Raises:
            ConfigError: If save fails.
        """
        path = Path(path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)

            logger.info("Saved configuration to: %s", path)

        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to save configuration: {e}") from e

    def merge(self, other: "ConfigLoader") -> None:
        """Merge another configuration into this one.

        Args:
            other: ConfigLoader to merge from.

        Note:
            Other config values override existing ones.
        """
        self._data = self._merge_dicts(self._data, other._data)

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    def to_dict(self) -> dict[str, Any]:
        """Get the configuration as a dictionary.

        Returns:
            Configuration dictionary.
        """
        return self._data.copy()


@dataclass
class PlannerSettings:
    """Tunable parameters of route assembly and profile computation.

    Attributes:
        default_cruise_altitude_ft: Cruise altitude used when the route string
            carries no speed/level group.
        default_cruise_speed_kts: Cruise speed used when the route string
            carries no speed/level group.
        altitude_tolerance_ft: Slack allowed when checking altitude restrictions.
        undo_depth: Maximum number of transactions kept for undo.
        altitude_leg_gradient_ft_per_nm: Climb gradient used to estimate the
            length of legs that terminate at an altitude (CA, FA, VA).
        manual_leg_length_nm: Display length of legs with manual termination.
        read_alternates: Treat trailing airports after the destination as
            alternates when parsing route strings.
        profile_step_nm: Sampling interval of the vertical profile.
    """

    default_cruise_altitude_ft: float = 10000.0
    default_cruise_speed_kts: float = 250.0
    altitude_tolerance_ft: float = 10.0
    undo_depth: int = 100
    altitude_leg_gradient_ft_per_nm: float = 200.0
    manual_leg_length_nm: float = 3.0
    read_alternates: bool = False
    profile_step_nm: float = 0.5

    @classmethod
    def from_config(cls, config: ConfigLoader, section: str = "planner") -> "PlannerSettings":
        """Build settings from the given configuration section.

        Missing keys keep their defaults.

        Args:
            config: Loaded configuration.
            section: Name of the section holding planner settings.

        Returns:
            PlannerSettings instance.

        Raises:
            ConfigError: If a value has the wrong type or is out of range.
        """
        values = config.get(section, default={}) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Configuration key is not a section: {section}")

        defaults = cls()
        try:
            settings = cls(
                default_cruise_altitude_ft=float(
                    values.get("default_cruise_altitude_ft", defaults.default_cruise_altitude_ft)
                ),
                default_cruise_speed_kts=float(
                    values.get("default_cruise_speed_kts", defaults.default_cruise_speed_kts)
                ),
                altitude_tolerance_ft=float(
                    values.get("altitude_tolerance_ft", defaults.altitude_tolerance_ft)
                ),
                undo_depth=int(values.get("undo_depth", defaults.undo_depth)),
                altitude_leg_gradient_ft_per_nm=float(
                    values.get(
                        "altitude_leg_gradient_ft_per_nm",
                        defaults.altitude_leg_gradient_ft_per_nm,
                    )
                ),
                manual_leg_length_nm=float(
                    values.get("manual_leg_length_nm", defaults.manual_leg_length_nm)
                ),
                read_alternates=bool(values.get("read_alternates", defaults.read_alternates)),
                profile_step_nm=float(values.get("profile_step_nm", defaults.profile_step_nm)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid planner setting: {e}") from e

        if settings.undo_depth < 1:
            raise ConfigError("planner.undo_depth must be at least 1")
        if settings.altitude_leg_gradient_ft_per_nm <= 0:
            raise ConfigError("planner.altitude_leg_gradient_ft_per_nm must be positive")
        if settings.profile_step_nm <= 0:
            raise ConfigError("planner.profile_step_nm must be positive")

        return settings
