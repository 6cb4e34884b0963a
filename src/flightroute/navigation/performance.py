"""Aircraft performance data used by the vertical profile.

Typical usage:
    perf = AircraftPerformanceProfile(
        climb_speed_kts=140, climb_rate_fpm=1800,
        cruise_speed_kts=450, descent_speed_kts=280, descent_rate_fpm=2000,
    )
    perf.climb_gradient_ft_per_nm    # ~771 ft/nm
"""

from dataclasses import dataclass, fields
from typing import Any

from flightroute.core.config import ConfigError, ConfigLoader
from flightroute.core.logging_system import get_logger

logger = get_logger(__name__)

# Rule of thumb: 3 NM per 1000 ft
DEFAULT_DESCENT_GRADIENT_FT_PER_NM = 1000.0 / 3.0


@dataclass
class AircraftPerformanceProfile:
    """Climb, cruise and descent performance of an aircraft.

    Speeds are ground speeds in still air. The descent gradient is taken
    from descent_gradient_ft_per_nm if set, else derived from descent rate
    and speed, else the 3 NM per 1000 ft rule of thumb.

    Attributes:
        climb_speed_kts: Average climb speed in knots
        climb_rate_fpm: Average climb rate in feet per minute
        cruise_speed_kts: Cruise speed in knots
        descent_speed_kts: Average descent speed in knots
        descent_rate_fpm: Average descent rate in feet per minute
        descent_gradient_ft_per_nm: Explicit descent gradient
        climb_fuel_flow_gph: Fuel flow in climb (gallons per hour)
        cruise_fuel_flow_gph: Fuel flow in cruise
        descent_fuel_flow_gph: Fuel flow in descent

    Examples:
        >>> c172 = AircraftPerformanceProfile(
        ...     climb_speed_kts=75, climb_rate_fpm=700,
        ...     cruise_speed_kts=120, descent_speed_kts=110,
        ... )
    """

    climb_speed_kts: float | None = None
    climb_rate_fpm: float | None = None
    cruise_speed_kts: float | None = None
    descent_speed_kts: float | None = None
    descent_rate_fpm: float | None = None
    descent_gradient_ft_per_nm: float | None = None
    climb_fuel_flow_gph: float = 0.0
    cruise_fuel_flow_gph: float = 0.0
    descent_fuel_flow_gph: float = 0.0

    @property
    def climb_gradient_ft_per_nm(self) -> float | None:
        """Feet gained per nautical mile, None if climb data is missing."""
        if not self.climb_rate_fpm or not self.climb_speed_kts:
            return None
        return self.climb_rate_fpm * 60.0 / self.climb_speed_kts

    @property
    def descent_gradient(self) -> float:
        """Feet lost per nautical mile in descent."""
        if self.descent_gradient_ft_per_nm:
            return self.descent_gradient_ft_per_nm
        if self.descent_rate_fpm and self.descent_speed_kts:
            return self.descent_rate_fpm * 60.0 / self.descent_speed_kts
        return DEFAULT_DESCENT_GRADIENT_FT_PER_NM

    def missing_fields(self) -> list[str]:
        """Names of values a vertical profile cannot be computed without."""
        missing = []
        for name in ("climb_speed_kts", "climb_rate_fpm", "descent_speed_kts"):
            value = getattr(self, name)
            if value is None or value <= 0:
                missing.append(name)
        return missing

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "AircraftPerformanceProfile":
        """Create a profile from a dictionary, ignoring unknown keys.

        Raises:
            ConfigError: If a value is not a number.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("Ignoring unknown performance keys: %s", ", ".join(unknown))

        try:
            kwargs = {
                name: float(value) if value is not None else None
                for name, value in values.items()
                if name in known
            }
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid aircraft performance value: {e}") from e
        return cls(**kwargs)

    @classmethod
    def from_config(
        cls, config: ConfigLoader, section: str = "aircraft"
    ) -> "AircraftPerformanceProfile":
        """Create a profile from a configuration section.

        Args:
            config: Loaded configuration.
            section: Dot-notation key of the aircraft section.

        Returns:
            Performance profile; an absent section gives an empty profile.
        """
        values = config.get(section, default={}) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Configuration key is not a section: {section}")
        return cls.from_dict(values)
