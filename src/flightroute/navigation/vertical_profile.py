"""Climb, cruise and descent profile of a flight plan.

The solver samples the route along its distance and runs two passes:

- forward from the departure elevation, climbing with the climb gradient
  until cruise altitude or the next at/below restriction levels it off,
- backward from the destination elevation, climbing back up with the
  descent gradient and honoring every at/below restriction.

The profile is the lower of both passes, capped at cruise altitude. Altitude
restrictions the profile cannot meet are reported as RestrictionInfeasible
records; they never prevent a profile.

Typical usage:
    solver = VerticalProfileSolver(settings)
    profile = solver.solve(plan, performance)
    profile.top_of_climb_nm, profile.top_of_descent_nm
    profile.altitude_at(120.0)
"""

from dataclasses import dataclass, field

import numpy as np

from flightroute.core.cancellation import CancellationToken
from flightroute.core.config import PlannerSettings
from flightroute.core.logging_system import get_logger
from flightroute.navigation.errors import ConfigurationError, RestrictionInfeasible
from flightroute.navigation.flight_plan import FlightPlan
from flightroute.navigation.legs import LegCategory
from flightroute.navigation.performance import AircraftPerformanceProfile

logger = get_logger(__name__)

_EPSILON_FT = 1e-6


@dataclass(frozen=True)
class PhaseEstimate:
    """Distance, time and fuel of one flight phase."""

    distance_nm: float = 0.0
    time_min: float = 0.0
    fuel_gal: float = 0.0


@dataclass
class VerticalProfile:
    """Altitude along a flight plan.

    Attributes:
        distances_nm: Sample positions from the departure, ascending
        altitudes_ft: Profile altitude at each sample
        leg_altitudes_ft: Altitude at the end of each flight plan leg; None
            for missed approach legs, which are not part of the profile
        cruise_altitude_ft: Cruise altitude the profile was computed for
        top_of_climb_nm: Where the climb first levels off, at cruise altitude
            or at the leg of a limiting at/below restriction
        top_of_descent_nm: Where the descent towards the destination starts
        cruise_reached_nm: Where cruise altitude is first reached, None if the
            route is too short to reach it
        level_off_leg_index: Leg whose restriction ends the initial climb,
            None if the climb ends at cruise altitude
        infeasible: Restrictions the profile does not satisfy
        climb: Estimate for the climb phase
        cruise: Estimate for the cruise phase
        descent: Estimate for the descent phase
    """

    distances_nm: np.ndarray
    altitudes_ft: np.ndarray
    leg_altitudes_ft: list[float | None]
    cruise_altitude_ft: float
    top_of_climb_nm: float
    top_of_descent_nm: float
    cruise_reached_nm: float | None = None
    level_off_leg_index: int | None = None
    infeasible: list[RestrictionInfeasible] = field(default_factory=list)
    climb: PhaseEstimate = field(default_factory=PhaseEstimate)
    cruise: PhaseEstimate = field(default_factory=PhaseEstimate)
    descent: PhaseEstimate = field(default_factory=PhaseEstimate)

    @property
    def total_distance_nm(self) -> float:
        return float(self.distances_nm[-1]) if len(self.distances_nm) else 0.0

    @property
    def max_altitude_ft(self) -> float:
        return float(self.altitudes_ft.max()) if len(self.altitudes_ft) else 0.0

    @property
    def is_feasible(self) -> bool:
        return not self.infeasible

    @property
    def total_time_min(self) -> float:
        return self.climb.time_min + self.cruise.time_min + self.descent.time_min

    @property
    def total_fuel_gal(self) -> float:
        return self.climb.fuel_gal + self.cruise.fuel_gal + self.descent.fuel_gal

    def altitude_at(self, distance_nm: float) -> float:
        """Interpolated altitude at a distance from the departure.

        Distances outside the route are clamped to its ends.
        """
        return float(np.interp(distance_nm, self.distances_nm, self.altitudes_ft))


class VerticalProfileSolver:
    """Computes vertical profiles for flight plans."""

    def __init__(self, settings: PlannerSettings | None = None) -> None:
        self.settings = settings or PlannerSettings()

    def solve(
        self,
        plan: FlightPlan,
        performance: AircraftPerformanceProfile,
        cruise_altitude_ft: float | None = None,
        token: CancellationToken | None = None,
    ) -> VerticalProfile:
        """Compute the vertical profile of a flight plan.

        Args:
            plan: Flight plan; missed approach legs are ignored.
            performance: Aircraft performance.
            cruise_altitude_ft: Cruise altitude, defaults to the plan's.
            token: Cancellation token checked between passes.

        Returns:
            The profile with infeasible restrictions collected.

        Raises:
            ConfigurationError: If cruise altitude is zero or undefined, or
                climb or descent performance is missing.
            ComputationCancelled: If the token was cancelled.
        """
        cruise = plan.cruise_altitude_ft if cruise_altitude_ft is None else cruise_altitude_ft
        if cruise is None or cruise <= 0:
            raise ConfigurationError("Cruise altitude is not set")

        missing = performance.missing_fields()
        if missing:
            raise ConfigurationError(f"Aircraft performance lacks {', '.join(missing)}")

        climb_gradient = performance.climb_gradient_ft_per_nm
        descent_gradient = performance.descent_gradient

        # Profile points of the flown legs
        cumulative = plan.cumulative_distances()
        flown = [
            i for i, leg in enumerate(plan.legs) if leg.category is not LegCategory.MISSED_APPROACH
        ]
        total = cumulative[flown[-1]] if flown else 0.0

        grid = np.union1d(
            np.append(np.arange(0.0, total, self.settings.profile_step_nm), total),
            [cumulative[i] for i in flown],
        )
        leg_points = {i: int(np.searchsorted(grid, cumulative[i])) for i in flown}

        caps = np.full(len(grid), np.inf)
        cap_legs = np.full(len(grid), -1)
        for i in flown:
            restriction = plan.legs[i].altitude_restriction
            if restriction is None or restriction.upper_ft is None:
                continue
            k = leg_points[i]
            if restriction.upper_ft < caps[k]:
                caps[k] = restriction.upper_ft
                cap_legs[k] = i

        departure_elevation = _elevation(plan, 0)
        destination_elevation = _elevation(plan, flown[-1]) if flown else departure_elevation

        if token is not None:
            token.raise_if_cancelled()

        forward, top_of_climb, level_off_leg = self._climb(
            grid, caps, cap_legs, cruise, departure_elevation, climb_gradient
        )

        if token is not None:
            token.raise_if_cancelled()

        backward = self._descent(grid, caps, cruise, destination_elevation, descent_gradient)
        altitudes = np.minimum(forward, backward)

        cruise_reached = _first_at(grid, altitudes, cruise, climb_gradient)
        top_of_descent = _last_at(grid, altitudes, cruise, descent_gradient)
        peak = float(grid[int(np.argmax(altitudes))]) if len(grid) else 0.0
        if cruise_reached is None and level_off_leg is None:
            # Descent starts before cruise altitude is reached
            top_of_climb = None
        if top_of_climb is None:
            top_of_climb = cruise_reached if cruise_reached is not None else peak
        if top_of_descent is None:
            top_of_descent = peak
        top_of_descent = max(top_of_descent, top_of_climb)

        leg_altitudes: list[float | None] = [None] * len(plan.legs)
        for i, k in leg_points.items():
            leg_altitudes[i] = float(altitudes[k])

        profile = VerticalProfile(
            distances_nm=grid,
            altitudes_ft=altitudes,
            leg_altitudes_ft=leg_altitudes,
            cruise_altitude_ft=cruise,
            top_of_climb_nm=top_of_climb,
            top_of_descent_nm=top_of_descent,
            cruise_reached_nm=cruise_reached,
            level_off_leg_index=level_off_leg,
            infeasible=self._check_restrictions(plan, leg_altitudes, cruise),
        )
        self._estimate(profile, plan, performance, total)

        logger.debug(
            "Profile for %d legs: TOC %.1f nm, TOD %.1f nm of %.1f nm, %d infeasible",
            len(plan.legs),
            profile.top_of_climb_nm,
            profile.top_of_descent_nm,
            total,
            len(profile.infeasible),
        )
        return profile

    @staticmethod
    def _climb(
        grid: np.ndarray,
        caps: np.ndarray,
        cap_legs: np.ndarray,
        cruise: float,
        elevation: float,
        gradient: float,
    ) -> tuple[np.ndarray, float | None, int | None]:
        """Forward pass; returns altitudes, top of climb and level-off leg.

        An at/below restriction ends the climb only if it comes before the
        climb would reach cruise altitude. Once at cruise the pass never
        climbs again and later restrictions only lower it.
        """
        n = len(grid)
        altitudes = np.full(n, float(cruise))
        if n == 0:
            return altitudes, None, None
        altitudes[0] = elevation

        # Cap, position and leg of the next restricted point at or after each sample
        next_cap = np.empty(n)
        next_position = np.empty(n)
        next_leg = np.empty(n, dtype=int)
        upcoming = (np.inf, np.inf, -1)
        for k in range(n - 1, -1, -1):
            if np.isfinite(caps[k]):
                upcoming = (caps[k], grid[k], int(cap_legs[k]))
            next_cap[k], next_position[k], next_leg[k] = upcoming

        top_of_climb = None
        level_off_leg = None
        cruising = False
        for k in range(1, n):
            previous = altitudes[k - 1]
            if cruising:
                altitudes[k] = min(previous, caps[k])
                continue

            target = cruise
            cruise_at = grid[k - 1] + max(cruise - previous, 0.0) / gradient
            if next_cap[k] < cruise and next_position[k] <= cruise_at:
                target = next_cap[k]

            climbed = previous + gradient * (grid[k] - grid[k - 1])
            altitudes[k] = min(climbed, target, caps[k])
            if climbed < target - _EPSILON_FT:
                continue

            if target >= cruise - _EPSILON_FT:
                cruising = True
                if top_of_climb is None:
                    top_of_climb = min(float(grid[k]), float(cruise_at))
            elif top_of_climb is None:
                top_of_climb = float(next_position[k])
                level_off_leg = int(next_leg[k])

        return altitudes, top_of_climb, level_off_leg

    @staticmethod
    def _descent(
        grid: np.ndarray, caps: np.ndarray, cruise: float, elevation: float, gradient: float
    ) -> np.ndarray:
        """Backward pass from the destination.

        Each sample is limited by every cap ahead of it plus the altitude the
        descent gradient allows to lose until there.
        """
        if len(grid) == 0:
            return np.empty(0)
        limits = np.minimum(caps, cruise)
        limits[-1] = min(limits[-1], elevation)
        reach = limits + gradient * grid
        return np.minimum.accumulate(reach[::-1])[::-1] - gradient * grid

    def _check_restrictions(
        self, plan: FlightPlan, leg_altitudes: list[float | None], cruise: float
    ) -> list[RestrictionInfeasible]:
        tolerance = self.settings.altitude_tolerance_ft
        infeasible = []

        for i, leg in enumerate(plan.legs):
            restriction = leg.altitude_restriction
            altitude = leg_altitudes[i]
            if restriction is None or altitude is None:
                continue
            if restriction.is_satisfied_by(altitude, tolerance):
                continue

            lower = restriction.lower_ft
            if lower is not None and lower > cruise + tolerance:
                reason = f"above cruise altitude {cruise:.0f} ft"
            elif lower is not None and altitude < lower - tolerance:
                reason = f"profile reaches only {altitude:.0f} ft"
            else:
                reason = f"profile cannot descend below {altitude:.0f} ft"

            record = RestrictionInfeasible(
                leg_index=i,
                ident=leg.ident,
                restriction=str(restriction),
                profile_altitude_ft=altitude,
                reason=reason,
            )
            logger.warning("%s", record)
            infeasible.append(record)

        return infeasible

    @staticmethod
    def _estimate(
        profile: VerticalProfile,
        plan: FlightPlan,
        performance: AircraftPerformanceProfile,
        total: float,
    ) -> None:
        climb_nm = profile.top_of_climb_nm
        descent_nm = max(total - profile.top_of_descent_nm, 0.0)
        cruise_nm = max(total - climb_nm - descent_nm, 0.0)
        cruise_speed = performance.cruise_speed_kts or plan.cruise_speed_kts

        profile.climb = _phase(climb_nm, performance.climb_speed_kts, performance.climb_fuel_flow_gph)
        profile.cruise = _phase(cruise_nm, cruise_speed, performance.cruise_fuel_flow_gph)
        profile.descent = _phase(
            descent_nm, performance.descent_speed_kts, performance.descent_fuel_flow_gph
        )


def _elevation(plan: FlightPlan, index: int) -> float:
    if not plan.legs:
        return 0.0
    fix = plan.legs[index].fix
    if fix is None or fix.elevation_ft is None:
        return 0.0
    return float(fix.elevation_ft)


def _first_at(grid: np.ndarray, altitudes: np.ndarray, level: float, gradient: float) -> float | None:
    """First position at the level, interpolated along the climb gradient."""
    reached = np.flatnonzero(altitudes >= level - _EPSILON_FT)
    if len(reached) == 0:
        return None
    k = int(reached[0])
    if k == 0:
        return float(grid[0])
    return min(float(grid[k - 1]) + (level - float(altitudes[k - 1])) / gradient, float(grid[k]))


def _last_at(grid: np.ndarray, altitudes: np.ndarray, level: float, gradient: float) -> float | None:
    """Last position at the level, interpolated along the descent gradient."""
    reached = np.flatnonzero(altitudes >= level - _EPSILON_FT)
    if len(reached) == 0:
        return None
    k = int(reached[-1])
    if k == len(grid) - 1:
        return float(grid[k])
    return max(float(grid[k + 1]) - (level - float(altitudes[k + 1])) / gradient, float(grid[k]))


def _phase(distance_nm: float, speed_kts: float | None, fuel_flow_gph: float) -> PhaseEstimate:
    if not speed_kts or distance_nm <= 0:
        return PhaseEstimate(distance_nm=max(distance_nm, 0.0))
    hours = distance_nm / speed_kts
    return PhaseEstimate(distance_nm, hours * 60.0, hours * fuel_flow_gph)
