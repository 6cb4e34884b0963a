"""Flight plan model.

A FlightPlan is an ordered list of legs from the departure airport to the
destination airport, together with cruise parameters, the procedures it
carries and the active leg used for in-flight tracking. Plans are changed
through the RouteAssembler, which validates them after every transaction.

Typical usage:
    from flightroute.navigation import FlightPlan

    plan = FlightPlan(legs=[dep_leg, merit_leg, dest_leg], cruise_altitude_ft=35000)
    errors = plan.validation_errors()
    plan.total_distance_nm()
"""

from dataclasses import dataclass, field, replace

from flightroute.core.logging_system import get_logger
from flightroute.navigation.errors import CategoryOrderViolation, InvariantViolation
from flightroute.navigation.fixes import Fix
from flightroute.navigation.geo import Coordinate, distance_nm
from flightroute.navigation.legs import (
    APPROACH_CATEGORIES,
    SID_CATEGORIES,
    STAR_CATEGORIES,
    Leg,
    LegCategory,
    LegType,
    check_category_order,
)
from flightroute.navigation.procedures import Procedure

logger = get_logger(__name__)

MAX_CRUISE_ALTITUDE_FT = 60000.0

_PROCEDURE_GROUPS = (
    ("SID", SID_CATEGORIES),
    ("STAR", STAR_CATEGORIES),
    ("approach", APPROACH_CATEGORIES),
)


@dataclass(frozen=True)
class FlightPlanSnapshot:
    """Immutable copy of the complete flight plan state.

    Used by the transaction log to restore a plan exactly.
    """

    legs: tuple[Leg, ...]
    cruise_altitude_ft: float
    cruise_speed_kts: float
    generic: bool
    alternates: tuple[Fix, ...]
    sid: Procedure | None
    star: Procedure | None
    approach: Procedure | None
    active_leg_index: int


@dataclass
class FlightPlan:
    """Ordered leg sequence from departure to destination.

    Attributes:
        legs: Legs in flying order; the first references the departure and
            the last the destination airport
        cruise_altitude_ft: Planned cruise altitude in feet MSL
        cruise_speed_kts: Planned cruise true airspeed in knots
        generic: True for plans that may start or end at any fix
        alternates: Alternate airports
        sid: Departure procedure the SID legs were built from
        star: Arrival procedure the STAR legs were built from
        approach: Approach procedure the approach legs were built from
        active_leg_index: Index of the leg currently flown

    Examples:
        >>> plan = FlightPlan(legs=[kord_leg, kden_leg], cruise_altitude_ft=35000)
        >>> plan.departure.ident
        'KORD'
    """

    legs: list[Leg] = field(default_factory=list)
    cruise_altitude_ft: float = 10000.0
    cruise_speed_kts: float = 250.0
    generic: bool = False
    alternates: list[Fix] = field(default_factory=list)
    sid: Procedure | None = None
    star: Procedure | None = None
    approach: Procedure | None = None
    active_leg_index: int = 0

    def __len__(self) -> int:
        return len(self.legs)

    @property
    def departure(self) -> Fix | None:
        return self.legs[0].fix if self.legs else None

    @property
    def destination(self) -> Fix | None:
        return self.legs[-1].fix if len(self.legs) > 1 else None

    def idents(self) -> list[str]:
        """Display idents of all legs in order."""
        return [leg.ident for leg in self.legs]

    def legs_in(self, categories: frozenset[LegCategory]) -> list[Leg]:
        return [leg for leg in self.legs if leg.category in categories]

    @property
    def has_procedures(self) -> bool:
        return any(leg.is_procedure for leg in self.legs)

    def validation_errors(self) -> list[str]:
        """Check the flight plan invariants.

        Returns:
            List of violation messages (empty if valid)

        Examples:
            >>> errors = plan.validation_errors()
            >>> if not errors:
            ...     print("Flight plan is valid")
        """
        errors = []

        if self.cruise_altitude_ft < 0:
            errors.append("Cruise altitude cannot be negative")
        if self.cruise_altitude_ft > MAX_CRUISE_ALTITUDE_FT:
            errors.append("Cruise altitude exceeds maximum (60,000 ft)")

        if not self.legs:
            return errors

        if not self.generic:
            first, last = self.legs[0].fix, self.legs[-1].fix
            if first is None or not first.is_airport:
                errors.append("First leg must reference an airport")
            if len(self.legs) > 1 and (last is None or not last.is_airport):
                errors.append("Last leg must reference an airport")

        for i in range(len(self.legs) - 1):
            current, following = self.legs[i], self.legs[i + 1]
            if following.leg_type.is_hold or following.leg_type is LegType.PROCEDURE_TURN:
                continue
            if current.fix is not None and current.fix.same_point(following.fix):
                errors.append(f"Duplicate consecutive fix: {current.fix.ident}")

        for i, leg in enumerate(self.legs):
            if leg.category is LegCategory.DEPARTURE and i != 0:
                errors.append(f"Departure leg at position {i}")
            if leg.category is LegCategory.DESTINATION and i != len(self.legs) - 1:
                errors.append(f"Destination leg at position {i}")

        try:
            check_category_order([leg.category for leg in self.legs])
        except CategoryOrderViolation as e:
            errors.append(f"Procedure order violated: {e}")

        for label, categories in _PROCEDURE_GROUPS:
            names = {leg.procedure for leg in self.legs if leg.category in categories}
            names.discard(None)
            if len(names) > 1:
                errors.append(f"More than one {label} in flight plan: {', '.join(sorted(names))}")

        return errors

    def validate(self) -> None:
        """Raise InvariantViolation if any invariant is broken."""
        errors = self.validation_errors()
        if errors:
            raise InvariantViolation(errors)

    def leg_distances(self) -> list[float]:
        """Distance flown on each leg in nautical miles.

        The first leg has distance 0. Missed approach legs are not flown on
        a normal arrival, count as 0 and do not move the reference position,
        so the destination is measured from the last leg before them.
        """
        distances = []
        previous: Coordinate | None = None

        for leg in self.legs:
            if leg.category is LegCategory.MISSED_APPROACH:
                distances.append(0.0)
                continue

            distance = 0.0
            if leg.geometry:
                if previous is not None:
                    distance += distance_nm(previous, leg.geometry[0])
                distance += leg.distance_nm or 0.0
            elif previous is not None and leg.fix is not None:
                distance = distance_nm(previous, leg.fix.coordinate)

            distances.append(distance)
            if leg.position is not None:
                previous = leg.position

        return distances

    def cumulative_distances(self) -> list[float]:
        """Distance from departure to the end of each leg."""
        total = 0.0
        result = []
        for distance in self.leg_distances():
            total += distance
            result.append(total)
        return result

    def total_distance_nm(self) -> float:
        """Calculate total route distance.

        Returns:
            Total distance in nautical miles
        """
        return sum(self.leg_distances())

    def get_current_leg(self) -> Leg | None:
        """Get active leg.

        Returns:
            Active leg or None if complete
        """
        if 0 <= self.active_leg_index < len(self.legs):
            return self.legs[self.active_leg_index]
        return None

    def advance_leg(self) -> bool:
        """Advance to next leg.

        Returns:
            True if advanced, False if at end of flight plan
        """
        if self.active_leg_index < len(self.legs) - 1:
            self.active_leg_index += 1
            return True
        return False

    def is_complete(self) -> bool:
        return self.active_leg_index >= len(self.legs) - 1 if self.legs else True

    def update_active_leg(self, position: Coordinate, capture_radius_nm: float = 1.0) -> int:
        """Sequence the active leg from an aircraft position.

        The active leg is advanced while the position is within the capture
        radius of its termination.

        Args:
            position: Current aircraft position.
            capture_radius_nm: Distance at which a leg counts as passed.

        Returns:
            Index of the active leg.
        """
        while True:
            leg = self.get_current_leg()
            if leg is None or leg.position is None:
                break
            if distance_nm(position, leg.position) > capture_radius_nm:
                break
            if not self.advance_leg():
                break
            logger.debug(
                "Sequenced to leg %d (%s)",
                self.active_leg_index,
                self.legs[self.active_leg_index].ident,
            )
        return self.active_leg_index

    def snapshot(self) -> FlightPlanSnapshot:
        return FlightPlanSnapshot(
            legs=tuple(self.legs),
            cruise_altitude_ft=self.cruise_altitude_ft,
            cruise_speed_kts=self.cruise_speed_kts,
            generic=self.generic,
            alternates=tuple(self.alternates),
            sid=self.sid,
            star=self.star,
            approach=self.approach,
            active_leg_index=self.active_leg_index,
        )

    def restore(self, snapshot: FlightPlanSnapshot) -> None:
        """Reset the plan to a snapshot taken earlier."""
        self.legs = list(snapshot.legs)
        self.cruise_altitude_ft = snapshot.cruise_altitude_ft
        self.cruise_speed_kts = snapshot.cruise_speed_kts
        self.generic = snapshot.generic
        self.alternates = list(snapshot.alternates)
        self.sid = snapshot.sid
        self.star = snapshot.star
        self.approach = snapshot.approach
        self.active_leg_index = snapshot.active_leg_index

    @classmethod
    def from_snapshot(cls, snapshot: FlightPlanSnapshot) -> "FlightPlan":
        plan = cls()
        plan.restore(snapshot)
        return plan

    def copy(self) -> "FlightPlan":
        """Independent copy sharing only immutable legs and fixes."""
        return replace(self, legs=list(self.legs), alternates=list(self.alternates))
