"""Flight plan legs, path terminators and restrictions.

This module defines the Leg, the ARINC 424 leg path terminators it can carry,
altitude/speed restrictions and the category tag that places a leg in the
fixed procedure order of a flight plan.

Typical usage:
    from flightroute.navigation.legs import AltitudeRestriction, Leg, LegType

    leg = Leg(
        leg_type=LegType.TRACK_TO_FIX,
        fix=merit,
        altitude_restriction=AltitudeRestriction.at_or_above(5000),
    )
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from flightroute.navigation.errors import CategoryOrderViolation
from flightroute.navigation.fixes import Fix
from flightroute.navigation.geo import Coordinate


class LegType(Enum):
    """Leg path terminator.

    Values are the ARINC 424 two-letter codes; DIRECT is used for enroute
    legs created from route strings and user edits.
    """

    INITIAL_FIX = "IF"
    TRACK_TO_FIX = "TF"
    COURSE_TO_FIX = "CF"
    DIRECT_TO_FIX = "DF"
    FIX_TO_ALTITUDE = "FA"
    FIX_TO_DISTANCE = "FC"
    FIX_TO_DME_DISTANCE = "FD"
    FROM_FIX_TO_MANUAL = "FM"
    COURSE_TO_ALTITUDE = "CA"
    COURSE_TO_DME_DISTANCE = "CD"
    COURSE_TO_INTERCEPT = "CI"
    COURSE_TO_RADIAL_TERMINATION = "CR"
    ARC_TO_FIX = "AF"
    CONSTANT_RADIUS_ARC = "RF"
    HOLD_TO_ALTITUDE = "HA"
    HOLD_TO_FIX = "HF"
    HOLD_TO_MANUAL = "HM"
    PROCEDURE_TURN = "PI"
    HEADING_TO_ALTITUDE = "VA"
    HEADING_TO_DME_DISTANCE = "VD"
    HEADING_TO_INTERCEPT = "VI"
    HEADING_TO_MANUAL = "VM"
    HEADING_TO_RADIAL_TERMINATION = "VR"
    DIRECT = "DCT"

    @classmethod
    def from_code(cls, code: str) -> "LegType":
        """Look up a leg type by ARINC code.

        Raises:
            ValueError: If the code is unknown.
        """
        return cls(code.strip().upper())

    @property
    def requires_fix(self) -> bool:
        """True if the leg cannot be built without its fix."""
        return self in _FIX_REQUIRED

    @property
    def is_hold(self) -> bool:
        return self in (LegType.HOLD_TO_ALTITUDE, LegType.HOLD_TO_FIX, LegType.HOLD_TO_MANUAL)

    @property
    def is_arc(self) -> bool:
        return self in (LegType.ARC_TO_FIX, LegType.CONSTANT_RADIUS_ARC)

    @property
    def is_manual(self) -> bool:
        """True if the leg ends on pilot action or vectors."""
        return self in (
            LegType.FROM_FIX_TO_MANUAL,
            LegType.HEADING_TO_MANUAL,
            LegType.HOLD_TO_MANUAL,
        )

    @property
    def ends_at_altitude(self) -> bool:
        return self in (
            LegType.COURSE_TO_ALTITUDE,
            LegType.FIX_TO_ALTITUDE,
            LegType.HEADING_TO_ALTITUDE,
            LegType.HOLD_TO_ALTITUDE,
        )

    @property
    def ends_at_fix(self) -> bool:
        """True if the leg terminates over its fix."""
        return self in _ENDS_AT_FIX


_FIX_REQUIRED = frozenset(
    {
        LegType.INITIAL_FIX,
        LegType.TRACK_TO_FIX,
        LegType.COURSE_TO_FIX,
        LegType.DIRECT_TO_FIX,
        LegType.FIX_TO_ALTITUDE,
        LegType.FIX_TO_DISTANCE,
        LegType.FIX_TO_DME_DISTANCE,
        LegType.FROM_FIX_TO_MANUAL,
        LegType.ARC_TO_FIX,
        LegType.CONSTANT_RADIUS_ARC,
        LegType.HOLD_TO_ALTITUDE,
        LegType.HOLD_TO_FIX,
        LegType.HOLD_TO_MANUAL,
        LegType.PROCEDURE_TURN,
        LegType.DIRECT,
    }
)

_ENDS_AT_FIX = frozenset(
    {
        LegType.INITIAL_FIX,
        LegType.TRACK_TO_FIX,
        LegType.COURSE_TO_FIX,
        LegType.DIRECT_TO_FIX,
        LegType.ARC_TO_FIX,
        LegType.CONSTANT_RADIUS_ARC,
        LegType.HOLD_TO_ALTITUDE,
        LegType.HOLD_TO_FIX,
        LegType.HOLD_TO_MANUAL,
        LegType.PROCEDURE_TURN,
        LegType.DIRECT,
    }
)


class TurnDirection(Enum):
    """Turn direction of a leg, using ARINC codes."""

    LEFT = "L"
    RIGHT = "R"
    EITHER = "B"

    @classmethod
    def from_code(cls, code: str | None) -> "TurnDirection | None":
        if not code:
            return None
        return cls(code.strip().upper())


class AltitudeConstraint(Enum):
    """Altitude constraint type at a leg.

    Attributes:
        AT: Must be at exact altitude
        AT_OR_ABOVE: Must be at or above altitude
        AT_OR_BELOW: Must be at or below altitude
        BETWEEN: Must be between lower and upper altitude
    """

    AT = "at"
    AT_OR_ABOVE = "at_or_above"
    AT_OR_BELOW = "at_or_below"
    BETWEEN = "between"


class SpeedConstraint(Enum):
    """Speed constraint type at a leg."""

    AT = "at"
    AT_OR_ABOVE = "at_or_above"
    AT_OR_BELOW = "at_or_below"


# ARINC altitude descriptor column
_ALTITUDE_DESCRIPTORS = {
    "": AltitudeConstraint.AT,
    "@": AltitudeConstraint.AT,
    "+": AltitudeConstraint.AT_OR_ABOVE,
    "-": AltitudeConstraint.AT_OR_BELOW,
    "B": AltitudeConstraint.BETWEEN,
}

_SPEED_DESCRIPTORS = {
    "": SpeedConstraint.AT_OR_BELOW,
    "@": SpeedConstraint.AT,
    "+": SpeedConstraint.AT_OR_ABOVE,
    "-": SpeedConstraint.AT_OR_BELOW,
}


@dataclass(frozen=True)
class AltitudeRestriction:
    """Altitude restriction of a leg.

    For BETWEEN, altitude_ft is the upper and altitude2_ft the lower limit,
    following the ARINC column order.

    Attributes:
        constraint: Constraint type
        altitude_ft: Restriction altitude in feet MSL
        altitude2_ft: Second altitude for BETWEEN
    """

    constraint: AltitudeConstraint
    altitude_ft: float
    altitude2_ft: float | None = None

    def __post_init__(self) -> None:
        if self.constraint is AltitudeConstraint.BETWEEN and self.altitude2_ft is None:
            raise ValueError("BETWEEN restriction needs two altitudes")

    @classmethod
    def at(cls, altitude_ft: float) -> "AltitudeRestriction":
        return cls(AltitudeConstraint.AT, altitude_ft)

    @classmethod
    def at_or_above(cls, altitude_ft: float) -> "AltitudeRestriction":
        return cls(AltitudeConstraint.AT_OR_ABOVE, altitude_ft)

    @classmethod
    def at_or_below(cls, altitude_ft: float) -> "AltitudeRestriction":
        return cls(AltitudeConstraint.AT_OR_BELOW, altitude_ft)

    @classmethod
    def between(cls, upper_ft: float, lower_ft: float) -> "AltitudeRestriction":
        return cls(AltitudeConstraint.BETWEEN, max(upper_ft, lower_ft), min(upper_ft, lower_ft))

    @classmethod
    def from_arinc(
        cls, descriptor: str | None, altitude1: float | None, altitude2: float | None = None
    ) -> "AltitudeRestriction | None":
        """Build a restriction from ARINC descriptor and altitude columns.

        Args:
            descriptor: "@" or blank (at), "+", "-" or "B".
            altitude1: First altitude column.
            altitude2: Second altitude column, used by "B".

        Returns:
            The restriction or None if no altitude is given.

        Raises:
            ValueError: If the descriptor is unknown.
        """
        if altitude1 is None:
            return None
        constraint = _ALTITUDE_DESCRIPTORS.get((descriptor or "").strip().upper())
        if constraint is None:
            raise ValueError(f"Unknown altitude descriptor: {descriptor!r}")
        if constraint is AltitudeConstraint.BETWEEN:
            if altitude2 is None:
                raise ValueError("Altitude descriptor B needs two altitudes")
            return cls.between(altitude1, altitude2)
        return cls(constraint, altitude1)

    @property
    def lower_ft(self) -> float | None:
        """Lowest permitted altitude, None if unbounded."""
        if self.constraint in (AltitudeConstraint.AT, AltitudeConstraint.AT_OR_ABOVE):
            return self.altitude_ft
        if self.constraint is AltitudeConstraint.BETWEEN:
            return self.altitude2_ft
        return None

    @property
    def upper_ft(self) -> float | None:
        """Highest permitted altitude, None if unbounded."""
        if self.constraint in (
            AltitudeConstraint.AT,
            AltitudeConstraint.AT_OR_BELOW,
            AltitudeConstraint.BETWEEN,
        ):
            return self.altitude_ft
        return None

    def is_satisfied_by(self, altitude_ft: float, tolerance_ft: float = 0.0) -> bool:
        lower, upper = self.lower_ft, self.upper_ft
        if lower is not None and altitude_ft < lower - tolerance_ft:
            return False
        if upper is not None and altitude_ft > upper + tolerance_ft:
            return False
        return True

    def __str__(self) -> str:
        if self.constraint is AltitudeConstraint.AT:
            return f"A{self.altitude_ft:.0f}"
        if self.constraint is AltitudeConstraint.AT_OR_ABOVE:
            return f"A{self.altitude_ft:.0f}+"
        if self.constraint is AltitudeConstraint.AT_OR_BELOW:
            return f"A{self.altitude_ft:.0f}-"
        return f"A{self.altitude2_ft:.0f}-{self.altitude_ft:.0f}"


@dataclass(frozen=True)
class SpeedRestriction:
    """Speed restriction of a leg.

    Attributes:
        constraint: Constraint type
        speed_kts: Indicated airspeed in knots
    """

    constraint: SpeedConstraint
    speed_kts: float

    @classmethod
    def from_arinc(
        cls, descriptor: str | None, speed_kts: float | None
    ) -> "SpeedRestriction | None":
        """Build a speed restriction; a blank descriptor means at or below."""
        if not speed_kts:
            return None
        constraint = _SPEED_DESCRIPTORS.get((descriptor or "").strip().upper())
        if constraint is None:
            raise ValueError(f"Unknown speed descriptor: {descriptor!r}")
        return cls(constraint, speed_kts)

    def is_satisfied_by(self, speed_kts: float) -> bool:
        if self.constraint is SpeedConstraint.AT:
            return abs(speed_kts - self.speed_kts) < 1.0
        if self.constraint is SpeedConstraint.AT_OR_ABOVE:
            return speed_kts >= self.speed_kts
        return speed_kts <= self.speed_kts

    def __str__(self) -> str:
        suffix = {SpeedConstraint.AT: "", SpeedConstraint.AT_OR_ABOVE: "+"}.get(
            self.constraint, "-"
        )
        return f"{self.speed_kts:.0f}kt{suffix}"


class LegCategory(Enum):
    """Position of a leg in the fixed flight plan order.

    The value is the rank; legs must appear with non-decreasing rank.
    """

    DEPARTURE = 0
    SID = 1
    SID_TRANSITION = 2
    ENROUTE = 3
    STAR_TRANSITION = 4
    STAR = 5
    APPROACH_TRANSITION = 6
    APPROACH = 7
    MISSED_APPROACH = 8
    DESTINATION = 9

    @property
    def is_procedure(self) -> bool:
        return self not in (LegCategory.DEPARTURE, LegCategory.ENROUTE, LegCategory.DESTINATION)

    @property
    def is_departure_procedure(self) -> bool:
        return self in (LegCategory.SID, LegCategory.SID_TRANSITION)

    @property
    def is_arrival_procedure(self) -> bool:
        return self.is_procedure and not self.is_departure_procedure


SID_CATEGORIES = frozenset({LegCategory.SID, LegCategory.SID_TRANSITION})
STAR_CATEGORIES = frozenset({LegCategory.STAR, LegCategory.STAR_TRANSITION})
APPROACH_CATEGORIES = frozenset(
    {LegCategory.APPROACH_TRANSITION, LegCategory.APPROACH, LegCategory.MISSED_APPROACH}
)
PROCEDURE_CATEGORIES = SID_CATEGORIES | STAR_CATEGORIES | APPROACH_CATEGORIES
ARRIVAL_CATEGORIES = STAR_CATEGORIES | APPROACH_CATEGORIES


def check_category_order(categories: list[LegCategory]) -> None:
    """Verify that categories follow the fixed procedure order.

    Gaps are legal, going back to an earlier category is not. Nothing is
    reordered.

    Args:
        categories: Categories in leg order.

    Raises:
        CategoryOrderViolation: At the first backward transition.
    """
    for i in range(1, len(categories)):
        previous, current = categories[i - 1], categories[i]
        if current.value < previous.value:
            raise CategoryOrderViolation(
                f"{current.name} at position {i} follows {previous.name}"
            )


@dataclass(frozen=True)
class Leg:
    """Ordered flight plan element.

    Attributes:
        leg_type: Path terminator
        fix: Terminating (or originating, for FA/FC/FD/FM) fix; None for
            legs ending at an altitude, intercept or radial
        category: Position in the procedure order
        recommended_navaid: Reference navaid for radials, DME and arcs
        course_deg: Course or heading in degrees
        distance_nm: Leg length in nautical miles
        turn_direction: Required turn direction
        altitude_restriction: Altitude restriction, None if unrestricted
        speed_restriction: Speed restriction, None if unrestricted
        fly_over: True if the fix must be overflown
        airway: Name of the airway this leg follows
        procedure: Name of the procedure this leg belongs to
        geometry: Computed path points, ending at the leg termination
        hold_time_min: Hold leg time in minutes
    """

    leg_type: LegType
    fix: Fix | None = None
    category: LegCategory = LegCategory.ENROUTE
    recommended_navaid: Fix | None = None
    course_deg: float | None = None
    distance_nm: float | None = None
    turn_direction: TurnDirection | None = None
    altitude_restriction: AltitudeRestriction | None = None
    speed_restriction: SpeedRestriction | None = None
    fly_over: bool = False
    airway: str | None = None
    procedure: str | None = None
    geometry: tuple[Coordinate, ...] = field(default=(), compare=False)
    hold_time_min: float | None = None

    @property
    def ident(self) -> str:
        """Display ident: the fix ident or the termination for fixless legs."""
        if self.fix is not None:
            return self.fix.ident
        if self.leg_type.ends_at_altitude and self.altitude_restriction is not None:
            return f"({self.altitude_restriction.altitude_ft:.0f})"
        if self.leg_type.is_manual:
            return "(MANSEQ)"
        if self.leg_type in (LegType.COURSE_TO_INTERCEPT, LegType.HEADING_TO_INTERCEPT):
            return "(INTC)"
        if self.recommended_navaid is not None:
            return f"({self.recommended_navaid.ident})"
        return f"({self.leg_type.value})"

    @property
    def position(self) -> Coordinate | None:
        """Where the leg terminates."""
        if self.geometry:
            return self.geometry[-1]
        if self.fix is not None:
            return self.fix.coordinate
        return None

    @property
    def is_procedure(self) -> bool:
        return self.category.is_procedure

    def with_category(self, category: LegCategory) -> "Leg":
        return replace(self, category=category)
