"""Procedure records as stored in the navigation database and as built.

A ProcedureRecord holds the raw leg rows of one SID, STAR or approach at one
airport, split into the common route, runway-specific legs and named
transitions. The ProcedureLegBuilder turns the rows selected for one runway
and transition into a Procedure with typed, geometry-carrying legs.
"""

from dataclasses import dataclass, field
from enum import Enum

from flightroute.navigation.legs import Leg, LegCategory


class ProcedureKind(Enum):
    """Procedure type.

    Attributes:
        SID: Standard Instrument Departure
        STAR: Standard Terminal Arrival Route
        APPROACH: Instrument approach including its missed approach
    """

    SID = "SID"
    STAR = "STAR"
    APPROACH = "APPROACH"


class LegSection(Enum):
    """Part of a procedure a raw leg belongs to."""

    RUNWAY = "runway"
    COMMON = "common"
    TRANSITION = "transition"
    MISSED = "missed"


_SECTION_CATEGORIES: dict[tuple[ProcedureKind, LegSection], LegCategory] = {
    (ProcedureKind.SID, LegSection.RUNWAY): LegCategory.SID,
    (ProcedureKind.SID, LegSection.COMMON): LegCategory.SID,
    (ProcedureKind.SID, LegSection.TRANSITION): LegCategory.SID_TRANSITION,
    (ProcedureKind.STAR, LegSection.TRANSITION): LegCategory.STAR_TRANSITION,
    (ProcedureKind.STAR, LegSection.COMMON): LegCategory.STAR,
    (ProcedureKind.STAR, LegSection.RUNWAY): LegCategory.STAR,
    (ProcedureKind.APPROACH, LegSection.TRANSITION): LegCategory.APPROACH_TRANSITION,
    (ProcedureKind.APPROACH, LegSection.RUNWAY): LegCategory.APPROACH,
    (ProcedureKind.APPROACH, LegSection.COMMON): LegCategory.APPROACH,
    (ProcedureKind.APPROACH, LegSection.MISSED): LegCategory.MISSED_APPROACH,
}


def category_for(kind: ProcedureKind, section: LegSection) -> LegCategory:
    """Leg category of a raw leg in the given procedure section.

    Raises:
        ValueError: For sections a procedure kind cannot have (missed SID legs).
    """
    try:
        return _SECTION_CATEGORIES[(kind, section)]
    except KeyError:
        raise ValueError(f"{kind.value} procedures have no {section.value} legs") from None


@dataclass
class RawLeg:
    """Procedure leg row as stored in the navigation database.

    Attributes:
        leg_type: ARINC path terminator code (e.g., "TF", "RF")
        fix_ident: Fix ident, empty for legs without fix
        fix_region: Region of the fix
        recommended_navaid_ident: Reference navaid for radials, DME, AF arcs
        recommended_navaid_region: Region of the reference navaid
        center_fix_ident: Arc center for RF legs
        center_fix_region: Region of the arc center
        course_deg: Course or heading
        distance_nm: Leg distance (or DME distance for CD/FD/VD legs)
        time_min: Leg time for holds
        rho_nm: Distance from the recommended navaid (AF arc radius)
        theta_deg: Radial from the recommended navaid (CR/VR termination)
        arc_radius_nm: Stored RF radius; computed from the center if missing
        turn_direction: "L", "R", "B" or empty
        altitude_descriptor: "@", "+", "-", "B" or empty
        altitude1_ft: First altitude column
        altitude2_ft: Second altitude column
        speed_descriptor: "@", "+", "-" or empty
        speed_limit_kts: Speed limit
        fly_over: True if the fix must be overflown
        section: Part of the procedure the leg belongs to
    """

    leg_type: str
    fix_ident: str = ""
    fix_region: str | None = None
    recommended_navaid_ident: str = ""
    recommended_navaid_region: str | None = None
    center_fix_ident: str = ""
    center_fix_region: str | None = None
    course_deg: float | None = None
    distance_nm: float | None = None
    time_min: float | None = None
    rho_nm: float | None = None
    theta_deg: float | None = None
    arc_radius_nm: float | None = None
    turn_direction: str = ""
    altitude_descriptor: str = ""
    altitude1_ft: float | None = None
    altitude2_ft: float | None = None
    speed_descriptor: str = ""
    speed_limit_kts: float | None = None
    fly_over: bool = False
    section: LegSection = LegSection.COMMON


@dataclass
class ProcedureRecord:
    """All stored legs of one procedure at one airport.

    Attributes:
        airport_ident: Owning airport
        name: Procedure name (e.g., "SKORR5", "I04R")
        kind: SID, STAR or approach
        common_legs: Legs shared by all runways and transitions
        runway_legs: Runway-specific legs keyed by runway ("04L")
        transition_legs: Transition legs keyed by transition name
        runway: Runway of an approach (approaches have no runway legs)
        gps_overlay: True for GPS overlay approaches
    """

    airport_ident: str
    name: str
    kind: ProcedureKind
    common_legs: list[RawLeg] = field(default_factory=list)
    runway_legs: dict[str, list[RawLeg]] = field(default_factory=dict)
    transition_legs: dict[str, list[RawLeg]] = field(default_factory=dict)
    runway: str | None = None
    gps_overlay: bool = False

    @property
    def runways(self) -> tuple[str, ...]:
        """Runways the procedure applies to; empty means all runways."""
        if self.runway_legs:
            return tuple(sorted(self.runway_legs))
        if self.runway:
            return (self.runway,)
        return ()

    @property
    def transitions(self) -> tuple[str, ...]:
        return tuple(sorted(self.transition_legs))

    def ordered_legs(self, runway: str | None, transition: str | None) -> list[RawLeg]:
        """Raw legs in flying order for one runway and transition.

        Unknown runway or transition names contribute no legs; the leg
        builder validates names before calling this.
        """
        runway_part = list(self.runway_legs.get(runway, [])) if runway else []
        transition_part = list(self.transition_legs.get(transition, [])) if transition else []

        if self.kind is ProcedureKind.SID:
            parts = (runway_part, self.common_legs, transition_part)
        elif self.kind is ProcedureKind.STAR:
            parts = (transition_part, self.common_legs, runway_part)
        else:
            parts = (transition_part, runway_part, self.common_legs)

        return [leg for part in parts for leg in part]


@dataclass
class Procedure:
    """Procedure expanded for one runway and transition.

    Attributes:
        airport_ident: Owning airport
        name: Procedure name
        kind: SID, STAR or approach
        runway: Runway the legs were built for, None if runway independent
        transition: Transition the legs were built for
        runways: Runways the procedure is available for
        transitions: Transitions the procedure offers
        gps_overlay: True for GPS overlay approaches
        legs: Built legs in flying order
        warnings: Problems found while building (e.g., missing fixes)
    """

    airport_ident: str
    name: str
    kind: ProcedureKind
    runway: str | None = None
    transition: str | None = None
    runways: tuple[str, ...] = ()
    transitions: tuple[str, ...] = ()
    gps_overlay: bool = False
    legs: list[Leg] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        """True if some legs could not be built."""
        return bool(self.warnings)

    @property
    def display_name(self) -> str:
        if self.transition:
            return f"{self.name}.{self.transition}"
        return self.name
