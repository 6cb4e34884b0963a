"""Navigable points referenced by flight plan legs.

A Fix is any point a leg can reference: airports, radio navaids, named
waypoints, runway thresholds and positions entered by the user. Each kind is
its own frozen dataclass carrying a FixKind tag, so legs can share fix
instances freely.

Typical usage:
    from flightroute.navigation.fixes import Airport, Waypoint
    from flightroute.navigation.geo import Coordinate

    kjfk = Airport("KJFK", "K6", Coordinate(40.6398, -73.7789), elevation_ft=13)
    merit = Waypoint("MERIT", "K6", Coordinate(41.3817, -73.1375))
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from flightroute.navigation.geo import Coordinate


class FixKind(Enum):
    """Fix type classification.

    Attributes:
        AIRPORT: Airport reference point
        VOR: VHF Omnidirectional Range (with or without DME)
        NDB: Non-Directional Beacon
        WAYPOINT: Named intersection or RNAV waypoint
        USER: Position entered by the user
        RUNWAY_END: Runway threshold
    """

    AIRPORT = "AIRPORT"
    VOR = "VOR"
    NDB = "NDB"
    WAYPOINT = "WAYPOINT"
    USER = "USER"
    RUNWAY_END = "RUNWAY_END"


# Preference when candidates cannot be told apart by distance
KIND_PRIORITY: dict[FixKind, int] = {
    FixKind.AIRPORT: 0,
    FixKind.VOR: 1,
    FixKind.NDB: 2,
    FixKind.WAYPOINT: 3,
    FixKind.RUNWAY_END: 4,
    FixKind.USER: 5,
}


@dataclass(frozen=True)
class Fix:
    """Navigable point.

    Attributes:
        ident: Identifier (e.g., "KJFK", "JFK", "MERIT")
        region: ICAO region code (e.g., "K6", "EI"), empty if unknown
        coordinate: Position
        elevation_ft: Elevation in feet MSL if known
        name: Human-readable name
    """

    kind: ClassVar[FixKind] = FixKind.WAYPOINT

    ident: str
    region: str
    coordinate: Coordinate
    elevation_ft: float | None = None
    name: str = ""

    @property
    def key(self) -> tuple:
        """Identity of the physical point, shared by all copies of the fix."""
        return (self.kind, self.ident, self.region)

    def same_point(self, other: "Fix | None") -> bool:
        """Check whether two fixes denote the identical physical point."""
        return other is not None and self.key == other.key

    @property
    def is_airport(self) -> bool:
        return self.kind is FixKind.AIRPORT

    def __str__(self) -> str:
        if self.region:
            return f"{self.ident}/{self.region} ({self.kind.value})"
        return f"{self.ident} ({self.kind.value})"


@dataclass(frozen=True)
class Airport(Fix):
    """Airport reference point."""

    kind: ClassVar[FixKind] = FixKind.AIRPORT


@dataclass(frozen=True)
class Vor(Fix):
    """VOR station.

    Attributes:
        frequency_mhz: Frequency in MHz
        has_dme: True for VOR/DME and VORTAC stations
    """

    kind: ClassVar[FixKind] = FixKind.VOR

    frequency_mhz: float | None = None
    has_dme: bool = False


@dataclass(frozen=True)
class Ndb(Fix):
    """NDB station.

    Attributes:
        frequency_khz: Frequency in kHz
    """

    kind: ClassVar[FixKind] = FixKind.NDB

    frequency_khz: float | None = None


@dataclass(frozen=True)
class Waypoint(Fix):
    """Named waypoint or intersection."""

    kind: ClassVar[FixKind] = FixKind.WAYPOINT


@dataclass(frozen=True)
class UserPosition(Fix):
    """Position entered by the user, identified by its coordinate."""

    kind: ClassVar[FixKind] = FixKind.USER

    @property
    def key(self) -> tuple:
        return (
            self.kind,
            self.ident,
            round(self.coordinate.latitude, 6),
            round(self.coordinate.longitude, 6),
        )


@dataclass(frozen=True)
class RunwayEnd(Fix):
    """Runway threshold.

    Attributes:
        airport_ident: Ident of the owning airport
        heading_deg: True heading of the runway
    """

    kind: ClassVar[FixKind] = FixKind.RUNWAY_END

    airport_ident: str = ""
    heading_deg: float | None = None

    @property
    def key(self) -> tuple:
        return (self.kind, self.airport_ident, self.ident)


FIX_CLASSES: dict[FixKind, type[Fix]] = {
    FixKind.AIRPORT: Airport,
    FixKind.VOR: Vor,
    FixKind.NDB: Ndb,
    FixKind.WAYPOINT: Waypoint,
    FixKind.USER: UserPosition,
    FixKind.RUNWAY_END: RunwayEnd,
}


def make_fix(kind: FixKind, **kwargs) -> Fix:
    """Create a fix of the given kind.

    Args:
        kind: Fix kind selecting the class.
        **kwargs: Dataclass fields of that class.

    Returns:
        New fix instance.
    """
    return FIX_CLASSES[kind](**kwargs)
