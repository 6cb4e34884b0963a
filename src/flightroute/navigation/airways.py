"""Airways and the resolution of airway segments into fix sequences.

Typical usage:
    resolver = AirwayResolver(query)
    path = resolver.resolve("J80", entry=jot, exit_fix=dbq)
    [fix.ident for fix in path.fixes]   # fixes after JOT up to and including DBQ
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from flightroute.core.logging_system import get_logger
from flightroute.navigation.errors import (
    AirwayDegenerateRange,
    AirwayDirectionViolation,
    AirwayNotFound,
    FixNotOnAirway,
)
from flightroute.navigation.fixes import Fix

if TYPE_CHECKING:
    from flightroute.navigation.navdata import NavDatabaseQuery

logger = get_logger(__name__)


class AirwayDirection(Enum):
    """Direction restriction of an airway relative to its stored fix order."""

    BIDIRECTIONAL = "bidirectional"
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class AirwaySegment:
    """Altitude limits between two consecutive airway fixes.

    Attributes:
        min_altitude_ft: Minimum enroute altitude, None if not published
        max_altitude_ft: Maximum authorized altitude, None if unlimited
    """

    min_altitude_ft: float | None = None
    max_altitude_ft: float | None = None


@dataclass
class Airway:
    """Named ordered fix sequence.

    Attributes:
        name: Airway name (e.g., "J80", "UL975")
        fixes: Fixes in stored order
        direction: Direction restriction relative to stored order
        segments: Limits of each segment; segments[i] joins fixes[i] and fixes[i + 1]
    """

    name: str
    fixes: list[Fix]
    direction: AirwayDirection = AirwayDirection.BIDIRECTIONAL
    segments: list[AirwaySegment] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.segments:
            self.segments = [AirwaySegment() for _ in range(max(0, len(self.fixes) - 1))]
        if len(self.segments) != max(0, len(self.fixes) - 1):
            raise ValueError(
                f"Airway {self.name} has {len(self.fixes)} fixes but {len(self.segments)} segments"
            )

    def index_of(self, fix: Fix) -> int | None:
        """Position of a fix in the airway, matching the physical point."""
        for i, candidate in enumerate(self.fixes):
            if candidate.same_point(fix):
                return i
        return None

    def fixes_named(self, ident: str) -> list[Fix]:
        """Airway fixes carrying the given ident."""
        return [fix for fix in self.fixes if fix.ident == ident]

    def allows(self, forward: bool) -> bool:
        """Check whether the airway may be flown in the given direction."""
        if self.direction is AirwayDirection.FORWARD:
            return forward
        if self.direction is AirwayDirection.BACKWARD:
            return not forward
        return True


@dataclass
class AirwayPath:
    """Result of resolving one airway segment.

    Attributes:
        airway: Airway name
        fixes: Fixes after the entry up to and including the exit fix
        reversed: True if flown against the stored order
        min_altitude_ft: Highest segment floor along the path
        max_altitude_ft: Lowest segment ceiling along the path
    """

    airway: str
    fixes: list[Fix]
    reversed: bool = False
    min_altitude_ft: float | None = None
    max_altitude_ft: float | None = None


class AirwayResolver:
    """Expands an airway name plus entry and exit fix into a fix sequence.

    Attributes:
        query: Navigation database query used to look up airways
    """

    def __init__(self, query: "NavDatabaseQuery") -> None:
        self.query = query

    def resolve(self, airway_name: str, entry: Fix, exit_fix: Fix) -> AirwayPath:
        """Slice the airway between entry and exit.

        Args:
            airway_name: Name of the airway.
            entry: Fix where the airway is joined.
            exit_fix: Fix where the airway is left.

        Returns:
            AirwayPath without the entry fix and ending with the exit fix.

        Raises:
            AirwayNotFound: If the airway does not exist.
            AirwayDegenerateRange: If entry and exit are the same fix.
            FixNotOnAirway: If entry or exit is not on the airway.
            AirwayDirectionViolation: If the airway forbids the direction.
        """
        airway = self.query.get_airway(airway_name)
        if airway is None:
            raise AirwayNotFound(f"Airway {airway_name} not found")

        if entry.same_point(exit_fix):
            raise AirwayDegenerateRange(
                f"Airway {airway_name} entered and left at the same fix {entry.ident}"
            )

        entry_index = airway.index_of(entry)
        if entry_index is None:
            raise FixNotOnAirway(f"{entry.ident} is not on airway {airway_name}")
        exit_index = airway.index_of(exit_fix)
        if exit_index is None:
            raise FixNotOnAirway(f"{exit_fix.ident} is not on airway {airway_name}")

        forward = exit_index > entry_index
        if not airway.allows(forward):
            raise AirwayDirectionViolation(
                f"Airway {airway_name} is {airway.direction.value} only, "
                f"cannot fly {entry.ident} to {exit_fix.ident}"
            )

        if forward:
            fixes = airway.fixes[entry_index + 1 : exit_index + 1]
            segments = airway.segments[entry_index:exit_index]
        else:
            fixes = list(reversed(airway.fixes[exit_index:entry_index]))
            segments = airway.segments[exit_index:entry_index]

        floors = [s.min_altitude_ft for s in segments if s.min_altitude_ft is not None]
        ceilings = [s.max_altitude_ft for s in segments if s.max_altitude_ft is not None]

        logger.debug(
            "Airway %s from %s to %s: %d fixes%s",
            airway_name,
            entry.ident,
            exit_fix.ident,
            len(fixes),
            " (reversed)" if not forward else "",
        )

        return AirwayPath(
            airway=airway_name,
            fixes=list(fixes),
            reversed=not forward,
            min_altitude_ft=max(floors) if floors else None,
            max_altitude_ft=min(ceilings) if ceilings else None,
        )
