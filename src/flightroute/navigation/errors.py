"""Error taxonomy of the route engine.

Per-token and per-leg errors (resolution, procedure, airway) are recovered
close to where they happen: the offending token or leg is dropped and a
warning is recorded, so one bad segment never aborts the whole plan.
InvariantViolation aborts a single assembler transaction. ConfigurationError
is fatal to one profile computation, while RestrictionInfeasible is never
raised and only reported next to a usable profile.
"""

from dataclasses import dataclass


class RouteError(Exception):
    """Base class for all route engine errors."""


class ParseError(RouteError):
    """Raised when a route string lacks its departure or destination."""


class ResolutionError(RouteError):
    """Raised when an ident cannot be resolved to exactly one fix."""

    def __init__(self, message: str, ident: str = "") -> None:
        super().__init__(message)
        self.ident = ident


class FixNotFound(ResolutionError):
    """No database entry matches the ident."""


class AmbiguousFix(ResolutionError):
    """Several candidates match and none can be preferred."""


class ProcedureError(RouteError):
    """Base class for procedure expansion errors."""


class ProcedureNotFound(ProcedureError):
    """The airport has no procedure with the requested name."""


class TransitionNotFound(ProcedureError):
    """The procedure has no transition with the requested name."""


class ProcedureRunwayMismatch(ProcedureError):
    """No leg set exists for the requested runway.

    Attributes:
        runways: Runways the procedure does provide, for runway selection.
    """

    def __init__(self, message: str, runways: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.runways = runways


class MissingFixInProcedure(ProcedureError):
    """A procedure leg references a fix that is not in the database.

    Used as a warning record by the leg builder; the remaining legs are built.
    """

    def __init__(self, message: str, ident: str = "") -> None:
        super().__init__(message)
        self.ident = ident


class CategoryOrderViolation(ProcedureError):
    """Leg categories appear out of their fixed order."""


class AirwayError(RouteError):
    """Base class for airway resolution errors."""


class AirwayNotFound(AirwayError):
    """No airway with the requested name exists."""


class FixNotOnAirway(AirwayError):
    """The entry or exit fix is not part of the airway."""


class AirwayDirectionViolation(AirwayError):
    """The airway may not be flown in the required direction."""


class AirwayDegenerateRange(AirwayError):
    """Entry and exit fix of the airway segment are the same."""


class InvariantViolation(RouteError):
    """A flight plan transaction would break a structural invariant.

    Attributes:
        violations: Human-readable description of each broken invariant.
    """

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


class ConfigurationError(RouteError):
    """Profile inputs are incomplete, no profile can be computed."""


@dataclass(frozen=True)
class RestrictionInfeasible:
    """An altitude restriction the computed profile cannot satisfy.

    Attributes:
        leg_index: Index of the restricted leg in the flight plan.
        ident: Fix ident of the restricted leg.
        restriction: Text form of the restriction, e.g. "A050+".
        profile_altitude_ft: Altitude of the profile at the leg.
        reason: Why the restriction cannot be met.
    """

    leg_index: int
    ident: str
    restriction: str
    profile_altitude_ft: float
    reason: str

    def __str__(self) -> str:
        return (
            f"Restriction {self.restriction} at {self.ident} (leg {self.leg_index}) "
            f"cannot be met: {self.reason}"
        )
