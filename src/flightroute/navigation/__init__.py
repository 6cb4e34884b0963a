"""Route resolution and vertical profile engine.

This module turns route strings and named departure/arrival procedures into
validated flight plans and computes their climb/cruise/descent profile.

Typical usage:
    from flightroute.navigation import FlightPlanSession, InMemoryNavDatabase, NavDatabaseQuery

    db = InMemoryNavDatabase()
    db.load_fixes_from_csv("data/fixes.csv")
    db.load_from_yaml("data/procedures.yaml")

    session = FlightPlanSession(NavDatabaseQuery(db), performance)
    warnings = session.load_route_string("KJFK MERIT J60 PSB KORD")
    session.profile.top_of_climb_nm
"""

from flightroute.navigation.airways import (
    Airway,
    AirwayDirection,
    AirwayPath,
    AirwayResolver,
    AirwaySegment,
)
from flightroute.navigation.assembler import AssemblyResult, RouteAssembler
from flightroute.navigation.errors import (
    AirwayDegenerateRange,
    AirwayDirectionViolation,
    AirwayError,
    AirwayNotFound,
    AmbiguousFix,
    CategoryOrderViolation,
    ConfigurationError,
    FixNotFound,
    FixNotOnAirway,
    InvariantViolation,
    MissingFixInProcedure,
    ParseError,
    ProcedureError,
    ProcedureNotFound,
    ProcedureRunwayMismatch,
    ResolutionError,
    RestrictionInfeasible,
    RouteError,
    TransitionNotFound,
)
from flightroute.navigation.events import FlightPlanChangedEvent, ProfileUpdatedEvent
from flightroute.navigation.fixes import (
    Airport,
    Fix,
    FixKind,
    Ndb,
    RunwayEnd,
    UserPosition,
    Vor,
    Waypoint,
)
from flightroute.navigation.flight_plan import FlightPlan, FlightPlanSnapshot
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.legs import (
    AltitudeRestriction,
    Leg,
    LegCategory,
    LegType,
    SpeedRestriction,
    TurnDirection,
)
from flightroute.navigation.navdata import (
    InMemoryNavDatabase,
    NavDatabaseQuery,
    NavigationDatabase,
)
from flightroute.navigation.performance import AircraftPerformanceProfile
from flightroute.navigation.procedure_builder import ProcedureLegBuilder
from flightroute.navigation.procedures import (
    LegSection,
    Procedure,
    ProcedureKind,
    ProcedureRecord,
    RawLeg,
)
from flightroute.navigation.route_string import (
    ParseResult,
    RouteStringParser,
    RouteToken,
    TokenKind,
    build_route_string,
)
from flightroute.navigation.session import FlightPlanSession, RoutePreview
from flightroute.navigation.transactions import Transaction, TransactionLog
from flightroute.navigation.vertical_profile import (
    PhaseEstimate,
    VerticalProfile,
    VerticalProfileSolver,
)

__all__ = [
    "AircraftPerformanceProfile",
    "Airport",
    "Airway",
    "AirwayDegenerateRange",
    "AirwayDirection",
    "AirwayDirectionViolation",
    "AirwayError",
    "AirwayNotFound",
    "AirwayPath",
    "AirwayResolver",
    "AirwaySegment",
    "AltitudeRestriction",
    "AmbiguousFix",
    "AssemblyResult",
    "CategoryOrderViolation",
    "ConfigurationError",
    "Coordinate",
    "Fix",
    "FixKind",
    "FixNotFound",
    "FixNotOnAirway",
    "FlightPlan",
    "FlightPlanChangedEvent",
    "FlightPlanSession",
    "FlightPlanSnapshot",
    "InMemoryNavDatabase",
    "InvariantViolation",
    "Leg",
    "LegCategory",
    "LegSection",
    "LegType",
    "MissingFixInProcedure",
    "NavDatabaseQuery",
    "NavigationDatabase",
    "Ndb",
    "ParseError",
    "ParseResult",
    "PhaseEstimate",
    "Procedure",
    "ProcedureError",
    "ProcedureKind",
    "ProcedureLegBuilder",
    "ProcedureNotFound",
    "ProcedureRecord",
    "ProcedureRunwayMismatch",
    "ProfileUpdatedEvent",
    "RawLeg",
    "ResolutionError",
    "RestrictionInfeasible",
    "RouteAssembler",
    "RoutePreview",
    "RouteError",
    "RouteStringParser",
    "RouteToken",
    "RunwayEnd",
    "SpeedRestriction",
    "TokenKind",
    "Transaction",
    "TransactionLog",
    "TransitionNotFound",
    "TurnDirection",
    "UserPosition",
    "VerticalProfile",
    "VerticalProfileSolver",
    "Vor",
    "Waypoint",
    "build_route_string",
]
