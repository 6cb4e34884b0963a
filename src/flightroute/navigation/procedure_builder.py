"""Expansion of stored SID, STAR and approach procedures into flight plan legs.

The builder selects the raw legs for one runway and transition, resolves
their fixes and reference navaids, converts restrictions and computes the
geometry of every leg. Geometry is dispatched per path terminator through
GEOMETRY_BUILDERS, which covers every LegType.

Typical usage:
    builder = ProcedureLegBuilder(query, settings)
    sid = builder.build("KJFK", "SKORR5", runway="04L", transition="RNGRR")
    for leg in sid.legs:
        print(leg.ident, leg.distance_nm)
"""

from collections.abc import Callable
from dataclasses import dataclass

from flightroute.core.config import PlannerSettings
from flightroute.core.logging_system import get_logger
from flightroute.navigation.errors import (
    MissingFixInProcedure,
    ProcedureNotFound,
    ProcedureRunwayMismatch,
    ResolutionError,
    TransitionNotFound,
)
from flightroute.navigation.fixes import Fix
from flightroute.navigation.geo import (
    Coordinate,
    arc_length_nm,
    arc_points,
    bearing_deg,
    destination,
    distance_nm,
    distance_termination,
    intersect,
    normalize_course,
    turn_angle,
)
from flightroute.navigation.legs import (
    AltitudeRestriction,
    Leg,
    LegType,
    SpeedRestriction,
    TurnDirection,
    check_category_order,
)
from flightroute.navigation.navdata import NavDatabaseQuery
from flightroute.navigation.procedures import (
    Procedure,
    ProcedureKind,
    ProcedureRecord,
    RawLeg,
    category_for,
)

logger = get_logger(__name__)


class GeometryUnavailable(Exception):
    """Raised by a geometry builder when the leg lacks data its path needs."""


@dataclass
class LegContext:
    """Everything a geometry builder may use for one leg.

    Attributes:
        raw: Database row of the leg
        leg_type: Parsed path terminator
        start: Where the previous leg ended, None at the start of a procedure
            without known airport
        fix: Resolved fix of the leg
        navaid: Resolved recommended navaid
        center: Resolved arc center (RF legs)
        altitude_restriction: Parsed altitude restriction
        turn_direction: Parsed turn direction
        base_altitude_ft: Estimated altitude at the start of the leg
        intercept: Fix and inbound course of the following leg (CI/VI)
        settings: Planner settings
    """

    raw: RawLeg
    leg_type: LegType
    start: Coordinate | None
    fix: Fix | None
    navaid: Fix | None
    center: Fix | None
    altitude_restriction: AltitudeRestriction | None
    turn_direction: TurnDirection | None
    base_altitude_ft: float
    intercept: tuple[Coordinate, float] | None
    settings: PlannerSettings

    def require_fix(self) -> Coordinate:
        if self.fix is None:
            raise GeometryUnavailable(f"{self.leg_type.value} leg without fix")
        return self.fix.coordinate

    def require_navaid(self) -> Coordinate:
        if self.navaid is None:
            raise GeometryUnavailable(f"{self.leg_type.value} leg without recommended navaid")
        return self.navaid.coordinate

    def require_start(self) -> Coordinate:
        if self.start is None:
            raise GeometryUnavailable(f"{self.leg_type.value} leg without start position")
        return self.start

    def require_course(self) -> float:
        if self.raw.course_deg is None:
            raise GeometryUnavailable(f"{self.leg_type.value} leg without course")
        return self.raw.course_deg


# Geometry is a tuple of points ending at the leg termination plus its length
Geometry = tuple[tuple[Coordinate, ...], float]


def _polyline(*points: Coordinate | None) -> Geometry:
    path = tuple(p for p in points if p is not None)
    length = sum(distance_nm(a, b) for a, b in zip(path, path[1:]))
    return path, length


def _to_fix(ctx: LegContext) -> Geometry:
    return _polyline(ctx.start, ctx.require_fix())


def _initial_fix(ctx: LegContext) -> Geometry:
    return (ctx.require_fix(),), 0.0


def _at_fix(ctx: LegContext) -> Geometry:
    # Holds and procedure turns return to their fix
    return (ctx.require_fix(),), 0.0


def _altitude_length(ctx: LegContext) -> float:
    if ctx.altitude_restriction is None:
        raise GeometryUnavailable(f"{ctx.leg_type.value} leg without altitude")
    target = ctx.altitude_restriction.lower_ft or ctx.altitude_restriction.altitude_ft
    climb = max(target - ctx.base_altitude_ft, 0.0)
    return climb / ctx.settings.altitude_leg_gradient_ft_per_nm


def _fix_to_altitude(ctx: LegContext) -> Geometry:
    origin = ctx.require_fix()
    return _polyline(origin, destination(origin, ctx.require_course(), _altitude_length(ctx)))


def _course_to_altitude(ctx: LegContext) -> Geometry:
    origin = ctx.require_start()
    return _polyline(origin, destination(origin, ctx.require_course(), _altitude_length(ctx)))


def _fix_to_distance(ctx: LegContext) -> Geometry:
    origin = ctx.require_fix()
    if ctx.raw.distance_nm is None:
        raise GeometryUnavailable("FC leg without distance")
    return _polyline(origin, destination(origin, ctx.require_course(), ctx.raw.distance_nm))


def _dme_termination(ctx: LegContext, origin: Coordinate) -> Geometry:
    if ctx.raw.distance_nm is None:
        raise GeometryUnavailable(f"{ctx.leg_type.value} leg without DME distance")
    end = distance_termination(
        origin, ctx.require_course(), ctx.require_navaid(), ctx.raw.distance_nm
    )
    if end is None:
        raise GeometryUnavailable(
            f"{ctx.leg_type.value} course never reaches {ctx.raw.distance_nm} NM DME"
        )
    return _polyline(origin, end)


def _fix_to_dme_distance(ctx: LegContext) -> Geometry:
    return _dme_termination(ctx, ctx.require_fix())


def _course_to_dme_distance(ctx: LegContext) -> Geometry:
    return _dme_termination(ctx, ctx.require_start())


def _manual_from(ctx: LegContext, origin: Coordinate) -> Geometry:
    end = destination(origin, ctx.require_course(), ctx.settings.manual_leg_length_nm)
    return _polyline(origin, end)


def _fix_to_manual(ctx: LegContext) -> Geometry:
    return _manual_from(ctx, ctx.require_fix())


def _heading_to_manual(ctx: LegContext) -> Geometry:
    return _manual_from(ctx, ctx.require_start())


def _course_to_intercept(ctx: LegContext) -> Geometry:
    origin = ctx.require_start()
    course = ctx.require_course()
    if ctx.intercept is not None:
        next_fix, inbound = ctx.intercept
        # Points ahead of the intercepted course lie behind its fix
        point = intersect(origin, course, next_fix, normalize_course(inbound + 180.0))
        if point is not None:
            return _polyline(origin, point)
    logger.debug("No intercept found for %s leg, using display length", ctx.leg_type.value)
    return _manual_from(ctx, origin)


def _course_to_radial(ctx: LegContext) -> Geometry:
    origin = ctx.require_start()
    if ctx.raw.theta_deg is None:
        raise GeometryUnavailable(f"{ctx.leg_type.value} leg without radial")
    point = intersect(origin, ctx.require_course(), ctx.require_navaid(), ctx.raw.theta_deg)
    if point is None:
        raise GeometryUnavailable(
            f"{ctx.leg_type.value} course never crosses radial {ctx.raw.theta_deg:.0f}"
        )
    return _polyline(origin, point)


def _arc(ctx: LegContext, center: Coordinate, radius: float) -> Geometry:
    end = ctx.require_fix()
    start = ctx.require_start()
    clockwise = ctx.turn_direction is not TurnDirection.LEFT
    start_bearing = bearing_deg(center, start)
    end_bearing = bearing_deg(center, end)
    points = arc_points(center, radius, start_bearing, end_bearing, clockwise)
    sweep = turn_angle(start_bearing, end_bearing, clockwise)
    return tuple(points), arc_length_nm(radius, sweep)


def _arc_to_fix(ctx: LegContext) -> Geometry:
    center = ctx.require_navaid()
    radius = ctx.raw.rho_nm if ctx.raw.rho_nm else distance_nm(center, ctx.require_fix())
    return _arc(ctx, center, radius)


def _constant_radius_arc(ctx: LegContext) -> Geometry:
    if ctx.center is None:
        raise GeometryUnavailable("RF leg without center fix")
    center = ctx.center.coordinate
    radius = ctx.raw.arc_radius_nm
    if not radius:
        radius = distance_nm(center, ctx.require_fix())
    return _arc(ctx, center, radius)


GEOMETRY_BUILDERS: dict[LegType, Callable[[LegContext], Geometry]] = {
    LegType.INITIAL_FIX: _initial_fix,
    LegType.TRACK_TO_FIX: _to_fix,
    LegType.COURSE_TO_FIX: _to_fix,
    LegType.DIRECT_TO_FIX: _to_fix,
    LegType.DIRECT: _to_fix,
    LegType.FIX_TO_ALTITUDE: _fix_to_altitude,
    LegType.FIX_TO_DISTANCE: _fix_to_distance,
    LegType.FIX_TO_DME_DISTANCE: _fix_to_dme_distance,
    LegType.FROM_FIX_TO_MANUAL: _fix_to_manual,
    LegType.COURSE_TO_ALTITUDE: _course_to_altitude,
    LegType.COURSE_TO_DME_DISTANCE: _course_to_dme_distance,
    LegType.COURSE_TO_INTERCEPT: _course_to_intercept,
    LegType.COURSE_TO_RADIAL_TERMINATION: _course_to_radial,
    LegType.ARC_TO_FIX: _arc_to_fix,
    LegType.CONSTANT_RADIUS_ARC: _constant_radius_arc,
    LegType.HOLD_TO_ALTITUDE: _at_fix,
    LegType.HOLD_TO_FIX: _at_fix,
    LegType.HOLD_TO_MANUAL: _at_fix,
    LegType.PROCEDURE_TURN: _at_fix,
    LegType.HEADING_TO_ALTITUDE: _course_to_altitude,
    LegType.HEADING_TO_DME_DISTANCE: _course_to_dme_distance,
    LegType.HEADING_TO_INTERCEPT: _course_to_intercept,
    LegType.HEADING_TO_MANUAL: _heading_to_manual,
    LegType.HEADING_TO_RADIAL_TERMINATION: _course_to_radial,
}


def _normalize_runway(runway: str | None) -> str | None:
    if not runway:
        return None
    runway = runway.strip().upper()
    if runway.startswith("RW"):
        runway = runway[2:]
    return runway or None


class ProcedureLegBuilder:
    """Builds typed legs of one procedure for a runway and transition.

    Per-leg problems never abort a build: a leg whose fix is missing from the
    database or whose geometry cannot be computed is skipped and reported in
    Procedure.warnings.

    Attributes:
        query: Navigation database query
        settings: Planner settings (climb gradient, manual leg length)
    """

    def __init__(self, query: NavDatabaseQuery, settings: PlannerSettings | None = None) -> None:
        self.query = query
        self.settings = settings or PlannerSettings()

    def build(
        self,
        airport_ident: str,
        name: str,
        runway: str | None = None,
        transition: str | None = None,
    ) -> Procedure:
        """Build a procedure.

        Args:
            airport_ident: Airport owning the procedure.
            name: Procedure name.
            runway: Runway selecting the runway-specific legs. May be omitted
                when the procedure has a single runway leg set.
            transition: Transition name, None for the common route only.

        Returns:
            Procedure with built legs and warnings.

        Raises:
            ProcedureNotFound: If the airport has no such procedure.
            TransitionNotFound: If the transition does not exist.
            ProcedureRunwayMismatch: If no leg set exists for the runway.
        """
        record = self.query.get_procedure(airport_ident, name)
        if record is None:
            raise ProcedureNotFound(f"No procedure {name} at {airport_ident}")

        if transition and transition not in record.transition_legs:
            raise TransitionNotFound(f"{name} at {airport_ident} has no transition {transition}")

        runway = self._select_runway(record, _normalize_runway(runway))
        raw_legs = self.query.get_procedure_legs(
            airport_ident, name, transition=transition or None, runway=runway
        )

        procedure = Procedure(
            airport_ident=airport_ident,
            name=name,
            kind=record.kind,
            runway=runway if record.runway_legs else record.runway,
            transition=transition or None,
            runways=record.runways,
            transitions=record.transitions,
            gps_overlay=record.gps_overlay,
        )

        airport = self.query.find_airport(airport_ident)
        self._build_legs(procedure, raw_legs, airport)
        check_category_order([leg.category for leg in procedure.legs])

        logger.info(
            "Built %s %s at %s: %d legs, %d warnings",
            record.kind.value,
            procedure.display_name,
            airport_ident,
            len(procedure.legs),
            len(procedure.warnings),
        )
        return procedure

    @staticmethod
    def _select_runway(record: ProcedureRecord, runway: str | None) -> str | None:
        if not record.runway_legs:
            if runway and record.runway and runway != _normalize_runway(record.runway):
                raise ProcedureRunwayMismatch(
                    f"{record.name} serves runway {record.runway}, not {runway}",
                    runways=record.runways,
                )
            return runway

        if runway is None:
            if len(record.runway_legs) == 1:
                return next(iter(record.runway_legs))
            raise ProcedureRunwayMismatch(
                f"{record.name} needs one of the runways {', '.join(record.runways)}",
                runways=record.runways,
            )

        if runway not in record.runway_legs:
            raise ProcedureRunwayMismatch(
                f"{record.name} has no legs for runway {runway}", runways=record.runways
            )
        return runway

    def _build_legs(
        self, procedure: Procedure, raw_legs: list[RawLeg], airport: Fix | None
    ) -> None:
        reference = airport.coordinate if airport is not None else None
        base_altitude = (airport.elevation_ft or 0.0) if airport is not None else 0.0
        # Departures start at the airport, arrivals where the enroute part ends
        start = reference if procedure.kind is ProcedureKind.SID else None

        for index, raw in enumerate(raw_legs):
            try:
                leg = self._build_leg(
                    procedure, raw, raw_legs[index + 1 :], start, reference, base_altitude
                )
            except (MissingFixInProcedure, GeometryUnavailable, ValueError) as e:
                message = f"{procedure.display_name} leg {index + 1} ({raw.leg_type}): {e}"
                logger.warning("Skipping leg: %s", message)
                procedure.warnings.append(message)
                continue

            previous = procedure.legs[-1] if procedure.legs else None
            if (
                previous is not None
                and leg.leg_type is LegType.INITIAL_FIX
                and leg.fix is not None
                and leg.fix.same_point(previous.fix)
            ):
                # Transition end and common route start share their fix
                continue

            procedure.legs.append(leg)
            if leg.position is not None:
                start = leg.position
                reference = leg.position
            if leg.altitude_restriction is not None:
                base_altitude = (
                    leg.altitude_restriction.lower_ft or leg.altitude_restriction.altitude_ft
                )

    def _build_leg(
        self,
        procedure: Procedure,
        raw: RawLeg,
        following: list[RawLeg],
        start: Coordinate | None,
        reference: Coordinate | None,
        base_altitude_ft: float,
    ) -> Leg:
        leg_type = LegType.from_code(raw.leg_type)
        category = category_for(procedure.kind, raw.section)

        fix = None
        if raw.fix_ident:
            fix = self._resolve_required(raw.fix_ident, raw.fix_region, reference)

        navaid = None
        if raw.recommended_navaid_ident:
            navaid = self._resolve_optional(
                procedure, raw.recommended_navaid_ident, raw.recommended_navaid_region, reference
            )

        center = None
        if raw.center_fix_ident:
            center = self._resolve_optional(
                procedure, raw.center_fix_ident, raw.center_fix_region, reference
            )

        if leg_type.requires_fix and fix is None:
            raise MissingFixInProcedure(f"{leg_type.value} leg has no fix")

        altitude_restriction = AltitudeRestriction.from_arinc(
            raw.altitude_descriptor, raw.altitude1_ft, raw.altitude2_ft
        )
        speed_restriction = SpeedRestriction.from_arinc(raw.speed_descriptor, raw.speed_limit_kts)
        turn_direction = TurnDirection.from_code(raw.turn_direction)

        context = LegContext(
            raw=raw,
            leg_type=leg_type,
            start=start,
            fix=fix,
            navaid=navaid,
            center=center,
            altitude_restriction=altitude_restriction,
            turn_direction=turn_direction,
            base_altitude_ft=base_altitude_ft,
            intercept=self._intercept_target(following, reference) if following else None,
            settings=self.settings,
        )
        geometry, length = GEOMETRY_BUILDERS[leg_type](context)

        return Leg(
            leg_type=leg_type,
            fix=fix,
            category=category,
            recommended_navaid=navaid,
            course_deg=raw.course_deg,
            distance_nm=length,
            turn_direction=turn_direction,
            altitude_restriction=altitude_restriction,
            speed_restriction=speed_restriction,
            fly_over=raw.fly_over,
            procedure=procedure.name,
            geometry=geometry,
            hold_time_min=raw.time_min if leg_type.is_hold else None,
        )

    def _resolve_required(
        self, ident: str, region: str | None, reference: Coordinate | None
    ) -> Fix:
        try:
            return self.query.resolve_fix(ident, region=region, reference=reference)
        except ResolutionError as e:
            raise MissingFixInProcedure(f"fix {ident} not found ({e})", ident=ident) from e

    def _resolve_optional(
        self,
        procedure: Procedure,
        ident: str,
        region: str | None,
        reference: Coordinate | None,
    ) -> Fix | None:
        try:
            return self.query.resolve_fix(ident, region=region, reference=reference)
        except ResolutionError:
            message = f"{procedure.display_name}: reference {ident} not found"
            logger.warning("%s", message)
            procedure.warnings.append(message)
            return None

    def _intercept_target(
        self, following: list[RawLeg], reference: Coordinate | None
    ) -> tuple[Coordinate, float] | None:
        upcoming = following[0]
        if not upcoming.fix_ident or upcoming.course_deg is None:
            return None
        try:
            fix = self.query.resolve_fix(
                upcoming.fix_ident, region=upcoming.fix_region, reference=reference
            )
        except ResolutionError:
            return None
        return fix.coordinate, upcoming.course_deg
