"""Flight plan assembly and editing.

The RouteAssembler owns one FlightPlan. It builds plans from parsed route
strings and changes them only through transactions: each transaction takes a
snapshot, applies the change, re-tags the departure and destination legs and
validates the plan invariants. A failed transaction restores the snapshot and
re-raises; a committed one is recorded for undo/redo and announced with a
FlightPlanChangedEvent.

Typical usage:
    assembler = RouteAssembler(query, settings, event_bus)
    warnings = assembler.load_route_string("KJFK MERIT J60 PSB KDEN")
    assembler.attach_sid("SKORR5", runway="04L")
    assembler.reverse()
    assembler.undo()
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace

from flightroute.core.config import PlannerSettings
from flightroute.core.event_bus import EventBus
from flightroute.core.logging_system import get_logger
from flightroute.navigation.airways import AirwayResolver
from flightroute.navigation.errors import (
    AirwayError,
    AmbiguousFix,
    FixNotFound,
    ProcedureError,
    ProcedureNotFound,
    ResolutionError,
    TransitionNotFound,
)
from flightroute.navigation.events import FlightPlanChangedEvent
from flightroute.navigation.fixes import Fix, FixKind, UserPosition
from flightroute.navigation.flight_plan import FlightPlan
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.legs import (
    APPROACH_CATEGORIES,
    ARRIVAL_CATEGORIES,
    PROCEDURE_CATEGORIES,
    SID_CATEGORIES,
    STAR_CATEGORIES,
    Leg,
    LegCategory,
    LegType,
)
from flightroute.navigation.navdata import NavDatabaseQuery
from flightroute.navigation.procedure_builder import ProcedureLegBuilder
from flightroute.navigation.procedures import Procedure, ProcedureKind
from flightroute.navigation.route_string import ParseResult, RouteStringParser, RouteToken, TokenKind
from flightroute.navigation.transactions import TransactionLog

logger = get_logger(__name__)

# Categories removed together when one leg of a procedure part is edited
_AFFECTED_BY_LEG: dict[LegCategory, frozenset[LegCategory]] = {
    LegCategory.SID: SID_CATEGORIES,
    LegCategory.SID_TRANSITION: frozenset({LegCategory.SID_TRANSITION}),
    LegCategory.STAR: STAR_CATEGORIES,
    LegCategory.STAR_TRANSITION: frozenset({LegCategory.STAR_TRANSITION}),
    LegCategory.APPROACH_TRANSITION: frozenset({LegCategory.APPROACH_TRANSITION}),
    LegCategory.APPROACH: APPROACH_CATEGORIES,
    LegCategory.MISSED_APPROACH: APPROACH_CATEGORIES,
}

_PROCEDURE_SLOTS = (
    ("sid", SID_CATEGORIES, LegCategory.SID_TRANSITION),
    ("star", STAR_CATEGORIES, LegCategory.STAR_TRANSITION),
    ("approach", APPROACH_CATEGORIES, LegCategory.APPROACH_TRANSITION),
)

_SLOT_BY_KIND = {
    ProcedureKind.SID: ("sid", SID_CATEGORIES),
    ProcedureKind.STAR: ("star", STAR_CATEGORIES),
    ProcedureKind.APPROACH: ("approach", APPROACH_CATEGORIES),
}


@dataclass
class AssemblyResult:
    """Flight plan built from a route string.

    Attributes:
        plan: Assembled flight plan
        warnings: Parser and resolution warnings for dropped tokens
    """

    plan: FlightPlan
    warnings: list[str] = field(default_factory=list)


def nothing_found(ident: str) -> str:
    return f"Nothing found for {ident}. Ignoring."


class RouteAssembler:
    """Builds and edits one flight plan through atomic transactions.

    Attributes:
        query: Navigation database query
        settings: Planner settings
        event_bus: Bus receiving FlightPlanChangedEvent, optional
        plan: The owned flight plan
        history: Undo/redo transaction log
        revision: Incremented for every committed change, undo and redo
    """

    def __init__(
        self,
        query: NavDatabaseQuery,
        settings: PlannerSettings | None = None,
        event_bus: EventBus | None = None,
        plan: FlightPlan | None = None,
    ) -> None:
        self.query = query
        self.settings = settings or PlannerSettings()
        self.event_bus = event_bus
        self.plan = plan or FlightPlan(
            cruise_altitude_ft=self.settings.default_cruise_altitude_ft,
            cruise_speed_kts=self.settings.default_cruise_speed_kts,
        )
        self.airways = AirwayResolver(query)
        self.procedures = ProcedureLegBuilder(query, self.settings)
        self.parser = RouteStringParser(
            read_alternates=self.settings.read_alternates, is_airport=query.is_airport
        )
        self.history = TransactionLog(self.settings.undo_depth)
        self.revision = 0

    # Assembly

    def parse(self, text: str) -> ParseResult:
        return self.parser.parse(text)

    def assemble(
        self,
        parsed: ParseResult,
        reference: Coordinate | None = None,
        generic: bool = False,
    ) -> AssemblyResult:
        """Build a new flight plan from parsed tokens.

        The owned plan is not touched. Tokens that cannot be resolved are
        dropped with a warning.

        Args:
            parsed: Parser output.
            reference: Position used to pick the departure among several
                candidates with the same ident.
            generic: Allow departure and destination to be any fix kind.

        Returns:
            AssemblyResult with the plan and all warnings.

        Raises:
            ResolutionError: If departure or destination cannot be resolved.
            InvariantViolation: If the assembled plan is invalid.
        """
        warnings = list(parsed.warnings)
        endpoint_kinds = None if generic else (FixKind.AIRPORT,)

        departure = self.query.resolve_fix(
            parsed.departure, reference=reference, kinds=endpoint_kinds
        )
        plan = FlightPlan(
            cruise_altitude_ft=parsed.cruise_altitude_ft or self.settings.default_cruise_altitude_ft,
            cruise_speed_kts=parsed.speed_kts or self.settings.default_cruise_speed_kts,
            generic=generic,
        )
        legs: list[Leg] = [Leg(LegType.INITIAL_FIX, departure, LegCategory.DEPARTURE)]

        if parsed.sid is not None:
            plan.sid = self._assemble_procedure(
                parsed.sid, departure.ident, legs, warnings, ProcedureKind.SID
            )

        for token in parsed.enroute:
            self._assemble_enroute(token, legs, warnings)

        destination = self.query.resolve_fix(
            parsed.destination, reference=_last_position(legs), kinds=endpoint_kinds
        )

        if parsed.star is not None:
            plan.star = self._assemble_procedure(
                parsed.star, destination.ident, legs, warnings, ProcedureKind.STAR
            )

        _append_merged(legs, Leg(LegType.DIRECT, destination, LegCategory.DESTINATION))

        for ident in parsed.alternates:
            try:
                plan.alternates.append(
                    self.query.resolve_fix(
                        ident, reference=destination.coordinate, kinds=(FixKind.AIRPORT,)
                    )
                )
            except ResolutionError:
                _warn(warnings, nothing_found(ident))

        plan.legs = legs
        _retag_endpoints(plan)
        plan.validate()

        logger.info(
            "Assembled %s -> %s: %d legs, %d warnings",
            departure.ident,
            destination.ident,
            len(plan.legs),
            len(warnings),
        )
        return AssemblyResult(plan, warnings)

    def assemble_route_string(
        self, text: str, reference: Coordinate | None = None, generic: bool = False
    ) -> AssemblyResult:
        """Parse and assemble a route string without touching the owned plan."""
        return self.assemble(self.parse(text), reference=reference, generic=generic)

    def _assemble_procedure(
        self,
        token: RouteToken,
        airport_ident: str,
        legs: list[Leg],
        warnings: list[str],
        kind: ProcedureKind,
    ) -> Procedure | None:
        try:
            procedure = self._build_named(airport_ident, token.ident, token.transition)
        except ProcedureNotFound:
            # Shaped like a procedure name but maybe a waypoint
            self._assemble_enroute(replace(token, kind=TokenKind.WAYPOINT), legs, warnings)
            return None
        except ProcedureError as e:
            _warn(warnings, f"{token.text}: {e}. Ignoring.")
            return None

        if procedure.kind is not kind:
            _warn(warnings, f"{token.ident} is no {kind.value} at {airport_ident}. Ignoring.")
            return None

        warnings.extend(procedure.warnings)
        for leg in procedure.legs:
            _append_merged(legs, leg)
        return procedure

    def _build_named(self, airport_ident: str, name: str, transition: str | None) -> Procedure:
        try:
            return self.procedures.build(airport_ident, name, transition=transition)
        except TransitionNotFound as e:
            logger.warning("%s, using %s without transition", e, name)
            return self.procedures.build(airport_ident, name)

    def _assemble_enroute(self, token: RouteToken, legs: list[Leg], warnings: list[str]) -> None:
        reference = _last_position(legs)

        if token.kind is TokenKind.COORDINATE:
            fix = UserPosition(ident=token.ident, region="", coordinate=token.coordinate)
            _append_merged(legs, Leg(LegType.DIRECT, fix))
            return

        if token.kind is TokenKind.AIRWAY_SEGMENT:
            self._assemble_airway(token, legs, warnings)
            return

        try:
            fix = self.query.resolve_fix(token.ident, reference=reference)
        except FixNotFound:
            _warn(warnings, nothing_found(token.ident))
            return
        except AmbiguousFix:
            _warn(warnings, f"{token.ident} is ambiguous. Ignoring.")
            return
        _append_merged(legs, Leg(LegType.DIRECT, fix))

    def _assemble_airway(self, token: RouteToken, legs: list[Leg], warnings: list[str]) -> None:
        if self.query.get_airway(token.airway) is None and self.query.find_fixes(token.airway):
            # Shaped like an airway name but a waypoint
            self._assemble_enroute(
                RouteToken(TokenKind.WAYPOINT, token.airway, token.airway), legs, warnings
            )
            following = TokenKind.WAYPOINT if token.coordinate is None else TokenKind.COORDINATE
            self._assemble_enroute(
                replace(token, kind=following, text=token.ident, airway=None), legs, warnings
            )
            return

        entry = next((leg.fix for leg in reversed(legs) if leg.fix is not None), None)
        reference = _last_position(legs)
        exit_fix = self._airway_exit(token, reference)
        if exit_fix is None:
            _warn(warnings, nothing_found(token.ident))
            return
        if entry is None:
            _warn(warnings, f"No fix to enter airway {token.airway}. Ignoring.")
            return

        try:
            path = self.airways.resolve(token.airway, entry, exit_fix)
        except AirwayError as e:
            _warn(warnings, f"{e}. Ignoring.")
            return

        for fix in path.fixes:
            _append_merged(legs, Leg(LegType.TRACK_TO_FIX, fix, airway=path.airway))

    def _airway_exit(self, token: RouteToken, reference: Coordinate | None) -> Fix | None:
        if token.coordinate is not None:
            return UserPosition(ident=token.ident, region="", coordinate=token.coordinate)

        airway = self.query.get_airway(token.airway)
        if airway is not None:
            on_airway = airway.fixes_named(token.ident)
            if len(on_airway) == 1 or (on_airway and reference is None):
                return on_airway[0]
            if on_airway:
                return min(on_airway, key=lambda fix: reference.distance_to(fix.coordinate))

        try:
            return self.query.resolve_fix(token.ident, reference=reference)
        except ResolutionError:
            return None

    # Transactions

    @contextmanager
    def transaction(self, label: str) -> Iterator[FlightPlan]:
        """Run a change of the owned plan atomically.

        Args:
            label: Name recorded for undo/redo.

        Yields:
            The plan to change.

        Raises:
            InvariantViolation: If the changed plan is invalid; the plan is
                restored before the exception propagates.
        """
        before = self.plan.snapshot()
        try:
            yield self.plan
            _retag_endpoints(self.plan)
            self.plan.validate()
        except Exception:
            self.plan.restore(before)
            logger.warning("Rolled back transaction %r", label)
            raise

        self.history.record(label, before, self.plan.snapshot())
        self._changed(label)

    def load_route_string(
        self, text: str, reference: Coordinate | None = None, generic: bool = False
    ) -> list[str]:
        """Replace the owned plan with one assembled from a route string.

        Returns:
            Warnings for dropped tokens.
        """
        result = self.assemble_route_string(text, reference=reference, generic=generic)
        with self.transaction("New Flight Plan") as plan:
            plan.restore(result.plan.snapshot())
        return result.warnings

    def insert_fix(self, index: int, fix: Fix) -> None:
        """Insert a direct leg to a fix before the leg at index.

        Inserting at 0 makes the fix the departure, at len(plan) the
        destination. Procedures the new leg would split or precede
        incorrectly are removed.

        Raises:
            IndexError: If index is out of range.
            InvariantViolation: If the result is invalid.
        """
        if not 0 <= index <= len(self.plan.legs):
            raise IndexError(f"Insert position {index} out of range")

        with self.transaction(f"Insert {fix.ident}") as plan:
            plan.legs.insert(index, Leg(LegType.DIRECT, fix))
            self._erase_airway(index + 1)
            self._remove_categories(self._split_by_insert(index))

    def append_fix(self, fix: Fix) -> None:
        self.insert_fix(len(self.plan.legs), fix)

    def replace_leg(self, index: int, fix: Fix) -> None:
        """Replace the leg at index by a direct leg to a fix."""
        self._check_index(index)
        removed = self._affected_categories([index])

        with self.transaction(f"Change {self.plan.legs[index].ident}") as plan:
            plan.legs[index] = Leg(LegType.DIRECT, fix)
            self._erase_airway(index + 1)
            self._remove_categories(removed)

    def delete_legs(self, indexes: Iterable[int]) -> None:
        """Delete legs.

        Deleting the departure removes the SID, deleting the destination all
        arrival procedures, and deleting a procedure leg its procedure part.
        """
        rows = sorted(set(indexes), reverse=True)
        if not rows:
            return
        for index in rows:
            self._check_index(index)

        removed = self._affected_categories(rows)
        label = "Delete Procedure" if removed & PROCEDURE_CATEGORIES else "Delete Waypoints"

        with self.transaction(label) as plan:
            for index in rows:
                del plan.legs[index]
                self._erase_airway(index)
            self._remove_categories(removed)

    def move_legs(self, indexes: Iterable[int], direction: int) -> None:
        """Move legs one position up (-1) or down (+1).

        Airway names are erased at the edges of the moved block.

        Raises:
            ValueError: If direction is not -1 or 1 or a leg would leave the plan.
        """
        if direction not in (-1, 1):
            raise ValueError("direction must be -1 or 1")

        rows = sorted(set(indexes), reverse=direction > 0)
        if not rows:
            return
        for index in rows:
            self._check_index(index)
            if not 0 <= index + direction < len(self.plan.legs):
                raise ValueError(f"Cannot move leg {index} beyond the flight plan")

        with self.transaction("Move Waypoints") as plan:
            for index in rows:
                plan.legs.insert(index + direction, plan.legs.pop(index))

            first, last = rows[0], rows[-1]
            if direction > 0:
                self._erase_airway(last)
                self._erase_airway(last + 1)
                self._erase_airway(first + 2)
            else:
                self._erase_airway(first - 1)
                self._erase_airway(last)
                self._erase_airway(last + 1)

    def reverse(self) -> None:
        """Reverse the plan.

        All procedures are removed, departure and destination swap and each
        airway name moves to the leg that now enters the airway segment.
        """
        with self.transaction("Reverse") as plan:
            self._remove_categories(PROCEDURE_CATEGORIES)
            legs = list(reversed(plan.legs))

            airways = [leg.airway for leg in legs]
            for i in range(len(airways) - 2, 0, -1):
                airways[i] = airways[i - 1]

            plan.legs = [
                replace(
                    leg,
                    airway=airway,
                    leg_type=LegType.TRACK_TO_FIX if airway else LegType.DIRECT,
                )
                for leg, airway in zip(legs, airways)
            ]
            plan.active_leg_index = 0

    def set_departure(self, airport: Fix) -> None:
        """Set or replace the departure airport and remove the SID."""
        with self.transaction("Set Departure"):
            self._set_departure(airport)

    def set_destination(self, airport: Fix) -> None:
        """Set or replace the destination airport and remove arrival procedures."""
        with self.transaction("Set Destination"):
            self._set_destination(airport)

    def attach_procedure(self, procedure: Procedure) -> None:
        """Add a built procedure, replacing one of the same kind.

        The departure (SID) or destination (STAR, approach) is set to the
        procedure airport if it differs.
        """
        attr, categories = _SLOT_BY_KIND[procedure.kind]

        with self.transaction(f"Add {procedure.display_name}") as plan:
            airport = self.query.find_airport(procedure.airport_ident)
            if airport is None:
                raise FixNotFound(
                    f"Airport {procedure.airport_ident} not found", ident=procedure.airport_ident
                )

            if procedure.kind is ProcedureKind.SID:
                if not airport.same_point(plan.departure):
                    self._set_departure(airport)
                self._remove_categories(categories)
                position = 1
            else:
                if not airport.same_point(plan.destination):
                    self._set_destination(airport)
                self._remove_categories(categories)
                position = self._arrival_position(procedure.kind)

            plan.legs[position:position] = procedure.legs
            setattr(plan, attr, procedure)
            _merge_duplicates(plan)

    def attach_sid(self, name: str, runway: str | None = None, transition: str | None = None) -> None:
        departure = self._require_endpoint(self.plan.departure, "departure")
        self.attach_procedure(self.procedures.build(departure.ident, name, runway, transition))

    def attach_star(self, name: str, runway: str | None = None, transition: str | None = None) -> None:
        destination = self._require_endpoint(self.plan.destination, "destination")
        self.attach_procedure(self.procedures.build(destination.ident, name, runway, transition))

    def attach_approach(self, name: str, transition: str | None = None) -> None:
        destination = self._require_endpoint(self.plan.destination, "destination")
        self.attach_procedure(
            self.procedures.build(destination.ident, name, transition=transition)
        )

    def remove_procedures(
        self, categories: Iterable[LegCategory] = PROCEDURE_CATEGORIES
    ) -> None:
        with self.transaction("Delete Procedure"):
            self._remove_categories(frozenset(categories))

    def set_cruise_altitude(self, altitude_ft: float, speed_kts: float | None = None) -> None:
        with self.transaction("Change Altitude") as plan:
            plan.cruise_altitude_ft = altitude_ft
            if speed_kts is not None:
                plan.cruise_speed_kts = speed_kts

    def undo(self) -> bool:
        """Restore the plan before the latest transaction.

        Returns:
            True if a transaction was undone.
        """
        transaction = self.history.undo()
        if transaction is None:
            return False
        self.plan.restore(transaction.before)
        self._changed(f"Undo {transaction.label}")
        return True

    def redo(self) -> bool:
        """Re-apply the latest undone transaction.

        Returns:
            True if a transaction was redone.
        """
        transaction = self.history.redo()
        if transaction is None:
            return False
        self.plan.restore(transaction.after)
        self._changed(f"Redo {transaction.label}")
        return True

    # Helpers

    def _changed(self, label: str) -> None:
        self.revision += 1
        logger.debug("Flight plan revision %d: %s", self.revision, label)
        if self.event_bus is not None:
            self.event_bus.publish(
                FlightPlanChangedEvent(label=label, revision=self.revision, source=self)
            )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.plan.legs):
            raise IndexError(f"Leg index {index} out of range")

    @staticmethod
    def _require_endpoint(fix: Fix | None, name: str) -> Fix:
        if fix is None:
            raise FixNotFound(f"Flight plan has no {name}")
        return fix

    def _erase_airway(self, index: int) -> None:
        legs = self.plan.legs
        if 0 <= index < len(legs) and legs[index].airway:
            legs[index] = replace(legs[index], airway=None, leg_type=LegType.DIRECT)

    def _affected_categories(self, indexes: Iterable[int]) -> frozenset[LegCategory]:
        legs = self.plan.legs
        last = len(legs) - 1
        removed: set[LegCategory] = set()

        for index in indexes:
            if index == 0:
                removed |= SID_CATEGORIES
            if index >= last:
                removed |= ARRIVAL_CATEGORIES
            if 0 <= index <= last:
                removed |= _AFFECTED_BY_LEG.get(legs[index].category, frozenset())

        # A transition alone is removed with its then empty procedure
        for _, categories, transition in _PROCEDURE_SLOTS:
            if transition in removed:
                remaining = {leg.category for leg in legs if leg.category in categories}
                if remaining <= {transition}:
                    removed |= categories

        return frozenset(removed)

    def _split_by_insert(self, index: int) -> frozenset[LegCategory]:
        legs = self.plan.legs
        removed: set[LegCategory] = set()
        for leg in legs[:index]:
            if leg.category in STAR_CATEGORIES:
                removed |= STAR_CATEGORIES
            elif leg.category in APPROACH_CATEGORIES:
                removed |= APPROACH_CATEGORIES
        for leg in legs[index + 1 :]:
            if leg.category in SID_CATEGORIES:
                removed |= SID_CATEGORIES
        if index == 0:
            removed |= SID_CATEGORIES
        return frozenset(removed)

    def _remove_categories(self, categories: frozenset[LegCategory]) -> None:
        if not categories:
            return
        plan = self.plan
        plan.legs = [leg for leg in plan.legs if leg.category not in categories]

        for attr, slot_categories, _ in _PROCEDURE_SLOTS:
            procedure: Procedure | None = getattr(plan, attr)
            if procedure is None or not categories & slot_categories:
                continue
            if not any(leg.category in slot_categories for leg in plan.legs):
                setattr(plan, attr, None)
            else:
                setattr(
                    plan,
                    attr,
                    replace(
                        procedure,
                        transition=None,
                        legs=[leg for leg in procedure.legs if leg.category not in categories],
                    ),
                )
        logger.debug("Removed procedure legs: %s", ", ".join(sorted(c.name for c in categories)))

    def _set_departure(self, airport: Fix) -> None:
        plan = self.plan
        leg = Leg(LegType.INITIAL_FIX, airport, LegCategory.DEPARTURE)
        self._remove_categories(SID_CATEGORIES)
        if plan.legs and plan.legs[0].category is LegCategory.DEPARTURE:
            plan.legs[0] = leg
        else:
            plan.legs.insert(0, leg)
        self._erase_airway(1)

    def _set_destination(self, airport: Fix) -> None:
        plan = self.plan
        leg = Leg(LegType.DIRECT, airport, LegCategory.DESTINATION)
        self._remove_categories(ARRIVAL_CATEGORIES)
        if plan.legs and plan.legs[-1].category is LegCategory.DESTINATION and len(plan.legs) > 1:
            plan.legs[-1] = leg
        else:
            plan.legs.append(leg)

    def _arrival_position(self, kind: ProcedureKind) -> int:
        legs = self.plan.legs
        if kind is ProcedureKind.STAR:
            for i, leg in enumerate(legs):
                if leg.category in APPROACH_CATEGORIES:
                    return i
        return len(legs) - 1


def _warn(warnings: list[str], message: str) -> None:
    logger.warning("%s", message)
    warnings.append(message)


def _last_position(legs: list[Leg]) -> Coordinate | None:
    for leg in reversed(legs):
        if leg.position is not None:
            return leg.position
    return None


def _append_merged(legs: list[Leg], leg: Leg) -> None:
    """Append a leg unless it repeats the fix of the previous leg.

    A procedure leg replaces a preceding enroute leg to the same fix so its
    restrictions are kept.
    """
    if legs and leg.fix is not None and not leg.leg_type.is_hold and leg.fix.same_point(legs[-1].fix):
        previous = legs[-1]
        if leg.is_procedure and not previous.is_procedure and len(legs) > 1:
            legs[-1] = leg
        logger.debug("Merged duplicate fix %s", leg.fix.ident)
        return
    legs.append(leg)


def _merge_duplicates(plan: FlightPlan) -> None:
    merged: list[Leg] = []
    for leg in plan.legs:
        if (
            merged
            and leg.fix is not None
            and not leg.leg_type.is_hold
            and leg.leg_type is not LegType.PROCEDURE_TURN
            and leg.fix.same_point(merged[-1].fix)
        ):
            previous = merged[-1]
            if previous.category in (LegCategory.DEPARTURE, LegCategory.DESTINATION):
                merged.append(leg)
            elif leg.is_procedure and not previous.is_procedure:
                merged[-1] = leg
            elif previous.is_procedure and leg.is_procedure and leg.leg_type is not LegType.INITIAL_FIX:
                merged.append(leg)
            logger.debug("Merged duplicate fix %s", leg.fix.ident)
            continue
        merged.append(leg)
    plan.legs = merged


def _retag_endpoints(plan: FlightPlan) -> None:
    """Tag the first leg as departure and the last as destination.

    Former endpoints in the middle of the plan become enroute legs.
    Procedure legs keep their category.
    """
    legs = plan.legs
    last = len(legs) - 1
    for i, leg in enumerate(legs):
        if leg.is_procedure:
            continue
        if i == 0:
            legs[i] = replace(
                leg, category=LegCategory.DEPARTURE, leg_type=LegType.INITIAL_FIX, airway=None
            )
        elif i == last:
            leg_type = LegType.DIRECT if leg.leg_type is LegType.INITIAL_FIX else leg.leg_type
            legs[i] = replace(leg, category=LegCategory.DESTINATION, leg_type=leg_type)
        elif leg.category in (LegCategory.DEPARTURE, LegCategory.DESTINATION):
            leg_type = LegType.DIRECT if leg.leg_type is LegType.INITIAL_FIX else leg.leg_type
            legs[i] = replace(leg, category=LegCategory.ENROUTE, leg_type=leg_type)
