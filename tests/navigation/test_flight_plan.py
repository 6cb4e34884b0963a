"""Tests for the flight plan model."""

import pytest

from flightroute.navigation.errors import InvariantViolation
from flightroute.navigation.fixes import Airport, Waypoint
from flightroute.navigation.flight_plan import FlightPlan
from flightroute.navigation.geo import Coordinate, distance_nm
from flightroute.navigation.legs import Leg, LegCategory, LegType

KORD = Airport("KORD", "K5", Coordinate(41.9786, -87.9048), elevation_ft=672)
KDEN = Airport("KDEN", "K2", Coordinate(39.8617, -104.6731), elevation_ft=5434)
IOW = Waypoint("IOW", "K3", Coordinate(41.519, -91.613))
OBH = Waypoint("OBH", "K3", Coordinate(41.376, -98.354))


def simple_plan() -> FlightPlan:
    return FlightPlan(
        legs=[
            Leg(LegType.INITIAL_FIX, KORD, LegCategory.DEPARTURE),
            Leg(LegType.DIRECT, IOW),
            Leg(LegType.DIRECT, OBH),
            Leg(LegType.DIRECT, KDEN, LegCategory.DESTINATION),
        ],
        cruise_altitude_ft=35000,
    )


class TestFlightPlan:
    """Test FlightPlan basics."""

    def test_endpoints(self) -> None:
        """Test departure, destination and idents."""
        plan = simple_plan()

        assert plan.departure is KORD
        assert plan.destination is KDEN
        assert plan.idents() == ["KORD", "IOW", "OBH", "KDEN"]
        assert len(plan) == 4

    def test_empty_plan(self) -> None:
        """Test that an empty plan has no endpoints and is valid."""
        plan = FlightPlan()

        assert plan.departure is None
        assert plan.destination is None
        assert plan.validation_errors() == []
        assert plan.total_distance_nm() == 0.0

    def test_valid_plan(self) -> None:
        """Test that a well-formed plan has no violations."""
        simple_plan().validate()


class TestValidation:
    """Test the structural invariants."""

    def test_cruise_altitude_limits(self):
        plan = simple_plan()
        plan.cruise_altitude_ft = 65000

        assert plan.validation_errors() == ["Cruise altitude exceeds maximum (60,000 ft)"]

        plan.cruise_altitude_ft = -100
        assert plan.validation_errors() == ["Cruise altitude cannot be negative"]

    def test_endpoints_must_be_airports(self):
        """Test that non-generic plans start and end at airports."""
        plan = FlightPlan(legs=[Leg(LegType.INITIAL_FIX, IOW), Leg(LegType.DIRECT, OBH)])

        errors = plan.validation_errors()
        assert "First leg must reference an airport" in errors
        assert "Last leg must reference an airport" in errors

        plan.generic = True
        assert plan.validation_errors() == []

    def test_duplicate_consecutive_fix(self):
        """Test that the same fix twice in a row is a violation."""
        plan = simple_plan()
        plan.legs.insert(2, Leg(LegType.TRACK_TO_FIX, IOW))

        assert plan.validation_errors() == ["Duplicate consecutive fix: IOW"]

    def test_hold_may_repeat_fix(self):
        """Test that a hold at the previous fix is not a duplicate."""
        plan = simple_plan()
        plan.legs.insert(2, Leg(LegType.HOLD_TO_MANUAL, IOW))

        assert plan.validation_errors() == []

    def test_misplaced_endpoint_legs(self):
        """Test departure and destination categories away from the ends."""
        plan = simple_plan()
        plan.legs[1] = Leg(LegType.DIRECT, IOW, LegCategory.DESTINATION)

        errors = plan.validation_errors()
        assert "Destination leg at position 1" in errors
        assert any(error.startswith("Procedure order violated") for error in errors)

    def test_procedure_order(self):
        """Test that a STAR leg before an enroute leg is rejected."""
        plan = simple_plan()
        plan.legs[1] = Leg(LegType.DIRECT, IOW, LegCategory.STAR, procedure="LANDR2")

        errors = plan.validation_errors()
        assert errors == ["Procedure order violated: ENROUTE at position 2 follows STAR"]

    def test_one_procedure_per_kind(self):
        """Test that two different STARs are rejected."""
        plan = simple_plan()
        plan.legs[1] = Leg(LegType.DIRECT, IOW, LegCategory.STAR, procedure="LANDR2")
        plan.legs[2] = Leg(LegType.DIRECT, OBH, LegCategory.STAR, procedure="TSHNR1")

        assert plan.validation_errors() == ["More than one STAR in flight plan: LANDR2, TSHNR1"]

    def test_validate_raises(self):
        """Test that validate raises with every violation."""
        plan = simple_plan()
        plan.cruise_altitude_ft = -1
        plan.legs.insert(2, Leg(LegType.DIRECT, IOW))

        with pytest.raises(InvariantViolation) as excinfo:
            plan.validate()
        assert len(excinfo.value.violations) == 2


class TestDistances:
    """Test leg distance computation."""

    def test_direct_legs(self) -> None:
        """Test that fix-to-fix legs use great-circle distances."""
        plan = simple_plan()
        distances = plan.leg_distances()

        assert distances[0] == 0.0
        assert distances[1] == pytest.approx(distance_nm(KORD.coordinate, IOW.coordinate))
        assert plan.cumulative_distances()[-1] == pytest.approx(plan.total_distance_nm())

    def test_geometry_legs(self) -> None:
        """Test that computed geometry adds the gap to its start."""
        start = Coordinate(41.6, -92.5)
        plan = simple_plan()
        plan.legs[2] = Leg(
            LegType.TRACK_TO_FIX,
            OBH,
            geometry=(start, OBH.coordinate),
            distance_nm=distance_nm(start, OBH.coordinate),
        )

        expected = distance_nm(IOW.coordinate, start) + distance_nm(start, OBH.coordinate)
        assert plan.leg_distances()[2] == pytest.approx(expected)

    def test_missed_approach_not_counted(self) -> None:
        """Test that missed approach legs count 0 and keep the reference."""
        plan = simple_plan()
        with_missed = simple_plan()
        with_missed.legs.insert(
            3, Leg(LegType.DIRECT_TO_FIX, IOW, LegCategory.MISSED_APPROACH, procedure="I16R")
        )

        distances = with_missed.leg_distances()
        assert distances[3] == 0.0
        assert distances[4] == pytest.approx(plan.leg_distances()[3])
        assert with_missed.total_distance_nm() == pytest.approx(plan.total_distance_nm())


class TestActiveLeg:
    """Test active leg tracking."""

    def test_advance(self):
        plan = simple_plan()

        assert plan.get_current_leg().ident == "KORD"
        assert plan.advance_leg()
        assert plan.advance_leg()
        assert plan.advance_leg()
        assert not plan.advance_leg()
        assert plan.is_complete()

    def test_update_active_leg(self):
        """Test sequencing through legs whose termination was reached."""
        plan = simple_plan()

        assert plan.update_active_leg(Coordinate(41.97, -87.90)) == 1
        assert plan.update_active_leg(Coordinate(41.0, -90.0)) == 1
        assert plan.update_active_leg(IOW.coordinate) == 2


class TestSnapshots:
    """Test snapshot, restore and copy."""

    def test_restore(self):
        """Test that restoring a snapshot undoes every change."""
        plan = simple_plan()
        snapshot = plan.snapshot()

        plan.legs.pop(1)
        plan.cruise_altitude_ft = 12000
        plan.alternates.append(KORD)
        plan.restore(snapshot)

        assert plan.idents() == ["KORD", "IOW", "OBH", "KDEN"]
        assert plan.cruise_altitude_ft == 35000
        assert plan.alternates == []

    def test_from_snapshot(self):
        plan = simple_plan()
        assert FlightPlan.from_snapshot(plan.snapshot()) == plan

    def test_copy_is_independent(self):
        """Test that changing a copy leaves the original alone."""
        plan = simple_plan()
        copy = plan.copy()
        copy.legs.pop()

        assert len(plan.legs) == 4
