"""Tests for airway resolution."""

import pytest

from flightroute.navigation.airways import Airway, AirwayResolver, AirwaySegment
from flightroute.navigation.errors import (
    AirwayDegenerateRange,
    AirwayDirectionViolation,
    AirwayNotFound,
    FixNotOnAirway,
)
from flightroute.navigation.fixes import Waypoint
from flightroute.navigation.geo import Coordinate


@pytest.fixture
def resolver(query):
    return AirwayResolver(query)


def fix(query, ident):
    return query.resolve_fix(ident)


class TestAirway:
    """Test the Airway container."""

    def test_default_segments(self):
        """Test that missing segment data gives unrestricted segments."""
        fixes = [Waypoint(f"WPT{i}", "K1", Coordinate(40.0, -80.0 + i)) for i in range(3)]
        airway = Airway("V1", fixes)

        assert airway.segments == [AirwaySegment(), AirwaySegment()]
        assert airway.index_of(fixes[2]) == 2
        assert airway.fixes_named("WPT1") == [fixes[1]]

    def test_segment_count_mismatch(self):
        """Test that segments must join consecutive fixes."""
        fixes = [Waypoint("A1", "K1", Coordinate(40.0, -80.0)), Waypoint("B1", "K1", Coordinate(40.0, -81.0))]
        with pytest.raises(ValueError, match="2 fixes but 3 segments"):
            Airway("V1", fixes, segments=[AirwaySegment()] * 3)


class TestAirwayResolver:
    """Test AirwayResolver.resolve."""

    def test_forward(self, resolver, query):
        """Test a slice in stored order excluding the entry fix."""
        path = resolver.resolve("J60", fix(query, "DANNR"), fix(query, "IOW"))

        assert [f.ident for f in path.fixes] == ["PSB", "DJB", "IOW"]
        assert not path.reversed
        assert path.min_altitude_ft == 18000
        assert path.max_altitude_ft == 45000

    def test_reverse(self, resolver, query):
        """Test a slice against the stored order."""
        path = resolver.resolve("J60", fix(query, "OBH"), fix(query, "PSB"))

        assert [f.ident for f in path.fixes] == ["IOW", "DJB", "PSB"]
        assert path.reversed

    def test_unknown_airway(self, resolver, query):
        with pytest.raises(AirwayNotFound, match="Airway J999 not found"):
            resolver.resolve("J999", fix(query, "PSB"), fix(query, "DJB"))

    def test_same_entry_and_exit(self, resolver, query):
        """Test that entering and leaving at one fix is rejected."""
        with pytest.raises(AirwayDegenerateRange, match="entered and left at the same fix DANNR"):
            resolver.resolve("J60", fix(query, "DANNR"), fix(query, "DANNR"))

    def test_fix_not_on_airway(self, resolver, query):
        """Test entry and exit fixes missing from the airway."""
        with pytest.raises(FixNotOnAirway, match="CANDR is not on airway J60"):
            resolver.resolve("J60", fix(query, "CANDR"), fix(query, "IOW"))
        with pytest.raises(FixNotOnAirway, match="LANDR is not on airway J60"):
            resolver.resolve("J60", fix(query, "PSB"), fix(query, "LANDR"))

    def test_same_ident_other_point_is_not_on_airway(self, resolver, query):
        """Test that a look-alike fix with the airway ident does not match."""
        fake_psb = Waypoint("PSB", "K6", Coordinate(10.0, 10.0))
        with pytest.raises(FixNotOnAirway):
            resolver.resolve("J60", fake_psb, fix(query, "IOW"))

    def test_direction_allowed(self, resolver, query):
        """Test that a forward-only airway can be flown forward."""
        path = resolver.resolve("Q42", fix(query, "PSB"), fix(query, "DJB"))
        assert [f.ident for f in path.fixes] == ["DJB"]
        assert path.min_altitude_ft is None

    def test_direction_violation(self, resolver, query):
        """Test that a forward-only airway cannot be flown backward."""
        with pytest.raises(AirwayDirectionViolation, match="forward only, cannot fly DJB to PSB"):
            resolver.resolve("Q42", fix(query, "DJB"), fix(query, "PSB"))
