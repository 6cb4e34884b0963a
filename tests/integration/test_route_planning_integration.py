"""Integration tests for route planning.

Tests the path from configuration and navigation data files through route
assembly, editing and the vertical profile.
"""

import pytest
import yaml

from flightroute.core.config import ConfigLoader, PlannerSettings
from flightroute.navigation.events import ProfileUpdatedEvent
from flightroute.navigation.legs import LegCategory
from flightroute.navigation.navdata import InMemoryNavDatabase, NavDatabaseQuery
from flightroute.navigation.performance import AircraftPerformanceProfile
from flightroute.navigation.session import FlightPlanSession

FIXES_CSV = """ident,region,type,latitude,longitude,elevation_ft,name,frequency
KJFK,K6,AIRPORT,40.6398,-73.7789,13,Kennedy,
KDEN,K2,AIRPORT,39.8617,-104.6731,5434,Denver,
CANDR,K6,WAYPOINT,40.7500,-73.5500,,,
DEEZZ,K6,WAYPOINT,40.9000,-74.2000,,,
DANNR,K6,WAYPOINT,41.0000,-76.0000,,,
PSB,K6,VOR,40.9165,-77.9930,,Philipsburg,115.5
DJB,K5,VOR,41.3577,-82.1620,,Dryer,104.4
IOW,K3,VOR,41.5190,-91.6130,,Iowa City,116.2
OBH,K3,VOR,41.3760,-98.3540,,Wolbach,114.8
LANDR,K2,WAYPOINT,40.0500,-103.0000,,,
DENVR,K2,WAYPOINT,39.9500,-104.2000,,,
BROKEN,K2,WAYPOINT,not-a-latitude,-104.0,,,
"""

NAVDATA = {
    "airways": [
        {
            "name": "J60",
            "fixes": [{"ident": ident} for ident in ("DANNR", "PSB", "DJB", "IOW", "OBH")],
            "segments": [{"min_altitude_ft": 18000, "max_altitude_ft": 45000}] * 4,
        },
        {"name": "J99", "fixes": [{"ident": "PSB"}, {"ident": "NOWHERE"}]},
    ],
    "procedures": [
        {
            "airport": "KJFK",
            "name": "DEEZZ5",
            "kind": "SID",
            "runways": {
                "04L": [
                    {
                        "leg_type": "CA",
                        "course_deg": 44.0,
                        "altitude_descriptor": "+",
                        "altitude1_ft": 1000.0,
                    },
                    {"leg_type": "DF", "fix_ident": "CANDR"},
                ],
            },
            "common": [
                {
                    "leg_type": "TF",
                    "fix_ident": "DEEZZ",
                    "altitude_descriptor": "+",
                    "altitude1_ft": 5000.0,
                },
            ],
            "transitions": {"DANNR": [{"leg_type": "TF", "fix_ident": "DANNR"}]},
        },
        {
            "airport": "KDEN",
            "name": "LANDR2",
            "kind": "STAR",
            "transitions": {
                "OBH": [
                    {"leg_type": "IF", "fix_ident": "OBH"},
                    {"leg_type": "TF", "fix_ident": "LANDR"},
                ],
            },
            "common": [
                {
                    "leg_type": "IF",
                    "fix_ident": "LANDR",
                    "altitude_descriptor": "B",
                    "altitude1_ft": 17000.0,
                    "altitude2_ft": 12000.0,
                },
                {
                    "leg_type": "TF",
                    "fix_ident": "DENVR",
                    "altitude_descriptor": "@",
                    "altitude1_ft": 9000.0,
                },
            ],
        },
    ],
}

PLANNER_YAML = """
planner:
  default_cruise_altitude_ft: 12000
  undo_depth: 10
aircraft:
  climb_speed_kts: 280
  climb_rate_fpm: 2500
  cruise_speed_kts: 450
  descent_speed_kts: 300
  descent_rate_fpm: 1800
  cruise_fuel_flow_gph: 800
"""

FULL_ROUTE = "KJFK N0450F350 DEEZZ5.DANNR DANNR J60 OBH LANDR2.OBH KDEN"


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "fixes.csv").write_text(FIXES_CSV, encoding="utf-8")
    (tmp_path / "navdata.yaml").write_text(yaml.safe_dump(NAVDATA), encoding="utf-8")
    (tmp_path / "planner.yaml").write_text(PLANNER_YAML, encoding="utf-8")
    return tmp_path


@pytest.fixture
def session(data_dir):
    config = ConfigLoader.load(data_dir / "planner.yaml")
    db = InMemoryNavDatabase()
    db.load_fixes_from_csv(data_dir / "fixes.csv")
    db.load_from_yaml(data_dir / "navdata.yaml")

    return FlightPlanSession(
        NavDatabaseQuery(db),
        AircraftPerformanceProfile.from_config(config),
        PlannerSettings.from_config(config),
    )


class TestRoutePlanningIntegration:
    """Test route planning from data files to the vertical profile."""

    def test_data_files_loaded(self, data_dir):
        """Test that invalid rows and airways are skipped."""
        db = InMemoryNavDatabase()

        assert db.load_fixes_from_csv(data_dir / "fixes.csv") == 11
        assert db.load_from_yaml(data_dir / "navdata.yaml") == (1, 2)

    def test_full_route_and_profile(self, session):
        """Test assembling a route with procedures and computing its profile."""
        warnings = session.load_route_string(FULL_ROUTE)
        plan = session.plan
        profile = session.require_profile()

        assert warnings == []
        assert plan.idents() == [
            "KJFK",
            "(1000)",
            "CANDR",
            "DEEZZ",
            "DANNR",
            "PSB",
            "DJB",
            "IOW",
            "OBH",
            "LANDR",
            "DENVR",
            "KDEN",
        ]
        assert plan.cruise_altitude_ft == 35000
        assert profile.top_of_climb_nm == pytest.approx((35000 - 13) * 280 / (2500 * 60), abs=0.1)
        assert profile.top_of_climb_nm < profile.top_of_descent_nm < profile.total_distance_nm
        assert profile.leg_altitudes_ft[10] == pytest.approx(9000.0)
        assert 12000 <= profile.leg_altitudes_ft[9] <= 17000
        assert profile.is_feasible

    def test_default_cruise_from_config(self, session):
        session.load_route_string("KJFK DCT KDEN")
        assert session.profile.cruise_altitude_ft == 12000

    def test_route_strings(self, session):
        """Test writing the plan back out and reloading the waypoint form."""
        session.load_route_string(FULL_ROUTE)
        idents = [ident for ident in session.plan.idents() if ident != "(1000)"]

        assert session.route_string() == "KJFK DEEZZ5.DANNR J60 IOW LANDR2.OBH KDEN"

        waypoints = session.route_string(waypoints_only=True)
        session.load_route_string(waypoints)

        assert session.plan.idents() == idents
        assert not session.plan.has_procedures

    def test_editing_session(self, session):
        """Test edits, undo and the profile updates they cause."""
        revisions = []
        session.on_profile_updated(lambda event: revisions.append(event.revision))
        session.load_route_string(FULL_ROUTE)
        with_procedures = session.plan.snapshot()

        session.assembler.remove_procedures([LegCategory.STAR, LegCategory.STAR_TRANSITION])
        assert session.plan.star is None
        assert session.plan.idents()[-2:] == ["IOW", "KDEN"]

        session.assembler.reverse()
        assert session.plan.idents()[0] == "KDEN"
        assert session.plan.sid is None

        assert session.undo()
        assert session.undo()
        assert session.plan.snapshot() == with_procedures
        assert revisions == [1, 2, 3, 4, 5]
        assert session.profile.cruise_altitude_ft == 35000

    def test_profile_event_carries_error(self, session):
        """Test that a plan without cruise altitude publishes the error."""
        events = []
        session.event_bus.subscribe(ProfileUpdatedEvent, events.append)
        session.load_route_string("KJFK DCT KDEN")
        session.assembler.set_cruise_altitude(0)

        assert events[-1].profile is None
        assert events[-1].error == "Cruise altitude is not set"
