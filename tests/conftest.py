"""Pytest configuration and fixtures for all tests."""

import pytest

from flightroute.core.config import PlannerSettings
from flightroute.navigation.airways import Airway, AirwayDirection, AirwaySegment
from flightroute.navigation.fixes import Airport, RunwayEnd, Vor, Waypoint
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.navdata import InMemoryNavDatabase, NavDatabaseQuery
from flightroute.navigation.performance import AircraftPerformanceProfile

FIXES = [
    Airport("KJFK", "K6", Coordinate(40.6398, -73.7789), elevation_ft=13, name="Kennedy"),
    Airport("EINN", "EI", Coordinate(52.7020, -8.9248), elevation_ft=46, name="Shannon"),
    Airport("KORD", "K5", Coordinate(41.9786, -87.9048), elevation_ft=672, name="O'Hare"),
    Airport("KDEN", "K2", Coordinate(39.8617, -104.6731), elevation_ft=5434, name="Denver"),
    Airport("KLGA", "K6", Coordinate(40.7772, -73.8726), elevation_ft=21, name="LaGuardia"),
    Waypoint("CANDR", "K6", Coordinate(40.7500, -73.5500)),
    Waypoint("DEEZZ", "K6", Coordinate(40.9000, -74.2000)),
    Waypoint("DANNR", "K6", Coordinate(41.0000, -76.0000)),
    Vor("PSB", "K6", Coordinate(40.9165, -77.9930), frequency_mhz=115.5, has_dme=True),
    Vor("DJB", "K5", Coordinate(41.3577, -82.1620), frequency_mhz=104.4, has_dme=True),
    Vor("IOW", "K3", Coordinate(41.5190, -91.6130), frequency_mhz=116.2, has_dme=True),
    Vor("OBH", "K3", Coordinate(41.3760, -98.3540), frequency_mhz=114.8, has_dme=True),
    Waypoint("LANDR", "K2", Coordinate(40.0500, -103.0000)),
    Waypoint("DENVR", "K2", Coordinate(39.9500, -104.2000)),
    Waypoint("CEDAX", "K2", Coordinate(40.1000, -104.7000)),
    RunwayEnd(
        "RW16R",
        "K2",
        Coordinate(39.8900, -104.6900),
        elevation_ft=5434,
        airport_ident="KDEN",
        heading_deg=170.0,
    ),
    # Same ident near New York and near Denver
    Waypoint("ABBEY", "K6", Coordinate(40.9000, -73.4000)),
    Vor("ABBEY", "K2", Coordinate(39.9000, -104.0000), frequency_mhz=112.1),
]

SID_DEEZZ5 = {
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
    "transitions": {
        "DANNR": [{"leg_type": "TF", "fix_ident": "DANNR"}],
    },
}

SID_SKORR5 = {
    "airport": "KJFK",
    "name": "SKORR5",
    "kind": "SID",
    "runways": {
        "04L": [{"leg_type": "DF", "fix_ident": "CANDR"}],
        "31L": [{"leg_type": "VA", "course_deg": 310.0, "altitude1_ft": 1500.0}],
    },
    "common": [{"leg_type": "TF", "fix_ident": "DEEZZ"}],
}

STAR_LANDR2 = {
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
            "speed_descriptor": "-",
            "speed_limit_kts": 250.0,
        },
    ],
}

APPROACH_I16R = {
    "airport": "KDEN",
    "name": "I16R",
    "kind": "APPROACH",
    "runway": "16R",
    "transitions": {
        "DENVR": [
            {"leg_type": "IF", "fix_ident": "DENVR"},
            {"leg_type": "TF", "fix_ident": "CEDAX"},
        ],
    },
    "common": [
        {
            "leg_type": "IF",
            "fix_ident": "CEDAX",
            "altitude_descriptor": "+",
            "altitude1_ft": 8000.0,
        },
        {
            "leg_type": "CF",
            "fix_ident": "RW16R",
            "course_deg": 170.0,
            "altitude_descriptor": "@",
            "altitude1_ft": 5480.0,
        },
    ],
    "missed": [
        {
            "leg_type": "CA",
            "course_deg": 170.0,
            "altitude_descriptor": "+",
            "altitude1_ft": 7000.0,
        },
        {"leg_type": "DF", "fix_ident": "DENVR"},
        {"leg_type": "HM", "fix_ident": "DENVR", "course_deg": 350.0, "turn_direction": "R"},
    ],
}


def build_database() -> InMemoryNavDatabase:
    """Create the sample navigation database used across tests."""
    db = InMemoryNavDatabase()
    for fix in FIXES:
        db.add_fix(fix)

    def fix(ident: str, region: str | None = None):
        return db.find_fix_by_ident(ident, region)[0]

    db.add_airway(
        Airway(
            name="J60",
            fixes=[fix("DANNR"), fix("PSB"), fix("DJB"), fix("IOW"), fix("OBH")],
            segments=[AirwaySegment(min_altitude_ft=18000, max_altitude_ft=45000)] * 4,
        )
    )
    db.add_airway(
        Airway(name="Q42", fixes=[fix("PSB"), fix("DJB")], direction=AirwayDirection.FORWARD)
    )
    db.load_from_dict({"procedures": [SID_DEEZZ5, SID_SKORR5, STAR_LANDR2, APPROACH_I16R]})
    return db


@pytest.fixture
def nav_db():
    """Sample navigation database between New York, Chicago and Denver."""
    return build_database()


@pytest.fixture
def query(nav_db):
    """Caching query on the sample database."""
    return NavDatabaseQuery(nav_db)


@pytest.fixture
def settings():
    """Planner settings with defaults."""
    return PlannerSettings()


@pytest.fixture
def jet_performance():
    """Airliner-like performance: 1000 ft/nm climb, 500 ft/nm descent."""
    return AircraftPerformanceProfile(
        climb_speed_kts=150,
        climb_rate_fpm=2500,
        cruise_speed_kts=450,
        descent_speed_kts=300,
        descent_gradient_ft_per_nm=500,
        climb_fuel_flow_gph=1200,
        cruise_fuel_flow_gph=800,
        descent_fuel_flow_gph=400,
    )
