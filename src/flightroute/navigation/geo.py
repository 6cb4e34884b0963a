"""Great-circle geometry on a spherical earth.

All coordinates are decimal degrees (latitude -90..90, longitude -180..180),
all distances nautical miles and all courses true degrees in [0, 360).

Typical usage:
    from flightroute.navigation.geo import Coordinate

    kjfk = Coordinate(40.6398, -73.7789)
    einn = Coordinate(52.7020, -8.9248)
    kjfk.distance_to(einn)   # ~2690 NM
    kjfk.bearing_to(einn)    # ~51 degrees
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_NM = 3440.065


@dataclass(frozen=True)
class Coordinate:
    """A point on the earth surface.

    Attributes:
        latitude: Decimal degrees, negative south.
        longitude: Decimal degrees, negative west.
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude must be between -90 and 90 degrees, got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(
                f"Longitude must be between -180 and 180 degrees, got {self.longitude}"
            )

    def distance_to(self, other: "Coordinate") -> float:
        """Great-circle distance to another coordinate in nautical miles."""
        return distance_nm(self, other)

    def bearing_to(self, other: "Coordinate") -> float:
        """Initial true course to another coordinate in degrees."""
        return bearing_deg(self, other)

    def offset(self, course: float, distance: float) -> "Coordinate":
        """Point reached by flying the given course for the given distance."""
        return destination(self, course, distance)

    def __str__(self) -> str:
        return f"({self.latitude:.5f}, {self.longitude:.5f})"


def normalize_course(course: float) -> float:
    """Normalize a course to [0, 360)."""
    result = course % 360.0
    # -1e-15 % 360 gives 360.0
    return 0.0 if result >= 360.0 else result


def _normalize_longitude(lon: float) -> float:
    return (lon + 540.0) % 360.0 - 180.0


def distance_nm(a: Coordinate, b: Coordinate) -> float:
    """Calculate great circle distance between two coordinates.

    Uses the Haversine formula for accuracy over short and large distances.

    Args:
        a: First coordinate.
        b: Second coordinate.

    Returns:
        Distance in nautical miles.
    """
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(h)))

    return c * EARTH_RADIUS_NM


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial true course from a to b.

    Returns:
        Course in degrees, 0 when both points coincide.
    """
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    if abs(x) < 1e-15 and abs(y) < 1e-15:
        return 0.0
    return normalize_course(math.degrees(math.atan2(y, x)))


def destination(start: Coordinate, course: float, distance: float) -> Coordinate:
    """Point at the given course and distance from start.

    Args:
        start: Starting coordinate.
        course: True course in degrees.
        distance: Distance in nautical miles.

    Returns:
        Destination coordinate.
    """
    angular = distance / EARTH_RADIUS_NM
    lat1 = math.radians(start.latitude)
    lon1 = math.radians(start.longitude)
    crs = math.radians(course)

    lat2 = math.asin(
        max(
            -1.0,
            min(
                1.0,
                math.sin(lat1) * math.cos(angular)
                + math.cos(lat1) * math.sin(angular) * math.cos(crs),
            ),
        )
    )
    lon2 = lon1 + math.atan2(
        math.sin(crs) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )

    return Coordinate(math.degrees(lat2), _normalize_longitude(math.degrees(lon2)))


def intersect(
    p1: Coordinate, course1: float, p2: Coordinate, course2: float
) -> Coordinate | None:
    """Intersection of two great-circle paths given by start point and course.

    Args:
        p1: Start of the first path.
        course1: True course of the first path.
        p2: Start of the second path.
        course2: True course of the second path.

    Returns:
        The intersection ahead of both paths, or None for parallel or
        diverging paths.
    """
    lat1, lon1 = math.radians(p1.latitude), math.radians(p1.longitude)
    lat2, lon2 = math.radians(p2.latitude), math.radians(p2.longitude)
    crs13, crs23 = math.radians(course1), math.radians(course2)
    dlat, dlon = lat2 - lat1, lon2 - lon1

    d12 = 2 * math.asin(
        min(
            1.0,
            math.sqrt(
                math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
            ),
        )
    )
    if d12 < 1e-12:
        return p1

    cos_a = (math.sin(lat2) - math.sin(lat1) * math.cos(d12)) / (math.sin(d12) * math.cos(lat1))
    cos_b = (math.sin(lat1) - math.sin(lat2) * math.cos(d12)) / (math.sin(d12) * math.cos(lat2))
    theta_a = math.acos(max(-1.0, min(1.0, cos_a)))
    theta_b = math.acos(max(-1.0, min(1.0, cos_b)))

    if math.sin(dlon) > 0:
        crs12, crs21 = theta_a, 2 * math.pi - theta_b
    else:
        crs12, crs21 = 2 * math.pi - theta_a, theta_b

    alpha1 = crs13 - crs12
    alpha2 = crs21 - crs23

    if abs(math.sin(alpha1)) < 1e-12 and abs(math.sin(alpha2)) < 1e-12:
        return None
    if math.sin(alpha1) * math.sin(alpha2) < 0:
        return None

    cos_alpha3 = -math.cos(alpha1) * math.cos(alpha2) + math.sin(alpha1) * math.sin(
        alpha2
    ) * math.cos(d12)
    d13 = math.atan2(
        math.sin(d12) * math.sin(alpha1) * math.sin(alpha2),
        math.cos(alpha2) + math.cos(alpha1) * cos_alpha3,
    )
    if d13 < 0:
        return None

    lat3 = math.asin(
        max(
            -1.0,
            min(1.0, math.sin(lat1) * math.cos(d13) + math.cos(lat1) * math.sin(d13) * math.cos(crs13)),
        )
    )
    dlon13 = math.atan2(
        math.sin(crs13) * math.sin(d13) * math.cos(lat1),
        math.cos(d13) - math.sin(lat1) * math.sin(lat3),
    )

    return Coordinate(math.degrees(lat3), _normalize_longitude(math.degrees(lon1 + dlon13)))


def turn_angle(start_bearing: float, end_bearing: float, clockwise: bool) -> float:
    """Angle swept when turning from one bearing to another.

    Args:
        start_bearing: Bearing at the start of the turn.
        end_bearing: Bearing at the end of the turn.
        clockwise: True for a right turn.

    Returns:
        Swept angle in degrees, in [0, 360).
    """
    if clockwise:
        return normalize_course(end_bearing - start_bearing)
    return normalize_course(start_bearing - end_bearing)


def arc_points(
    center: Coordinate,
    radius: float,
    start_bearing: float,
    end_bearing: float,
    clockwise: bool,
    step_deg: float = 5.0,
) -> list[Coordinate]:
    """Sample an arc of constant radius around a center point.

    Bearings are measured from the center to the arc. Both end points are
    included.

    Args:
        center: Arc center.
        radius: Arc radius in nautical miles.
        start_bearing: Bearing from center to the arc start.
        end_bearing: Bearing from center to the arc end.
        clockwise: Direction of flight around the center.
        step_deg: Angular sampling interval.

    Returns:
        Points along the arc from start to end.
    """
    sweep = turn_angle(start_bearing, end_bearing, clockwise)
    steps = max(1, int(math.ceil(sweep / step_deg)))
    sign = 1.0 if clockwise else -1.0

    return [
        destination(center, normalize_course(start_bearing + sign * sweep * i / steps), radius)
        for i in range(steps + 1)
    ]


def arc_length_nm(radius: float, sweep_deg: float) -> float:
    """Length of an arc with the given radius and swept angle."""
    return radius * math.radians(sweep_deg)


def distance_termination(
    start: Coordinate,
    course: float,
    reference: Coordinate,
    target_distance: float,
    max_distance: float = 250.0,
) -> Coordinate | None:
    """Point along a course where the distance to a reference reaches a target.

    Used for legs terminating at a DME distance. The course is searched for
    the first crossing of the target distance.

    Args:
        start: Start of the course line.
        course: True course flown.
        reference: Reference point, usually a DME station.
        target_distance: Distance from the reference ending the leg.
        max_distance: Maximum distance searched along the course.

    Returns:
        Termination point or None if the course never reaches the distance.
    """
    step = 0.5
    previous = distance_nm(start, reference) - target_distance
    if abs(previous) < 1e-6:
        return start

    travelled = 0.0
    while travelled < max_distance:
        low, high = travelled, travelled + step
        current = distance_nm(destination(start, course, high), reference) - target_distance
        if previous * current <= 0:
            # Bisect the bracket
            for _ in range(40):
                mid = (low + high) / 2
                value = distance_nm(destination(start, course, mid), reference) - target_distance
                if previous * value <= 0:
                    high = mid
                else:
                    low, previous = mid, value
            return destination(start, course, high)
        previous = current
        travelled = high

    return None
