"""Reading and writing of ICAO-style route strings.

Grammar:
    FROM[/TIME] [SPEED ALT] [SID[.TRANS]] ENROUTE... [STAR[.TRANS]] TO[/TIME] [ALTERNATE...]

ENROUTE tokens are a bare ident, a coordinate or an "AIRWAY FIX" pair meaning
"via AIRWAY to FIX". The parser is purely lexical: it classifies tokens by
shape and position and leaves all database lookups to the RouteAssembler.

Typical usage:
    parser = RouteStringParser()
    result = parser.parse("KJFK N0450F350 MERIT J60 PSB KDEN")
    result.departure     # "KJFK"
    result.warnings      # tokens dropped while parsing
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from flightroute.core.logging_system import get_logger
from flightroute.navigation.errors import ParseError
from flightroute.navigation.fixes import FixKind
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.legs import Leg, LegCategory

if TYPE_CHECKING:
    from flightroute.navigation.flight_plan import FlightPlan

logger = get_logger(__name__)

FEET_PER_METER = 3.28084
KTS_PER_KMH = 1 / 1.852

_IDENT = re.compile(r"^[A-Z0-9]{2,6}$")
_ENDPOINT = re.compile(r"^(?P<ident>[A-Z0-9]{2,6})(?:/(?P<time>\d{4}))?$")
_AIRWAY = re.compile(r"^[A-Z]{1,2}\d{1,4}[A-Z]?$")
_PROCEDURE = re.compile(r"^(?P<name>[A-Z]{2,5}\d[A-Z]?)(?:\.(?P<transition>[A-Z0-9]{2,6}))?$")
_SPEED_ALTITUDE = re.compile(
    r"^(?P<speed_unit>[NKM])(?P<speed>\d{3,4})(?P<level_unit>[FASM])(?P<level>\d{3,4})$"
)
_COORDINATE = re.compile(
    r"^(?P<lat_deg>\d{2})(?P<lat_min>\d{2})?(?P<ns>[NS])"
    r"(?P<lon_deg>\d{3})(?P<lon_min>\d{2})?(?P<ew>[EW])$"
)


class TokenKind(Enum):
    """Classification of a route string token."""

    DEPARTURE = "departure"
    DESTINATION = "destination"
    ALTERNATE = "alternate"
    SPEED_ALTITUDE = "speed_altitude"
    SID = "sid"
    STAR = "star"
    WAYPOINT = "waypoint"
    AIRWAY_SEGMENT = "airway_segment"
    COORDINATE = "coordinate"


@dataclass(frozen=True)
class RouteToken:
    """Classified route string token.

    Attributes:
        kind: Token classification
        text: Token as written
        ident: Fix, airport or procedure ident
        airway: Airway name for AIRWAY_SEGMENT tokens
        transition: Transition name for SID and STAR tokens
        time: HHMM time suffix of departure and destination
        coordinate: Position of COORDINATE tokens
    """

    kind: TokenKind
    text: str
    ident: str
    airway: str | None = None
    transition: str | None = None
    time: str | None = None
    coordinate: Coordinate | None = None


@dataclass
class ParseResult:
    """Best-effort result of parsing a route string.

    Attributes:
        tokens: Recognized tokens in order
        warnings: Messages for dropped tokens
        departure: Departure ident
        destination: Destination ident
        alternates: Alternate airport idents
        speed_kts: Cruise speed from the speed/level group
        mach: Cruise Mach number if the speed was given as Mach
        cruise_altitude_ft: Cruise altitude from the speed/level group
    """

    tokens: list[RouteToken] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    departure: str = ""
    destination: str = ""
    alternates: list[str] = field(default_factory=list)
    speed_kts: float | None = None
    mach: float | None = None
    cruise_altitude_ft: float | None = None

    def tokens_of(self, kind: TokenKind) -> list[RouteToken]:
        return [token for token in self.tokens if token.kind is kind]

    @property
    def sid(self) -> RouteToken | None:
        found = self.tokens_of(TokenKind.SID)
        return found[0] if found else None

    @property
    def star(self) -> RouteToken | None:
        found = self.tokens_of(TokenKind.STAR)
        return found[0] if found else None

    @property
    def enroute(self) -> list[RouteToken]:
        """Waypoint, coordinate and airway tokens in order."""
        return [
            token
            for token in self.tokens
            if token.kind
            in (TokenKind.WAYPOINT, TokenKind.COORDINATE, TokenKind.AIRWAY_SEGMENT)
        ]


def parse_coordinate(text: str) -> Coordinate | None:
    """Parse "4620N07805W" (degrees and minutes) or "46N078W" (degrees)."""
    match = _COORDINATE.match(text)
    if match is None:
        return None
    latitude = int(match["lat_deg"]) + int(match["lat_min"] or 0) / 60.0
    longitude = int(match["lon_deg"]) + int(match["lon_min"] or 0) / 60.0
    if match["ns"] == "S":
        latitude = -latitude
    if match["ew"] == "W":
        longitude = -longitude
    try:
        return Coordinate(latitude, longitude)
    except ValueError:
        return None


def format_coordinate(coordinate: Coordinate) -> str:
    """Format a coordinate as degrees and minutes ("4620N07805W")."""

    def split(value: float) -> tuple[int, int]:
        total_minutes = int(round(abs(value) * 60))
        return total_minutes // 60, total_minutes % 60

    lat_deg, lat_min = split(coordinate.latitude)
    lon_deg, lon_min = split(coordinate.longitude)
    ns = "N" if coordinate.latitude >= 0 else "S"
    ew = "E" if coordinate.longitude >= 0 else "W"
    return f"{lat_deg:02d}{lat_min:02d}{ns}{lon_deg:03d}{lon_min:02d}{ew}"


def mach_to_kts(mach: float, altitude_ft: float) -> float:
    """True airspeed for a Mach number in the standard atmosphere."""
    temperature_k = max(288.15 - 0.0019812 * altitude_ft, 216.65)
    return mach * 38.967854 * math.sqrt(temperature_k)


def parse_speed_altitude(text: str) -> tuple[float, float | None, float] | None:
    """Parse an ICAO speed/level group.

    Speed is N (knots), K (km/h) or M (Mach in hundredths); level is F or A
    (hundreds of feet), S or M (tens of metres).

    Args:
        text: Token such as "N0450F350", "M082F370" or "K0830S1130".

    Returns:
        Tuple of (speed in knots, Mach or None, altitude in feet) or None if
        the token is no speed/level group.
    """
    match = _SPEED_ALTITUDE.match(text)
    if match is None:
        return None

    level = int(match["level"])
    if match["level_unit"] in ("F", "A"):
        altitude_ft = level * 100.0
    else:
        altitude_ft = level * 10.0 * FEET_PER_METER

    speed = int(match["speed"])
    mach = None
    if match["speed_unit"] == "N":
        speed_kts = float(speed)
    elif match["speed_unit"] == "K":
        speed_kts = speed * KTS_PER_KMH
    else:
        mach = speed / 100.0
        speed_kts = mach_to_kts(mach, altitude_ft)

    return speed_kts, mach, altitude_ft


class RouteStringParser:
    """Tokenizes route strings.

    Attributes:
        read_alternates: Treat trailing airports after the destination as
            alternates
        is_airport: Predicate telling airport idents apart, needed to find
            where alternates start

    Examples:
        >>> parser = RouteStringParser()
        >>> result = parser.parse("KORD DCT KDEN")
        >>> [t.ident for t in result.tokens]
        ['KORD', 'KDEN']
    """

    def __init__(
        self,
        read_alternates: bool = False,
        is_airport: Callable[[str], bool] | None = None,
    ) -> None:
        self.read_alternates = read_alternates
        self.is_airport = is_airport

    def parse(self, text: str) -> ParseResult:
        """Parse a route string into classified tokens.

        Args:
            text: Route string, case-insensitive, whitespace separated.

        Returns:
            ParseResult with tokens and warnings for dropped tokens.

        Raises:
            ParseError: If the departure or destination is missing.
        """
        words = [word for word in text.upper().split() if word != "DCT"]
        result = ParseResult()

        if len(words) < 2:
            raise ParseError(f"Route needs a departure and a destination: {text!r}")

        departure = _ENDPOINT.match(words[0])
        if departure is None:
            raise ParseError(f"Invalid departure: {words[0]}")

        destination_index = self._destination_index(words)
        destination = _ENDPOINT.match(words[destination_index])
        if destination is None:
            raise ParseError(f"Invalid destination: {words[destination_index]}")

        result.departure = departure["ident"]
        result.tokens.append(
            RouteToken(
                TokenKind.DEPARTURE, words[0], departure["ident"], time=departure["time"]
            )
        )

        self._parse_enroute(words[1:destination_index], result)

        result.destination = destination["ident"]
        result.tokens.append(
            RouteToken(
                TokenKind.DESTINATION,
                words[destination_index],
                destination["ident"],
                time=destination["time"],
            )
        )

        for word in words[destination_index + 1 :]:
            result.alternates.append(word)
            result.tokens.append(RouteToken(TokenKind.ALTERNATE, word, word))

        logger.debug(
            "Parsed route %s -> %s: %d tokens, %d warnings",
            result.departure,
            result.destination,
            len(result.tokens),
            len(result.warnings),
        )
        return result

    def _destination_index(self, words: list[str]) -> int:
        last = len(words) - 1
        if not self.read_alternates or self.is_airport is None:
            return last

        # First airport of the trailing airport run is the destination
        index = last
        while index > 1 and self._is_airport_word(words[index - 1]):
            index -= 1
        return index

    def _is_airport_word(self, word: str) -> bool:
        match = _ENDPOINT.match(word)
        return match is not None and self.is_airport(match["ident"])

    def _parse_enroute(self, words: list[str], result: ParseResult) -> None:
        i = 0
        if words:
            speed_altitude = parse_speed_altitude(words[0])
            if speed_altitude is not None:
                result.speed_kts, result.mach, result.cruise_altitude_ft = speed_altitude
                result.tokens.append(RouteToken(TokenKind.SPEED_ALTITUDE, words[0], words[0]))
                i = 1

        sid_index = i if i < len(words) and self._is_procedure(words[i]) else None
        star_index = None
        last = len(words) - 1
        if (
            words
            and last != sid_index
            and self._is_procedure(words[-1])
            and not (last > 0 and _AIRWAY.match(words[last - 1]))
        ):
            star_index = last

        while i < len(words):
            word = words[i]

            if i in (sid_index, star_index):
                match = _PROCEDURE.match(word)
                kind = TokenKind.SID if i == sid_index else TokenKind.STAR
                result.tokens.append(
                    RouteToken(kind, word, match["name"], transition=match["transition"])
                )
                i += 1
                continue

            coordinate = parse_coordinate(word)
            if coordinate is not None:
                result.tokens.append(
                    RouteToken(TokenKind.COORDINATE, word, word, coordinate=coordinate)
                )
                i += 1
                continue

            following = words[i + 1] if i + 1 < len(words) and i + 1 != star_index else None
            if _AIRWAY.match(word) and following is not None:
                if _AIRWAY.match(following) and parse_coordinate(following) is None:
                    self._warn(
                        result, f"Airway {word} is followed by airway {following}. Ignoring {word}."
                    )
                    i += 1
                    continue
                if _IDENT.match(following) or parse_coordinate(following) is not None:
                    result.tokens.append(
                        RouteToken(
                            TokenKind.AIRWAY_SEGMENT,
                            f"{word} {following}",
                            following,
                            airway=word,
                            coordinate=parse_coordinate(following),
                        )
                    )
                    i += 2
                    continue

            if _IDENT.match(word):
                result.tokens.append(RouteToken(TokenKind.WAYPOINT, word, word))
            else:
                self._warn(result, f"Unrecognized token {word}. Ignoring.")
            i += 1

    @staticmethod
    def _is_procedure(word: str) -> bool:
        # Dotted names are always procedures, plain ones only if no airway
        if "." in word:
            return _PROCEDURE.match(word) is not None
        return _PROCEDURE.match(word) is not None and _AIRWAY.match(word) is None

    @staticmethod
    def _warn(result: ParseResult, message: str) -> None:
        logger.warning("%s", message)
        result.warnings.append(message)


def build_route_string(
    plan: "FlightPlan",
    waypoints_only: bool = False,
    include_speed_altitude: bool = False,
    include_alternates: bool = True,
) -> str:
    """Write a route string for a flight plan.

    Consecutive legs on the same airway are collapsed into one "AIRWAY FIX"
    pair and procedure legs are written as SID/STAR names. With
    waypoints_only every fix is written as a bare ident instead, which
    re-parses into the same fix sequence.

    Args:
        plan: Flight plan to describe.
        waypoints_only: Write fixes only, no airways and procedure names.
        include_speed_altitude: Add the ICAO speed/level group.
        include_alternates: Append alternate airports.

    Returns:
        Route string, empty for a plan without legs.
    """
    if not plan.legs:
        return ""

    items: list[str] = [plan.legs[0].ident]
    if include_speed_altitude:
        items.append(f"N{plan.cruise_speed_kts:04.0f}F{plan.cruise_altitude_ft / 100:03.0f}")

    middle = plan.legs[1:-1] if len(plan.legs) > 1 else []

    if waypoints_only:
        for leg in middle:
            if leg.fix is not None and leg.category is not LegCategory.MISSED_APPROACH:
                items.append(_fix_text(leg))
    else:
        if plan.sid is not None and any(leg.category.is_departure_procedure for leg in middle):
            items.append(plan.sid.display_name)

        enroute = [leg for leg in middle if leg.category is LegCategory.ENROUTE]
        for i, leg in enumerate(enroute):
            if leg.fix is None:
                continue
            if leg.airway:
                following = enroute[i + 1] if i + 1 < len(enroute) else None
                if following is not None and following.airway == leg.airway:
                    continue
                items.append(leg.airway)
            items.append(_fix_text(leg))

        if plan.star is not None and any(leg.category in _STAR_SET for leg in middle):
            items.append(plan.star.display_name)

    if len(plan.legs) > 1:
        items.append(plan.legs[-1].ident)

    if include_alternates:
        items.extend(alternate.ident for alternate in plan.alternates)

    return " ".join(_dedupe(items))


_STAR_SET = frozenset({LegCategory.STAR, LegCategory.STAR_TRANSITION})


def _fix_text(leg: Leg) -> str:
    if leg.fix.kind is FixKind.USER:
        return format_coordinate(leg.fix.coordinate)
    return leg.fix.ident


def _dedupe(items: list[str]) -> list[str]:
    result: list[str] = []
    for item in items:
        if not result or result[-1] != item:
            result.append(item)
    return result
