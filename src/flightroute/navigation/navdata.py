"""Navigation database access for route resolution.

This module provides the read-only repository interface the route engine
consumes, an in-memory implementation loadable from CSV and YAML files, and
NavDatabaseQuery, which adds key-based caching and deterministic
disambiguation of idents on top of any repository.

Typical usage:
    db = InMemoryNavDatabase()
    db.load_fixes_from_csv("data/navigation/fixes.csv")
    db.load_from_yaml("data/navigation/airways_procedures.yaml")

    query = NavDatabaseQuery(db)
    fix = query.resolve_fix("MERIT", reference=kjfk.coordinate)
"""

import csv
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

import yaml

from flightroute.core.logging_system import get_logger
from flightroute.navigation.airways import Airway, AirwayDirection, AirwaySegment
from flightroute.navigation.errors import AmbiguousFix, FixNotFound
from flightroute.navigation.fixes import KIND_PRIORITY, Airport, Fix, FixKind, make_fix
from flightroute.navigation.geo import Coordinate, distance_nm
from flightroute.navigation.procedures import LegSection, ProcedureKind, ProcedureRecord, RawLeg

logger = get_logger(__name__)

T = TypeVar("T")

# Candidates closer than this to each other's reference distance are a tie
_TIE_DISTANCE_NM = 0.01


class NavigationDatabase(ABC):
    """Read-only repository of fixes, airways and procedure legs.

    Implementations must be safe for concurrent readers; the route engine
    never writes through this interface.
    """

    @abstractmethod
    def find_fix_by_ident(self, ident: str, region: str | None = None) -> list[Fix]:
        """Find all fixes with the given ident, optionally in one region."""

    @abstractmethod
    def get_airway(self, name: str) -> Airway | None:
        """Get an airway by name."""

    @abstractmethod
    def get_procedure(self, airport_ident: str, name: str) -> ProcedureRecord | None:
        """Get the stored record of a procedure."""

    @abstractmethod
    def get_procedure_legs(
        self,
        airport_ident: str,
        procedure: str,
        transition: str | None = None,
        runway: str | None = None,
    ) -> list[RawLeg]:
        """Get raw procedure legs in database order for a runway and transition."""


class InMemoryNavDatabase(NavigationDatabase):
    """Navigation database held in dictionaries.

    Attributes:
        fixes: Mapping of ident to all fixes carrying it
        airways: Mapping of airway name to airway
        procedures: Mapping of (airport ident, procedure name) to record

    Examples:
        >>> db = InMemoryNavDatabase()
        >>> db.load_fixes_from_csv("data/navigation/fixes.csv")
        >>> db.find_fix_by_ident("JFK")
    """

    def __init__(self) -> None:
        """Initialize empty navigation database."""
        self.fixes: dict[str, list[Fix]] = {}
        self.airways: dict[str, Airway] = {}
        self.procedures: dict[tuple[str, str], ProcedureRecord] = {}

    def add_fix(self, fix: Fix) -> None:
        """Add a fix to the database.

        A fix with the same identity replaces the stored one.
        """
        entries = self.fixes.setdefault(fix.ident, [])
        for i, existing in enumerate(entries):
            if existing.same_point(fix):
                entries[i] = fix
                break
        else:
            entries.append(fix)
        logger.debug("Added fix: %s", fix)

    def add_airway(self, airway: Airway) -> None:
        self.airways[airway.name] = airway
        logger.debug("Added airway %s with %d fixes", airway.name, len(airway.fixes))

    def add_procedure(self, record: ProcedureRecord) -> None:
        self.procedures[(record.airport_ident, record.name)] = record
        logger.debug("Added %s %s at %s", record.kind.value, record.name, record.airport_ident)

    def find_fix_by_ident(self, ident: str, region: str | None = None) -> list[Fix]:
        candidates = self.fixes.get(ident, [])
        if region:
            candidates = [fix for fix in candidates if fix.region == region]
        return list(candidates)

    def get_airway(self, name: str) -> Airway | None:
        return self.airways.get(name)

    def get_procedure(self, airport_ident: str, name: str) -> ProcedureRecord | None:
        return self.procedures.get((airport_ident, name))

    def get_procedure_legs(
        self,
        airport_ident: str,
        procedure: str,
        transition: str | None = None,
        runway: str | None = None,
    ) -> list[RawLeg]:
        record = self.get_procedure(airport_ident, procedure)
        if record is None:
            return []
        return record.ordered_legs(runway, transition)

    def find_fixes_near(
        self, position: Coordinate, radius_nm: float, kind: FixKind | None = None
    ) -> list[Fix]:
        """Find fixes within radius of position.

        Args:
            position: Center of the search
            radius_nm: Search radius in nautical miles
            kind: Optional filter by fix kind

        Returns:
            Fixes within radius, closest first
        """
        results = []
        for entries in self.fixes.values():
            for fix in entries:
                if kind and fix.kind is not kind:
                    continue
                distance = distance_nm(position, fix.coordinate)
                if distance <= radius_nm:
                    results.append((distance, fix))

        results.sort(key=lambda x: x[0])
        return [fix for _, fix in results]

    def load_fixes_from_csv(self, csv_path: str | Path) -> int:
        """Load fixes from CSV file.

        Expected CSV format:
            ident,region,type,latitude,longitude,elevation_ft,name,frequency

        type is one of the FixKind names. frequency is MHz for VOR and kHz
        for NDB rows and ignored otherwise.

        Args:
            csv_path: Path to CSV file

        Returns:
            Number of fixes loaded

        Raises:
            FileNotFoundError: If CSV file doesn't exist
        """
        path = Path(csv_path)
        if not path.exists():
            raise FileNotFoundError(f"Fix CSV not found: {csv_path}")

        count = 0
        with open(path, encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)

            for row in reader:
                try:
                    self.add_fix(self._fix_from_row(row))
                    count += 1
                except (KeyError, ValueError) as e:
                    logger.warning("Skipping invalid fix row: %s", e)

        logger.info("Loaded %d fixes from %s", count, csv_path)
        return count

    @staticmethod
    def _fix_from_row(row: dict[str, str]) -> Fix:
        kind = FixKind[row["type"].strip().upper()]
        elevation = row.get("elevation_ft") or ""
        fields: dict[str, Any] = {
            "ident": row["ident"].strip(),
            "region": (row.get("region") or "").strip(),
            "coordinate": Coordinate(float(row["latitude"]), float(row["longitude"])),
            "elevation_ft": float(elevation) if elevation.strip() else None,
            "name": (row.get("name") or "").strip(),
        }
        frequency = (row.get("frequency") or "").strip()
        if frequency and kind is FixKind.VOR:
            fields["frequency_mhz"] = float(frequency)
        elif frequency and kind is FixKind.NDB:
            fields["frequency_khz"] = float(frequency)
        return make_fix(kind, **fields)

    def load_from_yaml(self, yaml_path: str | Path) -> tuple[int, int]:
        """Load airways and procedures from a YAML file.

        Fixes referenced by airways must be loaded before. Airways with
        unknown fixes and malformed procedures are skipped with a warning.

        Args:
            yaml_path: Path to YAML file with "airways" and "procedures" lists

        Returns:
            Tuple of (airways loaded, procedures loaded)

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Navigation YAML not found: {yaml_path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return self.load_from_dict(data)

    def load_from_dict(self, data: dict[str, Any]) -> tuple[int, int]:
        """Load airways and procedures from already parsed YAML data."""
        airway_count = 0
        for entry in data.get("airways", []) or []:
            try:
                self.add_airway(self._airway_from_dict(entry))
                airway_count += 1
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping invalid airway %s: %s", entry.get("name", "?"), e)

        procedure_count = 0
        for entry in data.get("procedures", []) or []:
            try:
                self.add_procedure(self._procedure_from_dict(entry))
                procedure_count += 1
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping invalid procedure %s: %s", entry.get("name", "?"), e)

        logger.info("Loaded %d airways and %d procedures", airway_count, procedure_count)
        return airway_count, procedure_count

    def _airway_from_dict(self, entry: dict[str, Any]) -> Airway:
        fixes = []
        for ref in entry["fixes"]:
            matches = self.find_fix_by_ident(ref["ident"], ref.get("region"))
            if not matches:
                raise ValueError(f"unknown fix {ref['ident']}")
            fixes.append(matches[0])

        segments = [
            AirwaySegment(
                min_altitude_ft=segment.get("min_altitude_ft"),
                max_altitude_ft=segment.get("max_altitude_ft"),
            )
            for segment in entry.get("segments", []) or []
        ]

        return Airway(
            name=entry["name"],
            fixes=fixes,
            direction=AirwayDirection(entry.get("direction", "bidirectional")),
            segments=segments,
        )

    @staticmethod
    def _procedure_from_dict(entry: dict[str, Any]) -> ProcedureRecord:
        def legs(rows: Iterable[dict[str, Any]] | None, section: LegSection) -> list[RawLeg]:
            return [RawLeg(section=section, **row) for row in rows or []]

        kind = ProcedureKind(entry["kind"].upper())
        common = legs(entry.get("common"), LegSection.COMMON)
        if kind is ProcedureKind.APPROACH:
            common += legs(entry.get("missed"), LegSection.MISSED)

        return ProcedureRecord(
            airport_ident=entry["airport"],
            name=entry["name"],
            kind=kind,
            common_legs=common,
            runway_legs={
                str(rwy): legs(rows, LegSection.RUNWAY)
                for rwy, rows in (entry.get("runways") or {}).items()
            },
            transition_legs={
                str(name): legs(rows, LegSection.TRANSITION)
                for name, rows in (entry.get("transitions") or {}).items()
            },
            runway=entry.get("runway"),
            gps_overlay=bool(entry.get("gps_overlay", False)),
        )

    def count(self) -> int:
        """Return total number of fixes in database."""
        return sum(len(entries) for entries in self.fixes.values())

    def clear(self) -> None:
        """Remove all fixes, airways and procedures."""
        self.fixes.clear()
        self.airways.clear()
        self.procedures.clear()
        logger.info("Cleared navigation database")


class NavDatabaseQuery:
    """Cached, disambiguating lookups on a navigation database.

    Results are cached by composite key; the underlying database is treated
    as an immutable snapshot, call clear_cache() after replacing it. One
    query may serve several threads, for example a background preview next
    to the session's own assembly.

    Examples:
        >>> query = NavDatabaseQuery(db)
        >>> query.resolve_fix("MERIT", reference=kjfk.coordinate)
    """

    def __init__(self, database: NavigationDatabase) -> None:
        self.database = database
        self._fix_cache: dict[tuple[str, str | None], list[Fix]] = {}
        self._airway_cache: dict[str, Airway | None] = {}
        self._procedure_cache: dict[tuple[str, str], ProcedureRecord | None] = {}
        self._leg_cache: dict[tuple[str, str, str | None, str | None], list[RawLeg]] = {}
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()

    def find_fixes(self, ident: str, region: str | None = None) -> list[Fix]:
        """All fixes for an ident, optionally restricted to a region."""
        key = (ident, region or None)
        fixes = self._cached(
            self._fix_cache, key, lambda: self.database.find_fix_by_ident(ident, region or None)
        )
        return list(fixes)

    def resolve_fix(
        self,
        ident: str,
        region: str | None = None,
        reference: Coordinate | None = None,
        kinds: Iterable[FixKind] | None = None,
        strict: bool = False,
    ) -> Fix:
        """Resolve an ident to exactly one fix.

        Several candidates are ranked by great-circle distance to the
        reference. Without a reference the ranking is kind priority (airport,
        VOR, NDB, waypoint, runway end, user), then region, ident and
        coordinates, which is deterministic for any database content.

        Args:
            ident: Fix ident.
            region: Optional ICAO region.
            reference: Previously resolved position, or a caller-supplied
                point for the first token.
            kinds: Restrict candidates to these kinds.
            strict: Raise AmbiguousFix instead of using the reference-free
                ranking.

        Returns:
            The selected fix.

        Raises:
            FixNotFound: If nothing matches.
            AmbiguousFix: If the best candidates cannot be told apart.
        """
        candidates = self.find_fixes(ident, region)
        if kinds is not None:
            allowed = set(kinds)
            candidates = [fix for fix in candidates if fix.kind in allowed]

        if not candidates:
            raise FixNotFound(f"Nothing found for {ident}", ident=ident)
        if len(candidates) == 1:
            return candidates[0]

        if reference is not None:
            ranked = sorted(
                candidates, key=lambda fix: distance_nm(reference, fix.coordinate)
            )
            first = distance_nm(reference, ranked[0].coordinate)
            second = distance_nm(reference, ranked[1].coordinate)
            if abs(second - first) < _TIE_DISTANCE_NM and not ranked[0].same_point(ranked[1]):
                raise AmbiguousFix(
                    f"{len(candidates)} candidates for {ident} at equal distance", ident=ident
                )
            logger.debug(
                "Resolved %s to %s, nearest of %d candidates", ident, ranked[0], len(candidates)
            )
            return ranked[0]

        if strict:
            raise AmbiguousFix(
                f"{len(candidates)} candidates for {ident} and no reference position",
                ident=ident,
            )

        ranked = sorted(candidates, key=_reference_free_rank)
        logger.info(
            "No reference position for %s, choosing %s out of %d candidates",
            ident,
            ranked[0],
            len(candidates),
        )
        return ranked[0]

    def find_airport(self, ident: str, reference: Coordinate | None = None) -> Airport | None:
        """Resolve an airport ident, None if there is no such airport."""
        try:
            fix = self.resolve_fix(ident, reference=reference, kinds=(FixKind.AIRPORT,))
        except FixNotFound:
            return None
        return fix  # type: ignore[return-value]

    def is_airport(self, ident: str) -> bool:
        return any(fix.kind is FixKind.AIRPORT for fix in self.find_fixes(ident))

    def get_airway(self, name: str) -> Airway | None:
        return self._cached(self._airway_cache, name, lambda: self.database.get_airway(name))

    def get_procedure(self, airport_ident: str, name: str) -> ProcedureRecord | None:
        key = (airport_ident, name)
        return self._cached(
            self._procedure_cache, key, lambda: self.database.get_procedure(airport_ident, name)
        )

    def get_procedure_legs(
        self,
        airport_ident: str,
        procedure: str,
        transition: str | None = None,
        runway: str | None = None,
    ) -> list[RawLeg]:
        key = (airport_ident, procedure, transition, runway)
        legs = self._cached(
            self._leg_cache,
            key,
            lambda: self.database.get_procedure_legs(
                airport_ident, procedure, transition=transition, runway=runway
            ),
        )
        return list(legs)

    def clear_cache(self) -> None:
        with self._lock:
            self._fix_cache.clear()
            self._airway_cache.clear()
            self._procedure_cache.clear()
            self._leg_cache.clear()
            self.hits = 0
            self.misses = 0

    def _cached(self, cache: dict[Any, T], key: Any, load: Callable[[], T]) -> T:
        # Previews on executor threads share the caches and counters
        with self._lock:
            if key in cache:
                self.hits += 1
            else:
                self.misses += 1
                cache[key] = load()
            return cache[key]


def _reference_free_rank(fix: Fix) -> tuple:
    return (
        KIND_PRIORITY[fix.kind],
        fix.region,
        fix.ident,
        fix.coordinate.latitude,
        fix.coordinate.longitude,
    )
