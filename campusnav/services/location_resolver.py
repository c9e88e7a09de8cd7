# campusnav/services/location_resolver.py
import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from campusnav.core.logger import logger
from campusnav.models.routing import Coordinate, Location

# Typed into the origin box to mean "use the live device position".
LIVE_POSITION_SENTINEL = "my location"


def is_live_position_query(query: Optional[str]) -> bool:
    """
    True when the text asks for the live position instead of a campus place.
    """
    return not query or query.strip().lower() in ("", LIVE_POSITION_SENTINEL)


class LocationResolver:
    """
    Maps free-text place names to campus coordinates.

    Matching is case-insensitive: an exact name match wins, otherwise the
    first location (in catalogue order) whose name contains the query.
    """

    def __init__(self, locations: Sequence[Location]) -> None:
        self._locations: Tuple[Location, ...] = tuple(locations)
        # Lower-cased names, aligned with self._locations
        self._keys: Tuple[str, ...] = tuple(loc.name.lower() for loc in self._locations)

    @classmethod
    def from_file(cls, path: Path) -> "LocationResolver":
        """
        Load the static catalogue, format {"locations": [{"name", "coordinates": [lon, lat]}]}.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        locations = [
            Location(
                name=item["name"],
                coordinates=Coordinate(lon=item["coordinates"][0], lat=item["coordinates"][1]),
            )
            for item in data["locations"]
        ]
        logger.info("Loaded {} campus locations from {}", len(locations), path)
        return cls(locations)

    @property
    def locations(self) -> Tuple[Location, ...]:
        return self._locations

    def find(self, query: Optional[str]) -> Optional[Location]:
        if is_live_position_query(query):
            return None

        needle = query.strip().lower()

        for key, loc in zip(self._keys, self._locations):
            if key == needle:
                return loc

        for key, loc in zip(self._keys, self._locations):
            if needle in key:
                return loc

        return None

    def resolve(self, query: Optional[str]) -> Optional[Coordinate]:
        """
        Resolve a place name to coordinates, or None when nothing matches.

        Empty text and "my location" always resolve to None; the caller is
        expected to substitute the live position.
        """
        loc = self.find(query)
        return loc.coordinates if loc is not None else None

    def search(self, query: str, limit: int = 10) -> List[Location]:
        # Suggestions for the search box, catalogue order
        needle = query.strip().lower()
        if not needle:
            return list(self._locations[:limit])
        return [loc for key, loc in zip(self._keys, self._locations) if needle in key][:limit]
