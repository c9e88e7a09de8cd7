# campusnav/models/routing.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """
    Simple longitude/latitude coordinate (WGS84 degrees).
    """
    model_config = ConfigDict(frozen=True)

    lon: float
    lat: float

    def as_lonlat(self) -> List[float]:
        return [self.lon, self.lat]


class Location(BaseModel):
    """
    A named campus place from the static location catalogue.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    coordinates: Coordinate


class RouteMode(str, Enum):
    WALKING = "walking"
    WHEELCHAIR = "wheelchair"


class NavState(str, Enum):
    IDLE = "idle"
    CANDIDATES_OPEN = "candidates_open"
    ROUTE_ACTIVE = "route_active"


class TurnStep(BaseModel):
    """
    One turn-by-turn instruction taken from the first leg of a route.
    """
    model_config = ConfigDict(frozen=True)

    kind: str
    instruction: str
    distance_m: float
    duration_s: float


class RouteCandidate(BaseModel):
    """
    One alternative route returned for a single query.

    `id` is the rank within the current result set (0 = provider's primary
    pick). `route_key` identifies the route itself, so that it can be
    recognised after the result set it came from has been replaced.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    route_key: str
    summary: str
    distance_m: float
    duration_s: float
    path: List[Coordinate]
    steps: List[TurnStep]
    origin_label: str
    destination_label: str
    mode: RouteMode


class RouteQuery(BaseModel):
    """
    The inputs a candidate search is computed from.
    """
    model_config = ConfigDict(frozen=True)

    origin_text: str = ""
    destination_text: str = ""
    mode: RouteMode = RouteMode.WALKING
    live_fix: Optional[Coordinate] = None


class BookmarkEntry(BaseModel):
    """
    A retained copy of a route candidate, kept for the session lifetime.
    """
    bookmark_id: str
    route_key: str
    candidate: RouteCandidate
    origin_label: str
    destination_label: str
    mode: RouteMode
    created_at: datetime = Field(default_factory=datetime.now)


class NavigationSession(BaseModel):
    """
    Turn-by-turn state of the route currently being followed.

    step_cursor stays within [0, len(steps) - 1] whenever steps is non-empty.
    """
    active_candidate_id: Optional[int] = None
    step_cursor: int = 0
    mode: RouteMode = RouteMode.WALKING
    is_active: bool = False
    step_by_step: bool = False
    steps: List[TurnStep] = []
    origin: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None
    origin_label: Optional[str] = None
    destination_label: Optional[str] = None
