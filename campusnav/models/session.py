# campusnav/models/session.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from campusnav.models.map import BaseLayer, Viewport
from campusnav.models.routing import (
    BookmarkEntry,
    Location,
    NavigationSession,
    NavState,
    RouteCandidate,
    RouteMode,
    RouteQuery,
    TurnStep,
)


class QueryUpdate(BaseModel):
    """
    Request body for PUT /sessions/{id}/query.

    An empty origin (or "my location") means "start from the live position".
    """
    origin_text: str = ""
    destination_text: str = ""
    mode: RouteMode = RouteMode.WALKING


class PositionError(BaseModel):
    message: str


class RouteRef(BaseModel):
    route_id: int


class SessionView(BaseModel):
    """
    Snapshot of one map session, as rendered by the map page.
    """
    id: str
    state: NavState
    query: RouteQuery
    candidates: List[RouteCandidate]
    selected_route_id: Optional[int] = None
    panel_open: bool
    navigation: NavigationSession
    current_step: Optional[TurnStep] = None
    remaining_steps: int = 0
    tracking: bool
    viewport: Viewport
    notices: List[str] = []


class StepView(BaseModel):
    step_cursor: int
    step_by_step: bool
    current_step: Optional[TurnStep] = None
    remaining_steps: int


class ArrivalView(BaseModel):
    message: str


class BookmarkToggleView(BaseModel):
    bookmarked: bool
    bookmarks: List[BookmarkEntry]


class BaseLayerView(BaseModel):
    base_layer: BaseLayer


class FeatureCollectionView(BaseModel):
    type: str = "FeatureCollection"
    features: List[Dict[str, Any]]
    viewport: Viewport


class LocationMatch(BaseModel):
    query: str
    location: Optional[Location] = None
