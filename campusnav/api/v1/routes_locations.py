# campusnav/api/v1/routes_locations.py
from typing import List

from fastapi import APIRouter, Depends, Query

from campusnav.api.deps import get_session_manager
from campusnav.models.routing import Location
from campusnav.models.session import LocationMatch
from campusnav.services.map_session import MapSessionManager

router = APIRouter(
    prefix="/locations",
    tags=["locations"],
)


@router.get("/", response_model=List[Location], summary="Search campus locations")
async def search_locations(
    q: str = Query("", description="Case-insensitive name fragment"),
    limit: int = Query(10, ge=1, le=100),
    manager: MapSessionManager = Depends(get_session_manager),
) -> List[Location]:
    """
    Suggestions for the start/end search boxes, in catalogue order.
    """
    return manager.resolver.search(q, limit=limit)


@router.get("/resolve", response_model=LocationMatch, summary="Resolve a place name")
async def resolve_location(
    q: str = Query(..., description="Place name typed by the user"),
    manager: MapSessionManager = Depends(get_session_manager),
) -> LocationMatch:
    """
    Exact name match first, then the first name containing the query.
    """
    return LocationMatch(query=q, location=manager.resolver.find(q))
