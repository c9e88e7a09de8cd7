# campusnav/api/v1/routes_sessions.py
from typing import List

from fastapi import APIRouter, Depends, Response, status

from campusnav.api.deps import get_session_manager
from campusnav.models.map import Viewport
from campusnav.models.routing import BookmarkEntry, Coordinate, RouteCandidate
from campusnav.models.session import (
    ArrivalView,
    BaseLayerView,
    BookmarkToggleView,
    FeatureCollectionView,
    PositionError,
    QueryUpdate,
    RouteRef,
    SessionView,
    StepView,
)
from campusnav.services.map_session import MapSession, MapSessionManager

router = APIRouter(
    prefix="/sessions",
    tags=["navigation"],
)


def _session(session_id: str, manager: MapSessionManager = Depends(get_session_manager)) -> MapSession:
    return manager.get(session_id)


def _view(session: MapSession, drain_notices: bool = False) -> SessionView:
    navigator = session.navigator
    store = session.store
    return SessionView(
        id=session.id,
        state=navigator.state,
        query=store.query,
        candidates=store.candidates,
        selected_route_id=store.selected_id,
        panel_open=store.panel_open,
        navigation=navigator.session,
        current_step=navigator.current_step,
        remaining_steps=navigator.remaining_steps,
        tracking=session.is_tracking,
        viewport=session.adapter.viewport,
        notices=session.drain_notices() if drain_notices else list(session.notices),
    )


def _steps(session: MapSession) -> StepView:
    navigator = session.navigator
    return StepView(
        step_cursor=navigator.session.step_cursor,
        step_by_step=navigator.session.step_by_step,
        current_step=navigator.current_step,
        remaining_steps=navigator.remaining_steps,
    )


# ---------------------------------------------------------------------- #
# Session lifecycle
# ---------------------------------------------------------------------- #


@router.post("/", response_model=SessionView, status_code=status.HTTP_201_CREATED, summary="Open a map session")
async def create_session(
    track_position: bool = True,
    manager: MapSessionManager = Depends(get_session_manager),
) -> SessionView:
    """
    Open a map view: places the accessibility markers and, unless disabled,
    starts listening for live position fixes.
    """
    return _view(manager.create(track_position=track_position))


@router.get("/{session_id}", response_model=SessionView, summary="Current session state")
async def get_session(session: MapSession = Depends(_session)) -> SessionView:
    """
    Pending notices (route failures, arrival) are returned once and then dropped.
    """
    return _view(session, drain_notices=True)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Close a map session")
async def close_session(
    session_id: str,
    manager: MapSessionManager = Depends(get_session_manager),
) -> Response:
    await manager.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------- #
# Input
# ---------------------------------------------------------------------- #


@router.put("/{session_id}/query", response_model=SessionView, summary="Update start/end/mode")
async def update_query(body: QueryUpdate, session: MapSession = Depends(_session)) -> SessionView:
    """
    Route options are recomputed once the input has been quiet for the
    debounce window; poll the session to pick them up.
    """
    session.update_query(body.origin_text, body.destination_text, body.mode)
    return _view(session)


@router.post("/{session_id}/tracking", response_model=SessionView, summary="Start live tracking")
async def start_tracking(session: MapSession = Depends(_session)) -> SessionView:
    session.start_tracking()
    return _view(session)


@router.delete("/{session_id}/tracking", response_model=SessionView, summary="Stop live tracking")
async def stop_tracking(session: MapSession = Depends(_session)) -> SessionView:
    session.stop_tracking()
    return _view(session)


@router.post("/{session_id}/position", status_code=status.HTTP_202_ACCEPTED, summary="Push a device fix")
async def push_position(fix: Coordinate, session: MapSession = Depends(_session)) -> dict:
    session.push_fix(fix)
    return {"accepted": True}


@router.post("/{session_id}/position/error", status_code=status.HTTP_202_ACCEPTED, summary="Report a device error")
async def report_position_error(body: PositionError, session: MapSession = Depends(_session)) -> dict:
    session.report_position_error(body.message)
    return {"accepted": True}


# ---------------------------------------------------------------------- #
# Route options
# ---------------------------------------------------------------------- #


@router.post("/{session_id}/select", response_model=RouteCandidate, summary="Select a route option")
async def select_route(body: RouteRef, session: MapSession = Depends(_session)) -> RouteCandidate:
    return session.store.select(body.route_id)


@router.put("/{session_id}/preview", status_code=status.HTTP_204_NO_CONTENT, summary="Preview a route option")
async def preview_route(body: RouteRef, session: MapSession = Depends(_session)) -> Response:
    session.store.preview(body.route_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{session_id}/preview", status_code=status.HTTP_204_NO_CONTENT, summary="Clear the route preview")
async def clear_preview(session: MapSession = Depends(_session)) -> Response:
    session.store.clear_preview()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------- #
# Navigation
# ---------------------------------------------------------------------- #


@router.post("/{session_id}/confirm", response_model=SessionView, summary="Start the selected route")
async def confirm_route(session: MapSession = Depends(_session)) -> SessionView:
    session.navigator.confirm_selection()
    return _view(session)


@router.post("/{session_id}/cancel", response_model=SessionView, summary="Cancel navigation")
async def cancel_route(session: MapSession = Depends(_session)) -> SessionView:
    session.navigator.cancel()
    return _view(session)


@router.post("/{session_id}/arrive", response_model=ArrivalView, summary="Finish the active route")
async def arrive(session: MapSession = Depends(_session)) -> ArrivalView:
    return ArrivalView(message=session.navigator.arrive())


@router.post("/{session_id}/steps/next", response_model=StepView, summary="Next direction")
async def next_step(session: MapSession = Depends(_session)) -> StepView:
    session.navigator.advance_step()
    return _steps(session)


@router.post("/{session_id}/steps/previous", response_model=StepView, summary="Previous direction")
async def previous_step(session: MapSession = Depends(_session)) -> StepView:
    session.navigator.retreat_step()
    return _steps(session)


@router.post("/{session_id}/steps/mode", response_model=StepView, summary="Toggle step-by-step view")
async def toggle_step_mode(session: MapSession = Depends(_session)) -> StepView:
    session.navigator.toggle_step_mode()
    return _steps(session)


# ---------------------------------------------------------------------- #
# Bookmarks
# ---------------------------------------------------------------------- #


@router.get("/{session_id}/bookmarks", response_model=List[BookmarkEntry], summary="List bookmarks")
async def list_bookmarks(session: MapSession = Depends(_session)) -> List[BookmarkEntry]:
    return session.store.bookmarks


@router.post("/{session_id}/bookmarks", response_model=BookmarkToggleView, summary="Toggle a bookmark")
async def toggle_bookmark(body: RouteRef, session: MapSession = Depends(_session)) -> BookmarkToggleView:
    bookmarked = session.store.toggle_bookmark(body.route_id)
    return BookmarkToggleView(bookmarked=bookmarked, bookmarks=session.store.bookmarks)


@router.delete(
    "/{session_id}/bookmarks/{bookmark_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a bookmark",
)
async def remove_bookmark(bookmark_id: str, session: MapSession = Depends(_session)) -> Response:
    session.store.remove_bookmark(bookmark_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/bookmarks/{bookmark_id}/recall", response_model=SessionView, summary="Reopen a bookmark")
async def recall_bookmark(bookmark_id: str, session: MapSession = Depends(_session)) -> SessionView:
    session.store.recall_bookmark(bookmark_id)
    return _view(session)


# ---------------------------------------------------------------------- #
# Map
# ---------------------------------------------------------------------- #


@router.get("/{session_id}/features", response_model=FeatureCollectionView, summary="Map features to render")
async def get_features(session: MapSession = Depends(_session)) -> FeatureCollectionView:
    """
    GeoJSON FeatureCollection of everything the map should draw, plus the
    requested viewport (centre, fit box, base layer).
    """
    collection = session.adapter.to_geojson()
    return FeatureCollectionView(features=collection["features"], viewport=session.adapter.viewport)


@router.post("/{session_id}/base-layer", response_model=BaseLayerView, summary="Toggle satellite view")
async def toggle_base_layer(session: MapSession = Depends(_session)) -> BaseLayerView:
    return BaseLayerView(base_layer=session.adapter.toggle_base_layer())


@router.get("/{session_id}/viewport", response_model=Viewport, summary="Requested viewport")
async def get_viewport(session: MapSession = Depends(_session)) -> Viewport:
    return session.adapter.viewport
