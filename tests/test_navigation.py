# tests/test_navigation.py
import pytest

from campusnav.core.errors import NavigationRejected
from campusnav.models.map import FeatureKind
from campusnav.models.routing import Coordinate, NavState, RouteMode
from campusnav.services.map_styles import ACCESSIBILITY_ICON, USER_LOCATION_ICON
from campusnav.services.navigation import (
    INVALID_END_MESSAGE,
    NO_ACTIVE_ROUTE_MESSAGE,
    NO_LIVE_POSITION_MESSAGE,
    SELECT_ROUTE_MESSAGE,
)

from conftest import LIVE_FIX, TEST_LOCATIONS

pytestmark = pytest.mark.anyio

LIBRARY = TEST_LOCATIONS[0].coordinates
KENNESAW_HALL = TEST_LOCATIONS[3].coordinates
BURRUSS_BUILDING = TEST_LOCATIONS[4].coordinates


async def open_candidates(store, origin_text="Sturgis Library", destination_text="Kennesaw Hall",
                          mode=RouteMode.WALKING, live_fix=None):
    store.set_query(origin_text, destination_text, live_fix, mode)
    await store.settle()
    assert store.panel_open


async def test_starts_idle(navigator):
    assert navigator.state == NavState.IDLE
    assert navigator.current_step is None
    assert navigator.remaining_steps == 0


async def test_candidates_open_after_query(navigator, store):
    await open_candidates(store)
    assert navigator.state == NavState.CANDIDATES_OPEN


@pytest.mark.parametrize("route_id", [0, 1])
async def test_confirm_selection_activates_selected_route(navigator, store, route_id):
    await open_candidates(store)
    store.select(route_id)

    session = navigator.confirm_selection()

    assert navigator.state == NavState.ROUTE_ACTIVE
    assert session.active_candidate_id == route_id
    assert session.step_cursor == 0
    assert session.is_active
    assert len(session.steps) == len(store.get(route_id).steps)
    assert not store.panel_open


async def test_confirm_draws_markers_line_and_fits_viewport(navigator, store, adapter):
    adapter.upsert_point(FeatureKind.ACCESSIBILITY_MARKER, LIBRARY, ACCESSIBILITY_ICON, key="0")
    await open_candidates(store)
    store.preview(1)

    navigator.confirm_selection()

    markers = {f.key: f for f in adapter.features(FeatureKind.MARKER)}
    assert markers["start"].geometry["coordinates"] == LIBRARY.as_lonlat()
    assert markers["end"].geometry["coordinates"] == KENNESAW_HALL.as_lonlat()
    lines = adapter.features(FeatureKind.ROUTE_LINE)
    assert len(lines) == 1
    assert lines[0].stroke.line_dash is None
    assert adapter.get(FeatureKind.PREVIEW) is None
    assert len(adapter.features(FeatureKind.ACCESSIBILITY_MARKER)) == 1

    fit = adapter.viewport.fit
    assert fit.bbox.min_lon == min(LIBRARY.lon, KENNESAW_HALL.lon)
    assert fit.bbox.max_lat == max(LIBRARY.lat, KENNESAW_HALL.lat)
    assert (fit.padding_px, fit.max_zoom) == (50, 18)


async def test_wheelchair_route_is_dashed(navigator, store, adapter):
    await open_candidates(store, mode=RouteMode.WHEELCHAIR)
    navigator.confirm_selection()

    stroke = adapter.features(FeatureKind.ROUTE_LINE)[0].stroke
    assert stroke.line_dash == [5, 5]
    assert stroke.color == "#4287f5"
    assert navigator.session.mode == RouteMode.WHEELCHAIR


async def test_confirm_without_selection_is_rejected(navigator, store):
    await open_candidates(store)
    store.selected_id = None
    before = navigator.session.model_copy()

    with pytest.raises(NavigationRejected) as excinfo:
        navigator.confirm_selection()

    assert excinfo.value.message == SELECT_ROUTE_MESSAGE
    assert navigator.session == before
    assert navigator.state == NavState.CANDIDATES_OPEN


async def test_confirm_while_idle_is_rejected(navigator):
    with pytest.raises(NavigationRejected) as excinfo:
        navigator.confirm_selection()
    assert excinfo.value.message == SELECT_ROUTE_MESSAGE
    assert navigator.state == NavState.IDLE


async def test_confirm_with_live_fix_origin(navigator, store, adapter):
    await open_candidates(store, origin_text="", live_fix=LIVE_FIX)

    session = navigator.confirm_selection()

    assert session.origin == LIVE_FIX
    assert session.origin_label == "My Location"
    assert adapter.get(FeatureKind.MARKER, "start").geometry["coordinates"] == LIVE_FIX.as_lonlat()


async def test_confirm_rejected_when_live_fix_is_lost(navigator, store, adapter):
    await open_candidates(store, origin_text="", live_fix=LIVE_FIX)
    # Query inputs changed under the open panel; no fix left to start from
    store.query = store.query.model_copy(update={"live_fix": None})

    with pytest.raises(NavigationRejected) as excinfo:
        navigator.confirm_selection()

    assert excinfo.value.message == NO_LIVE_POSITION_MESSAGE
    assert navigator.state == NavState.CANDIDATES_OPEN
    assert adapter.features(FeatureKind.MARKER) == []


async def test_confirm_rejected_when_destination_no_longer_resolves(navigator, store):
    await open_candidates(store)
    store.query = store.query.model_copy(update={"destination_text": "Zzzznotaplace"})

    with pytest.raises(NavigationRejected) as excinfo:
        navigator.confirm_selection()

    assert excinfo.value.message == INVALID_END_MESSAGE
    assert not navigator.session.is_active


async def test_confirm_follows_selected_route_while_query_edit_is_pending(navigator, store, adapter, gateway):
    await open_candidates(store)
    # Destination edited, but the debounce window has not elapsed yet
    store.set_query("Sturgis Library", "Burruss Building", None, RouteMode.WALKING)
    assert navigator.state == NavState.CANDIDATES_OPEN

    session = navigator.confirm_selection()
    await store.settle()

    end = adapter.get(FeatureKind.MARKER, "end").geometry["coordinates"]
    line = adapter.features(FeatureKind.ROUTE_LINE)[0].geometry["coordinates"]
    assert end == KENNESAW_HALL.as_lonlat()
    assert line[-1] == end
    assert session.destination == KENNESAW_HALL
    assert session.destination_label == "Kennesaw Hall"
    assert len(gateway.calls) == 1

    assert navigator.observe_position(BURRUSS_BUILDING) is None
    assert navigator.state == NavState.ROUTE_ACTIVE


async def test_advance_step_never_passes_last_step(navigator, store):
    await open_candidates(store)
    navigator.confirm_selection()
    count = len(navigator.session.steps)

    for _ in range(count):
        navigator.advance_step()

    assert navigator.session.step_cursor == count - 1
    assert navigator.remaining_steps == 1
    assert navigator.current_step == navigator.session.steps[-1]


async def test_retreat_step_stops_at_first_step(navigator, store):
    await open_candidates(store)
    navigator.confirm_selection()

    assert navigator.retreat_step() == 0
    navigator.advance_step()
    navigator.advance_step()
    assert navigator.retreat_step() == 1


async def test_step_cursor_is_noop_without_steps(navigator):
    assert navigator.advance_step() == 0
    assert navigator.retreat_step() == 0


async def test_toggle_step_mode_keeps_cursor(navigator, store):
    await open_candidates(store)
    navigator.confirm_selection()
    navigator.advance_step()

    assert navigator.toggle_step_mode() is True
    assert navigator.session.step_cursor == 1
    assert navigator.toggle_step_mode() is False


@pytest.mark.parametrize("stage", ["idle", "candidates", "active"])
async def test_cancel_always_returns_to_idle(navigator, store, adapter, stage):
    adapter.upsert_point(FeatureKind.USER_LOCATION, LIVE_FIX, USER_LOCATION_ICON)
    if stage in ("candidates", "active"):
        await open_candidates(store)
    if stage == "active":
        navigator.confirm_selection()
        navigator.advance_step()

    navigator.cancel()
    await store.settle()

    assert navigator.state == NavState.IDLE
    assert navigator.session.steps == []
    assert navigator.session.step_cursor == 0
    assert not navigator.session.is_active
    assert store.query.origin_text == "" and store.query.destination_text == ""
    assert store.candidates == []
    assert adapter.features(FeatureKind.MARKER) == []
    assert adapter.features(FeatureKind.ROUTE_LINE) == []
    assert adapter.get(FeatureKind.USER_LOCATION) is not None


async def test_queries_resume_after_cancel(navigator, store, gateway):
    await open_candidates(store)
    navigator.confirm_selection()

    # Ignored while the route is active
    store.set_query("Sturgis Library", "Burruss Building", None, RouteMode.WALKING)
    await store.settle()
    assert len(gateway.calls) == 1

    navigator.cancel()
    await open_candidates(store, destination_text="Burruss Building")
    assert len(gateway.calls) == 2


async def test_arrive_acknowledges_and_resets(navigator, store, notices):
    await open_candidates(store)
    navigator.confirm_selection()

    message = navigator.arrive()

    assert message == "You have arrived at Kennesaw Hall."
    assert notices == [message]
    assert navigator.state == NavState.IDLE


async def test_arrive_requires_active_route(navigator):
    with pytest.raises(NavigationRejected) as excinfo:
        navigator.arrive()
    assert excinfo.value.message == NO_ACTIVE_ROUTE_MESSAGE


async def test_reaching_destination_arrives_automatically(navigator, store):
    await open_candidates(store)
    navigator.confirm_selection()

    far = Coordinate(lon=KENNESAW_HALL.lon + 0.001, lat=KENNESAW_HALL.lat)
    assert navigator.observe_position(far) is None
    assert navigator.state == NavState.ROUTE_ACTIVE

    near = Coordinate(lon=KENNESAW_HALL.lon, lat=KENNESAW_HALL.lat + 0.00005)
    assert navigator.observe_position(near) == "You have arrived at Kennesaw Hall."
    assert navigator.state == NavState.IDLE
