# campusnav/services/navigation.py
# Route lifecycle: idle -> candidates_open -> route_active -> idle.

from typing import Callable, Optional, Tuple

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.errors import NavigationRejected
from campusnav.core.logger import logger
from campusnav.models.map import ROUTE_KINDS, BoundingBox, FeatureKind
from campusnav.models.routing import Coordinate, NavigationSession, NavState, RouteCandidate, TurnStep
from campusnav.services.candidate_store import LIVE_POSITION_LABEL, RouteCandidateStore
from campusnav.services.geo import haversine_distance_m
from campusnav.services.location_resolver import LocationResolver, is_live_position_query
from campusnav.services.map_adapter import MapPresentationAdapter
from campusnav.services.map_styles import END_ICON, START_ICON, route_stroke

SELECT_ROUTE_MESSAGE = "Please select a route to start."
ROUTE_ALREADY_ACTIVE_MESSAGE = "A route is already active. Cancel it before starting another one."
NO_LIVE_POSITION_MESSAGE = "Unable to determine your current location. Please enter a start location."
INVALID_START_MESSAGE = "Please enter a valid start location."
INVALID_END_MESSAGE = "Please enter a valid end location."
NO_ACTIVE_ROUTE_MESSAGE = "There is no active route to finish."


class NavigationStateMachine:
    """
    Drives one map view from route options to turn-by-turn guidance.

    Typical lifecycle:
        store.set_query("Kennesaw Hall", "Library", None, RouteMode.WALKING)
        # ... candidates arrive, state becomes candidates_open
        nav.confirm_selection()     # route_active, step cursor at 0
        nav.advance_step()
        nav.arrive()                # back to idle

    Every precondition failure raises NavigationRejected and leaves the
    state untouched.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        store: RouteCandidateStore,
        adapter: MapPresentationAdapter,
        config: Optional[Settings] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.resolver = resolver
        self.store = store
        self.adapter = adapter
        self.config = config or default_settings
        self._notify = notify or (lambda message: None)
        self.session = NavigationSession()

    # ------------------------------------------------------------------ #
    # Read-only properties
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> NavState:
        if self.session.is_active:
            return NavState.ROUTE_ACTIVE
        if self.store.panel_open and self.store.candidates:
            return NavState.CANDIDATES_OPEN
        return NavState.IDLE

    @property
    def current_step(self) -> Optional[TurnStep]:
        steps = self.session.steps
        if 0 <= self.session.step_cursor < len(steps):
            return steps[self.session.step_cursor]
        return None

    @property
    def remaining_steps(self) -> int:
        if not self.session.steps:
            return 0
        return len(self.session.steps) - self.session.step_cursor

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def _check_query(self) -> None:
        query = self.store.query
        if is_live_position_query(query.origin_text):
            if query.live_fix is None:
                raise NavigationRejected(NO_LIVE_POSITION_MESSAGE)
        elif self.resolver.resolve(query.origin_text) is None:
            raise NavigationRejected(INVALID_START_MESSAGE)

        if self.resolver.resolve(query.destination_text) is None:
            raise NavigationRejected(INVALID_END_MESSAGE)

    def _route_endpoints(self, candidate: RouteCandidate) -> Tuple[Coordinate, Coordinate]:
        # Taken from the option being confirmed; the typed query may already be newer
        if is_live_position_query(candidate.origin_label):
            start = self.store.query.live_fix
            if start is None:
                raise NavigationRejected(NO_LIVE_POSITION_MESSAGE)
        else:
            start = self.resolver.resolve(candidate.origin_label)
            if start is None:
                raise NavigationRejected(INVALID_START_MESSAGE)

        end = self.resolver.resolve(candidate.destination_label)
        if end is None:
            raise NavigationRejected(INVALID_END_MESSAGE)
        return start, end

    def confirm_selection(self) -> NavigationSession:
        """
        Start following the selected route option.

        Markers, the viewport fit and the arrival target come from the
        confirmed option, not from query text typed since it was computed.
        """
        state = self.state
        if state == NavState.ROUTE_ACTIVE:
            raise NavigationRejected(ROUTE_ALREADY_ACTIVE_MESSAGE)

        selected = self.store.selected
        if state != NavState.CANDIDATES_OPEN or selected is None:
            raise NavigationRejected(SELECT_ROUTE_MESSAGE)

        self._check_query()
        start, end = self._route_endpoints(selected)

        self._clear_route()

        self.adapter.upsert_point(FeatureKind.MARKER, start, START_ICON, key="start")
        self.adapter.upsert_point(FeatureKind.MARKER, end, END_ICON, key="end")
        self.adapter.fit_bounds(BoundingBox.around(start, end))
        self.adapter.draw_line(
            FeatureKind.ROUTE_LINE,
            selected.path,
            route_stroke(selected.mode),
            key="active",
        )

        self.session = NavigationSession(
            active_candidate_id=selected.id,
            step_cursor=0,
            mode=selected.mode,
            is_active=True,
            steps=list(selected.steps),
            origin=start,
            destination=end,
            origin_label=selected.origin_label or LIVE_POSITION_LABEL,
            destination_label=selected.destination_label,
        )
        self.store.suspend()

        logger.info(
            "Route {} active: {} -> {} ({}, {} steps)",
            selected.id,
            self.session.origin_label,
            self.session.destination_label,
            selected.mode.value,
            len(selected.steps),
        )
        return self.session

    def _clear_route(self) -> None:
        # Accessibility and user-location markers stay on the map
        self.adapter.clear_kinds(*ROUTE_KINDS)

    def cancel(self) -> None:
        """
        Drop the active route and any options, from whatever state.
        """
        previous = self.state
        self._clear_route()
        self.store.reset_inputs()
        self.session = NavigationSession(mode=self.store.query.mode)
        logger.info("Navigation reset to idle (was {}).", previous.value)

    def arrive(self) -> str:
        if self.state != NavState.ROUTE_ACTIVE:
            raise NavigationRejected(NO_ACTIVE_ROUTE_MESSAGE)

        message = f"You have arrived at {self.session.destination_label}."
        logger.info(message)
        self._notify(message)
        self.cancel()
        return message

    def observe_position(self, fix: Coordinate) -> Optional[str]:
        """
        Finish the route automatically once the live fix reaches the destination.
        """
        if not self.session.is_active or self.session.destination is None:
            return None
        distance = haversine_distance_m(fix, self.session.destination)
        if distance > self.config.ARRIVAL_RADIUS_M:
            return None
        logger.info("Live position within {:.1f} m of destination.", distance)
        return self.arrive()

    # ------------------------------------------------------------------ #
    # Turn-by-turn
    # ------------------------------------------------------------------ #

    def advance_step(self) -> int:
        if self.session.step_cursor < len(self.session.steps) - 1:
            self.session.step_cursor += 1
        return self.session.step_cursor

    def retreat_step(self) -> int:
        if self.session.step_cursor > 0:
            self.session.step_cursor -= 1
        return self.session.step_cursor

    def toggle_step_mode(self) -> bool:
        """Switch between the full step list and one step at a time."""
        self.session.step_by_step = not self.session.step_by_step
        return self.session.step_by_step
