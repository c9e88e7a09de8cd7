# campusnav/services/map_session.py
import uuid
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.errors import SessionNotFound, TrackingInactive
from campusnav.core.logger import logger
from campusnav.models.map import FeatureKind
from campusnav.models.routing import Coordinate, RouteMode
from campusnav.services.candidate_store import RouteCandidateStore
from campusnav.services.location_resolver import LocationResolver
from campusnav.services.map_adapter import MapPresentationAdapter
from campusnav.services.map_styles import ACCESSIBILITY_ICON, USER_LOCATION_ICON
from campusnav.services.navigation import NavigationStateMachine
from campusnav.services.position_source import PositionSource, PushedLocationFeed
from campusnav.services.route_gateway import RouteProviderGateway

MAX_NOTICES = 20


class MapSession:
    """
    Everything behind one open map view: feature table, candidate store,
    navigation state machine and live-position subscription.
    """

    def __init__(
        self,
        session_id: str,
        resolver: LocationResolver,
        gateway: RouteProviderGateway,
        config: Optional[Settings] = None,
        feed: Optional[PushedLocationFeed] = None,
    ) -> None:
        self.id = session_id
        self.config = config or default_settings
        self.resolver = resolver
        self.notices: Deque[str] = deque(maxlen=MAX_NOTICES)

        self.adapter = MapPresentationAdapter(self.config)
        self.store = RouteCandidateStore(resolver, gateway, self.adapter, self.config, notify=self.notify)
        self.navigator = NavigationStateMachine(resolver, self.store, self.adapter, self.config, notify=self.notify)

        self.feed = feed
        self.positions = PositionSource(feed, self.config)
        self._cancel_tracking: Optional[Callable[[], None]] = None

        self.place_accessibility_markers()

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def place_accessibility_markers(self) -> None:
        for index, location in enumerate(self.resolver.locations):
            self.adapter.upsert_point(
                FeatureKind.ACCESSIBILITY_MARKER,
                location.coordinates,
                ACCESSIBILITY_ICON,
                key=str(index),
            )

    # ------------------------------------------------------------------ #
    # Live position
    # ------------------------------------------------------------------ #

    @property
    def is_tracking(self) -> bool:
        return self.positions.is_tracking

    def start_tracking(self) -> None:
        self.stop_tracking()
        self._cancel_tracking = self.positions.start_tracking(self.handle_fix)

    def stop_tracking(self) -> None:
        if self._cancel_tracking is not None:
            self._cancel_tracking()
            self._cancel_tracking = None

    def push_fix(self, fix: Coordinate) -> None:
        if self.feed is None or not self.is_tracking:
            raise TrackingInactive("Position tracking is not active for this session.")
        self.feed.push(fix)

    def report_position_error(self, reason: str) -> None:
        if self.feed is None or not self.is_tracking:
            raise TrackingInactive("Position tracking is not active for this session.")
        self.feed.fail(reason)

    def handle_fix(self, fix: Coordinate) -> None:
        # Exactly one user-location feature, replaced in place
        self.adapter.upsert_point(FeatureKind.USER_LOCATION, fix, USER_LOCATION_ICON)
        self.adapter.set_center(fix)
        self.store.update_live_fix(fix)
        self.navigator.observe_position(fix)

    # ------------------------------------------------------------------ #
    # Input
    # ------------------------------------------------------------------ #

    def update_query(self, origin_text: str, destination_text: str, mode: RouteMode) -> None:
        self.store.set_query(origin_text, destination_text, self.store.query.live_fix, mode)

    def drain_notices(self) -> List[str]:
        notices = list(self.notices)
        self.notices.clear()
        return notices

    async def close(self) -> None:
        self.stop_tracking()
        await self.store.shutdown()
        self.adapter.detach()
        logger.info("Map session {} closed.", self.id)


class MapSessionManager:
    """
    Creates, looks up and tears down map sessions.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        gateway: RouteProviderGateway,
        config: Optional[Settings] = None,
    ) -> None:
        self.resolver = resolver
        self.gateway = gateway
        self.config = config or default_settings
        self._sessions: Dict[str, MapSession] = {}

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "MapSessionManager":
        config = config or default_settings
        return cls(
            resolver=LocationResolver.from_file(config.LOCATIONS_FILE),
            gateway=RouteProviderGateway(config),
            config=config,
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, track_position: bool = True) -> MapSession:
        session = MapSession(
            session_id=uuid.uuid4().hex,
            resolver=self.resolver,
            gateway=self.gateway,
            config=self.config,
            feed=PushedLocationFeed(),
        )
        self._sessions[session.id] = session
        if track_position:
            session.start_tracking()
        logger.info("Map session {} created ({} open).", session.id, len(self._sessions))
        return session

    def get(self, session_id: str) -> MapSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(f"Unknown map session {session_id}") from None

    async def close(self, session_id: str) -> None:
        session = self.get(session_id)
        del self._sessions[session_id]
        await session.close()

    async def aclose(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)
        await self.gateway.aclose()
