# campusnav/services/candidate_store.py
import asyncio
import uuid
from typing import Callable, List, Optional, Set, Tuple

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.errors import CandidateNotFound, NavigationRejected, RouteUnavailable
from campusnav.core.logger import logger
from campusnav.models.map import FeatureKind
from campusnav.models.routing import (
    BookmarkEntry,
    Coordinate,
    RouteCandidate,
    RouteMode,
    RouteQuery,
)
from campusnav.services.geo import haversine_distance_m
from campusnav.services.location_resolver import LocationResolver, is_live_position_query
from campusnav.services.map_adapter import MapPresentationAdapter
from campusnav.services.map_styles import PREVIEW_STROKE
from campusnav.services.route_gateway import RouteProviderGateway

# Origin label used when the live position stands in for a typed place
LIVE_POSITION_LABEL = "My Location"

ROUTE_FAILED_NOTICE = "No route could be found between these locations. Please try again."


class RouteCandidateStore:
    """
    Holds the ranked route alternatives for the current query, the user's
    selection and the session bookmarks.

    Query changes are debounced: every change supersedes the pending
    evaluation, and only the evaluation that survives the quiescence window
    talks to the directions provider. Every scheduled evaluation carries a
    sequence number; a provider response is applied only if its number is
    still the latest one.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        gateway: RouteProviderGateway,
        adapter: MapPresentationAdapter,
        config: Optional[Settings] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.resolver = resolver
        self.gateway = gateway
        self.adapter = adapter
        self.config = config or default_settings
        self._notify = notify or (lambda message: None)

        self.query = RouteQuery()
        self.candidates: List[RouteCandidate] = []
        self.selected_id: Optional[int] = None
        self.panel_open: bool = False
        self.bookmarks: List[BookmarkEntry] = []

        self._sequence: int = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._suspended: bool = False
        # Live fix the current candidate set was computed from (if any)
        self._result_fix: Optional[Coordinate] = None

    # ------------------------------------------------------------------ #
    # Query input
    # ------------------------------------------------------------------ #

    def set_query(
        self,
        origin_text: str,
        destination_text: str,
        live_fix: Optional[Coordinate],
        mode: RouteMode,
    ) -> None:
        query = RouteQuery(
            origin_text=origin_text,
            destination_text=destination_text,
            mode=mode,
            live_fix=live_fix,
        )
        if query == self.query:
            return
        self.query = query
        self._schedule()

    def update_live_fix(self, fix: Coordinate) -> None:
        """
        Record a new live fix; re-query only when the fix is the effective
        origin and it moved enough to matter.
        """
        previous = self.query.live_fix
        if fix == previous:
            return
        self.query = self.query.model_copy(update={"live_fix": fix})

        if not is_live_position_query(self.query.origin_text):
            return
        if self.candidates and self._result_fix is not None:
            if haversine_distance_m(fix, self._result_fix) < self.config.LIVE_FIX_REQUERY_M:
                return
        self._schedule()

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def is_suspended(self) -> bool:
        return self._suspended

    def resolve_endpoints(self, query: RouteQuery) -> Tuple[Optional[Coordinate], Optional[Coordinate]]:
        """
        Resolve (origin, destination) for a query; the live fix stands in
        for an empty or "my location" origin.
        """
        destination = self.resolver.resolve(query.destination_text)
        if is_live_position_query(query.origin_text):
            origin = query.live_fix
        else:
            origin = self.resolver.resolve(query.origin_text)
        return origin, destination

    # ------------------------------------------------------------------ #
    # Debounced evaluation
    # ------------------------------------------------------------------ #

    def _invalidate(self) -> int:
        self._sequence += 1
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        return self._sequence

    def _schedule(self) -> None:
        if self._suspended:
            logger.debug("Route navigation active, query evaluation deferred.")
            return
        seq = self._invalidate()
        self._timer = asyncio.get_running_loop().create_task(self._evaluate_after_quiescence(seq))

    async def _evaluate_after_quiescence(self, seq: int) -> None:
        await asyncio.sleep(self.config.QUERY_DEBOUNCE_S)

        query = self.query
        origin, destination = self.resolve_endpoints(query)
        if origin is None or destination is None:
            logger.debug(
                "Query not ready (origin={!r}, destination={!r}), clearing candidates.",
                query.origin_text,
                query.destination_text,
            )
            self._clear()
            return

        task = asyncio.get_running_loop().create_task(self._request(seq, query, origin, destination))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _labels(self, query: RouteQuery) -> Tuple[str, str]:
        if is_live_position_query(query.origin_text):
            origin_label = LIVE_POSITION_LABEL
        else:
            origin_label = self.resolver.find(query.origin_text).name
        return origin_label, self.resolver.find(query.destination_text).name

    async def _request(
        self,
        seq: int,
        query: RouteQuery,
        origin: Coordinate,
        destination: Coordinate,
    ) -> None:
        origin_label, destination_label = self._labels(query)
        try:
            candidates = await self.gateway.request_routes(
                origin,
                destination,
                query.mode,
                origin_label=origin_label,
                destination_label=destination_label,
            )
        except RouteUnavailable as e:
            if seq != self._sequence:
                logger.debug("Ignoring failure of superseded query #{}: {}", seq, e)
                return
            logger.warning("Route calculation error: {}", e)
            self._clear()
            self._notify(ROUTE_FAILED_NOTICE)
            return

        if seq != self._sequence:
            logger.debug("Discarding stale response for query #{} (latest #{}).", seq, self._sequence)
            return

        self._apply(candidates, query)

    def _apply(self, candidates: List[RouteCandidate], query: RouteQuery) -> None:
        self.adapter.remove(FeatureKind.PREVIEW)
        self.candidates = list(candidates)
        self.selected_id = self.candidates[0].id
        self.panel_open = True
        self._result_fix = query.live_fix if is_live_position_query(query.origin_text) else None
        logger.info(
            "{} route option(s) for {} -> {} ({})",
            len(self.candidates),
            self.candidates[0].origin_label,
            self.candidates[0].destination_label,
            query.mode.value,
        )

    def _clear(self) -> None:
        self.adapter.remove(FeatureKind.PREVIEW)
        self.candidates = []
        self.selected_id = None
        self.panel_open = False
        self._result_fix = None

    async def settle(self) -> None:
        """
        Wait until no evaluation is pending and no request is in flight.
        """
        while True:
            pending = [t for t in self._inflight if not t.done()]
            if self._timer is not None and not self._timer.done():
                pending.append(self._timer)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self) -> None:
        self._invalidate()
        for task in list(self._inflight):
            task.cancel()
        await self.settle()

    # ------------------------------------------------------------------ #
    # Navigation hooks
    # ------------------------------------------------------------------ #

    def suspend(self) -> None:
        """
        Stop evaluating queries (a route is being followed) and close the panel.
        """
        self._suspended = True
        self._invalidate()
        self.adapter.remove(FeatureKind.PREVIEW)
        self.panel_open = False

    def reset_inputs(self) -> None:
        """
        Forget typed origin/destination and every candidate; keep mode and live fix.
        """
        self._invalidate()
        self.query = RouteQuery(mode=self.query.mode, live_fix=self.query.live_fix)
        self._clear()
        self._suspended = False

    # ------------------------------------------------------------------ #
    # Selection and preview
    # ------------------------------------------------------------------ #

    def get(self, route_id: int) -> RouteCandidate:
        for candidate in self.candidates:
            if candidate.id == route_id:
                return candidate
        raise CandidateNotFound(f"No route option with id {route_id}")

    @property
    def selected(self) -> Optional[RouteCandidate]:
        if self.selected_id is None:
            return None
        try:
            return self.get(self.selected_id)
        except CandidateNotFound:
            return None

    def select(self, route_id: int) -> RouteCandidate:
        candidate = self.get(route_id)
        self.selected_id = route_id
        return candidate

    def preview(self, route_id: int) -> None:
        candidate = self.get(route_id)
        self.adapter.draw_line(FeatureKind.PREVIEW, candidate.path, PREVIEW_STROKE)

    def clear_preview(self) -> None:
        self.adapter.remove(FeatureKind.PREVIEW)

    # ------------------------------------------------------------------ #
    # Bookmarks
    # ------------------------------------------------------------------ #

    def toggle_bookmark(self, route_id: int) -> bool:
        """
        Bookmark a route option, or drop its bookmark if it already has one.

        Returns True when a bookmark was added.
        """
        candidate = self.get(route_id)
        for entry in self.bookmarks:
            if entry.route_key == candidate.route_key:
                self.bookmarks.remove(entry)
                logger.info("Bookmark {} removed.", entry.bookmark_id)
                return False

        entry = BookmarkEntry(
            bookmark_id=uuid.uuid4().hex,
            route_key=candidate.route_key,
            candidate=candidate,
            origin_label=candidate.origin_label,
            destination_label=candidate.destination_label,
            mode=candidate.mode,
        )
        self.bookmarks.append(entry)
        logger.info(
            "Bookmarked {} ({} -> {}) as {}.",
            candidate.summary,
            entry.origin_label,
            entry.destination_label,
            entry.bookmark_id,
        )
        return True

    def is_bookmarked(self, route_id: int) -> bool:
        route_key = self.get(route_id).route_key
        return any(entry.route_key == route_key for entry in self.bookmarks)

    def get_bookmark(self, bookmark_id: str) -> BookmarkEntry:
        for entry in self.bookmarks:
            if entry.bookmark_id == bookmark_id:
                return entry
        raise CandidateNotFound(f"No bookmark with id {bookmark_id}")

    def remove_bookmark(self, bookmark_id: str) -> None:
        self.bookmarks.remove(self.get_bookmark(bookmark_id))

    def recall_bookmark(self, bookmark_id: str) -> RouteCandidate:
        """
        Offer a bookmarked route as the only option, without asking the provider again.
        """
        entry = self.get_bookmark(bookmark_id)
        if self._suspended:
            raise NavigationRejected("Please end the current route before opening a bookmark.")

        self._invalidate()
        origin_text = "" if entry.origin_label == LIVE_POSITION_LABEL else entry.origin_label
        self.query = RouteQuery(
            origin_text=origin_text,
            destination_text=entry.destination_label,
            mode=entry.mode,
            live_fix=self.query.live_fix,
        )
        candidate = entry.candidate.model_copy(update={"id": 0})
        self._apply([candidate], self.query)
        if not origin_text and candidate.path:
            # Later fixes are measured against where the recalled path starts
            self._result_fix = candidate.path[0]
        return candidate
