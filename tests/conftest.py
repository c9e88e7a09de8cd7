# tests/conftest.py
import asyncio
import os
import sys
import uuid
from typing import Dict, List, Optional

import pytest

# Add the project root directory to sys.path so that "import campusnav" works
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from campusnav.core.config import Settings  # noqa: E402
from campusnav.models.routing import (  # noqa: E402
    Coordinate,
    Location,
    RouteCandidate,
    RouteMode,
    TurnStep,
)
from campusnav.services.candidate_store import RouteCandidateStore  # noqa: E402
from campusnav.services.location_resolver import LocationResolver  # noqa: E402
from campusnav.services.map_adapter import MapPresentationAdapter  # noqa: E402
from campusnav.services.navigation import NavigationStateMachine  # noqa: E402

# Order matters: "Student Center Ballroom" comes before "Student Center"
TEST_LOCATIONS = [
    Location(name="Sturgis Library", coordinates=Coordinate(lon=-84.58392, lat=34.03847)),
    Location(name="Student Center Ballroom", coordinates=Coordinate(lon=-84.58290, lat=34.03760)),
    Location(name="Student Center", coordinates=Coordinate(lon=-84.58312, lat=34.03773)),
    Location(name="Kennesaw Hall", coordinates=Coordinate(lon=-84.58138, lat=34.03944)),
    Location(name="Burruss Building", coordinates=Coordinate(lon=-84.58226, lat=34.04017)),
    Location(name="Bailey Performance Center", coordinates=Coordinate(lon=-84.58707, lat=34.03647)),
]

LIVE_FIX = Coordinate(lon=-84.58, lat=34.04)

DEBOUNCE_S = 0.05


def make_candidates(
    count: int,
    origin: Coordinate,
    destination: Coordinate,
    mode: RouteMode = RouteMode.WALKING,
    origin_label: str = "",
    destination_label: str = "",
) -> List[RouteCandidate]:
    """
    Route k has 3 + k steps, so option sets are easy to tell apart.
    """
    middle = Coordinate(lon=(origin.lon + destination.lon) / 2, lat=origin.lat)
    candidates = []
    for index in range(count):
        steps = [
            TurnStep(
                kind="depart" if i == 0 else "straight",
                instruction=f"Step {i + 1} of route {index + 1}",
                distance_m=40.0 + i,
                duration_s=30.0 + i,
            )
            for i in range(3 + index)
        ]
        candidates.append(
            RouteCandidate(
                id=index,
                route_key=uuid.uuid4().hex,
                summary=f"Route {index + 1}",
                distance_m=400.0 + 50 * index,
                duration_s=300.0 + 40 * index,
                path=[origin, middle, destination],
                steps=steps,
                origin_label=origin_label,
                destination_label=destination_label,
                mode=mode,
            )
        )
    return candidates


class FakeGateway:
    """
    Stands in for the directions provider; records every request.

    `gates` maps a call index to an event the call waits for before answering.
    """

    def __init__(self, routes: int = 2) -> None:
        self.routes = routes
        self.error: Optional[Exception] = None
        self.calls: List[Dict] = []
        self.gates: Dict[int, asyncio.Event] = {}
        self.closed = False

    async def request_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: RouteMode,
        origin_label: str = "",
        destination_label: str = "",
    ) -> List[RouteCandidate]:
        index = len(self.calls)
        self.calls.append(
            {
                "origin": origin,
                "destination": destination,
                "mode": mode,
                "origin_label": origin_label,
                "destination_label": destination_label,
            }
        )
        gate = self.gates.get(index)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return make_candidates(self.routes, origin, destination, mode, origin_label, destination_label)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        QUERY_DEBOUNCE_S=DEBOUNCE_S,
        POSITION_FIX_TIMEOUT_S=30.0,
        ORS_API_KEY="test-key",
        ORS_BASE_URL="https://ors.test",
    )


@pytest.fixture
def resolver() -> LocationResolver:
    return LocationResolver(TEST_LOCATIONS)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def adapter(test_settings) -> MapPresentationAdapter:
    return MapPresentationAdapter(test_settings)


@pytest.fixture
def notices() -> List[str]:
    return []


@pytest.fixture
def store(resolver, gateway, adapter, test_settings, notices) -> RouteCandidateStore:
    return RouteCandidateStore(resolver, gateway, adapter, test_settings, notify=notices.append)


@pytest.fixture
def navigator(resolver, store, adapter, test_settings, notices) -> NavigationStateMachine:
    return NavigationStateMachine(resolver, store, adapter, test_settings, notify=notices.append)
