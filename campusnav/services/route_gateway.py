# campusnav/services/route_gateway.py
import uuid
from time import perf_counter
from typing import Any, Dict, List, Optional

import httpx

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.errors import RouteUnavailable
from campusnav.core.logger import logger
from campusnav.models.routing import Coordinate, RouteCandidate, RouteMode, TurnStep

PROFILES: Dict[RouteMode, str] = {
    RouteMode.WALKING: "foot-walking",
    RouteMode.WHEELCHAIR: "wheelchair",
}

# OpenRouteService maneuver type codes
STEP_KINDS: Dict[int, str] = {
    0: "left",
    1: "right",
    2: "sharp-left",
    3: "sharp-right",
    4: "slight-left",
    5: "slight-right",
    6: "straight",
    7: "enter-roundabout",
    8: "exit-roundabout",
    9: "u-turn",
    10: "goal",
    11: "depart",
    12: "keep-left",
    13: "keep-right",
}


def profile_for(mode: RouteMode) -> str:
    return PROFILES[mode]


class RouteProviderGateway:
    """
    Client for the OpenRouteService directions API.

    - maps the route mode to the provider profile
    - asks for up to ROUTE_ALTERNATIVES alternatives with turn instructions
    - converts the GeoJSON response into ranked RouteCandidate objects
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_settings
        self._client = client or httpx.AsyncClient(
            base_url=self.config.ORS_BASE_URL,
            timeout=self.config.ORS_TIMEOUT_S,
        )
        if not self.config.ORS_API_KEY:
            logger.warning("ORS_API_KEY is not set; directions requests will be rejected by the provider.")

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build_payload(self, origin: Coordinate, destination: Coordinate) -> Dict[str, Any]:
        return {
            "coordinates": [origin.as_lonlat(), destination.as_lonlat()],
            "alternative_routes": {
                "target_count": self.config.ROUTE_ALTERNATIVES,
                "share_factor": self.config.ROUTE_SHARE_FACTOR,
            },
            "instructions": True,
        }

    async def request_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        mode: RouteMode,
        origin_label: str = "",
        destination_label: str = "",
    ) -> List[RouteCandidate]:
        """
        Request ranked alternative routes between two points.

        Raises:
            RouteUnavailable: on transport errors, error statuses, malformed
            responses or when the provider returns no route at all.
        """
        profile = profile_for(mode)
        t0 = perf_counter()

        logger.info(
            "Requesting {} routes ({:.6f}, {:.6f}) -> ({:.6f}, {:.6f})",
            profile,
            origin.lon,
            origin.lat,
            destination.lon,
            destination.lat,
        )

        try:
            response = await self._client.post(
                f"/v2/directions/{profile}/geojson",
                json=self.build_payload(origin, destination),
                headers={
                    "Authorization": self.config.ORS_API_KEY,
                    "Accept": "application/json, application/geo+json",
                },
            )
        except httpx.HTTPError as e:
            raise RouteUnavailable(f"Directions request failed: {e!r}") from e

        if response.status_code >= 400:
            raise RouteUnavailable(
                f"Directions provider returned HTTP {response.status_code}: {self._error_message(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RouteUnavailable("Directions provider returned a non-JSON body") from e

        candidates = self.parse_candidates(body, mode, origin_label, destination_label)

        logger.info(
            "Received {} route candidate(s) in {:.2f} ms",
            len(candidates),
            (perf_counter() - t0) * 1000.0,
        )
        return candidates

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            return response.text[:200]
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error)

    @staticmethod
    def parse_steps(segments: Any) -> List[TurnStep]:
        """
        Flatten the maneuver list of the first segment (leg).
        """
        if not segments:
            return []

        steps: List[TurnStep] = []
        for raw in segments[0].get("steps", []):
            code = raw.get("type")
            steps.append(
                TurnStep(
                    kind=STEP_KINDS.get(code, str(code)),
                    instruction=raw.get("instruction", ""),
                    distance_m=float(raw.get("distance", 0.0)),
                    duration_s=float(raw.get("duration", 0.0)),
                )
            )
        return steps

    def parse_candidates(
        self,
        body: Any,
        mode: RouteMode,
        origin_label: str = "",
        destination_label: str = "",
    ) -> List[RouteCandidate]:
        try:
            features = body["features"]
            candidates: List[RouteCandidate] = []
            for index, feature in enumerate(features):
                properties = feature["properties"]
                # ORS omits zero-valued summary fields
                summary = properties.get("summary", {})
                candidates.append(
                    RouteCandidate(
                        id=index,
                        route_key=uuid.uuid4().hex,
                        summary=f"Route {index + 1}",
                        distance_m=float(summary.get("distance", 0.0)),
                        duration_s=float(summary.get("duration", 0.0)),
                        path=[
                            Coordinate(lon=c[0], lat=c[1])
                            for c in feature["geometry"]["coordinates"]
                        ],
                        steps=self.parse_steps(properties.get("segments")),
                        origin_label=origin_label,
                        destination_label=destination_label,
                        mode=mode,
                    )
                )
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise RouteUnavailable(f"Malformed directions response: {e!r}") from e

        if not candidates:
            raise RouteUnavailable("Directions provider returned no routes")

        return candidates
