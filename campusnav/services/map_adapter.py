# campusnav/services/map_adapter.py
from typing import Any, Dict, List, Optional, Sequence, Tuple

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.logger import logger
from campusnav.models.map import (
    SINGLETON_KINDS,
    BaseLayer,
    BoundingBox,
    FeatureKind,
    FitRequest,
    IconStyle,
    MapFeature,
    StrokeStyle,
    Viewport,
)
from campusnav.models.routing import Coordinate

FeatureId = Tuple[FeatureKind, str]


class MapPresentationAdapter:
    """
    Declarative feature table for one map view.

    The planning core never touches rendered features directly: it issues
    upsert/remove calls keyed by (kind, key) and the front end renders
    whatever the table holds. Singleton kinds (preview, user-location) own
    exactly one slot, keyed by the kind alone.
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        self.config = config or default_settings
        self._features: Dict[FeatureId, MapFeature] = {}
        self._attached = True
        self.viewport = Viewport(
            center=Coordinate(lon=self.config.MAP_CENTER_LON, lat=self.config.MAP_CENTER_LAT),
            zoom=self.config.MAP_INITIAL_ZOOM,
            max_zoom=self.config.MAP_MAX_ZOOM,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def is_attached(self) -> bool:
        return self._attached

    def detach(self) -> None:
        """
        Drop all features; further draw calls are ignored.
        """
        self._attached = False
        self._features.clear()

    def _guard(self, operation: str) -> bool:
        if not self._attached:
            logger.warning("Map adapter detached, ignoring {}", operation)
            return False
        return True

    # ------------------------------------------------------------------ #
    # Features
    # ------------------------------------------------------------------ #

    @staticmethod
    def _feature_id(kind: FeatureKind, key: Optional[str]) -> FeatureId:
        if kind in SINGLETON_KINDS:
            return kind, kind.value
        if key is None:
            raise ValueError(f"Feature kind {kind.value!r} requires a key")
        return kind, key

    def upsert_point(
        self,
        kind: FeatureKind,
        coordinate: Coordinate,
        icon: IconStyle,
        key: Optional[str] = None,
    ) -> None:
        if not self._guard(f"upsert_point({kind.value})"):
            return
        fid = self._feature_id(kind, key)
        self._features[fid] = MapFeature(
            kind=kind,
            key=fid[1],
            geometry={"type": "Point", "coordinates": coordinate.as_lonlat()},
            icon=icon,
        )

    def draw_line(
        self,
        kind: FeatureKind,
        path: Sequence[Coordinate],
        stroke: StrokeStyle,
        key: Optional[str] = None,
    ) -> None:
        if not self._guard(f"draw_line({kind.value})"):
            return
        fid = self._feature_id(kind, key)
        self._features[fid] = MapFeature(
            kind=kind,
            key=fid[1],
            geometry={"type": "LineString", "coordinates": [c.as_lonlat() for c in path]},
            stroke=stroke,
        )

    def remove(self, kind: FeatureKind, key: Optional[str] = None) -> bool:
        fid = self._feature_id(kind, key)
        return self._features.pop(fid, None) is not None

    def clear_kinds(self, *kinds: FeatureKind) -> int:
        doomed = [fid for fid in self._features if fid[0] in kinds]
        for fid in doomed:
            del self._features[fid]
        return len(doomed)

    def get(self, kind: FeatureKind, key: Optional[str] = None) -> Optional[MapFeature]:
        return self._features.get(self._feature_id(kind, key))

    def features(self, kind: Optional[FeatureKind] = None) -> List[MapFeature]:
        return [f for fid, f in self._features.items() if kind is None or fid[0] == kind]

    # ------------------------------------------------------------------ #
    # Viewport
    # ------------------------------------------------------------------ #

    def set_center(self, coordinate: Coordinate) -> None:
        if not self._guard("set_center"):
            return
        self.viewport = self.viewport.model_copy(update={"center": coordinate})

    def fit_bounds(self, bbox: BoundingBox) -> None:
        if not self._guard("fit_bounds"):
            return
        fit = FitRequest(
            bbox=bbox,
            padding_px=self.config.FIT_PADDING_PX,
            max_zoom=self.config.FIT_MAX_ZOOM,
            duration_ms=self.config.FIT_DURATION_MS,
        )
        self.viewport = self.viewport.model_copy(update={"fit": fit})

    def toggle_base_layer(self) -> BaseLayer:
        if self.viewport.base_layer == BaseLayer.STANDARD:
            layer = BaseLayer.SATELLITE
        else:
            layer = BaseLayer.STANDARD
        self.viewport = self.viewport.model_copy(update={"base_layer": layer})
        return layer

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [f.to_geojson() for f in self._features.values()],
        }
