# campusnav/models/map.py

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from campusnav.models.routing import Coordinate


class FeatureKind(str, Enum):
    MARKER = "marker"
    PREVIEW = "preview"
    ROUTE_LINE = "route-line"
    ACCESSIBILITY_MARKER = "accessibility-marker"
    USER_LOCATION = "user-location"


# Kinds that only ever hold one feature; they are keyed by kind alone.
SINGLETON_KINDS = frozenset({FeatureKind.PREVIEW, FeatureKind.USER_LOCATION})

# Kinds removed when the active route is cleared.
ROUTE_KINDS = (FeatureKind.MARKER, FeatureKind.ROUTE_LINE, FeatureKind.PREVIEW)


class BaseLayer(str, Enum):
    STANDARD = "standard"
    SATELLITE = "satellite"


class IconStyle(BaseModel):
    src: str
    scale: float = 1.0
    anchor: Optional[Tuple[float, float]] = None


class StrokeStyle(BaseModel):
    color: str
    width: float = 4.0
    line_dash: Optional[List[int]] = None


class MapFeature(BaseModel):
    """
    A rendered feature handle. Geometry is a GeoJSON-like dict in lon/lat.
    """
    kind: FeatureKind
    key: str
    geometry: Dict[str, Any]
    icon: Optional[IconStyle] = None
    stroke: Optional[StrokeStyle] = None

    def to_geojson(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"kind": self.kind.value, "key": self.key}
        if self.icon is not None:
            properties["icon"] = self.icon.model_dump()
        if self.stroke is not None:
            properties["stroke"] = self.stroke.model_dump()
        return {"type": "Feature", "geometry": self.geometry, "properties": properties}


class BoundingBox(BaseModel):
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def around(cls, *points: Coordinate) -> "BoundingBox":
        lons = [p.lon for p in points]
        lats = [p.lat for p in points]
        return cls(min_lon=min(lons), min_lat=min(lats), max_lon=max(lons), max_lat=max(lats))


class FitRequest(BaseModel):
    """
    Viewport fit instruction for the map front end.
    """
    bbox: BoundingBox
    padding_px: int
    max_zoom: int
    duration_ms: int


class Viewport(BaseModel):
    center: Coordinate
    zoom: int
    max_zoom: int
    base_layer: BaseLayer = BaseLayer.STANDARD
    fit: Optional[FitRequest] = None
