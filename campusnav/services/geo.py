# campusnav/services/geo.py
import math

from campusnav.models.routing import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance_m(a: Coordinate, b: Coordinate) -> float:
    """
    Compute great-circle distance between two points (lon/lat in degrees), in metres.
    """
    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
