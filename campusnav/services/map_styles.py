# campusnav/services/map_styles.py
# Icon and stroke styles handed to the map front end.

from campusnav.models.map import IconStyle, StrokeStyle
from campusnav.models.routing import RouteMode

ACCESSIBILITY_ICON = IconStyle(
    src="https://cdn2.iconfinder.com/data/icons/wsd-map-markers-2/512/wsd_markers_97-512.png",
    scale=0.04,
    anchor=(0.5, 1.0),
)

USER_LOCATION_ICON = IconStyle(
    src="https://cdn-icons-png.flaticon.com/128/884/884094.png",
    scale=0.2,
)

START_ICON = IconStyle(
    src="https://cdn-icons-png.flaticon.com/128/7976/7976202.png",
    scale=0.2,
    anchor=(0.5, 1.0),
)

END_ICON = IconStyle(
    src="https://cdn-icons-png.flaticon.com/128/9131/9131546.png",
    scale=0.2,
    anchor=(0.5, 1.0),
)

# Semi-transparent blue for hover previews
PREVIEW_STROKE = StrokeStyle(color="rgba(37, 99, 235, 0.5)", width=4)

WALKING_STROKE = StrokeStyle(color="#2563eb", width=4)
WHEELCHAIR_STROKE = StrokeStyle(color="#4287f5", width=4, line_dash=[5, 5])


def route_stroke(mode: RouteMode) -> StrokeStyle:
    """
    Wheelchair routes are dashed so they stay distinguishable from walking ones.
    """
    if mode == RouteMode.WHEELCHAIR:
        return WHEELCHAIR_STROKE
    return WALKING_STROKE
