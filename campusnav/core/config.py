# campusnav/core/config.py
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# PACKAGE_DIR = .../campusnav
PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_LOCATIONS_FILE = PACKAGE_DIR / "data" / "campus_locations.json"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (.env file).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    APP_NAME: str = "Campus Accessible Map API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # OpenRouteService directions provider
    ORS_API_KEY: str = ""
    ORS_BASE_URL: str = "https://api.openrouteservice.org"
    ORS_TIMEOUT_S: float = 10.0
    ROUTE_ALTERNATIVES: int = 3
    ROUTE_SHARE_FACTOR: float = 0.6

    # Route planning / navigation
    QUERY_DEBOUNCE_S: float = 0.5
    POSITION_FIX_TIMEOUT_S: float = 5.0
    ARRIVAL_RADIUS_M: float = 15.0
    # Live-fix movement that forces a fresh query when the fix is the origin
    LIVE_FIX_REQUERY_M: float = 25.0
    LOCATIONS_FILE: Path = DEFAULT_LOCATIONS_FILE

    # Map viewport
    MAP_CENTER_LON: float = -84.5831
    MAP_CENTER_LAT: float = 34.0390
    MAP_INITIAL_ZOOM: int = 17
    MAP_MAX_ZOOM: int = 19
    FIT_PADDING_PX: int = 50
    FIT_MAX_ZOOM: int = 18
    FIT_DURATION_MS: int = 1000


settings = Settings()
