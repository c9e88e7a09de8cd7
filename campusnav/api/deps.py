# campusnav/api/deps.py
from campusnav.services.map_session import MapSessionManager

# Single shared instance
session_manager = MapSessionManager.from_settings()


def get_session_manager() -> MapSessionManager:
    return session_manager
