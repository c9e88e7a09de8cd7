# campusnav/api/v1/routes_health.py
from fastapi import APIRouter, Depends

from campusnav.api.deps import get_session_manager
from campusnav.core.config import settings
from campusnav.services.map_session import MapSessionManager

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("/", summary="Health check")
async def health_check(manager: MapSessionManager = Depends(get_session_manager)):
    """
    Reports that the API is up, with the size of the place catalogue and
    the number of open map sessions.
    """
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "locations": len(manager.resolver.locations),
        "sessions": len(manager),
    }
