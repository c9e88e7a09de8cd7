# campusnav/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from campusnav.api.deps import get_session_manager
from campusnav.api.v1 import routes_health, routes_locations, routes_sessions
from campusnav.core.config import settings
from campusnav.core.errors import (
    CandidateNotFound,
    NavigationRejected,
    SessionNotFound,
    TrackingInactive,
)
from campusnav.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("{} {} starting ({})", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    yield
    # Tear down whichever manager the routes actually used
    provider = app.dependency_overrides.get(get_session_manager, get_session_manager)
    manager = provider()
    logger.info("Shutting down, closing {} map session(s).", len(manager))
    await manager.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Campus accessibility map: route options, navigation and live tracking.",
        lifespan=lifespan,
    )

    # Routers
    app.include_router(routes_health.router, prefix="", tags=["health"])
    app.include_router(routes_locations.router, prefix="", tags=["locations"])
    app.include_router(routes_sessions.router, prefix="", tags=["navigation"])

    @app.exception_handler(SessionNotFound)
    @app.exception_handler(CandidateNotFound)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.info("{} {} -> 404: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(NavigationRejected)
    @app.exception_handler(TrackingInactive)
    async def conflict_handler(request: Request, exc: Exception) -> JSONResponse:
        # The message is user-facing; the front end shows it verbatim
        logger.info("{} {} rejected: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    return app


app = create_app()
