"""
FastAPI application entry point for the HomeSphere API.

``create_app`` is the application factory. A registry can be injected (tests
do this); otherwise one is built at startup from HomeSphereSettings, loading
the configured data file. The registry and a BasicAuth instance are stored
on ``app.state`` for route handlers.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homesphere.src.api.devices import router as devices_router
from homesphere.src.api.health import router as health_router
from homesphere.src.api.reports import router as reports_router
from homesphere.src.api.rooms import router as rooms_router
from homesphere.src.api.scenes import router as scenes_router
from homesphere.src.auth.basic import BasicAuth
from homesphere.src.config import HomeSphereSettings
from homesphere.src.main import build_system
from homesphere.src.system import HomeSphere

logger = logging.getLogger(__name__)


def _install_system(app: FastAPI, system: HomeSphere) -> None:
    app.state.system = system
    app.state.auth = BasicAuth(system)


def create_app(
    system: HomeSphere | None = None,
    settings: HomeSphereSettings | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        system: Registry to serve. Built from *settings* at startup when
            omitted.
        settings: Configuration; loaded from the environment when omitted.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings if settings is not None else HomeSphereSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan: build the registry and log readiness."""
        if getattr(app.state, "system", None) is None:
            _install_system(app, build_system(settings))
        logger.info(
            "HomeSphere API ready: %d room(s), %d device(s)",
            len(app.state.system.rooms),
            len(app.state.system.devices),
        )
        yield
        logger.info("HomeSphere API shutting down")

    app = FastAPI(
        title="HomeSphere API",
        description="Smart-home household simulation API.",
        version="0.1.0",
        lifespan=lifespan,
    )
    if system is not None:
        _install_system(app, system)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(health_router)
    app.include_router(devices_router)
    app.include_router(rooms_router)
    app.include_router(scenes_router)
    app.include_router(reports_router)

    return app


app = create_app()
