import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import (
    CollectorError,
    InsufficientSpaceError,
    InvalidPhaseError,
    MalformedLayoutError,
    NoHistoryError,
    UnknownScenarioError,
)
from .routers import collector
from .services.controller import CollectorController
from .services.scenarios import get_scenario

LOG = logging.getLogger("gc_visualizer")

# Most specific class first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[CollectorError], int]] = [
    (InsufficientSpaceError, 409),
    (MalformedLayoutError, 422),
    (InvalidPhaseError, 409),
    (NoHistoryError, 409),
    (UnknownScenarioError, 404),
]


def status_for(exc: CollectorError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings if settings is not None else Settings.from_env()

    app = FastAPI(
        title=settings.title,
        description="Backend API for stepping through a mark-compact garbage collection",
        version=settings.version,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.controller = CollectorController(
        get_scenario(settings.default_scenario),
        max_history=settings.max_history,
    )

    @app.exception_handler(CollectorError)
    async def collector_error(request: Request, exc: CollectorError) -> JSONResponse:
        LOG.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": f"{settings.title} v{settings.version}"}

    app.include_router(collector.router)
    LOG.info("%s v%s ready", settings.title, settings.version)
    return app
