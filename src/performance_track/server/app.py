"""FastAPI app factory.

Endpoints are thin wrappers over the workflow engine and the stores wired in
:func:`performance_track.services.build_services`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from performance_track import __version__
from performance_track.server.config import ServerSettings
from performance_track.server.goals_router import router as goals_router
from performance_track.server.models import error
from performance_track.server.notifications_router import router as notifications_router
from performance_track.server.sweeper_runner import SweeperRunner
from performance_track.services import build_services
from performance_track.workflow.errors import (
    Conflict,
    Forbidden,
    GoalNotFound,
    InvalidTransition,
    ValidationFailed,
    WorkflowError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[WorkflowError], int] = {
    GoalNotFound: 404,
    Forbidden: 403,
    InvalidTransition: 409,
    ValidationFailed: 400,
    Conflict: 409,
}


def _status_for(exc: WorkflowError) -> int:
    for cls, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, cls):
            return status
    return 400


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or ServerSettings()
    services = build_services(settings)
    runner = (
        SweeperRunner(
            sweeper=services.sweeper,
            interval_seconds=settings.reminder_sweep_interval_seconds,
        )
        if settings.reminder_sweep_enabled
        else None
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if runner is not None:
            runner.start()
        try:
            yield
        finally:
            if runner is not None:
                runner.stop()
            services.close()

    app = FastAPI(
        title="Performance Track",
        version=__version__,
        description="REST API over the goal lifecycle workflow.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(_: Request, exc: WorkflowError) -> JSONResponse:
        body = error(str(exc), code=exc.code)
        return JSONResponse(status_code=_status_for(exc), content=body.model_dump())

    @app.exception_handler(HTTPException)
    async def http_error_handler(_: Request, exc: HTTPException) -> JSONResponse:
        body = error(str(exc.detail), code=f"HTTP_{exc.status_code}")
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(), headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        msg = f"Invalid request: {where} {first.get('msg', '')}".strip()
        return JSONResponse(
            status_code=400, content=error(msg, code="VALIDATION_FAILED").model_dump()
        )

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(goals_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")

    logger.info(
        "Server app created",
        extra={
            "state_path": str(settings.state_path),
            "dispatch_workers": settings.dispatch_workers,
            "reminder_sweep_enabled": settings.reminder_sweep_enabled,
        },
    )
    return app
