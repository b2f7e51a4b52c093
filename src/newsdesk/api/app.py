"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from newsdesk import __version__
from newsdesk.api.routes import router
from newsdesk.config import Settings, get_settings
from newsdesk.core.errors import StoreError
from newsdesk.core.logger import get_logger, log_error_with_context, set_correlation_id
from newsdesk.services import Services, build_services

log = get_logger("api")


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the app.

    Args:
        settings: Configuration; defaults to the process settings
        services: Pre-built components (tests); built from ``settings`` otherwise

    The ingestion scheduler starts with the app when ``scheduler_enabled``
    is set and is stopped on shutdown.
    """
    if services is not None:
        settings = services.settings
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = services or build_services(settings)
        app.state.services = svc
        if settings.scheduler_enabled:
            svc.scheduler.start()
        log.info(f"newsdesk API ready on port {settings.port}")
        try:
            yield
        finally:
            await svc.aclose()

    app = FastAPI(
        title="newsdesk",
        description="Financial news aggregation, summaries and quotes",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    @app.middleware("http")
    async def correlation_id(request: Request, call_next):
        cid = set_correlation_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = cid
        return response

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        log_error_with_context(log, "Datastore read failed", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(router)
    return app
