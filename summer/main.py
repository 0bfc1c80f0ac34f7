from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from typing import Optional

from summer.utils.config import Settings
from summer.utils.errors import StorageError, UpstreamError
from summer.utils.logging import setup_logging
from summer.utils.llm_client import close_analytics
from summer.services.registry import Services, build_services
from summer.routers import (
    channels,
    summaries,
    summarize,
    sync,
)

import logging
import time

SECRET_FIELDS = {"postgres_dsn", "youtube_api_key", "openai_api_key", "posthog_api_key"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logging.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}: {e}"
            )
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logging.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)"
        )
        return response


def create_app(
    settings: Optional[Settings] = None, services: Optional[Services] = None
) -> FastAPI:
    """
    Builds the application.

    ``services`` lets callers supply a pre-built service graph; otherwise one
    is built from ``settings`` at startup and closed at shutdown.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, json_output=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown."""
        # Startup
        owns_services = app.state.services is None
        if owns_services:
            app.state.services = await build_services(settings)
        logging.info(f"🚀 Summer API starting on {settings.host}:{settings.port}")
        logging.info(f"Environment: {settings.app_env}")
        logging.info(f"Storage backend: {settings.storage_backend}")
        logging.info("Routers registered: /channels, /summaries, /summarize, /sync")
        yield
        # Shutdown
        if owns_services:
            await app.state.services.close()
            app.state.services = None
        close_analytics()

    app = FastAPI(title="Summer API", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(RequestLoggingMiddleware)

    # Health endpoint
    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok"}

    # Debug endpoint
    @app.get("/debug/config", tags=["debug"])
    async def debug_config():
        """Returns the current configuration with secrets masked. Local only."""
        if not settings.is_local:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        config = settings.model_dump()
        for field in SECRET_FIELDS:
            if config.get(field):
                config[field] = "***"
        return config

    # Exception handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logging.error(f"Storage failure for {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage temporarily unavailable"},
        )

    @app.exception_handler(UpstreamError)
    async def upstream_exception_handler(request: Request, exc: UpstreamError):
        logging.error(
            f"Upstream failure for {request.method} {request.url.path} ({exc.kind.value}): {exc}"
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"Upstream service error: {exc.kind.value}"},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logging.error(
            f"Unhandled exception for {request.method} {request.url.path}: {type(exc).__name__}",
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    app.include_router(channels.router)
    app.include_router(summaries.router)
    app.include_router(summarize.router)
    app.include_router(sync.router)

    return app


app = create_app()
