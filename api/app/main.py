# main.py

"""FastAPI application for the sweet shop inventory API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .db import Database
from .errors import ServiceError, Unauthorized
from .middlewares import (
    BodyLimitMiddleware,
    CORSMiddleware,
    LoggingMiddleware,
    RequestIdMiddleware,
)
from .obs import configure_logging
from .routes_auth import router as auth_router
from .routes_health import router as health_router
from .routes_sweets import router as sweets_router
from .services.sweets import field_errors
from .utils.responses import error_response

logger = logging.getLogger("api")


def create_app(
    settings: Settings | None = None, database: Database | None = None
) -> FastAPI:
    """Build the application around one :class:`Database` gateway.

    The gateway connects lazily on the first query and is disposed on shutdown.
    """

    settings = settings or get_settings()
    db = database or Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await db.dispose()

    app = FastAPI(
        title="Sweet Shop API",
        version="1.0.0",
        servers=[{"url": "/"}],
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db

    # Added last runs first: CORS answers preflights before anything else.
    app.add_middleware(BodyLimitMiddleware, max_mb=settings.max_body_mb)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(CORSMiddleware)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        extra = {"status": exc.status_code, "route": request.url.path}
        if not exc.public:
            logger.error("%s: %s", exc.code, exc.message, extra=extra)
            return error_response(exc.status_code, exc.code, "Internal Server Error")
        logger.warning(exc.message, extra=extra)
        headers = (
            {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        )
        return error_response(
            exc.status_code, exc.code, exc.message, exc.details, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.warning(
            "request validation failed",
            extra={"status": 400, "route": request.url.path},
        )
        return error_response(
            400,
            "VALIDATION_ERROR",
            "Invalid request",
            {"errors": field_errors(list(exc.errors()))},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail, extra={"status": exc.status_code, "route": request.url.path}
        )
        return error_response(
            exc.status_code, exc.status_code, exc.detail, headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error", extra={"status": 500, "route": request.url.path}
        )
        return error_response(500, "INTERNAL_ERROR", "Internal Server Error")

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(sweets_router)
    return app


settings = get_settings()
configure_logging(getattr(logging, settings.log_level.upper(), logging.INFO))
app = create_app(settings)
