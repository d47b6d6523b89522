"""FastAPI application entrypoint for the user service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from userservice.api.middleware.logging import LoggingMiddleware
from userservice.api.routes import users
from userservice.core.config import settings
from userservice.core.database import database_manager
from userservice.core.exceptions import ApplicationError, ServerFault, ValidationFailure
from userservice.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Open the MongoDB client on startup and close it on shutdown."""

    await database_manager.initialize()
    try:
        yield
    finally:
        await database_manager.close()


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.include_router(users.router)

    if settings.ENABLE_METRICS:
        app.mount("/metrics", make_asgi_app())

    @app.exception_handler(ApplicationError)
    async def handle_application_error(_: Request, exc: ApplicationError) -> JSONResponse:
        """Render storage and validation errors with their HTTP status."""

        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        failure = ValidationFailure(["Request body must be a JSON object"])
        return JSONResponse(status_code=failure.status_code, content=failure.to_payload())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        fault = ServerFault()
        return JSONResponse(status_code=fault.status_code, content=fault.to_payload())

    return app


app = create_app()
