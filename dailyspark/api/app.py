"""FastAPI server for DailySpark"""

from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dailyspark.api.routes.curricula import router as curricula_router
from dailyspark.api.routes.health import router as health_router
from dailyspark.api.routes.topics import router as topics_router
from dailyspark.api.routes.users import router as users_router
from dailyspark.config import APP_VERSION, Settings
from dailyspark.errors import (
    AlreadyExistsError,
    BatchError,
    NotFoundError,
    StoreError,
    UserLimitReached,
    ValidationFailure,
)
from dailyspark.observability.logging import configure_logging, get_logger
from dailyspark.observability.telemetry import counter, log_event
from dailyspark.services import Services
from dailyspark.utils.error_sanitizer import sanitize_error_message

logger = get_logger(__name__)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Sanitized 422 that names the invalid fields without echoing values."""
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


async def client_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = (
        status.HTTP_404_NOT_FOUND
        if isinstance(exc, NotFoundError)
        else status.HTTP_400_BAD_REQUEST
    )
    return JSONResponse(
        status_code=code, content={"detail": sanitize_error_message(str(exc), code)}
    )


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Request to %s failed: %s", request.url.path, exc)
    counter("api.server_errors")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": sanitize_error_message(str(exc), 500)},
    )


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """
    Build the API app.

    Routes get their Services from ``app.state``: ``services`` when given,
    otherwise built once from ``settings`` (the environment when omitted).
    """
    if services is not None:
        settings = services.settings
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="DailySpark API", version=APP_VERSION)
    app.state.settings = settings
    app.state.services = services

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    for exc_type in (ValidationFailure, UserLimitReached, AlreadyExistsError, NotFoundError):
        app.add_exception_handler(exc_type, client_error_handler)
    for exc_type in (StoreError, BatchError):
        app.add_exception_handler(exc_type, server_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(curricula_router)
    app.include_router(topics_router)

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "service": "DailySpark API",
            "version": APP_VERSION,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "users": "/api/users",
                "curricula": "/api/curricula",
                "topics": "/api/topics",
                "process_all": "/api/process-all",
            },
        }

    log_event("api.startup", service="dailyspark", version=APP_VERSION, env=settings.env)
    return app


# Load environment variables from .env file
load_dotenv()

app = create_app()
