"""
Exception handlers for FastAPI.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from freight_sync.core.exceptions import (
    FreightSyncException,
    DatabaseError,
    ExternalAPIError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


async def freight_sync_exception_handler(request: Request, exc: FreightSyncException) -> JSONResponse:
    """Handler for every custom exception."""
    status_code = 500
    error_type = exc.__class__.__name__

    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 400
    elif isinstance(exc, AuthorizationError):
        status_code = 401
    elif isinstance(exc, ExternalAPIError):
        status_code = 502
    elif isinstance(exc, DatabaseError):
        status_code = 503
    elif isinstance(exc, ConfigurationError):
        status_code = 500

    logger.error(
        f"{error_type}: {exc.message}",
        extra={"error_type": error_type, "details": exc.details, "path": request.url.path},
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": error_type, "message": exc.message, "details": exc.details},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(f"Unhandled error: {exc}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "Internal server error",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers every exception handler on the FastAPI app.

    Usage:
        from freight_sync.api.error_handlers import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)
    """
    app.add_exception_handler(FreightSyncException, freight_sync_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
