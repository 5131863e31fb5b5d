"""
Error handling utilities for the availability results service.
Provides centralized exception handlers for FastAPI application.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..ports.exceptions import (
    AnalyticsServiceError,
    AuthenticationError,
    RepositoryError
)


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """Handle missing or unknown API keys."""
    return JSONResponse(
        status_code=401,
        content={
            "error": "Unauthorized",
            "message": exc.message,
            "details": "Provide a valid x-api-key header",
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def repository_error_handler(request: Request, exc: RepositoryError):
    """Handle repository errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Data access error",
            "message": exc.message,
            "details": exc.details,
            "timestamp": str(exc.__class__.__name__)
        }
    )


async def analytics_service_error_handler(request: Request, exc: AnalyticsServiceError):
    """Handle general service errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Availability service error",
            "message": exc.message,
            "details": exc.details,
            "timestamp": str(exc.__class__.__name__)
        }
    )


def register_error_handlers(app: FastAPI):
    """
    Register all exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(AnalyticsServiceError, analytics_service_error_handler)
