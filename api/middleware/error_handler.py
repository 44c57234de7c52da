"""
Global Error Handler Middleware
================================

Maps custom exceptions to HTTP status codes and formats error responses.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    TodoBookError,
    MissingCredentialsError,
    EmailInUseError,
    InvalidCredentialsError,
    InvalidTokenError,
    RecordValidationError,
    RecordNotFoundError,
    UnsupportedPhotoFormatError,
    PhotoTooLargeError,
    StoreUnavailableError,
    ConfigurationError,
)


# Set up module logger
logger = logging.getLogger(__name__)


# Map exceptions to HTTP status codes
EXCEPTION_STATUS_MAP = {
    MissingCredentialsError: 422,
    EmailInUseError: 422,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    RecordValidationError: status.HTTP_400_BAD_REQUEST,
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    UnsupportedPhotoFormatError: status.HTTP_400_BAD_REQUEST,
    PhotoTooLargeError: 413,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: TodoBookError) -> JSONResponse:
    """Build the JSON response for a TodoBook exception."""
    status_code = EXCEPTION_STATUS_MAP.get(
        type(error),
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=status_code,
        content=error.to_dict(),
        headers=headers
    )


async def error_handler_middleware(request: Request, call_next):
    """
    Global error handling middleware.

    Catches TodoBook exceptions and converts them to appropriate
    HTTP responses with structured error bodies.

    Args:
        request: The incoming request
        call_next: The next middleware/route handler

    Returns:
        Response or JSONResponse with error details
    """
    try:
        response = await call_next(request)
        return response
    except TodoBookError as e:
        logger.warning(f"{request.method} {request.url.path} failed: {e.__class__.__name__}: {e.message}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"{request.method} {request.url.path} failed unexpectedly")
        # Unexpected errors - hide details in production
        settings = getattr(request.app.state, "settings", None)
        debug = bool(settings and settings.api_debug)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error_type": "InternalServerError",
                "message": "An unexpected error occurred",
                "details": {"error": str(e)} if debug else {}
            }
        )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are client errors (400)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_type": "RequestValidationError",
            "message": "Malformed request",
            "details": {"errors": [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ]}
        }
    )
