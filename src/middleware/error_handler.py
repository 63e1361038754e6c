# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Global error handling for consistent error responses."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.exceptions import (
    ConfigTypeError,
    DuplicateKeyError,
    EncryptionError,
    InUseError,
    NotFoundError,
    PMPulseError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses resolve through their base
ERROR_STATUS_CODES: list[tuple[type[PMPulseError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (InUseError, status.HTTP_409_CONFLICT),
    (ConfigTypeError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (EncryptionError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: PMPulseError) -> int:
    """Get the HTTP status code for a domain error."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling and logging.

    Catches unhandled exceptions and converts them to appropriate
    JSON responses without exposing sensitive error details.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and handle any exceptions.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response.
        """
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception:
            logger.exception(
                "Unhandled exception for %s %s", request.method, request.url.path
            )
            return create_error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An internal error occurred. Please try again later.",
                "internal_error",
            )


def create_error_response(
    status_code: int,
    message: str,
    error_type: str = "error",
    field: str | None = None,
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        status_code: HTTP status code.
        message: User-facing error message.
        error_type: Error type identifier.
        field: Request field the error relates to.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "type": error_type,
            "field": field,
        },
    )


async def domain_error_handler(request: Request, exc: PMPulseError) -> JSONResponse:
    """Render a domain error as a JSON error response."""
    status_code = status_code_for(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "%s for %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
        # Configuration errors may name keys but never values
        message = (
            "Server configuration error"
            if isinstance(exc, EncryptionError)
            else exc.message
        )
    else:
        logger.info(
            "%s for %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
        message = exc.message
    return create_error_response(status_code, message, exc.error_type, exc.field)


def register_exception_handlers(app: FastAPI) -> None:
    """Register domain error handlers on an application."""
    app.add_exception_handler(PMPulseError, domain_error_handler)
