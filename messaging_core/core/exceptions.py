# =============================================================================
# File: messaging_core/core/exceptions.py
# Description: Exception handlers for the FastAPI application
# =============================================================================

import logging
import os
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.responses import JSONResponse

from messaging_core.common.exceptions.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    MessagingCoreException,
    NotFoundError,
)
from messaging_core.core.fastapi_types import FastAPI

logger = logging.getLogger("messaging_core.exceptions")

DOMAIN_ERROR_STATUSES = (
    (BadRequestError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""

    app.add_exception_handler(MessagingCoreException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


def status_for(exc: MessagingCoreException) -> int:
    for error_type, status_code in DOMAIN_ERROR_STATUSES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_exception_handler(request: Request, exc: MessagingCoreException) -> JSONResponse:
    """Map the domain taxonomy onto HTTP statuses"""
    status_code = status_for(exc)
    if status_code >= 500:
        return await general_exception_handler(request, exc)

    logger.info(f"{type(exc).__name__} on path {request.url.path}: {exc.message}")
    content: Dict[str, Any] = {"message": exc.message or type(exc).__name__}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors: 400 with one entry per failing field"""
    logger.warning(f"Validation error on path {request.url.path}: {exc.errors()}")

    validation_errors: Dict[str, str] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        validation_errors[location] = error["msg"]

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Error validating request", "validationErrors": validation_errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general unhandled exceptions"""
    logger.error(f"Unhandled exception on path {request.url.path}: {str(exc)}", exc_info=exc)

    if os.getenv("ENVIRONMENT", "development") == "production":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "An internal server error occurred."}
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": str(exc), "type": type(exc).__name__}
    )
