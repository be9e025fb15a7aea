# =============================================================================
# File: messaging_core/core/middleware.py
# Description: Middleware configuration - CORS plus per-request id and
#              timing logs
# =============================================================================

import logging
import os
import time
import uuid

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware

from messaging_core.core.fastapi_types import FastAPI

logger = logging.getLogger("messaging_core.middleware")

REQUEST_ID_HEADER = "X-Request-ID"


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application"""
    setup_request_logging(app)
    setup_cors(app)


def setup_request_logging(app: FastAPI) -> None:
    """Tag each request with an id (client supplied or generated) and log its duration"""

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra={"request_id": request_id},
        )
        return response


def setup_cors(app: FastAPI) -> None:
    cors_origins = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    allowed_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=3600,
    )

    logger.info(f"CORS configured with allowed origins: {allowed_origins}")
