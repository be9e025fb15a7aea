# =============================================================================
# File: messaging_core/server.py
# Description: FastAPI application entry point
# =============================================================================

from __future__ import annotations

import logging
import os

from messaging_core.config.logging_config import setup_logging
from messaging_core.core import __version__
from messaging_core.core.exceptions import setup_exception_handlers
from messaging_core.core.fastapi_types import FastAPI
from messaging_core.core.lifespan import lifespan
from messaging_core.core.middleware import setup_middleware
from messaging_core.core.routes import setup_routes

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
setup_logging(
    service_name="api",
    log_file=os.getenv("LOG_FILE") or None,
    enable_json=os.getenv("ENVIRONMENT") == "production",
)

logger = logging.getLogger("messaging_core.server")

# =============================================================================
# FASTAPI APP
# =============================================================================
app = FastAPI(
    title=f"messaging-core API v{__version__}",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

setup_middleware(app)
setup_routes(app)
setup_exception_handlers(app)

__all__ = ["app", "__version__"]

# =============================================================================
# Development entry point
# =============================================================================
if __name__ == "__main__":
    import subprocess

    port = os.getenv("PORT", "5001")
    host = os.getenv("HOST", "0.0.0.0")
    reload = os.getenv("RELOAD", "true").lower() == "true"

    logger.info(f"Starting messaging-core API on {host}:{port} (reload={reload})")

    cmd = [
        "granian",
        "--interface", "asgi",
        "messaging_core.server:app",
        "--host", host,
        "--port", str(port),
    ]

    if reload:
        cmd.extend([
            "--reload",
            "--reload-paths", "messaging_core/",
        ])

    subprocess.run(cmd)
