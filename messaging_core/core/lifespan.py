# =============================================================================
# File: messaging_core/core/lifespan.py
# Description: Application lifespan management (startup/shutdown)
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from messaging_core.core import __version__
from messaging_core.core.app_state import AppState
from messaging_core.core.container import Container
from messaging_core.core.fastapi_types import FastAPI

logger = logging.getLogger("messaging_core.lifespan")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Build the object graph on startup and release its clients on shutdown"""

    logger.info(f"messaging-core {__version__} API starting up...")

    # A container placed on the app beforehand (tests) is kept as is
    container = getattr(app_instance.state, "container", None) or Container()
    app_instance.state = AppState(container)

    try:
        logger.info("Application startup complete")
        yield
    finally:
        logger.info(f"messaging-core {__version__} API shutting down...")
        try:
            async with asyncio.timeout(30.0):
                await app_instance.state.container.close()
            logger.info(f"messaging-core {__version__} API stopped gracefully")
        except TimeoutError:
            logger.error("Shutdown timed out after 30s, forcing exit")

# =============================================================================
# EOF
# =============================================================================
