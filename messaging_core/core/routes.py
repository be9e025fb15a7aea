# =============================================================================
# File: messaging_core/core/routes.py
# Description: Route registration for FastAPI application
# =============================================================================

import logging

from messaging_core.api.routers.group_router import router as group_router
from messaging_core.api.routers.meeting_router import router as meeting_router
from messaging_core.api.routers.message_router import router as message_router
from messaging_core.api.routers.organization_router import router as organization_router
from messaging_core.api.routers.team_router import router as team_router
from messaging_core.api.routers.user_router import router as user_router
from messaging_core.core.fastapi_types import FastAPI
from messaging_core.core.health import register_health_endpoints

logger = logging.getLogger("messaging_core.routes")


def setup_routes(app: FastAPI) -> None:
    """Register all routers with the FastAPI application"""

    register_core_routers(app)
    register_health_endpoints(app)


def register_core_routers(app: FastAPI) -> None:

    app.include_router(user_router)
    app.include_router(group_router)
    app.include_router(meeting_router)
    app.include_router(message_router)
    app.include_router(organization_router)
    app.include_router(team_router)

    logger.info("Core routers registered")
