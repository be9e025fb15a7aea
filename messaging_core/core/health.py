# =============================================================================
# File: messaging_core/core/health.py
# Description: Health check endpoints for the application
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from messaging_core.core import __version__
from messaging_core.core.app_state import get_start_time
from messaging_core.core.fastapi_types import FastAPI

logger = logging.getLogger("messaging_core.health")


def register_health_endpoints(app: FastAPI) -> None:
    """Register health check endpoints directly on the app"""

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        return get_health_status(app)


def get_health_status(app: FastAPI) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    container = getattr(app.state, "container", None)
    return {
        "status": "healthy" if container is not None else "starting",
        "version": __version__,
        "timestamp": now.isoformat(),
        "uptimeSeconds": int((now - get_start_time()).total_seconds()),
        "services": {
            "table": container.dynamodb_config.core_table_name if container is not None else None,
        },
    }
