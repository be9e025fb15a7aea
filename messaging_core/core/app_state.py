# =============================================================================
# File: messaging_core/core/app_state.py
# Description: Application state definition and global state management
# =============================================================================

from datetime import datetime, timezone
from typing import Optional

from messaging_core.core.container import Container


# =============================================================================
# APP STATE TYPE DEFINITION
# =============================================================================
class AppState:
    """Type definition for FastAPI app.state with proper type hints"""

    def __init__(self, container: Optional[Container] = None):
        # Object graph (repositories, services, mediators)
        self.container: Optional[Container] = container


# =============================================================================
# GLOBAL STATE
# =============================================================================
_START_TIME = datetime.now(timezone.utc)


def get_start_time() -> datetime:
    """Get application start time"""
    return _START_TIME
