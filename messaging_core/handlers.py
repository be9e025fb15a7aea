# =============================================================================
# File: messaging_core/handlers.py
# Description: Lambda-style entry points for the table stream and the
#              inbound SNS topics
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict

from messaging_core.config.logging_config import setup_logging
from messaging_core.core.container import Container

setup_logging(
    service_name="events",
    enable_json=os.getenv("ENVIRONMENT") == "production",
)

log = logging.getLogger("messaging_core.handlers")


async def _run(dispatch: Callable[[Container], Awaitable[int]]) -> Dict[str, Any]:
    # Clients are bound to the running loop, so each invocation gets its own graph
    container = Container()
    try:
        processed = await dispatch(container)
        return {"processed": processed}
    finally:
        await container.close()


def dynamo_stream_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    log.debug(f"Stream event with {len(event.get('Records', []))} records")
    return asyncio.run(_run(lambda container: container.dynamo_stream_controller.handle_event(event)))


def sns_event_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    log.debug(f"SNS event with {len(event.get('Records', []))} records")
    return asyncio.run(_run(lambda container: container.sns_event_controller.handle_event(event)))
