# =============================================================================
# File: messaging_core/infra/messaging/sns_publisher.py
# Description: Persistent aioboto3 SNS client for outbound notifications
# =============================================================================

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from typing import Any, Dict, Optional

import aioboto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from messaging_core.config.logging_config import get_logger
from messaging_core.config.sns_config import SnsConfig, get_sns_config

log = get_logger("messaging_core.infra.sns")


class SnsPublisher:
    """
    Publishes JSON payloads to SNS topics.

    Transport errors are logged and re-raised; retrying is left to the
    caller's delivery substrate.
    """

    def __init__(self, config: Optional[SnsConfig] = None):
        self.config = config or get_sns_config()
        self.session = aioboto3.Session()
        self._boto_config = BotoConfig(retries={"max_attempts": 3, "mode": "standard"})
        self._client: Optional[Any] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def _get_client(self) -> Any:
        if self._client is None:
            self._exit_stack = AsyncExitStack()
            self._client = await self._exit_stack.enter_async_context(
                self.session.client(
                    service_name="sns",
                    endpoint_url=self.config.endpoint_url,
                    region_name=self.config.region,
                    config=self._boto_config,
                )
            )
            log.info("SNS client initialized (persistent connection)")
        return self._client

    async def close(self) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._client = None
            self._exit_stack = None
            log.info("SNS client closed")

    async def publish(self, topic_arn: str, message: Dict[str, Any]) -> str:
        """Publish a JSON message and return the SNS MessageId."""
        try:
            client = await self._get_client()
            response = await client.publish(TopicArn=topic_arn, Message=json.dumps(message, default=str))
        except ClientError as e:
            log.error(f"Error publishing to {topic_arn}: {e}")
            raise
        return response["MessageId"]
