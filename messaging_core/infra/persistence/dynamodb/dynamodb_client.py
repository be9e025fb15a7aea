# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/dynamodb_client.py
# Description: Persistent aioboto3 DynamoDB resource for the core table
# =============================================================================

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, Optional

import aioboto3
from botocore.config import Config as BotoConfig

from messaging_core.config.dynamodb_config import DynamoDBConfig, get_dynamodb_config
from messaging_core.config.logging_config import get_logger

log = get_logger("messaging_core.infra.dynamodb.client")


class DynamoDBClient:
    """
    Owns the aioboto3 session, the DynamoDB service resource and the core
    Table handle. Opened lazily and reused for the life of the process.
    """

    def __init__(self, config: Optional[DynamoDBConfig] = None):
        self.config = config or get_dynamodb_config()
        self.session = aioboto3.Session()

        self._boto_config = BotoConfig(
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
            max_pool_connections=self.config.max_pool_connections,
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self._resource: Optional[Any] = None
        self._table: Optional[Any] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    async def _get_resource(self) -> Any:
        if self._resource is None:
            credentials = {}
            if self.config.access_key and self.config.secret_key:
                credentials = {
                    "aws_access_key_id": self.config.access_key.get_secret_value(),
                    "aws_secret_access_key": self.config.secret_key.get_secret_value(),
                }

            self._exit_stack = AsyncExitStack()
            self._resource = await self._exit_stack.enter_async_context(
                self.session.resource(
                    service_name="dynamodb",
                    endpoint_url=self.config.endpoint_url,
                    region_name=self.config.region,
                    config=self._boto_config,
                    **credentials,
                )
            )
            log.info(f"DynamoDB resource initialized (table={self.config.core_table_name})")
        return self._resource

    async def get_table(self) -> Any:
        """Core table handle (document-level API, native Python types)."""
        if self._table is None:
            resource = await self._get_resource()
            self._table = await resource.Table(self.config.core_table_name)
        return self._table

    async def get_resource(self) -> Any:
        return await self._get_resource()

    async def get_client(self) -> Any:
        """Low-level client, needed for TransactWriteItems."""
        resource = await self._get_resource()
        return resource.meta.client

    async def close(self) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._resource = None
            self._table = None
            self._exit_stack = None
            log.info("DynamoDB resource closed")
