# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/base_dynamo_repo.py
# Description: Shared DynamoDB access for all core table repositories
# =============================================================================

from __future__ import annotations

import asyncio
import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from messaging_core.common.exceptions.exceptions import BadRequestError
from messaging_core.config.dynamodb_config import DynamoDBConfig, get_dynamodb_config
from messaging_core.config.logging_config import get_logger
from messaging_core.infra.persistence.dynamodb.dynamodb_client import DynamoDBClient

log = get_logger("messaging_core.infra.dynamodb.repo")

T = TypeVar("T")

KEY_ATTRIBUTES = ("pk", "sk", "gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk", "gsi3pk", "gsi3sk", "entityType")

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
TRANSACTION_CANCELED = "TransactionCanceledException"
# Per-item reason code inside a cancelled transaction
CONDITION_REASON = "ConditionalCheckFailed"

BATCH_GET_CHUNK_SIZE = 100
MAX_TRANSACT_ITEMS = 100


@dataclass
class Page(Generic[T]):
    """One page of a query plus the opaque key for the next page."""
    items: List[T] = field(default_factory=list)
    last_evaluated_key: Optional[str] = None


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def is_conditional_failure(error: ClientError) -> bool:
    """
    True for a failed condition on a single write, or a transaction cancelled
    because one of its conditions failed. Transactions cancelled for
    conflicts or throttling are not condition failures and must be retried.
    """
    code = error_code(error)
    if code == CONDITIONAL_CHECK_FAILED:
        return True
    return code == TRANSACTION_CANCELED and CONDITION_REASON in cancellation_codes(error)


def cancellation_codes(error: ClientError) -> List[str]:
    """Per-item cancellation codes of a TransactionCanceledException."""
    reasons = error.response.get("CancellationReasons") or []
    return [reason.get("Code", "None") for reason in reasons]


def encode_exclusive_start_key(key: Optional[Dict[str, Any]]) -> Optional[str]:
    if not key:
        return None
    return base64.urlsafe_b64encode(json.dumps(key, default=str).encode("utf-8")).decode("ascii")


def decode_exclusive_start_key(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    try:
        return json.loads(base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8"))
    except (ValueError, UnicodeError) as e:
        raise BadRequestError("Invalid exclusiveStartKey", details={"exclusiveStartKey": str(e)}) from e


def cleanse(item: Dict[str, Any]) -> Dict[str, Any]:
    """Strip key and index attributes, leaving the entity's own fields."""
    return {key: value for key, value in item.items() if key not in KEY_ATTRIBUTES}


class BaseDynamoRepository:
    """
    Base repository over the single core table.

    Subclasses build keys and expressions; this class runs them, logs
    failures with their parameters and re-raises the original error.
    """

    def __init__(self, client: DynamoDBClient, config: Optional[DynamoDBConfig] = None):
        self.client = client
        self.config = config or client.config or get_dynamodb_config()
        self.table_name = self.config.core_table_name
        self._serializer = TypeSerializer()

    # =========================================================================
    # Single-item operations
    # =========================================================================

    async def _get(self, pk: str, sk: str) -> Optional[Dict[str, Any]]:
        try:
            table = await self.client.get_table()
            response = await table.get_item(Key={"pk": pk, "sk": sk})
            return response.get("Item")
        except ClientError as e:
            log.error(f"Error in _get: {e}", extra={"pk": pk, "sk": sk})
            raise

    async def _put(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None,
    ) -> None:
        kwargs: Dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            table = await self.client.get_table()
            await table.put_item(**kwargs)
        except ClientError as e:
            if not is_conditional_failure(e):
                log.error(f"Error in _put: {e}", extra={"pk": item.get("pk"), "sk": item.get("sk")})
            raise

    async def _update(
        self,
        key: Dict[str, str],
        update_expression: str,
        names: Optional[Dict[str, str]] = None,
        values: Optional[Dict[str, Any]] = None,
        condition_expression: Optional[str] = None,
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ReturnValues": "ALL_NEW",
        }
        if names:
            kwargs["ExpressionAttributeNames"] = names
        if values:
            kwargs["ExpressionAttributeValues"] = values
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            table = await self.client.get_table()
            response = await table.update_item(**kwargs)
            return response.get("Attributes", {})
        except ClientError as e:
            if not is_conditional_failure(e):
                log.error(f"Error in _update: {e}", extra={"key": key, "update": update_expression})
            raise

    async def _delete(self, key: Dict[str, str], condition_expression: Optional[str] = None) -> None:
        kwargs: Dict[str, Any] = {"Key": key}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            table = await self.client.get_table()
            await table.delete_item(**kwargs)
        except ClientError as e:
            if not is_conditional_failure(e):
                log.error(f"Error in _delete: {e}", extra={"key": key})
            raise

    # =========================================================================
    # Multi-item operations
    # =========================================================================

    async def _query(
        self,
        key_condition_expression: str,
        values: Dict[str, Any],
        names: Optional[Dict[str, str]] = None,
        index_name: Optional[str] = None,
        filter_expression: Optional[str] = None,
        scan_index_forward: bool = True,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": key_condition_expression,
            "ExpressionAttributeValues": values,
            "ScanIndexForward": scan_index_forward,
        }
        if names:
            kwargs["ExpressionAttributeNames"] = names
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if limit:
            kwargs["Limit"] = limit
        start_key = decode_exclusive_start_key(exclusive_start_key)
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key

        try:
            table = await self.client.get_table()
            response = await table.query(**kwargs)
        except ClientError as e:
            log.error(f"Error in _query: {e}", extra={"index": index_name, "key_condition": key_condition_expression})
            raise

        return Page(
            items=response.get("Items", []),
            last_evaluated_key=encode_exclusive_start_key(response.get("LastEvaluatedKey")),
        )

    async def _query_all(self, **query_kwargs: Any) -> List[Dict[str, Any]]:
        """Follow LastEvaluatedKey until the query is exhausted."""
        items: List[Dict[str, Any]] = []
        next_key: Optional[str] = None
        while True:
            page = await self._query(exclusive_start_key=next_key, **query_kwargs)
            items.extend(page.items)
            if not page.last_evaluated_key:
                return items
            next_key = page.last_evaluated_key

    async def _batch_get(
        self,
        keys: List[Dict[str, str]],
        backoff: float = 0.2,
        max_backoff: float = 1.6,
    ) -> List[Dict[str, Any]]:
        """BatchGetItem in chunks of 100, retrying unprocessed keys with backoff."""
        if not keys:
            return []

        fetched: List[Dict[str, Any]] = []
        pending = list(keys)

        try:
            resource = await self.client.get_resource()
            while pending:
                chunks = [pending[i:i + BATCH_GET_CHUNK_SIZE] for i in range(0, len(pending), BATCH_GET_CHUNK_SIZE)]
                responses = await asyncio.gather(*[
                    resource.batch_get_item(RequestItems={self.table_name: {"Keys": chunk}})
                    for chunk in chunks
                ])

                pending = []
                for response in responses:
                    fetched.extend(response.get("Responses", {}).get(self.table_name, []))
                    pending.extend(response.get("UnprocessedKeys", {}).get(self.table_name, {}).get("Keys", []))

                if pending:
                    if backoff > max_backoff:
                        raise RuntimeError(f"Max backoff reached with {len(pending)} unprocessed keys")
                    await asyncio.sleep(backoff)
                    backoff *= 2
        except ClientError as e:
            log.error(f"Error in _batch_get: {e}", extra={"key_count": len(keys)})
            raise

        return fetched

    async def _transact_write(self, items: List[Dict[str, Any]]) -> None:
        """
        TransactWriteItems from document-style items.

        Each element is {"Put"|"Update"|"Delete"|"ConditionCheck": {...}} with
        Item/Key/ExpressionAttributeValues in plain Python types; they are
        serialized to the typed wire format here and TableName is filled in.
        """
        if len(items) > MAX_TRANSACT_ITEMS:
            raise ValueError(f"Transaction exceeds {MAX_TRANSACT_ITEMS} items")

        transact_items = [self._serialize_transact_item(item) for item in items]
        try:
            client = await self.client.get_client()
            await client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if error_code(e) == TRANSACTION_CANCELED:
                log.info(f"Transaction cancelled: {cancellation_codes(e)}")
            else:
                log.error(f"Error in _transact_write: {e}", extra={"item_count": len(items)})
            raise

    def _serialize_transact_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        ((operation, body),) = item.items()
        serialized: Dict[str, Any] = {"TableName": self.table_name}
        for key, value in body.items():
            if key in ("Item", "Key", "ExpressionAttributeValues"):
                serialized[key] = {name: self._serializer.serialize(v) for name, v in value.items()}
            else:
                serialized[key] = value
        return {operation: serialized}
