# =============================================================================
# File: messaging_core/processors/controllers.py
# Description: Dispatchers turning raw Lambda-style events into records and
#              running every processor that supports each record
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Sequence

from boto3.dynamodb.types import TypeDeserializer

from messaging_core.processors.base import BaseProcessor
from messaging_core.processors.records import DynamoStreamRecord, SnsRecord

log = logging.getLogger("messaging_core.processors.controller")


class BaseEventController:

    async def _dispatch(self, records: Sequence[Any], processors: Sequence[BaseProcessor]) -> int:
        """
        Run every (record, supporting processor) pair concurrently.

        All calls are attempted; if any failed, the count is logged and the
        first failure is raised. Returns the number of calls made.
        """
        calls = [
            processor.process_record(record)
            for record in records
            for processor in processors
            if processor.determine_record_support(record)
        ]
        if not calls:
            return 0

        results = await asyncio.gather(*calls, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            log.error(
                f"Error calling {len(errors)} of {len(calls)} processor services.",
                extra={"errors": [repr(error) for error in errors]},
            )
            raise errors[0]
        return len(calls)


class DynamoStreamController(BaseEventController):

    def __init__(self, processors: Sequence[BaseProcessor[DynamoStreamRecord]]):
        self.processors = list(processors)
        self._deserializer = TypeDeserializer()

    async def handle_event(self, event: Dict[str, Any]) -> int:
        records = [self.to_record(raw) for raw in event.get("Records", [])]
        return await self._dispatch(records, self.processors)

    def to_record(self, raw: Dict[str, Any]) -> DynamoStreamRecord:
        """
        Unmarshal one stream record. The table name comes from the source
        ARN (arn:aws:dynamodb:<region>:<account>:table/<name>/stream/<label>).
        A record that cannot be read becomes the empty record.
        """
        try:
            table_name = raw["eventSourceARN"].split(":", 5)[5].split("/")[1]
            change = raw.get("dynamodb", {})
            return DynamoStreamRecord(
                table_name=table_name,
                event_name=raw["eventName"],
                old_image=self._unmarshall(change.get("OldImage")),
                new_image=self._unmarshall(change.get("NewImage")),
            )
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
            log.warning(f"Malformed stream record: {e}", extra={"event_id": raw.get("eventID") if isinstance(raw, dict) else None})
            return DynamoStreamRecord.empty()

    def _unmarshall(self, image: Any) -> Dict[str, Any]:
        if not image:
            return {}
        return {key: self._deserializer.deserialize(value) for key, value in image.items()}


class SnsEventController(BaseEventController):

    def __init__(self, processors: Sequence[BaseProcessor[SnsRecord]]):
        self.processors = list(processors)

    async def handle_event(self, event: Dict[str, Any]) -> int:
        records = [self.to_record(raw) for raw in event.get("Records", [])]
        return await self._dispatch(records, self.processors)

    @staticmethod
    def to_record(raw: Dict[str, Any]) -> SnsRecord:
        try:
            sns = raw["Sns"]
            message = json.loads(sns["Message"])
            if not isinstance(message, dict):
                raise ValueError("message body is not an object")
            return SnsRecord(topic_arn=sns["TopicArn"], message=message)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Malformed SNS record: {e}")
            return SnsRecord.empty()
