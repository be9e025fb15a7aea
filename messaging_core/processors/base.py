# =============================================================================
# File: messaging_core/processors/base.py
# Description: Processor contract shared by the stream and SNS processors.
#
# determine_record_support() is total: it answers False for anything it
# cannot read. process_record() logs "Error in process_record" with the
# record on failure and re-raises so the dispatcher sees it.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Generic, Optional, TypeVar

from messaging_core.config.dynamodb_config import DynamoDBConfig, get_dynamodb_config
from messaging_core.config.sns_config import SnsConfig, get_sns_config
from messaging_core.conversation.enums import EntityType, StreamEventName
from messaging_core.processors.records import DynamoStreamRecord, SnsRecord

log = logging.getLogger("messaging_core.processors")

R = TypeVar("R", DynamoStreamRecord, SnsRecord)


class BaseProcessor(Generic[R]):

    def determine_record_support(self, record: R) -> bool:
        try:
            return bool(self._supports(record))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            log.debug(f"{type(self).__name__} cannot read record: {e}")
            return False

    async def process_record(self, record: R) -> None:
        try:
            await self._process(record)
        except Exception as e:
            log.error(
                f"Error in process_record: {e}",
                extra={"processor": type(self).__name__, "record": record.to_log_dict()},
                exc_info=True,
            )
            raise

    def _supports(self, record: R) -> bool:
        raise NotImplementedError

    async def _process(self, record: R) -> None:
        raise NotImplementedError


class BaseDynamoProcessor(BaseProcessor[DynamoStreamRecord]):
    """
    Stream processor for the core table.

    Subclasses narrow support with event_names and entity_type and may add
    a further check in _matches().
    """

    event_names: tuple[StreamEventName, ...] = ()
    entity_type: Optional[EntityType] = None

    def __init__(self, config: Optional[DynamoDBConfig] = None):
        self.config = config or get_dynamodb_config()

    def _supports(self, record: DynamoStreamRecord) -> bool:
        if record.table_name != self.config.core_table_name:
            return False
        if record.event_name not in {name.value for name in self.event_names}:
            return False
        image = record.image
        if self.entity_type is not None and image.get("entityType") != self.entity_type.value:
            return False
        return self._matches(image)

    def _matches(self, image: dict[str, Any]) -> bool:
        return True


class BaseSnsProcessor(BaseProcessor[SnsRecord]):
    """SNS processor bound to one inbound topic."""

    topic_field: str = ""

    def __init__(self, config: Optional[SnsConfig] = None):
        self.sns_config = config or get_sns_config()

    @property
    def topic_arn(self) -> str:
        return getattr(self.sns_config, self.topic_field)

    def _supports(self, record: SnsRecord) -> bool:
        return record.topic_arn == self.topic_arn
