# =============================================================================
# File: messaging_core/processors/search_sync_processor.py
# Description: Keeps the user / group / meeting search indexes in step with
#              the core table
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig
from messaging_core.conversation.enums import EntityType, StreamEventName
from messaging_core.conversation.models import User, parse_conversation
from messaging_core.infra.search.search_repo import SearchRepository
from messaging_core.processors.base import BaseDynamoProcessor
from messaging_core.processors.records import DynamoStreamRecord

log = logging.getLogger("messaging_core.processors.search_sync")

SEARCHABLE_ENTITY_TYPES = frozenset({
    EntityType.USER.value,
    EntityType.GROUP_CONVERSATION.value,
    EntityType.MEETING_CONVERSATION.value,
})


class SearchSyncDynamoProcessor(BaseDynamoProcessor):
    event_names = (StreamEventName.INSERT, StreamEventName.MODIFY, StreamEventName.REMOVE)

    def __init__(self, search_repo: SearchRepository, config: Optional[DynamoDBConfig] = None):
        super().__init__(config)
        self.search_repo = search_repo

    def _matches(self, image: Dict[str, Any]) -> bool:
        return image.get("entityType") in SEARCHABLE_ENTITY_TYPES

    def _index_name(self, entity_type: str) -> str:
        search_config = self.search_repo.config
        if entity_type == EntityType.USER.value:
            return search_config.user_index
        if entity_type == EntityType.GROUP_CONVERSATION.value:
            return search_config.group_index
        return search_config.meeting_index

    async def _process(self, record: DynamoStreamRecord) -> None:
        image = record.image
        entity_type = image["entityType"]

        if record.event_name == StreamEventName.REMOVE.value:
            await self.search_repo.delete_document(self._index_name(entity_type), image["id"])
            log.debug(f"Removed {image['id']} from search")
            return

        if entity_type == EntityType.USER.value:
            await self.search_repo.index_user(User.model_validate(image))
        else:
            await self.search_repo.index_conversation(parse_conversation(image))
        log.debug(f"Indexed {image['id']}")
