# =============================================================================
# File: messaging_core/infra/search/search_repo.py
# Description: Search index access for users, groups, meetings and messages
# =============================================================================

from __future__ import annotations

import base64
import json
from typing import Optional, Sequence, Union

from messaging_core.common.exceptions.exceptions import BadRequestError
from messaging_core.config.logging_config import get_logger
from messaging_core.config.search_config import SearchConfig, get_search_config
from messaging_core.conversation.enums import ConversationType
from messaging_core.conversation.models import (
    GroupConversation,
    MeetingConversation,
    Message,
    User,
)
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.search.opensearch_client import OpenSearchClient

log = get_logger("messaging_core.infra.search.repo")

USER_SEARCH_FIELDS = ("realName", "username", "email", "phone", "name")
CONVERSATION_SEARCH_FIELDS = ("name",)
MESSAGE_SEARCH_FIELDS = ("transcript", "title")


def encode_search_key(offset: int) -> str:
    return base64.urlsafe_b64encode(json.dumps({"offset": offset}).encode("utf-8")).decode("ascii")


def decode_search_key(token: Optional[str]) -> int:
    if not token:
        return 0
    try:
        return int(json.loads(base64.urlsafe_b64decode(token.encode("ascii")))["offset"])
    except (ValueError, KeyError, TypeError) as e:
        raise BadRequestError("Invalid exclusiveStartKey", details={"exclusiveStartKey": str(e)}) from e


class SearchRepository:
    """Indexes searchable entities and answers id-only searches over them."""

    def __init__(self, client: OpenSearchClient, config: Optional[SearchConfig] = None):
        self.client = client
        self.config = config or client.config or get_search_config()

    def _conversation_index(self, conversation_type: ConversationType) -> str:
        if conversation_type == ConversationType.GROUP:
            return self.config.group_index
        return self.config.meeting_index

    async def index_user(self, user: User) -> None:
        await self.client.index_document(self.config.user_index, user.id, user.to_json_dict())

    async def index_conversation(self, conversation: Union[GroupConversation, MeetingConversation]) -> None:
        await self.client.index_document(
            self._conversation_index(conversation.type), conversation.id, conversation.to_json_dict()
        )

    async def index_message(self, message: Message) -> None:
        document = {
            "id": message.id,
            "conversationId": message.conversation_id,
            "from": message.from_,
            "createdAt": message.created_at,
            "transcript": message.transcript,
            "title": message.title,
        }
        await self.client.index_document(self.config.message_index, message.id, document)

    async def delete_document(self, index: str, document_id: str) -> None:
        await self.client.delete_document(index, document_id)

    async def get_entity_ids_by_search_term(
        self,
        search_term: str,
        entity_ids: Sequence[str],
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[str]:
        """
        Match users (friends), groups and meetings among entity_ids, in
        relevance order. Paging is offset based.
        """
        if not entity_ids:
            return Page(items=[])

        offset = decode_search_key(exclusive_start_key)
        size = min(limit or self.config.max_results, self.config.max_results)
        ids, total = await self.client.search_ids(
            indexes=[self.config.user_index, self.config.group_index, self.config.meeting_index],
            search_term=search_term,
            fields=USER_SEARCH_FIELDS + CONVERSATION_SEARCH_FIELDS,
            restrict_to_ids=entity_ids,
            offset=offset,
            size=size,
        )
        next_offset = offset + len(ids)
        return Page(
            items=ids,
            last_evaluated_key=encode_search_key(next_offset) if ids and next_offset < total else None,
        )


    async def get_message_ids_by_search_term(
        self,
        search_term: str,
        conversation_ids: Sequence[str],
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[str]:
        """Match message transcripts and titles within conversation_ids."""
        if not conversation_ids:
            return Page(items=[])

        offset = decode_search_key(exclusive_start_key)
        size = min(limit or self.config.max_results, self.config.max_results)
        ids, total = await self.client.search_ids(
            indexes=[self.config.message_index],
            search_term=search_term,
            fields=MESSAGE_SEARCH_FIELDS,
            offset=offset,
            size=size,
            filter_terms={"conversationId": list(conversation_ids)},
        )
        next_offset = offset + len(ids)
        return Page(
            items=ids,
            last_evaluated_key=encode_search_key(next_offset) if ids and next_offset < total else None,
        )
