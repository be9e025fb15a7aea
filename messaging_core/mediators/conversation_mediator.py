# =============================================================================
# File: messaging_core/mediators/conversation_mediator.py
# Description: A user's conversation list - relationships joined with their
#              friend / group / meeting summaries and most recent message
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from messaging_core.common.exceptions.exceptions import NotFoundError
from messaging_core.conversation.enums import ConversationFetchType, ConversationType, EntityType, Role
from messaging_core.conversation.ids import friend_id_from_conversation_id
from messaging_core.conversation.models import ConversationUserRelationship, Message, User
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.search.search_repo import SearchRepository
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.views import message_views
from messaging_core.services.conversation_service import ConversationService
from messaging_core.services.message_service import MessageService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.conversation")

IMAGE_ENTITY_TYPES = {
    ConversationType.FRIEND: EntityType.USER,
    ConversationType.GROUP: EntityType.GROUP_CONVERSATION,
    ConversationType.MEETING: EntityType.MEETING_CONVERSATION,
}


def relationship_entity_id(relationship: ConversationUserRelationship) -> str:
    """The other user for a friend conversation, otherwise the conversation."""
    if relationship.type == ConversationType.FRIEND:
        return friend_id_from_conversation_id(relationship.conversation_id, relationship.user_id)
    return relationship.conversation_id


class ConversationMediator:

    def __init__(
        self,
        conversation_service: ConversationService,
        relationship_service: ConversationUserRelationshipService,
        message_service: MessageService,
        user_service: UserService,
        search_repo: SearchRepository,
        url_provider: S3UrlProvider,
    ):
        self.conversation_service = conversation_service
        self.relationship_service = relationship_service
        self.message_service = message_service
        self.user_service = user_service
        self.search_repo = search_repo
        self.url_provider = url_provider

    async def get_conversations_by_user_id(
        self,
        user_id: str,
        fetch_type: Optional[ConversationFetchType] = None,
        unread: Optional[bool] = None,
        search_term: Optional[str] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        """
        List the user's conversations, most recent first (or by due date for
        meetings).

        With a search term every matching relationship is read and the
        search index decides order and paging; exclusive_start_key is then
        the search index's key, not the table's.
        """
        try:
            if search_term:
                relationships = await self.relationship_service.get_all_conversation_user_relationships_by_user_id(
                    user_id, fetch_type=fetch_type, unread=unread
                )
                by_entity_id = {relationship_entity_id(r): r for r in relationships}
                search_page = await self.search_repo.get_entity_ids_by_search_term(
                    search_term,
                    list(by_entity_id),
                    limit=limit,
                    exclusive_start_key=exclusive_start_key,
                )
                relationships = [by_entity_id[entity_id] for entity_id in search_page.items if entity_id in by_entity_id]
                last_evaluated_key = search_page.last_evaluated_key
            else:
                page = await self.relationship_service.get_conversation_user_relationships_by_user_id(
                    user_id,
                    fetch_type=fetch_type,
                    unread=unread,
                    limit=limit,
                    exclusive_start_key=exclusive_start_key,
                )
                relationships = page.items
                last_evaluated_key = page.last_evaluated_key

            conversations = await self._join(relationships)
            return Page(items=conversations, last_evaluated_key=last_evaluated_key)
        except Exception as e:
            log.error(
                f"Error in get_conversations_by_user_id: {e}",
                extra={"user_id": user_id, "fetch_type": fetch_type, "unread": unread},
                exc_info=True,
            )
            raise

    async def _join(self, relationships: List[ConversationUserRelationship]) -> List[Dict[str, Any]]:
        conversation_ids = [r.conversation_id for r in relationships if r.type != ConversationType.FRIEND]
        friend_ids = [relationship_entity_id(r) for r in relationships if r.type == ConversationType.FRIEND]
        recent_message_ids = [r.recent_message_id for r in relationships if r.recent_message_id]

        groups_and_meetings, friends, recent_messages = await asyncio.gather(
            self.conversation_service.get_conversations(conversation_ids),
            self.user_service.get_users(friend_ids),
            self._get_recent_messages(recent_message_ids),
        )
        entities: Dict[str, Any] = {conversation.id: conversation for conversation in groups_and_meetings}
        entities.update({friend.id: friend for friend in friends})

        conversations: List[Dict[str, Any]] = []
        for relationship in relationships:
            entity = entities.get(relationship_entity_id(relationship))
            if entity is None:
                log.warning(f"Relationship {relationship.conversation_id}/{relationship.user_id} has no entity")
                continue
            data = entity.to_json_dict()
            data.pop("imageMimeType", None)
            data.update({
                "type": relationship.type.value,
                "unreadMessages": len(relationship.unread_messages),
                "image": await self.url_provider.get_image_signed_url(
                    IMAGE_ENTITY_TYPES[relationship.type], entity.id, entity.image_mime_type, "get"
                ),
                "updatedAt": relationship.updated_at,
                "recentMessage": recent_messages.get(relationship.recent_message_id or ""),
                "role": relationship.role.value,
            })
            conversations.append(data)
        return conversations

    async def _get_recent_messages(self, message_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not message_ids:
            return {}
        messages: List[Message] = await self.message_service.get_messages(message_ids)
        senders: List[User] = await self.user_service.get_users([message.from_ for message in messages])
        views = await message_views(messages, senders, self.url_provider)
        return {view["id"]: view for view in views}

    async def is_conversation_member(self, conversation_id: str, user_id: str) -> bool:
        try:
            await self.relationship_service.get_conversation_user_relationship(conversation_id, user_id)
            return True
        except NotFoundError:
            return False

    async def is_conversation_admin(self, conversation_id: str, user_id: str) -> bool:
        try:
            relationship = await self.relationship_service.get_conversation_user_relationship(conversation_id, user_id)
        except NotFoundError:
            return False
        return relationship.role == Role.ADMIN
