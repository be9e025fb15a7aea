# =============================================================================
# File: messaging_core/services/relationship_service.py
# Description: ConversationUserRelationship domain service. The only place
#              that mutates a member's unread message set.
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import ConversationFetchType, ConversationType, Role
from messaging_core.conversation.models import ConversationUserRelationship, Message
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page, is_conditional_failure
from messaging_core.infra.persistence.dynamodb.relationship_repo import RelationshipRepository
from messaging_core.utils.async_utils import gather_settled
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.relationship")


class ConversationUserRelationshipService:
    """
    Membership rows and per-member read state.

    unreadMessages is only ever a set of message ids; counts are derived by
    readers. Every mutation is an attribute-scoped ADD / DELETE / SET so two
    actors touching the same row only race on the attribute they change.
    """

    def __init__(self, relationship_repo: RelationshipRepository):
        self.relationship_repo = relationship_repo

    async def create_conversation_user_relationship(
        self,
        conversation_id: str,
        user_id: str,
        conversation_type: ConversationType,
        role: Role,
        due_date: Optional[str] = None,
    ) -> ConversationUserRelationship:
        """Create the member row. An existing row is returned unchanged."""
        relationship = ConversationUserRelationship(
            conversation_id=conversation_id,
            user_id=user_id,
            type=conversation_type,
            role=role,
            updated_at=now_iso(),
            due_date=due_date if conversation_type == ConversationType.MEETING else None,
        )
        try:
            return await self.relationship_repo.create_relationship(relationship)
        except ClientError as e:
            if is_conditional_failure(e):
                log.info(f"{user_id} is already a member of {conversation_id}")
                return await self.relationship_repo.get_relationship(conversation_id, user_id)
            log.error(f"Error in create_conversation_user_relationship: {e}", exc_info=True)
            raise

    def build_relationship(
        self,
        conversation_id: str,
        user_id: str,
        conversation_type: ConversationType,
        role: Role,
        updated_at: str,
        due_date: Optional[str] = None,
    ) -> ConversationUserRelationship:
        """Unsaved row, for callers writing it inside their own transaction."""
        return ConversationUserRelationship(
            conversation_id=conversation_id,
            user_id=user_id,
            type=conversation_type,
            role=role,
            updated_at=updated_at,
            due_date=due_date,
        )

    async def get_conversation_user_relationship(self, conversation_id: str, user_id: str) -> ConversationUserRelationship:
        return await self.relationship_repo.get_relationship(conversation_id, user_id)

    async def get_conversation_user_relationships_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        return await self.relationship_repo.get_relationships_by_conversation_id(
            conversation_id, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def get_all_conversation_user_relationships(self, conversation_id: str) -> List[ConversationUserRelationship]:
        return await self.relationship_repo.get_all_relationships_by_conversation_id(conversation_id)

    async def get_member_ids(self, conversation_id: str) -> List[str]:
        relationships = await self.get_all_conversation_user_relationships(conversation_id)
        return [relationship.user_id for relationship in relationships]

    async def get_conversation_user_relationships_by_user_id(
        self,
        user_id: str,
        fetch_type: Optional[ConversationFetchType] = None,
        unread: Optional[bool] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        return await self.relationship_repo.get_relationships_by_user_id(
            user_id,
            fetch_type=fetch_type,
            unread=unread,
            limit=limit,
            exclusive_start_key=exclusive_start_key,
        )

    async def get_all_conversation_user_relationships_by_user_id(
        self,
        user_id: str,
        fetch_type: Optional[ConversationFetchType] = None,
        unread: Optional[bool] = None,
    ) -> List[ConversationUserRelationship]:
        relationships: List[ConversationUserRelationship] = []
        next_key: Optional[str] = None
        while True:
            page = await self.get_conversation_user_relationships_by_user_id(
                user_id, fetch_type=fetch_type, unread=unread, exclusive_start_key=next_key
            )
            relationships.extend(page.items)
            if not page.last_evaluated_key:
                return relationships
            next_key = page.last_evaluated_key

    async def on_message_created(self, message: Message) -> List[ConversationUserRelationship]:
        """
        Fan a new message out to every member row.

        Members whose seenAt entry is null get the id added to their unread
        set; everyone else, the sender included, only has the conversation
        resurfaced. updatedAt comes from the message itself, so replaying the
        fan-out after a partial failure writes the same values again.
        """
        results = await gather_settled(*[
            self.relationship_repo.add_message_to_relationship(
                conversation_id=message.conversation_id,
                user_id=user_id,
                conversation_type=message.conversation_type,
                message_id=message.id,
                updated_at=message.created_at,
                sender=seen_at is not None,
            )
            for user_id, seen_at in message.seen_at.items()
        ])
        return [relationship for relationship in results if relationship is not None]

    async def mark_seen(
        self,
        conversation_id: str,
        user_id: str,
        message_ids: Sequence[str],
        seen: bool,
    ) -> Optional[ConversationUserRelationship]:
        if seen:
            return await self.relationship_repo.remove_unread_messages(conversation_id, user_id, message_ids)
        return await self.relationship_repo.add_unread_messages(conversation_id, user_id, message_ids)

    async def delete_conversation_user_relationship(self, conversation_id: str, user_id: str) -> None:
        await self.relationship_repo.delete_relationship(conversation_id, user_id)

    async def update_meeting_due_date(
        self,
        meeting_id: str,
        user_id: str,
        due_date: str,
    ) -> Optional[ConversationUserRelationship]:
        return await self.relationship_repo.update_due_date(meeting_id, user_id, due_date)
