# =============================================================================
# File: messaging_core/services/conversation_service.py
# Description: Conversation domain service - friend, group and meeting rows
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from messaging_core.conversation.enums import ConversationType, ImageMimeType, Role
from messaging_core.conversation.exceptions import (
    ConversationAlreadyExistsError,
    InvalidConversationTypeError,
)
from messaging_core.conversation.ids import friend_conversation_id, new_group_id, new_meeting_id
from messaging_core.conversation.models import (
    FriendConversation,
    GroupConversation,
    MeetingConversation,
)
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.persistence.dynamodb.conversation_repo import ConversationRepository
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.conversation")

AnyConversation = Union[FriendConversation, GroupConversation, MeetingConversation]


class ConversationService:
    """Creates conversations together with their first member rows."""

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        relationship_service: ConversationUserRelationshipService,
    ):
        self.conversation_repo = conversation_repo
        self.relationship_service = relationship_service

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_group(
        self,
        created_by: str,
        name: str,
        image_mime_type: ImageMimeType = ImageMimeType.PNG,
        organization_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> GroupConversation:
        timestamp = now_iso()
        group = GroupConversation(
            id=new_group_id(),
            created_by=created_by,
            created_at=timestamp,
            name=name,
            image_mime_type=image_mime_type,
            organization_id=organization_id,
            team_id=team_id,
        )
        admin = self.relationship_service.build_relationship(
            group.id, created_by, ConversationType.GROUP, Role.ADMIN, timestamp
        )
        await self.conversation_repo.create_conversation_with_members(group, [admin])
        log.info(f"Group {group.id} created by {created_by}")
        return group

    async def create_meeting(
        self,
        created_by: str,
        name: str,
        due_date: str,
        image_mime_type: ImageMimeType = ImageMimeType.PNG,
        organization_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> MeetingConversation:
        timestamp = now_iso()
        meeting = MeetingConversation(
            id=new_meeting_id(),
            created_by=created_by,
            created_at=timestamp,
            name=name,
            due_date=due_date,
            image_mime_type=image_mime_type,
            organization_id=organization_id,
            team_id=team_id,
        )
        admin = self.relationship_service.build_relationship(
            meeting.id, created_by, ConversationType.MEETING, Role.ADMIN, timestamp, due_date=due_date
        )
        await self.conversation_repo.create_conversation_with_members(meeting, [admin])
        log.info(f"Meeting {meeting.id} created by {created_by}")
        return meeting

    async def create_friend_conversation(self, user_id: str, friend_id: str) -> FriendConversation:
        """
        Create the 1:1 conversation and both member rows. Adding an existing
        friend returns the existing conversation.
        """
        timestamp = now_iso()
        conversation = FriendConversation(
            id=friend_conversation_id(user_id, friend_id),
            created_by=user_id,
            created_at=timestamp,
            member_ids=sorted([user_id, friend_id]),
        )
        members = [
            self.relationship_service.build_relationship(
                conversation.id, member_id, ConversationType.FRIEND, Role.ADMIN, timestamp
            )
            for member_id in conversation.member_ids
        ]
        try:
            await self.conversation_repo.create_conversation_with_members(conversation, members)
        except ConversationAlreadyExistsError:
            log.info(f"{user_id} and {friend_id} are already friends")
            return await self.get_friend_conversation(user_id, friend_id)
        return conversation

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_conversation(self, conversation_id: str) -> AnyConversation:
        return await self.conversation_repo.get_conversation(conversation_id)

    async def get_conversations(self, conversation_ids: Sequence[str]) -> List[AnyConversation]:
        return await self.conversation_repo.get_conversations(conversation_ids)

    async def get_group(self, group_id: str) -> GroupConversation:
        conversation = await self.conversation_repo.get_conversation(group_id)
        if not isinstance(conversation, GroupConversation):
            raise InvalidConversationTypeError(group_id, ConversationType.GROUP.value)
        return conversation

    async def get_meeting(self, meeting_id: str) -> MeetingConversation:
        conversation = await self.conversation_repo.get_conversation(meeting_id)
        if not isinstance(conversation, MeetingConversation):
            raise InvalidConversationTypeError(meeting_id, ConversationType.MEETING.value)
        return conversation

    async def get_friend_conversation(self, user_id: str, friend_id: str) -> FriendConversation:
        conversation_id = friend_conversation_id(user_id, friend_id)
        conversation = await self.conversation_repo.get_conversation(conversation_id)
        if not isinstance(conversation, FriendConversation):
            raise InvalidConversationTypeError(conversation_id, ConversationType.FRIEND.value)
        return conversation

    async def get_conversations_by_organization_id(
        self,
        organization_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        return await self.conversation_repo.get_conversations_by_organization_id(
            organization_id, conversation_type, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def get_conversations_by_team_id(
        self,
        team_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        return await self.conversation_repo.get_conversations_by_team_id(
            team_id, conversation_type, limit=limit, exclusive_start_key=exclusive_start_key
        )

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_meeting(
        self,
        meeting_id: str,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        outcomes: Optional[str] = None,
    ) -> MeetingConversation:
        return await self.conversation_repo.update_meeting(meeting_id, name=name, due_date=due_date, outcomes=outcomes)

    async def delete_friend_conversation(self, user_id: str, friend_id: str) -> None:
        """Friend conversations have no existence once either member leaves."""
        conversation_id = friend_conversation_id(user_id, friend_id)
        await self.conversation_repo.delete_conversation_with_members(conversation_id, [user_id, friend_id])
        log.info(f"Friend conversation {conversation_id} deleted")
