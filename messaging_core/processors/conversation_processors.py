# =============================================================================
# File: messaging_core/processors/conversation_processors.py
# Description: Stream processors for group / meeting creation and membership
#              changes. Membership is always re-read from the table; the
#              stream snapshot is only used to find the conversation.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig
from messaging_core.conversation.enums import ConversationType, EntityType, StreamEventName
from messaging_core.conversation.ids import conversation_type_from_id
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.user_mediator import UserMediator
from messaging_core.notifications.sns_services import BaseSnsService
from messaging_core.processors.base import BaseDynamoProcessor
from messaging_core.processors.records import DynamoStreamRecord

log = logging.getLogger("messaging_core.processors.conversation")


def relationship_conversation_type(image: Dict[str, Any]) -> Optional[ConversationType]:
    """The explicit type attribute, falling back to the conversation id prefix."""
    value = image.get("type")
    if value:
        try:
            return ConversationType(value)
        except ValueError:
            return None
    conversation_id = image.get("conversationId")
    return conversation_type_from_id(conversation_id) if isinstance(conversation_id, str) else None


# =============================================================================
# Creation
# =============================================================================

class GroupCreatedDynamoProcessor(BaseDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    entity_type = EntityType.GROUP_CONVERSATION

    def __init__(
        self,
        sns_service: BaseSnsService,
        group_mediator: GroupMediator,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(config)
        self.sns_service = sns_service
        self.group_mediator = group_mediator

    async def _process(self, record: DynamoStreamRecord) -> None:
        group_id = record.new_image["id"]
        group, member_ids = await asyncio.gather(
            self.group_mediator.get_group(group_id),
            self.group_mediator.get_member_ids(group_id),
        )
        await self.sns_service.send_message({"group": group, "groupMemberIds": member_ids})
        log.info(f"GroupCreated published for {group_id}")


class MeetingCreatedDynamoProcessor(BaseDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    entity_type = EntityType.MEETING_CONVERSATION

    def __init__(
        self,
        sns_service: BaseSnsService,
        meeting_mediator: MeetingMediator,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(config)
        self.sns_service = sns_service
        self.meeting_mediator = meeting_mediator

    async def _process(self, record: DynamoStreamRecord) -> None:
        meeting_id = record.new_image["id"]
        meeting, member_ids = await asyncio.gather(
            self.meeting_mediator.get_meeting(meeting_id),
            self.meeting_mediator.get_member_ids(meeting_id),
        )
        await self.sns_service.send_message({"meeting": meeting, "meetingMemberIds": member_ids})
        log.info(f"MeetingCreated published for {meeting_id}")


# =============================================================================
# Membership
# =============================================================================

class BaseMembershipDynamoProcessor(BaseDynamoProcessor):
    """
    Relationship INSERT / REMOVE for one conversation type.

    Publishes {<type>, user, <type>MemberIds} with the membership as it is
    now, so a removal never lists the removed user.
    """

    entity_type = EntityType.CONVERSATION_USER_RELATIONSHIP
    conversation_type: ConversationType
    entity_key: str
    member_ids_key: str

    def __init__(
        self,
        sns_service: BaseSnsService,
        mediator: Any,
        user_mediator: UserMediator,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(config)
        self.sns_service = sns_service
        self.mediator = mediator
        self.user_mediator = user_mediator

    def _matches(self, image: Dict[str, Any]) -> bool:
        return relationship_conversation_type(image) == self.conversation_type

    async def _get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    async def _process(self, record: DynamoStreamRecord) -> None:
        conversation_id = record.image["conversationId"]
        user_id = record.image["userId"]

        conversation, user, member_ids = await asyncio.gather(
            self._get_conversation(conversation_id),
            self.user_mediator.get_user(user_id),
            self.mediator.get_member_ids(conversation_id),
        )
        await self.sns_service.send_message({
            self.entity_key: conversation,
            "user": user,
            self.member_ids_key: member_ids,
        })
        log.info(f"{type(self).__name__} published for {conversation_id} / {user_id}")


class UserAddedToGroupDynamoProcessor(BaseMembershipDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    conversation_type = ConversationType.GROUP
    entity_key = "group"
    member_ids_key = "groupMemberIds"

    async def _get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        return await self.mediator.get_group(conversation_id)


class UserRemovedFromGroupDynamoProcessor(UserAddedToGroupDynamoProcessor):
    event_names = (StreamEventName.REMOVE,)


class UserAddedToMeetingDynamoProcessor(BaseMembershipDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    conversation_type = ConversationType.MEETING
    entity_key = "meeting"
    member_ids_key = "meetingMemberIds"

    async def _get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        return await self.mediator.get_meeting(conversation_id)


class UserRemovedFromMeetingDynamoProcessor(UserAddedToMeetingDynamoProcessor):
    event_names = (StreamEventName.REMOVE,)
