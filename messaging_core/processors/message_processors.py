# =============================================================================
# File: messaging_core/processors/message_processors.py
# Description: Stream processors publishing message created / updated
#              notifications per conversation type. Created messages are
#              also indexed for search.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig
from messaging_core.conversation.enums import ConversationType, EntityType, StreamEventName
from messaging_core.conversation.models import Message
from messaging_core.infra.search.search_repo import SearchRepository
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.mediators.user_mediator import UserMediator
from messaging_core.notifications.sns_services import BaseSnsService
from messaging_core.processors.base import BaseDynamoProcessor
from messaging_core.processors.records import DynamoStreamRecord
from messaging_core.utils.async_utils import gather_settled

log = logging.getLogger("messaging_core.processors.message")


class BaseMessageDynamoProcessor(BaseDynamoProcessor):
    """
    Builds {to, from, message, ...} for one conversation type and publishes
    it. With indexes_message set, the publish and the search indexing are
    both attempted before the first failure is raised.
    """

    entity_type = EntityType.MESSAGE
    conversation_type: ConversationType
    indexes_message: bool = False

    def __init__(
        self,
        sns_service: BaseSnsService,
        message_mediator: MessageMediator,
        user_mediator: UserMediator,
        search_repo: Optional[SearchRepository] = None,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(config)
        if self.indexes_message and search_repo is None:
            raise ValueError(f"{type(self).__name__} requires a search repository")
        self.sns_service = sns_service
        self.message_mediator = message_mediator
        self.user_mediator = user_mediator
        self.search_repo = search_repo

    def _matches(self, image: Dict[str, Any]) -> bool:
        return image.get("conversationType") == self.conversation_type.value

    async def _recipient(self, message: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def _process(self, record: DynamoStreamRecord) -> None:
        message_id = record.new_image["id"]
        message = await self.message_mediator.get_message(message_id)
        sender, recipient = await asyncio.gather(
            self.user_mediator.get_user(message["from"]),
            self._recipient(message),
        )
        payload = {**recipient, "from": sender, "message": message}

        if self.indexes_message:
            await gather_settled(
                self.sns_service.send_message(payload),
                self.search_repo.index_message(Message.model_validate(record.new_image)),
            )
        else:
            await self.sns_service.send_message(payload)
        log.info(f"{type(self).__name__} published for {message_id}")


# =============================================================================
# Per conversation type
# =============================================================================

class FriendMessageDynamoProcessor(BaseMessageDynamoProcessor):
    conversation_type = ConversationType.FRIEND

    async def _recipient(self, message: Dict[str, Any]) -> Dict[str, Any]:
        return {"to": await self.user_mediator.get_user(message["to"])}


class GroupMessageDynamoProcessor(BaseMessageDynamoProcessor):
    conversation_type = ConversationType.GROUP

    def __init__(
        self,
        sns_service: BaseSnsService,
        message_mediator: MessageMediator,
        user_mediator: UserMediator,
        group_mediator: GroupMediator,
        search_repo: Optional[SearchRepository] = None,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(sns_service, message_mediator, user_mediator, search_repo, config)
        self.group_mediator = group_mediator

    async def _recipient(self, message: Dict[str, Any]) -> Dict[str, Any]:
        group, member_ids = await asyncio.gather(
            self.group_mediator.get_group(message["conversationId"]),
            self.group_mediator.get_member_ids(message["conversationId"]),
        )
        return {"to": group, "groupMemberIds": member_ids}


class MeetingMessageDynamoProcessor(BaseMessageDynamoProcessor):
    conversation_type = ConversationType.MEETING

    def __init__(
        self,
        sns_service: BaseSnsService,
        message_mediator: MessageMediator,
        user_mediator: UserMediator,
        meeting_mediator: MeetingMediator,
        search_repo: Optional[SearchRepository] = None,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(sns_service, message_mediator, user_mediator, search_repo, config)
        self.meeting_mediator = meeting_mediator

    async def _recipient(self, message: Dict[str, Any]) -> Dict[str, Any]:
        meeting, member_ids = await asyncio.gather(
            self.meeting_mediator.get_meeting(message["conversationId"]),
            self.meeting_mediator.get_member_ids(message["conversationId"]),
        )
        return {"to": meeting, "meetingMemberIds": member_ids}


# =============================================================================
# Created / updated
# =============================================================================

class FriendMessageCreatedDynamoProcessor(FriendMessageDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    indexes_message = True


class GroupMessageCreatedDynamoProcessor(GroupMessageDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    indexes_message = True


class MeetingMessageCreatedDynamoProcessor(MeetingMessageDynamoProcessor):
    event_names = (StreamEventName.INSERT,)
    indexes_message = True


class FriendMessageUpdatedDynamoProcessor(FriendMessageDynamoProcessor):
    event_names = (StreamEventName.MODIFY,)


class GroupMessageUpdatedDynamoProcessor(GroupMessageDynamoProcessor):
    event_names = (StreamEventName.MODIFY,)


class MeetingMessageUpdatedDynamoProcessor(MeetingMessageDynamoProcessor):
    event_names = (StreamEventName.MODIFY,)
