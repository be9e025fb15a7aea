# =============================================================================
# File: messaging_core/processors/friendship_processors.py
# Description: Stream processors for friend conversations being created
#              and deleted
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from messaging_core.config.dynamodb_config import DynamoDBConfig
from messaging_core.conversation.enums import EntityType, StreamEventName
from messaging_core.mediators.user_mediator import UserMediator
from messaging_core.notifications.sns_services import BaseSnsService
from messaging_core.processors.base import BaseDynamoProcessor
from messaging_core.processors.records import DynamoStreamRecord

log = logging.getLogger("messaging_core.processors.friendship")


class UserAddedAsFriendDynamoProcessor(BaseDynamoProcessor):
    """Publishes {userA, userB} in the conversation's member order."""

    event_names = (StreamEventName.INSERT,)
    entity_type = EntityType.FRIEND_CONVERSATION

    def __init__(
        self,
        sns_service: BaseSnsService,
        user_mediator: UserMediator,
        config: Optional[DynamoDBConfig] = None,
    ):
        super().__init__(config)
        self.sns_service = sns_service
        self.user_mediator = user_mediator

    def _matches(self, image: dict) -> bool:
        member_ids = image.get("memberIds")
        return isinstance(member_ids, list) and len(member_ids) == 2

    async def _process(self, record: DynamoStreamRecord) -> None:
        user_id_a, user_id_b = record.image["memberIds"]
        user_a, user_b = await asyncio.gather(
            self.user_mediator.get_user(user_id_a),
            self.user_mediator.get_user(user_id_b),
        )
        await self.sns_service.send_message({"userA": user_a, "userB": user_b})
        log.info(f"{type(self).__name__} published for {record.image['id']}")


class UserRemovedAsFriendDynamoProcessor(UserAddedAsFriendDynamoProcessor):
    event_names = (StreamEventName.REMOVE,)
