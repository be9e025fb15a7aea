# =============================================================================
# File: messaging_core/mediators/friendship_mediator.py
# Description: Friend (1:1) conversations
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from messaging_core.common.exceptions.exceptions import BadRequestError, NotFoundError
from messaging_core.conversation.enums import ConversationFetchType
from messaging_core.conversation.ids import friend_id_from_conversation_id
from messaging_core.conversation.models import User
from messaging_core.conversation.value_objects import BatchResult, UserIdentifier
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.views import user_view
from messaging_core.services.conversation_service import ConversationService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.friendship")


class FriendshipMediator:

    def __init__(
        self,
        conversation_service: ConversationService,
        relationship_service: ConversationUserRelationshipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        self.conversation_service = conversation_service
        self.relationship_service = relationship_service
        self.user_service = user_service
        self.url_provider = url_provider

    async def add_users_as_friends(
        self,
        user_id: str,
        identifiers: Sequence[UserIdentifier],
    ) -> BatchResult[User]:
        """Best effort: unresolvable identifiers are returned as failures."""
        results = await asyncio.gather(
            *[self._add_friend(user_id, identifier) for identifier in identifiers],
            return_exceptions=True,
        )

        batch: BatchResult[User] = BatchResult()
        for identifier, result in zip(identifiers, results):
            if isinstance(result, BaseException):
                log.warning(
                    f"Failed to add {identifier.to_json_dict()} as friend of {user_id}: {result}",
                    exc_info=not isinstance(result, (NotFoundError, BadRequestError)),
                )
                batch.failures.append(identifier)
            else:
                batch.successes.append(result)
        return batch

    async def _add_friend(self, user_id: str, identifier: UserIdentifier) -> User:
        kind, value = identifier.kind_and_value()
        friend = await self.user_service.get_or_create_user(kind, value)
        if friend.id == user_id:
            raise BadRequestError("Users cannot befriend themselves")
        await self.conversation_service.create_friend_conversation(user_id, friend.id)
        return friend

    async def remove_friend(self, user_id: str, friend_id: str) -> None:
        try:
            await self.conversation_service.delete_friend_conversation(user_id, friend_id)
        except Exception as e:
            log.error(f"Error in remove_friend: {e}", extra={"user_id": user_id, "friend_id": friend_id})
            raise

    async def get_friends_by_user_id(
        self,
        user_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.relationship_service.get_conversation_user_relationships_by_user_id(
            user_id,
            fetch_type=ConversationFetchType.FRIEND,
            limit=limit,
            exclusive_start_key=exclusive_start_key,
        )
        friend_ids = [
            friend_id_from_conversation_id(relationship.conversation_id, user_id) for relationship in page.items
        ]
        friends = await self.user_service.get_users(friend_ids)
        return Page(
            items=[await user_view(friend, self.url_provider) for friend in friends],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def is_friend(self, user_id: str, friend_id: str) -> bool:
        try:
            await self.conversation_service.get_friend_conversation(user_id, friend_id)
            return True
        except NotFoundError:
            return False
