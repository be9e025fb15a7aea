# =============================================================================
# File: messaging_core/mediators/message_mediator.py
# Description: User-facing message operations - sending (pending message +
#              upload URL), listing, fetch with signed URLs, seen-state and
#              reactions
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from messaging_core.conversation.enums import ConversationType, MessageMimeType
from messaging_core.conversation.exceptions import MessageNotFoundError
from messaging_core.conversation.ids import message_id_from_pending
from messaging_core.conversation.models import Message
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.search.search_repo import SearchRepository
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.views import message_view, message_views, pending_message_view
from messaging_core.services.conversation_service import ConversationService
from messaging_core.services.message_service import MessageService, ReactionChange
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService
from messaging_core.utils.async_utils import gather_settled

log = logging.getLogger("messaging_core.mediators.message")


class MessageMediator:

    def __init__(
        self,
        message_service: MessageService,
        conversation_service: ConversationService,
        relationship_service: ConversationUserRelationshipService,
        user_service: UserService,
        search_repo: SearchRepository,
        url_provider: S3UrlProvider,
    ):
        self.message_service = message_service
        self.conversation_service = conversation_service
        self.relationship_service = relationship_service
        self.user_service = user_service
        self.search_repo = search_repo
        self.url_provider = url_provider

    # =========================================================================
    # Sending
    # =========================================================================

    async def create_friend_message(
        self,
        from_: str,
        to: str,
        mime_type: MessageMimeType,
        reply_to: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        conversation = await self.conversation_service.get_friend_conversation(from_, to)
        return await self._create_message(conversation.id, ConversationType.FRIEND, from_, mime_type, reply_to, title)

    async def create_group_message(
        self,
        group_id: str,
        from_: str,
        mime_type: MessageMimeType,
        reply_to: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._create_message(group_id, ConversationType.GROUP, from_, mime_type, reply_to, title)

    async def create_meeting_message(
        self,
        meeting_id: str,
        from_: str,
        mime_type: MessageMimeType,
        reply_to: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._create_message(meeting_id, ConversationType.MEETING, from_, mime_type, reply_to, title)

    async def _create_message(
        self,
        conversation_id: str,
        conversation_type: ConversationType,
        from_: str,
        mime_type: MessageMimeType,
        reply_to: Optional[str],
        title: Optional[str],
    ) -> Dict[str, Any]:
        try:
            if reply_to:
                parent = await self.message_service.get_message(reply_to)
                if parent.conversation_id != conversation_id:
                    raise MessageNotFoundError(reply_to)

            pending = await self.message_service.create_pending_message(
                conversation_id, conversation_type, from_, mime_type, reply_to=reply_to, title=title
            )
            return await pending_message_view(pending, message_id_from_pending(pending.id), self.url_provider)
        except Exception as e:
            log.error(
                f"Error in _create_message: {e}",
                extra={"conversation_id": conversation_id, "from": from_},
                exc_info=True,
            )
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_message(self, message_id: str) -> Dict[str, Any]:
        """The message with a presigned fetchUrl and the sender's image URL."""
        message = await self.message_service.get_message(message_id)
        sender = (await self.user_service.get_users([message.from_]) or [None])[0]
        return await message_view(message, sender, self.url_provider)

    async def get_messages_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.message_service.get_messages_by_conversation_id(
            conversation_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return await self._with_views(page)

    async def get_messages_by_user_and_friend_ids(
        self,
        user_id: str,
        friend_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        conversation = await self.conversation_service.get_friend_conversation(user_id, friend_id)
        return await self.get_messages_by_conversation_id(
            conversation.id, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def get_replies_by_message_id(
        self,
        message_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.message_service.get_replies_by_parent_id(
            message_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return await self._with_views(page)

    async def get_messages_by_user_id_and_search_term(
        self,
        user_id: str,
        search_term: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        """
        Messages whose transcript or title matches, from any conversation the
        user belongs to, in relevance order. Paging follows the search index.
        """
        relationships = await self.relationship_service.get_all_conversation_user_relationships_by_user_id(user_id)
        search_page = await self.search_repo.get_message_ids_by_search_term(
            search_term,
            [relationship.conversation_id for relationship in relationships],
            limit=limit,
            exclusive_start_key=exclusive_start_key,
        )
        messages = await self.message_service.get_messages(search_page.items)
        return await self._with_views(Page(items=messages, last_evaluated_key=search_page.last_evaluated_key))

    async def _with_views(self, page: Page[Message]) -> Page[Dict[str, Any]]:
        senders = await self.user_service.get_users([message.from_ for message in page.items])
        return Page(
            items=await message_views(page.items, senders, self.url_provider),
            last_evaluated_key=page.last_evaluated_key,
        )

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_message_by_user_id(
        self,
        message_id: str,
        user_id: str,
        seen: Optional[bool] = None,
        reactions: Sequence[ReactionChange] = (),
    ) -> Dict[str, Any]:
        """Apply a user's seen flag and reaction toggles, then return the message."""
        try:
            updates = []
            if seen is not None:
                updates.append(self.message_service.update_message_seen_state(message_id, user_id, seen))
            if reactions:
                updates.append(self.message_service.update_message_reactions(message_id, user_id, reactions))
            await gather_settled(*updates)
            return await self.get_message(message_id)
        except Exception as e:
            log.error(
                f"Error in update_message_by_user_id: {e}",
                extra={"message_id": message_id, "user_id": user_id},
                exc_info=True,
            )
            raise

    async def update_friend_messages_by_user_id(self, user_id: str, friend_id: str, seen: bool) -> List[str]:
        conversation = await self.conversation_service.get_friend_conversation(user_id, friend_id)
        return await self.update_conversation_messages_by_user_id(conversation.id, user_id, seen)

    async def update_conversation_messages_by_user_id(
        self,
        conversation_id: str,
        user_id: str,
        seen: bool,
    ) -> List[str]:
        """
        Bulk mark the user's messages in one conversation.

        seen=True targets the unread set. seen=False targets every message,
        replies included, whose seenAt[user_id] is set, which puts them all
        back in the unread set.

        Returns the ids that were updated.
        """
        try:
            relationship = await self.relationship_service.get_conversation_user_relationship(
                conversation_id, user_id
            )
            if seen:
                message_ids = sorted(relationship.unread_messages)
            else:
                messages = await self.message_service.get_all_messages_by_conversation_id(conversation_id)
                message_ids = sorted(
                    message.id for message in messages if message.seen_at.get(user_id) is not None
                )

            await gather_settled(*[
                self.message_service.update_message_seen_state(message_id, user_id, seen)
                for message_id in message_ids
            ])
            log.info(f"Marked {len(message_ids)} messages in {conversation_id} seen={seen} for {user_id}")
            return message_ids
        except Exception as e:
            log.error(
                f"Error in update_conversation_messages_by_user_id: {e}",
                extra={"conversation_id": conversation_id, "user_id": user_id},
                exc_info=True,
            )
            raise
