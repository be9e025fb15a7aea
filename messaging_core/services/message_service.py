# =============================================================================
# File: messaging_core/services/message_service.py
# Description: Message domain service - pending messages, conversion,
#              seen-state and reactions
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from messaging_core.conversation.enums import ConversationType, MessageMimeType, ReactionAction
from messaging_core.conversation.exceptions import MessageNotFoundError, PendingMessageNotFoundError
from messaging_core.conversation.ids import message_id_from_pending, new_message_id, pending_message_id
from messaging_core.conversation.models import Message, PendingMessage
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.persistence.dynamodb.message_repo import MessageRepository
from messaging_core.infra.persistence.dynamodb.pending_message_repo import PendingMessageRepository
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.utils.async_utils import gather_settled
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.message")


@dataclass(frozen=True)
class ReactionChange:
    """One reaction toggle requested by a user."""
    reaction: str
    action: ReactionAction


class MessageService:
    """
    Owns Message and PendingMessage rows.

    A PendingMessage and its Message share the id suffix and never coexist:
    conversion writes one and deletes the other in a single transaction.
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        pending_message_repo: PendingMessageRepository,
        relationship_service: ConversationUserRelationshipService,
    ):
        self.message_repo = message_repo
        self.pending_message_repo = pending_message_repo
        self.relationship_service = relationship_service

    # =========================================================================
    # Pending messages
    # =========================================================================

    async def create_pending_message(
        self,
        conversation_id: str,
        conversation_type: ConversationType,
        from_: str,
        mime_type: MessageMimeType,
        reply_to: Optional[str] = None,
        title: Optional[str] = None,
    ) -> PendingMessage:
        message_id = new_message_id(reply=reply_to is not None)
        pending_message = PendingMessage(
            id=pending_message_id(message_id),
            conversation_id=conversation_id,
            conversation_type=conversation_type,
            from_=from_,
            created_at=now_iso(),
            mime_type=mime_type,
            reply_to=reply_to,
            title=title,
        )
        await self.pending_message_repo.create_pending_message(pending_message)
        log.info(f"Pending message {pending_message.id} created in {conversation_id}")
        return pending_message

    async def get_pending_message(self, pending_id: str) -> PendingMessage:
        return await self.pending_message_repo.get_pending_message(pending_id)

    async def update_pending_message_mime_type(self, pending_id: str, mime_type: MessageMimeType) -> PendingMessage:
        return await self.pending_message_repo.update_mime_type(pending_id, mime_type)

    async def convert_pending_to_message(
        self,
        pending_id: str,
        transcript: Optional[str] = None,
    ) -> Tuple[Message, bool]:
        """
        Replace the pending row with the real message.

        seenAt gets one key per current member; only the sender's is set.
        Returns (message, converted). When the conversion already happened,
        the stored message is returned with converted=False.

        Raises:
            PendingMessageNotFoundError: neither the pending row nor the
                message exists
        """
        message_id = message_id_from_pending(pending_id)
        try:
            pending = await self.pending_message_repo.get_pending_message(pending_message_id(message_id))
        except PendingMessageNotFoundError:
            existing = await self._get_converted(message_id)
            if existing is None:
                raise
            log.info(f"Message {message_id} already converted")
            return existing, False

        timestamp = now_iso()
        member_ids = await self.relationship_service.get_member_ids(pending.conversation_id)
        seen_at = {member_id: None for member_id in member_ids}
        seen_at[pending.from_] = timestamp

        message = Message(
            id=message_id,
            conversation_id=pending.conversation_id,
            conversation_type=pending.conversation_type,
            from_=pending.from_,
            created_at=timestamp,
            mime_type=pending.mime_type,
            seen_at=seen_at,
            reactions={},
            reply_count=0,
            transcript=transcript,
            title=pending.title,
            reply_to=pending.reply_to,
        )

        converted = await self.message_repo.convert_pending_message(message)
        if converted:
            log.info(f"Pending message {pending.id} converted to {message_id}")
            return message, True

        # Lost a race with a concurrent conversion
        return await self.message_repo.get_message(message_id), False

    async def _get_converted(self, message_id: str) -> Optional[Message]:
        try:
            return await self.message_repo.get_message(message_id)
        except MessageNotFoundError:
            return None

    # =========================================================================
    # Messages
    # =========================================================================

    async def get_message(self, message_id: str) -> Message:
        return await self.message_repo.get_message(message_id)

    async def get_messages(self, message_ids: Sequence[str]) -> List[Message]:
        return await self.message_repo.get_messages(message_ids)

    async def get_messages_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        return await self.message_repo.get_messages_by_conversation_id(
            conversation_id, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def get_all_messages_by_conversation_id(self, conversation_id: str) -> List[Message]:
        """Every message in the conversation, replies included."""
        messages: List[Message] = []
        next_key: Optional[str] = None
        while True:
            page = await self.get_messages_by_conversation_id(conversation_id, exclusive_start_key=next_key)
            messages.extend(page.items)
            if not page.last_evaluated_key:
                break
            next_key = page.last_evaluated_key

        for parent in [message for message in messages if message.reply_count]:
            next_key = None
            while True:
                page = await self.get_replies_by_parent_id(parent.id, exclusive_start_key=next_key)
                messages.extend(page.items)
                if not page.last_evaluated_key:
                    break
                next_key = page.last_evaluated_key
        return messages

    async def get_replies_by_parent_id(
        self,
        message_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        return await self.message_repo.get_replies_by_message_id(
            message_id, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def update_message(
        self,
        message_id: str,
        transcript: Optional[str] = None,
        mime_type: Optional[MessageMimeType] = None,
    ) -> Message:
        return await self.message_repo.update_message(
            message_id,
            transcript=transcript,
            mime_type=mime_type.value if mime_type else None,
        )

    async def update_message_seen_state(self, message_id: str, user_id: str, seen: bool) -> Message:
        """
        Set or clear seenAt[user_id], then mirror it into the user's unread
        set for the same conversation.
        """
        message = await self.message_repo.update_seen_at(message_id, user_id, now_iso() if seen else None)
        await self.relationship_service.mark_seen(message.conversation_id, user_id, [message_id], seen)
        return message

    async def update_message_reactions(
        self,
        message_id: str,
        user_id: str,
        changes: Sequence[ReactionChange],
    ) -> Message:
        """
        Apply reaction toggles for one user. Removing the last user of a
        reaction drops the reaction key.
        """
        if not changes:
            return await self.message_repo.get_message(message_id)

        await gather_settled(*[
            self.message_repo.add_reaction(message_id, change.reaction, user_id)
            if change.action == ReactionAction.ADD
            else self.message_repo.remove_reaction(message_id, change.reaction, user_id)
            for change in changes
        ])
        return await self.message_repo.get_message(message_id)
