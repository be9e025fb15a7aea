# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/message_repo.py
# Description: Message rows - seen-state, reactions, replies and the
#              pending-to-message conversion transaction
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import ClientError

from messaging_core.config.logging_config import get_logger
from messaging_core.conversation.enums import EntityType, KeyPrefix
from messaging_core.conversation.exceptions import MessageNotFoundError
from messaging_core.conversation.ids import pending_message_id
from messaging_core.conversation.models import Message
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    Page,
    cleanse,
    is_conditional_failure,
)

log = get_logger("messaging_core.infra.dynamodb.message")

MESSAGE_SORT_KEY = "message"


def message_index_partition(message: Message) -> str:
    """Replies are indexed under their parent so root listings exclude them."""
    if message.reply_to:
        return f"{KeyPrefix.REPLY_TO.value}{message.reply_to}"
    return message.conversation_id


def message_item(message: Message) -> Dict[str, Any]:
    return {
        "pk": message.id,
        "sk": MESSAGE_SORT_KEY,
        "entityType": EntityType.MESSAGE.value,
        "gsi1pk": message_index_partition(message),
        "gsi1sk": f"{KeyPrefix.MESSAGE_CREATED.value}{message.created_at}",
        **message.to_item(),
    }


class MessageRepository(BaseDynamoRepository):
    """pk = message id, sk = "message"; gsi1 orders messages by creation time."""

    async def convert_pending_message(self, message: Message) -> bool:
        """
        Atomically create the message and delete its pending row; replies also
        bump the parent's replyCount.

        Returns False when the transaction's conditions fail, meaning the
        conversion already happened.
        """
        items: List[Dict[str, Any]] = [
            {"Put": {"Item": message_item(message), "ConditionExpression": "attribute_not_exists(pk)"}},
            {"Delete": {
                "Key": {"pk": pending_message_id(message.id), "sk": pending_message_id(message.id)},
                "ConditionExpression": "attribute_exists(pk)",
            }},
        ]
        if message.reply_to:
            items.append({"Update": {
                "Key": {"pk": message.reply_to, "sk": MESSAGE_SORT_KEY},
                "UpdateExpression": "ADD #replyCount :one",
                "ConditionExpression": "attribute_exists(pk)",
                "ExpressionAttributeNames": {"#replyCount": "replyCount"},
                "ExpressionAttributeValues": {":one": 1},
            }})

        try:
            await self._transact_write(items)
        except ClientError as e:
            if is_conditional_failure(e):
                log.info(f"Conversion of {message.id} skipped, conditions not met")
                return False
            raise
        return True

    async def get_message(self, message_id: str) -> Message:
        item = await self._get(message_id, MESSAGE_SORT_KEY)
        if item is None:
            raise MessageNotFoundError(message_id)
        return Message.model_validate(cleanse(item))

    async def get_messages(self, message_ids: Sequence[str]) -> List[Message]:
        unique_ids = list(dict.fromkeys(message_ids))
        items = await self._batch_get([{"pk": mid, "sk": MESSAGE_SORT_KEY} for mid in unique_ids])
        by_id = {item["pk"]: Message.model_validate(cleanse(item)) for item in items}
        return [by_id[mid] for mid in unique_ids if mid in by_id]

    async def get_messages_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        return await self._query_index_partition(conversation_id, limit, exclusive_start_key)

    async def get_replies_by_message_id(
        self,
        message_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        return await self._query_index_partition(
            f"{KeyPrefix.REPLY_TO.value}{message_id}", limit, exclusive_start_key
        )

    async def update_seen_at(self, message_id: str, user_id: str, seen_at: Optional[str]) -> Message:
        return await self._update_message(
            message_id,
            "SET #seenAt.#userId = :seenAt",
            {"#seenAt": "seenAt", "#userId": user_id},
            {":seenAt": seen_at},
        )

    async def add_reaction(self, message_id: str, reaction: str, user_id: str) -> Message:
        return await self._update_message(
            message_id,
            "ADD #reactions.#reaction :userIds",
            {"#reactions": "reactions", "#reaction": reaction},
            {":userIds": {user_id}},
        )

    async def remove_reaction(self, message_id: str, reaction: str, user_id: str) -> Message:
        """Removing the last user drops the reaction key itself."""
        return await self._update_message(
            message_id,
            "DELETE #reactions.#reaction :userIds",
            {"#reactions": "reactions", "#reaction": reaction},
            {":userIds": {user_id}},
        )

    async def update_message(
        self,
        message_id: str,
        transcript: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> Message:
        updates = {"transcript": transcript, "mimeType": mime_type}
        updates = {key: value for key, value in updates.items() if value is not None}
        if not updates:
            return await self.get_message(message_id)
        return await self._update_message(
            message_id,
            "SET " + ", ".join(f"#{key} = :{key}" for key in updates),
            {f"#{key}": key for key in updates},
            {f":{key}": value for key, value in updates.items()},
        )

    async def _update_message(
        self,
        message_id: str,
        expression: str,
        names: Dict[str, str],
        values: Dict[str, Any],
    ) -> Message:
        try:
            attributes = await self._update(
                key={"pk": message_id, "sk": MESSAGE_SORT_KEY},
                update_expression=expression,
                names=names,
                values=values,
                condition_expression="attribute_exists(pk)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise MessageNotFoundError(message_id) from e
            raise
        return Message.model_validate(cleanse(attributes))

    async def _query_index_partition(
        self,
        partition: str,
        limit: Optional[int],
        exclusive_start_key: Optional[str],
    ) -> Page[Message]:
        page = await self._query(
            index_name=self.config.gsi_one_name,
            key_condition_expression="#gsi1pk = :gsi1pk AND begins_with(#gsi1sk, :created)",
            names={"#gsi1pk": "gsi1pk", "#gsi1sk": "gsi1sk"},
            values={":gsi1pk": partition, ":created": KeyPrefix.MESSAGE_CREATED.value},
            scan_index_forward=False,
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[Message.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )
