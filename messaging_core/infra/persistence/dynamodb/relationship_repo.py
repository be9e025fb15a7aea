# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/relationship_repo.py
# Description: ConversationUserRelationship rows - membership, role and the
#              per-user unread message set
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from botocore.exceptions import ClientError

from messaging_core.config.logging_config import get_logger
from messaging_core.conversation.enums import (
    ConversationFetchType,
    ConversationType,
    EntityType,
    KeyPrefix,
)
from messaging_core.conversation.exceptions import RelationshipNotFoundError
from messaging_core.conversation.ids import conversation_key_prefix
from messaging_core.conversation.models import ConversationUserRelationship
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    Page,
    cleanse,
    is_conditional_failure,
)

log = get_logger("messaging_core.infra.dynamodb.relationship")

_TIME = KeyPrefix.TIME.value
_DUE_DATE = KeyPrefix.DUE_DATE.value


def recency_sort_key(updated_at: str) -> str:
    return f"{_TIME}{updated_at}"


def typed_recency_sort_key(conversation_type: ConversationType, updated_at: str) -> str:
    return f"{_TIME}{conversation_key_prefix(conversation_type)}{updated_at}"


def relationship_item(relationship: ConversationUserRelationship) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "pk": relationship.conversation_id,
        "sk": relationship.user_id,
        "entityType": EntityType.CONVERSATION_USER_RELATIONSHIP.value,
        "gsi1pk": relationship.user_id,
        "gsi1sk": recency_sort_key(relationship.updated_at),
        "gsi2pk": relationship.user_id,
        "gsi2sk": typed_recency_sort_key(relationship.type, relationship.updated_at),
        **relationship.to_item(),
    }
    if relationship.type == ConversationType.MEETING and relationship.due_date:
        item["gsi3pk"] = relationship.user_id
        item["gsi3sk"] = f"{_DUE_DATE}{relationship.due_date}"
    return item


class RelationshipRepository(BaseDynamoRepository):
    """
    pk = conversation id, sk = user id.

    gsi1: by user, most recently updated first.
    gsi2: by user and conversation type, most recently updated first.
    gsi3: by user, meetings ordered by due date.
    """

    async def create_relationship(self, relationship: ConversationUserRelationship) -> ConversationUserRelationship:
        await self._put(relationship_item(relationship), condition_expression="attribute_not_exists(pk)")
        return relationship

    async def get_relationship(self, conversation_id: str, user_id: str) -> ConversationUserRelationship:
        item = await self._get(conversation_id, user_id)
        if item is None:
            raise RelationshipNotFoundError(conversation_id, user_id)
        return ConversationUserRelationship.model_validate(cleanse(item))

    async def get_relationships_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        page = await self._query(
            key_condition_expression="#pk = :pk AND begins_with(#sk, :userPrefix)",
            names={"#pk": "pk", "#sk": "sk"},
            values={":pk": conversation_id, ":userPrefix": KeyPrefix.USER.value},
            limit=limit,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[ConversationUserRelationship.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def get_all_relationships_by_conversation_id(self, conversation_id: str) -> list[ConversationUserRelationship]:
        items = await self._query_all(
            key_condition_expression="#pk = :pk AND begins_with(#sk, :userPrefix)",
            names={"#pk": "pk", "#sk": "sk"},
            values={":pk": conversation_id, ":userPrefix": KeyPrefix.USER.value},
        )
        return [ConversationUserRelationship.model_validate(cleanse(item)) for item in items]

    async def get_relationships_by_user_id(
        self,
        user_id: str,
        fetch_type: Optional[ConversationFetchType] = None,
        unread: Optional[bool] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        scan_forward = False

        if fetch_type == ConversationFetchType.MEETING_DUE_DATE:
            index_name = self.config.gsi_three_name
            names.update({"#pk": "gsi3pk"})
            values.update({":pk": user_id})
            key_condition = "#pk = :pk"
            scan_forward = True
        elif fetch_type is not None:
            index_name = self.config.gsi_two_name
            names.update({"#pk": "gsi2pk", "#sk": "gsi2sk"})
            values.update({
                ":pk": user_id,
                ":prefix": f"{_TIME}{conversation_key_prefix(ConversationType(fetch_type.value))}",
            })
            key_condition = "#pk = :pk AND begins_with(#sk, :prefix)"
        else:
            index_name = self.config.gsi_one_name
            names.update({"#pk": "gsi1pk"})
            values.update({":pk": user_id})
            key_condition = "#pk = :pk"

        filter_expression = None
        if unread:
            names["#unreadMessages"] = "unreadMessages"
            filter_expression = "attribute_exists(#unreadMessages)"

        page = await self._query(
            index_name=index_name,
            key_condition_expression=key_condition,
            names=names,
            values=values,
            filter_expression=filter_expression,
            scan_index_forward=scan_forward,
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[ConversationUserRelationship.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def add_message_to_relationship(
        self,
        conversation_id: str,
        user_id: str,
        conversation_type: ConversationType,
        message_id: str,
        updated_at: str,
        sender: bool = False,
    ) -> Optional[ConversationUserRelationship]:
        """
        Add the message to the member's unread set (unless they sent it) and
        resurface the conversation for them.

        The two are separate updates: the unread ADD always applies, while the
        recency fields only move forward. A replayed or late message older
        than the stored updatedAt leaves recentMessageId and the sort keys as
        they are.

        Returns None when the member row no longer exists.
        """
        unread: Optional[ConversationUserRelationship] = None
        if not sender:
            unread = await self.add_unread_messages(conversation_id, user_id, [message_id])
            if unread is None:
                return None

        resurfaced = await self._update_existing(
            conversation_id,
            user_id,
            "SET #updatedAt = :updatedAt, #gsi1sk = :gsi1sk, #gsi2sk = :gsi2sk, #recentMessageId = :messageId",
            {
                "#updatedAt": "updatedAt",
                "#gsi1sk": "gsi1sk",
                "#gsi2sk": "gsi2sk",
                "#recentMessageId": "recentMessageId",
            },
            {
                ":updatedAt": updated_at,
                ":gsi1sk": recency_sort_key(updated_at),
                ":gsi2sk": typed_recency_sort_key(conversation_type, updated_at),
                ":messageId": message_id,
            },
            condition="attribute_not_exists(#updatedAt) OR #updatedAt <= :updatedAt",
        )
        if resurfaced is not None:
            return resurfaced

        if unread is not None:
            return unread
        try:
            return await self.get_relationship(conversation_id, user_id)
        except RelationshipNotFoundError:
            return None

    async def add_unread_messages(
        self,
        conversation_id: str,
        user_id: str,
        message_ids: Sequence[str],
    ) -> Optional[ConversationUserRelationship]:
        if not message_ids:
            return None
        return await self._update_existing(
            conversation_id,
            user_id,
            "ADD #unreadMessages :messageIds",
            {"#unreadMessages": "unreadMessages"},
            {":messageIds": set(message_ids)},
        )

    async def remove_unread_messages(
        self,
        conversation_id: str,
        user_id: str,
        message_ids: Sequence[str],
    ) -> Optional[ConversationUserRelationship]:
        """DELETE from the set; DynamoDB drops the attribute once it is empty."""
        if not message_ids:
            return None
        return await self._update_existing(
            conversation_id,
            user_id,
            "DELETE #unreadMessages :messageIds",
            {"#unreadMessages": "unreadMessages"},
            {":messageIds": set(message_ids)},
        )

    async def update_due_date(
        self,
        conversation_id: str,
        user_id: str,
        due_date: str,
    ) -> Optional[ConversationUserRelationship]:
        return await self._update_existing(
            conversation_id,
            user_id,
            "SET #dueDate = :dueDate, #gsi3pk = :gsi3pk, #gsi3sk = :gsi3sk",
            {"#dueDate": "dueDate", "#gsi3pk": "gsi3pk", "#gsi3sk": "gsi3sk"},
            {":dueDate": due_date, ":gsi3pk": user_id, ":gsi3sk": f"{_DUE_DATE}{due_date}"},
        )

    async def delete_relationship(self, conversation_id: str, user_id: str) -> None:
        await self._delete({"pk": conversation_id, "sk": user_id})

    async def _update_existing(
        self,
        conversation_id: str,
        user_id: str,
        expression: str,
        names: Dict[str, str],
        values: Dict[str, Any],
        condition: Optional[str] = None,
    ) -> Optional[ConversationUserRelationship]:
        """
        Update only if the member row exists; an update must never create one.
        An extra condition is ANDed on; None comes back when either fails.
        """
        condition_expression = "attribute_exists(pk)"
        if condition:
            condition_expression += f" AND ({condition})"
        try:
            attributes = await self._update(
                key={"pk": conversation_id, "sk": user_id},
                update_expression=expression,
                names=names,
                values=values,
                condition_expression=condition_expression,
            )
        except ClientError as e:
            if is_conditional_failure(e):
                log.info(f"Relationship {conversation_id}/{user_id} update skipped: {condition_expression}")
                return None
            raise
        return ConversationUserRelationship.model_validate(cleanse(attributes))
