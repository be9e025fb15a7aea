# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/conversation_repo.py
# Description: Conversation rows (friend, group, meeting) in the core table
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from botocore.exceptions import ClientError

from messaging_core.config.logging_config import get_logger
from messaging_core.conversation.enums import (
    CONVERSATION_ENTITY_TYPES,
    ConversationType,
)
from messaging_core.conversation.exceptions import (
    ConversationAlreadyExistsError,
    ConversationNotFoundError,
)
from messaging_core.conversation.ids import conversation_key_prefix
from messaging_core.conversation.models import (
    ConversationUserRelationship,
    FriendConversation,
    GroupConversation,
    MeetingConversation,
    parse_conversation,
)
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    Page,
    cleanse,
    is_conditional_failure,
)
from messaging_core.infra.persistence.dynamodb.relationship_repo import relationship_item

log = get_logger("messaging_core.infra.dynamodb.conversation")

AnyConversation = Union[FriendConversation, GroupConversation, MeetingConversation]


def conversation_item(conversation: AnyConversation) -> Dict[str, Any]:
    prefix = conversation_key_prefix(conversation.type)
    item: Dict[str, Any] = {
        "pk": conversation.id,
        "sk": conversation.id,
        "entityType": CONVERSATION_ENTITY_TYPES[conversation.type].value,
        **conversation.to_item(),
    }
    if conversation.organization_id:
        item["gsi1pk"] = conversation.organization_id
        item["gsi1sk"] = f"{prefix}{conversation.created_at}"
    if conversation.team_id:
        item["gsi2pk"] = conversation.team_id
        item["gsi2sk"] = f"{prefix}{conversation.created_at}"
    return item


class ConversationRepository(BaseDynamoRepository):
    """Conversation rows: pk = sk = conversation id."""

    async def create_conversation_with_members(
        self,
        conversation: AnyConversation,
        relationships: Sequence[ConversationUserRelationship],
    ) -> AnyConversation:
        """Write the conversation and its initial member rows in one transaction."""
        items: List[Dict[str, Any]] = [
            {"Put": {"Item": conversation_item(conversation), "ConditionExpression": "attribute_not_exists(pk)"}},
        ]
        for relationship in relationships:
            items.append({
                "Put": {"Item": relationship_item(relationship), "ConditionExpression": "attribute_not_exists(pk)"},
            })

        try:
            await self._transact_write(items)
        except ClientError as e:
            if is_conditional_failure(e):
                raise ConversationAlreadyExistsError(conversation.id) from e
            raise

        return conversation

    async def get_conversation(self, conversation_id: str) -> AnyConversation:
        item = await self._get(conversation_id, conversation_id)
        if item is None:
            raise ConversationNotFoundError(conversation_id)
        return parse_conversation(cleanse(item))

    async def get_conversations(self, conversation_ids: Sequence[str]) -> List[AnyConversation]:
        """Batch fetch; missing ids are skipped. Result follows input order."""
        unique_ids = list(dict.fromkeys(conversation_ids))
        items = await self._batch_get([{"pk": cid, "sk": cid} for cid in unique_ids])
        by_id = {item["pk"]: parse_conversation(cleanse(item)) for item in items}
        return [by_id[cid] for cid in unique_ids if cid in by_id]

    async def get_conversations_by_organization_id(
        self,
        organization_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        page = await self._query(
            index_name=self.config.gsi_one_name,
            key_condition_expression="#gsi1pk = :gsi1pk AND begins_with(#gsi1sk, :prefix)",
            names={"#gsi1pk": "gsi1pk", "#gsi1sk": "gsi1sk"},
            values={":gsi1pk": organization_id, ":prefix": conversation_key_prefix(conversation_type)},
            scan_index_forward=False,
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[parse_conversation(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def get_conversations_by_team_id(
        self,
        team_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        page = await self._query(
            index_name=self.config.gsi_two_name,
            key_condition_expression="#gsi2pk = :gsi2pk AND begins_with(#gsi2sk, :prefix)",
            names={"#gsi2pk": "gsi2pk", "#gsi2sk": "gsi2sk"},
            values={":gsi2pk": team_id, ":prefix": conversation_key_prefix(conversation_type)},
            scan_index_forward=False,
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[parse_conversation(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def update_meeting(
        self,
        meeting_id: str,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        outcomes: Optional[str] = None,
    ) -> MeetingConversation:
        updates = {"name": name, "dueDate": due_date, "outcomes": outcomes}
        updates = {key: value for key, value in updates.items() if value is not None}
        if not updates:
            conversation = await self.get_conversation(meeting_id)
            return conversation  # type: ignore[return-value]

        names = {f"#{key}": key for key in updates}
        values = {f":{key}": value for key, value in updates.items()}
        expression = "SET " + ", ".join(f"#{key} = :{key}" for key in updates)

        try:
            attributes = await self._update(
                key={"pk": meeting_id, "sk": meeting_id},
                update_expression=expression,
                names=names,
                values=values,
                condition_expression="attribute_exists(pk)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise ConversationNotFoundError(meeting_id) from e
            raise

        return MeetingConversation.model_validate(cleanse(attributes))

    async def delete_conversation_with_members(self, conversation_id: str, user_ids: Sequence[str]) -> None:
        """Remove the conversation and the given member rows in one transaction."""
        items: List[Dict[str, Any]] = [{"Delete": {"Key": {"pk": conversation_id, "sk": conversation_id}}}]
        for user_id in user_ids:
            items.append({"Delete": {"Key": {"pk": conversation_id, "sk": user_id}}})
        await self._transact_write(items)
