# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/pending_message_repo.py
# Description: PendingMessage rows awaiting transcoding/transcription
# =============================================================================

from __future__ import annotations

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import EntityType, MessageMimeType
from messaging_core.conversation.exceptions import PendingMessageNotFoundError
from messaging_core.conversation.models import PendingMessage
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    cleanse,
    is_conditional_failure,
)


class PendingMessageRepository(BaseDynamoRepository):
    """pk = sk = "pending-" + message id."""

    async def create_pending_message(self, pending_message: PendingMessage) -> PendingMessage:
        item = {
            "pk": pending_message.id,
            "sk": pending_message.id,
            "entityType": EntityType.PENDING_MESSAGE.value,
            **pending_message.to_item(),
        }
        await self._put(item, condition_expression="attribute_not_exists(pk)")
        return pending_message

    async def get_pending_message(self, pending_message_id: str) -> PendingMessage:
        item = await self._get(pending_message_id, pending_message_id)
        if item is None:
            raise PendingMessageNotFoundError(pending_message_id)
        return PendingMessage.model_validate(cleanse(item))

    async def update_mime_type(self, pending_message_id: str, mime_type: MessageMimeType) -> PendingMessage:
        try:
            attributes = await self._update(
                key={"pk": pending_message_id, "sk": pending_message_id},
                update_expression="SET #mimeType = :mimeType",
                names={"#mimeType": "mimeType"},
                values={":mimeType": mime_type.value},
                condition_expression="attribute_exists(pk)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise PendingMessageNotFoundError(pending_message_id) from e
            raise
        return PendingMessage.model_validate(cleanse(attributes))

    async def delete_pending_message(self, pending_message_id: str) -> None:
        await self._delete({"pk": pending_message_id, "sk": pending_message_id})
