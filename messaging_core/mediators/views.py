# =============================================================================
# File: messaging_core/mediators/views.py
# Description: Response shapes shared by the mediators - messages with
#              signed URLs and sender image, conversations with image URL
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from messaging_core.conversation.enums import ConversationType, EntityType
from messaging_core.conversation.ids import friend_id_from_conversation_id
from messaging_core.conversation.models import Message, PendingMessage, User
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider


def message_recipient(conversation_type: ConversationType, conversation_id: str, from_: str) -> str:
    """Friend messages go to the other user; group and meeting messages to the conversation."""
    if conversation_type == ConversationType.FRIEND:
        return friend_id_from_conversation_id(conversation_id, from_)
    return conversation_id


async def message_view(message: Message, sender: Optional[User], url_provider: S3UrlProvider) -> Dict[str, Any]:
    data = message.to_json_dict()
    data["to"] = message_recipient(message.conversation_type, message.conversation_id, message.from_)
    data["type"] = message.conversation_type.value
    data["fetchUrl"] = await url_provider.get_message_signed_url(
        message.conversation_id, message.id, message.mime_type, "get"
    )
    data["fromImage"] = await url_provider.get_image_signed_url(
        EntityType.USER, message.from_, sender.image_mime_type if sender else None, "get"
    )
    return data


async def message_views(
    messages: Sequence[Message],
    senders: Sequence[User],
    url_provider: S3UrlProvider,
) -> List[Dict[str, Any]]:
    by_id = {sender.id: sender for sender in senders}
    return [await message_view(message, by_id.get(message.from_), url_provider) for message in messages]


async def pending_message_view(
    pending_message: PendingMessage,
    message_id: str,
    url_provider: S3UrlProvider,
) -> Dict[str, Any]:
    """
    The pending message as the client sees it: the final message id plus
    a presigned upload URL for the media.
    """
    return {
        "id": message_id,
        "to": message_recipient(
            pending_message.conversation_type, pending_message.conversation_id, pending_message.from_
        ),
        "from": pending_message.from_,
        "type": pending_message.conversation_type.value,
        "mimeType": pending_message.mime_type.value,
        "createdAt": pending_message.created_at,
        "replyTo": pending_message.reply_to,
        "title": pending_message.title,
        "uploadUrl": await url_provider.get_message_signed_url(
            pending_message.conversation_id, message_id, pending_message.mime_type, "upload"
        ),
    }


async def user_view(user: User, url_provider: S3UrlProvider) -> Dict[str, Any]:
    data = user.to_json_dict()
    data.pop("imageMimeType", None)
    data["image"] = await url_provider.get_image_signed_url(EntityType.USER, user.id, user.image_mime_type, "get")
    return data
