# =============================================================================
# File: messaging_core/api/routers/message_router.py
# Description: Message reads addressed by message id
# =============================================================================

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from messaging_core.api.dependencies import (
    PageParams,
    get_conversation_mediator,
    get_message_mediator,
    page_body,
    require_member,
)
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.security.jwt_auth import get_current_user

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{message_id}")
async def get_message(
    message_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    """Readable by members of the message's conversation only."""
    message = await message_mediator.get_message(message_id)
    await require_member(conversation_mediator, message["conversationId"], current_user_id)
    return {"message": message}


@router.get("/{message_id}/replies")
async def get_replies(
    message_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    parent = await message_mediator.get_message(message_id)
    await require_member(conversation_mediator, parent["conversationId"], current_user_id)
    replies = await message_mediator.get_replies_by_message_id(
        message_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("replies", replies)
