# =============================================================================
# File: messaging_core/api/routers/group_router.py
# Description: Group endpoints - lookup, membership and messages
# =============================================================================

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from messaging_core.api.dependencies import (
    PageParams,
    get_conversation_mediator,
    get_group_mediator,
    get_message_mediator,
    page_body,
    require_admin,
    require_member,
)
from messaging_core.api.models.message_api_models import CreateMessageRequest
from messaging_core.api.models.user_api_models import AddUsersRequest
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.security.jwt_auth import get_current_user

log = logging.getLogger("messaging_core.api.groups")

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("/{group_id}")
async def get_group(
    group_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await require_member(conversation_mediator, group_id, current_user_id)
    return {"group": await group_mediator.get_group(group_id)}


# =============================================================================
# Membership
# =============================================================================

@router.get("/{group_id}/users")
async def get_group_users(
    group_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await require_member(conversation_mediator, group_id, current_user_id)
    users = await group_mediator.get_users(group_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key)
    return page_body("users", users)


@router.post("/{group_id}/users")
async def add_group_users(
    group_id: str,
    request: AddUsersRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    """Admin only. Each identifier lands in successes or failures."""
    await require_admin(conversation_mediator, group_id, current_user_id)
    result = await group_mediator.add_users(group_id, request.users)
    return {
        "successes": [user.to_json_dict() for user in result.successes],
        "failures": [identifier.to_json_dict() for identifier in result.failures],
    }


@router.delete("/{group_id}/users/{user_id}")
async def remove_group_user(
    group_id: str,
    user_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await require_admin(conversation_mediator, group_id, current_user_id)
    await group_mediator.remove_user(group_id, user_id)
    return {"message": "User removed from group"}


# =============================================================================
# Messages
# =============================================================================

@router.post("/{group_id}/messages", status_code=status.HTTP_201_CREATED)
async def create_group_message(
    group_id: str,
    request: CreateMessageRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, group_id, current_user_id)
    pending_message = await message_mediator.create_group_message(
        group_id, current_user_id, request.mime_type, reply_to=request.reply_to, title=request.title
    )
    return {"pendingMessage": pending_message}


@router.get("/{group_id}/messages")
async def get_group_messages(
    group_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, group_id, current_user_id)
    messages = await message_mediator.get_messages_by_conversation_id(
        group_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("messages", messages)
