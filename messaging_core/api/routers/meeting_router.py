# =============================================================================
# File: messaging_core/api/routers/meeting_router.py
# Description: Meeting endpoints - lookup, updates, membership and messages
# =============================================================================

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from messaging_core.api.dependencies import (
    PageParams,
    get_conversation_mediator,
    get_meeting_mediator,
    get_message_mediator,
    page_body,
    require_admin,
    require_member,
)
from messaging_core.api.models.conversation_api_models import UpdateMeetingRequest
from messaging_core.api.models.message_api_models import CreateMessageRequest
from messaging_core.api.models.user_api_models import AddUsersRequest
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.security.jwt_auth import get_current_user

log = logging.getLogger("messaging_core.api.meetings")

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("/{meeting_id}")
async def get_meeting(
    meeting_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_member(conversation_mediator, meeting_id, current_user_id)
    return {"meeting": await meeting_mediator.get_meeting(meeting_id)}


@router.patch("/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    request: UpdateMeetingRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    """Admin only. A new due date is copied onto every member's relationship."""
    await require_admin(conversation_mediator, meeting_id, current_user_id)
    meeting = await meeting_mediator.update_meeting(
        meeting_id,
        name=request.name,
        due_date=request.due_date_iso(),
        outcomes=request.outcomes,
    )
    return {"meeting": meeting}


# =============================================================================
# Membership
# =============================================================================

@router.get("/{meeting_id}/users")
async def get_meeting_users(
    meeting_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_member(conversation_mediator, meeting_id, current_user_id)
    users = await meeting_mediator.get_users(
        meeting_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("users", users)


@router.post("/{meeting_id}/users")
async def add_meeting_users(
    meeting_id: str,
    request: AddUsersRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_admin(conversation_mediator, meeting_id, current_user_id)
    result = await meeting_mediator.add_users(meeting_id, request.users)
    return {
        "successes": [user.to_json_dict() for user in result.successes],
        "failures": [identifier.to_json_dict() for identifier in result.failures],
    }


@router.delete("/{meeting_id}/users/{user_id}")
async def remove_meeting_user(
    meeting_id: str,
    user_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await require_admin(conversation_mediator, meeting_id, current_user_id)
    await meeting_mediator.remove_user(meeting_id, user_id)
    return {"message": "User removed from meeting"}


# =============================================================================
# Messages
# =============================================================================

@router.post("/{meeting_id}/messages", status_code=status.HTTP_201_CREATED)
async def create_meeting_message(
    meeting_id: str,
    request: CreateMessageRequest,
    current_user_id: Annotated[str, Depends(get_current_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, meeting_id, current_user_id)
    pending_message = await message_mediator.create_meeting_message(
        meeting_id, current_user_id, request.mime_type, reply_to=request.reply_to, title=request.title
    )
    return {"pendingMessage": pending_message}


@router.get("/{meeting_id}/messages")
async def get_meeting_messages(
    meeting_id: str,
    current_user_id: Annotated[str, Depends(get_current_user)],
    page: PageParams = Depends(),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, meeting_id, current_user_id)
    messages = await message_mediator.get_messages_by_conversation_id(
        meeting_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("messages", messages)
