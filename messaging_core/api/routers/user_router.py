# =============================================================================
# File: messaging_core/api/routers/user_router.py
# Description: User, friend and per-user conversation endpoints.
#              Every /users/{user_id}/... route acts as the token's subject.
# =============================================================================

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from messaging_core.api.dependencies import (
    PageParams,
    get_conversation_mediator,
    get_friendship_mediator,
    get_group_mediator,
    get_meeting_mediator,
    get_message_mediator,
    get_organization_mediator,
    get_team_mediator,
    get_user_mediator,
    page_body,
    require_entity_member,
    require_member,
)
from messaging_core.api.models.conversation_api_models import CreateGroupRequest, CreateMeetingRequest
from messaging_core.api.models.message_api_models import (
    CreateMessageRequest,
    UpdateMessageRequest,
    UpdateMessagesRequest,
)
from messaging_core.api.models.user_api_models import AddUsersRequest, CreateUserRequest, UpdateUserRequest
from messaging_core.conversation.enums import ConversationFetchType
from messaging_core.conversation.exceptions import NotConversationMemberError
from messaging_core.conversation.ids import friend_conversation_id
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.friendship_mediator import FriendshipMediator
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.mediators.organization_mediator import OrganizationMediator
from messaging_core.mediators.team_mediator import TeamMediator
from messaging_core.mediators.user_mediator import UserMediator
from messaging_core.security.jwt_auth import get_path_user

log = logging.getLogger("messaging_core.api.users")

router = APIRouter(prefix="/users", tags=["users"])


async def _require_friend(friendship_mediator: FriendshipMediator, user_id: str, friend_id: str) -> None:
    if not await friendship_mediator.is_friend(user_id, friend_id):
        raise NotConversationMemberError(friend_conversation_id(user_id, friend_id), user_id)


async def _require_parents(
    organization_mediator: OrganizationMediator,
    team_mediator: TeamMediator,
    user_id: str,
    organization_id: Optional[str],
    team_id: Optional[str],
) -> None:
    """A group or meeting may only be filed under the creator's own organization and team"""
    if organization_id:
        await require_entity_member(organization_mediator, organization_id, user_id)
    if team_id:
        await require_entity_member(team_mediator, team_id, user_id)


# =============================================================================
# Users
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    user_mediator: UserMediator = Depends(get_user_mediator),
):
    """Register a user. Email, phone and username must be unused."""
    user = await user_mediator.create_user(
        email=request.email,
        phone=request.phone,
        username=request.username,
        name=request.name,
        real_name=request.real_name,
        bio=request.bio,
    )
    return {"user": user}


@router.get("/{user_id}")
async def get_user(
    user_id: Annotated[str, Depends(get_path_user)],
    user_mediator: UserMediator = Depends(get_user_mediator),
):
    return {"user": await user_mediator.get_user(user_id)}


@router.patch("/{user_id}")
async def update_user(
    request: UpdateUserRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    user_mediator: UserMediator = Depends(get_user_mediator),
):
    user = await user_mediator.update_user(
        user_id,
        name=request.name,
        real_name=request.real_name,
        bio=request.bio,
        image_mime_type=request.image_mime_type,
    )
    return {"user": user}


# =============================================================================
# Friends
# =============================================================================

@router.post("/{user_id}/friends")
async def add_friends(
    request: AddUsersRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
):
    """
    Befriend every listed user, creating email / phone users on first contact.

    Each input lands in successes or failures; the request itself succeeds.
    """
    result = await friendship_mediator.add_users_as_friends(user_id, request.users)
    return {
        "successes": [friend.to_json_dict() for friend in result.successes],
        "failures": [identifier.to_json_dict() for identifier in result.failures],
    }


@router.get("/{user_id}/friends")
async def get_friends(
    user_id: Annotated[str, Depends(get_path_user)],
    page: PageParams = Depends(),
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
):
    friends = await friendship_mediator.get_friends_by_user_id(
        user_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("friends", friends)


@router.delete("/{user_id}/friends/{friend_id}")
async def remove_friend(
    friend_id: str,
    user_id: Annotated[str, Depends(get_path_user)],
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
):
    await friendship_mediator.remove_friend(user_id, friend_id)
    return {"message": "Friend removed"}


# =============================================================================
# Friend messages
# =============================================================================

@router.post("/{user_id}/friends/{friend_id}/messages", status_code=status.HTTP_201_CREATED)
async def create_friend_message(
    friend_id: str,
    request: CreateMessageRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await _require_friend(friendship_mediator, user_id, friend_id)
    pending_message = await message_mediator.create_friend_message(
        user_id, friend_id, request.mime_type, reply_to=request.reply_to, title=request.title
    )
    return {"pendingMessage": pending_message}


@router.get("/{user_id}/friends/{friend_id}/messages")
async def get_friend_messages(
    friend_id: str,
    user_id: Annotated[str, Depends(get_path_user)],
    page: PageParams = Depends(),
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await _require_friend(friendship_mediator, user_id, friend_id)
    messages = await message_mediator.get_messages_by_user_and_friend_ids(
        user_id, friend_id, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("messages", messages)


@router.patch("/{user_id}/friends/{friend_id}/messages")
async def update_friend_messages(
    friend_id: str,
    request: UpdateMessagesRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    friendship_mediator: FriendshipMediator = Depends(get_friendship_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await _require_friend(friendship_mediator, user_id, friend_id)
    await message_mediator.update_friend_messages_by_user_id(user_id, friend_id, request.seen)
    return {"message": "Messages updated"}


# =============================================================================
# Groups and meetings created by / read as the user
# =============================================================================

@router.post("/{user_id}/groups", status_code=status.HTTP_201_CREATED)
async def create_group(
    request: CreateGroupRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    team_mediator: TeamMediator = Depends(get_team_mediator),
    group_mediator: GroupMediator = Depends(get_group_mediator),
):
    await _require_parents(organization_mediator, team_mediator, user_id, request.organization_id, request.team_id)
    group = await group_mediator.create_group(
        user_id,
        request.name,
        request.image_mime_type,
        organization_id=request.organization_id,
        team_id=request.team_id,
    )
    return {"group": group}


@router.patch("/{user_id}/groups/{group_id}/messages")
async def update_group_messages(
    group_id: str,
    request: UpdateMessagesRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, group_id, user_id)
    await message_mediator.update_conversation_messages_by_user_id(group_id, user_id, request.seen)
    return {"message": "Messages updated"}


@router.post("/{user_id}/meetings", status_code=status.HTTP_201_CREATED)
async def create_meeting(
    request: CreateMeetingRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    organization_mediator: OrganizationMediator = Depends(get_organization_mediator),
    team_mediator: TeamMediator = Depends(get_team_mediator),
    meeting_mediator: MeetingMediator = Depends(get_meeting_mediator),
):
    await _require_parents(organization_mediator, team_mediator, user_id, request.organization_id, request.team_id)
    meeting = await meeting_mediator.create_meeting(
        user_id,
        request.name,
        request.due_date_iso(),
        request.image_mime_type,
        organization_id=request.organization_id,
        team_id=request.team_id,
    )
    return {"meeting": meeting}


@router.patch("/{user_id}/meetings/{meeting_id}/messages")
async def update_meeting_messages(
    meeting_id: str,
    request: UpdateMessagesRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    await require_member(conversation_mediator, meeting_id, user_id)
    await message_mediator.update_conversation_messages_by_user_id(meeting_id, user_id, request.seen)
    return {"message": "Messages updated"}


# =============================================================================
# Messages
# =============================================================================

@router.get("/{user_id}/messages")
async def search_messages(
    user_id: Annotated[str, Depends(get_path_user)],
    search_term: str = Query(..., alias="searchTerm", min_length=1, max_length=100),
    page: PageParams = Depends(),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    """Search message transcripts and titles across the caller's conversations."""
    messages = await message_mediator.get_messages_by_user_id_and_search_term(
        user_id, search_term, limit=page.limit, exclusive_start_key=page.exclusive_start_key
    )
    return page_body("messages", messages)


@router.patch("/{user_id}/messages/{message_id}")
async def update_message(
    message_id: str,
    request: UpdateMessageRequest,
    user_id: Annotated[str, Depends(get_path_user)],
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
    message_mediator: MessageMediator = Depends(get_message_mediator),
):
    """Set the caller's seen flag and toggle reactions on one message."""
    current = await message_mediator.get_message(message_id)
    await require_member(conversation_mediator, current["conversationId"], user_id)

    message = await message_mediator.update_message_by_user_id(
        message_id,
        user_id,
        seen=request.seen,
        reactions=[change.to_change() for change in request.reactions],
    )
    return {"message": message}


# =============================================================================
# Conversations
# =============================================================================

@router.get("/{user_id}/conversations")
async def get_conversations(
    user_id: Annotated[str, Depends(get_path_user)],
    page: PageParams = Depends(),
    fetch_type: Optional[ConversationFetchType] = Query(None, alias="type"),
    unread: Optional[bool] = Query(None),
    search_term: Optional[str] = Query(None, alias="searchTerm", min_length=1, max_length=100),
    conversation_mediator: ConversationMediator = Depends(get_conversation_mediator),
):
    """
    The caller's conversations with unread counts and most recent message.

    type narrows to friend / group / meeting, or orders meetings by due
    date with "meeting_due_date".
    """
    conversations = await conversation_mediator.get_conversations_by_user_id(
        user_id,
        fetch_type=fetch_type,
        unread=unread,
        search_term=search_term,
        limit=page.limit,
        exclusive_start_key=page.exclusive_start_key,
    )
    return page_body("conversations", conversations)
