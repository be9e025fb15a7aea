# =============================================================================
# File: messaging_core/api/dependencies.py
# Description: FastAPI dependencies - mediators from the application
#              container and membership / admin guards
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, Query, Request

from messaging_core.conversation.exceptions import (
    NotAdminError,
    NotConversationAdminError,
    NotConversationMemberError,
    NotMemberError,
)
from messaging_core.core.container import Container
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.mediators.conversation_mediator import ConversationMediator
from messaging_core.mediators.friendship_mediator import FriendshipMediator
from messaging_core.mediators.group_mediator import GroupMediator
from messaging_core.mediators.meeting_mediator import MeetingMediator
from messaging_core.mediators.membership_mediator import BaseEntityMembershipMediator
from messaging_core.mediators.message_mediator import MessageMediator
from messaging_core.mediators.organization_mediator import OrganizationMediator
from messaging_core.mediators.team_mediator import TeamMediator
from messaging_core.mediators.user_mediator import UserMediator


def get_container(request: Request) -> Container:
    """Get the object graph from application state"""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Container not configured")
    return container


def get_user_mediator(container: Container = Depends(get_container)) -> UserMediator:
    return container.user_mediator


def get_friendship_mediator(container: Container = Depends(get_container)) -> FriendshipMediator:
    return container.friendship_mediator


def get_group_mediator(container: Container = Depends(get_container)) -> GroupMediator:
    return container.group_mediator


def get_meeting_mediator(container: Container = Depends(get_container)) -> MeetingMediator:
    return container.meeting_mediator


def get_message_mediator(container: Container = Depends(get_container)) -> MessageMediator:
    return container.message_mediator


def get_conversation_mediator(container: Container = Depends(get_container)) -> ConversationMediator:
    return container.conversation_mediator


def get_organization_mediator(container: Container = Depends(get_container)) -> OrganizationMediator:
    return container.organization_mediator


def get_team_mediator(container: Container = Depends(get_container)) -> TeamMediator:
    return container.team_mediator


# =============================================================================
# Pagination
# =============================================================================

class PageParams:
    """limit / exclusiveStartKey query parameters shared by listings"""

    def __init__(
        self,
        limit: Optional[int] = Query(None, ge=1, le=100),
        exclusive_start_key: Optional[str] = Query(None, alias="exclusiveStartKey"),
    ):
        self.limit = limit
        self.exclusive_start_key = exclusive_start_key


# =============================================================================
# Guards
# =============================================================================

async def require_member(
    conversation_mediator: ConversationMediator,
    conversation_id: str,
    user_id: str,
) -> None:
    if not await conversation_mediator.is_conversation_member(conversation_id, user_id):
        raise NotConversationMemberError(conversation_id, user_id)


async def require_admin(
    conversation_mediator: ConversationMediator,
    conversation_id: str,
    user_id: str,
) -> None:
    if not await conversation_mediator.is_conversation_admin(conversation_id, user_id):
        raise NotConversationAdminError(conversation_id, user_id)


async def require_entity_member(
    membership_mediator: BaseEntityMembershipMediator,
    entity_id: str,
    user_id: str,
) -> None:
    """Organization or team membership"""
    if not await membership_mediator.is_member(entity_id, user_id):
        raise NotMemberError(entity_id, user_id)


async def require_entity_admin(
    membership_mediator: BaseEntityMembershipMediator,
    entity_id: str,
    user_id: str,
) -> None:
    if not await membership_mediator.is_admin(entity_id, user_id):
        raise NotAdminError(entity_id, user_id)


def page_body(name: str, page: Page[Any]) -> Dict[str, Any]:
    """Listing response: the items under `name`, plus the next-page key when there is one"""
    body: Dict[str, Any] = {name: page.items}
    if page.last_evaluated_key:
        body["lastEvaluatedKey"] = page.last_evaluated_key
    return body
