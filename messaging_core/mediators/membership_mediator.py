# =============================================================================
# File: messaging_core/mediators/membership_mediator.py
# Description: Membership operations shared by the mediators - best-effort
#              batch adds, removal, member listings and role checks for
#              conversations (groups, meetings) and for organizations / teams
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from messaging_core.common.exceptions.exceptions import NotFoundError
from messaging_core.conversation.enums import ConversationType, MembershipType, Role
from messaging_core.conversation.exceptions import MembershipNotFoundError
from messaging_core.conversation.models import User
from messaging_core.conversation.value_objects import BatchResult, UserIdentifier
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.views import user_view
from messaging_core.services.membership_service import MembershipService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.membership")


async def add_each(
    target_id: str,
    identifiers: Sequence[UserIdentifier],
    add_one: Callable[[UserIdentifier], Awaitable[User]],
) -> BatchResult[User]:
    """
    Resolve and add every identifier independently.

    Failures are collected, never raised: each input ends up in exactly
    one of successes or failures.
    """
    results = await asyncio.gather(
        *[add_one(identifier) for identifier in identifiers],
        return_exceptions=True,
    )

    batch: BatchResult[User] = BatchResult()
    for identifier, result in zip(identifiers, results):
        if isinstance(result, BaseException):
            log.warning(
                f"Failed to add {identifier.to_json_dict()} to {target_id}: {result}",
                exc_info=not isinstance(result, NotFoundError),
            )
            batch.failures.append(identifier)
        else:
            batch.successes.append(result)

    log.info(f"Added {len(batch.successes)} of {len(identifiers)} users to {target_id}")
    return batch


async def member_views(
    members: Sequence[Tuple[str, Role]],
    user_service: UserService,
    url_provider: S3UrlProvider,
) -> List[Dict[str, Any]]:
    """User views with the member's role, in member order; missing users are skipped."""
    users = await user_service.get_users([user_id for user_id, _ in members])
    by_id = {user.id: user for user in users}

    items: List[Dict[str, Any]] = []
    for user_id, role in members:
        user = by_id.get(user_id)
        if user is None:
            continue
        view = await user_view(user, url_provider)
        view["role"] = role.value
        items.append(view)
    return items


class BaseMembershipMediator:
    """
    Group and meeting membership.

    Subclasses set conversation_type and may supply extra relationship
    fields (a meeting's due date) through _relationship_due_date.
    """

    conversation_type: ConversationType

    def __init__(
        self,
        relationship_service: ConversationUserRelationshipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        self.relationship_service = relationship_service
        self.user_service = user_service
        self.url_provider = url_provider

    async def _relationship_due_date(self, conversation_id: str) -> Optional[str]:
        return None

    async def add_users(
        self,
        conversation_id: str,
        identifiers: Sequence[UserIdentifier],
    ) -> BatchResult[User]:
        due_date = await self._relationship_due_date(conversation_id)
        return await add_each(
            conversation_id,
            identifiers,
            lambda identifier: self._add_user(conversation_id, identifier, due_date),
        )

    async def _add_user(
        self,
        conversation_id: str,
        identifier: UserIdentifier,
        due_date: Optional[str],
    ) -> User:
        kind, value = identifier.kind_and_value()
        user = await self.user_service.get_or_create_user(kind, value)
        await self.relationship_service.create_conversation_user_relationship(
            conversation_id,
            user.id,
            self.conversation_type,
            identifier.role or Role.USER,
            due_date=due_date,
        )
        return user

    async def remove_user(self, conversation_id: str, user_id: str) -> None:
        try:
            await self.relationship_service.delete_conversation_user_relationship(conversation_id, user_id)
        except Exception as e:
            log.error(f"Error in remove_user: {e}", extra={"conversation_id": conversation_id, "user_id": user_id})
            raise

    async def get_users(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.relationship_service.get_conversation_user_relationships_by_conversation_id(
            conversation_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
        items = await member_views(
            [(relationship.user_id, relationship.role) for relationship in page.items],
            self.user_service,
            self.url_provider,
        )
        return Page(items=items, last_evaluated_key=page.last_evaluated_key)

    async def get_member_ids(self, conversation_id: str) -> List[str]:
        return await self.relationship_service.get_member_ids(conversation_id)


class BaseEntityMembershipMediator:
    """
    Organization and team membership. Subclasses set membership_type.

    Members join through the same best-effort batch as conversations;
    unknown emails and phones become new users.
    """

    membership_type: MembershipType

    def __init__(
        self,
        membership_service: MembershipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        self.membership_service = membership_service
        self.user_service = user_service
        self.url_provider = url_provider

    async def add_users(self, entity_id: str, identifiers: Sequence[UserIdentifier]) -> BatchResult[User]:
        return await add_each(entity_id, identifiers, lambda identifier: self._add_user(entity_id, identifier))

    async def _add_user(self, entity_id: str, identifier: UserIdentifier) -> User:
        kind, value = identifier.kind_and_value()
        user = await self.user_service.get_or_create_user(kind, value)
        await self.membership_service.create_membership(
            entity_id, user.id, self.membership_type, identifier.role or Role.USER
        )
        return user

    async def remove_user(self, entity_id: str, user_id: str) -> None:
        try:
            await self.membership_service.delete_membership(entity_id, user_id)
        except Exception as e:
            log.error(f"Error in remove_user: {e}", extra={"entity_id": entity_id, "user_id": user_id})
            raise

    async def get_users(
        self,
        entity_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.membership_service.get_memberships_by_entity_id(
            entity_id, limit=limit, exclusive_start_key=exclusive_start_key
        )
        items = await member_views(
            [(membership.user_id, membership.role) for membership in page.items],
            self.user_service,
            self.url_provider,
        )
        return Page(items=items, last_evaluated_key=page.last_evaluated_key)

    async def get_role(self, entity_id: str, user_id: str) -> Optional[Role]:
        """The user's role, or None when they are not a member."""
        try:
            membership = await self.membership_service.get_membership(entity_id, user_id)
        except MembershipNotFoundError:
            return None
        return membership.role

    async def is_member(self, entity_id: str, user_id: str) -> bool:
        return await self.get_role(entity_id, user_id) is not None

    async def is_admin(self, entity_id: str, user_id: str) -> bool:
        return await self.get_role(entity_id, user_id) == Role.ADMIN
