# =============================================================================
# File: messaging_core/services/membership_service.py
# Description: Organization and team membership domain service
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import MembershipType, Role
from messaging_core.conversation.models import Membership
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page, is_conditional_failure
from messaging_core.infra.persistence.dynamodb.membership_repo import MembershipRepository
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.membership")


class MembershipService:

    def __init__(self, membership_repo: MembershipRepository):
        self.membership_repo = membership_repo

    async def create_membership(
        self,
        entity_id: str,
        user_id: str,
        membership_type: MembershipType,
        role: Role,
    ) -> Membership:
        """Create the membership. An existing one is returned unchanged."""
        membership = Membership(
            entity_id=entity_id,
            user_id=user_id,
            type=membership_type,
            role=role,
            created_at=now_iso(),
        )
        try:
            return await self.membership_repo.create_membership(membership)
        except ClientError as e:
            if is_conditional_failure(e):
                log.info(f"{user_id} is already a member of {entity_id}")
                return await self.membership_repo.get_membership(entity_id, user_id)
            log.error(f"Error in create_membership: {e}", exc_info=True)
            raise

    async def get_membership(self, entity_id: str, user_id: str) -> Membership:
        return await self.membership_repo.get_membership(entity_id, user_id)

    async def delete_membership(self, entity_id: str, user_id: str) -> None:
        await self.membership_repo.delete_membership(entity_id, user_id)
        log.info(f"{user_id} removed from {entity_id}")

    async def get_memberships_by_entity_id(
        self,
        entity_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        return await self.membership_repo.get_memberships_by_entity_id(
            entity_id, limit=limit, exclusive_start_key=exclusive_start_key
        )

    async def get_memberships_by_user_id(
        self,
        user_id: str,
        membership_type: MembershipType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        return await self.membership_repo.get_memberships_by_user_id(
            user_id, membership_type, limit=limit, exclusive_start_key=exclusive_start_key
        )
