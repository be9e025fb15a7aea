# =============================================================================
# File: messaging_core/mediators/organization_mediator.py
# Description: Organizations - creation with an admin membership, lookup,
#              members and a user's organizations
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from messaging_core.conversation.enums import MembershipType, Role
from messaging_core.conversation.models import Membership, Organization
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.membership_mediator import BaseEntityMembershipMediator
from messaging_core.services.membership_service import MembershipService
from messaging_core.services.organization_service import OrganizationService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.organization")


def with_role(organization: Organization, membership: Membership) -> Dict[str, Any]:
    data = organization.to_json_dict()
    data["role"] = membership.role.value
    return data


class OrganizationMediator(BaseEntityMembershipMediator):
    membership_type = MembershipType.ORGANIZATION

    def __init__(
        self,
        organization_service: OrganizationService,
        membership_service: MembershipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        super().__init__(membership_service, user_service, url_provider)
        self.organization_service = organization_service

    async def create_organization(self, name: str, created_by: str) -> Dict[str, Any]:
        """Create the organization with its creator as admin."""
        try:
            organization = await self.organization_service.create_organization(name, created_by)
            membership = await self.membership_service.create_membership(
                organization.id, created_by, MembershipType.ORGANIZATION, Role.ADMIN
            )
            return with_role(organization, membership)
        except Exception as e:
            log.error(f"Error in create_organization: {e}", extra={"created_by": created_by}, exc_info=True)
            raise

    async def get_organization(self, organization_id: str) -> Dict[str, Any]:
        organization = await self.organization_service.get_organization(organization_id)
        return organization.to_json_dict()

    async def get_organizations_by_user_id(
        self,
        user_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        """The user's organizations, each with the user's role in it."""
        page = await self.membership_service.get_memberships_by_user_id(
            user_id, MembershipType.ORGANIZATION, limit=limit, exclusive_start_key=exclusive_start_key
        )
        organizations = await self.organization_service.get_organizations(
            [membership.entity_id for membership in page.items]
        )
        by_id = {organization.id: organization for organization in organizations}

        items: List[Dict[str, Any]] = [
            with_role(by_id[membership.entity_id], membership)
            for membership in page.items
            if membership.entity_id in by_id
        ]
        return Page(items=items, last_evaluated_key=page.last_evaluated_key)
