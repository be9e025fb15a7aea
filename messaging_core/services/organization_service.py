# =============================================================================
# File: messaging_core/services/organization_service.py
# Description: Organization domain service
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Sequence

from messaging_core.conversation.enums import BillingPlan
from messaging_core.conversation.ids import new_organization_id
from messaging_core.conversation.models import Organization
from messaging_core.infra.persistence.dynamodb.organization_repo import OrganizationRepository
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.organization")


class OrganizationService:

    def __init__(self, organization_repo: OrganizationRepository):
        self.organization_repo = organization_repo

    async def create_organization(self, name: str, created_by: str) -> Organization:
        organization = Organization(
            id=new_organization_id(),
            name=name,
            created_by=created_by,
            created_at=now_iso(),
        )
        await self.organization_repo.create_organization(organization)
        log.info(f"Organization {organization.id} created by {created_by}")
        return organization

    async def get_organization(self, organization_id: str) -> Organization:
        return await self.organization_repo.get_organization(organization_id)

    async def get_organizations(self, organization_ids: Sequence[str]) -> List[Organization]:
        return await self.organization_repo.get_organizations(organization_ids)

    async def update_billing_plan(self, organization_id: str, billing_plan: BillingPlan) -> Organization:
        organization = await self.organization_repo.update_billing_plan(organization_id, billing_plan)
        log.info(f"Organization {organization_id} billing plan set to {billing_plan.value}")
        return organization
