# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/organization_repo.py
# Description: Organization rows
# =============================================================================

from __future__ import annotations

from typing import List, Sequence

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import BillingPlan, EntityType
from messaging_core.conversation.exceptions import OrganizationNotFoundError
from messaging_core.conversation.models import Organization
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    cleanse,
    is_conditional_failure,
)


class OrganizationRepository(BaseDynamoRepository):
    """pk = sk = organization id."""

    async def create_organization(self, organization: Organization) -> Organization:
        item = {
            "pk": organization.id,
            "sk": organization.id,
            "entityType": EntityType.ORGANIZATION.value,
            **organization.to_item(),
        }
        await self._put(item, condition_expression="attribute_not_exists(pk)")
        return organization

    async def get_organization(self, organization_id: str) -> Organization:
        item = await self._get(organization_id, organization_id)
        if item is None:
            raise OrganizationNotFoundError(organization_id)
        return Organization.model_validate(cleanse(item))

    async def get_organizations(self, organization_ids: Sequence[str]) -> List[Organization]:
        unique_ids = list(dict.fromkeys(organization_ids))
        items = await self._batch_get([{"pk": oid, "sk": oid} for oid in unique_ids])
        by_id = {item["pk"]: Organization.model_validate(cleanse(item)) for item in items}
        return [by_id[oid] for oid in unique_ids if oid in by_id]

    async def update_billing_plan(self, organization_id: str, billing_plan: BillingPlan) -> Organization:
        try:
            attributes = await self._update(
                key={"pk": organization_id, "sk": organization_id},
                update_expression="SET #billingPlan = :billingPlan",
                names={"#billingPlan": "billingPlan"},
                values={":billingPlan": billing_plan.value},
                condition_expression="attribute_exists(pk)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise OrganizationNotFoundError(organization_id) from e
            raise
        return Organization.model_validate(cleanse(attributes))
