# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/membership_repo.py
# Description: Organization and team membership rows
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional

from messaging_core.conversation.enums import MEMBERSHIP_KEY_PREFIXES, EntityType, KeyPrefix, MembershipType
from messaging_core.conversation.exceptions import MembershipNotFoundError
from messaging_core.conversation.models import Membership
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    Page,
    cleanse,
)


def membership_item(membership: Membership) -> Dict[str, Any]:
    return {
        "pk": membership.user_id,
        "sk": membership.entity_id,
        "entityType": EntityType.MEMBERSHIP.value,
        "gsi1pk": membership.entity_id,
        "gsi1sk": membership.user_id,
        **membership.to_item(),
    }


class MembershipRepository(BaseDynamoRepository):
    """
    pk = user id, sk = organization or team id.

    The base table lists a user's memberships of one type by sk prefix;
    gsi1 flips the key to list an organization's or team's members.
    """

    async def create_membership(self, membership: Membership) -> Membership:
        await self._put(membership_item(membership), condition_expression="attribute_not_exists(pk)")
        return membership

    async def get_membership(self, entity_id: str, user_id: str) -> Membership:
        item = await self._get(user_id, entity_id)
        if item is None:
            raise MembershipNotFoundError(entity_id, user_id)
        return Membership.model_validate(cleanse(item))

    async def delete_membership(self, entity_id: str, user_id: str) -> None:
        await self._delete({"pk": user_id, "sk": entity_id})

    async def get_memberships_by_entity_id(
        self,
        entity_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        page = await self._query(
            index_name=self.config.gsi_one_name,
            key_condition_expression="#gsi1pk = :gsi1pk AND begins_with(#gsi1sk, :userPrefix)",
            names={"#gsi1pk": "gsi1pk", "#gsi1sk": "gsi1sk"},
            values={":gsi1pk": entity_id, ":userPrefix": KeyPrefix.USER.value},
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[Membership.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )

    async def get_memberships_by_user_id(
        self,
        user_id: str,
        membership_type: MembershipType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        page = await self._query(
            key_condition_expression="#pk = :pk AND begins_with(#sk, :prefix)",
            names={"#pk": "pk", "#sk": "sk"},
            values={":pk": user_id, ":prefix": MEMBERSHIP_KEY_PREFIXES[membership_type].value},
            limit=limit or self.config.default_page_size,
            exclusive_start_key=exclusive_start_key,
        )
        return Page(
            items=[Membership.model_validate(cleanse(item)) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )
