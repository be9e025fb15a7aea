# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/unique_property_repo.py
# Description: Global uniqueness registry for email / username / phone
# =============================================================================

from __future__ import annotations

from typing import Any, Dict

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import EntityType, UniquePropertyKind
from messaging_core.conversation.exceptions import (
    UniquePropertyNotFoundError,
    UniquePropertyTakenError,
)
from messaging_core.conversation.models import UniquePropertyEntry
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    cleanse,
    is_conditional_failure,
)


def normalize_property_value(kind: UniquePropertyKind, value: str) -> str:
    """Emails and usernames compare case-insensitively; phones verbatim."""
    value = value.strip()
    return value if kind == UniquePropertyKind.PHONE else value.lower()


def unique_property_item(entry: UniquePropertyEntry) -> Dict[str, Any]:
    return {
        "pk": entry.property.value,
        "sk": normalize_property_value(entry.property, entry.value),
        "entityType": EntityType.UNIQUE_PROPERTY.value,
        **entry.to_item(),
    }


class UniquePropertyRepository(BaseDynamoRepository):
    """pk = property kind, sk = normalized value; holds the owning userId."""

    async def create_unique_property(self, entry: UniquePropertyEntry) -> UniquePropertyEntry:
        try:
            await self._put(unique_property_item(entry), condition_expression="attribute_not_exists(pk)")
        except ClientError as e:
            if is_conditional_failure(e):
                raise UniquePropertyTakenError(entry.property.value, entry.value) from e
            raise
        return entry

    async def get_unique_property(self, kind: UniquePropertyKind, value: str) -> UniquePropertyEntry:
        item = await self._get(kind.value, normalize_property_value(kind, value))
        if item is None:
            raise UniquePropertyNotFoundError(kind.value, value)
        return UniquePropertyEntry.model_validate(cleanse(item))

    async def delete_unique_property(self, kind: UniquePropertyKind, value: str) -> None:
        await self._delete({"pk": kind.value, "sk": normalize_property_value(kind, value)})
