# =============================================================================
# File: messaging_core/infra/persistence/dynamodb/user_repo.py
# Description: User rows, created together with their unique properties
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import ClientError

from messaging_core.config.logging_config import get_logger
from messaging_core.conversation.enums import EntityType
from messaging_core.conversation.exceptions import (
    UniquePropertyTakenError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from messaging_core.conversation.models import UniquePropertyEntry, User
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    BaseDynamoRepository,
    CONDITION_REASON,
    cancellation_codes,
    cleanse,
    is_conditional_failure,
)
from messaging_core.infra.persistence.dynamodb.unique_property_repo import unique_property_item

log = get_logger("messaging_core.infra.dynamodb.user")

UPDATABLE_USER_FIELDS = ("name", "realName", "bio", "imageMimeType")


def user_item(user: User) -> Dict[str, Any]:
    return {
        "pk": user.id,
        "sk": user.id,
        "entityType": EntityType.USER.value,
        **user.to_item(),
    }


class UserRepository(BaseDynamoRepository):
    """pk = sk = user id."""

    async def create_user(self, user: User, unique_properties: Sequence[UniquePropertyEntry]) -> User:
        """
        Write the user and every unique property in one transaction so a taken
        property leaves nothing behind.
        """
        items: List[Dict[str, Any]] = [
            {"Put": {"Item": user_item(user), "ConditionExpression": "attribute_not_exists(pk)"}},
        ]
        for entry in unique_properties:
            items.append({
                "Put": {"Item": unique_property_item(entry), "ConditionExpression": "attribute_not_exists(pk)"},
            })

        try:
            await self._transact_write(items)
        except ClientError as e:
            if not is_conditional_failure(e):
                raise
            codes = cancellation_codes(e)
            for index, code in enumerate(codes[1:]):
                if code == CONDITION_REASON:
                    entry = unique_properties[index]
                    raise UniquePropertyTakenError(entry.property.value, entry.value) from e
            raise UserAlreadyExistsError(user.id) from e

        return user

    async def get_user(self, user_id: str) -> User:
        item = await self._get(user_id, user_id)
        if item is None:
            raise UserNotFoundError(user_id)
        return User.model_validate(cleanse(item))

    async def get_users(self, user_ids: Sequence[str]) -> List[User]:
        unique_ids = list(dict.fromkeys(user_ids))
        items = await self._batch_get([{"pk": uid, "sk": uid} for uid in unique_ids])
        by_id = {item["pk"]: User.model_validate(cleanse(item)) for item in items}
        return [by_id[uid] for uid in unique_ids if uid in by_id]

    async def update_user(self, user_id: str, updates: Dict[str, Optional[str]]) -> User:
        updates = {key: value for key, value in updates.items() if key in UPDATABLE_USER_FIELDS and value is not None}
        if not updates:
            return await self.get_user(user_id)

        try:
            attributes = await self._update(
                key={"pk": user_id, "sk": user_id},
                update_expression="SET " + ", ".join(f"#{key} = :{key}" for key in updates),
                names={f"#{key}": key for key in updates},
                values={f":{key}": value for key, value in updates.items()},
                condition_expression="attribute_exists(pk)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise UserNotFoundError(user_id) from e
            raise
        return User.model_validate(cleanse(attributes))
