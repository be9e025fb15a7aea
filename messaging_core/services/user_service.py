# =============================================================================
# File: messaging_core/services/user_service.py
# Description: User domain service - creation with unique properties and
#              resolution by email / phone / username
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from messaging_core.conversation.enums import ImageMimeType, UniquePropertyKind
from messaging_core.conversation.exceptions import (
    UniquePropertyNotFoundError,
    UniquePropertyTakenError,
    UserNotFoundError,
)
from messaging_core.conversation.ids import new_user_id
from messaging_core.conversation.models import UniquePropertyEntry, User
from messaging_core.infra.persistence.dynamodb.unique_property_repo import UniquePropertyRepository
from messaging_core.infra.persistence.dynamodb.user_repo import UserRepository
from messaging_core.utils.datetime_utils import now_iso

log = logging.getLogger("messaging_core.services.user")

# Identifiers that can create a user on first contact
CREATABLE_IDENTIFIER_KINDS = (UniquePropertyKind.EMAIL, UniquePropertyKind.PHONE)


class UserService:

    def __init__(self, user_repo: UserRepository, unique_property_repo: UniquePropertyRepository):
        self.user_repo = user_repo
        self.unique_property_repo = unique_property_repo

    async def create_user(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        username: Optional[str] = None,
        name: Optional[str] = None,
        real_name: Optional[str] = None,
        bio: Optional[str] = None,
        image_mime_type: Optional[ImageMimeType] = None,
    ) -> User:
        """
        Create a user and claim its unique properties atomically.

        Raises:
            UniquePropertyTakenError: one of the properties belongs to
                another user; nothing is written
        """
        user = User(
            id=new_user_id(),
            created_at=now_iso(),
            email=email,
            phone=phone,
            username=username,
            name=name,
            real_name=real_name,
            bio=bio,
            image_mime_type=image_mime_type,
        )
        claims = {
            UniquePropertyKind.EMAIL: email,
            UniquePropertyKind.PHONE: phone,
            UniquePropertyKind.USERNAME: username,
        }
        entries = [
            UniquePropertyEntry(property=kind, value=value, user_id=user.id)
            for kind, value in claims.items() if value
        ]
        await self.user_repo.create_user(user, entries)
        log.info(f"User {user.id} created")
        return user

    async def get_user(self, user_id: str) -> User:
        return await self.user_repo.get_user(user_id)

    async def get_users(self, user_ids: Sequence[str]) -> List[User]:
        return await self.user_repo.get_users(user_ids)

    async def update_user(self, user_id: str, updates: Dict[str, Optional[str]]) -> User:
        return await self.user_repo.update_user(user_id, updates)

    async def get_user_by_unique_property(self, kind: UniquePropertyKind, value: str) -> User:
        try:
            entry = await self.unique_property_repo.get_unique_property(kind, value)
        except UniquePropertyNotFoundError as e:
            raise UserNotFoundError(value) from e
        return await self.user_repo.get_user(entry.user_id)

    async def get_or_create_user(self, kind: UniquePropertyKind, value: str) -> User:
        """
        Resolve an identifier, creating the user when an email or phone
        matches nobody. Unknown usernames raise UserNotFoundError.
        """
        try:
            return await self.get_user_by_unique_property(kind, value)
        except UserNotFoundError:
            if kind not in CREATABLE_IDENTIFIER_KINDS:
                raise
        log.info(f"Creating user for unmatched {kind.value}")
        try:
            return await self.create_user(**{kind.value: value})
        except UniquePropertyTakenError:
            # Claimed concurrently
            return await self.get_user_by_unique_property(kind, value)
