# =============================================================================
# File: messaging_core/mediators/user_mediator.py
# Description: User creation and profile reads with image URLs
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from messaging_core.conversation.enums import EntityType, ImageMimeType
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.views import user_view
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.user")


class UserMediator:

    def __init__(self, user_service: UserService, url_provider: S3UrlProvider):
        self.user_service = user_service
        self.url_provider = url_provider

    async def create_user(
        self,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        username: Optional[str] = None,
        name: Optional[str] = None,
        real_name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Dict[str, Any]:
        user = await self.user_service.create_user(
            email=email, phone=phone, username=username, name=name, real_name=real_name, bio=bio
        )
        return await user_view(user, self.url_provider)

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.user_service.get_user(user_id)
        return await user_view(user, self.url_provider)

    async def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        real_name: Optional[str] = None,
        bio: Optional[str] = None,
        image_mime_type: Optional[ImageMimeType] = None,
    ) -> Dict[str, Any]:
        """Profile update; a new image type also returns an upload URL."""
        user = await self.user_service.update_user(user_id, {
            "name": name,
            "realName": real_name,
            "bio": bio,
            "imageMimeType": image_mime_type.value if image_mime_type else None,
        })
        data = await user_view(user, self.url_provider)
        if image_mime_type is not None:
            data["imageUploadUrl"] = await self.url_provider.get_image_signed_url(
                EntityType.USER, user.id, image_mime_type, "upload"
            )
        return data
