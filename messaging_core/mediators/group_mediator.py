# =============================================================================
# File: messaging_core/mediators/group_mediator.py
# Description: Group conversations - creation, lookup and membership
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from messaging_core.conversation.enums import ConversationType, EntityType, ImageMimeType
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import Page
from messaging_core.infra.storage.s3_url_provider import S3UrlProvider
from messaging_core.mediators.membership_mediator import BaseMembershipMediator
from messaging_core.services.conversation_service import ConversationService
from messaging_core.services.relationship_service import ConversationUserRelationshipService
from messaging_core.services.user_service import UserService

log = logging.getLogger("messaging_core.mediators.group")


class GroupMediator(BaseMembershipMediator):
    conversation_type = ConversationType.GROUP

    def __init__(
        self,
        conversation_service: ConversationService,
        relationship_service: ConversationUserRelationshipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        super().__init__(relationship_service, user_service, url_provider)
        self.conversation_service = conversation_service

    async def create_group(
        self,
        created_by: str,
        name: str,
        image_mime_type: ImageMimeType = ImageMimeType.PNG,
        organization_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create the group with its creator as admin; returns an image upload URL."""
        try:
            group = await self.conversation_service.create_group(
                created_by, name, image_mime_type, organization_id=organization_id, team_id=team_id
            )
            data = group.to_json_dict()
            data["imageUploadUrl"] = await self.url_provider.get_image_signed_url(
                EntityType.GROUP_CONVERSATION, group.id, group.image_mime_type, "upload"
            )
            return data
        except Exception as e:
            log.error(f"Error in create_group: {e}", extra={"created_by": created_by}, exc_info=True)
            raise

    async def get_group(self, group_id: str) -> Dict[str, Any]:
        group = await self.conversation_service.get_group(group_id)
        data = group.to_json_dict()
        data["image"] = await self.url_provider.get_image_signed_url(
            EntityType.GROUP_CONVERSATION, group.id, group.image_mime_type, "get"
        )
        return data

    async def get_groups_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.conversation_service.get_conversations_by_organization_id(
            organization_id, ConversationType.GROUP, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return Page(items=[group.to_json_dict() for group in page.items], last_evaluated_key=page.last_evaluated_key)

    async def get_groups_by_team_id(
        self,
        team_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.conversation_service.get_conversations_by_team_id(
            team_id, ConversationType.GROUP, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return Page(items=[group.to_json_dict() for group in page.items], last_evaluated_key=page.last_evaluated_key)
