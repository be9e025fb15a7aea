# =============================================================================
# File: messaging_core/mediators/meeting_mediator.py
# Description: Meeting conversations - creation, updates and membership.
#              Members carry the meeting's due date on their relationship row.
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
from messaging_core.utils.async_utils import gather_settled

log = logging.getLogger("messaging_core.mediators.meeting")


class MeetingMediator(BaseMembershipMediator):
    conversation_type = ConversationType.MEETING

    def __init__(
        self,
        conversation_service: ConversationService,
        relationship_service: ConversationUserRelationshipService,
        user_service: UserService,
        url_provider: S3UrlProvider,
    ):
        super().__init__(relationship_service, user_service, url_provider)
        self.conversation_service = conversation_service

    async def _relationship_due_date(self, conversation_id: str) -> Optional[str]:
        meeting = await self.conversation_service.get_meeting(conversation_id)
        return meeting.due_date

    async def create_meeting(
        self,
        created_by: str,
        name: str,
        due_date: str,
        image_mime_type: ImageMimeType = ImageMimeType.PNG,
        organization_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            meeting = await self.conversation_service.create_meeting(
                created_by,
                name,
                due_date,
                image_mime_type,
                organization_id=organization_id,
                team_id=team_id,
            )
            data = meeting.to_json_dict()
            data["imageUploadUrl"] = await self.url_provider.get_image_signed_url(
                EntityType.MEETING_CONVERSATION, meeting.id, meeting.image_mime_type, "upload"
            )
            return data
        except Exception as e:
            log.error(f"Error in create_meeting: {e}", extra={"created_by": created_by}, exc_info=True)
            raise

    async def get_meeting(self, meeting_id: str) -> Dict[str, Any]:
        meeting = await self.conversation_service.get_meeting(meeting_id)
        data = meeting.to_json_dict()
        data["image"] = await self.url_provider.get_image_signed_url(
            EntityType.MEETING_CONVERSATION, meeting.id, meeting.image_mime_type, "get"
        )
        return data

    async def update_meeting(
        self,
        meeting_id: str,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        outcomes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Update the meeting row. A new due date is copied onto every member's
        relationship so the due-date listing stays ordered.
        """
        try:
            meeting = await self.conversation_service.update_meeting(
                meeting_id, name=name, due_date=due_date, outcomes=outcomes
            )
            if due_date is not None:
                member_ids = await self.relationship_service.get_member_ids(meeting_id)
                await gather_settled(*[
                    self.relationship_service.update_meeting_due_date(meeting_id, member_id, due_date)
                    for member_id in member_ids
                ])
            return meeting.to_json_dict()
        except Exception as e:
            log.error(f"Error in update_meeting: {e}", extra={"meeting_id": meeting_id}, exc_info=True)
            raise

    async def get_meetings_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.conversation_service.get_conversations_by_organization_id(
            organization_id, ConversationType.MEETING, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return Page(items=[meeting.to_json_dict() for meeting in page.items], last_evaluated_key=page.last_evaluated_key)

    async def get_meetings_by_team_id(
        self,
        team_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Dict[str, Any]]:
        page = await self.conversation_service.get_conversations_by_team_id(
            team_id, ConversationType.MEETING, limit=limit, exclusive_start_key=exclusive_start_key
        )
        return Page(items=[meeting.to_json_dict() for meeting in page.items], last_evaluated_key=page.last_evaluated_key)
