# =============================================================================
#  File: messaging_core/api/models/conversation_api_models.py
#  messaging-core API Models - Groups and Meetings
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from messaging_core.api.models.user_api_models import ApiModel
from messaging_core.conversation.enums import ImageMimeType
from messaging_core.utils.datetime_utils import to_iso


def _normalize_due_date(value: Optional[datetime]) -> Optional[str]:
    return to_iso(value) if value is not None else None


class CreateGroupRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    image_mime_type: ImageMimeType = ImageMimeType.PNG
    organization_id: Optional[str] = None
    team_id: Optional[str] = None


class CreateMeetingRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    due_date: datetime
    image_mime_type: ImageMimeType = ImageMimeType.PNG
    organization_id: Optional[str] = None
    team_id: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("dueDate must include a timezone")
        return value

    def due_date_iso(self) -> str:
        return to_iso(self.due_date)


class UpdateMeetingRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    due_date: Optional[datetime] = None
    outcomes: Optional[str] = Field(None, max_length=10000)

    @field_validator("due_date")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            raise ValueError("dueDate must include a timezone")
        return value

    def due_date_iso(self) -> Optional[str]:
        return _normalize_due_date(self.due_date)
