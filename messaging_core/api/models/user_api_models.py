# =============================================================================
#  File: messaging_core/api/models/user_api_models.py
#  messaging-core API Models - Users, Friends and Organizations
# =============================================================================

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from messaging_core.conversation.enums import ImageMimeType
from messaging_core.conversation.value_objects import UserIdentifier


class ApiModel(BaseModel):
    """camelCase on the wire, unknown fields rejected"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# =============================================================================
#  USERS
# =============================================================================

class CreateUserRequest(ApiModel):
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(None, pattern=r"^\+?[0-9]{7,15}$")
    username: Optional[str] = Field(None, min_length=1, max_length=64)
    name: Optional[str] = Field(None, max_length=255)
    real_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _has_identifier(self) -> "CreateUserRequest":
        if not (self.email or self.phone or self.username):
            raise ValueError("One of email, phone or username is required")
        return self


class UpdateUserRequest(ApiModel):
    name: Optional[str] = Field(None, max_length=255)
    real_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=1000)
    image_mime_type: Optional[ImageMimeType] = None


class AddUsersRequest(ApiModel):
    """Body of the add-friends and add-members endpoints"""
    users: List[UserIdentifier] = Field(..., min_length=1, max_length=100)


# =============================================================================
#  ORGANIZATIONS
# =============================================================================

class CreateOrganizationRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)


# =============================================================================
#  TEAMS
# =============================================================================

class CreateTeamRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    organization_id: Optional[str] = None
