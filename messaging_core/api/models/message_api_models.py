# =============================================================================
#  File: messaging_core/api/models/message_api_models.py
#  messaging-core API Models - Messages
# =============================================================================

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, model_validator

from messaging_core.api.models.user_api_models import ApiModel
from messaging_core.conversation.enums import MessageMimeType, ReactionAction
from messaging_core.services.message_service import ReactionChange


class CreateMessageRequest(ApiModel):
    mime_type: MessageMimeType
    reply_to: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)


class ReactionChangeRequest(ApiModel):
    reaction: str = Field(..., min_length=1, max_length=64)
    action: ReactionAction

    def to_change(self) -> ReactionChange:
        return ReactionChange(reaction=self.reaction, action=self.action)


class UpdateMessageRequest(ApiModel):
    seen: Optional[bool] = None
    reactions: List[ReactionChangeRequest] = Field(default_factory=list, max_length=50)

    @model_validator(mode="after")
    def _has_update(self) -> "UpdateMessageRequest":
        if self.seen is None and not self.reactions:
            raise ValueError("One of seen or reactions is required")
        return self


class UpdateMessagesRequest(ApiModel):
    """Bulk seen-state change for every unread message in a conversation"""
    seen: bool
