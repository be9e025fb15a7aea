# =============================================================================
# File: messaging_core/conversation/models.py
# Description: Entity models stored in the core table. Field names are
#              snake_case in Python and camelCase on the wire and in DynamoDB.
# =============================================================================

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from messaging_core.conversation.enums import (
    BillingPlan,
    ConversationType,
    ImageMimeType,
    MembershipType,
    MessageMimeType,
    Role,
    UniquePropertyKind,
)


class CoreEntity(BaseModel):
    """Base for all core table entities"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    def to_item(self) -> Dict[str, Any]:
        """
        Attribute map for persistence.

        Top-level None values and empty sets are dropped because DynamoDB
        represents them by absence.
        """
        data = self.model_dump(by_alias=True)
        return {
            key: value for key, value in data.items()
            if value is not None and not (isinstance(value, (set, frozenset)) and not value)
        }

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-safe camelCase dict for API responses and notifications."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Users, organizations and teams
# =============================================================================

class User(CoreEntity):
    id: str
    created_at: str
    email: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    real_name: Optional[str] = None
    bio: Optional[str] = None
    image_mime_type: Optional[ImageMimeType] = None


class Organization(CoreEntity):
    id: str
    name: str
    created_by: str
    created_at: str
    billing_plan: BillingPlan = BillingPlan.FREE
    image_mime_type: Optional[ImageMimeType] = None


class Team(CoreEntity):
    id: str
    name: str
    created_by: str
    created_at: str
    organization_id: Optional[str] = None


class Membership(CoreEntity):
    """A user's role in an organization or a team"""
    entity_id: str
    user_id: str
    type: MembershipType
    role: Role
    created_at: str


class UniquePropertyEntry(CoreEntity):
    property: UniquePropertyKind
    value: str
    user_id: str


# =============================================================================
# Conversations
# =============================================================================

class BaseConversation(CoreEntity):
    id: str
    created_by: str
    created_at: str
    team_id: Optional[str] = None
    organization_id: Optional[str] = None


class FriendConversation(BaseConversation):
    type: Literal[ConversationType.FRIEND] = ConversationType.FRIEND
    member_ids: List[str]


class GroupConversation(BaseConversation):
    type: Literal[ConversationType.GROUP] = ConversationType.GROUP
    name: str
    image_mime_type: ImageMimeType = ImageMimeType.PNG


class MeetingConversation(BaseConversation):
    type: Literal[ConversationType.MEETING] = ConversationType.MEETING
    name: str
    image_mime_type: ImageMimeType = ImageMimeType.PNG
    due_date: str
    outcomes: Optional[str] = None


Conversation = Annotated[
    Union[FriendConversation, GroupConversation, MeetingConversation],
    Field(discriminator="type"),
]

_conversation_adapter: TypeAdapter[Conversation] = TypeAdapter(Conversation)


def parse_conversation(data: Dict[str, Any]) -> Union[FriendConversation, GroupConversation, MeetingConversation]:
    """Build the conversation variant selected by its type discriminant."""
    return _conversation_adapter.validate_python(data)


class ConversationUserRelationship(CoreEntity):
    conversation_id: str
    user_id: str
    type: ConversationType
    role: Role
    updated_at: str
    muted: bool = False
    recent_message_id: Optional[str] = None
    due_date: Optional[str] = None
    unread_messages: Set[str] = Field(default_factory=set)


# =============================================================================
# Messages
# =============================================================================

class Message(CoreEntity):
    id: str
    conversation_id: str
    conversation_type: ConversationType
    from_: str = Field(alias="from")
    created_at: str
    mime_type: MessageMimeType
    seen_at: Dict[str, Optional[str]]
    reactions: Dict[str, Set[str]] = Field(default_factory=dict)
    reply_count: int = 0
    transcript: Optional[str] = None
    title: Optional[str] = None
    reply_to: Optional[str] = None


class PendingMessage(CoreEntity):
    id: str
    conversation_id: str
    conversation_type: ConversationType
    from_: str = Field(alias="from")
    created_at: str
    mime_type: MessageMimeType
    reply_to: Optional[str] = None
    title: Optional[str] = None
