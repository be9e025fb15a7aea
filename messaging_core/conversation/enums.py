# =============================================================================
# File: messaging_core/conversation/enums.py
# Description: Conversation domain enumerations
# =============================================================================

from enum import Enum


class ConversationType(str, Enum):
    """Conversation variants sharing the core table"""
    FRIEND = "friend"
    GROUP = "group"
    MEETING = "meeting"


class Role(str, Enum):
    """Member roles in a conversation"""
    ADMIN = "admin"
    USER = "user"


class ConversationFetchType(str, Enum):
    """Filters accepted by the conversations-by-user listing"""
    FRIEND = "friend"
    GROUP = "group"
    MEETING = "meeting"
    MEETING_DUE_DATE = "meeting_due_date"


class MessageMimeType(str, Enum):
    """Media types a message upload may carry"""
    AUDIO_MP3 = "audio/mpeg"
    AUDIO_MP4 = "audio/mp4"
    VIDEO_MP4 = "video/mp4"
    VIDEO_WEBM = "video/webm"


class ImageMimeType(str, Enum):
    """Media types for user, group and meeting images"""
    PNG = "image/png"
    JPEG = "image/jpeg"


class ReactionAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class EntityType(str, Enum):
    """Discriminant stored on every row of the core table"""
    USER = "User"
    ORGANIZATION = "Organization"
    TEAM = "Team"
    MEMBERSHIP = "Membership"
    FRIEND_CONVERSATION = "FriendConversation"
    GROUP_CONVERSATION = "GroupConversation"
    MEETING_CONVERSATION = "MeetingConversation"
    CONVERSATION_USER_RELATIONSHIP = "ConversationUserRelationship"
    MESSAGE = "Message"
    PENDING_MESSAGE = "PendingMessage"
    UNIQUE_PROPERTY = "UniqueProperty"


class KeyPrefix(str, Enum):
    """Prefixes used in ids and index sort keys"""
    USER = "user-"
    ORGANIZATION = "organization-"
    TEAM = "team-"
    FRIEND_CONVERSATION = "convo-friend-"
    GROUP_CONVERSATION = "convo-group-"
    MEETING_CONVERSATION = "convo-meeting-"
    MESSAGE = "message-"
    REPLY = "reply-"
    PENDING = "pending-"
    TIME = "time-"
    DUE_DATE = "dueDate-"
    REPLY_TO = "reply_to-"
    MESSAGE_CREATED = "message_created-"


class MembershipType(str, Enum):
    """Entities a user joins outside of conversations"""
    ORGANIZATION = "organization"
    TEAM = "team"


class UniquePropertyKind(str, Enum):
    """User attributes that must map to at most one user"""
    EMAIL = "email"
    USERNAME = "username"
    PHONE = "phone"


class BillingPlan(str, Enum):
    FREE = "free"
    PAID = "paid"


class StreamEventName(str, Enum):
    """Change kinds delivered by the table stream"""
    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


CONVERSATION_KEY_PREFIXES = {
    ConversationType.FRIEND: KeyPrefix.FRIEND_CONVERSATION,
    ConversationType.GROUP: KeyPrefix.GROUP_CONVERSATION,
    ConversationType.MEETING: KeyPrefix.MEETING_CONVERSATION,
}

CONVERSATION_ENTITY_TYPES = {
    ConversationType.FRIEND: EntityType.FRIEND_CONVERSATION,
    ConversationType.GROUP: EntityType.GROUP_CONVERSATION,
    ConversationType.MEETING: EntityType.MEETING_CONVERSATION,
}

MEMBERSHIP_KEY_PREFIXES = {
    MembershipType.ORGANIZATION: KeyPrefix.ORGANIZATION,
    MembershipType.TEAM: KeyPrefix.TEAM,
}
