# =============================================================================
# File: messaging_core/conversation/exceptions.py
# Description: Conversation domain exceptions
# =============================================================================

from messaging_core.common.exceptions.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)


class ConversationNotFoundError(NotFoundError):
    """Conversation not found"""
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class RelationshipNotFoundError(NotFoundError):
    """User is not a member of the conversation"""
    def __init__(self, conversation_id: str, user_id: str):
        super().__init__(f"Relationship not found: {conversation_id} / {user_id}")
        self.conversation_id = conversation_id
        self.user_id = user_id


class MessageNotFoundError(NotFoundError):
    """Message not found"""
    def __init__(self, message_id: str):
        super().__init__(f"Message not found: {message_id}")
        self.message_id = message_id


class PendingMessageNotFoundError(NotFoundError):
    """Pending message not found (already converted or never created)"""
    def __init__(self, pending_message_id: str):
        super().__init__(f"Pending message not found: {pending_message_id}")
        self.pending_message_id = pending_message_id


class UserNotFoundError(NotFoundError):
    """User not found"""
    def __init__(self, identifier: str):
        super().__init__(f"User not found: {identifier}")
        self.identifier = identifier


class OrganizationNotFoundError(NotFoundError):
    """Organization not found"""
    def __init__(self, organization_id: str):
        super().__init__(f"Organization not found: {organization_id}")
        self.organization_id = organization_id


class UniquePropertyNotFoundError(NotFoundError):
    """No user owns this property value"""
    def __init__(self, kind: str, value: str):
        super().__init__(f"Unique property not found: {kind}={value}")
        self.kind = kind
        self.value = value


class UniquePropertyTakenError(BadRequestError):
    """Another user already owns this property value"""
    def __init__(self, kind: str, value: str):
        super().__init__(f"A user with {kind} {value} already exists")
        self.kind = kind
        self.value = value


class ConversationAlreadyExistsError(ConflictError):
    """Conversation already exists"""
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation already exists: {conversation_id}")
        self.conversation_id = conversation_id


class UserAlreadyExistsError(ConflictError):
    """User row or one of its unique properties already exists"""
    def __init__(self, user_id: str):
        super().__init__(f"User already exists: {user_id}")
        self.user_id = user_id


class NotConversationMemberError(ForbiddenError):
    """Caller is not a member of the conversation"""
    def __init__(self, conversation_id: str, user_id: str):
        super().__init__(f"User {user_id} is not a member of {conversation_id}")
        self.conversation_id = conversation_id
        self.user_id = user_id


class NotConversationAdminError(ForbiddenError):
    """Caller is not an admin of the conversation"""
    def __init__(self, conversation_id: str, user_id: str):
        super().__init__(f"User {user_id} is not an admin of {conversation_id}")
        self.conversation_id = conversation_id
        self.user_id = user_id


class InvalidConversationTypeError(BadRequestError):
    """Operation does not apply to this conversation type"""
    def __init__(self, conversation_id: str, expected: str):
        super().__init__(f"Conversation {conversation_id} is not a {expected} conversation")
        self.conversation_id = conversation_id
        self.expected = expected


class TeamNotFoundError(NotFoundError):
    """Team not found"""
    def __init__(self, team_id: str):
        super().__init__(f"Team not found: {team_id}")
        self.team_id = team_id


class MembershipNotFoundError(NotFoundError):
    """User is not a member of the organization or team"""
    def __init__(self, entity_id: str, user_id: str):
        super().__init__(f"Membership not found: {entity_id} / {user_id}")
        self.entity_id = entity_id
        self.user_id = user_id


class NotMemberError(ForbiddenError):
    """Caller is not a member of the organization or team"""
    def __init__(self, entity_id: str, user_id: str):
        super().__init__(f"User {user_id} is not a member of {entity_id}")
        self.entity_id = entity_id
        self.user_id = user_id


class NotAdminError(ForbiddenError):
    """Caller is not an admin of the organization or team"""
    def __init__(self, entity_id: str, user_id: str):
        super().__init__(f"User {user_id} is not an admin of {entity_id}")
        self.entity_id = entity_id
        self.user_id = user_id
