# =============================================================================
# File: tests/fakes/fake_repositories.py
# Description: In-memory fakes of the core table repositories
# Pattern: Fake repositories with call tracking and configurable failures
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from botocore.exceptions import ClientError

from messaging_core.conversation.enums import (
    MEMBERSHIP_KEY_PREFIXES,
    BillingPlan,
    ConversationFetchType,
    ConversationType,
    MembershipType,
    MessageMimeType,
    UniquePropertyKind,
)
from messaging_core.conversation.exceptions import (
    ConversationAlreadyExistsError,
    ConversationNotFoundError,
    MembershipNotFoundError,
    MessageNotFoundError,
    OrganizationNotFoundError,
    PendingMessageNotFoundError,
    RelationshipNotFoundError,
    TeamNotFoundError,
    UniquePropertyNotFoundError,
    UniquePropertyTakenError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from messaging_core.conversation.ids import pending_message_id
from messaging_core.conversation.models import (
    ConversationUserRelationship,
    MeetingConversation,
    Membership,
    Message,
    Organization,
    PendingMessage,
    Team,
    UniquePropertyEntry,
    User,
)
from messaging_core.infra.persistence.dynamodb.base_dynamo_repo import (
    CONDITIONAL_CHECK_FAILED,
    Page,
    decode_exclusive_start_key,
    encode_exclusive_start_key,
)
from messaging_core.infra.persistence.dynamodb.unique_property_repo import normalize_property_value
from messaging_core.infra.persistence.dynamodb.user_repo import UPDATABLE_USER_FIELDS

AnyConversation = Any

DEFAULT_PAGE_SIZE = 25


@dataclass
class CallRecord:
    """Record of a method call for verification."""
    method: str
    args: tuple
    kwargs: Dict[str, Any]
    result: Any = None


def conditional_check_failed(operation: str) -> ClientError:
    """The error DynamoDB returns when a write's condition fails."""
    return ClientError(
        {"Error": {"Code": CONDITIONAL_CHECK_FAILED, "Message": "The conditional request failed"}},
        operation,
    )


def paginate(items: List[Any], limit: Optional[int], exclusive_start_key: Optional[str]) -> Page[Any]:
    """Offset paging behind the same opaque key format the real repositories use."""
    start = (decode_exclusive_start_key(exclusive_start_key) or {}).get("offset", 0)
    size = limit or DEFAULT_PAGE_SIZE
    chunk = items[start:start + size]
    next_offset = start + len(chunk)
    return Page(
        items=chunk,
        last_evaluated_key=encode_exclusive_start_key({"offset": next_offset}) if next_offset < len(items) else None,
    )


class FakeRepository:
    """Call tracking and failure injection shared by every fake repository."""

    def __init__(self):
        self._calls: List[CallRecord] = []
        self._should_fail: Dict[str, Exception] = {}

    # =========================================================================
    # Test Setup Methods
    # =========================================================================

    def configure_failure(self, method: str, error: Exception) -> None:
        """Configure a method to raise."""
        self._should_fail[method] = error

    def clear_failures(self) -> None:
        self._should_fail.clear()

    # =========================================================================
    # Test Verification Methods
    # =========================================================================

    def was_called(self, method: str) -> bool:
        return any(c.method == method for c in self._calls)

    def get_call_count(self, method: str) -> int:
        return sum(1 for c in self._calls if c.method == method)

    def get_calls(self, method: str) -> List[CallRecord]:
        return [c for c in self._calls if c.method == method]

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _record_call(self, method: str, *args, **kwargs) -> None:
        self._calls.append(CallRecord(method=method, args=args, kwargs=kwargs))

    def _check_failure(self, method: str) -> None:
        if method in self._should_fail:
            raise self._should_fail[method]


# =============================================================================
# Relationships
# =============================================================================

class FakeRelationshipRepository(FakeRepository):
    """Member rows keyed by (conversation id, user id)."""

    def __init__(self):
        super().__init__()
        self.rows: Dict[Tuple[str, str], ConversationUserRelationship] = {}

    def set_relationship(self, relationship: ConversationUserRelationship) -> None:
        self.rows[(relationship.conversation_id, relationship.user_id)] = relationship.model_copy(deep=True)

    async def create_relationship(self, relationship: ConversationUserRelationship) -> ConversationUserRelationship:
        self._record_call("create_relationship", relationship)
        self._check_failure("create_relationship")
        key = (relationship.conversation_id, relationship.user_id)
        if key in self.rows:
            raise conditional_check_failed("PutItem")
        self.rows[key] = relationship.model_copy(deep=True)
        return relationship

    async def get_relationship(self, conversation_id: str, user_id: str) -> ConversationUserRelationship:
        self._record_call("get_relationship", conversation_id, user_id)
        self._check_failure("get_relationship")
        row = self.rows.get((conversation_id, user_id))
        if row is None:
            raise RelationshipNotFoundError(conversation_id, user_id)
        return row.model_copy(deep=True)

    async def get_relationships_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        self._record_call("get_relationships_by_conversation_id", conversation_id)
        rows = sorted(
            (row.model_copy(deep=True) for (cid, _), row in self.rows.items() if cid == conversation_id),
            key=lambda row: row.user_id,
        )
        return paginate(rows, limit, exclusive_start_key)

    async def get_all_relationships_by_conversation_id(self, conversation_id: str) -> List[ConversationUserRelationship]:
        self._record_call("get_all_relationships_by_conversation_id", conversation_id)
        self._check_failure("get_all_relationships_by_conversation_id")
        return sorted(
            (row.model_copy(deep=True) for (cid, _), row in self.rows.items() if cid == conversation_id),
            key=lambda row: row.user_id,
        )

    async def get_relationships_by_user_id(
        self,
        user_id: str,
        fetch_type: Optional[ConversationFetchType] = None,
        unread: Optional[bool] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[ConversationUserRelationship]:
        self._record_call("get_relationships_by_user_id", user_id, fetch_type=fetch_type, unread=unread)
        rows = [row.model_copy(deep=True) for (_, uid), row in self.rows.items() if uid == user_id]

        if fetch_type == ConversationFetchType.MEETING_DUE_DATE:
            rows = sorted(
                (row for row in rows if row.type == ConversationType.MEETING and row.due_date),
                key=lambda row: row.due_date,
            )
        else:
            if fetch_type is not None:
                rows = [row for row in rows if row.type.value == fetch_type.value]
            rows = sorted(rows, key=lambda row: row.updated_at, reverse=True)

        if unread:
            rows = [row for row in rows if row.unread_messages]
        return paginate(rows, limit, exclusive_start_key)

    async def add_message_to_relationship(
        self,
        conversation_id: str,
        user_id: str,
        conversation_type: ConversationType,
        message_id: str,
        updated_at: str,
        sender: bool = False,
    ) -> Optional[ConversationUserRelationship]:
        self._record_call(
            "add_message_to_relationship", conversation_id, user_id, message_id=message_id, sender=sender
        )
        self._check_failure("add_message_to_relationship")
        row = self.rows.get((conversation_id, user_id))
        if row is None:
            return None
        if not sender:
            row.unread_messages.add(message_id)
        # Recency only moves forward
        if row.updated_at <= updated_at:
            row.updated_at = updated_at
            row.recent_message_id = message_id
        return row.model_copy(deep=True)

    async def add_unread_messages(
        self,
        conversation_id: str,
        user_id: str,
        message_ids: Sequence[str],
    ) -> Optional[ConversationUserRelationship]:
        self._record_call("add_unread_messages", conversation_id, user_id, list(message_ids))
        row = self.rows.get((conversation_id, user_id))
        if not message_ids or row is None:
            return None
        row.unread_messages.update(message_ids)
        return row.model_copy(deep=True)

    async def remove_unread_messages(
        self,
        conversation_id: str,
        user_id: str,
        message_ids: Sequence[str],
    ) -> Optional[ConversationUserRelationship]:
        self._record_call("remove_unread_messages", conversation_id, user_id, list(message_ids))
        row = self.rows.get((conversation_id, user_id))
        if not message_ids or row is None:
            return None
        row.unread_messages.difference_update(message_ids)
        return row.model_copy(deep=True)

    async def update_due_date(
        self,
        conversation_id: str,
        user_id: str,
        due_date: str,
    ) -> Optional[ConversationUserRelationship]:
        self._record_call("update_due_date", conversation_id, user_id, due_date)
        row = self.rows.get((conversation_id, user_id))
        if row is None:
            return None
        row.due_date = due_date
        return row.model_copy(deep=True)

    async def delete_relationship(self, conversation_id: str, user_id: str) -> None:
        self._record_call("delete_relationship", conversation_id, user_id)
        self._check_failure("delete_relationship")
        self.rows.pop((conversation_id, user_id), None)


# =============================================================================
# Conversations
# =============================================================================

class FakeConversationRepository(FakeRepository):
    """Conversation rows; creation also writes member rows, all or nothing."""

    def __init__(self, relationship_repo: FakeRelationshipRepository):
        super().__init__()
        self.relationship_repo = relationship_repo
        self.conversations: Dict[str, AnyConversation] = {}

    def set_conversation(self, conversation: AnyConversation) -> None:
        self.conversations[conversation.id] = conversation.model_copy(deep=True)

    async def create_conversation_with_members(
        self,
        conversation: AnyConversation,
        relationships: Sequence[ConversationUserRelationship],
    ) -> AnyConversation:
        self._record_call("create_conversation_with_members", conversation, list(relationships))
        self._check_failure("create_conversation_with_members")
        taken = conversation.id in self.conversations or any(
            (r.conversation_id, r.user_id) in self.relationship_repo.rows for r in relationships
        )
        if taken:
            raise ConversationAlreadyExistsError(conversation.id)

        self.conversations[conversation.id] = conversation.model_copy(deep=True)
        for relationship in relationships:
            self.relationship_repo.set_relationship(relationship)
        return conversation

    async def get_conversation(self, conversation_id: str) -> AnyConversation:
        self._record_call("get_conversation", conversation_id)
        self._check_failure("get_conversation")
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation.model_copy(deep=True)

    async def get_conversations(self, conversation_ids: Sequence[str]) -> List[AnyConversation]:
        self._record_call("get_conversations", list(conversation_ids))
        unique_ids = list(dict.fromkeys(conversation_ids))
        return [self.conversations[cid].model_copy(deep=True) for cid in unique_ids if cid in self.conversations]

    async def get_conversations_by_organization_id(
        self,
        organization_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        self._record_call("get_conversations_by_organization_id", organization_id, conversation_type)
        matches = sorted(
            (
                c.model_copy(deep=True) for c in self.conversations.values()
                if c.organization_id == organization_id and c.type == conversation_type
            ),
            key=lambda c: c.created_at,
            reverse=True,
        )
        return paginate(matches, limit, exclusive_start_key)

    async def get_conversations_by_team_id(
        self,
        team_id: str,
        conversation_type: ConversationType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[AnyConversation]:
        self._record_call("get_conversations_by_team_id", team_id, conversation_type)
        matches = sorted(
            (
                c.model_copy(deep=True) for c in self.conversations.values()
                if c.team_id == team_id and c.type == conversation_type
            ),
            key=lambda c: c.created_at,
            reverse=True,
        )
        return paginate(matches, limit, exclusive_start_key)

    async def update_meeting(
        self,
        meeting_id: str,
        name: Optional[str] = None,
        due_date: Optional[str] = None,
        outcomes: Optional[str] = None,
    ) -> MeetingConversation:
        self._record_call("update_meeting", meeting_id, name=name, due_date=due_date, outcomes=outcomes)
        meeting = self.conversations.get(meeting_id)
        if meeting is None:
            raise ConversationNotFoundError(meeting_id)
        updates = {"name": name, "due_date": due_date, "outcomes": outcomes}
        for field_name, value in updates.items():
            if value is not None:
                setattr(meeting, field_name, value)
        return meeting.model_copy(deep=True)

    async def delete_conversation_with_members(self, conversation_id: str, user_ids: Sequence[str]) -> None:
        self._record_call("delete_conversation_with_members", conversation_id, list(user_ids))
        self._check_failure("delete_conversation_with_members")
        self.conversations.pop(conversation_id, None)
        for user_id in user_ids:
            self.relationship_repo.rows.pop((conversation_id, user_id), None)


# =============================================================================
# Messages
# =============================================================================

class FakePendingMessageRepository(FakeRepository):

    def __init__(self):
        super().__init__()
        self.pending_messages: Dict[str, PendingMessage] = {}

    async def create_pending_message(self, pending_message: PendingMessage) -> PendingMessage:
        self._record_call("create_pending_message", pending_message)
        self._check_failure("create_pending_message")
        if pending_message.id in self.pending_messages:
            raise conditional_check_failed("PutItem")
        self.pending_messages[pending_message.id] = pending_message.model_copy(deep=True)
        return pending_message

    async def get_pending_message(self, pending_message_id: str) -> PendingMessage:
        self._record_call("get_pending_message", pending_message_id)
        pending = self.pending_messages.get(pending_message_id)
        if pending is None:
            raise PendingMessageNotFoundError(pending_message_id)
        return pending.model_copy(deep=True)

    async def update_mime_type(self, pending_message_id: str, mime_type: MessageMimeType) -> PendingMessage:
        self._record_call("update_mime_type", pending_message_id, mime_type)
        pending = self.pending_messages.get(pending_message_id)
        if pending is None:
            raise PendingMessageNotFoundError(pending_message_id)
        pending.mime_type = mime_type
        return pending.model_copy(deep=True)

    async def delete_pending_message(self, pending_message_id: str) -> None:
        self._record_call("delete_pending_message", pending_message_id)
        self.pending_messages.pop(pending_message_id, None)


class FakeMessageRepository(FakeRepository):
    """Message rows; conversion swaps a pending row for its message atomically."""

    def __init__(self, pending_message_repo: FakePendingMessageRepository):
        super().__init__()
        self.pending_message_repo = pending_message_repo
        self.messages: Dict[str, Message] = {}

    def set_message(self, message: Message) -> None:
        self.messages[message.id] = message.model_copy(deep=True)

    async def convert_pending_message(self, message: Message) -> bool:
        self._record_call("convert_pending_message", message)
        self._check_failure("convert_pending_message")
        pending_id = pending_message_id(message.id)
        parent_missing = message.reply_to is not None and message.reply_to not in self.messages
        if (
            message.id in self.messages
            or pending_id not in self.pending_message_repo.pending_messages
            or parent_missing
        ):
            return False

        self.messages[message.id] = message.model_copy(deep=True)
        del self.pending_message_repo.pending_messages[pending_id]
        if message.reply_to:
            self.messages[message.reply_to].reply_count += 1
        return True

    async def get_message(self, message_id: str) -> Message:
        self._record_call("get_message", message_id)
        self._check_failure("get_message")
        message = self.messages.get(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        return message.model_copy(deep=True)

    async def get_messages(self, message_ids: Sequence[str]) -> List[Message]:
        self._record_call("get_messages", list(message_ids))
        unique_ids = list(dict.fromkeys(message_ids))
        return [self.messages[mid].model_copy(deep=True) for mid in unique_ids if mid in self.messages]

    async def get_messages_by_conversation_id(
        self,
        conversation_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        self._record_call("get_messages_by_conversation_id", conversation_id)
        roots = [m for m in self.messages.values() if m.conversation_id == conversation_id and not m.reply_to]
        return paginate(self._newest_first(roots), limit, exclusive_start_key)

    async def get_replies_by_message_id(
        self,
        message_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Message]:
        self._record_call("get_replies_by_message_id", message_id)
        replies = [m for m in self.messages.values() if m.reply_to == message_id]
        return paginate(self._newest_first(replies), limit, exclusive_start_key)

    async def update_seen_at(self, message_id: str, user_id: str, seen_at: Optional[str]) -> Message:
        self._record_call("update_seen_at", message_id, user_id, seen_at)
        self._check_failure("update_seen_at")
        message = self._existing(message_id)
        message.seen_at[user_id] = seen_at
        return message.model_copy(deep=True)

    async def add_reaction(self, message_id: str, reaction: str, user_id: str) -> Message:
        self._record_call("add_reaction", message_id, reaction, user_id)
        message = self._existing(message_id)
        message.reactions.setdefault(reaction, set()).add(user_id)
        return message.model_copy(deep=True)

    async def remove_reaction(self, message_id: str, reaction: str, user_id: str) -> Message:
        self._record_call("remove_reaction", message_id, reaction, user_id)
        message = self._existing(message_id)
        users = message.reactions.get(reaction)
        if users is not None:
            users.discard(user_id)
            if not users:
                del message.reactions[reaction]
        return message.model_copy(deep=True)

    async def update_message(
        self,
        message_id: str,
        transcript: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> Message:
        self._record_call("update_message", message_id, transcript=transcript, mime_type=mime_type)
        message = self._existing(message_id)
        if transcript is not None:
            message.transcript = transcript
        if mime_type is not None:
            message.mime_type = MessageMimeType(mime_type)
        return message.model_copy(deep=True)

    def _existing(self, message_id: str) -> Message:
        message = self.messages.get(message_id)
        if message is None:
            raise MessageNotFoundError(message_id)
        return message

    @staticmethod
    def _newest_first(messages: List[Message]) -> List[Message]:
        return [m.model_copy(deep=True) for m in sorted(messages, key=lambda m: m.created_at, reverse=True)]


# =============================================================================
# Users, unique properties and organizations
# =============================================================================

class FakeUniquePropertyRepository(FakeRepository):

    def __init__(self):
        super().__init__()
        self.entries: Dict[Tuple[str, str], UniquePropertyEntry] = {}

    @staticmethod
    def key(kind: UniquePropertyKind, value: str) -> Tuple[str, str]:
        return kind.value, normalize_property_value(kind, value)

    async def create_unique_property(self, entry: UniquePropertyEntry) -> UniquePropertyEntry:
        self._record_call("create_unique_property", entry)
        key = self.key(entry.property, entry.value)
        if key in self.entries:
            raise UniquePropertyTakenError(entry.property.value, entry.value)
        self.entries[key] = entry
        return entry

    async def get_unique_property(self, kind: UniquePropertyKind, value: str) -> UniquePropertyEntry:
        self._record_call("get_unique_property", kind, value)
        entry = self.entries.get(self.key(kind, value))
        if entry is None:
            raise UniquePropertyNotFoundError(kind.value, value)
        return entry

    async def delete_unique_property(self, kind: UniquePropertyKind, value: str) -> None:
        self._record_call("delete_unique_property", kind, value)
        self.entries.pop(self.key(kind, value), None)


class FakeUserRepository(FakeRepository):
    """User rows; creation claims unique properties in the same step."""

    def __init__(self, unique_property_repo: FakeUniquePropertyRepository):
        super().__init__()
        self.unique_property_repo = unique_property_repo
        self.users: Dict[str, User] = {}

    async def create_user(self, user: User, unique_properties: Sequence[UniquePropertyEntry]) -> User:
        self._record_call("create_user", user, list(unique_properties))
        self._check_failure("create_user")
        if user.id in self.users:
            raise UserAlreadyExistsError(user.id)
        for entry in unique_properties:
            if self.unique_property_repo.key(entry.property, entry.value) in self.unique_property_repo.entries:
                raise UniquePropertyTakenError(entry.property.value, entry.value)

        self.users[user.id] = user.model_copy(deep=True)
        for entry in unique_properties:
            self.unique_property_repo.entries[self.unique_property_repo.key(entry.property, entry.value)] = entry
        return user

    async def get_user(self, user_id: str) -> User:
        self._record_call("get_user", user_id)
        self._check_failure("get_user")
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.model_copy(deep=True)

    async def get_users(self, user_ids: Sequence[str]) -> List[User]:
        self._record_call("get_users", list(user_ids))
        unique_ids = list(dict.fromkeys(user_ids))
        return [self.users[uid].model_copy(deep=True) for uid in unique_ids if uid in self.users]

    async def update_user(self, user_id: str, updates: Dict[str, Optional[str]]) -> User:
        self._record_call("update_user", user_id, updates)
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        allowed = {key: value for key, value in updates.items() if key in UPDATABLE_USER_FIELDS and value is not None}
        data = user.model_dump(by_alias=True)
        data.update(allowed)
        self.users[user_id] = User.model_validate(data)
        return self.users[user_id].model_copy(deep=True)


class FakeOrganizationRepository(FakeRepository):

    def __init__(self):
        super().__init__()
        self.organizations: Dict[str, Organization] = {}

    async def create_organization(self, organization: Organization) -> Organization:
        self._record_call("create_organization", organization)
        if organization.id in self.organizations:
            raise conditional_check_failed("PutItem")
        self.organizations[organization.id] = organization.model_copy(deep=True)
        return organization

    async def get_organization(self, organization_id: str) -> Organization:
        self._record_call("get_organization", organization_id)
        organization = self.organizations.get(organization_id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id)
        return organization.model_copy(deep=True)

    async def get_organizations(self, organization_ids: Sequence[str]) -> List[Organization]:
        self._record_call("get_organizations", list(organization_ids))
        unique_ids = list(dict.fromkeys(organization_ids))
        return [self.organizations[oid].model_copy(deep=True) for oid in unique_ids if oid in self.organizations]

    async def update_billing_plan(self, organization_id: str, billing_plan: BillingPlan) -> Organization:
        self._record_call("update_billing_plan", organization_id, billing_plan)
        organization = self.organizations.get(organization_id)
        if organization is None:
            raise OrganizationNotFoundError(organization_id)
        organization.billing_plan = billing_plan
        return organization.model_copy(deep=True)




# =============================================================================
# Teams and memberships
# =============================================================================

class FakeTeamRepository(FakeRepository):

    def __init__(self):
        super().__init__()
        self.teams: Dict[str, Team] = {}

    async def create_team(self, team: Team) -> Team:
        self._record_call("create_team", team)
        if team.id in self.teams:
            raise conditional_check_failed("PutItem")
        self.teams[team.id] = team.model_copy(deep=True)
        return team

    async def get_team(self, team_id: str) -> Team:
        self._record_call("get_team", team_id)
        team = self.teams.get(team_id)
        if team is None:
            raise TeamNotFoundError(team_id)
        return team.model_copy(deep=True)

    async def get_teams(self, team_ids: Sequence[str]) -> List[Team]:
        self._record_call("get_teams", list(team_ids))
        unique_ids = list(dict.fromkeys(team_ids))
        return [self.teams[tid].model_copy(deep=True) for tid in unique_ids if tid in self.teams]

    async def get_teams_by_organization_id(
        self,
        organization_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Team]:
        self._record_call("get_teams_by_organization_id", organization_id)
        matches = sorted(
            (t.model_copy(deep=True) for t in self.teams.values() if t.organization_id == organization_id),
            key=lambda t: t.created_at,
            reverse=True,
        )
        return paginate(matches, limit, exclusive_start_key)


class FakeMembershipRepository(FakeRepository):
    """Membership rows keyed by (entity id, user id)."""

    def __init__(self):
        super().__init__()
        self.memberships: Dict[Tuple[str, str], Membership] = {}

    async def create_membership(self, membership: Membership) -> Membership:
        self._record_call("create_membership", membership)
        self._check_failure("create_membership")
        key = (membership.entity_id, membership.user_id)
        if key in self.memberships:
            raise conditional_check_failed("PutItem")
        self.memberships[key] = membership.model_copy(deep=True)
        return membership

    async def get_membership(self, entity_id: str, user_id: str) -> Membership:
        self._record_call("get_membership", entity_id, user_id)
        membership = self.memberships.get((entity_id, user_id))
        if membership is None:
            raise MembershipNotFoundError(entity_id, user_id)
        return membership.model_copy(deep=True)

    async def delete_membership(self, entity_id: str, user_id: str) -> None:
        self._record_call("delete_membership", entity_id, user_id)
        self._check_failure("delete_membership")
        self.memberships.pop((entity_id, user_id), None)

    async def get_memberships_by_entity_id(
        self,
        entity_id: str,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        self._record_call("get_memberships_by_entity_id", entity_id)
        matches = [
            m.model_copy(deep=True)
            for (eid, _), m in sorted(self.memberships.items())
            if eid == entity_id
        ]
        return paginate(matches, limit, exclusive_start_key)

    async def get_memberships_by_user_id(
        self,
        user_id: str,
        membership_type: MembershipType,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[str] = None,
    ) -> Page[Membership]:
        self._record_call("get_memberships_by_user_id", user_id, membership_type)
        prefix = MEMBERSHIP_KEY_PREFIXES[membership_type].value
        matches = [
            m.model_copy(deep=True)
            for (eid, uid), m in sorted(self.memberships.items())
            if uid == user_id and eid.startswith(prefix)
        ]
        return paginate(matches, limit, exclusive_start_key)
