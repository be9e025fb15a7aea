# =============================================================================
# File: messaging_core/conversation/ids.py
# Description: Identifier construction for core table entities
# =============================================================================

from __future__ import annotations

import uuid
from typing import Optional

from messaging_core.conversation.enums import (
    CONVERSATION_KEY_PREFIXES,
    ConversationType,
    KeyPrefix,
)


def generate_id() -> str:
    return uuid.uuid4().hex


def new_user_id() -> str:
    return f"{KeyPrefix.USER.value}{generate_id()}"


def new_organization_id() -> str:
    return f"{KeyPrefix.ORGANIZATION.value}{generate_id()}"


def new_team_id() -> str:
    return f"{KeyPrefix.TEAM.value}{generate_id()}"


def new_group_id() -> str:
    return f"{KeyPrefix.GROUP_CONVERSATION.value}{generate_id()}"


def new_meeting_id() -> str:
    return f"{KeyPrefix.MEETING_CONVERSATION.value}{generate_id()}"


def new_message_id(reply: bool = False) -> str:
    prefix = KeyPrefix.REPLY if reply else KeyPrefix.MESSAGE
    return f"{prefix.value}{generate_id()}"


def friend_conversation_id(user_id_a: str, user_id_b: str) -> str:
    """Friend conversation ids are order-independent in their two members."""
    first, second = sorted([user_id_a, user_id_b])
    return f"{KeyPrefix.FRIEND_CONVERSATION.value}{first}-{second}"


def pending_message_id(message_id: str) -> str:
    return f"{KeyPrefix.PENDING.value}{message_id}"


def message_id_from_pending(pending_id: str) -> str:
    prefix = KeyPrefix.PENDING.value
    return pending_id[len(prefix):] if pending_id.startswith(prefix) else pending_id


def conversation_key_prefix(conversation_type: ConversationType) -> str:
    return CONVERSATION_KEY_PREFIXES[conversation_type].value


def conversation_type_from_id(conversation_id: str) -> Optional[ConversationType]:
    """Only used where a stream image lacks an explicit type."""
    for conversation_type, prefix in CONVERSATION_KEY_PREFIXES.items():
        if conversation_id.startswith(prefix.value):
            return conversation_type
    return None


def friend_id_from_conversation_id(conversation_id: str, user_id: str) -> str:
    """The member of a friend conversation that is not user_id."""
    members = conversation_id[len(KeyPrefix.FRIEND_CONVERSATION.value):]
    return members.replace(user_id, "", 1).strip("-")
