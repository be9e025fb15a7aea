# =============================================================================
# File: messaging_core/notifications/sns_services.py
# Description: Outbound notifications, one publisher per SNS topic.
#              Payloads carry fully resolved entities so subscribers never
#              need to call back.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Optional, TypedDict, TypeVar

from messaging_core.config.sns_config import SnsConfig, get_sns_config
from messaging_core.infra.messaging.sns_publisher import SnsPublisher

log = logging.getLogger("messaging_core.notifications.sns")

Entity = Dict[str, Any]


# =============================================================================
# Payloads
# =============================================================================

class GroupCreatedMessage(TypedDict):
    group: Entity
    groupMemberIds: List[str]


class MeetingCreatedMessage(TypedDict):
    meeting: Entity
    meetingMemberIds: List[str]


class UserGroupMembershipMessage(TypedDict):
    group: Entity
    user: Entity
    groupMemberIds: List[str]


class UserMeetingMembershipMessage(TypedDict):
    meeting: Entity
    user: Entity
    meetingMemberIds: List[str]


class FriendshipMessage(TypedDict):
    userA: Entity
    userB: Entity


# "from" is a keyword, hence the functional form
FriendMessageMessage = TypedDict("FriendMessageMessage", {
    "to": Entity,
    "from": Entity,
    "message": Entity,
})

GroupMessageMessage = TypedDict("GroupMessageMessage", {
    "to": Entity,
    "from": Entity,
    "message": Entity,
    "groupMemberIds": List[str],
})

MeetingMessageMessage = TypedDict("MeetingMessageMessage", {
    "to": Entity,
    "from": Entity,
    "message": Entity,
    "meetingMemberIds": List[str],
})


P = TypeVar("P")


# =============================================================================
# Services
# =============================================================================

class BaseSnsService(Generic[P]):
    """
    Publishes one payload to one topic. Transport errors are logged and
    re-raised; retries belong to the caller's redelivery.
    """

    topic_field: str = ""

    def __init__(self, publisher: SnsPublisher, config: Optional[SnsConfig] = None):
        self.publisher = publisher
        self.config = config or get_sns_config()
        self.topic_arn: str = getattr(self.config, self.topic_field)

    async def send_message(self, message: P) -> str:
        try:
            return await self.publisher.publish(self.topic_arn, message)  # type: ignore[arg-type]
        except Exception as e:
            log.error(
                f"Error in {type(self).__name__}.send_message: {e}",
                extra={"topic_arn": self.topic_arn},
                exc_info=True,
            )
            raise


class GroupCreatedSnsService(BaseSnsService[GroupCreatedMessage]):
    topic_field = "group_created_topic_arn"


class MeetingCreatedSnsService(BaseSnsService[MeetingCreatedMessage]):
    topic_field = "meeting_created_topic_arn"


class UserAddedToGroupSnsService(BaseSnsService[UserGroupMembershipMessage]):
    topic_field = "user_added_to_group_topic_arn"


class UserRemovedFromGroupSnsService(BaseSnsService[UserGroupMembershipMessage]):
    topic_field = "user_removed_from_group_topic_arn"


class UserAddedToMeetingSnsService(BaseSnsService[UserMeetingMembershipMessage]):
    topic_field = "user_added_to_meeting_topic_arn"


class UserRemovedFromMeetingSnsService(BaseSnsService[UserMeetingMembershipMessage]):
    topic_field = "user_removed_from_meeting_topic_arn"


class UserAddedAsFriendSnsService(BaseSnsService[FriendshipMessage]):
    topic_field = "user_added_as_friend_topic_arn"


class UserRemovedAsFriendSnsService(BaseSnsService[FriendshipMessage]):
    topic_field = "user_removed_as_friend_topic_arn"


class FriendMessageCreatedSnsService(BaseSnsService[FriendMessageMessage]):
    topic_field = "friend_message_created_topic_arn"


class GroupMessageCreatedSnsService(BaseSnsService[GroupMessageMessage]):
    topic_field = "group_message_created_topic_arn"


class MeetingMessageCreatedSnsService(BaseSnsService[MeetingMessageMessage]):
    topic_field = "meeting_message_created_topic_arn"


class FriendMessageUpdatedSnsService(BaseSnsService[FriendMessageMessage]):
    topic_field = "friend_message_updated_topic_arn"


class GroupMessageUpdatedSnsService(BaseSnsService[GroupMessageMessage]):
    topic_field = "group_message_updated_topic_arn"


class MeetingMessageUpdatedSnsService(BaseSnsService[MeetingMessageMessage]):
    topic_field = "meeting_message_updated_topic_arn"


class NotificationServices:
    """All topic services, built from one publisher."""

    def __init__(self, publisher: SnsPublisher, config: Optional[SnsConfig] = None):
        config = config or get_sns_config()
        self.group_created = GroupCreatedSnsService(publisher, config)
        self.meeting_created = MeetingCreatedSnsService(publisher, config)
        self.user_added_to_group = UserAddedToGroupSnsService(publisher, config)
        self.user_removed_from_group = UserRemovedFromGroupSnsService(publisher, config)
        self.user_added_to_meeting = UserAddedToMeetingSnsService(publisher, config)
        self.user_removed_from_meeting = UserRemovedFromMeetingSnsService(publisher, config)
        self.user_added_as_friend = UserAddedAsFriendSnsService(publisher, config)
        self.user_removed_as_friend = UserRemovedAsFriendSnsService(publisher, config)
        self.friend_message_created = FriendMessageCreatedSnsService(publisher, config)
        self.group_message_created = GroupMessageCreatedSnsService(publisher, config)
        self.meeting_message_created = MeetingMessageCreatedSnsService(publisher, config)
        self.friend_message_updated = FriendMessageUpdatedSnsService(publisher, config)
        self.group_message_updated = GroupMessageUpdatedSnsService(publisher, config)
        self.meeting_message_updated = MeetingMessageUpdatedSnsService(publisher, config)
