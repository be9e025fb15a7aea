# =============================================================================
# File: messaging_core/config/sns_config.py
# Description: SNS topic configuration (outbound notifications and the
#              inbound topics the event controllers accept)
# =============================================================================

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from messaging_core.common.base.base_config import BaseConfig, BASE_CONFIG_DICT

_ARN_PREFIX = "arn:aws:sns:us-east-1:000000000000:"


class SnsConfig(BaseConfig):
    """
    SNS topic ARNs, one per notification kind.
    """

    model_config = SettingsConfigDict(
        **BASE_CONFIG_DICT,
        env_prefix='SNS_',
    )

    region: str = Field(default="us-east-1", description="AWS region")
    endpoint_url: Optional[str] = Field(default=None, description="Override endpoint (LocalStack)")

    # Outbound
    group_created_topic_arn: str = Field(default=f"{_ARN_PREFIX}GroupCreated")
    meeting_created_topic_arn: str = Field(default=f"{_ARN_PREFIX}MeetingCreated")
    user_added_to_group_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserAddedToGroup")
    user_removed_from_group_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserRemovedFromGroup")
    user_added_to_meeting_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserAddedToMeeting")
    user_removed_from_meeting_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserRemovedFromMeeting")
    user_added_as_friend_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserAddedAsFriend")
    user_removed_as_friend_topic_arn: str = Field(default=f"{_ARN_PREFIX}UserRemovedAsFriend")
    friend_message_created_topic_arn: str = Field(default=f"{_ARN_PREFIX}FriendMessageCreated")
    group_message_created_topic_arn: str = Field(default=f"{_ARN_PREFIX}GroupMessageCreated")
    meeting_message_created_topic_arn: str = Field(default=f"{_ARN_PREFIX}MeetingMessageCreated")
    friend_message_updated_topic_arn: str = Field(default=f"{_ARN_PREFIX}FriendMessageUpdated")
    group_message_updated_topic_arn: str = Field(default=f"{_ARN_PREFIX}GroupMessageUpdated")
    meeting_message_updated_topic_arn: str = Field(default=f"{_ARN_PREFIX}MeetingMessageUpdated")

    # Inbound
    message_transcribed_topic_arn: str = Field(default=f"{_ARN_PREFIX}MessageTranscribed")
    message_transcoded_topic_arn: str = Field(default=f"{_ARN_PREFIX}MessageTranscoded")
    external_provider_user_signed_up_topic_arn: str = Field(default=f"{_ARN_PREFIX}ExternalProviderUserSignedUp")
    billing_plan_updated_topic_arn: str = Field(default=f"{_ARN_PREFIX}BillingPlanUpdated")


@lru_cache(maxsize=1)
def get_sns_config() -> SnsConfig:
    """Get SNS configuration singleton (cached)."""
    return SnsConfig()


def reset_sns_config() -> None:
    """Reset config singleton (for testing)."""
    get_sns_config.cache_clear()
